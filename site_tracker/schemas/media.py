from __future__ import annotations

from pydantic import BaseModel


class StoredPhoto(BaseModel):
    key: str
    public_url: str
    row_updated: bool = True


class PhotoDeleteResult(BaseModel):
    ok: bool = True
    message: str | None = None
