from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

SUGGESTION_CATEGORIES = (
    "Enclosure-Active",
    "Enclosure-Passive",
    "MW-Active",
    "MW-Passive",
    "RAN-Active",
    "RAN-Passive",
)


class SuggestionCreate(BaseModel):
    category: str
    remarks: str | None = None


class SuggestionReview(BaseModel):
    status: Literal["done", "rejected"]
    review_notes: str | None = None


class SuggestionRead(BaseModel):
    id: str
    category: str
    image_url: str | None = None
    remarks: str | None = None
    status: str
    created_by_id: str | None = None
    created_by_name: str | None = None
    reviewed_by_id: str | None = None
    reviewed_by_name: str | None = None
    review_notes: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True
