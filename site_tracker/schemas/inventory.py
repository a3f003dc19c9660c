from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class InventoryFields(BaseModel):
    category: str | None = None
    equipment_type: str | None = None
    product_name: str | None = None
    product_number: str | None = None
    serial_number: str | None = None
    tag_id: str | None = None
    tag_category: str | None = None
    photo_category: str | None = None


class InventoryRowCreate(InventoryFields):
    site_id: str = Field(min_length=1)


class InventoryRowUpdate(InventoryFields):
    pass


class InventoryRowRead(InventoryFields):
    id: str
    site_id: str
    site_id_canonical: str
    sheet_source: str | None = None
    serial_pic_url: str | None = None
    tag_pic_url: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class DuplicateWarning(BaseModel):
    field: str
    value: str
    conflict_row_id: str
    conflict_sheet_source: str | None = None


class InventorySaveResult(BaseModel):
    row: InventoryRowRead
    warnings: list[DuplicateWarning] = []


class SiteSearchResult(BaseModel):
    site_id_canonical: str
    site_digits: str
    row_count: int
