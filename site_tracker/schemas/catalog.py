from __future__ import annotations

from pydantic import BaseModel


class CatalogProduct(BaseModel):
    product_name: str | None = None
    product_number: str | None = None


class CatalogEquipmentType(BaseModel):
    equipment_type: str
    products: list[CatalogProduct]


class CatalogCategory(BaseModel):
    category: str
    equipment_types: list[CatalogEquipmentType]


class CatalogTreeRead(BaseModel):
    categories: list[CatalogCategory]


class ClassificationOptionRead(BaseModel):
    value: str
    sort_order: int

    class Config:
        from_attributes = True
