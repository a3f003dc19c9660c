from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from sqlalchemy.orm import Session

from site_tracker.models.entities import CatalogItem, ClassificationField, ClassificationOption
from site_tracker.schemas.catalog import (
    CatalogCategory,
    CatalogEquipmentType,
    CatalogProduct,
    CatalogTreeRead,
)


@dataclass(frozen=True)
class CatalogTree:
    """Read-only category -> equipment type -> products cascade."""

    branches: Mapping[str, Mapping[str, tuple[tuple[str | None, str | None], ...]]]

    @property
    def categories(self) -> list[str]:
        return sorted(self.branches)

    def equipment_types(self, category: str) -> list[str]:
        return sorted(self.branches.get(category, {}))

    def products(self, category: str, equipment_type: str) -> list[tuple[str | None, str | None]]:
        return list(self.branches.get(category, {}).get(equipment_type, ()))

    def has_category(self, category: str) -> bool:
        return category in self.branches

    def has_equipment_type(self, category: str, equipment_type: str) -> bool:
        return equipment_type in self.branches.get(category, {})

    def to_schema(self) -> CatalogTreeRead:
        return CatalogTreeRead(
            categories=[
                CatalogCategory(
                    category=category,
                    equipment_types=[
                        CatalogEquipmentType(
                            equipment_type=equipment_type,
                            products=[
                                CatalogProduct(product_name=name, product_number=number)
                                for name, number in self.products(category, equipment_type)
                            ],
                        )
                        for equipment_type in self.equipment_types(category)
                    ],
                )
                for category in self.categories
            ]
        )


def load_catalog_tree(db: Session) -> CatalogTree:
    cascade: dict[str, dict[str, list[tuple[str | None, str | None]]]] = defaultdict(lambda: defaultdict(list))
    items = db.query(CatalogItem).order_by(CatalogItem.category, CatalogItem.equipment_type, CatalogItem.product_name).all()
    for item in items:
        product = (item.product_name, item.product_number)
        bucket = cascade[item.category][item.equipment_type]
        if any(product) and product not in bucket:
            bucket.append(product)
    return CatalogTree(
        branches=MappingProxyType(
            {
                category: MappingProxyType({kind: tuple(products) for kind, products in types.items()})
                for category, types in cascade.items()
            }
        )
    )


def list_classification_options(db: Session, field: str) -> list[ClassificationOption]:
    try:
        resolved = ClassificationField(field)
    except ValueError as exc:
        raise ValueError(f"Unknown classification field '{field}'") from exc
    return (
        db.query(ClassificationOption)
        .filter(ClassificationOption.field == resolved.value)
        .order_by(ClassificationOption.sort_order, ClassificationOption.value)
        .all()
    )


def validate_classification(db: Session, *, category: str | None, equipment_type: str | None) -> None:
    """Reject category/equipment type pairs that the catalog does not know."""
    if not category and not equipment_type:
        return
    tree = load_catalog_tree(db)
    if category and not tree.has_category(category):
        raise ValueError(f"Unknown category '{category}'")
    if equipment_type:
        if not category:
            raise ValueError("equipment_type requires a category")
        if not tree.has_equipment_type(category, equipment_type):
            raise ValueError(f"Unknown equipment type '{equipment_type}' for category '{category}'")
