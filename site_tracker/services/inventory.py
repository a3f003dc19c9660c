from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from site_tracker.models.entities import MainInventory, SheetSource, User
from site_tracker.schemas.inventory import (
    DuplicateWarning,
    InventoryFields,
    InventoryRowCreate,
    InventoryRowUpdate,
    SiteSearchResult,
)
from site_tracker.services import catalog as catalog_service
from site_tracker.services import files as files_service
from site_tracker.services.site_keys import digits_of, normalize_site_key

logger = logging.getLogger(__name__)

SITE_SEARCH_LIMIT = 20
EDITABLE_FIELDS = tuple(InventoryFields.model_fields)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def search_sites(db: Session, query: str | None) -> list[SiteSearchResult]:
    """Sites whose bare digits start with the digits typed so far."""
    if not query or not query.strip():
        return []
    row_count = func.count(MainInventory.id).label("row_count")
    base = db.query(MainInventory.site_id_canonical, row_count).group_by(MainInventory.site_id_canonical)
    digits = digits_of(query)
    if digits:
        key = normalize_site_key(digits)
        rows = (
            base.filter(MainInventory.site_id_canonical.like(f"{key.canonical}%"))
            .order_by(MainInventory.site_id_canonical.asc())
            .limit(SITE_SEARCH_LIMIT)
            .all()
        )
    else:
        rows = base.order_by(row_count.desc()).limit(SITE_SEARCH_LIMIT).all()
    results: list[SiteSearchResult] = []
    for canonical, count in rows:
        key = normalize_site_key(canonical)
        results.append(
            SiteSearchResult(
                site_id_canonical=canonical,
                site_digits=key.bare if key else canonical,
                row_count=int(count or 0),
            )
        )
    return results


def list_site_rows(db: Session, site_id: str) -> list[MainInventory]:
    key = normalize_site_key(site_id)
    if key is None:
        raise ValueError("Site id is required")
    return (
        db.query(MainInventory)
        .filter(MainInventory.site_id_canonical == key.canonical)
        .order_by(MainInventory.created_at.desc(), MainInventory.id)
        .all()
    )


def list_rows_for_sites(db: Session, site_ids: list[str]) -> list[MainInventory]:
    keys = {key for key in (normalize_site_key(value) for value in site_ids) if key is not None}
    if not keys:
        return []
    return (
        db.query(MainInventory)
        .filter(MainInventory.site_id_canonical.in_(sorted(key.canonical for key in keys)))
        .order_by(MainInventory.site_id_canonical, MainInventory.created_at)
        .all()
    )


def get_row(db: Session, row_id: str) -> MainInventory | None:
    return db.query(MainInventory).filter(MainInventory.id == row_id).first()


def find_duplicates(db: Session, row: MainInventory) -> list[DuplicateWarning]:
    """Other rows on the same site sharing this row's serial number or tag id."""
    warnings: list[DuplicateWarning] = []
    for field_name in ("serial_number", "tag_id"):
        value = _clean(getattr(row, field_name))
        if not value:
            continue
        column = getattr(MainInventory, field_name)
        match = (
            db.query(MainInventory)
            .filter(
                MainInventory.site_id_canonical == row.site_id_canonical,
                MainInventory.id != row.id,
                func.lower(column) == value.lower(),
            )
            .order_by(MainInventory.created_at)
            .first()
        )
        if match:
            warnings.append(
                DuplicateWarning(
                    field=field_name,
                    value=value,
                    conflict_row_id=match.id,
                    conflict_sheet_source=match.sheet_source,
                )
            )
    return warnings


def _apply_fields(row: MainInventory, payload: InventoryFields) -> None:
    for field_name in EDITABLE_FIELDS:
        setattr(row, field_name, _clean(getattr(payload, field_name)))


def create_row(db: Session, user: User, payload: InventoryRowCreate) -> tuple[MainInventory, list[DuplicateWarning]]:
    key = normalize_site_key(payload.site_id)
    if key is None:
        raise ValueError("Site id is required")
    catalog_service.validate_classification(db, category=_clean(payload.category), equipment_type=_clean(payload.equipment_type))
    now = datetime.utcnow()
    row = MainInventory(
        site_id=key.canonical,
        site_id_canonical=key.canonical,
        sheet_source=SheetSource.manual_added.value,
        created_at=now,
        updated_at=now,
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    _apply_fields(row, payload)
    db.add(row)
    db.flush()
    warnings = find_duplicates(db, row)
    db.commit()
    db.refresh(row)
    logger.info("User %s added inventory row %s on %s", user.id, row.id, key.canonical)
    return row, warnings


def next_sheet_source(current: str | None, photo_category: str | None) -> str:
    if photo_category:
        return SheetSource.manual_verified.value
    if (current or "").strip().lower() == SheetSource.manual_added.value.lower():
        return SheetSource.manual_added.value
    return SheetSource.manual_edited.value


def update_row(
    db: Session,
    user: User,
    row: MainInventory,
    payload: InventoryRowUpdate,
) -> tuple[MainInventory, list[DuplicateWarning]]:
    catalog_service.validate_classification(db, category=_clean(payload.category), equipment_type=_clean(payload.equipment_type))
    _apply_fields(row, payload)
    row.sheet_source = next_sheet_source(row.sheet_source, row.photo_category)
    row.updated_at = datetime.utcnow()
    row.updated_by_id = user.id
    db.flush()
    warnings = find_duplicates(db, row)
    db.commit()
    db.refresh(row)
    return row, warnings


def mark_verified(db: Session, user: User, row: MainInventory) -> MainInventory:
    row.sheet_source = SheetSource.manual_verified.value
    row.updated_at = datetime.utcnow()
    row.updated_by_id = user.id
    db.commit()
    db.refresh(row)
    return row


def delete_row(db: Session, row: MainInventory) -> None:
    photo_urls = [row.serial_pic_url, row.tag_pic_url]
    db.delete(row)
    db.commit()
    for url in photo_urls:
        files_service.remove_by_url(url)
    logger.info("Deleted inventory row %s", row.id)
