from __future__ import annotations

from sqlalchemy.orm import Session

from site_tracker.core.database import SessionLocal
from site_tracker.core.security import get_password_hash
from site_tracker.models.entities import CatalogItem, ClassificationField, ClassificationOption, User, UserRole

DEFAULT_USERS = [
    {
        "email": "admin@example.com",
        "full_name": "Admin User",
        "role": UserRole.admin.value,
        "password": "adminpass",
    },
    {
        "email": "analyst@example.com",
        "full_name": "Analyst One",
        "role": UserRole.analyst.value,
        "password": "analystpass",
    },
    {
        "email": "nfo@example.com",
        "full_name": "Field Engineer",
        "role": UserRole.nfo.value,
        "password": "nfopass",
    },
]

# (category, equipment type, product name, product number)
DEFAULT_CATALOG = [
    ("RAN-Active", "Baseband Unit", "BBU 5900", "02311VGE"),
    ("RAN-Active", "Radio Unit", "RRU 5258", "02312KQB"),
    ("RAN-Passive", "Antenna", "ATR4518R6", "27012345"),
    ("MW-Active", "IDU", "RTN 950A", "02113588"),
    ("MW-Passive", "Dish", "0.6m Dish", "A06S15HAC"),
    ("Enclosure-Active", "Power Cabinet", "TP48200A", "02312090"),
    ("Enclosure-Passive", "Battery Rack", "48V Rack", "BR-48"),
]

DEFAULT_OPTIONS = {
    ClassificationField.tag_category.value: [
        "Tag available",
        "Tag missing",
        "Tag not required",
        "Tag not required & serial available",
        "Tag not required & serial is missing",
        "Item dismantled",
    ],
    ClassificationField.photo_category.value: [
        "Photos available",
        "Photos not clear",
        "Photos not allowed",
        "Item dismantled",
    ],
}


def _get_or_create_user(db: Session, *, email: str, full_name: str, role: str, password: str) -> None:
    exists = db.query(User).filter(User.email == email).first()
    if exists:
        return

    user = User(
        email=email,
        full_name=full_name,
        role=role,
        hashed_password=get_password_hash(password),
    )
    db.add(user)
    db.flush()


def _ensure_catalog(db: Session) -> None:
    if db.query(CatalogItem).first():
        return
    for category, equipment_type, product_name, product_number in DEFAULT_CATALOG:
        db.add(
            CatalogItem(
                category=category,
                equipment_type=equipment_type,
                product_name=product_name,
                product_number=product_number,
            )
        )


def _ensure_options(db: Session) -> None:
    for field, values in DEFAULT_OPTIONS.items():
        if db.query(ClassificationOption).filter(ClassificationOption.field == field).first():
            continue
        for index, value in enumerate(values, start=1):
            db.add(ClassificationOption(field=field, value=value, sort_order=index))


def seed_initial_data() -> None:
    db = SessionLocal()
    try:
        for user_config in DEFAULT_USERS:
            _get_or_create_user(db, **user_config)
        _ensure_catalog(db)
        _ensure_options(db)
        db.commit()
    finally:
        db.close()
