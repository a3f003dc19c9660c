from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from site_tracker.core.database import Base


class UserRole(str, Enum):
    admin = "admin"
    analyst = "analyst"
    nfo = "nfo"


class SheetSource(str, Enum):
    manual_added = "Manual_added"
    manual_edited = "Manual_edited"
    manual_verified = "Manual_verified"


class ClassificationField(str, Enum):
    tag_category = "tag_category"
    photo_category = "photo_category"


class SuggestionStatus(str, Enum):
    pending = "pending"
    done = "done"
    rejected = "rejected"


def generate_uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String, default="")
    role: Mapped[str] = mapped_column(String, default=UserRole.nfo.value)
    hashed_password: Mapped[str] = mapped_column(String)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    suggestions: Mapped[list["Suggestion"]] = relationship(
        back_populates="created_by",
        foreign_keys="Suggestion.created_by_id",
    )


class MainInventory(Base):
    """One equipment row on a site; site_id keeps whichever key form was entered."""

    __tablename__ = "main_inventory"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_uuid)
    site_id: Mapped[str] = mapped_column(String, index=True)
    site_id_canonical: Mapped[str] = mapped_column(String, index=True)
    sheet_source: Mapped[str | None] = mapped_column(String, nullable=True)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    equipment_type: Mapped[str | None] = mapped_column(String, nullable=True)
    product_name: Mapped[str | None] = mapped_column(String, nullable=True)
    product_number: Mapped[str | None] = mapped_column(String, nullable=True)
    serial_number: Mapped[str | None] = mapped_column(String, nullable=True)
    tag_id: Mapped[str | None] = mapped_column(String, nullable=True)
    tag_category: Mapped[str | None] = mapped_column(String, nullable=True)
    photo_category: Mapped[str | None] = mapped_column(String, nullable=True)
    serial_pic_url: Mapped[str | None] = mapped_column(String, nullable=True)
    tag_pic_url: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_by: Mapped[User | None] = relationship(foreign_keys=[created_by_id])
    updated_by: Mapped[User | None] = relationship(foreign_keys=[updated_by_id])


class PMRActual(Base):
    """Planned maintenance schedule row, replaced wholesale by each upload."""

    __tablename__ = "pmr_actual"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    site_id_canonical: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    site_id_bare: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    plan_quarter: Mapped[str | None] = mapped_column(String, nullable=True)
    domain: Mapped[str | None] = mapped_column(String, nullable=True)
    fo_partner: Mapped[str | None] = mapped_column(String, nullable=True)
    site_type: Mapped[str | None] = mapped_column(String, nullable=True)
    planned_date_text: Mapped[str | None] = mapped_column(String, nullable=True)
    actual_date_text: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True)
    fme_name: Mapped[str | None] = mapped_column(String, nullable=True, index=True)


class CatalogItem(Base):
    __tablename__ = "catalog_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String, index=True)
    equipment_type: Mapped[str] = mapped_column(String)
    product_name: Mapped[str | None] = mapped_column(String, nullable=True)
    product_number: Mapped[str | None] = mapped_column(String, nullable=True)


class ClassificationOption(Base):
    __tablename__ = "classification_options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    field: Mapped[str] = mapped_column(String, index=True)
    value: Mapped[str] = mapped_column(String)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)


class Suggestion(Base):
    __tablename__ = "suggestions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_uuid)
    category: Mapped[str] = mapped_column(String)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text(), nullable=True)
    status: Mapped[str] = mapped_column(String, default=SuggestionStatus.pending.value, index=True)
    created_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by_name: Mapped[str | None] = mapped_column(String, nullable=True)
    reviewed_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_by_name: Mapped[str | None] = mapped_column(String, nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text(), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    created_by: Mapped[User | None] = relationship(back_populates="suggestions", foreign_keys=[created_by_id])
