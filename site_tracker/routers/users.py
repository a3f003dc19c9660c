from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from site_tracker.core.database import get_db
from site_tracker.models.entities import User, UserRole
from site_tracker.schemas.auth import UserRead
from site_tracker.services import auth as auth_service

router = APIRouter()


@router.get("/", response_model=List[UserRead])
def list_users(
    role: str | None = Query(default=None),
    active_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    current_user=Depends(auth_service.require_role([UserRole.admin.value])),
) -> List[UserRead]:
    query = db.query(User).order_by(User.full_name.asc())
    if role:
        query = query.filter(User.role == role)
    if active_only:
        query = query.filter(User.is_active.is_(True))
    return query.all()
