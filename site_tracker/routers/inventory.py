from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from site_tracker.core.database import get_db
from site_tracker.models.entities import MainInventory, User
from site_tracker.schemas.inventory import (
    InventoryRowCreate,
    InventoryRowRead,
    InventoryRowUpdate,
    InventorySaveResult,
    SiteSearchResult,
)
from site_tracker.services import auth as auth_service
from site_tracker.services import inventory as inventory_service

router = APIRouter()


def _get_row_or_404(db: Session, row_id: str) -> MainInventory:
    row = inventory_service.get_row(db, row_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Row not found")
    return row


@router.get("/sites", response_model=List[SiteSearchResult])
def search_sites(
    q: str = Query(default=""),
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> List[SiteSearchResult]:
    return inventory_service.search_sites(db, q)


@router.get("/sites/{site_id}/rows", response_model=List[InventoryRowRead])
def list_site_rows(
    site_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> List[InventoryRowRead]:
    try:
        return inventory_service.list_site_rows(db, site_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/rows", response_model=List[InventoryRowRead])
def list_rows_for_sites(
    site_ids: str = Query(..., description="Comma-separated site ids in either form"),
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> List[InventoryRowRead]:
    values = [value.strip() for value in site_ids.split(",") if value.strip()]
    return inventory_service.list_rows_for_sites(db, values)


@router.post("/rows", response_model=InventorySaveResult, status_code=status.HTTP_201_CREATED)
def create_row(
    payload: InventoryRowCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> InventorySaveResult:
    try:
        row, warnings = inventory_service.create_row(db, current_user, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return InventorySaveResult(row=InventoryRowRead.model_validate(row), warnings=warnings)


@router.put("/rows/{row_id}", response_model=InventorySaveResult)
def update_row(
    row_id: str,
    payload: InventoryRowUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> InventorySaveResult:
    row = _get_row_or_404(db, row_id)
    try:
        row, warnings = inventory_service.update_row(db, current_user, row, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return InventorySaveResult(row=InventoryRowRead.model_validate(row), warnings=warnings)


@router.post("/rows/{row_id}/verify", response_model=InventoryRowRead)
def verify_row(
    row_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> InventoryRowRead:
    row = _get_row_or_404(db, row_id)
    return inventory_service.mark_verified(db, current_user, row)


@router.delete("/rows/{row_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_row(
    row_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_role(auth_service.STAFF_ROLES)),
) -> None:
    row = _get_row_or_404(db, row_id)
    inventory_service.delete_row(db, row)
