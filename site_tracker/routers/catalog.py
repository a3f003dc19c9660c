from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from site_tracker.core.database import get_db
from site_tracker.schemas.catalog import CatalogTreeRead, ClassificationOptionRead
from site_tracker.services import auth as auth_service
from site_tracker.services import catalog as catalog_service

router = APIRouter()


@router.get("/tree", response_model=CatalogTreeRead)
def read_catalog_tree(
    db: Session = Depends(get_db),
    current_user=Depends(auth_service.get_current_active_user),
) -> CatalogTreeRead:
    return catalog_service.load_catalog_tree(db).to_schema()


@router.get("/options/{field}", response_model=List[ClassificationOptionRead])
def list_options(
    field: str,
    db: Session = Depends(get_db),
    current_user=Depends(auth_service.get_current_active_user),
) -> List[ClassificationOptionRead]:
    try:
        return catalog_service.list_classification_options(db, field)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
