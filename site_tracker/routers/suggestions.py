from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from site_tracker.core.database import get_db
from site_tracker.models.entities import Suggestion, User
from site_tracker.schemas.suggestion import SuggestionCreate, SuggestionRead, SuggestionReview
from site_tracker.services import auth as auth_service
from site_tracker.services import suggestions as suggestion_service

router = APIRouter()


def _get_suggestion_or_404(db: Session, suggestion_id: str) -> Suggestion:
    suggestion = suggestion_service.get_suggestion(db, suggestion_id)
    if not suggestion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Suggestion not found")
    return suggestion


@router.get("/", response_model=List[SuggestionRead])
def list_suggestions(
    status_filter: str = Query(default="pending", alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> List[SuggestionRead]:
    try:
        return suggestion_service.list_suggestions(db, status_filter)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/", response_model=SuggestionRead, status_code=status.HTTP_201_CREATED)
def create_suggestion(
    payload: SuggestionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> SuggestionRead:
    try:
        return suggestion_service.create_suggestion(db, current_user, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/{suggestion_id}/image", response_model=SuggestionRead)
async def upload_suggestion_image(
    suggestion_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> SuggestionRead:
    suggestion = _get_suggestion_or_404(db, suggestion_id)
    if not suggestion_service.can_delete(current_user, suggestion):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to modify this suggestion")
    content = await file.read()
    try:
        return suggestion_service.attach_image(
            db,
            suggestion,
            content=content,
            original_name=file.filename,
            content_type=file.content_type,
        )
    except ValueError as exc:  # noqa: BLE001
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/{suggestion_id}/review", response_model=SuggestionRead)
def review_suggestion(
    suggestion_id: str,
    payload: SuggestionReview,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_role(auth_service.STAFF_ROLES)),
) -> SuggestionRead:
    suggestion = _get_suggestion_or_404(db, suggestion_id)
    return suggestion_service.review_suggestion(db, current_user, suggestion, payload)


@router.delete("/{suggestion_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_suggestion(
    suggestion_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> None:
    suggestion = _get_suggestion_or_404(db, suggestion_id)
    if not suggestion_service.can_delete(current_user, suggestion):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to delete this suggestion")
    suggestion_service.delete_suggestion(db, suggestion)
