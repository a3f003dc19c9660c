from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from site_tracker.models.entities import Suggestion, SuggestionStatus, User, UserRole
from site_tracker.schemas.suggestion import SUGGESTION_CATEGORIES, SuggestionCreate, SuggestionReview
from site_tracker.services import files as files_service

STATUS_FILTER_ALL = "all"


def list_suggestions(db: Session, status_filter: str = SuggestionStatus.pending.value) -> list[Suggestion]:
    query = db.query(Suggestion)
    if status_filter != STATUS_FILTER_ALL:
        if status_filter not in {status.value for status in SuggestionStatus}:
            raise ValueError(f"Unknown status filter '{status_filter}'")
        query = query.filter(Suggestion.status == status_filter)
    return query.order_by(Suggestion.created_at.desc()).all()


def get_suggestion(db: Session, suggestion_id: str) -> Suggestion | None:
    return db.query(Suggestion).filter(Suggestion.id == suggestion_id).first()


def create_suggestion(db: Session, user: User, payload: SuggestionCreate) -> Suggestion:
    if payload.category not in SUGGESTION_CATEGORIES:
        raise ValueError(f"Category must be one of {', '.join(SUGGESTION_CATEGORIES)}")
    suggestion = Suggestion(
        category=payload.category,
        remarks=(payload.remarks or "").strip() or None,
        status=SuggestionStatus.pending.value,
        created_by_id=user.id,
        created_by_name=user.full_name or user.email,
    )
    db.add(suggestion)
    db.commit()
    db.refresh(suggestion)
    return suggestion


def attach_image(
    db: Session,
    suggestion: Suggestion,
    *,
    content: bytes,
    original_name: str | None,
    content_type: str | None,
) -> Suggestion:
    url = files_service.save_suggestion_image(
        suggestion.id,
        content=content,
        original_name=original_name,
        content_type=content_type,
    )
    if suggestion.image_url and suggestion.image_url != url:
        files_service.remove_by_url(suggestion.image_url)
    suggestion.image_url = url
    db.commit()
    db.refresh(suggestion)
    return suggestion


def review_suggestion(db: Session, reviewer: User, suggestion: Suggestion, payload: SuggestionReview) -> Suggestion:
    suggestion.status = payload.status
    suggestion.reviewed_by_id = reviewer.id
    suggestion.reviewed_by_name = reviewer.full_name or "Unknown"
    suggestion.review_notes = payload.review_notes or None
    suggestion.reviewed_at = datetime.utcnow()
    db.commit()
    db.refresh(suggestion)
    return suggestion


def can_delete(user: User, suggestion: Suggestion) -> bool:
    return user.role == UserRole.admin.value or suggestion.created_by_id == user.id


def delete_suggestion(db: Session, suggestion: Suggestion) -> None:
    files_service.remove_by_url(suggestion.image_url)
    db.delete(suggestion)
    db.commit()
