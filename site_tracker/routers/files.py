from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from site_tracker.core.database import get_db
from site_tracker.models.entities import MainInventory, User
from site_tracker.schemas.media import PhotoDeleteResult, StoredPhoto
from site_tracker.services import auth as auth_service
from site_tracker.services import files as files_service
from site_tracker.services import inventory as inventory_service
from site_tracker.services.files import PhotoKind

router = APIRouter()


def _get_row_or_404(db: Session, row_id: str) -> MainInventory:
    row = inventory_service.get_row(db, row_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Row not found")
    return row


@router.post("/inventory/{row_id}", response_model=StoredPhoto, status_code=status.HTTP_201_CREATED)
async def upload_inventory_photo(
    row_id: str,
    kind: PhotoKind = Query(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> StoredPhoto:
    row = _get_row_or_404(db, row_id)
    content = await file.read()
    try:
        return files_service.save_inventory_photo(
            db,
            current_user,
            row,
            kind,
            content=content,
            original_name=file.filename,
            content_type=file.content_type,
        )
    except ValueError as exc:  # noqa: BLE001
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/inventory/{row_id}", response_model=PhotoDeleteResult)
def delete_inventory_photo(
    row_id: str,
    kind: PhotoKind = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_active_user),
) -> PhotoDeleteResult:
    row = _get_row_or_404(db, row_id)
    return files_service.delete_inventory_photo(db, current_user, row, kind)


@router.get("/{key:path}")
def download_object(key: str) -> FileResponse:
    try:
        file_path = files_service.resolve_storage_path(key)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found") from exc
    if not file_path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return FileResponse(
        path=file_path,
        media_type=files_service.guess_media_type(file_path),
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
