from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from site_tracker.core.database import get_db
from site_tracker.models.entities import UserRole
from site_tracker.schemas.pmr import PMRDailyStatus, PMRDashboard, PMRUploadPreview, PMRUploadResult
from site_tracker.services import auth as auth_service
from site_tracker.services import pmr_import as pmr_import_service
from site_tracker.services import pmr_status as pmr_status_service
from site_tracker.services.trending_data import SchemaMismatchError, TrendingFetchError

router = APIRouter()


@router.post("/upload", response_model=PMRUploadPreview | PMRUploadResult)
async def upload_schedule(
    file: UploadFile = File(...),
    preview: bool = Form(default=False),
    db: Session = Depends(get_db),
    current_user=Depends(auth_service.require_role([UserRole.admin.value])),
) -> PMRUploadPreview | PMRUploadResult:
    content = await file.read()
    try:
        frame = pmr_import_service.read_pmr_frame(content, file.filename)
        rows = pmr_import_service.extract_pmr_rows(frame)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if preview:
        return pmr_import_service.build_preview(rows)
    try:
        inserted = pmr_import_service.replace_pmr_table(db, rows)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to replace the PMR schedule",
        ) from exc
    return PMRUploadResult(message=f"Successfully uploaded {inserted} PMR records", row_count=inserted)


@router.get("/status", response_model=PMRDailyStatus)
def read_daily_status(
    day: date = Query(..., description="Actual PMR date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_user=Depends(auth_service.get_current_active_user),
) -> PMRDailyStatus:
    try:
        return pmr_status_service.daily_status(db, day)
    except SchemaMismatchError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    except TrendingFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.get("/dashboard", response_model=PMRDashboard)
def read_dashboard(
    start: date = Query(..., description="First actual PMR date (YYYY-MM-DD)"),
    end: date = Query(..., description="Last actual PMR date (YYYY-MM-DD)"),
    city: str | None = Query(None),
    nfo: str | None = Query(None),
    db: Session = Depends(get_db),
    current_user=Depends(auth_service.get_current_active_user),
) -> PMRDashboard:
    try:
        return pmr_status_service.dashboard(db, start, end, city=city or None, nfo=nfo or None)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SchemaMismatchError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    except TrendingFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
