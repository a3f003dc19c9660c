from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from site_tracker.core.database import get_db
from site_tracker.schemas.trending import TrendFilters, TrendReport
from site_tracker.services import auth as auth_service
from site_tracker.services import reports as report_service
from site_tracker.services import trending_data
from site_tracker.services.submissions import SubmissionPolicy

router = APIRouter()


def _parse_date(value: str | None, label: str) -> date:
    if not value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing required {label} date (expected YYYY-MM-DD)",
        )
    try:
        return date.fromisoformat(value)
    except ValueError as exc:  # noqa: BLE001
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} date '{value}'. Expected YYYY-MM-DD.",
        ) from exc


def _parse_policy(value: str | None) -> SubmissionPolicy | None:
    if not value:
        return None
    try:
        return SubmissionPolicy(value)
    except ValueError as exc:
        allowed = ", ".join(policy.value for policy in SubmissionPolicy)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown submission policy '{value}'. Expected one of: {allowed}",
        ) from exc


def _build_report(
    db: Session,
    start: str | None,
    end: str | None,
    city: str | None,
    nfo: str | None,
    include_pre_week: bool | None,
    policy: str | None,
) -> TrendReport:
    start_date = _parse_date(start, "start")
    end_date = _parse_date(end, "end")
    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start date must be on or before end date",
        )
    try:
        return trending_data.build_trend_report(
            db,
            start_date,
            end_date,
            city=city or None,
            nfo=nfo or None,
            include_pre_week=include_pre_week,
            policy=_parse_policy(policy),
        )
    except trending_data.SchemaMismatchError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    except trending_data.TrendingFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.get("/report", response_model=TrendReport)
def read_trend_report(
    start: str | None = Query(None),
    end: str | None = Query(None),
    city: str | None = Query(None),
    nfo: str | None = Query(None),
    include_pre_week: bool | None = Query(None, alias="includePreWeek"),
    policy: str | None = Query(None),
    db: Session = Depends(get_db),
    _current_user=Depends(auth_service.get_current_active_user),
) -> TrendReport:
    return _build_report(db, start, end, city, nfo, include_pre_week, policy)


@router.get("/report.pdf")
def export_trend_report(
    start: str | None = Query(None),
    end: str | None = Query(None),
    city: str | None = Query(None),
    nfo: str | None = Query(None),
    include_pre_week: bool | None = Query(None, alias="includePreWeek"),
    policy: str | None = Query(None),
    db: Session = Depends(get_db),
    _current_user=Depends(auth_service.get_current_active_user),
) -> Response:
    report = _build_report(db, start, end, city, nfo, include_pre_week, policy)
    pdf_bytes = report_service.render_trend_pdf(report)
    filename = f"pmr-trending-{report.start.isoformat()}-to-{report.end.isoformat()}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/filters", response_model=TrendFilters)
def read_filter_options(
    db: Session = Depends(get_db),
    _current_user=Depends(auth_service.get_current_active_user),
) -> TrendFilters:
    try:
        return trending_data.list_filter_options(db)
    except trending_data.SchemaMismatchError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    except trending_data.TrendingFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
