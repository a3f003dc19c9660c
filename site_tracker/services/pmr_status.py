from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from site_tracker.core.config import settings
from site_tracker.models.entities import MainInventory, PMRActual
from site_tracker.schemas.pmr import (
    DASHBOARD_CATEGORIES,
    CategoryCompletion,
    PMRDailyStatus,
    PMRDashboard,
    PMRDashboardSite,
    PMRDashboardSummary,
    PMRSiteStatus,
)
from site_tracker.services.pmr_dates import parse_pmr_date
from site_tracker.services.site_keys import SiteKey, lookup_forms, normalize_site_key, site_key_for_record
from site_tracker.services.submissions import MANUAL_MARKER
from site_tracker.services.trending_data import wrap_fetch_error

logger = logging.getLogger(__name__)

# Rows in these categories never need a tag photo.
TAG_PHOTO_EXEMPT_TAG_CATEGORIES = frozenset(
    {
        "item dismantled",
        "tag not required & serial available",
        "tag not required & serial is missing",
        "tag not required",
    }
)
TAG_PHOTO_EXEMPT_PHOTO_CATEGORIES = frozenset({"item dismantled", "photos not allowed"})

STATUS_SUBMITTED = "Submitted"
STATUS_PENDING = "Pending"


def count_duplicate_values(values: Iterable[str | None]) -> int:
    """Every instance of a value that occurs more than once."""
    counts = Counter(value for value in values if value and value.strip())
    return sum(count for count in counts.values() if count > 1)


def requires_tag_photo(row: MainInventory) -> bool:
    tag_category = (row.tag_category or "").lower()
    photo_category = (row.photo_category or "").lower()
    return (
        tag_category not in TAG_PHOTO_EXEMPT_TAG_CATEGORIES
        and photo_category not in TAG_PHOTO_EXEMPT_PHOTO_CATEGORIES
    )


def _is_manual(row: MainInventory) -> bool:
    return MANUAL_MARKER in (row.sheet_source or "").lower()


def _rows_by_site(db: Session, keys: set[SiteKey]) -> dict[SiteKey, list[MainInventory]]:
    grouped: dict[SiteKey, list[MainInventory]] = defaultdict(list)
    if not keys:
        return grouped
    try:
        rows = (
            db.query(MainInventory)
            .filter(MainInventory.site_id.in_(lookup_forms(keys)))
            .order_by(MainInventory.created_at, MainInventory.id)
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Inventory query for PMR status failed")
        raise wrap_fetch_error(exc, "inventory rows") from exc
    for row in rows:
        key = normalize_site_key(row.site_id)
        if key is not None:
            grouped[key].append(row)
    return grouped


def _site_status(plan: PMRActual, rows: list[MainInventory]) -> PMRSiteStatus:
    manual_rows = [row for row in rows if _is_manual(row)]
    needing_tag_photo = [row for row in rows if requires_tag_photo(row)]
    return PMRSiteStatus(
        site_id=plan.site_id_canonical or plan.site_id_bare or "Unknown",
        planned_date=plan.planned_date_text,
        actual_date=plan.actual_date_text,
        pmr_status=plan.status,
        status=STATUS_SUBMITTED if manual_rows else STATUS_PENDING,
        submission_count=len(manual_rows),
        total_rows=len(rows),
        last_submission_date=manual_rows[0].updated_at if manual_rows else None,
        fme_name=plan.fme_name,
        site_type=plan.site_type,
        city=plan.city,
        duplicate_serials=count_duplicate_values(row.serial_number for row in rows),
        duplicate_tags=count_duplicate_values(row.tag_id for row in rows),
        tag_pics_available=sum(1 for row in needing_tag_photo if (row.tag_pic_url or "").strip()),
        tag_pics_required=len(needing_tag_photo),
    )


def _plans_with_actual_date(db: Session, *, city: str | None = None, nfo: str | None = None) -> list[PMRActual]:
    query = db.query(PMRActual).filter(PMRActual.actual_date_text.isnot(None))
    if city:
        query = query.filter(PMRActual.city == city)
    if nfo:
        query = query.filter(PMRActual.fme_name == nfo)
    try:
        return query.order_by(PMRActual.id).all()
    except SQLAlchemyError as exc:
        logger.exception("Planned record query failed")
        raise wrap_fetch_error(exc, "planned records") from exc


def _site_rows(db: Session, plans: list[PMRActual]) -> dict[int, list[MainInventory]]:
    plan_keys = {plan.id: site_key_for_record(plan.site_id_canonical, plan.site_id_bare) for plan in plans}
    grouped = _rows_by_site(db, {key for key in plan_keys.values() if key is not None})
    return {plan_id: grouped.get(key, []) if key is not None else [] for plan_id, key in plan_keys.items()}


def daily_status(db: Session, target: date) -> PMRDailyStatus:
    """Per-site submission status for every visit whose actual date is ``target``."""
    candidates = _plans_with_actual_date(db)
    plans = [plan for plan in candidates if parse_pmr_date(plan.actual_date_text) == target]
    if not plans:
        return PMRDailyStatus(day=target, total=0, submitted=0, percentage=0, rows=[])

    rows_by_plan = _site_rows(db, plans)
    rows = [_site_status(plan, rows_by_plan[plan.id]) for plan in plans]
    submitted = sum(1 for row in rows if row.status == STATUS_SUBMITTED)
    return PMRDailyStatus(
        day=target,
        total=len(rows),
        submitted=submitted,
        percentage=round(submitted / len(rows) * 100),
        rows=rows,
    )


def is_filled(row: MainInventory) -> bool:
    return bool((row.tag_category or "").strip()) and bool((row.photo_category or "").strip())


def category_completion(rows: Iterable[MainInventory]) -> dict[str, CategoryCompletion]:
    """Total and filled rows per dashboard category; other categories are ignored."""
    counts = {category: CategoryCompletion() for category in DASHBOARD_CATEGORIES}
    for row in rows:
        entry = counts.get(row.category or "")
        if entry is None:
            continue
        entry.total += 1
        if is_filled(row):
            entry.filled += 1
    return counts


def _dashboard_site(plan: PMRActual, rows: list[MainInventory]) -> PMRDashboardSite:
    categories = category_completion(rows)
    total_rows = sum(entry.total for entry in categories.values())
    total_filled = sum(entry.filled for entry in categories.values())
    completion = total_filled / total_rows * 100 if total_rows else 0.0
    needing_tag_photo = [row for row in rows if requires_tag_photo(row)]
    return PMRDashboardSite(
        site_id=plan.site_id_canonical or plan.site_id_bare or "Unknown",
        actual_date=plan.actual_date_text or plan.planned_date_text,
        city=plan.city,
        fme_name=plan.fme_name,
        categories=categories,
        total_rows=total_rows,
        total_filled=total_filled,
        completion_percentage=round(completion, 2),
        status=STATUS_SUBMITTED if completion > settings.trending_completion_threshold else STATUS_PENDING,
        duplicate_serials=count_duplicate_values(row.serial_number for row in rows),
        duplicate_tags=count_duplicate_values(row.tag_id for row in rows),
        tag_pics_available=sum(1 for row in needing_tag_photo if (row.tag_pic_url or "").strip()),
        tag_pics_required=len(needing_tag_photo),
    )


def _summarize(sites: list[PMRDashboardSite]) -> PMRDashboardSummary:
    summary = PMRDashboardSummary(
        by_category={category: CategoryCompletion() for category in DASHBOARD_CATEGORIES},
    )
    for site in sites:
        for category, entry in site.categories.items():
            summary.by_category[category].total += entry.total
            summary.by_category[category].filled += entry.filled
        summary.total_rows += site.total_rows
        summary.total_filled += site.total_filled
        summary.total_duplicate_serials += site.duplicate_serials
        summary.total_duplicate_tags += site.duplicate_tags
        summary.total_tag_pics_available += site.tag_pics_available
        summary.total_tag_pics_required += site.tag_pics_required
        if site.status == STATUS_SUBMITTED:
            summary.submitted_sites += 1
        else:
            summary.pending_sites += 1
    summary.total_sites = len(sites)
    return summary


def dashboard(
    db: Session,
    start: date,
    end: date,
    *,
    city: str | None = None,
    nfo: str | None = None,
) -> PMRDashboard:
    """Per-site category completion for visits whose actual date falls in ``[start, end]``."""
    if start > end:
        raise ValueError("start date must be on or before end date")
    plans = []
    for plan in _plans_with_actual_date(db, city=city, nfo=nfo):
        actual = parse_pmr_date(plan.actual_date_text)
        if actual is not None and start <= actual <= end:
            plans.append(plan)
    rows_by_plan = _site_rows(db, plans) if plans else {}
    sites = [_dashboard_site(plan, rows_by_plan[plan.id]) for plan in plans]
    summary = _summarize(sites)
    logger.info(
        "PMR dashboard %s..%s: %s sites, %s/%s rows filled",
        start,
        end,
        summary.total_sites,
        summary.total_filled,
        summary.total_rows,
    )
    return PMRDashboard(start=start, end=end, city=city, nfo=nfo, summary=summary, sites=sites)
