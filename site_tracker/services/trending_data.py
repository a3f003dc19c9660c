from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from site_tracker.core.config import settings
from site_tracker.models.entities import MainInventory, PMRActual
from site_tracker.schemas.trending import TrendFilters, TrendReport
from site_tracker.services.pmr_dates import WeekBucketer
from site_tracker.services.site_keys import SiteKey, lookup_forms, normalize_site_key, site_key_for_record
from site_tracker.services.submissions import InventoryObservation, SubmissionPolicy, SubmissionResolver
from site_tracker.services.trending import PlannedRecord, TrendAggregator

logger = logging.getLogger(__name__)

# sqlite messages and PostgreSQL SQLSTATEs for undefined column / table.
_SCHEMA_ERROR_MARKERS = ("no such column", "no such table", "undefinedcolumn", "undefinedtable")
_SCHEMA_ERROR_CODES = {"42703", "42P01"}


class TrendingFetchError(Exception):
    """A backing-store query failed; the whole aggregation is abandoned."""


class SchemaMismatchError(TrendingFetchError):
    """The store is missing a column or table the aggregation reads."""


def wrap_fetch_error(exc: SQLAlchemyError, what: str) -> TrendingFetchError:
    original = getattr(exc, "orig", None)
    code = getattr(original, "pgcode", None) or getattr(original, "sqlstate", None)
    message = str(original or exc)
    if code in _SCHEMA_ERROR_CODES or any(marker in message.lower() for marker in _SCHEMA_ERROR_MARKERS):
        return SchemaMismatchError(f"Schema mismatch while fetching {what}: {message}")
    return TrendingFetchError(f"Failed to fetch {what}: {message}")


def fetch_planned_records(
    db: Session,
    start: date,
    end: date,
    *,
    city: str | None = None,
    nfo: str | None = None,
) -> list[PlannedRecord]:
    """Planned records whose actual date parses into ``[start, end]``."""
    query = db.query(
        PMRActual.site_id_canonical,
        PMRActual.site_id_bare,
        PMRActual.city,
        PMRActual.fme_name,
        PMRActual.actual_date_text,
    ).filter(PMRActual.actual_date_text.isnot(None))
    if city:
        query = query.filter(PMRActual.city == city)
    if nfo:
        query = query.filter(PMRActual.fme_name == nfo)
    try:
        rows = query.order_by(PMRActual.id).all()
    except SQLAlchemyError as exc:
        logger.exception("Planned record query failed")
        raise wrap_fetch_error(exc, "planned records") from exc

    records: list[PlannedRecord] = []
    for row in rows:
        record = PlannedRecord(
            site_key=site_key_for_record(row.site_id_canonical, row.site_id_bare),
            city=row.city,
            fme_name=row.fme_name,
            actual_date_text=row.actual_date_text,
        )
        actual = record.actual_date
        if actual is None or actual < start or actual > end:
            continue
        records.append(record)
    return records


def _batched(values: list[str], size: int) -> Iterable[list[str]]:
    for index in range(0, len(values), size):
        yield values[index:index + size]


def fetch_inventory_observations(db: Session, site_keys: Iterable[SiteKey]) -> list[InventoryObservation]:
    """
    Inventory rows for ``site_keys`` under either spelling.

    Site ids go out in batches of ``INVENTORY_BATCH_SIZE`` and each batch is
    paged by ``INVENTORY_PAGE_SIZE``; pages are concatenated in fetch order.
    """
    forms = lookup_forms(site_keys)
    batch_size = settings.inventory_batch_size
    page_size = settings.inventory_page_size
    observations: list[InventoryObservation] = []
    for batch in _batched(forms, batch_size):
        offset = 0
        while True:
            try:
                page = (
                    db.query(
                        MainInventory.site_id,
                        MainInventory.updated_at,
                        MainInventory.tag_category,
                        MainInventory.photo_category,
                        MainInventory.sheet_source,
                    )
                    .filter(MainInventory.site_id.in_(batch))
                    .order_by(MainInventory.created_at, MainInventory.id)
                    .offset(offset)
                    .limit(page_size)
                    .all()
                )
            except SQLAlchemyError as exc:
                logger.exception("Inventory page query failed at offset %s", offset)
                raise wrap_fetch_error(exc, "inventory rows") from exc
            for row in page:
                key = normalize_site_key(row.site_id)
                if key is None:
                    continue
                observations.append(
                    InventoryObservation(
                        site_key=key,
                        updated_at=row.updated_at,
                        tag_category=row.tag_category,
                        photo_category=row.photo_category,
                        sheet_source=row.sheet_source,
                    )
                )
            if len(page) < page_size:
                break
            offset += page_size
    return observations


def build_trend_report(
    db: Session,
    start: date,
    end: date,
    *,
    city: str | None = None,
    nfo: str | None = None,
    include_pre_week: bool | None = None,
    policy: SubmissionPolicy | str | None = None,
) -> TrendReport:
    if start > end:
        raise ValueError("start date must be on or before end date")
    include_pre_week = settings.trending_include_pre_week if include_pre_week is None else include_pre_week
    resolved_policy = SubmissionPolicy(policy or settings.trending_submission_policy)

    records = fetch_planned_records(db, start, end, city=city, nfo=nfo)
    site_keys = {record.site_key for record in records if record.site_key is not None}
    observations = fetch_inventory_observations(db, site_keys) if site_keys else []
    resolver = SubmissionResolver(resolved_policy, settings.trending_completion_threshold)
    states = resolver.resolve_all(observations)

    aggregator = TrendAggregator(WeekBucketer(include_pre_week=include_pre_week), states)
    aggregator.extend(records)
    logger.info(
        "Trend report %s..%s: %s planned records, %s inventory rows, %s classified",
        start,
        end,
        len(records),
        len(observations),
        aggregator.summary.total,
    )
    return aggregator.report(start=start, end=end, city=city, nfo=nfo, submission_policy=resolved_policy.value)


def list_filter_options(db: Session) -> TrendFilters:
    try:
        rows = (
            db.query(PMRActual.city, PMRActual.fme_name)
            .filter(PMRActual.city.isnot(None), PMRActual.fme_name.isnot(None))
            .distinct()
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Filter option query failed")
        raise wrap_fetch_error(exc, "filter options") from exc

    mapping: dict[str, set[str]] = defaultdict(set)
    for city, fme_name in rows:
        mapping[city].add(fme_name)
    return TrendFilters(
        cities=sorted(mapping),
        fme_names=sorted({name for names in mapping.values() for name in names}),
        city_fme_map={city: sorted(names) for city, names in sorted(mapping.items())},
    )
