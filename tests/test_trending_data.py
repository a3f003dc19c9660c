from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session, sessionmaker

from site_tracker.core.config import settings
from site_tracker.core.database import Base
from site_tracker.models.entities import MainInventory, PMRActual
from site_tracker.services import trending_data
from site_tracker.services.site_keys import normalize_site_key
from site_tracker.services.trending_data import (
    SchemaMismatchError,
    TrendingFetchError,
    build_trend_report,
    fetch_inventory_observations,
    wrap_fetch_error,
)

SUBMITTED_AT = datetime(2026, 1, 20, 9, 30)


@pytest.fixture()
def db() -> Session:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def tiny_pages(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "inventory_page_size", 1)
    monkeypatch.setattr(settings, "inventory_batch_size", 1)


def _inventory(site_id: str, *, filled: bool) -> MainInventory:
    return MainInventory(
        site_id=site_id,
        site_id_canonical=f"W{site_id.lstrip('W')}",
        category="RAN-Active",
        tag_category="Tag available" if filled else None,
        photo_category="Photos available" if filled else None,
        updated_at=SUBMITTED_AT,
    )


def _seed_site(db: Session) -> None:
    db.add_all(
        [
            _inventory("2470", filled=True),
            _inventory("W2470", filled=True),
            _inventory("W2470", filled=False),
            _inventory("W2471", filled=False),
            PMRActual(site_id_bare="2470", city="Riyadh", fme_name="Ali", actual_date_text="15-Jan-26"),
        ]
    )
    db.commit()


def test_inventory_fetch_walks_every_page_and_batch(db: Session, tiny_pages: None) -> None:
    _seed_site(db)
    key = normalize_site_key("2470")

    observations = fetch_inventory_observations(db, {key})

    assert len(observations) == 3
    assert {observation.site_key for observation in observations} == {key}
    assert sum(1 for observation in observations if observation.is_filled) == 2


def test_report_joins_bare_plan_to_both_inventory_spellings(db: Session, tiny_pages: None) -> None:
    _seed_site(db)

    report = build_trend_report(db, date(2026, 1, 1), date(2026, 1, 31))

    assert report.summary.total == 1
    assert report.summary.within_week == 1
    assert report.summary.no_submission == 0


def test_missing_column_is_a_schema_mismatch(db: Session) -> None:
    _seed_site(db)
    db.execute(text("ALTER TABLE main_inventory DROP COLUMN photo_category"))
    db.commit()

    with pytest.raises(SchemaMismatchError, match="inventory rows"):
        build_trend_report(db, date(2026, 1, 1), date(2026, 1, 31))


def test_missing_table_is_a_schema_mismatch(db: Session) -> None:
    db.execute(text("DROP TABLE pmr_actual"))
    db.commit()

    with pytest.raises(SchemaMismatchError, match="filter options"):
        trending_data.list_filter_options(db)


class _UndefinedColumn(Exception):
    pgcode = "42703"


def test_wrap_fetch_error_classifies_failures() -> None:
    missing = wrap_fetch_error(OperationalError("SELECT", {}, Exception("no such column: x")), "inventory rows")
    assert isinstance(missing, SchemaMismatchError)

    postgres = wrap_fetch_error(ProgrammingError("SELECT", {}, _UndefinedColumn("column does not exist")), "rows")
    assert isinstance(postgres, SchemaMismatchError)

    locked = wrap_fetch_error(OperationalError("SELECT", {}, Exception("database is locked")), "planned records")
    assert isinstance(locked, TrendingFetchError)
    assert not isinstance(locked, SchemaMismatchError)
    assert str(locked) == "Failed to fetch planned records: database is locked"
