from __future__ import annotations

import io
import logging
import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from site_tracker.core.config import settings
from site_tracker.models.entities import PMRActual
from site_tracker.schemas.pmr import PMRUploadPreview
from site_tracker.services.pmr_dates import format_pmr_date

logger = logging.getLogger(__name__)

# Upload header -> PMRActual attribute. "Autual" is the spelling used by the schedule export.
COLUMN_MAP: dict[str, str] = {
    "Site_ID_1": "site_id_canonical",
    "Site_ID": "site_id_bare",
    "City": "city",
    "Plan_Qtr.": "plan_quarter",
    "Domain": "domain",
    "P_(FO)": "fo_partner",
    "Site_Type": "site_type",
    "Planned_PMR_Date": "planned_date_text",
    "Autual_PMR_Date": "actual_date_text",
    "Status": "status",
    "FME Name": "fme_name",
}
REQUIRED_COLUMNS = ("Site_ID_1", "Site_ID", "Autual_PMR_Date", "FME Name")
ALLOWED_SUFFIXES = (".csv", ".xlsx", ".xls")
PREVIEW_ROWS = 10


def _cell_text(value: Any) -> str:
    if value is None or pd.isna(value):
        return ""
    if isinstance(value, (pd.Timestamp, datetime)):
        return format_pmr_date(value.date())
    if isinstance(value, date):
        return format_pmr_date(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def read_pmr_frame(content: bytes, filename: str | None) -> pd.DataFrame:
    suffix = Path(filename or "").suffix.lower()
    if suffix not in ALLOWED_SUFFIXES:
        raise ValueError("File must be a CSV or Excel workbook")
    if not content:
        raise ValueError("File is empty")
    buffer = io.BytesIO(content)
    try:
        if suffix == ".csv":
            frame = pd.read_csv(buffer, dtype=str, keep_default_na=False)
        else:
            frame = pd.read_excel(buffer)
    except (ValueError, zipfile.BadZipFile) as exc:
        raise ValueError(f"Could not read {suffix} file: {exc}") from exc
    frame.columns = [str(column).strip() for column in frame.columns]
    return frame


def extract_pmr_rows(frame: pd.DataFrame) -> list[dict[str, str]]:
    """Mapped columns of every row carrying at least one site id, keyed by upload header."""
    missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")
    present = [column for column in COLUMN_MAP if column in frame.columns]
    rows: list[dict[str, str]] = []
    for record in frame[present].to_dict(orient="records"):
        row = {column: _cell_text(record.get(column)) for column in present}
        if row.get("Site_ID") or row.get("Site_ID_1"):
            rows.append(row)
    if not rows:
        raise ValueError("File is empty or has no valid data rows")
    return rows


def build_preview(rows: list[dict[str, str]]) -> PMRUploadPreview:
    return PMRUploadPreview(
        total_rows=len(rows),
        sample_rows=rows[:PREVIEW_ROWS],
        columns=list(rows[0].keys()),
    )


def _to_entity(row: dict[str, str]) -> PMRActual:
    return PMRActual(**{attribute: (row.get(column) or None) for column, attribute in COLUMN_MAP.items()})


def replace_pmr_table(db: Session, rows: list[dict[str, str]]) -> int:
    """Swap the whole schedule for ``rows``; readers never see a half-written table."""
    batch_size = settings.pmr_insert_batch_size
    logger.info("PMR upload: replacing schedule with %s rows", len(rows))
    inserted = 0
    try:
        removed = db.query(PMRActual).delete(synchronize_session=False)
        logger.info("PMR upload: cleared %s existing rows", removed)
        for index in range(0, len(rows), batch_size):
            batch = rows[index:index + batch_size]
            db.add_all([_to_entity(row) for row in batch])
            db.flush()
            inserted += len(batch)
            logger.info("PMR upload: inserted %s/%s rows", inserted, len(rows))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("PMR upload failed after %s rows; schedule left unchanged", inserted)
        raise
    return inserted
