from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel


class PMRUploadPreview(BaseModel):
    preview: bool = True
    total_rows: int
    sample_rows: list[dict[str, str]]
    columns: list[str]


class PMRUploadResult(BaseModel):
    success: bool = True
    message: str
    row_count: int


class PMRSiteStatus(BaseModel):
    site_id: str
    planned_date: str | None = None
    actual_date: str | None = None
    pmr_status: str | None = None
    status: str
    submission_count: int
    total_rows: int
    last_submission_date: datetime | None = None
    fme_name: str | None = None
    site_type: str | None = None
    city: str | None = None
    duplicate_serials: int
    duplicate_tags: int
    tag_pics_available: int
    tag_pics_required: int


class PMRDailyStatus(BaseModel):
    day: date
    total: int
    submitted: int
    percentage: int
    rows: list[PMRSiteStatus]


DASHBOARD_CATEGORIES = (
    "Enclosure-Active",
    "Enclosure-Passive",
    "RAN-Active",
    "RAN-Passive",
    "MW-Active",
    "MW-Passive",
)


class CategoryCompletion(BaseModel):
    total: int = 0
    filled: int = 0


class PMRDashboardSite(BaseModel):
    site_id: str
    actual_date: str | None = None
    city: str | None = None
    fme_name: str | None = None
    categories: dict[str, CategoryCompletion]
    total_rows: int
    total_filled: int
    completion_percentage: float
    status: str
    duplicate_serials: int
    duplicate_tags: int
    tag_pics_available: int
    tag_pics_required: int


class PMRDashboardSummary(BaseModel):
    total_sites: int = 0
    submitted_sites: int = 0
    pending_sites: int = 0
    total_rows: int = 0
    total_filled: int = 0
    by_category: dict[str, CategoryCompletion]
    total_duplicate_serials: int = 0
    total_duplicate_tags: int = 0
    total_tag_pics_available: int = 0
    total_tag_pics_required: int = 0


class PMRDashboard(BaseModel):
    start: date
    end: date
    city: str | None = None
    nfo: str | None = None
    summary: PMRDashboardSummary
    sites: list[PMRDashboardSite]
