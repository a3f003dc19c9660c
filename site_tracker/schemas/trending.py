from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class TimingBreakdown(BaseModel):
    """
    Submission-timing counts for one bucket.

    ``within_week`` counts the exclusive 2-7 day band; ``within_week_cumulative``
    and ``within_week_rate`` include same-day and next-day submissions as well.
    """

    total: int = 0
    same_day: int = 0
    next_day: int = 0
    within_week: int = 0
    late: int = 0
    no_submission: int = 0
    within_week_cumulative: int = 0
    same_day_rate: float = 0.0
    next_day_rate: float = 0.0
    within_week_only_rate: float = 0.0
    within_week_rate: float = 0.0


class WeeklyTrend(TimingBreakdown):
    year: int
    week_number: int
    week_label: str
    start_date: date
    end_date: date


class EntityWeek(TimingBreakdown):
    year: int
    week_number: int
    week_label: str


class EntityTrend(BaseModel):
    entity_name: str
    entity_type: str
    weeks: list[EntityWeek]
    totals: TimingBreakdown
    performance_status: str


class NFOPerformance(TimingBreakdown):
    fme_name: str
    city: str


class TrendReport(BaseModel):
    start: date
    end: date
    city: str | None = None
    nfo: str | None = None
    include_pre_week: bool
    submission_policy: str
    summary: TimingBreakdown
    weeks: list[WeeklyTrend]
    areas: list[EntityTrend]
    nfos: list[EntityTrend]
    nfo_performance: list[NFOPerformance]


class TrendFilters(BaseModel):
    cities: list[str]
    fme_names: list[str]
    city_fme_map: dict[str, list[str]]
