from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Iterable, Mapping

from site_tracker.schemas.trending import (
    EntityTrend,
    EntityWeek,
    NFOPerformance,
    TimingBreakdown,
    TrendReport,
    WeeklyTrend,
)
from site_tracker.services.pmr_dates import WeekBucketer, parse_pmr_date, week_label, week_range
from site_tracker.services.site_keys import SiteKey
from site_tracker.services.submissions import NOT_SUBMITTED, SubmissionState

UNKNOWN_ENTITY = "Unknown"


class SubmissionTiming(str, Enum):
    same_day = "same_day"
    next_day = "next_day"
    within_week = "within_week"
    late = "late"
    no_submission = "no_submission"


class PerformanceStatus(str, Enum):
    excellent = "excellent"
    good = "good"
    needs_improvement = "needs_improvement"
    problematic = "problematic"


class EntityType(str, Enum):
    area = "area"
    nfo = "nfo"


# (status, same-day threshold, cumulative within-week threshold), checked in order.
PERFORMANCE_THRESHOLDS: tuple[tuple[PerformanceStatus, float, float], ...] = (
    (PerformanceStatus.excellent, 80.0, 95.0),
    (PerformanceStatus.good, 60.0, 85.0),
    (PerformanceStatus.needs_improvement, 40.0, 70.0),
)


def days_between(planned: date, observed: date | datetime) -> int:
    """Whole days from planned-date midnight to ``observed``, floored."""
    if not isinstance(observed, datetime):
        observed = datetime.combine(observed, time.min)
    if observed.tzinfo is not None:
        observed = observed.astimezone(timezone.utc).replace(tzinfo=None)
    return (observed - datetime.combine(planned, time.min)) // timedelta(days=1)


def classify_timing(planned: date, state: SubmissionState) -> SubmissionTiming:
    if not state.is_submitted or state.latest_update is None:
        return SubmissionTiming.no_submission
    delay = days_between(planned, state.latest_update)
    if delay <= 0:
        return SubmissionTiming.same_day
    if delay == 1:
        return SubmissionTiming.next_day
    if delay <= 7:
        return SubmissionTiming.within_week
    return SubmissionTiming.late


def classify_performance(same_day_rate: float, within_week_rate: float) -> PerformanceStatus:
    for status, same_day_floor, within_week_floor in PERFORMANCE_THRESHOLDS:
        if same_day_rate >= same_day_floor or within_week_rate >= within_week_floor:
            return status
    return PerformanceStatus.problematic


def _rate(part: int, total: int) -> float:
    return (part / total) * 100 if total else 0.0


@dataclass
class TimingCounts:
    total: int = 0
    same_day: int = 0
    next_day: int = 0
    within_week: int = 0
    late: int = 0
    no_submission: int = 0

    def add(self, timing: SubmissionTiming) -> None:
        self.total += 1
        name = SubmissionTiming(timing).value
        setattr(self, name, getattr(self, name) + 1)

    def merge(self, other: "TimingCounts") -> None:
        for name in ("total", "same_day", "next_day", "within_week", "late", "no_submission"):
            setattr(self, name, getattr(self, name) + getattr(other, name))

    @property
    def within_week_cumulative(self) -> int:
        return self.same_day + self.next_day + self.within_week

    @property
    def same_day_rate(self) -> float:
        return _rate(self.same_day, self.total)

    @property
    def next_day_rate(self) -> float:
        return _rate(self.next_day, self.total)

    @property
    def within_week_only_rate(self) -> float:
        return _rate(self.within_week, self.total)

    @property
    def within_week_rate(self) -> float:
        return _rate(self.within_week_cumulative, self.total)

    def performance(self) -> PerformanceStatus:
        return classify_performance(self.same_day_rate, self.within_week_rate)

    def breakdown(self) -> dict:
        return {
            "total": self.total,
            "same_day": self.same_day,
            "next_day": self.next_day,
            "within_week": self.within_week,
            "late": self.late,
            "no_submission": self.no_submission,
            "within_week_cumulative": self.within_week_cumulative,
            "same_day_rate": round(self.same_day_rate, 2),
            "next_day_rate": round(self.next_day_rate, 2),
            "within_week_only_rate": round(self.within_week_only_rate, 2),
            "within_week_rate": round(self.within_week_rate, 2),
        }


@dataclass(frozen=True)
class PlannedRecord:
    site_key: SiteKey | None
    city: str | None
    fme_name: str | None
    actual_date_text: str | None

    @property
    def actual_date(self) -> date | None:
        return parse_pmr_date(self.actual_date_text)

    @property
    def area_name(self) -> str:
        return (self.city or "").strip() or UNKNOWN_ENTITY

    @property
    def nfo_name(self) -> str:
        return (self.fme_name or "").strip() or UNKNOWN_ENTITY


@dataclass
class _NFOTally:
    city: str
    counts: TimingCounts = field(default_factory=TimingCounts)


class TrendAggregator:
    """
    Folds planned records into week, area and NFO tallies.

    One instance covers one request; nothing is shared between runs.
    """

    def __init__(self, bucketer: WeekBucketer, states: Mapping[SiteKey, SubmissionState]) -> None:
        self.bucketer = bucketer
        self.states = states
        self.summary = TimingCounts()
        self.weeks: dict[tuple[int, int], TimingCounts] = defaultdict(TimingCounts)
        self.entity_weeks: dict[tuple[EntityType, str], dict[tuple[int, int], TimingCounts]] = defaultdict(
            lambda: defaultdict(TimingCounts)
        )
        self.nfo_tallies: dict[str, _NFOTally] = {}

    def add(self, record: PlannedRecord) -> SubmissionTiming | None:
        planned = record.actual_date
        if planned is None:
            return None
        bucket = self.bucketer.bucket_for(planned)
        if bucket is None:
            return None

        state = self.states.get(record.site_key, NOT_SUBMITTED) if record.site_key else NOT_SUBMITTED
        timing = classify_timing(planned, state)

        self.summary.add(timing)
        self.weeks[bucket].add(timing)
        self.entity_weeks[(EntityType.area, record.area_name)][bucket].add(timing)
        self.entity_weeks[(EntityType.nfo, record.nfo_name)][bucket].add(timing)
        tally = self.nfo_tallies.setdefault(record.nfo_name, _NFOTally(city=record.area_name))
        tally.counts.add(timing)
        return timing

    def extend(self, records: Iterable[PlannedRecord]) -> None:
        for record in records:
            self.add(record)

    def weekly_trends(self) -> list[WeeklyTrend]:
        trends: list[WeeklyTrend] = []
        for (year, week_number), counts in sorted(self.weeks.items()):
            span = week_range(year, week_number)
            trends.append(
                WeeklyTrend(
                    year=year,
                    week_number=week_number,
                    week_label=week_label(week_number),
                    start_date=span.start,
                    end_date=span.end,
                    **counts.breakdown(),
                )
            )
        return trends

    def entity_trends(self, entity_type: EntityType) -> list[EntityTrend]:
        trends: list[EntityTrend] = []
        for (kind, name), weeks in self.entity_weeks.items():
            if kind is not entity_type:
                continue
            totals = TimingCounts()
            entity_weeks: list[EntityWeek] = []
            for (year, week_number), counts in sorted(weeks.items()):
                totals.merge(counts)
                entity_weeks.append(
                    EntityWeek(
                        year=year,
                        week_number=week_number,
                        week_label=week_label(week_number),
                        **counts.breakdown(),
                    )
                )
            trends.append(
                EntityTrend(
                    entity_name=name,
                    entity_type=entity_type.value,
                    weeks=entity_weeks,
                    totals=TimingBreakdown(**totals.breakdown()),
                    performance_status=totals.performance().value,
                )
            )
        trends.sort(key=lambda trend: (-trend.totals.total, trend.entity_name))
        return trends

    def nfo_performance(self) -> list[NFOPerformance]:
        rows = [
            NFOPerformance(fme_name=name, city=tally.city, **tally.counts.breakdown())
            for name, tally in self.nfo_tallies.items()
        ]
        rows.sort(key=lambda row: (-row.total, row.fme_name))
        return rows

    def report(
        self,
        *,
        start: date,
        end: date,
        city: str | None,
        nfo: str | None,
        submission_policy: str,
    ) -> TrendReport:
        return TrendReport(
            start=start,
            end=end,
            city=city,
            nfo=nfo,
            include_pre_week=self.bucketer.include_pre_week,
            submission_policy=submission_policy,
            summary=TimingBreakdown(**self.summary.breakdown()),
            weeks=self.weekly_trends(),
            areas=self.entity_trends(EntityType.area),
            nfos=self.entity_trends(EntityType.nfo),
            nfo_performance=self.nfo_performance(),
        )
