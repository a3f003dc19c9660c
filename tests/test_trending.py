from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from site_tracker.services.pmr_dates import (
    WeekBucketer,
    first_monday,
    format_pmr_date,
    parse_pmr_date,
    week_label,
    week_number_of,
    week_range,
)
from site_tracker.services.site_keys import lookup_forms, normalize_site_key, site_key_for_record
from site_tracker.services.submissions import (
    NOT_SUBMITTED,
    InventoryObservation,
    SubmissionPolicy,
    SubmissionResolver,
    SubmissionState,
)
from site_tracker.services.trending import (
    EntityType,
    PerformanceStatus,
    PlannedRecord,
    SubmissionTiming,
    TimingCounts,
    TrendAggregator,
    classify_performance,
    classify_timing,
    days_between,
)

PLANNED = date(2026, 1, 15)


def _observation(site: str, updated_at: datetime | None, *, filled: bool = False, source: str | None = None):
    return InventoryObservation(
        site_key=normalize_site_key(site),
        updated_at=updated_at,
        tag_category="Tag available" if filled else None,
        photo_category="Photos available" if filled else None,
        sheet_source=source,
    )


def test_parse_pmr_date_accepts_short_forms() -> None:
    assert parse_pmr_date("15-Jan-26") == date(2026, 1, 15)
    assert parse_pmr_date("5-jan-26") == date(2026, 1, 5)
    assert parse_pmr_date(" 07-DEC-25 ") == date(2025, 12, 7)


@pytest.mark.parametrize(
    "text",
    [None, "", "2026-01-15", "15-Foo-26", "31-Feb-26", "15-Jan-2026", "15/Jan/26", "x-Jan-26"],
)
def test_parse_pmr_date_rejects_malformed_text(text: str | None) -> None:
    assert parse_pmr_date(text) is None


def test_format_then_parse_is_stable() -> None:
    for text in ("5-Jan-26", "15-dec-25", "29-Feb-24"):
        parsed = parse_pmr_date(text)
        assert format_pmr_date(parsed) in {"05-Jan-26", "15-Dec-25", "29-Feb-24"}
        assert parse_pmr_date(format_pmr_date(parsed)) == parsed


def test_first_monday_of_year() -> None:
    assert first_monday(2026) == date(2026, 1, 5)
    # 2024 starts on a Monday.
    assert first_monday(2024) == date(2024, 1, 1)
    assert first_monday(2023) == date(2023, 1, 2)


def test_week_numbers_around_first_monday() -> None:
    assert week_number_of(date(2026, 1, 1)) == 0
    assert week_number_of(date(2026, 1, 4)) == 0
    assert week_number_of(date(2026, 1, 5)) == 1
    assert week_number_of(date(2026, 1, 11)) == 1
    assert week_number_of(PLANNED) == 2
    assert week_label(0) == "Pre-Week"
    assert week_label(2) == "Week 2"


def test_every_day_falls_inside_its_week_range() -> None:
    day = date(2026, 1, 1)
    while day.year == 2026:
        number = week_number_of(day)
        span = week_range(day.year, number)
        assert span.start <= day <= span.end
        if number >= 1:
            assert span.start.weekday() == 0
            assert span.end - span.start == timedelta(days=6)
        day += timedelta(days=1)


def test_week_range_rejects_negative_week() -> None:
    with pytest.raises(ValueError):
        week_range(2026, -1)


def test_bucketer_can_drop_pre_week() -> None:
    assert WeekBucketer(include_pre_week=True).bucket_for(date(2026, 1, 2)) == (2026, 0)
    assert WeekBucketer(include_pre_week=False).bucket_for(date(2026, 1, 2)) is None
    assert WeekBucketer(include_pre_week=False).bucket_for(PLANNED) == (2026, 2)


def test_site_key_forms_resolve_to_same_key() -> None:
    prefixed = normalize_site_key("W2470")
    bare = normalize_site_key("2470")
    assert prefixed == bare
    assert prefixed.canonical == "W2470"
    assert normalize_site_key("w2470").bare == "2470"
    assert normalize_site_key("   ") is None
    assert site_key_for_record(None, "2470") == prefixed
    assert lookup_forms([prefixed, bare]) == ["2470", "W2470"]


def test_completion_policy_requires_more_than_threshold() -> None:
    resolver = SubmissionResolver(SubmissionPolicy.completion_ratio, 10.0)
    base = datetime(2026, 1, 15, 8)
    rows = [_observation("W2470", base + timedelta(hours=index)) for index in range(10)]

    one_filled = [_observation("W2470", base, filled=True)] + rows[1:]
    assert resolver.resolve(one_filled) == NOT_SUBMITTED

    two_filled = [
        _observation("W2470", base, filled=True),
        _observation("2470", base + timedelta(days=2), filled=True),
    ] + rows[2:]
    state = resolver.resolve(two_filled)
    assert state.is_submitted
    assert state.latest_update == base + timedelta(days=2)


def test_resolve_all_merges_both_spellings() -> None:
    resolver = SubmissionResolver()
    states = resolver.resolve_all(
        [
            _observation("W2470", datetime(2026, 1, 15, 9), filled=True),
            _observation("2470", datetime(2026, 1, 16, 9), filled=True),
        ]
    )
    assert list(states) == [normalize_site_key("2470")]
    assert states[normalize_site_key("W2470")].latest_update == datetime(2026, 1, 16, 9)


def test_manual_marker_first_uses_first_manual_row() -> None:
    rows = [
        _observation("W2470", datetime(2026, 1, 20), source="Imported"),
        _observation("W2470", datetime(2026, 1, 16), source="Manual_added"),
        _observation("W2470", datetime(2026, 1, 18), source="manual_edited"),
    ]
    first = SubmissionResolver(SubmissionPolicy.manual_marker_first).resolve(rows)
    latest = SubmissionResolver(SubmissionPolicy.manual_marker_latest).resolve(rows)
    assert first.latest_update == datetime(2026, 1, 16)
    assert latest.latest_update == datetime(2026, 1, 18)
    assert SubmissionResolver(SubmissionPolicy.manual_marker_first).resolve(rows[:1]) == NOT_SUBMITTED


def test_submission_state_rejects_timestamp_without_submission() -> None:
    with pytest.raises(ValueError):
        SubmissionState(is_submitted=False, latest_update=datetime(2026, 1, 15))


@pytest.mark.parametrize(
    ("observed", "expected"),
    [
        (datetime(2026, 1, 14, 22), SubmissionTiming.same_day),
        (datetime(2026, 1, 15, 18), SubmissionTiming.same_day),
        (datetime(2026, 1, 16, 0, 1), SubmissionTiming.next_day),
        (datetime(2026, 1, 20, 12), SubmissionTiming.within_week),
        (datetime(2026, 1, 22, 23), SubmissionTiming.within_week),
        (datetime(2026, 1, 23, 0), SubmissionTiming.late),
        (datetime(2026, 1, 25, 9), SubmissionTiming.late),
    ],
)
def test_classify_timing(observed: datetime, expected: SubmissionTiming) -> None:
    state = SubmissionState(is_submitted=True, latest_update=observed)
    assert classify_timing(PLANNED, state) is expected


def test_classify_timing_without_submission() -> None:
    assert classify_timing(PLANNED, NOT_SUBMITTED) is SubmissionTiming.no_submission
    assert classify_timing(PLANNED, SubmissionState(is_submitted=True)) is SubmissionTiming.no_submission


def test_days_between_handles_aware_timestamps() -> None:
    aware = datetime(2026, 1, 16, 1, tzinfo=timezone.utc)
    assert days_between(PLANNED, aware) == 1
    assert days_between(PLANNED, date(2026, 1, 15)) == 0


@pytest.mark.parametrize(
    ("same_day", "within_week", "expected"),
    [
        (85.0, 90.0, PerformanceStatus.excellent),
        (80.0, 0.0, PerformanceStatus.excellent),
        (10.0, 95.0, PerformanceStatus.excellent),
        (50.0, 90.0, PerformanceStatus.good),
        (10.0, 72.0, PerformanceStatus.needs_improvement),
        (39.9, 69.9, PerformanceStatus.problematic),
    ],
)
def test_classify_performance(same_day: float, within_week: float, expected: PerformanceStatus) -> None:
    assert classify_performance(same_day, within_week) is expected


def test_timing_counts_rates_are_bounded_and_cumulative() -> None:
    counts = TimingCounts()
    for timing in (
        SubmissionTiming.same_day,
        SubmissionTiming.next_day,
        SubmissionTiming.within_week,
        SubmissionTiming.late,
        SubmissionTiming.no_submission,
        SubmissionTiming.same_day,
    ):
        counts.add(timing)
    assert counts.total == 6
    assert counts.same_day + counts.next_day + counts.within_week + counts.late + counts.no_submission == 6
    assert counts.within_week_cumulative == 4
    assert 0 <= counts.same_day_rate <= counts.within_week_rate <= 100
    breakdown = counts.breakdown()
    assert breakdown["same_day_rate"] == 33.33
    assert breakdown["within_week_rate"] == 66.67
    assert TimingCounts().breakdown()["same_day_rate"] == 0.0


def _sample_records() -> list[PlannedRecord]:
    return [
        PlannedRecord(site_key_for_record("W2470", "2470"), "Riyadh", "Ali", "15-Jan-26"),
        PlannedRecord(site_key_for_record(None, "2471"), "Riyadh", "Omar", "16-Jan-26"),
        PlannedRecord(site_key_for_record("W2472", None), "Jeddah", "Ali", "2-Jan-26"),
        PlannedRecord(site_key_for_record("W2473", None), "Jeddah", None, "not a date"),
    ]


def _sample_states() -> dict:
    return {
        normalize_site_key("W2470"): SubmissionState(is_submitted=True, latest_update=datetime(2026, 1, 15, 10)),
        normalize_site_key("2471"): SubmissionState(is_submitted=True, latest_update=datetime(2026, 1, 25, 9)),
    }


def test_aggregator_builds_sorted_report() -> None:
    aggregator = TrendAggregator(WeekBucketer(include_pre_week=True), _sample_states())
    aggregator.extend(_sample_records())
    report = aggregator.report(
        start=date(2026, 1, 1),
        end=date(2026, 1, 31),
        city=None,
        nfo=None,
        submission_policy=SubmissionPolicy.completion_ratio.value,
    )

    assert report.summary.total == 3
    assert report.summary.same_day == 1
    assert report.summary.late == 1
    assert report.summary.no_submission == 1
    assert [(week.year, week.week_number) for week in report.weeks] == [(2026, 0), (2026, 2)]
    assert [week.week_label for week in report.weeks] == ["Pre-Week", "Week 2"]
    assert report.weeks[1].start_date == date(2026, 1, 12)
    assert sum(week.total for week in report.weeks) == report.summary.total

    assert [area.entity_name for area in report.areas] == ["Riyadh", "Jeddah"]
    assert [nfo.entity_name for nfo in report.nfos] == ["Ali", "Omar"]
    assert report.nfos[0].totals.total == 2
    assert report.nfos[1].performance_status == PerformanceStatus.problematic.value
    ali = report.nfo_performance[0]
    assert (ali.fme_name, ali.city, ali.total) == ("Ali", "Riyadh", 2)


def test_aggregator_excludes_pre_week_when_disabled() -> None:
    aggregator = TrendAggregator(WeekBucketer(include_pre_week=False), _sample_states())
    aggregator.extend(_sample_records())
    assert aggregator.summary.total == 2
    assert [week.week_number for week in aggregator.weekly_trends()] == [2]
    assert [area.entity_name for area in aggregator.entity_trends(EntityType.area)] == ["Riyadh"]


def test_aggregator_with_no_records() -> None:
    report = TrendAggregator(WeekBucketer(), {}).report(
        start=date(2026, 1, 1),
        end=date(2026, 1, 7),
        city="Riyadh",
        nfo=None,
        submission_policy=SubmissionPolicy.completion_ratio.value,
    )
    assert report.summary.total == 0
    assert report.summary.within_week_rate == 0.0
    assert report.weeks == []
    assert report.areas == []
    assert report.nfos == []
    assert report.nfo_performance == []
