from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

logger = logging.getLogger(__name__)

MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_MONTH_LOOKUP = {name.lower(): index for index, name in enumerate(MONTH_ABBREVIATIONS, start=1)}

PRE_WEEK = 0
PRE_WEEK_LABEL = "Pre-Week"


def parse_pmr_date(value: str | None) -> date | None:
    """
    Parse the schedule's compact ``D-Mon-YY`` / ``DD-Mon-YY`` date text.

    Returns None for anything that is not exactly three hyphen-separated tokens
    with a numeric day, a known month abbreviation and a one or two digit year.
    """
    if not value:
        return None
    parts = value.strip().split("-")
    if len(parts) != 3:
        logger.debug("Ignoring malformed PMR date %r", value)
        return None
    day_text, month_text, year_text = (part.strip() for part in parts)
    month = _MONTH_LOOKUP.get(month_text.lower())
    if not day_text.isdigit() or not year_text.isdigit() or len(year_text) > 2 or month is None:
        logger.debug("Ignoring malformed PMR date %r", value)
        return None
    try:
        return date(2000 + int(year_text), month, int(day_text))
    except ValueError:
        logger.debug("Ignoring out-of-range PMR date %r", value)
        return None


def format_pmr_date(value: date) -> str:
    return f"{value.day:02d}-{MONTH_ABBREVIATIONS[value.month - 1]}-{value.year % 100:02d}"


def first_monday(year: int) -> date:
    """First Monday on or after Jan 1; a Monday Jan 1 is its own first Monday rather than Jan 8."""
    jan_first = date(year, 1, 1)
    offset = jan_first.isoweekday() % 7  # Sunday = 0 .. Saturday = 6
    if offset == 1:
        return jan_first
    return jan_first + timedelta(days=1 if offset == 0 else 8 - offset)


def week_number_of(value: date) -> int:
    """Monday-anchored week number; dates before the first Monday fall in week 0."""
    start = first_monday(value.year)
    if value < start:
        return PRE_WEEK
    return (value - start).days // 7 + 1


@dataclass(frozen=True)
class WeekRange:
    start: date
    end: date


def week_range(year: int, week_number: int) -> WeekRange:
    start_monday = first_monday(year)
    if week_number == PRE_WEEK:
        return WeekRange(start=date(year, 1, 1), end=start_monday - timedelta(days=1))
    if week_number < 0:
        raise ValueError("week_number must be zero or positive")
    start = start_monday + timedelta(days=7 * (week_number - 1))
    return WeekRange(start=start, end=start + timedelta(days=6))


def week_label(week_number: int) -> str:
    return PRE_WEEK_LABEL if week_number == PRE_WEEK else f"Week {week_number}"


@dataclass(frozen=True)
class WeekBucketer:
    """Maps dates to ``(year, week)`` buckets, optionally dropping the pre-week."""

    include_pre_week: bool = True

    def bucket_for(self, value: date) -> tuple[int, int] | None:
        week_number = week_number_of(value)
        if week_number == PRE_WEEK and not self.include_pre_week:
            return None
        return value.year, week_number
