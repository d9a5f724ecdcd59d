"""
bucketing.py — Week / month / year grouping keys
Derives the labels an expense is filed under at creation time. Every report
and retention query groups on these stored labels, so the output format here
must never change silently: bump BUCKETING_VERSION if it ever does.
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple

BUCKETING_VERSION = 1

# Fixed English names; the process locale must not leak into stored labels.
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class Buckets(NamedTuple):
    week_label: str
    month_name: str
    year: int


def to_utc(instant: datetime | date) -> datetime:
    """Return `instant` as a naive UTC datetime. Naive input is taken as UTC."""
    if isinstance(instant, datetime):
        if instant.tzinfo is not None:
            instant = instant.astimezone(timezone.utc).replace(tzinfo=None)
        return instant
    return datetime.combine(instant, time())


def week_number(day: date) -> tuple[int, int]:
    """ISO-8601 week of `day` as (week, week-owning year).

    The date is moved to the Thursday of its own Monday-based week; that
    Thursday's year owns the week, and its ordinal gives the week count.
    """
    thursday = day + timedelta(days=4 - day.isoweekday())
    year_start = date(thursday.year, 1, 1)
    week = math.ceil(((thursday - year_start).days + 1) / 7)
    return week, thursday.year


def compute_buckets(instant: datetime | date) -> Buckets:
    """Compute the grouping keys for `instant`.

    The year embedded in the week label is the ISO week-owning year, while
    `year` and `month_name` come from the calendar date itself. Around New
    Year the two years can differ (2024-12-31 is "Week 1 (2025)" with year
    2024); stored records depend on this, so it is kept as is.
    """
    day = to_utc(instant).date()
    week, week_year = week_number(day)
    return Buckets(
        week_label=f"Week {week} ({week_year})",
        month_name=MONTH_NAMES[day.month - 1],
        year=day.year,
    )
