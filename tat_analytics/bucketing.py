# tat_sentinel/tat_analytics/bucketing.py
# PERIOD BUCKETING - GRANULARITY SELECTION, TREND BUCKETS AND FIXED WINDOWS

"""
Builds the time intervals that samples are grouped into.

All calendar arithmetic (start of day, Monday/Sunday weeks, month bounds) is
done on naive wall-clock ``pd.Timestamp`` values in the reporting timezone
and converted back to epoch-millisecond instants at the edges. Buckets are
closed intervals: ``end`` is the next bucket's ``start`` minus one
millisecond, so a bucket list is ordered, gapless and non-overlapping.
"""

import bisect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from tat_processing import (INVALID_INSTANT, MAX_INSTANT, MIN_INSTANT, from_wall_clock,
                            is_valid_instant, to_epoch_ms, to_wall_clock)

logger = logging.getLogger(__name__)

InstantRange = Tuple[int, int]

MONDAY, SUNDAY = 0, 6
_DAY = pd.Timedelta(days=1)
_WEEK = pd.Timedelta(days=7)


class Granularity(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY_WEEKLY = "monthly-weekly"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def chart_title(self) -> str:
        return {
            Granularity.HOURLY: "Hourly TAT Breakdown",
            Granularity.DAILY: "Daily TAT Breakdown",
            Granularity.MONTHLY_WEEKLY: "Weekly TAT Breakdown (This Month)",
            Granularity.WEEKLY: "Weekly TAT Breakdown",
            Granularity.MONTHLY: "Monthly TAT Breakdown",
        }[self]


@dataclass(frozen=True)
class TimeBucket:
    start: int
    end: int
    label: str
    key: str

    def contains(self, instant_ms: int) -> bool:
        return self.start <= instant_ms <= self.end


# --- Instant coercion ---

def coerce_instant(value: Any, tz: Optional[str] = None) -> int:
    """Accepts an epoch-millisecond int or any timestamp representation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value if MIN_INSTANT <= value <= MAX_INSTANT else INVALID_INSTANT
    return to_epoch_ms(value, tz)


def normalize_range(date_range: Optional[Sequence[Any]], tz: Optional[str] = None) -> Optional[InstantRange]:
    """
    Converts a ``(start, end)`` pair into instants.

    Returns None ("all time") when the range is absent, either endpoint is
    missing, or either endpoint cannot be decoded.
    """
    if not date_range:
        return None
    try:
        start_raw, end_raw = date_range
    except (TypeError, ValueError):
        logger.warning(f"Ignoring malformed date range: {date_range!r}")
        return None
    start, end = coerce_instant(start_raw, tz), coerce_instant(end_raw, tz)
    if not is_valid_instant(start) or not is_valid_instant(end):
        return None
    return start, end


# --- Wall-clock calendar helpers ---

def _start_of_day(wall: pd.Timestamp) -> pd.Timestamp:
    return wall.normalize()


def _start_of_week(wall: pd.Timestamp, week_start: int) -> pd.Timestamp:
    day = wall.normalize()
    return day - pd.Timedelta(days=(day.weekday() - week_start) % 7)


def _start_of_month(wall: pd.Timestamp) -> pd.Timestamp:
    return pd.Timestamp(year=wall.year, month=wall.month, day=1)


def _start_of_next_month(wall: pd.Timestamp) -> pd.Timestamp:
    return _start_of_month(wall) + pd.offsets.MonthBegin(1)


def _start_of_quarter(wall: pd.Timestamp) -> pd.Timestamp:
    return pd.Timestamp(year=wall.year, month=((wall.month - 1) // 3) * 3 + 1, day=1)


def _whole_days(start: pd.Timestamp, end: pd.Timestamp) -> int:
    return int((end - start) / _DAY)


def _whole_months(start: pd.Timestamp, end: pd.Timestamp) -> int:
    months = (end.year - start.year) * 12 + (end.month - start.month)
    anchor = start + pd.DateOffset(months=months)
    if months > 0 and anchor > end:
        months -= 1
    elif months < 0 and anchor < end:
        months += 1
    return months


def _window(first: pd.Timestamp, stop: pd.Timestamp, label: str, key: str, tz: Optional[str]) -> TimeBucket:
    return TimeBucket(from_wall_clock(first, tz), from_wall_clock(stop, tz) - 1, label, key)


def _buckets_from_starts(
    starts: Sequence[pd.Timestamp], stop: pd.Timestamp,
    labels: Sequence[str], keys: Sequence[str], tz: Optional[str]
) -> List[TimeBucket]:
    start_ms = [from_wall_clock(s, tz) for s in starts]
    end_ms = start_ms[1:] + [from_wall_clock(stop, tz)]
    return [TimeBucket(s, e - 1, label, key) for s, e, label, key in zip(start_ms, end_ms, labels, keys)]


# --- Granularity Selection ---

def select_granularity(instant_range: Optional[InstantRange], tz: Optional[str] = None) -> Granularity:
    """
    Picks the trend granularity for a range, using whole-unit differences:
    up to 1 day hourly, up to 7 days daily, up to 31 days inside one month
    weekly-within-month, up to 12 months (or 1 whole year) weekly, else monthly.
    No range means "all time", which is weekly.
    """
    if instant_range is None:
        return Granularity.WEEKLY

    start, end = (to_wall_clock(t, tz) for t in instant_range)
    days = _whole_days(start, end)
    if days <= 1:
        return Granularity.HOURLY
    if days <= 7:
        return Granularity.DAILY
    if days <= 31 and (start.year, start.month) == (end.year, end.month):
        return Granularity.MONTHLY_WEEKLY
    months = _whole_months(start, end)
    if months <= 12 or int(months / 12) <= 1:
        return Granularity.WEEKLY
    return Granularity.MONTHLY


def effective_range(instant_range: Optional[InstantRange], instants: Iterable[int]) -> Optional[InstantRange]:
    """Intersects the requested range with the span the data actually covers."""
    valid = [t for t in instants if is_valid_instant(t)]
    if not valid:
        return None
    data_start, data_end = min(valid), max(valid)
    if instant_range is None:
        return data_start, data_end
    return max(instant_range[0], data_start), min(instant_range[1], data_end)


# --- Bucket Generation ---

def _hourly(start: pd.Timestamp, end: pd.Timestamp, tz: Optional[str]) -> List[TimeBucket]:
    first, stop = _start_of_day(start), _start_of_day(end) + _DAY
    starts = list(pd.date_range(first, stop, freq="h", inclusive="left"))
    return _buckets_from_starts(
        starts, stop, [f"{s:%H:%M}" for s in starts], [f"{s:%Y-%m-%d %H}" for s in starts], tz
    )


def _daily(start: pd.Timestamp, end: pd.Timestamp, tz: Optional[str]) -> List[TimeBucket]:
    first, stop = _start_of_day(start), _start_of_day(end) + _DAY
    starts = list(pd.date_range(first, stop, freq="D", inclusive="left"))
    return _buckets_from_starts(
        starts, stop, [f"{s:%a}" for s in starts], [f"{s:%Y-%m-%d}" for s in starts], tz
    )


def _weekly(start: pd.Timestamp, end: pd.Timestamp, tz: Optional[str]) -> List[TimeBucket]:
    first, stop = _start_of_week(start, MONDAY), _start_of_week(end, MONDAY) + _WEEK
    starts = list(pd.date_range(first, stop, freq="7D", inclusive="left"))
    iso = [s.isocalendar() for s in starts]
    return _buckets_from_starts(
        starts, stop, [f"W{week}" for _, week, _ in iso], [f"{year}-W{week:02d}" for year, week, _ in iso], tz
    )


def _monthly_weekly(start: pd.Timestamp, end: pd.Timestamp, tz: Optional[str]) -> List[TimeBucket]:
    month_start, month_stop = _start_of_month(start), _start_of_next_month(end)
    starts, labels, keys = [], [], []
    week, number = _start_of_week(month_start, SUNDAY), 1
    while week < month_stop:
        starts.append(max(week, month_start))
        labels.append(f"Week {number}")
        keys.append(f"{month_start:%Y-%m}-W{number}")
        week, number = week + _WEEK, number + 1
    return _buckets_from_starts(starts, month_stop, labels, keys, tz)


def _monthly(start: pd.Timestamp, end: pd.Timestamp, tz: Optional[str]) -> List[TimeBucket]:
    first, stop = _start_of_month(start), _start_of_next_month(end)
    starts = list(pd.date_range(first, stop, freq="MS", inclusive="left"))
    return _buckets_from_starts(
        starts, stop, [f"{s:%b}" for s in starts], [f"{s:%Y-%m}" for s in starts], tz
    )


_BUILDERS = {
    Granularity.HOURLY: _hourly,
    Granularity.DAILY: _daily,
    Granularity.MONTHLY_WEEKLY: _monthly_weekly,
    Granularity.WEEKLY: _weekly,
    Granularity.MONTHLY: _monthly,
}


def build_buckets(granularity: Granularity, start_ms: int, end_ms: int, tz: Optional[str] = None) -> List[TimeBucket]:
    """Generates the ordered, gapless buckets covering ``[start_ms, end_ms]``."""
    if end_ms < start_ms:
        logger.warning(f"Cannot bucket an inverted range ({start_ms} > {end_ms}).")
        return []
    return _BUILDERS[Granularity(granularity)](to_wall_clock(start_ms, tz), to_wall_clock(end_ms, tz), tz)


def find_bucket(buckets: Sequence[TimeBucket], instant_ms: int, starts: Optional[Sequence[int]] = None) -> Optional[TimeBucket]:
    """Binary-searches the bucket containing ``instant_ms``; pass ``starts`` to reuse a precomputed index."""
    if not buckets:
        return None
    starts = starts if starts is not None else [b.start for b in buckets]
    position = bisect.bisect_right(starts, instant_ms) - 1
    if position < 0:
        return None
    bucket = buckets[position]
    return bucket if bucket.contains(instant_ms) else None


# --- Fixed Windows & Named Periods ---

def fixed_windows(now: Any, date_range: Optional[Sequence[Any]] = None, tz: Optional[str] = None) -> Dict[str, TimeBucket]:
    """
    Returns the daily / weekly / monthly reporting windows.

    Without a range they are today, this Monday-start week and this calendar
    month around ``now``. With a range, each window is the range widened to
    whole days, whole Monday-start weeks and whole calendar months.
    """
    instant_range = normalize_range(date_range, tz)
    if instant_range is None:
        now_ms = coerce_instant(now, tz)
        instant_range = (now_ms, now_ms)
    first, last = (to_wall_clock(t, tz) for t in instant_range)

    day_start, week_start, month_start = _start_of_day(first), _start_of_week(first, MONDAY), _start_of_month(first)
    return {
        "daily": _window(day_start, _start_of_day(last) + _DAY, "Today", f"{day_start:%Y-%m-%d}", tz),
        "weekly": _window(week_start, _start_of_week(last, MONDAY) + _WEEK, "This Week", f"{week_start:%Y-%m-%d}", tz),
        "monthly": _window(month_start, _start_of_next_month(last), "This Month", f"{month_start:%Y-%m}", tz),
    }


def resolve_period_range(period: str, now: Any, selected_month: Any = None, tz: Optional[str] = None) -> Optional[InstantRange]:
    """Maps a named filter period (today, week, month, quarter, year, custom-month, all) to an instant range."""
    wall = to_wall_clock(coerce_instant(now, tz), tz)
    if period == "today":
        first, stop = _start_of_day(wall), _start_of_day(wall) + _DAY
    elif period == "week":
        first = _start_of_week(wall, MONDAY)
        stop = first + _WEEK
    elif period == "month":
        first, stop = _start_of_month(wall), _start_of_next_month(wall)
    elif period == "quarter":
        first = _start_of_quarter(wall)
        stop = first + pd.offsets.MonthBegin(3)
    elif period == "year":
        first, stop = pd.Timestamp(year=wall.year, month=1, day=1), pd.Timestamp(year=wall.year + 1, month=1, day=1)
    elif period == "custom-month":
        month_instant = coerce_instant(selected_month, tz) if selected_month is not None else 0
        if not is_valid_instant(month_instant):
            return None
        month_wall = to_wall_clock(month_instant, tz)
        first, stop = _start_of_month(month_wall), _start_of_next_month(month_wall)
    else:
        if period != "all":
            logger.warning(f"Unknown period '{period}', treating as all time.")
        return None
    return from_wall_clock(first, tz), from_wall_clock(stop, tz) - 1
