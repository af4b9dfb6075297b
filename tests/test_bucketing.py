# tat_sentinel/tests/test_bucketing.py
# PERIOD BUCKETING TESTS

import pandas as pd
import pytest

from tat_analytics import (Granularity, build_buckets, effective_range, find_bucket, fixed_windows,
                           normalize_range, resolve_period_range, select_granularity)


def utc_ms(text: str) -> int:
    return int(pd.Timestamp(text, tz="UTC").value // 1_000_000)


def assert_gapless(buckets):
    for current, following in zip(buckets, buckets[1:]):
        assert current.end + 1 == following.start

# --- Granularity Selection Tests ---
@pytest.mark.parametrize("start, end, expected", [
    ("2024-03-13 09:00", "2024-03-13 17:00", Granularity.HOURLY),
    ("2024-03-13 00:00", "2024-03-14 00:00", Granularity.HOURLY),
    ("2024-03-11", "2024-03-15", Granularity.DAILY),
    ("2024-03-01", "2024-03-20", Granularity.MONTHLY_WEEKLY),
    ("2024-02-20", "2024-03-20", Granularity.WEEKLY),
    ("2024-01-01", "2024-12-31", Granularity.WEEKLY),
    ("2023-01-01", "2024-10-01", Granularity.WEEKLY),
    ("2022-01-01", "2024-06-01", Granularity.MONTHLY),
])
def test_select_granularity_by_range_length(start, end, expected):
    assert select_granularity(normalize_range((start, end))) is expected

def test_all_time_defaults_to_weekly():
    assert select_granularity(None) is Granularity.WEEKLY
    assert select_granularity(normalize_range(None)) is Granularity.WEEKLY

def test_normalize_range_rejects_incomplete_ranges():
    assert normalize_range((None, None)) is None
    assert normalize_range(("not a date", "2024-03-01")) is None
    assert normalize_range(("2024-03-01",)) is None
    assert normalize_range(("2024-03-01", "2024-03-02")) == (utc_ms("2024-03-01"), utc_ms("2024-03-02"))

# --- Bucket Generation Tests ---
def test_daily_buckets_cover_whole_days():
    buckets = build_buckets(Granularity.DAILY, utc_ms("2024-03-11 10:00"), utc_ms("2024-03-13 08:00"))
    assert [b.label for b in buckets] == ["Mon", "Tue", "Wed"]
    assert [b.key for b in buckets] == ["2024-03-11", "2024-03-12", "2024-03-13"]
    assert buckets[0].start == utc_ms("2024-03-11")
    assert buckets[-1].end == utc_ms("2024-03-14") - 1
    assert_gapless(buckets)

def test_hourly_buckets_span_the_day():
    buckets = build_buckets(Granularity.HOURLY, utc_ms("2024-03-13 09:00"), utc_ms("2024-03-13 17:00"))
    assert len(buckets) == 24
    assert buckets[0].label == "00:00" and buckets[-1].label == "23:00"
    assert buckets[9].key == "2024-03-13 09"
    assert_gapless(buckets)

def test_monthly_weekly_buckets_are_sunday_anchored_and_clipped():
    """March 2024 starts on a Friday: week 1 is clipped to 1-2 March."""
    buckets = build_buckets(Granularity.MONTHLY_WEEKLY, utc_ms("2024-03-05"), utc_ms("2024-03-20"))
    assert [b.label for b in buckets] == [f"Week {n}" for n in range(1, 7)]
    assert buckets[0].key == "2024-03-W1"
    assert buckets[0].start == utc_ms("2024-03-01")
    assert buckets[1].start == utc_ms("2024-03-03")
    assert buckets[-1].start == utc_ms("2024-03-31")
    assert buckets[-1].end == utc_ms("2024-04-01") - 1
    assert_gapless(buckets)

def test_weekly_buckets_use_iso_weeks():
    buckets = build_buckets(Granularity.WEEKLY, utc_ms("2024-03-13"), utc_ms("2024-03-20"))
    assert [b.label for b in buckets] == ["W11", "W12"]
    assert [b.key for b in buckets] == ["2024-W11", "2024-W12"]
    assert buckets[0].start == utc_ms("2024-03-11")
    assert_gapless(buckets)

def test_monthly_buckets():
    buckets = build_buckets(Granularity.MONTHLY, utc_ms("2024-01-15"), utc_ms("2024-03-02"))
    assert [b.label for b in buckets] == ["Jan", "Feb", "Mar"]
    assert [b.key for b in buckets] == ["2024-01", "2024-02", "2024-03"]
    assert buckets[-1].end == utc_ms("2024-04-01") - 1
    assert_gapless(buckets)

def test_inverted_range_has_no_buckets():
    assert build_buckets(Granularity.DAILY, utc_ms("2024-03-13"), utc_ms("2024-03-01")) == []

def test_find_bucket():
    buckets = build_buckets(Granularity.DAILY, utc_ms("2024-03-11"), utc_ms("2024-03-13"))
    assert find_bucket(buckets, utc_ms("2024-03-12 23:59")).label == "Tue"
    assert find_bucket(buckets, utc_ms("2024-03-10 12:00")) is None
    assert find_bucket(buckets, utc_ms("2024-03-14 00:00")) is None
    assert find_bucket([], utc_ms("2024-03-12")) is None

def test_effective_range_intersects_data_span():
    instants = [utc_ms("2024-03-05"), utc_ms("2024-03-09"), 0]
    assert effective_range(None, instants) == (utc_ms("2024-03-05"), utc_ms("2024-03-09"))
    assert effective_range((utc_ms("2024-03-07"), utc_ms("2024-03-31")), instants) == (utc_ms("2024-03-07"), utc_ms("2024-03-09"))
    assert effective_range(None, [0]) is None

# --- Fixed Window Tests ---
def test_fixed_windows_around_now():
    windows = fixed_windows(utc_ms("2024-03-13 11:00"))
    assert windows["daily"].start == utc_ms("2024-03-13")
    assert windows["daily"].end == utc_ms("2024-03-14") - 1
    assert windows["weekly"].start == utc_ms("2024-03-11")
    assert windows["weekly"].end == utc_ms("2024-03-18") - 1
    assert windows["monthly"].start == utc_ms("2024-03-01")
    assert windows["monthly"].end == utc_ms("2024-04-01") - 1

def test_fixed_windows_widen_a_date_range():
    windows = fixed_windows(utc_ms("2024-01-01"), ("2024-03-12 10:00", "2024-03-20 10:00"))
    assert (windows["daily"].start, windows["daily"].end) == (utc_ms("2024-03-12"), utc_ms("2024-03-21") - 1)
    assert (windows["weekly"].start, windows["weekly"].end) == (utc_ms("2024-03-11"), utc_ms("2024-03-25") - 1)
    assert (windows["monthly"].start, windows["monthly"].end) == (utc_ms("2024-03-01"), utc_ms("2024-04-01") - 1)

# --- Named Period Tests ---
@pytest.mark.parametrize("period, start, stop", [
    ("today", "2024-03-13", "2024-03-14"),
    ("week", "2024-03-11", "2024-03-18"),
    ("month", "2024-03-01", "2024-04-01"),
    ("quarter", "2024-01-01", "2024-04-01"),
    ("year", "2024-01-01", "2025-01-01"),
])
def test_resolve_period_range(period, start, stop):
    assert resolve_period_range(period, utc_ms("2024-03-13 11:00")) == (utc_ms(start), utc_ms(stop) - 1)

def test_custom_month_and_all_time_periods():
    now = utc_ms("2024-03-13 11:00")
    assert resolve_period_range("custom-month", now, "2024-02-10") == (utc_ms("2024-02-01"), utc_ms("2024-03-01") - 1)
    assert resolve_period_range("custom-month", now) is None
    assert resolve_period_range("all", now) is None
    assert resolve_period_range("fortnight", now) is None
