# tat_sentinel/tests/conftest.py
# PYTEST FIXTURES - LIFECYCLE RECORDS IN BOTH WIRE SCHEMAS

import sys
from pathlib import Path

# --- Path Setup for Module Imports ---
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from datetime import datetime, timedelta, timezone

import pytest

# Wednesday 2024-03-13 09:00 UTC; the reporting timezone defaults to UTC.
BASE_TIME = datetime(2024, 3, 13, 9, 0, tzinfo=timezone.utc)


def iso_at(minutes: float, base: datetime = BASE_TIME) -> str:
    """ISO-8601 string ``minutes`` after ``base``."""
    return (base + timedelta(minutes=minutes)).isoformat()


def epoch_ms_at(minutes: float, base: datetime = BASE_TIME) -> int:
    return int((base + timedelta(minutes=minutes)).timestamp() * 1000)


# --- Core Data Fixtures ---

@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def now_ms() -> int:
    """Reporting instant two hours after the base time, on the same day."""
    return epoch_ms_at(120)


@pytest.fixture
def scenario_a_record() -> dict:
    """A fully-stamped camelCase record without a registration event."""
    return {
        "id": "SMP-A",
        "priority": "routine",
        "requestedAt": iso_at(0),
        "acceptedCollectionAt": iso_at(10),
        "collectedAt": iso_at(55),
        "receivedAt": iso_at(70),
        "completedAt": iso_at(250),
        "deliveredAt": iso_at(280),
        "testID": ["T-FBC"],
        "testName": ["Full Blood Count"],
        "center_name": "Central Clinic",
    }


@pytest.fixture
def snake_case_record() -> dict:
    """The same lifecycle in the snake_case schema, with Firestore-style seconds values."""
    def seconds(minutes):
        return {"seconds": epoch_ms_at(minutes) // 1000, "nanoseconds": 0}

    return {
        "sample_id": "SMP-S",
        "urgency_level": "urgent",
        "time_requested": seconds(0),
        "driver_assigned_at": seconds(10),
        "time_collected": seconds(55),
        "time_registered": seconds(75),
        "received_at": seconds(70),
        "completed_at": seconds(250),
        "delivered_at": seconds(280),
        "test_id": "T-CRP",
        "centerName": "North Clinic",
    }


@pytest.fixture
def scenario_c_record() -> dict:
    """Dispatched and collected, never received."""
    return {
        "id": "SMP-C",
        "requestedAt": iso_at(0),
        "acceptedCollectionAt": iso_at(15),
        "collectedAt": iso_at(40),
    }


@pytest.fixture
def request_only_record() -> dict:
    return {"id": "SMP-R", "requestedAt": iso_at(5)}


@pytest.fixture
def catalog_rows() -> list:
    return [
        {"id": "T-FBC", "testName": "Full Blood Count", "normalTAT": "04:00:00", "urgentTAT": "01:00:00"},
        {"id": "T-CRP", "testName": "C-Reactive Protein", "normalTAT": "01:06:00:00", "urgentTAT": "02:00:00"},
        {"id": "T-LFT", "name": "Liver Function", "normalTAT": "bad-value"},
    ]


@pytest.fixture
def week_of_records() -> list:
    """One delivered routine sample per day from Monday 2024-03-11 to Sunday 2024-03-17."""
    monday = datetime(2024, 3, 11, 8, 0, tzinfo=timezone.utc)
    records = []
    for day in range(7):
        records.append({
            "id": f"SMP-W{day}",
            "requestedAt": iso_at(0, monday + timedelta(days=day)),
            "acceptedCollectionAt": iso_at(20, monday + timedelta(days=day)),
            "receivedAt": iso_at(60, monday + timedelta(days=day)),
            "completedAt": iso_at(60 + 30 * (day + 1), monday + timedelta(days=day)),
            "deliveredAt": iso_at(90 + 30 * (day + 1), monday + timedelta(days=day)),
        })
    return records
