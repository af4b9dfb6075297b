# tat_sentinel/tests/test_targets.py
# TARGET TAT AND TEST CATALOG TESTS

import pytest

from tat_analytics import TestCatalog, longest_target_tat, parse_tat_string, tat_string_to_minutes

# --- Parsing Tests ---
@pytest.mark.parametrize("text, hours", [
    ("04:00:00", 4.0),
    ("00:30:00", 0.5),
    ("01:06:00:00", 30.0),
    ("00:01:30:00", 1.5),
    ("bad-value", None),
    ("1:2", None),
    ("", None),
    (None, None),
])
def test_parse_tat_string(text, hours):
    assert parse_tat_string(text) == hours

def test_tat_string_to_minutes_ignores_seconds():
    assert tat_string_to_minutes("01:02:03:59") == 1 * 1440 + 2 * 60 + 3
    assert tat_string_to_minutes("02:30:45") == 150
    assert tat_string_to_minutes("nonsense") == 0

def test_longest_target_tat_by_priority():
    tests = [
        {"name": "FBC", "normalTAT": "04:00:00", "urgentTAT": "01:00:00"},
        {"name": "Culture", "normalTAT": "01:00:00:00"},
        {"name": "Untimed"},
    ]
    assert longest_target_tat(tests, "routine") == 1440
    assert longest_target_tat(tests, "urgent") == 60
    assert longest_target_tat([], "routine") == 0
    assert longest_target_tat([{"name": "Untimed"}], "routine") == 0

# --- Catalog Tests ---
def test_catalog_from_records(catalog_rows):
    catalog = TestCatalog.from_records(catalog_rows)
    assert len(catalog) == 3
    assert "T-CRP" in catalog
    assert catalog.get("T-CRP").routine_hours == 30.0
    assert catalog.get("T-FBC").urgent_hours == 1.0

def test_catalog_defaults_for_missing_or_bad_targets(catalog_rows):
    target = TestCatalog.from_records(catalog_rows).get("T-LFT")
    assert target.name == "Liver Function"
    assert target.routine_hours == 4.0
    assert target.urgent_hours == 2.0

def test_catalog_lookups(catalog_rows):
    catalog = TestCatalog.from_records(catalog_rows + [{"testName": "No id"}])
    assert len(catalog) == 3
    assert catalog.targets_for(["unknown", "T-FBC"]).test_id == "T-FBC"
    fallback = catalog.targets_for(["unknown"])
    assert (fallback.routine_hours, fallback.urgent_hours) == (4.0, 2.0)
    assert catalog.name_for("T-CRP") == "C-Reactive Protein"
    assert catalog.name_for("nope") == "Unknown"
