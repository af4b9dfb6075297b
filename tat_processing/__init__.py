# tat_sentinel/tat_processing/__init__.py

"""
Initializes the tat_processing package, defining its public API.

Everything that turns raw, schema-dependent record mappings into canonical,
numeric lifecycle records lives here.
"""

# --- Timestamp normalization from timestamps.py ---
from .timestamps import (
    INVALID_INSTANT,
    MAX_INSTANT,
    MIN_INSTANT,
    TimestampKind,
    classify_timestamp,
    current_instant,
    from_wall_clock,
    is_valid_instant,
    to_epoch_ms,
    to_wall_clock,
)

# --- Canonical records from records.py ---
from .records import (
    TIMESTAMP_ALIASES,
    LifecycleEvent,
    LifecycleRecord,
    Priority,
    decode_record,
    decode_records,
    filter_valid_samples,
    first_populated,
)

__all__ = [
    # timestamps.py
    "INVALID_INSTANT",
    "MAX_INSTANT",
    "MIN_INSTANT",
    "TimestampKind",
    "classify_timestamp",
    "current_instant",
    "from_wall_clock",
    "is_valid_instant",
    "to_epoch_ms",
    "to_wall_clock",

    # records.py
    "TIMESTAMP_ALIASES",
    "LifecycleEvent",
    "LifecycleRecord",
    "Priority",
    "decode_record",
    "decode_records",
    "filter_valid_samples",
    "first_populated",
]
