# tat_sentinel/tat_processing/timestamps.py
# TIMESTAMP NORMALIZER - HETEROGENEOUS TIME VALUES TO EPOCH INSTANTS

"""
Decodes the time representations found in sample-lifecycle records into
canonical epoch-millisecond instants.

Records arrive from two wire schemas and several writers, so a single field
may hold an ISO-8601 string, a datetime-like object, or a Firestore-style
``{"seconds": ...}`` value. Every value is first classified into a
``TimestampKind`` and then decoded by the matching branch. Anything that
cannot be decoded maps to ``INVALID_INSTANT`` (0); nothing here raises.
"""

import logging
import math
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

import numpy as np
import pandas as pd

from config import settings

logger = logging.getLogger(__name__)

INVALID_INSTANT = 0
_NS_PER_MS = 1_000_000
_MS_PER_YEAR = 366 * 86_400_000

# Instants pandas can still do calendar arithmetic around (a year inside Timestamp.min/max).
MIN_INSTANT = pd.Timestamp.min.value // _NS_PER_MS + _MS_PER_YEAR
MAX_INSTANT = pd.Timestamp.max.value // _NS_PER_MS - _MS_PER_YEAR

# pd.to_datetime resolves these against the wall clock.
_RELATIVE_KEYWORDS = frozenset({"now", "today"})


class TimestampKind(Enum):
    MISSING = "missing"
    ISO_STRING = "iso_string"
    DATETIME = "datetime"
    EPOCH_SECONDS = "epoch_seconds"
    UNKNOWN = "unknown"


def _resolve_tz(tz: Optional[str]) -> str:
    return tz or settings.REPORTING_TIMEZONE


def _is_missing(value: Any) -> bool:
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float):
        return math.isnan(value)
    return False


def _seconds_of(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("seconds")
    return getattr(value, "seconds", None)


def classify_timestamp(value: Any) -> TimestampKind:
    """Tags a raw field value with the representation it uses."""
    if _is_missing(value):
        return TimestampKind.MISSING
    if isinstance(value, str):
        return TimestampKind.ISO_STRING
    # pd.Timestamp subclasses datetime, and datetime subclasses date.
    if isinstance(value, (date, np.datetime64)):
        return TimestampKind.DATETIME
    seconds = _seconds_of(value)
    if seconds is not None and not isinstance(seconds, bool) and isinstance(seconds, (int, float, np.number)):
        return TimestampKind.EPOCH_SECONDS
    return TimestampKind.UNKNOWN


def _timestamp_to_ms(ts: pd.Timestamp, tz: str) -> int:
    if ts is pd.NaT or pd.isna(ts):
        return INVALID_INSTANT
    if ts.tzinfo is None:
        ts = ts.tz_localize(tz, nonexistent="shift_forward", ambiguous=False)
    return int(ts.value // _NS_PER_MS)


def _decode_string(value: str, tz: str) -> int:
    text = value.strip()
    if text.lower() in _RELATIVE_KEYWORDS:
        logger.debug(f"Rejecting relative timestamp keyword: {value!r}")
        return INVALID_INSTANT
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        logger.debug(f"Unparseable timestamp string: {value!r}")
        return INVALID_INSTANT
    return _timestamp_to_ms(parsed, tz)


def _decode_datetime(value: Any, tz: str) -> int:
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return _timestamp_to_ms(pd.Timestamp(value), tz)


def _decode_seconds(value: Any) -> int:
    seconds = float(_seconds_of(value))
    if not math.isfinite(seconds):
        return INVALID_INSTANT
    return int(seconds * 1000)


def _bounded(instant_ms: int) -> int:
    if not MIN_INSTANT <= instant_ms <= MAX_INSTANT:
        logger.debug(f"Timestamp {instant_ms} ms is outside the supported calendar range.")
        return INVALID_INSTANT
    return instant_ms


def to_epoch_ms(value: Any, tz: Optional[str] = None) -> int:
    """
    Converts any supported timestamp representation to epoch milliseconds.

    Naive strings and datetimes are read as wall-clock time in ``tz``
    (default: the configured reporting timezone). Returns ``INVALID_INSTANT``
    for missing or unparseable input.
    """
    kind = classify_timestamp(value)
    try:
        if kind is TimestampKind.ISO_STRING:
            return _bounded(_decode_string(value, _resolve_tz(tz)))
        if kind is TimestampKind.DATETIME:
            return _bounded(_decode_datetime(value, _resolve_tz(tz)))
        if kind is TimestampKind.EPOCH_SECONDS:
            return _bounded(_decode_seconds(value))
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug(f"Timestamp of kind '{kind.value}' could not be decoded ({value!r}): {e}")
        return INVALID_INSTANT
    if kind is TimestampKind.UNKNOWN:
        logger.debug(f"Unknown timestamp format: {value!r} ({type(value).__name__})")
    return INVALID_INSTANT


def is_valid_instant(instant_ms: int) -> bool:
    return instant_ms != INVALID_INSTANT


def to_wall_clock(instant_ms: int, tz: Optional[str] = None) -> pd.Timestamp:
    """
    Returns the naive local wall-clock time of an instant.

    Raises:
        ValueError: if the instant is outside the supported calendar range.
    """
    if not MIN_INSTANT <= instant_ms <= MAX_INSTANT:
        raise ValueError(f"Instant {instant_ms} ms is outside the supported calendar range")
    return pd.Timestamp(instant_ms, unit="ms", tz="UTC").tz_convert(_resolve_tz(tz)).tz_localize(None)


def from_wall_clock(wall: pd.Timestamp, tz: Optional[str] = None) -> int:
    """Returns the instant of a naive local wall-clock time."""
    return _timestamp_to_ms(pd.Timestamp(wall), _resolve_tz(tz))


def current_instant() -> int:
    return int(pd.Timestamp.now(tz="UTC").value // _NS_PER_MS)
