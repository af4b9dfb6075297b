# tat_sentinel/tat_processing/records.py
# CANONICAL LIFECYCLE RECORD - ALIAS RESOLUTION ACROSS BOTH WIRE SCHEMAS

"""
Decodes raw sample-lifecycle mappings into a single canonical
``LifecycleRecord``.

Two record schemas name the same lifecycle events differently
(``requestedAt`` vs ``requested_at`` vs ``time_requested`` ...). The alias
tables below are the only place those names are known; every downstream
component works with the decoded record and its epoch-millisecond instants.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config import settings
from .timestamps import INVALID_INSTANT, is_valid_instant, to_epoch_ms

logger = logging.getLogger(__name__)


class LifecycleEvent(Enum):
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    COLLECTED = "collected"
    REGISTERED = "registered"
    RECEIVED = "received"
    COMPLETED = "completed"
    DELIVERED = "delivered"


# First populated field wins.
TIMESTAMP_ALIASES: Dict[LifecycleEvent, Tuple[str, ...]] = {
    LifecycleEvent.REQUESTED: ("requestedAt", "requested_at", "time_requested", "created_at"),
    LifecycleEvent.ACCEPTED: ("acceptedCollectionAt", "accepted_collection_at", "driverAssignedAt", "driver_assigned_at"),
    LifecycleEvent.COLLECTED: ("collectedAt", "collected_at", "time_collected"),
    LifecycleEvent.REGISTERED: ("registeredAt", "registered_at", "time_registered"),
    LifecycleEvent.RECEIVED: ("receivedAt", "received_at"),
    LifecycleEvent.COMPLETED: ("completedAt", "completed_at"),
    LifecycleEvent.DELIVERED: ("deliveredAt", "delivered_at"),
}

ID_ALIASES = ("id", "sampleId", "sample_id")
PRIORITY_ALIASES = ("priority", "urgencyLevel", "urgency_level")
STATUS_ALIASES = ("status",)
TEST_ID_ALIASES = ("testID", "testId", "test_id")
TEST_NAME_ALIASES = ("testName", "test_name")
CENTER_ALIASES = ("center_name", "centerName")


class Priority(Enum):
    ROUTINE = "routine"
    URGENT = "urgent"
    EMERGENCY = "emergency"

    @property
    def is_urgent(self) -> bool:
        return self is not Priority.ROUTINE

    @classmethod
    def parse(cls, value: Any) -> "Priority":
        text = str(value or "").strip().lower()
        if text == "emergency":
            return cls.EMERGENCY
        if text in {v.strip().lower() for v in settings.URGENT_PRIORITY_VALUES}:
            return cls.URGENT
        return cls.ROUTINE


_PRIORITY_RANK = {Priority.ROUTINE: 0, Priority.URGENT: 1, Priority.EMERGENCY: 2}


def _is_populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, float):
        return value == value  # NaN check
    return True


def first_populated(raw: Mapping, aliases: Iterable[str]) -> Any:
    """Returns the first non-empty value among ``aliases``, or None."""
    for key in aliases:
        value = raw.get(key)
        if _is_populated(value):
            return value
    return None


def _as_str_tuple(value: Any) -> Tuple[str, ...]:
    if not _is_populated(value):
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value if _is_populated(v))
    return (str(value),)


@dataclass(frozen=True)
class LifecycleRecord:
    record_id: str
    priority: Priority = Priority.ROUTINE
    status: str = ""
    requested_at: int = INVALID_INSTANT
    accepted_at: int = INVALID_INSTANT
    collected_at: int = INVALID_INSTANT
    registered_at: int = INVALID_INSTANT
    received_at: int = INVALID_INSTANT
    completed_at: int = INVALID_INSTANT
    delivered_at: int = INVALID_INSTANT
    test_ids: Tuple[str, ...] = ()
    test_names: Tuple[str, ...] = ()
    center_name: Optional[str] = None

    @property
    def instant_of_record(self) -> int:
        """The instant used to place the record in buckets and windows."""
        return self.requested_at

    @property
    def has_events_beyond_request(self) -> bool:
        return any(is_valid_instant(t) for t in (
            self.accepted_at, self.collected_at, self.registered_at,
            self.received_at, self.completed_at, self.delivered_at,
        ))

    @property
    def is_valid_sample(self) -> bool:
        """A requested instant plus at least one later lifecycle event."""
        return is_valid_instant(self.requested_at) and self.has_events_beyond_request


_EVENT_FIELDS = {
    LifecycleEvent.REQUESTED: "requested_at",
    LifecycleEvent.ACCEPTED: "accepted_at",
    LifecycleEvent.COLLECTED: "collected_at",
    LifecycleEvent.REGISTERED: "registered_at",
    LifecycleEvent.RECEIVED: "received_at",
    LifecycleEvent.COMPLETED: "completed_at",
    LifecycleEvent.DELIVERED: "delivered_at",
}


def _resolve_priority(raw: Mapping) -> Priority:
    candidates = [Priority.parse(raw.get(key)) for key in PRIORITY_ALIASES if _is_populated(raw.get(key))]
    return max(candidates, key=_PRIORITY_RANK.__getitem__, default=Priority.ROUTINE)


def decode_record(raw: Mapping, tz: Optional[str] = None) -> LifecycleRecord:
    """
    Decodes one raw record into a ``LifecycleRecord``.

    Raises:
        TypeError: if ``raw`` is not a mapping.
    """
    if not isinstance(raw, Mapping):
        raise TypeError(f"Expected a mapping for a lifecycle record, got {type(raw).__name__}")

    instants = {
        _EVENT_FIELDS[event]: to_epoch_ms(first_populated(raw, aliases), tz)
        for event, aliases in TIMESTAMP_ALIASES.items()
    }
    center = first_populated(raw, CENTER_ALIASES)
    return LifecycleRecord(
        record_id=str(first_populated(raw, ID_ALIASES) or ""),
        priority=_resolve_priority(raw),
        status=str(first_populated(raw, STATUS_ALIASES) or ""),
        test_ids=_as_str_tuple(first_populated(raw, TEST_ID_ALIASES)),
        test_names=_as_str_tuple(first_populated(raw, TEST_NAME_ALIASES)),
        center_name=str(center) if center is not None else None,
        **instants,
    )


def decode_records(raws: Optional[Iterable[Any]], tz: Optional[str] = None) -> List[LifecycleRecord]:
    """Decodes a batch, logging and skipping records that cannot be decoded."""
    decoded: List[LifecycleRecord] = []
    for index, raw in enumerate(raws or []):
        try:
            decoded.append(decode_record(raw, tz))
        except Exception as e:
            logger.error(f"Skipping malformed lifecycle record at index {index}: {e}", exc_info=True)
    return decoded


def filter_valid_samples(records: Iterable[LifecycleRecord]) -> List[LifecycleRecord]:
    return [r for r in records if r.is_valid_sample]
