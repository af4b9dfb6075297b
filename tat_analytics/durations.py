# tat_sentinel/tat_analytics/durations.py
# STAGE DURATION CALCULATOR - PER-RECORD TURNAROUND LEGS

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from config import settings
from tat_processing import LifecycleRecord, decode_record, is_valid_instant

logger = logging.getLogger(__name__)

STAGES = ("dispatch", "collection", "registration", "processing", "delivery")

_MS_PER_MINUTE = 60_000


def calculate_duration(start_ms: int, end_ms: int) -> int:
    """Whole minutes from ``start_ms`` to ``end_ms``; 0 if either is missing or the pair is out of order."""
    if not is_valid_instant(start_ms) or not is_valid_instant(end_ms):
        return 0
    minutes = (end_ms - start_ms) // _MS_PER_MINUTE
    return max(0, minutes)


def format_minutes(minutes: int) -> str:
    """
    Formats a minute count for display.

    0 -> "N/A", 59 -> "59m", 60 -> "1h ", 125 -> "2h 5m".
    """
    minutes = int(minutes)
    if minutes <= 0:
        return settings.NOT_AVAILABLE_LABEL
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m" if mins > 0 else f"{hours}h "
    return f"{mins}m"


@dataclass(frozen=True)
class StageDuration:
    minutes: int

    @property
    def label(self) -> str:
        return format_minutes(self.minutes)

    @property
    def is_computable(self) -> bool:
        return self.minutes > 0


@dataclass(frozen=True)
class StageDurations:
    dispatch: int = 0
    collection: int = 0
    registration: int = 0
    processing: int = 0
    delivery: int = 0
    total: int = 0

    def get(self, stage: str) -> StageDuration:
        return StageDuration(getattr(self, stage))

    def stage_minutes(self) -> Dict[str, int]:
        """The five stage legs, without the total."""
        return {stage: getattr(self, stage) for stage in STAGES}

    def to_payload(self) -> Dict[str, Any]:
        """Formatted labels plus raw minutes, keyed the way dashboard views read them."""
        payload: Dict[str, Any] = {f"{stage}Time": format_minutes(getattr(self, stage)) for stage in STAGES}
        payload["totalTAT"] = format_minutes(self.total)
        payload["rawMinutes"] = asdict(self)
        return payload


def calculate_stage_durations(record: LifecycleRecord) -> StageDurations:
    """Resolves the five stage durations and the total for one record."""
    processing = calculate_duration(record.received_at, record.completed_at)
    delivery = calculate_duration(record.completed_at, record.delivered_at)

    total_end = record.delivered_at if is_valid_instant(record.delivered_at) else record.completed_at
    # Partially-stamped records fall back to the sum of the legs that are known.
    total = calculate_duration(record.received_at, total_end) or (processing + delivery)

    return StageDurations(
        dispatch=calculate_duration(record.requested_at, record.accepted_at),
        collection=calculate_duration(record.accepted_at, record.collected_at),
        registration=calculate_duration(record.requested_at, record.registered_at),
        processing=processing,
        delivery=delivery,
        total=total,
    )


def calculate_tat(raw_record: Mapping, tz: Optional[str] = None) -> StageDurations:
    """Convenience wrapper: decodes a raw record and resolves its durations."""
    return calculate_stage_durations(decode_record(raw_record, tz))
