# tat_sentinel/tat_analytics/targets.py
# TARGETS AND TEST CATALOG - TARGET TAT PARSING AND PER-TEST LOOKUP

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from config import settings

logger = logging.getLogger(__name__)

ROUTINE, URGENT = "routine", "urgent"


def _tat_parts(tat_string: Any) -> Optional[List[float]]:
    if not tat_string or not isinstance(tat_string, str):
        return None
    try:
        parts = [float(p) for p in tat_string.strip().split(":")]
    except ValueError:
        return None
    return parts if len(parts) in (3, 4) else None


def parse_tat_string(tat_string: Any) -> Optional[float]:
    """
    Parses a target TAT written as ``DD:HH:MM:SS`` or ``HH:MM:SS`` into hours.
    Returns None for empty or unparseable values.
    """
    parts = _tat_parts(tat_string)
    if parts is None:
        return None
    if len(parts) == 3:
        parts = [0.0, *parts]
    days, hours, minutes, seconds = parts
    return days * 24 + hours + minutes / 60 + seconds / 3600


def tat_string_to_minutes(tat_string: Any) -> int:
    """Whole target minutes of a TAT string; seconds are ignored and bad values give 0."""
    parts = _tat_parts(tat_string)
    if parts is None:
        return 0
    if len(parts) == 3:
        parts = [0.0, *parts]
    days, hours, minutes, _ = parts
    return int(days * 24 * 60 + hours * 60 + minutes)


def longest_target_tat(tests: Optional[Sequence[Mapping[str, Any]]], priority: str) -> int:
    """
    The longest target in minutes across a sample's tests, using ``normalTAT``
    for routine priority and ``urgentTAT`` for urgent.
    Tests with neither target are skipped; no targets at all gives 0.
    """
    field = "urgentTAT" if priority == URGENT else "normalTAT"
    minutes = [
        tat_string_to_minutes(test.get(field))
        for test in tests or []
        if test and (test.get("normalTAT") or test.get("urgentTAT"))
    ]
    return max(minutes, default=0)


@dataclass(frozen=True)
class TestTarget:
    __test__ = False  # not a pytest test class

    test_id: str
    name: str
    routine_hours: float
    urgent_hours: float


class TestCatalog:
    """Test id to name and target TAT lookup, with configured defaults for unknown tests."""
    __test__ = False

    def __init__(self, targets: Optional[Iterable[TestTarget]] = None):
        self._targets: Dict[str, TestTarget] = {t.test_id: t for t in targets or []}

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, test_id: str) -> bool:
        return test_id in self._targets

    @classmethod
    def from_records(cls, tests: Optional[Iterable[Mapping[str, Any]]]) -> "TestCatalog":
        """
        Builds a catalog from test definitions carrying an ``id`` (or
        ``testID``), a ``testName`` (or ``name``) and optional ``normalTAT`` /
        ``urgentTAT`` strings. Missing or unparseable targets take the
        configured routine / urgent defaults.
        """
        targets = []
        for test in tests or []:
            test_id = test.get("id") or test.get("testID")
            if not test_id:
                logger.warning(f"Skipping test definition without an id: {dict(test)!r}")
                continue
            targets.append(TestTarget(
                test_id=str(test_id),
                name=str(test.get("testName") or test.get("name") or "Unknown Test"),
                routine_hours=parse_tat_string(test.get("normalTAT")) or settings.DEFAULT_ROUTINE_TARGET_HOURS,
                urgent_hours=parse_tat_string(test.get("urgentTAT")) or settings.DEFAULT_URGENT_TARGET_HOURS,
            ))
        logger.info(f"Loaded test catalog with {len(targets)} test definitions.")
        return cls(targets)

    def get(self, test_id: str) -> Optional[TestTarget]:
        return self._targets.get(test_id)

    def targets_for(self, test_ids: Iterable[str]) -> TestTarget:
        """Targets of the first known id, or the configured defaults."""
        for test_id in test_ids:
            target = self._targets.get(test_id)
            if target is not None:
                return target
        return TestTarget(
            test_id="", name="Unknown Test",
            routine_hours=settings.DEFAULT_ROUTINE_TARGET_HOURS,
            urgent_hours=settings.DEFAULT_URGENT_TARGET_HOURS,
        )

    def name_for(self, test_id: str) -> str:
        target = self._targets.get(test_id)
        return target.name if target is not None else "Unknown"
