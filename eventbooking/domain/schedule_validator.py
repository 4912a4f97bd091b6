"""
Sanitizes raw weekly schedule input into the canonical WeeklySchedule.

Schedules arrive as loosely structured mappings (JSON bodies, stored JSON
columns). Malformed day entries are repaired rather than rejected so that a
single typo never disables a whole event.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import time
from typing import Any, FrozenSet, List, Optional, Tuple

from .exceptions import InvalidInputError
from .models import DAYS_OF_WEEK, BreakInterval, DaySchedule, WeeklySchedule
from .timeutils import parse_time_of_day

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


@dataclass(frozen=True)
class ScheduleDefaults:
    """
    Values used for missing days and unparseable fields.
    """
    start_time: time = time(9, 0)
    end_time: time = time(17, 0)
    working_days: FrozenSet[int] = frozenset({0, 1, 2, 3, 4})  # 0=Monday, 6=Sunday

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError("Default start time must be before default end time")

    def day(self, index: int) -> DaySchedule:
        return DaySchedule(
            enabled=index in self.working_days,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class ScheduleValidator:
    """
    Normalizes raw schedule mappings.

    Rules:
    1. Day keys are matched case-insensitively, unknown keys are dropped
    2. Every one of the seven days is present in the result
    3. Unparseable times fall back to the default, inverted hours reset the day
    4. Breaks that do not parse or fall outside the day are dropped
    """

    def __init__(self, defaults: Optional[ScheduleDefaults] = None):
        self.defaults = defaults or ScheduleDefaults()

    def normalize(self, raw: Any) -> WeeklySchedule:
        """
        Produce a WeeklySchedule from arbitrary nested input.

        Args:
            raw: Mapping of day name to day entry, an existing WeeklySchedule,
                or None for the default schedule

        Returns:
            WeeklySchedule with all seven days

        Raises:
            InvalidInputError: If the top-level value is not a mapping
        """
        if isinstance(raw, WeeklySchedule):
            raw = raw.to_dict()

        if raw is None:
            raw = {}

        if not isinstance(raw, Mapping):
            raise InvalidInputError(
                f"Schedule must be a mapping of day names, got {type(raw).__name__}"
            )

        entries = {}
        for key, entry in raw.items():
            if not isinstance(key, str):
                continue
            day_name = key.strip().lower()
            if day_name in DAYS_OF_WEEK:
                entries[day_name] = entry
            else:
                logger.debug("Dropping unknown schedule key %r", key)

        days = {}
        for index, day_name in enumerate(DAYS_OF_WEEK):
            default = self.defaults.day(index)
            entry = entries.get(day_name)
            if isinstance(entry, Mapping):
                days[day_name] = self._normalize_day(entry, default)
            else:
                days[day_name] = default

        return WeeklySchedule(days=days)

    def _normalize_day(self, entry: Mapping, default: DaySchedule) -> DaySchedule:
        enabled = _coerce_bool(entry.get("enabled", default.enabled))

        start = parse_time_of_day(_pick(entry, "startTime", "start_time"))
        end = parse_time_of_day(_pick(entry, "endTime", "end_time"))

        start = start if start is not None else default.start_time
        end = end if end is not None else default.end_time

        if start >= end:
            start, end = self.defaults.start_time, self.defaults.end_time

        raw_breaks = entry.get("breaks")
        if raw_breaks is None:
            # Older stored schedules call them pauses
            raw_breaks = entry.get("pauses")

        return DaySchedule(
            enabled=enabled,
            start_time=start,
            end_time=end,
            breaks=self._normalize_breaks(raw_breaks, start, end),
        )

    def _normalize_breaks(
        self,
        raw_breaks: Any,
        day_start: time,
        day_end: time
    ) -> Tuple[BreakInterval, ...]:
        if not isinstance(raw_breaks, (list, tuple)):
            return ()

        breaks: List[BreakInterval] = []

        for candidate in raw_breaks:
            if not isinstance(candidate, Mapping):
                continue

            start = parse_time_of_day(_pick(candidate, "startTime", "start_time"))
            end = parse_time_of_day(_pick(candidate, "endTime", "end_time"))

            if start is None or end is None or start >= end:
                continue
            if start < day_start or end > day_end:
                continue

            breaks.append(BreakInterval(start_time=start, end_time=end))

        return tuple(breaks)


def _pick(entry: Mapping, *keys: str) -> Any:
    for key in keys:
        if key in entry:
            return entry[key]
    return None


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return bool(value)


def normalize_schedule(raw: Any, defaults: Optional[ScheduleDefaults] = None) -> WeeklySchedule:
    """Shortcut for ``ScheduleValidator(defaults).normalize(raw)``."""
    return ScheduleValidator(defaults).normalize(raw)
