"""
Application service for event schedules and slot listings.

Loads schedules and bookings through the repository protocols and delegates
every decision to the domain-level ``ScheduleValidator`` and
``AvailabilityEngine``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, List, Optional, Union

from ..domain.availability import AvailabilityEngine
from ..domain.exceptions import InvalidInputError
from ..domain.models import Booking, TimeSlot, WeeklySchedule
from ..domain.schedule_validator import ScheduleValidator
from ..domain.timeutils import normalize_timestamp, parse_date
from .repositories import BookingRepository, EventRepository, require_event

logger = logging.getLogger(__name__)


class ScheduleService:
    """
    Owns the "set schedule" and "which slots are open" operations.
    """

    def __init__(
        self,
        events: EventRepository,
        bookings: BookingRepository,
        *,
        validator: Optional[ScheduleValidator] = None,
        engine: Optional[AvailabilityEngine] = None,
        default_duration_minutes: int = 30,
    ) -> None:
        self._events = events
        self._bookings = bookings
        self.validator = validator or ScheduleValidator()
        self.engine = engine or AvailabilityEngine()
        self.default_duration_minutes = default_duration_minutes

    def get_event_schedule(self, event_id: int) -> Optional[WeeklySchedule]:
        """
        Return the event's normalized schedule, or None if it has none.

        Raises:
            NotFoundError: If the event does not exist
        """
        require_event(self._events, event_id)
        stored = self._events.get_schedule(event_id)
        if stored is None:
            return None
        return self.validator.normalize(stored)

    def set_event_schedule(self, event_id: int, raw_schedule: Any) -> WeeklySchedule:
        """
        Normalize and store an event's weekly schedule (create or replace).

        Raises:
            NotFoundError: If the event does not exist
            InvalidInputError: If the schedule is not a mapping
        """
        require_event(self._events, event_id)
        schedule = self.validator.normalize(raw_schedule)
        self._events.save_schedule(event_id, schedule)
        logger.info(
            "Schedule saved for event %s (enabled: %s)",
            event_id,
            ", ".join(schedule.enabled_days()) or "none",
        )
        return schedule

    def compute_availability(
        self,
        event_id: int,
        day: Union[date, str],
        duration_minutes: Optional[int] = None,
        *,
        only_free: bool = True,
    ) -> List[TimeSlot]:
        """
        List the bookable slots of an event for one day.

        Args:
            event_id: Event to inspect
            day: Calendar date or ``YYYY-MM-DD`` string
            duration_minutes: Slot length, defaults to the configured duration
            only_free: Drop slots overlapping active bookings

        Raises:
            NotFoundError: If the event does not exist
            InvalidInputError: If the date or duration is invalid
        """
        duration = self.default_duration_minutes if duration_minutes is None else duration_minutes
        if duration <= 0:
            raise InvalidInputError("Duration must be a positive number of minutes")

        try:
            target_day = parse_date(day)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

        schedule = self.get_event_schedule(event_id)
        if schedule is None:
            return []

        if not only_free:
            return self.engine.enumerate_slots(schedule, target_day, duration)

        bookings = self._bookings.list_for_event(event_id)
        return self.engine.free_slots(schedule, target_day, duration, bookings)

    def is_time_slot_available(
        self,
        event_id: int,
        start: Union[datetime, str],
        end: Union[datetime, str],
        timezone: Optional[str] = None,
        excluding: Optional[int] = None,
    ) -> bool:
        """
        Check a range against schedule and bookings.

        Raises:
            NotFoundError: If the event does not exist
            InvalidInputError: If the timestamps cannot be parsed
        """
        try:
            start_utc = normalize_timestamp(start, timezone)
            end_utc = normalize_timestamp(end, timezone)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

        bookings = self._bookings.list_for_event(event_id)
        return self.unavailability_reason(event_id, start_utc, end_utc, bookings, excluding) is None

    def unavailability_reason(
        self,
        event_id: int,
        start: datetime,
        end: datetime,
        bookings: List[Booking],
        excluding: Optional[int] = None,
    ) -> Optional[str]:
        """
        Explain why a range cannot be booked; None when it can.

        An event without a schedule accepts no bookings.
        """
        schedule = self.get_event_schedule(event_id)
        if schedule is None:
            return "No schedule defined for this event"
        return self.engine.unavailability_reason(schedule, start, end, bookings, excluding)
