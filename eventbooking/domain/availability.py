"""
Core business logic for deciding availability and generating slots.

Pure domain logic: no repositories, no I/O. Callers pass in the schedule and
the bookings they already loaded.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional

import pendulum
from pendulum import DateTime

from .models import Booking, DaySchedule, TimeSlot, WeeklySchedule
from .overlap import BookingOverlapChecker
from .timeutils import CANONICAL_TIMEZONE, time_of_day

REASON_INVALID_RANGE = "End time must be after start time"
REASON_DAY_DISABLED = "The event is not available on this day"
REASON_OUTSIDE_HOURS = "The selected time is outside of working hours"
REASON_BREAK = "The selected time overlaps with a break period"
REASON_BOOKED = "The selected time slot overlaps with an existing booking"


class AvailabilityEngine:
    """
    Evaluates requested ranges against a weekly schedule and bookings.

    Algorithm for a single range:
    1. Take the weekday of the start's local calendar date
    2. Reject disabled days
    3. Compare the time of day of start and end with the working hours
    4. Reject ranges touching a break (half-open)
    5. Reject ranges colliding with an active booking

    Timestamps are read in the engine's zone. Only the start's date selects
    the day, so a range crossing midnight is judged by its time-of-day fields
    alone.
    """

    def __init__(
        self,
        timezone: str = CANONICAL_TIMEZONE,
        overlap_checker: Optional[BookingOverlapChecker] = None
    ):
        self.timezone = timezone
        self.overlap_checker = overlap_checker or BookingOverlapChecker()

    def is_available(
        self,
        schedule: WeeklySchedule,
        start: datetime,
        end: datetime,
        existing_bookings: Iterable[Booking] = (),
        excluding: Optional[int] = None
    ) -> bool:
        """Return True only if every check passes."""
        return self.unavailability_reason(
            schedule, start, end, existing_bookings, excluding
        ) is None

    def unavailability_reason(
        self,
        schedule: WeeklySchedule,
        start: datetime,
        end: datetime,
        existing_bookings: Iterable[Booking] = (),
        excluding: Optional[int] = None
    ) -> Optional[str]:
        """
        Explain why a range cannot be booked.

        Returns:
            A human readable reason, or None if the range is available
        """
        local_start = self._localize(start)
        local_end = self._localize(end)

        if local_start >= local_end:
            return REASON_INVALID_RANGE

        day = schedule.for_date(local_start.date())
        if day is None or not day.enabled:
            return REASON_DAY_DISABLED

        start_tod = time_of_day(local_start)
        end_tod = time_of_day(local_end)

        if not day.contains(start_tod, end_tod):
            return REASON_OUTSIDE_HOURS

        if day.blocked_by_break(start_tod, end_tod):
            return REASON_BREAK

        candidate = TimeSlot(start=local_start, end=local_end)
        if self.overlap_checker.overlaps(candidate, existing_bookings, excluding):
            return REASON_BOOKED

        return None

    def enumerate_slots(
        self,
        schedule: WeeklySchedule,
        day: date,
        duration_minutes: int
    ) -> List[TimeSlot]:
        """
        Tile a day's working hours into back-to-back slots.

        Slots start at the opening time and advance by the full duration.
        A slot is kept when it ends no later than closing time and touches no
        break. Bookings are not consulted; see ``free_slots``.

        Args:
            schedule: The event's weekly schedule
            day: Calendar date to generate slots for
            duration_minutes: Slot length, must be positive

        Returns:
            Ordered list of TimeSlot objects
        """
        if duration_minutes <= 0:
            return []

        if isinstance(day, datetime):
            day = self._localize(day).date()

        day_schedule = schedule.for_date(day)
        if day_schedule is None or not day_schedule.enabled:
            return []

        day_end = self._at(day, day_schedule.end_time)
        blocked = self._break_slots(day, day_schedule)

        slots: List[TimeSlot] = []
        slot_start = self._at(day, day_schedule.start_time)

        while True:
            slot_end = slot_start.add(minutes=duration_minutes)
            if slot_end > day_end:
                break

            slot = TimeSlot(start=slot_start, end=slot_end)
            if not any(slot.overlaps(pause) for pause in blocked):
                slots.append(slot)

            slot_start = slot_end

        return slots

    def free_slots(
        self,
        schedule: WeeklySchedule,
        day: date,
        duration_minutes: int,
        existing_bookings: Iterable[Booking] = ()
    ) -> List[TimeSlot]:
        """Slots from ``enumerate_slots`` that no active booking overlaps."""
        bookings = list(existing_bookings)
        return [
            slot for slot in self.enumerate_slots(schedule, day, duration_minutes)
            if not self.overlap_checker.overlaps(slot, bookings)
        ]

    def _localize(self, dt: datetime) -> DateTime:
        return pendulum.instance(dt).in_timezone(self.timezone)

    def _at(self, day: date, moment) -> DateTime:
        return pendulum.datetime(
            day.year,
            day.month,
            day.day,
            moment.hour,
            moment.minute,
            moment.second,
            tz=self.timezone
        )

    def _break_slots(self, day: date, day_schedule: DaySchedule) -> List[TimeSlot]:
        return [
            TimeSlot(start=self._at(day, pause.start_time), end=self._at(day, pause.end_time))
            for pause in day_schedule.breaks
        ]
