"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .availability import AvailabilityEngine
from .models import (
    DAYS_OF_WEEK,
    Booking,
    BookingOption,
    BookingStatus,
    BreakInterval,
    Contact,
    DaySchedule,
    Event,
    Guest,
    TimeSlot,
    WeeklySchedule,
)
from .overlap import BookingOverlapChecker
from .schedule_validator import ScheduleDefaults, ScheduleValidator, normalize_schedule

__all__ = [
    "DAYS_OF_WEEK",
    "AvailabilityEngine",
    "Booking",
    "BookingOption",
    "BookingOverlapChecker",
    "BookingStatus",
    "BreakInterval",
    "Contact",
    "DaySchedule",
    "Event",
    "Guest",
    "ScheduleDefaults",
    "ScheduleValidator",
    "TimeSlot",
    "WeeklySchedule",
    "normalize_schedule",
]
