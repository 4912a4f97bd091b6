"""
Domain models for schedules, slots and bookings.
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pendulum import DateTime

from .timeutils import format_time_of_day

DAYS_OF_WEEK: Tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


@dataclass(frozen=True)
class BreakInterval:
    """
    A recurring daily blackout window, e.g. a lunch break.

    Invariant: start_time must be before end_time.
    """
    start_time: time
    end_time: time

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Break start {self.start_time} must be before break end {self.end_time}"
            )

    def overlaps(self, start: time, end: time) -> bool:
        """Half-open overlap test against a time-of-day range."""
        return start < self.end_time and end > self.start_time

    def to_dict(self) -> Dict[str, str]:
        return {
            "startTime": format_time_of_day(self.start_time),
            "endTime": format_time_of_day(self.end_time),
        }


@dataclass(frozen=True)
class DaySchedule:
    """
    Working hours and breaks for a single day of the week.
    """
    enabled: bool
    start_time: time
    end_time: time
    breaks: Tuple[BreakInterval, ...] = ()

    def contains(self, start: time, end: time) -> bool:
        """Check if a time-of-day range lies inside the working hours."""
        return start >= self.start_time and end <= self.end_time

    def blocked_by_break(self, start: time, end: time) -> bool:
        """Check if a time-of-day range touches any break."""
        return any(pause.overlaps(start, end) for pause in self.breaks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "startTime": format_time_of_day(self.start_time),
            "endTime": format_time_of_day(self.end_time),
            "breaks": [pause.to_dict() for pause in self.breaks],
        }


@dataclass(frozen=True)
class WeeklySchedule:
    """
    Mapping from lowercase day name to that day's schedule.

    Instances produced by the ScheduleValidator always hold all seven days.
    """
    days: Dict[str, DaySchedule]

    def for_day(self, day_name: str) -> Optional[DaySchedule]:
        return self.days.get(day_name.lower())

    def for_date(self, day: date) -> Optional[DaySchedule]:
        """Look up the schedule for the weekday of a calendar date."""
        return self.for_day(DAYS_OF_WEEK[day.weekday()])

    def enabled_days(self) -> List[str]:
        return [name for name in DAYS_OF_WEEK if name in self.days and self.days[name].enabled]

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Serialize to the wire format (lowercase day keys, HH:MM:SS times)."""
        return {
            name: self.days[name].to_dict()
            for name in DAYS_OF_WEEK
            if name in self.days
        }


@dataclass(frozen=True)
class TimeSlot:
    """
    An immutable bookable range between two absolute timestamps.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeSlot") -> bool:
        """Check if this slot overlaps with another (half-open)."""
        return self.start < other.end and self.end > other.start

    def to_dict(self) -> Dict[str, str]:
        return {
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
        }

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


class BookingStatus(str, Enum):
    """Lifecycle states of a booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass
class Booking:
    """
    A reservation of a time range against an event.

    Bookings are soft-cancelled (flag plus status) and only removed by an
    explicit delete.
    """
    event_id: int
    start_time: DateTime
    end_time: DateTime
    status: BookingStatus = BookingStatus.CONFIRMED
    cancelled: bool = False
    form_data: Dict[str, Any] = field(default_factory=dict)
    booking_option_id: Optional[int] = None
    id: Optional[int] = None
    created: Optional[DateTime] = None
    updated: Optional[DateTime] = None

    def is_active(self) -> bool:
        """Cancelled bookings no longer block their time range."""
        return not self.cancelled and self.status != BookingStatus.CANCELLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "start_time": self.start_time.to_iso8601_string(),
            "end_time": self.end_time.to_iso8601_string(),
            "status": self.status.value,
            "cancelled": self.cancelled,
            "form_data": dict(self.form_data),
            "booking_option_id": self.booking_option_id,
        }


@dataclass
class Guest:
    """A person attending a booking."""
    booking_id: int
    name: str
    email: str
    phone: Optional[str] = None
    id: Optional[int] = None


@dataclass
class Contact:
    """
    Address book entry, unique by email.
    """
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None
    last_event_id: Optional[int] = None
    last_interaction: Optional[DateTime] = None
    id: Optional[int] = None


@dataclass
class BookingOption:
    """A selectable variant of an event, e.g. a 30 or 60 minute session."""
    event_id: int
    name: str
    duration_minutes: int
    active: bool = True
    id: Optional[int] = None


@dataclass
class Event:
    """
    An organization's bookable meeting type.
    """
    id: int
    name: str
    organization_id: Optional[int] = None
    deleted: bool = False
    booking_options: List[BookingOption] = field(default_factory=list)

    def find_booking_option(self, option_id: int) -> Optional[BookingOption]:
        for option in self.booking_options:
            if option.id == option_id:
                return option
        return None
