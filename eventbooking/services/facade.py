"""
Single entry point for the controller layer.

``BookingEngine`` wires the schedule, booking and contact services onto one
set of repositories so an HTTP layer (or the CLI) needs only one object.
"""

from __future__ import annotations

from datetime import date
from typing import Any, List, Optional, Union

from ..domain.availability import AvailabilityEngine
from ..domain.models import Booking, TimeSlot, WeeklySchedule
from ..domain.schedule_validator import ScheduleValidator
from .booking_service import BookingService
from .contact_service import ContactService
from .repositories import BookingRepository, ContactRepository, EventRepository, GuestRepository
from .schedule_service import ScheduleService


class BookingEngine:
    """
    Exposes the operations offered to collaborators.

    Dependency inversion toward repository protocols makes it easy to plug in
    a database-backed store or the in-memory adapter in tests.
    """

    def __init__(
        self,
        events: EventRepository,
        bookings: BookingRepository,
        guests: GuestRepository,
        contacts: ContactRepository,
        *,
        validator: Optional[ScheduleValidator] = None,
        timezone: str = "UTC",
        default_duration_minutes: int = 30,
    ) -> None:
        self.schedules = ScheduleService(
            events,
            bookings,
            validator=validator,
            engine=AvailabilityEngine(timezone=timezone),
            default_duration_minutes=default_duration_minutes,
        )
        self.contacts = ContactService(contacts)
        self.bookings = BookingService(
            events,
            bookings,
            guests,
            self.contacts,
            self.schedules,
            timezone=timezone,
        )

    @classmethod
    def from_config(cls, config, store) -> "BookingEngine":
        """
        Build an engine from an AppConfig and a store exposing the four
        repositories as ``events``, ``bookings``, ``guests`` and ``contacts``.
        """
        return cls(
            store.events,
            store.bookings,
            store.guests,
            store.contacts,
            validator=ScheduleValidator(config.defaults.schedule_defaults()),
            timezone=config.timezone,
            default_duration_minutes=config.defaults.duration_minutes,
        )

    def compute_availability(
        self,
        event_id: int,
        day: Union[date, str],
        duration_minutes: Optional[int] = None,
        *,
        only_free: bool = True,
    ) -> List[TimeSlot]:
        return self.schedules.compute_availability(
            event_id, day, duration_minutes, only_free=only_free
        )

    def set_event_schedule(self, event_id: int, raw_schedule: Any) -> WeeklySchedule:
        return self.schedules.set_event_schedule(event_id, raw_schedule)

    def create_booking(self, data: Any) -> Booking:
        return self.bookings.create(data)

    def update_booking(self, booking_id: int, changes: Any) -> Booking:
        return self.bookings.update(booking_id, changes)

    def cancel_booking(self, booking_id: int) -> None:
        self.bookings.cancel(booking_id)

    def delete_booking(self, booking_id: int) -> None:
        self.bookings.delete(booking_id)
