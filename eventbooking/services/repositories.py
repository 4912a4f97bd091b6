"""
Protocols describing the storage collaborators the services depend on.

Any persistence layer (ORM, document store, the in-memory adapter used in
tests) can be plugged in as long as it offers these methods.
"""

from __future__ import annotations

from typing import Any, ContextManager, List, Mapping, Optional, Protocol, Union

from pendulum import DateTime

from ..domain.exceptions import NotFoundError
from ..domain.models import Booking, Contact, Event, Guest, WeeklySchedule


class EventRepository(Protocol):
    """Events and their weekly schedules."""

    def get_event(self, event_id: int) -> Optional[Event]:
        """Return the event, or None if it does not exist."""

    def get_schedule(self, event_id: int) -> Optional[Union[WeeklySchedule, Mapping[str, Any]]]:
        """Return the stored schedule, raw or normalized, or None."""

    def save_schedule(self, event_id: int, schedule: WeeklySchedule) -> None:
        """Create or replace the event's schedule."""


class BookingRepository(Protocol):
    """Bookings, plus the per-event guard for check-then-write sequences."""

    def get(self, booking_id: int) -> Optional[Booking]:
        """Return the booking, or None if it does not exist."""

    def list_for_event(
        self,
        event_id: int,
        *,
        include_cancelled: bool = False,
        start: Optional[DateTime] = None,
        end: Optional[DateTime] = None,
    ) -> List[Booking]:
        """Return bookings ordered by start time, optionally filtered by start."""

    def add(self, booking: Booking) -> Booking:
        """Persist a new booking and return it with its id assigned."""

    def save(self, booking: Booking) -> None:
        """Persist changes to an existing booking."""

    def delete(self, booking_id: int) -> None:
        """Remove a booking permanently."""

    def transaction(self, event_id: int) -> ContextManager[None]:
        """
        Serialize availability checks and writes for one event.

        Two callers holding the guard for the same event never interleave,
        which is what rules out double bookings.
        """


class GuestRepository(Protocol):
    """Guests attached to bookings."""

    def list_for_booking(self, booking_id: int) -> List[Guest]:
        """Return the booking's guests."""

    def add(self, guest: Guest) -> Guest:
        """Persist a guest and return it with its id assigned."""

    def delete_for_booking(self, booking_id: int) -> None:
        """Remove every guest of a booking."""


class ContactRepository(Protocol):
    """Contacts, unique by email."""

    def find_by_email(self, email: str) -> Optional[Contact]:
        """Case-insensitive lookup."""

    def add(self, contact: Contact) -> Contact:
        """Persist a new contact and return it with its id assigned."""

    def save(self, contact: Contact) -> None:
        """Persist changes to an existing contact."""

    def list_by_last_event(self, event_id: int) -> List[Contact]:
        """Return contacts whose last interaction was with the event."""


def require_event(events: EventRepository, event_id: int) -> Event:
    """
    Fetch an event that must exist.

    Raises:
        NotFoundError: If the event is missing or soft-deleted
    """
    event = events.get_event(event_id)
    if event is None or event.deleted:
        raise NotFoundError(f"Event {event_id} not found")
    return event
