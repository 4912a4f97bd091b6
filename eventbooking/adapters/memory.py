"""
Thread-safe in-memory repositories.

Used by the test suite and the CLI in place of a database. Every read returns
a copy, so callers only change stored state through ``save``.
"""

import copy
import itertools
import threading
from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import yaml
from pendulum import DateTime

from ..domain.models import Booking, BookingOption, BookingStatus, Contact, Event, Guest, WeeklySchedule
from ..domain.schedule_validator import ScheduleValidator
from ..domain.timeutils import normalize_timestamp


class InMemoryEventRepository:
    """Events and their schedules, stored as wire-format mappings."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: Dict[int, Event] = {}
        self._schedules: Dict[int, Dict[str, Any]] = {}

    def add_event(self, event: Event) -> Event:
        with self._lock:
            self._events[event.id] = copy.deepcopy(event)
        return event

    def get_event(self, event_id: int) -> Optional[Event]:
        with self._lock:
            event = self._events.get(event_id)
            return copy.deepcopy(event) if event else None

    def get_schedule(self, event_id: int) -> Optional[Mapping[str, Any]]:
        with self._lock:
            schedule = self._schedules.get(event_id)
            return copy.deepcopy(schedule) if schedule is not None else None

    def save_schedule(self, event_id: int, schedule: Union[WeeklySchedule, Mapping[str, Any]]) -> None:
        data = schedule.to_dict() if isinstance(schedule, WeeklySchedule) else copy.deepcopy(dict(schedule))
        with self._lock:
            self._schedules[event_id] = data


class InMemoryBookingRepository:
    """
    Bookings with one re-entrant lock per event.

    ``transaction(event_id)`` holds the event's lock, so an availability
    check and the insert that follows it are atomic with respect to other
    callers booking the same event.

    One lock is created per event id and kept for the life of the
    repository, which is fine for tests and the CLI but not for a
    long-running process with unbounded event ids.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._event_locks = defaultdict(threading.RLock)
        self._bookings: Dict[int, Booking] = {}
        self._ids = itertools.count(1)

    @contextmanager
    def transaction(self, event_id: int) -> Iterator[None]:
        with self._lock:
            event_lock = self._event_locks[event_id]
        with event_lock:
            yield

    def get(self, booking_id: int) -> Optional[Booking]:
        with self._lock:
            booking = self._bookings.get(booking_id)
            return copy.deepcopy(booking) if booking else None

    def list_for_event(
        self,
        event_id: int,
        *,
        include_cancelled: bool = False,
        start: Optional[DateTime] = None,
        end: Optional[DateTime] = None,
    ) -> List[Booking]:
        with self._lock:
            bookings = [copy.deepcopy(b) for b in self._bookings.values() if b.event_id == event_id]

        if not include_cancelled:
            bookings = [b for b in bookings if not b.cancelled]
        if start is not None:
            bookings = [b for b in bookings if b.start_time >= start]
        if end is not None:
            bookings = [b for b in bookings if b.start_time <= end]

        return sorted(bookings, key=lambda b: b.start_time)

    def add(self, booking: Booking) -> Booking:
        with self._lock:
            booking.id = next(self._ids)
            self._bookings[booking.id] = copy.deepcopy(booking)
        return booking

    def save(self, booking: Booking) -> None:
        with self._lock:
            if booking.id not in self._bookings:
                raise KeyError(f"Unknown booking {booking.id}")
            self._bookings[booking.id] = copy.deepcopy(booking)

    def delete(self, booking_id: int) -> None:
        with self._lock:
            self._bookings.pop(booking_id, None)


class InMemoryGuestRepository:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._guests: Dict[int, Guest] = {}
        self._ids = itertools.count(1)

    def list_for_booking(self, booking_id: int) -> List[Guest]:
        with self._lock:
            return [copy.deepcopy(g) for g in self._guests.values() if g.booking_id == booking_id]

    def add(self, guest: Guest) -> Guest:
        with self._lock:
            guest.id = next(self._ids)
            self._guests[guest.id] = copy.deepcopy(guest)
        return guest

    def delete_for_booking(self, booking_id: int) -> None:
        with self._lock:
            for guest_id in [gid for gid, g in self._guests.items() if g.booking_id == booking_id]:
                del self._guests[guest_id]


class InMemoryContactRepository:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._contacts: Dict[int, Contact] = {}
        self._ids = itertools.count(1)

    def find_by_email(self, email: str) -> Optional[Contact]:
        key = email.strip().lower()
        with self._lock:
            for contact in self._contacts.values():
                if contact.email.lower() == key:
                    return copy.deepcopy(contact)
        return None

    def add(self, contact: Contact) -> Contact:
        with self._lock:
            contact.id = next(self._ids)
            self._contacts[contact.id] = copy.deepcopy(contact)
        return contact

    def save(self, contact: Contact) -> None:
        with self._lock:
            if contact.id not in self._contacts:
                raise KeyError(f"Unknown contact {contact.id}")
            self._contacts[contact.id] = copy.deepcopy(contact)

    def list_by_last_event(self, event_id: int) -> List[Contact]:
        with self._lock:
            return [copy.deepcopy(c) for c in self._contacts.values() if c.last_event_id == event_id]


class InMemoryStore:
    """
    The four repositories bundled together.
    """

    def __init__(self) -> None:
        self.events = InMemoryEventRepository()
        self.bookings = InMemoryBookingRepository()
        self.guests = InMemoryGuestRepository()
        self.contacts = InMemoryContactRepository()

    @classmethod
    def load_fixture(
        cls,
        data_file: Path,
        validator: Optional[ScheduleValidator] = None,
    ) -> "InMemoryStore":
        """
        Load events, schedules and bookings from a YAML file.

        Expected layout::

            events:
              - id: 1
                name: Intro call
                schedule: {monday: {enabled: true, startTime: "09:00", endTime: "17:00"}}
                booking_options:
                  - {id: 1, name: Short, duration_minutes: 30}
            bookings:
              - {event_id: 1, start: "2024-11-25T10:00:00+00:00", end: "2024-11-25T11:00:00+00:00"}

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not valid
        """
        if not data_file.exists():
            raise FileNotFoundError(f"Data file not found: {data_file}")

        try:
            with open(data_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Data file must contain a mapping at the root level.")

        return cls.from_dict(data, validator)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        validator: Optional[ScheduleValidator] = None,
    ) -> "InMemoryStore":
        validator = validator or ScheduleValidator()
        store = cls()

        try:
            for raw_event in data.get("events") or []:
                event_id = int(raw_event["id"])
                options = [
                    BookingOption(
                        id=int(option["id"]),
                        event_id=event_id,
                        name=str(option["name"]),
                        duration_minutes=int(option["duration_minutes"]),
                        active=bool(option.get("active", True)),
                    )
                    for option in raw_event.get("booking_options") or []
                ]
                store.events.add_event(
                    Event(
                        id=event_id,
                        name=str(raw_event.get("name", f"Event {event_id}")),
                        organization_id=raw_event.get("organization_id"),
                        deleted=bool(raw_event.get("deleted", False)),
                        booking_options=options,
                    )
                )
                if "schedule" in raw_event:
                    store.events.save_schedule(event_id, validator.normalize(raw_event["schedule"]))

            for raw_booking in data.get("bookings") or []:
                timezone = raw_booking.get("timezone")
                cancelled = bool(raw_booking.get("cancelled", False))
                status = BookingStatus(raw_booking.get("status", "cancelled" if cancelled else "confirmed"))
                store.bookings.add(
                    Booking(
                        event_id=int(raw_booking["event_id"]),
                        start_time=normalize_timestamp(raw_booking["start"], timezone),
                        end_time=normalize_timestamp(raw_booking["end"], timezone),
                        status=status,
                        cancelled=cancelled,
                        form_data=dict(raw_booking.get("form_data") or {}),
                    )
                )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed fixture entry: {exc}") from exc

        return store
