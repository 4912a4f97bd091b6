"""
Shared fixtures.

All dates are in the week of 2024-11-25, which is a Monday.
"""

import copy

import pytest

from eventbooking.adapters.memory import InMemoryStore
from eventbooking.domain.models import BookingOption, Event
from eventbooking.domain.schedule_validator import ScheduleValidator
from eventbooking.services.facade import BookingEngine

WEEKDAY_HOURS = {"enabled": True, "startTime": "09:00", "endTime": "17:00"}

RAW_SCHEDULE = {
    "monday": {
        **WEEKDAY_HOURS,
        "breaks": [{"startTime": "12:00", "endTime": "13:00"}],
    },
    "tuesday": dict(WEEKDAY_HOURS),
    "wednesday": dict(WEEKDAY_HOURS),
    "thursday": dict(WEEKDAY_HOURS),
    "friday": dict(WEEKDAY_HOURS),
    "saturday": {"enabled": False},
    "sunday": {"enabled": False},
}


@pytest.fixture
def schedule():
    return ScheduleValidator().normalize(RAW_SCHEDULE)


@pytest.fixture
def raw_schedule():
    return copy.deepcopy(RAW_SCHEDULE)


@pytest.fixture
def store():
    store = InMemoryStore()
    store.events.add_event(
        Event(
            id=1,
            name="Intro call",
            booking_options=[
                BookingOption(id=1, event_id=1, name="Short", duration_minutes=30),
                BookingOption(id=2, event_id=1, name="Retired", duration_minutes=90, active=False),
            ],
        )
    )
    store.events.add_event(Event(id=2, name="Workshop"))
    store.events.add_event(Event(id=3, name="Gone", deleted=True))
    return store


@pytest.fixture
def engine(store):
    engine = BookingEngine(store.events, store.bookings, store.guests, store.contacts)
    engine.set_event_schedule(1, RAW_SCHEDULE)
    return engine


@pytest.fixture
def booking_request():
    def _build(start="2024-11-25T10:00:00+00:00", end="2024-11-25T10:30:00+00:00", **extra):
        return {"event_id": 1, "start_time": start, "end_time": end, **extra}
    return _build
