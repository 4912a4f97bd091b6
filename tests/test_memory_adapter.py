"""
Tests for the in-memory store and fixture loading.
"""

import pendulum
import pytest

from eventbooking.adapters.memory import InMemoryBookingRepository, InMemoryStore
from eventbooking.domain.models import Booking, BookingStatus

FIXTURE = """
events:
  - id: 1
    name: Intro call
    booking_options:
      - {id: 1, name: Short, duration_minutes: 30}
      - {id: 2, name: Old, duration_minutes: 60, active: false}
    schedule:
      Monday:
        enabled: true
        startTime: "09:00"
        endTime: "12:00"
        pauses:
          - {startTime: "10:00", endTime: "10:15"}
  - id: 2
    name: Workshop
    deleted: true

bookings:
  - {event_id: 1, start: "2024-11-25T09:00:00+00:00", end: "2024-11-25T09:30:00+00:00"}
  - {event_id: 1, start: "2024-11-25 11:00", end: "2024-11-25 11:30", timezone: Europe/Berlin}
  - {event_id: 1, start: "2024-11-25T11:00:00+00:00", end: "2024-11-25T11:30:00+00:00", cancelled: true}
"""


def _booking(start: str, end: str, **kwargs) -> Booking:
    return Booking(
        event_id=1,
        start_time=pendulum.parse(start, tz="UTC"),
        end_time=pendulum.parse(end, tz="UTC"),
        **kwargs
    )


class TestInMemoryBookingRepository:
    """Tests for the booking repository."""

    def test_reads_are_copies(self):
        repo = InMemoryBookingRepository()
        booking = repo.add(_booking("2024-11-25 09:00", "2024-11-25 09:30"))

        loaded = repo.get(booking.id)
        loaded.form_data["changed"] = True

        assert repo.get(booking.id).form_data == {}

    def test_list_filters_and_sorts(self):
        repo = InMemoryBookingRepository()
        late = repo.add(_booking("2024-11-26 09:00", "2024-11-26 09:30"))
        early = repo.add(_booking("2024-11-25 09:00", "2024-11-25 09:30"))
        gone = repo.add(_booking("2024-11-25 10:00", "2024-11-25 10:30", cancelled=True, status=BookingStatus.CANCELLED))
        repo.add(Booking(event_id=2, start_time=early.start_time, end_time=early.end_time))

        assert [b.id for b in repo.list_for_event(1)] == [early.id, late.id]
        assert [b.id for b in repo.list_for_event(1, include_cancelled=True)] == [early.id, gone.id, late.id]
        assert [b.id for b in repo.list_for_event(1, start=late.start_time)] == [late.id]

    def test_save_unknown_booking(self):
        with pytest.raises(KeyError):
            InMemoryBookingRepository().save(_booking("2024-11-25 09:00", "2024-11-25 09:30", id=9))

    def test_transaction_is_reentrant(self):
        repo = InMemoryBookingRepository()

        with repo.transaction(1):
            with repo.transaction(1):
                repo.add(_booking("2024-11-25 09:00", "2024-11-25 09:30"))

        assert len(repo.list_for_event(1)) == 1


class TestLoadFixture:
    """Tests for InMemoryStore.load_fixture."""

    def test_load_fixture(self, tmp_path):
        data_file = tmp_path / "data.yaml"
        data_file.write_text(FIXTURE, encoding="utf-8")

        store = InMemoryStore.load_fixture(data_file)

        event = store.events.get_event(1)
        assert event.name == "Intro call"
        assert [o.active for o in event.booking_options] == [True, False]
        assert store.events.get_event(2).deleted is True

        schedule = store.events.get_schedule(1)
        assert schedule["monday"]["endTime"] == "12:00:00"
        assert schedule["monday"]["breaks"] == [{"startTime": "10:00:00", "endTime": "10:15:00"}]
        assert store.events.get_schedule(2) is None

        active = store.bookings.list_for_event(1)
        assert [b.start_time for b in active] == [
            pendulum.datetime(2024, 11, 25, 9, 0, tz="UTC"),
            pendulum.datetime(2024, 11, 25, 10, 0, tz="UTC"),
        ]
        cancelled = [b for b in store.bookings.list_for_event(1, include_cancelled=True) if b.cancelled]
        assert cancelled[0].status == BookingStatus.CANCELLED

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InMemoryStore.load_fixture(tmp_path / "nope.yaml")

    @pytest.mark.parametrize(
        "content",
        [
            "events: [unclosed\n",
            "- a list\n",
            "events:\n  - name: no id\n",
            "bookings:\n  - {event_id: 1, start: '2024-11-25T09:00:00Z'}\n",
            "bookings:\n  - {event_id: 1, start: 'whenever', end: 'later'}\n",
        ],
    )
    def test_malformed_file(self, tmp_path, content):
        data_file = tmp_path / "data.yaml"
        data_file.write_text(content, encoding="utf-8")

        with pytest.raises(ValueError):
            InMemoryStore.load_fixture(data_file)

    def test_from_dict_with_normalized_schedule(self, schedule):
        store = InMemoryStore.from_dict({"events": [{"id": 5, "name": "x", "schedule": schedule.to_dict()}]})

        assert store.events.get_schedule(5)["monday"]["breaks"][0]["startTime"] == "12:00:00"
        assert store.events.get_schedule(5)["saturday"]["enabled"] is False
