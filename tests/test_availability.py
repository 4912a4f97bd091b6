"""
Tests for the availability engine.
"""

from datetime import date

import pendulum
import pytest

from eventbooking.domain.availability import (
    REASON_BOOKED,
    REASON_BREAK,
    REASON_DAY_DISABLED,
    REASON_INVALID_RANGE,
    REASON_OUTSIDE_HOURS,
    AvailabilityEngine,
)
from eventbooking.domain.models import Booking, BookingStatus
from eventbooking.domain.schedule_validator import ScheduleValidator

MONDAY = date(2024, 11, 25)
TUESDAY = date(2024, 11, 26)


def at(value: str, tz: str = "UTC") -> pendulum.DateTime:
    return pendulum.parse(value, tz=tz)


def booking(start: str, end: str, booking_id: int = 1, **kwargs) -> Booking:
    return Booking(event_id=1, start_time=at(start), end_time=at(end), id=booking_id, **kwargs)


class TestIsAvailable:
    """Tests for single-range checks."""

    def test_working_hours_bounds(self, schedule):
        """Both ends must lie inside the working hours."""
        engine = AvailabilityEngine()

        assert engine.is_available(schedule, at("2024-11-26 09:00"), at("2024-11-26 09:30"))
        assert not engine.is_available(schedule, at("2024-11-26 08:30"), at("2024-11-26 09:00"))
        assert not engine.is_available(schedule, at("2024-11-26 16:30"), at("2024-11-26 17:30"))
        assert engine.is_available(schedule, at("2024-11-26 16:30"), at("2024-11-26 17:00"))

    def test_break_is_half_open(self, schedule):
        """Monday has a 12:00-13:00 break."""
        engine = AvailabilityEngine()

        assert not engine.is_available(schedule, at("2024-11-25 11:30"), at("2024-11-25 12:30"))
        assert not engine.is_available(schedule, at("2024-11-25 12:00"), at("2024-11-25 13:00"))
        assert engine.is_available(schedule, at("2024-11-25 13:00"), at("2024-11-25 13:30"))
        assert engine.is_available(schedule, at("2024-11-25 11:30"), at("2024-11-25 12:00"))

    def test_disabled_day_rejects_everything(self, schedule):
        """Saturday is disabled; no range on it is available."""
        engine = AvailabilityEngine()

        for hour in range(0, 23):
            start = pendulum.datetime(2024, 11, 30, hour, 0, tz="UTC")
            assert not engine.is_available(schedule, start, start.add(minutes=30))

    def test_existing_booking_blocks(self, schedule):
        engine = AvailabilityEngine()
        existing = [booking("2024-11-26 10:00", "2024-11-26 11:00")]

        assert not engine.is_available(schedule, at("2024-11-26 10:30"), at("2024-11-26 10:45"), existing)
        assert engine.is_available(schedule, at("2024-11-26 11:00"), at("2024-11-26 11:30"), existing)
        assert engine.is_available(schedule, at("2024-11-26 09:00"), at("2024-11-26 10:00"), existing)

    def test_cancelled_booking_does_not_block(self, schedule):
        engine = AvailabilityEngine()
        existing = [
            booking("2024-11-26 10:00", "2024-11-26 11:00", cancelled=True, status=BookingStatus.CANCELLED)
        ]

        assert engine.is_available(schedule, at("2024-11-26 10:00"), at("2024-11-26 11:00"), existing)

    def test_excluded_booking_does_not_block(self, schedule):
        """A booking being moved is not compared against itself."""
        engine = AvailabilityEngine()
        existing = [booking("2024-11-26 10:00", "2024-11-26 11:00", booking_id=5)]

        assert engine.is_available(
            schedule, at("2024-11-26 10:30"), at("2024-11-26 11:30"), existing, excluding=5
        )

    def test_engine_timezone_decides_the_day(self):
        """Hours and weekday are read in the engine's zone."""
        schedule = ScheduleValidator().normalize({})
        engine = AvailabilityEngine(timezone="Europe/Berlin")

        # 08:30 UTC is 09:30 in Berlin (CET)
        assert engine.is_available(schedule, at("2024-11-25 08:30"), at("2024-11-25 09:00"))
        assert not AvailabilityEngine().is_available(schedule, at("2024-11-25 08:30"), at("2024-11-25 09:00"))

        # Sunday 23:30 UTC is Monday 00:30 in Berlin, outside hours either way
        assert not engine.is_available(schedule, at("2024-11-24 23:30"), at("2024-11-25 00:00"))


class TestUnavailabilityReason:
    """Each failed check reports its own reason."""

    @pytest.mark.parametrize(
        "start, end, reason",
        [
            ("2024-11-26 10:00", "2024-11-26 10:00", REASON_INVALID_RANGE),
            ("2024-11-26 11:00", "2024-11-26 10:00", REASON_INVALID_RANGE),
            ("2024-11-30 10:00", "2024-11-30 10:30", REASON_DAY_DISABLED),
            ("2024-11-26 07:00", "2024-11-26 08:00", REASON_OUTSIDE_HOURS),
            ("2024-11-25 12:15", "2024-11-25 12:45", REASON_BREAK),
            ("2024-11-26 14:00", "2024-11-26 14:30", REASON_BOOKED),
            ("2024-11-26 15:00", "2024-11-26 15:30", None),
        ],
    )
    def test_reason(self, schedule, start, end, reason):
        existing = [booking("2024-11-26 14:00", "2024-11-26 15:00")]

        assert AvailabilityEngine().unavailability_reason(schedule, at(start), at(end), existing) == reason


class TestEnumerateSlots:
    """Tests for slot tiling."""

    def test_full_day_yields_sixteen_slots(self, schedule):
        """09:00-17:00 in 30 minute steps."""
        slots = AvailabilityEngine().enumerate_slots(schedule, TUESDAY, 30)

        assert len(slots) == 16
        assert slots[0].start == at("2024-11-26 09:00")
        assert slots[0].end == at("2024-11-26 09:30")
        assert slots[-1].start == at("2024-11-26 16:30")
        assert slots[-1].end == at("2024-11-26 17:00")

        for previous, current in zip(slots, slots[1:]):
            assert previous.start < current.start
            assert not previous.overlaps(current)

    def test_break_removes_exactly_two_slots(self, schedule):
        """12:00-12:30 and 12:30-13:00 fall inside Monday's break."""
        slots = AvailabilityEngine().enumerate_slots(schedule, MONDAY, 30)
        starts = [slot.start.format("HH:mm") for slot in slots]

        assert len(slots) == 14
        assert "11:30" in starts
        assert "12:00" not in starts
        assert "12:30" not in starts
        assert "13:00" in starts

    def test_partial_trailing_slot_is_dropped(self, schedule):
        """Eight hours do not fit a whole number of 90 minute slots."""
        slots = AvailabilityEngine().enumerate_slots(schedule, TUESDAY, 90)

        assert len(slots) == 5
        assert slots[-1].end == at("2024-11-26 16:30")

    def test_disabled_day_has_no_slots(self, schedule):
        assert AvailabilityEngine().enumerate_slots(schedule, date(2024, 11, 30), 30) == []

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_has_no_slots(self, schedule, duration):
        assert AvailabilityEngine().enumerate_slots(schedule, TUESDAY, duration) == []

    def test_slots_in_engine_timezone(self, schedule):
        slots = AvailabilityEngine(timezone="Europe/Berlin").enumerate_slots(schedule, TUESDAY, 60)

        assert slots[0].start == at("2024-11-26 09:00", tz="Europe/Berlin")
        assert slots[0].start.in_timezone("UTC").hour == 8

    def test_free_slots_drop_booked_ones(self, schedule):
        existing = [
            booking("2024-11-26 10:00", "2024-11-26 11:00"),
            booking("2024-11-26 14:00", "2024-11-26 14:30", booking_id=2, cancelled=True),
        ]

        free = AvailabilityEngine().free_slots(schedule, TUESDAY, 30, existing)
        starts = [slot.start.format("HH:mm") for slot in free]

        assert len(free) == 14
        assert "10:00" not in starts
        assert "10:30" not in starts
        assert "14:00" in starts


class TestOverlappingBreaks:
    """Overlapping breaks block the union of their ranges."""

    @pytest.fixture
    def schedule(self):
        return ScheduleValidator().normalize({
            "monday": {
                "enabled": True,
                "startTime": "09:00",
                "endTime": "17:00",
                "breaks": [
                    {"startTime": "12:00", "endTime": "13:00"},
                    {"startTime": "12:30", "endTime": "14:00"},
                ],
            }
        })

    def test_is_available(self, schedule):
        engine = AvailabilityEngine()

        assert not engine.is_available(schedule, at("2024-11-25 12:45"), at("2024-11-25 13:15"))
        assert not engine.is_available(schedule, at("2024-11-25 13:30"), at("2024-11-25 14:00"))
        assert engine.is_available(schedule, at("2024-11-25 14:00"), at("2024-11-25 14:30"))
        assert engine.is_available(schedule, at("2024-11-25 11:30"), at("2024-11-25 12:00"))

    def test_enumerate_slots(self, schedule):
        starts = [slot.start.format("HH:mm") for slot in AvailabilityEngine().enumerate_slots(schedule, MONDAY, 30)]

        assert len(starts) == 12
        assert "11:30" in starts
        assert "14:00" in starts
        for blocked in ("12:00", "12:30", "13:00", "13:30"):
            assert blocked not in starts


class TestMidnightCrossing:
    """
    A range spanning midnight is judged by its start date and the time of
    day of both ends only.
    """

    @pytest.fixture
    def schedule(self):
        all_day = {"enabled": True, "startTime": "00:00", "endTime": "23:59:59"}
        return ScheduleValidator().normalize({"thursday": all_day, "friday": all_day, "saturday": {"enabled": False}})

    def test_range_into_next_day_is_accepted(self, schedule):
        engine = AvailabilityEngine()

        assert engine.is_available(schedule, at("2024-11-28 23:00"), at("2024-11-29 00:30"))

    def test_next_day_is_not_consulted(self, schedule):
        """Friday 23:00 to Saturday 00:30 passes although Saturday is closed."""
        engine = AvailabilityEngine()

        assert engine.is_available(schedule, at("2024-11-29 23:00"), at("2024-11-30 00:30"))
        assert not engine.is_available(schedule, at("2024-11-30 00:00"), at("2024-11-30 00:30"))

    def test_enumerate_slots_stays_within_the_day(self, schedule):
        slots = AvailabilityEngine().enumerate_slots(schedule, date(2024, 11, 29), 60)

        assert len(slots) == 23
        assert slots[-1].end == at("2024-11-29 23:00")
