"""
Application service for the booking lifecycle.

Every operation validates its whole input before the first write, so a
rejected request never leaves partial state behind. The availability check
and the write that follows run inside the booking repository's per-event
transaction, which keeps two concurrent requests from both claiming a slot.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime

from ..domain.exceptions import (
    BookingEngineError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    SchedulingConflictError,
)
from ..domain.models import Booking, BookingStatus, Event, Guest
from ..domain.timeutils import CANONICAL_TIMEZONE, normalize_timestamp
from ..schemas import BookingChanges, BookingRequest, GuestInput, parse_request
from .contact_service import ContactService
from .repositories import BookingRepository, EventRepository, GuestRepository, require_event
from .schedule_service import ScheduleService

logger = logging.getLogger(__name__)


class BookingService:
    """
    Creates, updates, cancels and deletes bookings.

    State machine per booking:
        confirmed -> cancelled        (cancel, or a status/flag update)
        confirmed -> confirmed        (time/status/form data edits, re-validated)
        any       -> deleted          (hard removal, guests cascade)
    """

    def __init__(
        self,
        events: EventRepository,
        bookings: BookingRepository,
        guests: GuestRepository,
        contacts: ContactService,
        schedules: ScheduleService,
        *,
        timezone: str = CANONICAL_TIMEZONE,
    ) -> None:
        self._events = events
        self._bookings = bookings
        self._guests = guests
        self._contacts = contacts
        self._schedules = schedules
        self.timezone = timezone

    def create(self, data: Any) -> Booking:
        """
        Book a time range for an event.

        Args:
            data: BookingRequest or a mapping with the same fields

        Returns:
            The persisted booking

        Raises:
            InvalidInputError: If the request is malformed
            NotFoundError: If the event does not exist
            SchedulingConflictError: If the range is not available
            InternalError: If storage fails
        """
        request = parse_request(BookingRequest, data)
        event = require_event(self._events, request.event_id)
        start, end = self._normalize_range(request.start_time, request.end_time, request.timezone)
        option_id = self._resolve_booking_option(event, request.booking_option_id)

        with self._storage("create booking"):
            with self._bookings.transaction(event.id):
                self._ensure_available(event.id, start, end)

                now = pendulum.now(self.timezone)
                booking = self._bookings.add(
                    Booking(
                        event_id=event.id,
                        start_time=start,
                        end_time=end,
                        status=BookingStatus.CONFIRMED,
                        form_data=dict(request.form_data),
                        booking_option_id=option_id,
                        created=now,
                        updated=now,
                    )
                )
                self._add_guests(booking, request.guests)

        logger.info(
            "Booking %s created for event %s (%s - %s)",
            booking.id,
            event.id,
            start.to_iso8601_string(),
            end.to_iso8601_string(),
        )
        return booking

    def update(self, booking_id: int, data: Any) -> Booking:
        """
        Apply a partial update to a booking.

        A time change is re-validated against the schedule and the other
        bookings; if it fails nothing is modified.

        Raises:
            InvalidInputError: If the changes are malformed
            NotFoundError: If the booking or its event does not exist
            SchedulingConflictError: If the new range is not available
            InternalError: If storage fails
        """
        changes = parse_request(BookingChanges, data)
        booking = self.get_booking(booking_id)
        event = require_event(self._events, booking.event_id)

        new_range = self._changed_range(booking, changes)
        option_id = booking.booking_option_id
        if changes.booking_option_id is not None:
            option_id = self._resolve_booking_option(event, changes.booking_option_id)
            if option_id is None:
                option_id = booking.booking_option_id

        status, cancelled = self._resolve_state(booking, changes)
        reactivating = (
            not booking.is_active()
            and not cancelled
            and status != BookingStatus.CANCELLED
        )

        with self._storage("update booking"):
            with self._bookings.transaction(event.id):
                if new_range is not None or reactivating:
                    start, end = new_range or (booking.start_time, booking.end_time)
                    self._ensure_available(event.id, start, end, excluding=booking.id)

                if new_range is not None:
                    booking.start_time, booking.end_time = new_range
                booking.status = status
                booking.cancelled = cancelled
                booking.booking_option_id = option_id
                if changes.form_data is not None:
                    booking.form_data = dict(changes.form_data)
                booking.updated = pendulum.now(self.timezone)

                self._bookings.save(booking)

                if changes.guests is not None:
                    self._guests.delete_for_booking(booking.id)
                    self._add_guests(booking, changes.guests)

        logger.info("Booking %s updated", booking.id)
        return booking

    def cancel(self, booking_id: int) -> Booking:
        """
        Soft-cancel a booking. Cancelling twice is a no-op.

        Raises:
            NotFoundError: If the booking does not exist
            InternalError: If storage fails
        """
        booking = self.get_booking(booking_id)

        if booking.cancelled and booking.status == BookingStatus.CANCELLED:
            logger.debug("Booking %s already cancelled", booking_id)
            return booking

        booking.cancelled = True
        booking.status = BookingStatus.CANCELLED
        booking.updated = pendulum.now(self.timezone)

        with self._storage("cancel booking"):
            self._bookings.save(booking)

        logger.info("Booking %s cancelled", booking_id)
        return booking

    def delete(self, booking_id: int) -> None:
        """
        Remove a booking and its guests permanently.

        Raises:
            NotFoundError: If the booking does not exist
            InternalError: If storage fails
        """
        booking = self.get_booking(booking_id)

        with self._storage("delete booking"):
            self._guests.delete_for_booking(booking.id)
            self._bookings.delete(booking.id)

        logger.info("Booking %s deleted", booking_id)

    def get_booking(self, booking_id: int) -> Booking:
        """
        Raises:
            NotFoundError: If the booking does not exist
        """
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def get_bookings_by_event(self, event_id: int, include_cancelled: bool = False) -> List[Booking]:
        require_event(self._events, event_id)
        return self._bookings.list_for_event(event_id, include_cancelled=include_cancelled)

    def get_bookings_by_date_range(
        self,
        event_id: int,
        start: Any,
        end: Any,
        include_cancelled: bool = False,
    ) -> List[Booking]:
        """Bookings of an event whose start falls inside [start, end]."""
        require_event(self._events, event_id)
        range_start, range_end = self._normalize_range(start, end, None)
        return self._bookings.list_for_event(
            event_id,
            include_cancelled=include_cancelled,
            start=range_start,
            end=range_end,
        )

    def get_guests(self, booking_id: int) -> List[Guest]:
        booking = self.get_booking(booking_id)
        return self._guests.list_for_booking(booking.id)

    def _normalize_range(
        self,
        start: Any,
        end: Any,
        timezone: Optional[str],
    ) -> Tuple[DateTime, DateTime]:
        try:
            start_dt = normalize_timestamp(start, timezone, target=self.timezone)
            end_dt = normalize_timestamp(end, timezone, target=self.timezone)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

        if start_dt >= end_dt:
            raise InvalidInputError("End time must be after start time")

        return start_dt, end_dt

    def _changed_range(
        self,
        booking: Booking,
        changes: BookingChanges,
    ) -> Optional[Tuple[DateTime, DateTime]]:
        has_start = changes.start_time is not None
        has_end = changes.end_time is not None

        if has_start != has_end:
            raise InvalidInputError("Start and end time must be changed together")
        if not has_start:
            return None

        start, end = self._normalize_range(changes.start_time, changes.end_time, changes.timezone)
        if start == booking.start_time and end == booking.end_time:
            return None
        return start, end

    @staticmethod
    def _resolve_state(booking: Booking, changes: BookingChanges) -> Tuple[BookingStatus, bool]:
        status = booking.status
        cancelled = booking.cancelled

        if changes.status is not None:
            status = changes.status
            cancelled = status == BookingStatus.CANCELLED

        if changes.cancelled is not None:
            cancelled = changes.cancelled
            if cancelled:
                status = BookingStatus.CANCELLED
            elif status == BookingStatus.CANCELLED:
                status = BookingStatus.CONFIRMED

        return status, cancelled

    @staticmethod
    def _resolve_booking_option(event: Event, option_id: Optional[int]) -> Optional[int]:
        # Options from other events or inactive ones are ignored
        if option_id is None:
            return None
        option = event.find_booking_option(option_id)
        if option is None or not option.active:
            logger.warning("Ignoring booking option %s for event %s", option_id, event.id)
            return None
        return option.id

    def _ensure_available(
        self,
        event_id: int,
        start: datetime,
        end: datetime,
        excluding: Optional[int] = None,
    ) -> None:
        bookings = self._bookings.list_for_event(event_id)
        reason = self._schedules.unavailability_reason(event_id, start, end, bookings, excluding)
        if reason is not None:
            logger.info("Rejected %s - %s for event %s: %s", start, end, event_id, reason)
            raise SchedulingConflictError(reason)

    def _add_guests(self, booking: Booking, guests: Sequence[GuestInput]) -> None:
        now = pendulum.now(self.timezone)
        for guest in guests:
            self._guests.add(
                Guest(
                    booking_id=booking.id,
                    name=guest.name,
                    email=guest.email,
                    phone=guest.phone,
                )
            )
            self._contacts.update_or_create(
                name=guest.name,
                email=guest.email,
                phone=guest.phone,
                last_event_id=booking.event_id,
                last_interaction=now,
            )

    @contextmanager
    def _storage(self, operation: str) -> Iterator[None]:
        """Translate collaborator failures into InternalError."""
        try:
            yield
        except BookingEngineError:
            raise
        except Exception as exc:
            logger.exception("Storage failure while trying to %s", operation)
            raise InternalError(f"Could not {operation}") from exc
