"""
Detects collisions between a candidate time range and existing bookings.
"""

from typing import Iterable, List, Optional

from .models import Booking, TimeSlot


class BookingOverlapChecker:
    """
    Half-open interval overlap against the active bookings of an event.

    A candidate [s, e) collides with a booking [bs, be) when s < be and e > bs.
    This single test covers a candidate starting inside, ending inside, or
    fully containing an existing booking, and leaves adjacent ranges free.
    """

    def overlaps(
        self,
        candidate: TimeSlot,
        existing: Iterable[Booking],
        excluding: Optional[int] = None
    ) -> bool:
        """Return True on the first active booking that overlaps the candidate."""
        for booking in self._active(existing, excluding):
            if candidate.start < booking.end_time and candidate.end > booking.start_time:
                return True
        return False

    def find_conflicts(
        self,
        candidate: TimeSlot,
        existing: Iterable[Booking],
        excluding: Optional[int] = None
    ) -> List[Booking]:
        """Return every active booking that overlaps the candidate."""
        return [
            booking for booking in self._active(existing, excluding)
            if candidate.start < booking.end_time and candidate.end > booking.start_time
        ]

    @staticmethod
    def _active(existing: Iterable[Booking], excluding: Optional[int]) -> Iterable[Booking]:
        for booking in existing:
            if not booking.is_active():
                continue
            if excluding is not None and booking.id == excluding:
                continue
            yield booking
