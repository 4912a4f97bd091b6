"""
Service layer helpers that orchestrate repositories and domain logic.
"""

from .booking_service import BookingService
from .contact_service import ContactService
from .facade import BookingEngine
from .repositories import (
    BookingRepository,
    ContactRepository,
    EventRepository,
    GuestRepository,
    require_event,
)
from .schedule_service import ScheduleService

__all__ = [
    "BookingEngine",
    "BookingRepository",
    "BookingService",
    "ContactRepository",
    "ContactService",
    "EventRepository",
    "GuestRepository",
    "ScheduleService",
    "require_event",
]
