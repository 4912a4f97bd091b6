"""
Adapters layer - Storage implementations of the repository protocols.
"""

from .memory import (
    InMemoryBookingRepository,
    InMemoryContactRepository,
    InMemoryEventRepository,
    InMemoryGuestRepository,
    InMemoryStore,
)

__all__ = [
    "InMemoryBookingRepository",
    "InMemoryContactRepository",
    "InMemoryEventRepository",
    "InMemoryGuestRepository",
    "InMemoryStore",
]
