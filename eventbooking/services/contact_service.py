"""
Keeps the contact book in sync with the people who book events.
"""

import logging
from typing import List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import InvalidInputError
from ..domain.models import Contact
from .repositories import ContactRepository

logger = logging.getLogger(__name__)


class ContactService:
    """Upserts contacts by email."""

    def __init__(self, contacts: ContactRepository) -> None:
        self._contacts = contacts

    def find_by_email(self, email: str) -> Optional[Contact]:
        return self._contacts.find_by_email(email.strip())

    def get_contacts_by_last_event(self, event_id: int) -> List[Contact]:
        return self._contacts.list_by_last_event(event_id)

    def update_or_create(
        self,
        *,
        name: str,
        email: str,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
        last_event_id: Optional[int] = None,
        last_interaction: Optional[DateTime] = None,
    ) -> Contact:
        """
        Update the contact with this email, or create it.

        Only the fields that are provided overwrite an existing contact.

        Raises:
            InvalidInputError: If name or email is missing
        """
        email = (email or "").strip()
        name = (name or "").strip()

        if not email:
            raise InvalidInputError("Email is required")
        if not name:
            raise InvalidInputError("Contact name is required")

        interaction = last_interaction or pendulum.now("UTC")
        contact = self._contacts.find_by_email(email)

        if contact is None:
            contact = self._contacts.add(
                Contact(
                    name=name,
                    email=email,
                    phone=phone,
                    notes=notes,
                    last_event_id=last_event_id,
                    last_interaction=interaction,
                )
            )
            logger.debug("Created contact %s", email)
            return contact

        contact.name = name
        if phone is not None:
            contact.phone = phone
        if notes is not None:
            contact.notes = notes
        if last_event_id is not None:
            contact.last_event_id = last_event_id
        contact.last_interaction = interaction

        self._contacts.save(contact)
        logger.debug("Updated contact %s", email)
        return contact
