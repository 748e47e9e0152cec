"""Emergency contact registry. Referenced by name when SOS fires."""

import logging
from typing import List, Optional

from evguard import config
from evguard.logbook import LogAggregator
from evguard.models import ContactIn, EmergencyContact, new_id

logger = logging.getLogger(__name__)


class ContactRegistry:

    def __init__(self, logbook: LogAggregator, seed_defaults: bool = True) -> None:
        self._logbook = logbook
        self._contacts: List[EmergencyContact] = []
        if seed_defaults:
            for c in config.DEFAULT_CONTACTS:
                self._contacts.append(EmergencyContact(id=new_id(), **c))

    @property
    def contacts(self) -> List[EmergencyContact]:
        """Read-only copy for display."""
        return [c.model_copy() for c in self._contacts]

    @property
    def names(self) -> List[str]:
        return [c.name for c in self._contacts]

    def __len__(self) -> int:
        return len(self._contacts)

    def add(self, contact: ContactIn) -> Optional[EmergencyContact]:
        """Append a contact; silently ignored when name or phone is blank."""
        name = contact.name.strip()
        phone = contact.phone.strip()
        if not name or not phone:
            logger.debug("[CONTACTS] Rejected contact with missing name/phone")
            return None
        relation = contact.relation.strip() or config.DEFAULT_RELATION
        created = EmergencyContact(id=new_id(), name=name, relation=relation, phone=phone)
        self._contacts.append(created)
        self._logbook.add(
            "SAFETY", "INFO",
            f"Contact List Updated: Added {created.name} ({created.relation}).",
        )
        return created

    def remove(self, contact_id: str) -> bool:
        before = len(self._contacts)
        self._contacts = [c for c in self._contacts if c.id != contact_id]
        return len(self._contacts) != before
