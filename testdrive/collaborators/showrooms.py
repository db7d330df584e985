"""
Showroom directory.

In production, showrooms and their weekly hours live in the
showroom-management service; the booking core only reads them.
"""

import logging
from datetime import date
from typing import Optional, Protocol

from testdrive.schemas.showroom_schema import OperatingHours, Showroom

logger = logging.getLogger(__name__)


class ShowroomProvider(Protocol):
    def get_showroom(self, showroom_id: str) -> Optional[Showroom]: ...

    def get_operating_hours(self, showroom_id: str, on: date) -> Optional[OperatingHours]: ...


class InMemoryShowrooms:
    """Showroom records held in a dict keyed by id."""

    def __init__(self) -> None:
        self._showrooms: dict[str, Showroom] = {}

    def add(self, showroom: Showroom) -> Showroom:
        self._showrooms[showroom.id] = showroom
        logger.debug("Showroom registered: %s", showroom.id)
        return showroom

    def get_showroom(self, showroom_id: str) -> Optional[Showroom]:
        return self._showrooms.get(showroom_id)

    def get_operating_hours(self, showroom_id: str, on: date) -> Optional[OperatingHours]:
        """Hours for the weekday of ``on``; None for unknown showrooms or days."""
        showroom = self._showrooms.get(showroom_id)
        if showroom is None:
            return None
        return showroom.hours_for(on.weekday())
