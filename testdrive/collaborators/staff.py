"""
Staff roster and per-day availability.

Schedules are owned by the scheduling side and are read-only input here.
At most one availability window is kept per (staff member, date).
"""

import logging
from datetime import date
from typing import Protocol

from testdrive.schemas.showroom_schema import (
    AvailabilityWindow,
    StaffAvailability,
    StaffMember,
)

logger = logging.getLogger(__name__)


class StaffScheduleProvider(Protocol):
    def get_available_staff(self, showroom_id: str, on: date) -> list[StaffAvailability]: ...

    def get_active_staff(self, showroom_id: str) -> list[StaffMember]: ...


class InMemoryStaffSchedule:
    def __init__(self) -> None:
        self._members: dict[str, StaffMember] = {}
        self._windows: dict[tuple[str, date], AvailabilityWindow] = {}

    def add_member(self, member: StaffMember) -> StaffMember:
        self._members[member.id] = member
        return member

    def set_availability(
        self, staff_id: str, on: date, available_from: str, available_to: str
    ) -> None:
        """Record (or replace) the staff member's window for ``on``."""
        if staff_id not in self._members:
            raise KeyError(f"Unknown staff member: {staff_id}")
        self._windows[(staff_id, on)] = AvailabilityWindow(
            available_from=available_from, available_to=available_to
        )
        logger.debug("Availability set: %s on %s %s-%s", staff_id, on, available_from, available_to)

    def get_available_staff(self, showroom_id: str, on: date) -> list[StaffAvailability]:
        """Active staff of the showroom who have a window on ``on``."""
        result = []
        for member in self.get_active_staff(showroom_id):
            window = self._windows.get((member.id, on))
            if window is not None:
                result.append(StaffAvailability(staff_id=member.id, windows=[window]))
        return result

    def get_active_staff(self, showroom_id: str) -> list[StaffMember]:
        return [
            m for m in self._members.values()
            if m.showroom_id == showroom_id and m.is_active
        ]
