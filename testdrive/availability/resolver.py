"""
Slot availability for one showroom day.

Combines generated candidate intervals with active bookings, staff
windows and live holds. Every call is a fresh read-only snapshot; nothing
is cached between calls, so a slot shown as available may be claimed by
another client moments later. That race is settled at commit time.
"""

import logging
from datetime import date
from typing import Optional

from testdrive.availability.holds import HoldLedger
from testdrive.availability.slot_generator import generate_day_slots
from testdrive.booking.repository import BookingRepository
from testdrive.collaborators.showrooms import ShowroomProvider
from testdrive.collaborators.staff import StaffScheduleProvider
from testdrive.config import settings
from testdrive.schemas.slot_schema import SlotStatus, TimeSlot

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    def __init__(
        self,
        showrooms: ShowroomProvider,
        staff: StaffScheduleProvider,
        bookings: BookingRepository,
        holds: HoldLedger,
        slot_duration: int = settings.scheduling.slot_duration_minutes,
        slot_buffer: int = settings.scheduling.slot_buffer_minutes,
    ) -> None:
        self._showrooms = showrooms
        self._staff = staff
        self._bookings = bookings
        self._holds = holds
        self._slot_duration = slot_duration
        self._slot_buffer = slot_buffer

    @property
    def slot_duration(self) -> int:
        return self._slot_duration

    def get_slots(
        self, showroom_id: str, on: date, model_id: Optional[str] = None
    ) -> list[TimeSlot]:
        """Classify each candidate slot as available, held or booked.

        Slots that no scheduled staff member can cover are dropped. When
        nobody is scheduled at all the staffing check is skipped.
        """
        hours = self._showrooms.get_operating_hours(showroom_id, on)
        if hours is None or hours.is_closed:
            return []

        candidates = generate_day_slots(hours, on, self._slot_duration, self._slot_buffer)
        occupied = {
            (b.start_time, b.end_time)
            for b in self._bookings.find_active(showroom_id, on, model_id)
        }
        scheduled = self._staff.get_available_staff(showroom_id, on)
        holds = self._holds.live_holds(showroom_id, on)

        slots: list[TimeSlot] = []
        for slot in candidates:
            if (slot.start_time, slot.end_time) in occupied:
                slot.status = SlotStatus.BOOKED
                slots.append(slot)
                continue

            if scheduled and not any(
                s.covers(slot.start_time, slot.end_time) for s in scheduled
            ):
                continue

            hold = holds.get(slot.start_time)
            if hold is not None:
                slot.status = SlotStatus.HELD
                slot.hold_expires_at = hold.expires_at
            slots.append(slot)

        logger.debug(
            "Resolved %d/%d slots for %s on %s (%d booked, %d held, %d staff)",
            len(slots), len(candidates), showroom_id, on,
            len(occupied), len(holds), len(scheduled),
        )
        return slots

    def get_slot(
        self, showroom_id: str, on: date, start_time: str, model_id: Optional[str] = None
    ) -> Optional[TimeSlot]:
        for slot in self.get_slots(showroom_id, on, model_id):
            if slot.start_time == start_time:
                return slot
        return None
