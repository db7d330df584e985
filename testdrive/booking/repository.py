"""
Booking persistence.

In production, this would be the relational bookings table. Records are
copied in and out so callers never share mutable state with the store,
the same way rows behave.
"""

import logging
import threading
from datetime import date
from typing import Optional, Protocol

from testdrive.schemas.booking_schema import ACTIVE_STATUSES, Booking, BookingFilters

logger = logging.getLogger(__name__)


class BookingRepository(Protocol):
    def add(self, booking: Booking) -> Booking: ...

    def save(self, booking: Booking) -> Booking: ...

    def get(self, booking_id: str) -> Optional[Booking]: ...

    def get_by_reference(self, reference_number: str) -> Optional[Booking]: ...

    def reference_exists(self, reference_number: str) -> bool: ...

    def find_active(
        self, showroom_id: str, on: date, model_id: Optional[str] = None
    ) -> list[Booking]: ...

    def find_all(self, filters: BookingFilters) -> list[Booking]: ...


class InMemoryBookingRepository:
    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._by_reference: dict[str, str] = {}
        self._lock = threading.Lock()

    def add(self, booking: Booking) -> Booking:
        with self._lock:
            if booking.id in self._bookings:
                raise ValueError(f"Booking {booking.id} already exists")
            if booking.reference_number in self._by_reference:
                raise ValueError(f"Reference {booking.reference_number} already exists")
            self._bookings[booking.id] = booking.model_copy(deep=True)
            self._by_reference[booking.reference_number] = booking.id
        logger.debug("Booking stored: %s", booking.reference_number)
        return booking

    def save(self, booking: Booking) -> Booking:
        with self._lock:
            if booking.id not in self._bookings:
                raise KeyError(f"Booking {booking.id} does not exist")
            self._bookings[booking.id] = booking.model_copy(deep=True)
        return booking

    def get(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            booking = self._bookings.get(booking_id)
            return booking.model_copy(deep=True) if booking else None

    def get_by_reference(self, reference_number: str) -> Optional[Booking]:
        with self._lock:
            booking_id = self._by_reference.get(reference_number)
            booking = self._bookings.get(booking_id) if booking_id else None
            return booking.model_copy(deep=True) if booking else None

    def reference_exists(self, reference_number: str) -> bool:
        with self._lock:
            return reference_number in self._by_reference

    def find_active(
        self, showroom_id: str, on: date, model_id: Optional[str] = None
    ) -> list[Booking]:
        """PENDING/CONFIRMED bookings at the showroom on ``on``."""
        with self._lock:
            return [
                b.model_copy(deep=True)
                for b in self._bookings.values()
                if b.showroom_id == showroom_id
                and b.date == on
                and b.status in ACTIVE_STATUSES
                and (model_id is None or b.vehicle_model_id == model_id)
            ]

    def find_all(self, filters: BookingFilters) -> list[Booking]:
        """Bookings matching every given filter, ordered by date then start time."""
        with self._lock:
            candidates = list(self._bookings.values())
        matches = []
        for b in candidates:
            if filters.showroom_id and b.showroom_id != filters.showroom_id:
                continue
            if filters.customer_id and b.customer_id != filters.customer_id:
                continue
            if filters.staff_id and b.staff_id != filters.staff_id:
                continue
            if filters.status and b.status != filters.status:
                continue
            if filters.date:
                if b.date != filters.date:
                    continue
            else:
                if filters.start_date and b.date < filters.start_date:
                    continue
                if filters.end_date and b.date > filters.end_date:
                    continue
            matches.append(b.model_copy(deep=True))
        return sorted(matches, key=lambda b: (b.date, b.start_time))
