"""
Booking commit coordinator.

Turns a booking request into a persisted CONFIRMED booking while other
instances may be committing concurrently. The only synchronization is a
short-lived per-slot lock in the shared store:

    validate hold -> resolve customer -> pick vehicle and staff
      -> lock(showroom, date, start)
           re-check slot, reserve vehicle, persist booking, release hold
      -> unlock (only if still ours) -> notify

Lock acquisition never waits. A contended slot fails fast with
SlotBeingBooked and the client retries.
"""

import uuid
from datetime import date, datetime
from typing import Callable, Optional

from testdrive.availability.holds import HoldManager
from testdrive.booking.reference import ReferenceGenerator
from testdrive.booking.repository import BookingRepository
from testdrive.collaborators.customers import CustomerDirectory
from testdrive.collaborators.notifications import Notifier
from testdrive.collaborators.staff import StaffScheduleProvider
from testdrive.collaborators.vehicles import VehicleProvider
from testdrive.config import settings
from testdrive.errors import (
    CustomerRequired,
    HoldExpired,
    NoVehicleAvailable,
    SlotBeingBooked,
    SlotUnavailable,
    VehicleStatusError,
)
from testdrive.logging_context import get_request_logger
from testdrive.schemas.booking_schema import (
    Booking,
    BookingStatus,
    CreateBookingRequest,
    StatusChange,
)
from testdrive.schemas.slot_schema import SlotHold
from testdrive.schemas.vehicle_schema import VehicleStatus, VehicleUnit
from testdrive.store.reservations import ReservationStore
from testdrive.utils import add_minutes, utcnow

logger = get_request_logger(__name__)

LOCK_PREFIX = "booking_lock"


def slot_lock_key(store: ReservationStore, showroom_id: str, on: date, start_time: str) -> str:
    """Key of the per-slot commit lock, shared by booking and reschedule."""
    return store.key(LOCK_PREFIX, showroom_id, on.isoformat(), start_time)


class BookingCommitCoordinator:
    def __init__(
        self,
        bookings: BookingRepository,
        holds: HoldManager,
        store: ReservationStore,
        vehicles: VehicleProvider,
        staff: StaffScheduleProvider,
        customers: CustomerDirectory,
        notifier: Notifier,
        references: Optional[ReferenceGenerator] = None,
        slot_duration: int = settings.scheduling.slot_duration_minutes,
        lock_ttl_seconds: int = settings.scheduling.lock_ttl_seconds,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._bookings = bookings
        self._holds = holds
        self._store = store
        self._vehicles = vehicles
        self._staff = staff
        self._customers = customers
        self._notifier = notifier
        self._references = references or ReferenceGenerator(bookings.reference_exists)
        self._slot_duration = slot_duration
        self._lock_ttl_seconds = lock_ttl_seconds
        self._clock = clock

    def lock_key(self, showroom_id: str, on: date, start_time: str) -> str:
        return slot_lock_key(self._store, showroom_id, on, start_time)

    def commit(self, request: CreateBookingRequest) -> Booking:
        """Create a CONFIRMED booking for the requested slot.

        Raises:
            HoldExpired: The supplied hold is stale, unknown or for another slot.
            CustomerRequired: No customer id and no contact details.
            NoVehicleAvailable: No AVAILABLE unit matches showroom/model.
            SlotBeingBooked: Another commit for this slot is in flight.
            SlotUnavailable: The slot was booked, or is held by someone else.
        """
        hold = self._check_hold(request)
        customer_id = self._resolve_customer(request)

        unit = self._vehicles.find_available_unit(request.showroom_id, request.model_id)
        if unit is None:
            raise NoVehicleAvailable(
                f"No car available at showroom {request.showroom_id}"
                + (f" for model {request.model_id}" if request.model_id else "")
            )

        end_time = request.end_time or add_minutes(request.start_time, self._slot_duration)
        staff_id = self._select_staff(request.showroom_id, request.date, request.start_time, end_time)
        reference = self._references.next()

        key = self.lock_key(request.showroom_id, request.date, request.start_time)
        with self._store.lock(key, self._lock_ttl_seconds) as acquired:
            if not acquired:
                raise SlotBeingBooked(
                    f"Slot {request.start_time} on {request.date.isoformat()} "
                    "is being booked by another user"
                )
            booking = self._commit_locked(
                request, hold, unit, customer_id, staff_id, end_time, reference
            )

        logger.info(
            "Booking %s confirmed: showroom=%s date=%s %s-%s vehicle=%s staff=%s",
            booking.reference_number, booking.showroom_id, booking.date,
            booking.start_time, booking.end_time, booking.vehicle_unit_id, booking.staff_id,
        )
        self._notify(booking)
        return booking

    # ------------------------------------------------------------------ #
    # Pre-lock steps
    # ------------------------------------------------------------------ #

    def _check_hold(self, request: CreateBookingRequest) -> Optional[SlotHold]:
        if not request.hold_id:
            return None
        hold = self._holds.get(request.hold_id)
        if hold is None:
            raise HoldExpired("Slot hold expired or invalid")
        if not hold.covers(request.showroom_id, request.date, request.start_time):
            raise HoldExpired(
                f"Hold {request.hold_id} is for {hold.start_time} on {hold.date.isoformat()}, "
                "not the requested slot"
            )
        return hold

    def _resolve_customer(self, request: CreateBookingRequest) -> str:
        if request.customer_id:
            return request.customer_id
        if request.customer_info is None:
            raise CustomerRequired("Customer information is required")
        return self._customers.upsert_customer(request.customer_info).id

    def _select_staff(
        self, showroom_id: str, on: date, start_time: str, end_time: str
    ) -> Optional[str]:
        """Prefer someone scheduled and free for the interval, else any active staff."""
        busy = {
            b.staff_id
            for b in self._bookings.find_active(showroom_id, on)
            if b.staff_id and b.start_time < end_time and start_time < b.end_time
        }
        for availability in self._staff.get_available_staff(showroom_id, on):
            if availability.staff_id not in busy and availability.covers(start_time, end_time):
                return availability.staff_id
        active = self._staff.get_active_staff(showroom_id)
        if not active:
            logger.info("No active staff at %s; booking left unassigned", showroom_id)
            return None
        return active[0].id

    # ------------------------------------------------------------------ #
    # Critical section
    # ------------------------------------------------------------------ #

    def _commit_locked(
        self,
        request: CreateBookingRequest,
        hold: Optional[SlotHold],
        unit: VehicleUnit,
        customer_id: str,
        staff_id: Optional[str],
        end_time: str,
        reference: str,
    ) -> Booking:
        taken = any(
            b.start_time == request.start_time
            for b in self._bookings.find_active(request.showroom_id, request.date, request.model_id)
        )
        if taken:
            raise SlotUnavailable(
                f"Slot {request.start_time} on {request.date.isoformat()} is already booked"
            )

        live = self._holds.live_hold_at(request.showroom_id, request.date, request.start_time)
        if live is not None and (hold is None or live.hold_id != hold.hold_id):
            raise SlotUnavailable(
                f"Slot {request.start_time} on {request.date.isoformat()} is held by another customer"
            )

        unit = self._reserve_vehicle(unit, request.showroom_id, request.model_id)
        now = self._clock()
        booking = Booking(
            id=uuid.uuid4().hex,
            reference_number=reference,
            showroom_id=request.showroom_id,
            vehicle_unit_id=unit.id,
            vehicle_model_id=unit.model_id,
            customer_id=customer_id,
            staff_id=staff_id,
            date=request.date,
            start_time=request.start_time,
            end_time=end_time,
            status=BookingStatus.CONFIRMED,
            source=request.source,
            notes=request.notes,
            created_at=now,
            updated_at=now,
            history=[StatusChange(status=BookingStatus.CONFIRMED, at=now, trigger="create")],
        )
        try:
            self._bookings.add(booking)
        except Exception:
            self._vehicles.set_status(unit.id, VehicleStatus.AVAILABLE, expected=VehicleStatus.RESERVED)
            raise

        if hold is not None:
            self._holds.release(hold.hold_id)
        return booking

    def _reserve_vehicle(
        self, unit: VehicleUnit, showroom_id: str, model_id: Optional[str]
    ) -> VehicleUnit:
        """Compare-and-set AVAILABLE -> RESERVED, re-selecting once if beaten to it."""
        try:
            return self._vehicles.set_status(
                unit.id, VehicleStatus.RESERVED, expected=VehicleStatus.AVAILABLE
            )
        except VehicleStatusError as exc:
            logger.warning("Vehicle %s taken before reservation: %s", unit.id, exc)

        retry = self._vehicles.find_available_unit(showroom_id, model_id)
        if retry is None:
            raise NoVehicleAvailable(f"No car available at showroom {showroom_id}")
        try:
            return self._vehicles.set_status(
                retry.id, VehicleStatus.RESERVED, expected=VehicleStatus.AVAILABLE
            )
        except VehicleStatusError as exc:
            raise NoVehicleAvailable(f"No car available at showroom {showroom_id}") from exc

    def _notify(self, booking: Booking) -> None:
        try:
            self._notifier.notify_booking_confirmed(booking)
        except Exception:
            logger.exception("Confirmation notification failed for %s", booking.reference_number)
