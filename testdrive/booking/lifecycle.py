"""
Booking lifecycle.

Status changes after commit are driven through an explicit transition
table. Anything not listed is rejected with InvalidTransition, naming the
triggers that are allowed from the current status.

    CONFIRMED --complete--> COMPLETED
    CONFIRMED --no_show---> NO_SHOW
    CONFIRMED --cancel----> CANCELLED
    PENDING   --cancel----> CANCELLED
    CONFIRMED --reschedule-> CONFIRMED   (new date/time)

Terminal transitions hand the vehicle back to the pool. A vehicle that
cannot be released is logged and left for staff; the status change itself
still stands.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from testdrive.availability.holds import HoldManager
from testdrive.booking.coordinator import slot_lock_key
from testdrive.booking.repository import BookingRepository
from testdrive.collaborators.notifications import Notifier
from testdrive.collaborators.vehicles import VehicleProvider
from testdrive.config import settings
from testdrive.errors import (
    BookingNotFound,
    HoldExpired,
    InvalidTransition,
    SlotBeingBooked,
    SlotUnavailable,
    VehicleStatusError,
)
from testdrive.logging_context import get_request_logger
from testdrive.schemas.booking_schema import (
    Booking,
    BookingFilters,
    BookingStatus,
    RescheduleRequest,
    StatusChange,
)
from testdrive.schemas.vehicle_schema import VehicleStatus
from testdrive.store.reservations import ReservationStore
from testdrive.utils import add_minutes, utcnow

logger = get_request_logger(__name__)


class LifecycleTrigger(str, Enum):
    """Operations that move a booking between statuses."""
    COMPLETE = "complete"
    NO_SHOW = "no_show"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"


@dataclass(frozen=True)
class Transition:
    from_status: BookingStatus
    to_status: BookingStatus
    trigger: LifecycleTrigger


TRANSITIONS: list[Transition] = [
    Transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED, LifecycleTrigger.COMPLETE),
    Transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW, LifecycleTrigger.NO_SHOW),
    Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, LifecycleTrigger.CANCEL),
    Transition(BookingStatus.PENDING, BookingStatus.CANCELLED, LifecycleTrigger.CANCEL),
    Transition(BookingStatus.CONFIRMED, BookingStatus.CONFIRMED, LifecycleTrigger.RESCHEDULE),
]

# Statuses after which the vehicle goes back to the pool
_RELEASING = {BookingStatus.COMPLETED, BookingStatus.NO_SHOW, BookingStatus.CANCELLED}


def valid_triggers(status: BookingStatus) -> list[LifecycleTrigger]:
    return [t.trigger for t in TRANSITIONS if t.from_status == status]


def next_status(status: BookingStatus, trigger: LifecycleTrigger) -> BookingStatus:
    """Resolve the target status, or raise InvalidTransition."""
    for t in TRANSITIONS:
        if t.from_status == status and t.trigger == trigger:
            return t.to_status
    allowed = ", ".join(t.value for t in valid_triggers(status)) or "none"
    raise InvalidTransition(
        f"Cannot {trigger.value.replace('_', ' ')} a {status.value} booking "
        f"(allowed: {allowed})"
    )


class BookingLifecycle:
    """Read and mutate committed bookings."""

    def __init__(
        self,
        bookings: BookingRepository,
        holds: HoldManager,
        store: ReservationStore,
        vehicles: VehicleProvider,
        notifier: Notifier,
        slot_duration: int = settings.scheduling.slot_duration_minutes,
        lock_ttl_seconds: int = settings.scheduling.lock_ttl_seconds,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._bookings = bookings
        self._holds = holds
        self._store = store
        self._vehicles = vehicles
        self._notifier = notifier
        self._slot_duration = slot_duration
        self._lock_ttl_seconds = lock_ttl_seconds
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found")
        return booking

    def get_by_reference(self, reference_number: str) -> Booking:
        booking = self._bookings.get_by_reference(reference_number)
        if booking is None:
            raise BookingNotFound(f"Booking {reference_number} not found")
        return booking

    def find_all(self, filters: Optional[BookingFilters] = None) -> list[Booking]:
        return self._bookings.find_all(filters or BookingFilters())

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def complete(self, booking_id: str, notes: Optional[str] = None) -> Booking:
        booking = self.get(booking_id)
        self._apply(booking, LifecycleTrigger.COMPLETE)
        booking.completed_at = booking.updated_at
        if notes:
            booking.notes = notes
        self._bookings.save(booking)
        self._release_vehicle(booking)
        logger.info("Booking %s completed", booking.reference_number)
        return booking

    def mark_no_show(self, booking_id: str) -> Booking:
        booking = self.get(booking_id)
        self._apply(booking, LifecycleTrigger.NO_SHOW)
        self._bookings.save(booking)
        self._release_vehicle(booking)
        logger.info("Booking %s marked no-show", booking.reference_number)
        return booking

    def cancel(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        booking = self.get(booking_id)
        self._apply(booking, LifecycleTrigger.CANCEL)
        booking.cancelled_at = booking.updated_at
        booking.cancellation_reason = reason
        self._bookings.save(booking)
        self._release_vehicle(booking)
        logger.info("Booking %s cancelled (reason=%s)", booking.reference_number, reason)
        self._notify(self._notifier.notify_booking_cancelled, booking)
        return booking

    def reschedule(self, booking_id: str, request: RescheduleRequest) -> Booking:
        """Move a CONFIRMED booking onto a slot the caller has held.

        The vehicle and staff assignment are kept. The hold is consumed.
        The move runs under the destination slot's commit lock.

        Raises:
            BookingNotFound: Unknown booking id.
            InvalidTransition: Booking is not CONFIRMED.
            HoldExpired: Hold is stale or does not match the new slot.
            SlotBeingBooked: A commit for the new slot is in flight.
            SlotUnavailable: The new slot already has a booking for this model.
        """
        booking = self.get(booking_id)
        next_status(booking.status, LifecycleTrigger.RESCHEDULE)

        hold = self._holds.get(request.hold_id)
        if hold is None:
            raise HoldExpired("Slot hold expired or invalid")
        if not hold.covers(booking.showroom_id, request.date, request.start_time):
            raise HoldExpired(
                f"Hold {request.hold_id} does not cover {request.start_time} "
                f"on {request.date.isoformat()}"
            )

        key = slot_lock_key(self._store, booking.showroom_id, request.date, request.start_time)
        with self._store.lock(key, self._lock_ttl_seconds) as acquired:
            if not acquired:
                raise SlotBeingBooked(
                    f"Slot {request.start_time} on {request.date.isoformat()} "
                    "is being booked by another user"
                )
            booking, previous = self._move_locked(booking_id, request)

        logger.info(
            "Booking %s rescheduled from %s to %s %s",
            booking.reference_number, previous, booking.date.isoformat(), booking.start_time,
        )
        self._notify(self._notifier.notify_booking_rescheduled, booking)
        return booking

    def _move_locked(self, booking_id: str, request: RescheduleRequest) -> tuple[Booking, str]:
        booking = self.get(booking_id)
        next_status(booking.status, LifecycleTrigger.RESCHEDULE)
        taken = any(
            b.id != booking.id and b.start_time == request.start_time
            for b in self._bookings.find_active(
                booking.showroom_id, request.date, booking.vehicle_model_id
            )
        )
        if taken:
            logger.warning(
                "Reschedule of %s rejected: %s on %s already booked",
                booking.reference_number, request.start_time, request.date.isoformat(),
            )
            raise SlotUnavailable(
                f"Slot {request.start_time} on {request.date.isoformat()} is already booked"
            )

        previous = f"{booking.date.isoformat()} {booking.start_time}"
        booking.date = request.date
        booking.start_time = request.start_time
        booking.end_time = request.end_time or add_minutes(request.start_time, self._slot_duration)
        self._apply(booking, LifecycleTrigger.RESCHEDULE)
        self._bookings.save(booking)
        self._holds.release(request.hold_id)
        return booking, previous

    def _apply(self, booking: Booking, trigger: LifecycleTrigger) -> None:
        booking.status = next_status(booking.status, trigger)
        booking.updated_at = self._clock()
        booking.history.append(
            StatusChange(status=booking.status, at=booking.updated_at, trigger=trigger.value)
        )

    def _release_vehicle(self, booking: Booking) -> None:
        if booking.status not in _RELEASING:
            return
        unit = self._vehicles.get_unit(booking.vehicle_unit_id)
        if unit is None:
            logger.warning(
                "Vehicle %s for booking %s no longer exists",
                booking.vehicle_unit_id, booking.reference_number,
            )
            return
        if unit.status not in (VehicleStatus.RESERVED, VehicleStatus.OUT_FOR_TEST_DRIVE):
            logger.warning(
                "Vehicle %s is %s; not releasing for booking %s",
                unit.id, unit.status.value, booking.reference_number,
            )
            return
        try:
            self._vehicles.set_status(unit.id, VehicleStatus.AVAILABLE, expected=unit.status)
        except VehicleStatusError as exc:
            logger.warning(
                "Vehicle %s not released for booking %s: %s",
                unit.id, booking.reference_number, exc,
            )

    def _notify(self, send: Callable[[Booking], None], booking: Booking) -> None:
        try:
            send(booking)
        except Exception:
            logger.exception("Notification failed for %s", booking.reference_number)
