"""
Test-drive booking service facade.

Wires slot generation, availability, holds, the commit coordinator and the
lifecycle state machine behind the operations the API exposes. Collaborators
default to the in-memory implementations; production swaps them for
database-backed ones without touching the core.

Usage:
    service = build_service()
    slots = service.get_slots("sr-1", date(2025, 3, 18))
    hold = service.hold_slot(HoldRequest(showroom_id="sr-1", ...))
"""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from redis import Redis

from testdrive.availability.holds import HoldLedger, HoldManager
from testdrive.availability.resolver import AvailabilityResolver
from testdrive.booking.coordinator import BookingCommitCoordinator
from testdrive.booking.lifecycle import BookingLifecycle
from testdrive.booking.reference import ReferenceGenerator
from testdrive.booking.repository import BookingRepository, InMemoryBookingRepository
from testdrive.collaborators.customers import CustomerDirectory, InMemoryCustomers
from testdrive.collaborators.notifications import MessageNotifier, Notifier
from testdrive.collaborators.showrooms import InMemoryShowrooms, ShowroomProvider
from testdrive.collaborators.staff import InMemoryStaffSchedule, StaffScheduleProvider
from testdrive.collaborators.vehicles import VehicleRegistry
from testdrive.config import AppConfig, settings
from testdrive.schemas.booking_schema import (
    Booking,
    BookingFilters,
    CreateBookingRequest,
    RescheduleRequest,
)
from testdrive.schemas.showroom_schema import OperatingHours, Showroom, StaffMember
from testdrive.schemas.slot_schema import HoldRequest, HoldResponse, SlotView, SlotsResponse
from testdrive.schemas.vehicle_schema import VehicleModel, VehicleUnit
from testdrive.store.redis_client import get_redis
from testdrive.store.reservations import ReservationStore
from testdrive.utils import utcnow

logger = logging.getLogger(__name__)


class TestDriveService:
    """Availability, hold and booking operations over one set of collaborators."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        resolver: AvailabilityResolver,
        holds: HoldManager,
        coordinator: BookingCommitCoordinator,
        lifecycle: BookingLifecycle,
    ) -> None:
        self.resolver = resolver
        self.holds = holds
        self.coordinator = coordinator
        self.lifecycle = lifecycle

    # --- Availability -------------------------------------------------- #

    def get_slots(
        self, showroom_id: str, on: date, model_id: Optional[str] = None
    ) -> SlotsResponse:
        slots = self.resolver.get_slots(showroom_id, on, model_id)
        return SlotsResponse(
            showroom_id=showroom_id,
            date=on,
            slots=[SlotView.from_slot(s) for s in slots],
        )

    def hold_slot(self, request: HoldRequest) -> HoldResponse:
        hold = self.holds.hold(request.showroom_id, request.date, request.start_time)
        return HoldResponse(hold_id=hold.hold_id, expires_at=hold.expires_at)

    def release_hold(self, hold_id: str) -> None:
        self.holds.release(hold_id)

    # --- Bookings ------------------------------------------------------ #

    def create_booking(self, request: CreateBookingRequest) -> Booking:
        return self.coordinator.commit(request)

    def get_booking(self, booking_id: str) -> Booking:
        return self.lifecycle.get(booking_id)

    def get_booking_by_reference(self, reference_number: str) -> Booking:
        return self.lifecycle.get_by_reference(reference_number)

    def list_bookings(self, filters: Optional[BookingFilters] = None) -> list[Booking]:
        return self.lifecycle.find_all(filters)

    def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        return self.lifecycle.cancel(booking_id, reason)

    def complete_booking(self, booking_id: str, notes: Optional[str] = None) -> Booking:
        return self.lifecycle.complete(booking_id, notes)

    def mark_no_show(self, booking_id: str) -> Booking:
        return self.lifecycle.mark_no_show(booking_id)

    def reschedule_booking(self, booking_id: str, request: RescheduleRequest) -> Booking:
        return self.lifecycle.reschedule(booking_id, request)


def build_service(
    client: Optional[Redis] = None,
    *,
    showrooms: Optional[ShowroomProvider] = None,
    staff: Optional[StaffScheduleProvider] = None,
    vehicles: Optional[VehicleRegistry] = None,
    customers: Optional[CustomerDirectory] = None,
    bookings: Optional[BookingRepository] = None,
    notifier: Optional[Notifier] = None,
    clock: Callable[[], datetime] = utcnow,
    config: AppConfig = settings,
) -> TestDriveService:
    """Assemble a service from configuration, filling gaps with in-memory parts."""
    if showrooms is None:
        showrooms = InMemoryShowrooms()
    if staff is None:
        staff = InMemoryStaffSchedule()
    if vehicles is None:
        vehicles = VehicleRegistry()
    if customers is None:
        customers = InMemoryCustomers()
    if bookings is None:
        bookings = InMemoryBookingRepository()
    if notifier is None:
        notifier = MessageNotifier(
            customers=customers,
            showrooms=showrooms,
            vehicles=vehicles,
            enabled=config.notifications.enabled,
            log_size=config.notifications.log_size,
        )
    sched = config.scheduling

    store = ReservationStore(client or get_redis(config.store.redis_url), config.store.namespace)
    ledger = HoldLedger(store, hold_minutes=sched.hold_minutes, clock=clock)
    resolver = AvailabilityResolver(
        showrooms, staff, bookings, ledger,
        slot_duration=sched.slot_duration_minutes,
        slot_buffer=sched.slot_buffer_minutes,
    )
    holds = HoldManager(ledger, resolver)
    references = ReferenceGenerator(
        bookings.reference_exists,
        prefix=config.booking.reference_prefix,
        max_attempts=config.booking.reference_max_attempts,
    )
    coordinator = BookingCommitCoordinator(
        bookings, holds, store, vehicles, staff, customers, notifier,
        references=references,
        slot_duration=sched.slot_duration_minutes,
        lock_ttl_seconds=sched.lock_ttl_seconds,
        clock=clock,
    )
    lifecycle = BookingLifecycle(
        bookings, holds, store, vehicles, notifier,
        slot_duration=sched.slot_duration_minutes,
        lock_ttl_seconds=sched.lock_ttl_seconds,
        clock=clock,
    )
    logger.info(
        "Service assembled: slot=%dmin buffer=%dmin hold=%dmin lock=%ds namespace=%s",
        sched.slot_duration_minutes, sched.slot_buffer_minutes, sched.hold_minutes,
        sched.lock_ttl_seconds, config.store.namespace,
    )
    return TestDriveService(resolver, holds, coordinator, lifecycle)


DEMO_SHOWROOM_ID = "sr-downtown"
DEMO_MODEL_ID = "model-ev6"


def seed_demo_data(
    showrooms: InMemoryShowrooms,
    staff: InMemoryStaffSchedule,
    vehicles: VehicleRegistry,
    on: date,
) -> None:
    """Load one showroom open 09:00-17:00 daily (closed Sundays), two staff
    members scheduled on ``on``, and two demo cars of one model."""
    showrooms.add(Showroom(
        id=DEMO_SHOWROOM_ID,
        name="Downtown Motors",
        address="12 Market Street",
        phone="+15550100",
        operating_hours=[
            OperatingHours(day_of_week=d, open_time="09:00", close_time="17:00", is_closed=d == 6)
            for d in range(7)
        ],
    ))
    for member_id, name in (("staff-ana", "Ana Ortiz"), ("staff-ben", "Ben Cole")):
        staff.add_member(StaffMember(id=member_id, showroom_id=DEMO_SHOWROOM_ID, name=name))
    staff.set_availability("staff-ana", on, "09:00", "13:00")
    staff.set_availability("staff-ben", on, "12:00", "17:00")

    vehicles.add_model(VehicleModel(id=DEMO_MODEL_ID, brand="Kia", model="EV6", year=2025))
    for n in (1, 2):
        vehicles.add_unit(VehicleUnit(
            id=f"unit-ev6-{n}",
            model_id=DEMO_MODEL_ID,
            showroom_id=DEMO_SHOWROOM_ID,
            vin=f"KNDC3DLC{n:09d}",
        ))
    logger.info("Demo data seeded for %s on %s", DEMO_SHOWROOM_ID, on.isoformat())
