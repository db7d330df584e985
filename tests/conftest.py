"""Shared test fixtures and helpers."""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

import fakeredis
import pytest

from testdrive.booking.repository import InMemoryBookingRepository
from testdrive.collaborators import (
    InMemoryCustomers,
    InMemoryShowrooms,
    InMemoryStaffSchedule,
    MessageNotifier,
    VehicleRegistry,
)
from testdrive.config import (
    AppConfig,
    BookingConfig,
    NotificationConfig,
    SchedulingConfig,
    StoreConfig,
)
from testdrive.schemas.booking_schema import CreateBookingRequest
from testdrive.schemas.customer_schema import CustomerInfo
from testdrive.schemas.showroom_schema import OperatingHours, Showroom, StaffMember
from testdrive.schemas.vehicle_schema import VehicleModel, VehicleUnit
from testdrive.service import build_service
from testdrive.store.reservations import ReservationStore

SHOWROOM_ID = "sr-1"
MODEL_ID = "model-1"
OTHER_MODEL_ID = "model-2"
DAY = date(2025, 3, 18)  # Tuesday
SUNDAY = date(2025, 3, 16)
NAMESPACE = "test"


class FakeClock:
    """Controllable UTC clock; ``advance`` moves time forward without sleeping."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2025, 3, 17, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_config(**scheduling) -> AppConfig:
    """Config pinned to the documented defaults, independent of the environment."""
    values = dict(
        slot_duration_minutes=30,
        slot_buffer_minutes=15,
        hold_minutes=10,
        lock_ttl_seconds=30,
    )
    values.update(scheduling)
    return AppConfig(
        scheduling=SchedulingConfig(**values),
        store=StoreConfig(redis_url="redis://unused", namespace=NAMESPACE),
        booking=BookingConfig(reference_prefix="TD", reference_max_attempts=3),
        notifications=NotificationConfig(enabled=False),
        log_level="DEBUG",
        service_name="testdrive-test",
    )


def make_customer_info(
    first_name: str = "Maya",
    last_name: str = "Lin",
    phone: str = "+1 555 010 2030",
    email: Optional[str] = None,
) -> CustomerInfo:
    """Helper to create inline customer details."""
    return CustomerInfo(first_name=first_name, last_name=last_name, phone=phone, email=email)


def make_request(
    start_time: str = "10:00",
    hold_id: Optional[str] = None,
    on: date = DAY,
    showroom_id: str = SHOWROOM_ID,
    model_id: Optional[str] = MODEL_ID,
    customer_info: Optional[CustomerInfo] = None,
    **kwargs,
) -> CreateBookingRequest:
    """Helper to create a booking request with sensible defaults."""
    if customer_info is None and "customer_id" not in kwargs:
        customer_info = make_customer_info()
    return CreateBookingRequest(
        showroom_id=showroom_id,
        model_id=model_id,
        hold_id=hold_id,
        date=on,
        start_time=start_time,
        customer_info=customer_info,
        **kwargs,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def store(redis_client):
    return ReservationStore(redis_client, NAMESPACE)


@pytest.fixture
def showrooms():
    """One showroom open 10:00-18:00 Monday to Saturday, closed Sunday."""
    directory = InMemoryShowrooms()
    directory.add(Showroom(
        id=SHOWROOM_ID,
        name="Harbour Motors",
        address="1 Quay Road",
        operating_hours=[
            OperatingHours(day_of_week=d, open_time="10:00", close_time="18:00", is_closed=d == 6)
            for d in range(7)
        ],
    ))
    return directory


@pytest.fixture
def staff():
    """Two active members with no availability windows recorded."""
    schedule = InMemoryStaffSchedule()
    schedule.add_member(StaffMember(id="staff-1", showroom_id=SHOWROOM_ID, name="Ana"))
    schedule.add_member(StaffMember(id="staff-2", showroom_id=SHOWROOM_ID, name="Ben"))
    return schedule


@pytest.fixture
def vehicles():
    """Two units of MODEL_ID and one of OTHER_MODEL_ID at the showroom."""
    registry = VehicleRegistry()
    registry.add_model(VehicleModel(id=MODEL_ID, brand="Kia", model="EV6", year=2025))
    registry.add_model(VehicleModel(id=OTHER_MODEL_ID, brand="Kia", model="Niro", year=2024))
    registry.add_unit(VehicleUnit(id="unit-1", model_id=MODEL_ID, showroom_id=SHOWROOM_ID))
    registry.add_unit(VehicleUnit(id="unit-2", model_id=MODEL_ID, showroom_id=SHOWROOM_ID))
    registry.add_unit(VehicleUnit(id="unit-3", model_id=OTHER_MODEL_ID, showroom_id=SHOWROOM_ID))
    return registry


@pytest.fixture
def customers():
    return InMemoryCustomers()


@pytest.fixture
def bookings():
    return InMemoryBookingRepository()


@pytest.fixture
def notifier(customers, showrooms, vehicles):
    return MessageNotifier(
        customers=customers, showrooms=showrooms, vehicles=vehicles, enabled=False
    )


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def service(redis_client, showrooms, staff, vehicles, customers, bookings, notifier, clock, config):
    return build_service(
        redis_client,
        showrooms=showrooms,
        staff=staff,
        vehicles=vehicles,
        customers=customers,
        bookings=bookings,
        notifier=notifier,
        clock=clock,
        config=config,
    )
