"""Tests for the in-memory collaborators and the vehicle status authority."""

import pytest

from testdrive.booking.reference import ReferenceGenerator
from testdrive.collaborators import ALLOWED_TRANSITIONS, MessageNotifier
from testdrive.errors import VehicleStatusError
from testdrive.schemas.customer_schema import CustomerInfo
from testdrive.schemas.vehicle_schema import VehicleStatus

from tests.conftest import DAY, MODEL_ID, SHOWROOM_ID, SUNDAY, make_customer_info, make_request


class TestVehicleRegistry:
    def test_find_first_available(self, vehicles):
        assert vehicles.find_available_unit(SHOWROOM_ID, MODEL_ID).id == "unit-1"

    def test_find_any_model(self, vehicles):
        assert vehicles.find_available_unit(SHOWROOM_ID).id == "unit-1"

    def test_find_skips_unavailable(self, vehicles):
        vehicles.set_status("unit-1", VehicleStatus.IN_TRANSIT)
        assert vehicles.find_available_unit(SHOWROOM_ID, MODEL_ID).id == "unit-2"

    def test_find_other_showroom(self, vehicles):
        assert vehicles.find_available_unit("sr-other") is None

    def test_compare_and_set(self, vehicles):
        vehicles.set_status("unit-1", VehicleStatus.RESERVED, expected=VehicleStatus.AVAILABLE)
        with pytest.raises(VehicleStatusError, match="expected AVAILABLE"):
            vehicles.set_status("unit-1", VehicleStatus.RESERVED, expected=VehicleStatus.AVAILABLE)

    def test_forbidden_transition(self, vehicles):
        vehicles.set_status("unit-1", VehicleStatus.SOLD)
        with pytest.raises(VehicleStatusError, match="cannot move from SOLD"):
            vehicles.set_status("unit-1", VehicleStatus.AVAILABLE)

    def test_reserved_vehicle_cannot_go_to_maintenance_directly(self, vehicles):
        vehicles.set_status("unit-1", VehicleStatus.RESERVED)
        with pytest.raises(VehicleStatusError):
            vehicles.set_status("unit-1", VehicleStatus.MAINTENANCE)

    def test_unknown_unit(self, vehicles):
        with pytest.raises(VehicleStatusError, match="Unknown vehicle unit"):
            vehicles.set_status("unit-404", VehicleStatus.RESERVED)

    def test_same_status_is_noop(self, vehicles):
        assert vehicles.set_status("unit-1", VehicleStatus.AVAILABLE).status == VehicleStatus.AVAILABLE

    def test_every_status_has_a_table_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(VehicleStatus)
        assert ALLOWED_TRANSITIONS[VehicleStatus.SOLD] == set()


class TestShowrooms:
    def test_hours_by_weekday(self, showrooms):
        hours = showrooms.get_operating_hours(SHOWROOM_ID, DAY)
        assert (hours.open_time, hours.close_time, hours.is_closed) == ("10:00", "18:00", False)

    def test_closed_day(self, showrooms):
        assert showrooms.get_operating_hours(SHOWROOM_ID, SUNDAY).is_closed

    def test_unknown_showroom(self, showrooms):
        assert showrooms.get_operating_hours("sr-missing", DAY) is None


class TestStaffSchedule:
    def test_unknown_member(self, staff):
        with pytest.raises(KeyError):
            staff.set_availability("ghost", DAY, "10:00", "12:00")

    def test_window_replaced(self, staff):
        staff.set_availability("staff-1", DAY, "10:00", "12:00")
        staff.set_availability("staff-1", DAY, "14:00", "16:00")
        [availability] = staff.get_available_staff(SHOWROOM_ID, DAY)
        assert availability.covers("14:00", "14:30")
        assert not availability.covers("10:00", "10:30")

    def test_times_normalized(self, staff):
        staff.set_availability("staff-1", DAY, "9:00", "12:00")
        [availability] = staff.get_available_staff(SHOWROOM_ID, DAY)
        assert availability.windows[0].available_from == "09:00"


class TestCustomers:
    def test_upsert_creates_then_updates(self, customers):
        created = customers.upsert_customer(make_customer_info())
        updated = customers.upsert_customer(
            make_customer_info(first_name="Maya", last_name="Chen", phone="+15550102030")
        )
        assert created.id == updated.id
        assert customers.lookup_customer("+1 555 010 2030").last_name == "Chen"

    def test_email_kept_when_not_resupplied(self, customers):
        customers.upsert_customer(make_customer_info(email="maya@example.com"))
        again = customers.upsert_customer(make_customer_info())
        assert again.email == "maya@example.com"

    def test_invalid_phone_rejected(self):
        with pytest.raises(ValueError):
            CustomerInfo(first_name="A", last_name="B", phone="12")


class TestMessageNotifier:
    def test_delivery_when_enabled(self, service, customers, showrooms, vehicles):
        sent = []
        notifier = MessageNotifier(
            customers=customers, showrooms=showrooms, vehicles=vehicles,
            sender=lambda to, body: sent.append((to, body)), enabled=True,
        )
        booking = service.create_booking(make_request("10:00"))
        notifier.notify_booking_confirmed(booking)
        assert sent[0][0] == "+15550102030"
        assert sent[0][1].startswith("Your test drive is confirmed!")
        assert "Time: 10:00 - 10:30" in sent[0][1]
        assert "Date: Tuesday, March 18, 2025" in sent[0][1]
        assert notifier.log[-1].status == "SENT"

    def test_enabled_without_sender_falls_back_to_mock(self, service):
        notifier = MessageNotifier(enabled=True)
        booking = service.create_booking(make_request("10:00"))
        notifier.notify_booking_rescheduled(booking)
        assert notifier.log[-1].status == "MOCK"
        assert notifier.log[-1].recipient == booking.customer_id

    def test_sender_failure_propagates(self, service):
        def broken(to, body):
            raise ConnectionError("down")

        notifier = MessageNotifier(sender=broken, enabled=True)
        booking = service.create_booking(make_request("10:00"))
        with pytest.raises(ConnectionError):
            notifier.notify_booking_cancelled(booking)
        assert notifier.log[-1].status == "PENDING"

    def test_log_keeps_most_recent_attempts(self, service):
        notifier = MessageNotifier(enabled=False, log_size=2)
        booking = service.create_booking(make_request("10:00"))
        notifier.notify_booking_confirmed(booking)
        notifier.notify_booking_rescheduled(booking)
        notifier.notify_booking_cancelled(booking)
        assert [r.kind for r in notifier.log] == ["BOOKING_RESCHEDULED", "BOOKING_CANCELLATION"]


class TestReferenceGenerator:
    def test_prefix_and_base36(self):
        generator = ReferenceGenerator(lambda ref: False, prefix="TD", clock_ns=lambda: 36**3)
        assert generator.next() == "TD-1000"

    def test_strictly_increasing_with_frozen_clock(self):
        generator = ReferenceGenerator(lambda ref: False, prefix="TD", clock_ns=lambda: 100)
        assert [generator.next() for _ in range(3)] == ["TD-2S", "TD-2T", "TD-2U"]

    def test_collision_retries(self):
        taken = {"TD-2S"}
        generator = ReferenceGenerator(taken.__contains__, prefix="TD", clock_ns=lambda: 100)
        assert generator.next() == "TD-2T"

    def test_gives_up_after_max_attempts(self):
        generator = ReferenceGenerator(lambda ref: True, prefix="TD", max_attempts=2)
        with pytest.raises(RuntimeError, match="2 attempts"):
            generator.next()
