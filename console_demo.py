"""
Offline console demo: walks a test-drive booking end to end.

Uses the real slot generator, availability resolver, hold manager, commit
coordinator and lifecycle state machine against an in-process fake Redis
and a seeded demo showroom. No server, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario contention
"""

import argparse
from datetime import date, timedelta
from typing import Callable

import fakeredis

from testdrive.collaborators import (
    InMemoryCustomers,
    InMemoryShowrooms,
    InMemoryStaffSchedule,
    MessageNotifier,
    VehicleRegistry,
)
from testdrive.config import settings
from testdrive.errors import BookingError
from testdrive.schemas.booking_schema import CreateBookingRequest, RescheduleRequest
from testdrive.schemas.customer_schema import CustomerInfo
from testdrive.schemas.slot_schema import HoldRequest
from testdrive.service import DEMO_MODEL_ID, DEMO_SHOWROOM_ID, build_service, seed_demo_data

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


def _next_open_day() -> date:
    day = date.today() + timedelta(days=1)
    # demo showroom is closed on Sundays
    return day + timedelta(days=1) if day.weekday() == 6 else day


class ConsoleDemo:
    """Seeds one showroom and narrates each booking step in the terminal."""

    def __init__(self) -> None:
        self.day = _next_open_day()
        self.showrooms = InMemoryShowrooms()
        self.staff = InMemoryStaffSchedule()
        self.vehicles = VehicleRegistry()
        self.customers = InMemoryCustomers()
        self.notifier = MessageNotifier(
            customers=self.customers,
            showrooms=self.showrooms,
            vehicles=self.vehicles,
            enabled=False,
        )
        seed_demo_data(self.showrooms, self.staff, self.vehicles, self.day)
        self.service = build_service(
            fakeredis.FakeRedis(decode_responses=True),
            showrooms=self.showrooms,
            staff=self.staff,
            vehicles=self.vehicles,
            customers=self.customers,
            notifier=self.notifier,
        )

    def say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[service]{RESET} {GREEN}{text}{RESET}")

    def client(self, text: str) -> None:
        print(f"\n{BLUE}[client]{RESET} {text}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def attempt(self, action: Callable[[], object]) -> object:
        try:
            return action()
        except BookingError as exc:
            print(f"{RED}  !! {exc.code}: {exc.message}{RESET}")
            return None

    def show_slots(self) -> None:
        response = self.service.get_slots(DEMO_SHOWROOM_ID, self.day, DEMO_MODEL_ID)
        cells = []
        for slot in response.slots:
            colour = {"available": GREEN, "held": YELLOW, "booked": RED}[slot.status.value]
            cells.append(f"{colour}{slot.time}{RESET}")
        self.say(f"Slots on {self.day.isoformat()}: " + " ".join(cells))

    def _customer(self) -> CustomerInfo:
        return CustomerInfo(first_name="Maya", last_name="Lin", phone="+1 555 010 2030")

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def run_happy_path(self) -> None:
        self.client(f"Which slots are open at {DEMO_SHOWROOM_ID}?")
        self.show_slots()

        self.client("Hold 10:30 for me")
        hold = self.service.hold_slot(
            HoldRequest(showroom_id=DEMO_SHOWROOM_ID, date=self.day, start_time="10:30")
        )
        self.say(f"Held until {hold.expires_at:%H:%M:%S} UTC (hold {hold.hold_id[:8]})")
        self.show_slots()

        self.client("Book it")
        booking = self.service.create_booking(CreateBookingRequest(
            showroom_id=DEMO_SHOWROOM_ID,
            model_id=DEMO_MODEL_ID,
            hold_id=hold.hold_id,
            date=self.day,
            start_time="10:30",
            customer_info=self._customer(),
        ))
        self.say(
            f"Confirmed {booking.reference_number}: {booking.start_time}-{booking.end_time} "
            f"car {booking.vehicle_unit_id} with {booking.staff_id or 'any available staff'}"
        )
        self.system_log(f"Vehicle status: {self.vehicles.get_unit(booking.vehicle_unit_id).status.value}")
        self.show_slots()

        self.client("Move it to 14:15")
        new_hold = self.service.hold_slot(
            HoldRequest(showroom_id=DEMO_SHOWROOM_ID, date=self.day, start_time="14:15")
        )
        booking = self.service.reschedule_booking(
            booking.id,
            RescheduleRequest(hold_id=new_hold.hold_id, date=self.day, start_time="14:15"),
        )
        self.say(f"{booking.reference_number} now at {booking.start_time}-{booking.end_time}")
        self.show_slots()

        self.client("(staff) The drive is done")
        booking = self.service.complete_booking(booking.id, "Customer loved the range")
        self.say(f"{booking.reference_number} is {booking.status.value}")
        self.system_log(f"Vehicle status: {self.vehicles.get_unit(booking.vehicle_unit_id).status.value}")

        self.client("(staff) Cancel it after all")
        self.attempt(lambda: self.service.cancel_booking(booking.id))

    def run_contention(self) -> None:
        self.client("Customer A holds 09:45")
        first = self.service.hold_slot(
            HoldRequest(showroom_id=DEMO_SHOWROOM_ID, date=self.day, start_time="09:45")
        )
        self.say(f"Hold {first.hold_id[:8]} granted")

        self.client("Customer B tries to hold 09:45 too")
        self.attempt(lambda: self.service.hold_slot(
            HoldRequest(showroom_id=DEMO_SHOWROOM_ID, date=self.day, start_time="09:45")
        ))

        self.client("Customer B tries to book 09:45 without a hold")
        self.attempt(lambda: self.service.create_booking(CreateBookingRequest(
            showroom_id=DEMO_SHOWROOM_ID, date=self.day, start_time="09:45",
            customer_info=CustomerInfo(first_name="Sam", last_name="Roe", phone="5550199000"),
        )))

        self.client("Customer A books with the hold")
        booking = self.attempt(lambda: self.service.create_booking(CreateBookingRequest(
            showroom_id=DEMO_SHOWROOM_ID, date=self.day, start_time="09:45",
            hold_id=first.hold_id, customer_info=self._customer(),
        )))
        if booking is not None:
            self.say(f"Confirmed {booking.reference_number}")
        self.show_slots()

    SCENARIOS: dict[str, str] = {
        "booking": "run_happy_path",
        "contention": "run_contention",
    }

    def run(self, scenario: str = "booking") -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  TEST DRIVE BOOKING - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Service: {settings.service_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        getattr(self, self.SCENARIOS[scenario])()

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        for record in self.notifier.log:
            print(f"{DIM}  notification {record.kind} -> {record.recipient} [{record.status}]{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Test-drive booking console demo")
    parser.add_argument("--scenario", choices=sorted(ConsoleDemo.SCENARIOS), default="booking")
    args = parser.parse_args()
    ConsoleDemo().run(args.scenario)
