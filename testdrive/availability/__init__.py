from testdrive.availability.holds import HoldLedger, HoldManager
from testdrive.availability.resolver import AvailabilityResolver
from testdrive.availability.slot_generator import generate_day_slots, generate_slots

__all__ = [
    "generate_slots",
    "generate_day_slots",
    "AvailabilityResolver",
    "HoldLedger",
    "HoldManager",
]
