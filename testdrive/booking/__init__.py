from testdrive.booking.coordinator import BookingCommitCoordinator
from testdrive.booking.lifecycle import BookingLifecycle, LifecycleTrigger, next_status
from testdrive.booking.reference import ReferenceGenerator
from testdrive.booking.repository import BookingRepository, InMemoryBookingRepository

__all__ = [
    "BookingCommitCoordinator",
    "BookingLifecycle",
    "LifecycleTrigger",
    "next_status",
    "ReferenceGenerator",
    "BookingRepository",
    "InMemoryBookingRepository",
]
