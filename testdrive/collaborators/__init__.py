from testdrive.collaborators.customers import CustomerDirectory, InMemoryCustomers
from testdrive.collaborators.notifications import MessageNotifier, NotificationRecord, Notifier
from testdrive.collaborators.showrooms import InMemoryShowrooms, ShowroomProvider
from testdrive.collaborators.staff import InMemoryStaffSchedule, StaffScheduleProvider
from testdrive.collaborators.vehicles import (
    ALLOWED_TRANSITIONS,
    VehicleProvider,
    VehicleRegistry,
)

__all__ = [
    "CustomerDirectory",
    "InMemoryCustomers",
    "Notifier",
    "MessageNotifier",
    "NotificationRecord",
    "ShowroomProvider",
    "InMemoryShowrooms",
    "StaffScheduleProvider",
    "InMemoryStaffSchedule",
    "VehicleProvider",
    "VehicleRegistry",
    "ALLOWED_TRANSITIONS",
]
