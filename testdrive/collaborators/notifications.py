"""
Booking notifications.

The booking core fires these and moves on; delivery success never affects
a booking. With delivery disabled (the default) messages are rendered and
logged only, mirroring a mock WhatsApp channel.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from testdrive.collaborators.customers import CustomerDirectory
from testdrive.collaborators.showrooms import ShowroomProvider
from testdrive.collaborators.vehicles import VehicleRegistry
from testdrive.config import settings
from testdrive.schemas.booking_schema import Booking

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify_booking_confirmed(self, booking: Booking) -> None: ...

    def notify_booking_cancelled(self, booking: Booking) -> None: ...

    def notify_booking_rescheduled(self, booking: Booking) -> None: ...


@dataclass
class NotificationRecord:
    """One delivery attempt, kept for auditing."""

    booking_id: str
    kind: str
    recipient: str
    message: str
    status: str
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MessageNotifier:
    """Renders booking messages and hands them to ``sender`` when enabled.

    ``sender(recipient, message)`` performs the actual delivery and may
    raise; failures propagate to the caller, which decides whether they
    matter.
    """

    def __init__(
        self,
        customers: Optional[CustomerDirectory] = None,
        showrooms: Optional[ShowroomProvider] = None,
        vehicles: Optional[VehicleRegistry] = None,
        sender: Optional[Callable[[str, str], None]] = None,
        enabled: bool = settings.notifications.enabled,
        log_size: int = settings.notifications.log_size,
    ) -> None:
        self._customers = customers
        self._showrooms = showrooms
        self._vehicles = vehicles
        self._sender = sender
        self._enabled = enabled and sender is not None
        # most recent attempts only
        self.log: deque[NotificationRecord] = deque(maxlen=log_size)

    def notify_booking_confirmed(self, booking: Booking) -> None:
        message = (
            "Your test drive is confirmed!\n\n"
            f"Booking Reference: {booking.reference_number}\n"
            f"{self._details(booking)}"
        )
        self._send(booking, "BOOKING_CONFIRMATION", message)

    def notify_booking_cancelled(self, booking: Booking) -> None:
        reason = f"\nReason: {booking.cancellation_reason}" if booking.cancellation_reason else ""
        message = (
            f"Your test drive {booking.reference_number} has been cancelled.{reason}\n\n"
            f"{self._details(booking)}"
        )
        self._send(booking, "BOOKING_CANCELLATION", message)

    def notify_booking_rescheduled(self, booking: Booking) -> None:
        message = (
            f"Your test drive {booking.reference_number} has been rescheduled.\n\n"
            f"{self._details(booking)}"
        )
        self._send(booking, "BOOKING_RESCHEDULED", message)

    def _details(self, booking: Booking) -> str:
        lines = []
        if self._vehicles is not None:
            model = self._vehicles.get_model(booking.vehicle_model_id)
            if model is not None:
                lines.append(f"Car: {model.brand} {model.model} {model.year}")
        lines.append(f"Date: {booking.date.strftime('%A, %B %d, %Y')}")
        lines.append(f"Time: {booking.start_time} - {booking.end_time}")
        if self._showrooms is not None:
            showroom = self._showrooms.get_showroom(booking.showroom_id)
            if showroom is not None:
                lines.append(f"Location: {showroom.name}, {showroom.address}".rstrip(", "))
        return "\n".join(lines)

    def _recipient(self, booking: Booking) -> str:
        if self._customers is not None:
            customer = self._customers.get_customer(booking.customer_id)
            if customer is not None:
                return customer.phone
        return booking.customer_id

    def _send(self, booking: Booking, kind: str, message: str) -> None:
        recipient = self._recipient(booking)
        if not self._enabled:
            self.log.append(NotificationRecord(booking.id, kind, recipient, message, "MOCK"))
            logger.info("[mock] %s to %s for %s", kind, recipient, booking.reference_number)
            return

        record = NotificationRecord(booking.id, kind, recipient, message, "PENDING")
        self.log.append(record)
        self._sender(recipient, message)  # type: ignore[misc]
        record.status = "SENT"
        logger.info("%s sent to %s for %s", kind, recipient, booking.reference_number)
