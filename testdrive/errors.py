"""
Failure reasons surfaced by the booking core.

Every error carries a stable ``code`` for clients and the HTTP status the
API layer answers with. None of these are swallowed inside the core;
notification delivery failures are the only thing logged and dropped.
"""


class BookingError(Exception):
    """Base class for all user-facing booking failures."""

    code: str = "booking_error"
    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or (self.__class__.__doc__ or self.code).strip()


class SlotUnavailable(BookingError):
    """The slot is already booked or held by another party."""

    code = "slot_unavailable"
    status_code = 409
    retryable = True


class HoldExpired(BookingError):
    """The slot hold is stale, unknown, or does not cover the requested slot."""

    code = "hold_expired"
    status_code = 409
    retryable = True


class SlotBeingBooked(BookingError):
    """Another booking for the same slot is being committed right now."""

    code = "slot_being_booked"
    status_code = 409
    retryable = True


class NoVehicleAvailable(BookingError):
    """No vehicle is available at the showroom for the requested model."""

    code = "no_vehicle_available"
    status_code = 409


class InvalidTransition(BookingError):
    """The booking's current status does not allow this operation."""

    code = "invalid_transition"
    status_code = 409


class BookingNotFound(BookingError):
    """No booking matches the given identifier."""

    code = "booking_not_found"
    status_code = 404


class CustomerRequired(BookingError):
    """Neither a customer id nor customer contact details were supplied."""

    code = "customer_required"
    status_code = 400


class VehicleStatusError(BookingError):
    """The vehicle status authority rejected a status change."""

    code = "vehicle_status_conflict"
    status_code = 409
