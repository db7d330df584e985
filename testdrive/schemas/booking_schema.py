"""Booking records and booking request bodies."""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from testdrive.schemas.base_schema import ApiModel, normalize_hhmm
from testdrive.schemas.customer_schema import CustomerInfo


class BookingStatus(str, Enum):
    """Lifecycle status of a persisted booking."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"
    CANCELLED = "CANCELLED"


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


class BookingSource(str, Enum):
    """Channel the booking came in through."""

    WEB = "WEB"
    MOBILE_APP = "MOBILE_APP"
    CALL_CENTER = "CALL_CENTER"
    WALK_IN = "WALK_IN"
    PHONE = "PHONE"
    LEAD_CONVERSION = "LEAD_CONVERSION"


class StatusChange(ApiModel):
    """Recorded history entry for a status change."""

    status: BookingStatus
    at: dt.datetime
    trigger: str


class Booking(ApiModel):
    """A persisted test-drive booking. Never deleted."""

    id: str
    reference_number: str
    showroom_id: str
    vehicle_unit_id: str
    vehicle_model_id: str
    customer_id: str
    staff_id: Optional[str] = None
    date: dt.date
    start_time: str
    end_time: str
    status: BookingStatus = BookingStatus.CONFIRMED
    source: BookingSource = BookingSource.WEB
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[dt.datetime] = None
    completed_at: Optional[dt.datetime] = None
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    updated_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    history: list[StatusChange] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class CreateBookingRequest(ApiModel):
    """Commit request. Either ``customer_id`` or ``customer_info`` is required."""

    showroom_id: str
    model_id: Optional[str] = None
    hold_id: Optional[str] = None
    date: dt.date
    start_time: str
    end_time: Optional[str] = None
    customer_id: Optional[str] = None
    customer_info: Optional[CustomerInfo] = None
    source: BookingSource = BookingSource.WEB
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, value: Optional[str]) -> Optional[str]:
        return normalize_hhmm(value) if value is not None else None

    @model_validator(mode="after")
    def _end_after_start(self) -> "CreateBookingRequest":
        if self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class RescheduleRequest(ApiModel):
    hold_id: str
    date: dt.date
    start_time: str
    end_time: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, value: Optional[str]) -> Optional[str]:
        return normalize_hhmm(value) if value is not None else None

    @model_validator(mode="after")
    def _end_after_start(self) -> "RescheduleRequest":
        if self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class CancelRequest(ApiModel):
    reason: Optional[str] = None


class CompleteRequest(ApiModel):
    notes: Optional[str] = None


class BookingFilters(ApiModel):
    """Query filters for listing bookings; ``None`` means unfiltered."""

    showroom_id: Optional[str] = None
    customer_id: Optional[str] = None
    staff_id: Optional[str] = None
    status: Optional[BookingStatus] = None
    date: Optional[dt.date] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
