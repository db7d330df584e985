"""Time slot, slot hold and availability response models."""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from testdrive.schemas.base_schema import ApiModel, normalize_hhmm


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    HELD = "held"
    BOOKED = "booked"


class TimeSlot(BaseModel):
    """A classified candidate interval. Recomputed on every query."""

    date: dt.date
    start_time: str
    end_time: str
    status: SlotStatus = SlotStatus.AVAILABLE
    hold_expires_at: Optional[dt.datetime] = None

    @property
    def id(self) -> str:
        return f"{self.date.isoformat()}-{self.start_time}"


class SlotHold(BaseModel):
    """A live provisional claim on one slot."""

    hold_id: str
    showroom_id: str
    date: dt.date
    start_time: str
    expires_at: dt.datetime

    def covers(self, showroom_id: str, on: dt.date, start_time: str) -> bool:
        return (
            self.showroom_id == showroom_id
            and self.date == on
            and self.start_time == start_time
        )


class SlotView(ApiModel):
    """One slot as returned to clients."""

    time: str
    end_time: str
    available: bool
    status: SlotStatus
    hold_expires_at: Optional[dt.datetime] = None

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "SlotView":
        return cls(
            time=slot.start_time,
            end_time=slot.end_time,
            available=slot.status == SlotStatus.AVAILABLE,
            status=slot.status,
            hold_expires_at=slot.hold_expires_at,
        )


class SlotsResponse(ApiModel):
    showroom_id: str
    date: dt.date
    slots: list[SlotView] = Field(default_factory=list)


class HoldRequest(ApiModel):
    showroom_id: str
    date: dt.date
    start_time: str

    @field_validator("start_time")
    @classmethod
    def _hhmm(cls, value: str) -> str:
        return normalize_hhmm(value)


class HoldResponse(ApiModel):
    hold_id: str
    expires_at: dt.datetime
