"""Showroom, operating hours and staff schedule models (read-only inputs)."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from testdrive.schemas.base_schema import normalize_hhmm


class OperatingHours(BaseModel):
    """Opening hours for one weekday (0 = Monday)."""

    day_of_week: int = Field(ge=0, le=6)
    open_time: str = "09:00"
    close_time: str = "18:00"
    is_closed: bool = False

    @field_validator("open_time", "close_time")
    @classmethod
    def _hhmm(cls, value: str) -> str:
        return normalize_hhmm(value)


class Showroom(BaseModel):
    """Showroom record owned by the showroom-management side."""

    id: str
    name: str
    address: str = ""
    phone: str = ""
    operating_hours: list[OperatingHours] = Field(default_factory=list)

    def hours_for(self, day_of_week: int) -> Optional[OperatingHours]:
        for hours in self.operating_hours:
            if hours.day_of_week == day_of_week:
                return hours
        return None


class StaffMember(BaseModel):
    """A sales executive assigned to a showroom."""

    id: str
    showroom_id: str
    name: str = ""
    is_active: bool = True


class AvailabilityWindow(BaseModel):
    """Time-of-day window a staff member is available on a given date."""

    available_from: str
    available_to: str

    @field_validator("available_from", "available_to")
    @classmethod
    def _hhmm(cls, value: str) -> str:
        return normalize_hhmm(value)

    def covers(self, start_time: str, end_time: str) -> bool:
        """Zero-padded HH:MM strings compare lexicographically."""
        return self.available_from <= start_time and end_time <= self.available_to


class StaffAvailability(BaseModel):
    """One staff member's availability on one date."""

    staff_id: str
    windows: list[AvailabilityWindow] = Field(default_factory=list)

    def covers(self, start_time: str, end_time: str) -> bool:
        return any(w.covers(start_time, end_time) for w in self.windows)
