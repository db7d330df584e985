"""
Candidate slot generation for one showroom day.

Pure and deterministic: slots start at opening time, are ``duration``
minutes wide, and successive starts are ``duration + buffer`` apart.
Generation stops at the first slot that would end after closing time.

Usage:
    generate_slots("09:00", "18:00", duration=30, buffer=15)
    # [("09:00", "09:30"), ("09:45", "10:15"), ("10:30", "11:00"), ...]
"""

from datetime import date
from typing import Optional

from testdrive.config import settings
from testdrive.schemas.showroom_schema import OperatingHours
from testdrive.schemas.slot_schema import TimeSlot
from testdrive.utils import format_hhmm, parse_hhmm


def generate_slots(
    open_time: str,
    close_time: str,
    duration: int = settings.scheduling.slot_duration_minutes,
    buffer: int = settings.scheduling.slot_buffer_minutes,
    is_closed: bool = False,
) -> list[tuple[str, str]]:
    """Return ordered ``(start, end)`` pairs between open and close."""
    if duration < 1:
        raise ValueError(f"Slot duration must be >= 1 minute, got {duration}")
    if buffer < 0:
        raise ValueError(f"Slot buffer must be >= 0 minutes, got {buffer}")
    if is_closed:
        return []

    close = parse_hhmm(close_time)
    start = parse_hhmm(open_time)
    slots = []
    while start < close:
        end = start + duration
        if end > close:
            break
        slots.append((format_hhmm(start), format_hhmm(end)))
        start += duration + buffer
    return slots


def generate_day_slots(
    hours: Optional[OperatingHours],
    on: date,
    duration: int = settings.scheduling.slot_duration_minutes,
    buffer: int = settings.scheduling.slot_buffer_minutes,
) -> list[TimeSlot]:
    """Candidate ``TimeSlot`` objects for ``on``; empty when closed or unknown."""
    if hours is None or hours.is_closed:
        return []
    return [
        TimeSlot(date=on, start_time=start, end_time=end)
        for start, end in generate_slots(hours.open_time, hours.close_time, duration, buffer)
    ]
