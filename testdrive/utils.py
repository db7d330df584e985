"""Shared utilities used across the booking core."""

import re
from datetime import datetime, timezone


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("050 123 4567")
        '0501234567'
        >>> normalize_phone("+971 (50) 123-4567")
        '+971501234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def parse_hhmm(value: str) -> int:
    """Convert a ``HH:MM`` time-of-day into minutes after midnight.

    Raises:
        ValueError: If the string is not a valid 24-hour time.
    """
    match = re.fullmatch(r"(\d{1,2}):(\d{2})", value.strip())
    if not match:
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    """Format minutes after midnight as a zero-padded ``HH:MM`` string.

    Values past midnight are not wrapped, so ``24:00`` stays comparable
    with every earlier time of the same day.
    """
    if minutes < 0:
        raise ValueError(f"Negative minute offset: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(value: str, minutes: int) -> str:
    """Return ``value`` shifted forward by ``minutes``."""
    return format_hhmm(parse_hhmm(value) + minutes)


def to_base36(number: int) -> str:
    """Encode a non-negative integer in upper-case base 36."""
    if number < 0:
        raise ValueError("Cannot encode negative numbers")
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
