"""Customer data models."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field, field_validator

from testdrive.schemas.base_schema import ApiModel
from testdrive.utils import normalize_phone

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15


class CustomerInfo(ApiModel):
    """Inline contact details supplied with an unauthenticated booking."""

    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: str) -> str:
        cleaned = normalize_phone(value)
        digits = cleaned.lstrip("+")
        if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
            raise ValueError(f"Phone number {value!r} doesn't look right")
        return cleaned


class Customer(ApiModel):
    """Customer record, identified by normalized phone number."""

    id: str
    phone: str
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
