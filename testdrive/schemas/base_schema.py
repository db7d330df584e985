"""Shared pydantic base and field validators."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from testdrive.utils import format_hhmm, parse_hhmm


class ApiModel(BaseModel):
    """Base for models that cross the HTTP boundary in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_hhmm(value: str) -> str:
    """Validate a time of day and return it zero-padded (``9:05`` -> ``09:05``)."""
    return format_hhmm(parse_hhmm(value))
