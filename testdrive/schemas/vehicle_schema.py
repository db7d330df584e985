"""Vehicle model and physical unit records."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class VehicleStatus(str, Enum):
    """Status of one physical vehicle."""

    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    OUT_FOR_TEST_DRIVE = "OUT_FOR_TEST_DRIVE"
    IN_TRANSIT = "IN_TRANSIT"
    MAINTENANCE = "MAINTENANCE"
    SOLD = "SOLD"


class VehicleModel(BaseModel):
    id: str
    brand: str
    model: str
    year: int


class VehicleUnit(BaseModel):
    """One physical vehicle at a showroom."""

    id: str
    model_id: str
    showroom_id: str
    status: VehicleStatus = VehicleStatus.AVAILABLE
    vin: Optional[str] = None
