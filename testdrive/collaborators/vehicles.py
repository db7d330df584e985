"""
Vehicle unit registry, the single authority over vehicle status.

Both the booking flow (AVAILABLE <-> RESERVED) and the check-in side
(test drives, transfers, maintenance) change status through ``set_status``,
which enforces the transition table below. An optional ``expected`` status
turns the update into a compare-and-set.
"""

import logging
import threading
from typing import Optional, Protocol

from testdrive.errors import VehicleStatusError
from testdrive.schemas.vehicle_schema import VehicleModel, VehicleStatus, VehicleUnit

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[VehicleStatus, frozenset[VehicleStatus]] = {
    VehicleStatus.AVAILABLE: frozenset({
        VehicleStatus.RESERVED,
        VehicleStatus.OUT_FOR_TEST_DRIVE,
        VehicleStatus.IN_TRANSIT,
        VehicleStatus.MAINTENANCE,
        VehicleStatus.SOLD,
    }),
    VehicleStatus.RESERVED: frozenset({
        VehicleStatus.AVAILABLE,
        VehicleStatus.OUT_FOR_TEST_DRIVE,
    }),
    VehicleStatus.OUT_FOR_TEST_DRIVE: frozenset({
        VehicleStatus.AVAILABLE,
        VehicleStatus.MAINTENANCE,
    }),
    VehicleStatus.IN_TRANSIT: frozenset({VehicleStatus.AVAILABLE}),
    VehicleStatus.MAINTENANCE: frozenset({VehicleStatus.AVAILABLE}),
    VehicleStatus.SOLD: frozenset(),
}


class VehicleProvider(Protocol):
    def get_unit(self, unit_id: str) -> Optional[VehicleUnit]: ...

    def find_available_unit(
        self, showroom_id: str, model_id: Optional[str] = None
    ) -> Optional[VehicleUnit]: ...

    def set_status(
        self,
        unit_id: str,
        status: VehicleStatus,
        expected: Optional[VehicleStatus] = None,
    ) -> VehicleUnit: ...


class VehicleRegistry:
    """In-memory arena of vehicle units addressed by id."""

    def __init__(self) -> None:
        self._units: dict[str, VehicleUnit] = {}
        self._models: dict[str, VehicleModel] = {}
        self._lock = threading.Lock()

    def add_model(self, model: VehicleModel) -> VehicleModel:
        self._models[model.id] = model
        return model

    def get_model(self, model_id: str) -> Optional[VehicleModel]:
        return self._models.get(model_id)

    def add_unit(self, unit: VehicleUnit) -> VehicleUnit:
        self._units[unit.id] = unit
        return unit

    def get_unit(self, unit_id: str) -> Optional[VehicleUnit]:
        return self._units.get(unit_id)

    def find_available_unit(
        self, showroom_id: str, model_id: Optional[str] = None
    ) -> Optional[VehicleUnit]:
        """First AVAILABLE unit at the showroom, in registration order."""
        for unit in self._units.values():
            if unit.showroom_id != showroom_id or unit.status != VehicleStatus.AVAILABLE:
                continue
            if model_id is not None and unit.model_id != model_id:
                continue
            return unit
        return None

    def set_status(
        self,
        unit_id: str,
        status: VehicleStatus,
        expected: Optional[VehicleStatus] = None,
    ) -> VehicleUnit:
        """Move a unit to ``status``.

        Raises:
            VehicleStatusError: Unknown unit, ``expected`` mismatch, or a
                transition the table forbids.
        """
        with self._lock:
            unit = self._units.get(unit_id)
            if unit is None:
                raise VehicleStatusError(f"Unknown vehicle unit: {unit_id}")
            current = unit.status
            if expected is not None and current != expected:
                raise VehicleStatusError(
                    f"Vehicle {unit_id} is {current.value}, expected {expected.value}"
                )
            if status != current and status not in ALLOWED_TRANSITIONS[current]:
                raise VehicleStatusError(
                    f"Vehicle {unit_id} cannot move from {current.value} to {status.value}"
                )
            unit.status = status

        logger.info("Vehicle %s: %s -> %s", unit_id, current.value, status.value)
        return unit
