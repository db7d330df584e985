"""Human-readable booking references derived from a high-resolution clock."""

import logging
import threading
import time
from typing import Callable

from testdrive.config import settings
from testdrive.utils import to_base36

logger = logging.getLogger(__name__)


class ReferenceGenerator:
    """Issues ``PREFIX-<base36 timestamp>`` references.

    Values never repeat within one process. Across processes a clash is
    possible but vanishingly rare; ``exists`` is consulted and a fresh
    value drawn, up to ``max_attempts`` times.
    """

    def __init__(
        self,
        exists: Callable[[str], bool],
        prefix: str = settings.booking.reference_prefix,
        max_attempts: int = settings.booking.reference_max_attempts,
        clock_ns: Callable[[], int] = time.time_ns,
    ) -> None:
        self._exists = exists
        self._prefix = prefix
        self._max_attempts = max_attempts
        self._clock_ns = clock_ns
        self._last = 0
        self._lock = threading.Lock()

    def _tick(self) -> int:
        with self._lock:
            self._last = max(self._clock_ns(), self._last + 1)
            return self._last

    def next(self) -> str:
        """Return an unused reference.

        Raises:
            RuntimeError: Every attempt collided with an existing reference.
        """
        for attempt in range(1, self._max_attempts + 1):
            reference = f"{self._prefix}-{to_base36(self._tick())}"
            if not self._exists(reference):
                return reference
            logger.warning("Reference collision on %s (attempt %d)", reference, attempt)
        raise RuntimeError(
            f"Could not generate a unique booking reference in {self._max_attempts} attempts"
        )
