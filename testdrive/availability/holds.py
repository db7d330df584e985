"""
Provisional slot holds.

A hold is two TTL-bound records written with the same lifetime:

    {ns}:slot_hold:{showroom}:{date}:{HH:MM}  ->  "{hold_id}|{expires_at}"
    {ns}:hold:{hold_id}                       ->  slot key above

The slot record is claimed set-if-absent, so two callers racing for the
same slot cannot both win. Releasing goes through release-if-owner on the
exact slot value, so a stale hold id can never clear somebody else's hold.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Callable, Optional

from testdrive.config import settings
from testdrive.errors import SlotUnavailable
from testdrive.schemas.slot_schema import SlotHold, SlotStatus
from testdrive.store.reservations import ReservationStore
from testdrive.utils import utcnow

if TYPE_CHECKING:
    from testdrive.availability.resolver import AvailabilityResolver

logger = logging.getLogger(__name__)

SLOT_HOLD_PREFIX = "slot_hold"
HOLD_PREFIX = "hold"
_SEPARATOR = "|"


class HoldLedger:
    """Reads and writes hold records; knows nothing about availability."""

    def __init__(
        self,
        store: ReservationStore,
        hold_minutes: int = settings.scheduling.hold_minutes,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._hold_minutes = hold_minutes
        self._clock = clock

    @property
    def hold_minutes(self) -> int:
        return self._hold_minutes

    def slot_key(self, showroom_id: str, on: date, start_time: str) -> str:
        return self._store.key(SLOT_HOLD_PREFIX, showroom_id, on.isoformat(), start_time)

    def hold_key(self, hold_id: str) -> str:
        return self._store.key(HOLD_PREFIX, hold_id)

    def claim(self, showroom_id: str, on: date, start_time: str) -> Optional[SlotHold]:
        """Write both records if the slot is not held. None if it is."""
        hold = SlotHold(
            hold_id=uuid.uuid4().hex,
            showroom_id=showroom_id,
            date=on,
            start_time=start_time,
            expires_at=self._clock() + timedelta(minutes=self._hold_minutes),
        )
        ttl_ms = self._hold_minutes * 60 * 1000
        slot_key = self.slot_key(showroom_id, on, start_time)
        if not self._store.acquire(slot_key, _encode(hold), ttl_ms):
            if not self._reclaim_stale(slot_key):
                return None
            if not self._store.acquire(slot_key, _encode(hold), ttl_ms):
                return None
        self._store.put(self.hold_key(hold.hold_id), slot_key, ttl_ms)
        return hold

    def _reclaim_stale(self, slot_key: str) -> bool:
        """Clear a slot record that outlived its own recorded expiry."""
        value = self._store.get(slot_key)
        if value is None:
            return True
        stale = self._decode(slot_key, value)
        if stale is None or stale.expires_at > self._clock():
            return False
        logger.info("Reclaiming expired hold %s at %s", stale.hold_id, slot_key)
        self._store.release_if_owner(slot_key, value)
        self._store.delete(self.hold_key(stale.hold_id))
        return True

    def lookup(self, hold_id: str) -> Optional[SlotHold]:
        """The live hold behind ``hold_id``, or None if stale or unknown."""
        slot_key = self._store.get(self.hold_key(hold_id))
        if slot_key is None:
            return None
        hold = self._decode(slot_key, self._store.get(slot_key))
        if hold is None or hold.hold_id != hold_id:
            return None
        if hold.expires_at <= self._clock():
            return None
        return hold

    def live_holds(self, showroom_id: str, on: date) -> dict[str, SlotHold]:
        """Unexpired holds for one showroom day, keyed by slot start time."""
        keys = self._store.scan(SLOT_HOLD_PREFIX, showroom_id, on.isoformat())
        now = self._clock()
        holds: dict[str, SlotHold] = {}
        for key, value in zip(keys, self._store.get_many(keys)):
            hold = self._decode(key, value)
            if hold is not None and hold.expires_at > now:
                holds[hold.start_time] = hold
        return holds

    def release(self, hold_id: str) -> bool:
        """Delete both records if present. Returns whether a slot was freed."""
        hold_key = self.hold_key(hold_id)
        slot_key = self._store.get(hold_key)
        freed = False
        if slot_key is not None:
            value = self._store.get(slot_key)
            hold = self._decode(slot_key, value)
            if hold is not None and hold.hold_id == hold_id:
                freed = self._store.release_if_owner(slot_key, value)  # type: ignore[arg-type]
        self._store.delete(hold_key)
        return freed

    def _decode(self, slot_key: str, value: Optional[str]) -> Optional[SlotHold]:
        if not value or _SEPARATOR not in value:
            return None
        prefix = self._store.key(SLOT_HOLD_PREFIX, "")
        if not slot_key.startswith(prefix):
            return None
        # start time itself contains ':' so split from the right
        parts = slot_key[len(prefix):].rsplit(":", 3)
        if len(parts) != 4:
            return None
        showroom_id, day, hours, minutes = parts
        hold_id, expires_at = value.split(_SEPARATOR, 1)
        try:
            return SlotHold(
                hold_id=hold_id,
                showroom_id=showroom_id,
                date=date.fromisoformat(day),
                start_time=f"{hours}:{minutes}",
                expires_at=datetime.fromisoformat(expires_at),
            )
        except ValueError:
            logger.warning("Malformed hold record at %s: %r", slot_key, value)
            return None


def _encode(hold: SlotHold) -> str:
    return f"{hold.hold_id}{_SEPARATOR}{hold.expires_at.isoformat()}"


class HoldManager:
    """Hold, validate and release provisional slot claims."""

    def __init__(self, ledger: HoldLedger, resolver: AvailabilityResolver) -> None:
        self._ledger = ledger
        self._resolver = resolver

    def hold(self, showroom_id: str, on: date, start_time: str) -> SlotHold:
        """Pin one slot for the configured hold duration.

        Raises:
            SlotUnavailable: The slot does not exist that day, is booked,
                or is already held (including losing a concurrent race).
        """
        slot = self._resolver.get_slot(showroom_id, on, start_time)
        if slot is None:
            raise SlotUnavailable(f"No bookable slot at {start_time} on {on.isoformat()}")
        if slot.status == SlotStatus.BOOKED:
            raise SlotUnavailable(f"Slot {start_time} on {on.isoformat()} is already booked")
        if slot.status == SlotStatus.HELD:
            raise SlotUnavailable(f"Slot {start_time} on {on.isoformat()} is already held")

        hold = self._ledger.claim(showroom_id, on, start_time)
        if hold is None:
            logger.warning("Lost hold race for %s %s %s", showroom_id, on, start_time)
            raise SlotUnavailable(f"Slot {start_time} on {on.isoformat()} is already held")

        logger.info(
            "Slot held: %s %s %s until %s (hold %s)",
            showroom_id, on, start_time, hold.expires_at.isoformat(), hold.hold_id,
        )
        return hold

    def get(self, hold_id: str) -> Optional[SlotHold]:
        return self._ledger.lookup(hold_id)

    def validate(self, hold_id: str) -> bool:
        """True only while the hold still resolves to a live slot record."""
        return self._ledger.lookup(hold_id) is not None

    def live_hold_at(self, showroom_id: str, on: date, start_time: str) -> Optional[SlotHold]:
        return self._ledger.live_holds(showroom_id, on).get(start_time)

    def release(self, hold_id: str) -> None:
        """Idempotent; unknown or expired holds are a no-op."""
        if self._ledger.release(hold_id):
            logger.info("Hold released: %s", hold_id)
        else:
            logger.debug("Hold %s already gone", hold_id)
