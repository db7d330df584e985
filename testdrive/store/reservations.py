"""
Ephemeral, TTL-bound reservations in the shared key-value store.

Slot holds and commit locks are the same thing underneath: a key that is
claimed only if absent, expires on its own, and may only be released by the
party that owns it. Both are built on this one primitive.

Usage:
    store = ReservationStore(get_redis(), namespace="testdrive")
    key = store.key("booking_lock", showroom_id, "2025-03-18", "10:00")
    with store.lock(key, ttl_seconds=30) as acquired:
        if not acquired:
            ...
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

from redis import Redis

logger = logging.getLogger(__name__)

# KEYS[1] = reservation key
# ARGV[1] = owner token
# Returns 1 if the key was deleted, 0 if it was absent or owned by someone else.
RELEASE_IF_OWNER_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
  return redis.call('DEL', KEYS[1])
end
return 0
"""


class ReservationStore:
    """Namespaced acquire-if-absent / release-if-owner over Redis."""

    def __init__(self, client: Redis, namespace: str) -> None:
        self._client = client
        self._namespace = namespace
        self._release_script = client.register_script(RELEASE_IF_OWNER_LUA)

    def key(self, *parts: str) -> str:
        return ":".join((self._namespace, *parts))

    def acquire(self, key: str, token: str, ttl_ms: int) -> bool:
        """Claim ``key`` for ``token`` only if nobody holds it."""
        return bool(self._client.set(key, token, nx=True, px=ttl_ms))

    def put(self, key: str, value: str, ttl_ms: int) -> None:
        """Unconditionally write a TTL-bound record."""
        self._client.set(key, value, px=ttl_ms)

    def get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def get_many(self, keys: list[str]) -> list[Optional[str]]:
        if not keys:
            return []
        return list(self._client.mget(keys))

    def release_if_owner(self, key: str, token: str) -> bool:
        """Atomically delete ``key`` if and only if it still holds ``token``."""
        released = bool(self._release_script(keys=[key], args=[token]))
        if not released:
            logger.debug("Reservation %s no longer owned by caller; left in place", key)
        return released

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(self._client.delete(*keys))

    def scan(self, *prefix_parts: str) -> list[str]:
        """List live keys under ``namespace:prefix_parts...:*``."""
        pattern = self.key(*prefix_parts, "*")
        return sorted(self._client.scan_iter(match=pattern, count=200))

    @contextmanager
    def lock(self, key: str, ttl_seconds: int) -> Iterator[bool]:
        """Short-lived mutual exclusion; yields whether the lock was acquired.

        The lock is never waited on. On exit it is released only if this
        caller's token still owns it, so a lock that expired and was taken
        by someone else is left alone.
        """
        token = uuid.uuid4().hex
        acquired = self.acquire(key, token, ttl_seconds * 1000)
        if not acquired:
            logger.warning("Lock %s is held by another caller", key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release_if_owner(key, token)
