import logging
import threading
from typing import Optional

from redis import Redis

from testdrive.config import settings

logger = logging.getLogger(__name__)

_REDIS: Optional[Redis] = None
_REDIS_LOCK = threading.Lock()


def get_redis(url: Optional[str] = None) -> Redis:
    """Return the process-wide Redis client, creating it on first use."""
    global _REDIS
    if _REDIS is not None:
        return _REDIS
    with _REDIS_LOCK:
        if _REDIS is not None:
            return _REDIS
        _REDIS = Redis.from_url(
            url or settings.store.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        logger.info("Redis client created for %s", url or settings.store.redis_url)
        return _REDIS


def reset_redis() -> None:
    """Drop the cached client. Used by tests and on reconfiguration."""
    global _REDIS
    with _REDIS_LOCK:
        _REDIS = None
