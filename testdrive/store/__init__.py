from testdrive.store.redis_client import get_redis, reset_redis
from testdrive.store.reservations import RELEASE_IF_OWNER_LUA, ReservationStore

__all__ = ["get_redis", "reset_redis", "ReservationStore", "RELEASE_IF_OWNER_LUA"]
