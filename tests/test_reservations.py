"""Tests for the acquire-if-absent / release-if-owner primitive."""

from testdrive.store.reservations import ReservationStore


class TestKeys:
    def test_namespaced(self, store):
        assert store.key("booking_lock", "sr-1", "2025-03-18", "10:00") == (
            "test:booking_lock:sr-1:2025-03-18:10:00"
        )


class TestAcquireRelease:
    def test_first_acquire_wins(self, store):
        assert store.acquire("test:k", "owner-a", 10_000)
        assert not store.acquire("test:k", "owner-b", 10_000)
        assert store.get("test:k") == "owner-a"

    def test_acquire_sets_ttl(self, store, redis_client):
        store.acquire("test:k", "owner-a", 30_000)
        ttl = redis_client.pttl("test:k")
        assert 0 < ttl <= 30_000

    def test_owner_can_release(self, store):
        store.acquire("test:k", "owner-a", 10_000)
        assert store.release_if_owner("test:k", "owner-a")
        assert store.get("test:k") is None

    def test_foreign_token_does_not_release(self, store):
        store.acquire("test:k", "owner-a", 10_000)
        assert not store.release_if_owner("test:k", "owner-b")
        assert store.get("test:k") == "owner-a"

    def test_release_of_missing_key(self, store):
        assert not store.release_if_owner("test:missing", "owner-a")

    def test_reacquire_after_release(self, store):
        store.acquire("test:k", "owner-a", 10_000)
        store.release_if_owner("test:k", "owner-a")
        assert store.acquire("test:k", "owner-b", 10_000)


class TestScan:
    def test_scan_by_prefix(self, store):
        store.put("test:slot_hold:sr-1:2025-03-18:10:00", "a", 10_000)
        store.put("test:slot_hold:sr-1:2025-03-18:11:00", "b", 10_000)
        store.put("test:slot_hold:sr-1:2025-03-19:10:00", "c", 10_000)
        store.put("test:slot_hold:sr-2:2025-03-18:10:00", "d", 10_000)
        keys = store.scan("slot_hold", "sr-1", "2025-03-18")
        assert keys == [
            "test:slot_hold:sr-1:2025-03-18:10:00",
            "test:slot_hold:sr-1:2025-03-18:11:00",
        ]
        assert store.get_many(keys) == ["a", "b"]

    def test_get_many_empty(self, store):
        assert store.get_many([]) == []

    def test_namespaces_are_isolated(self, redis_client):
        first = ReservationStore(redis_client, "one")
        second = ReservationStore(redis_client, "two")
        first.put(first.key("slot_hold", "x"), "1", 10_000)
        assert second.scan("slot_hold") == []


class TestLock:
    def test_lock_acquired_and_released(self, store):
        with store.lock("test:lock", 30) as acquired:
            assert acquired
            assert store.get("test:lock") is not None
        assert store.get("test:lock") is None

    def test_contended_lock_is_not_acquired(self, store):
        store.acquire("test:lock", "someone-else", 30_000)
        with store.lock("test:lock", 30) as acquired:
            assert not acquired
        # the other caller's lock is untouched
        assert store.get("test:lock") == "someone-else"

    def test_lock_released_on_exception(self, store):
        try:
            with store.lock("test:lock", 30):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert store.get("test:lock") is None

    def test_lock_taken_over_after_expiry_is_left_alone(self, store):
        with store.lock("test:lock", 30) as acquired:
            assert acquired
            # simulate expiry and re-acquisition by another caller
            store.delete("test:lock")
            store.acquire("test:lock", "new-owner", 30_000)
        assert store.get("test:lock") == "new-owner"
