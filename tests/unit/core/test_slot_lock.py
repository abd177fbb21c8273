from __future__ import annotations

from datetime import date
import threading
import time

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from garage_booking.core import slot_lock as slot_lock_module
from garage_booking.core.exceptions import SlotLockTimeoutException
from garage_booking.core.slot_lock import (
    acquire_slot_lock,
    release_slot_lock,
    slot_lock,
    slot_lock_key,
)
from garage_booking.core.ulid_helper import generate_ulid


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = fail

    def set(self, key, value, nx=False, ex=None):
        if self.fail:
            raise RedisConnectionError("down")
        if nx and key in self.store:
            return None
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
def key() -> str:
    return slot_lock_key(generate_ulid(), date(2030, 1, 7))


def test_key_format():
    assert slot_lock_key("EXPERT", date(2030, 1, 7)) == "slot:EXPERT:2030-01-07:mutex"


def test_local_lock_is_exclusive(key):
    held = acquire_slot_lock(key, wait_s=0)
    try:
        with pytest.raises(SlotLockTimeoutException) as exc_info:
            acquire_slot_lock(key, wait_s=0)
        assert exc_info.value.code == "SLOT_LOCK_BUSY"
        assert exc_info.value.details["lock_key"] == key
    finally:
        release_slot_lock(held)

    release_slot_lock(acquire_slot_lock(key, wait_s=0))


def test_context_manager_dedupes_sorts_and_releases(key):
    other = key.replace("2030-01-07", "2030-01-08")

    with slot_lock([other, key, key, ""]) as held:
        assert held == tuple(sorted({key, other}))

    with slot_lock([key, other], wait_s=0):
        pass


def test_released_when_block_raises(key):
    with pytest.raises(RuntimeError):
        with slot_lock([key]):
            raise RuntimeError("boom")

    with slot_lock([key], wait_s=0):
        pass


def test_waiter_gets_the_lock_after_release(key):
    entered = threading.Event()
    order: list[str] = []

    def first():
        with slot_lock([key]):
            entered.set()
            time.sleep(0.1)
            order.append("first")

    worker = threading.Thread(target=first)
    worker.start()
    entered.wait(timeout=2)

    with slot_lock([key], wait_s=2):
        order.append("second")
    worker.join(timeout=2)

    assert order == ["first", "second"]


def test_wait_budget_is_bounded(key):
    held = acquire_slot_lock(key)
    started = time.monotonic()
    try:
        with pytest.raises(SlotLockTimeoutException):
            acquire_slot_lock(key, wait_s=0.05)
    finally:
        release_slot_lock(held)
    assert time.monotonic() - started < 2


class TestRedisBackend:
    def test_set_nx_with_expiry_and_token_release(self, monkeypatch, key):
        fake = FakeRedis()
        monkeypatch.setattr(slot_lock_module, "_get_sync_redis", lambda: fake)

        held = acquire_slot_lock(key, ttl_s=30)

        assert held.backend == "redis"
        assert fake.store[key] == held.token
        assert fake.ttls[key] == 30
        release_slot_lock(held)
        assert key not in fake.store

    def test_busy_key_times_out(self, monkeypatch, key):
        fake = FakeRedis()
        fake.store[key] = "someone-else"
        monkeypatch.setattr(slot_lock_module, "_get_sync_redis", lambda: fake)

        with pytest.raises(SlotLockTimeoutException):
            acquire_slot_lock(key, wait_s=0)

    def test_release_leaves_a_retaken_key_alone(self, monkeypatch, key):
        fake = FakeRedis()
        monkeypatch.setattr(slot_lock_module, "_get_sync_redis", lambda: fake)
        held = acquire_slot_lock(key)
        fake.store[key] = "new-owner"

        release_slot_lock(held)

        assert fake.store[key] == "new-owner"

    def test_redis_errors_fall_back_to_local_lock(self, monkeypatch, key):
        monkeypatch.setattr(slot_lock_module, "_get_sync_redis", lambda: FakeRedis(fail=True))

        held = acquire_slot_lock(key, wait_s=0)

        assert held.backend == "local"
        release_slot_lock(held)
