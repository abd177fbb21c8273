"""
Per-(expert, date) mutex around slot validation and the booking write.

Redis ``SET NX EX`` is used when ``settings.redis_url`` is configured and
reachable so that several API processes serialize on the same key. Without
Redis the lock falls back to a process-local registry of ``threading.Lock``
objects, which is enough for a single worker and for tests.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
import logging
import threading
import time
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from redis import Redis
from redis.exceptions import RedisError

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import SlotLockTimeoutException
from .ulid_helper import generate_ulid

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_URL: Optional[str] = None
_SYNC_REDIS_LOCK = threading.Lock()

_LOCAL_LOCKS: Dict[str, threading.Lock] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()

BACKEND_REDIS = "redis"
BACKEND_LOCAL = "local"


def slot_lock_key(expert_id: str, job_date: date) -> str:
    return f"slot:{expert_id}:{job_date.isoformat()}:mutex"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS, _SYNC_REDIS_URL
    url = settings.redis_url
    if not url:
        return None
    if _SYNC_REDIS is not None and _SYNC_REDIS_URL == url:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None and _SYNC_REDIS_URL == url:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(url, encoding="utf-8", decode_responses=True)
            client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("slot_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        _SYNC_REDIS_URL = url
        return _SYNC_REDIS


def _local_lock(key: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        lock = _LOCAL_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _LOCAL_LOCKS[key] = lock
        return lock


class _HeldLock:
    __slots__ = ("key", "backend", "token")

    def __init__(self, key: str, backend: str, token: Optional[str] = None):
        self.key = key
        self.backend = backend
        self.token = token


def _acquire_redis(
    client: Redis, key: str, ttl_s: int, wait_s: float, poll_s: float
) -> _HeldLock:
    token = generate_ulid()
    started = time.monotonic()
    while True:
        if client.set(key, token, nx=True, ex=ttl_s):
            prometheus_metrics.record_slot_lock("acquire", "success", BACKEND_REDIS)
            return _HeldLock(key, BACKEND_REDIS, token)
        waited = time.monotonic() - started
        if waited >= wait_s:
            prometheus_metrics.record_slot_lock("acquire", "timeout", BACKEND_REDIS)
            raise SlotLockTimeoutException(key, waited)
        time.sleep(poll_s)


def _acquire_local(key: str, wait_s: float) -> _HeldLock:
    started = time.monotonic()
    lock = _local_lock(key)
    if wait_s > 0:
        acquired = lock.acquire(timeout=wait_s)
    else:
        acquired = lock.acquire(blocking=False)
    if not acquired:
        waited = time.monotonic() - started
        prometheus_metrics.record_slot_lock("acquire", "timeout", BACKEND_LOCAL)
        raise SlotLockTimeoutException(key, waited)
    prometheus_metrics.record_slot_lock("acquire", "success", BACKEND_LOCAL)
    return _HeldLock(key, BACKEND_LOCAL)


def acquire_slot_lock(
    key: str,
    *,
    ttl_s: Optional[int] = None,
    wait_s: Optional[float] = None,
) -> _HeldLock:
    """
    Block until ``key`` is held or the wait budget runs out.

    Raises:
        SlotLockTimeoutException: another writer kept the key past ``wait_s``
    """
    ttl = ttl_s if ttl_s is not None else settings.slot_lock_ttl_seconds
    wait = wait_s if wait_s is not None else settings.slot_lock_wait_seconds
    client = _get_sync_redis()
    if client is not None:
        try:
            return _acquire_redis(client, key, ttl, wait, settings.slot_lock_poll_interval)
        except RedisError as exc:
            prometheus_metrics.record_slot_lock("acquire", "error", BACKEND_REDIS)
            logger.warning(
                "slot_lock_redis_acquire_failed",
                extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
            )
    return _acquire_local(key, wait)


def release_slot_lock(held: _HeldLock) -> None:
    if held.backend == BACKEND_LOCAL:
        try:
            _local_lock(held.key).release()
            prometheus_metrics.record_slot_lock("release", "success", BACKEND_LOCAL)
        except RuntimeError:
            prometheus_metrics.record_slot_lock("release", "not_found", BACKEND_LOCAL)
        return

    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_slot_lock("release", "redis_unavailable", BACKEND_REDIS)
        return
    try:
        # Only drop the key if it is still ours; it may have expired and been re-taken.
        if client.get(held.key) == held.token:
            client.delete(held.key)
            prometheus_metrics.record_slot_lock("release", "success", BACKEND_REDIS)
        else:
            prometheus_metrics.record_slot_lock("release", "not_found", BACKEND_REDIS)
    except RedisError as exc:
        prometheus_metrics.record_slot_lock("release", "error", BACKEND_REDIS)
        logger.warning(
            "slot_lock_redis_release_failed",
            extra={"lock_key": held.key, "error": str(exc), "error_type": type(exc).__name__},
        )


@contextmanager
def slot_lock(
    keys: Iterable[str],
    *,
    ttl_s: Optional[int] = None,
    wait_s: Optional[float] = None,
) -> Iterator[Tuple[str, ...]]:
    """
    Hold every key in ``keys`` for the duration of the block.

    Keys are de-duplicated and taken in sorted order so two writers moving
    bookings between the same pair of experts/dates cannot deadlock.
    """
    ordered = tuple(sorted({k for k in keys if k}))
    held: List[_HeldLock] = []
    try:
        for key in ordered:
            held.append(acquire_slot_lock(key, ttl_s=ttl_s, wait_s=wait_s))
        yield ordered
    finally:
        for lock in reversed(held):
            release_slot_lock(lock)
