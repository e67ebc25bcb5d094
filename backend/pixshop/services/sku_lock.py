"""Per-SKU mutual exclusion backed by Redis locks."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from redis import Redis
from redis.exceptions import LockError, RedisError

from pixshop.core.errors import PersistFailed

logger = logging.getLogger(__name__)

LOCK_PREFIX = "products:lock:"


def _key(sku: int) -> str:
    return f"{LOCK_PREFIX}{sku}"


class SkuLock:
    """Serializes slot updates for one SKU across workers.

    Without a Redis client this is a no-op and the atomic SQL updates are the
    only protection. Redis being unreachable degrades to the same behavior.
    """

    def __init__(
        self,
        client: Redis | None = None,
        ttl_seconds: int = 30,
        wait_seconds: float = 10.0,
    ) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.wait_seconds = wait_seconds

    @contextmanager
    def hold(self, sku: int) -> Iterator[None]:
        if self.client is None:
            yield
            return

        lock = self.client.lock(
            _key(sku), timeout=self.ttl_seconds, blocking_timeout=self.wait_seconds
        )
        try:
            acquired = lock.acquire()
        except RedisError as e:
            logger.warning(f"Redis unavailable, updating SKU {sku} without lock: {e}")
            lock = None
            acquired = True

        if not acquired:
            raise PersistFailed(f"Product {sku} is busy, try again")

        try:
            yield
        finally:
            if lock is not None:
                try:
                    lock.release()
                except (LockError, RedisError) as e:
                    # Expired under us; the SQL updates already committed atomically.
                    logger.warning(f"Failed to release lock for SKU {sku}: {e}")
