# backend/app/services/policy_cache.py
"""
Booking policy caches.

The resolver receives its cache explicitly. Entries never expire on their
own: they live until ``invalidate``/``clear`` is called after a policy edit.

- InMemoryPolicyCache: per-process dict guarded by a lock (default)
- RedisPolicyCache: shared across workers, one JSON document per tenant
"""

import logging
from threading import Lock
from typing import Dict, Optional, Protocol

import redis
from redis import Redis
from redis.exceptions import RedisError

from ..core.config import Settings
from ..schemas.booking_policy import BookingPolicy

logger = logging.getLogger(__name__)


class PolicyCache(Protocol):
    def get(self, organization_id: str) -> Optional[BookingPolicy]:
        ...

    def set(self, organization_id: str, policy: BookingPolicy) -> None:
        ...

    def invalidate(self, organization_id: str) -> bool:
        ...

    def clear(self) -> int:
        ...


class InMemoryPolicyCache:
    """Process-local policy cache."""

    def __init__(self) -> None:
        self._entries: Dict[str, BookingPolicy] = {}
        self._lock = Lock()

    def get(self, organization_id: str) -> Optional[BookingPolicy]:
        with self._lock:
            return self._entries.get(organization_id)

    def set(self, organization_id: str, policy: BookingPolicy) -> None:
        with self._lock:
            self._entries[organization_id] = policy

    def invalidate(self, organization_id: str) -> bool:
        with self._lock:
            return self._entries.pop(organization_id, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisPolicyCache:
    """
    Redis-backed policy cache.

    Redis failures degrade to cache misses; the resolver then reads the
    tenant record directly.
    """

    def __init__(self, client: Redis, prefix: str = "booking_policy"):
        self.client = client
        self.prefix = prefix

    def _key(self, organization_id: str) -> str:
        return f"{self.prefix}:{organization_id}"

    def get(self, organization_id: str) -> Optional[BookingPolicy]:
        try:
            raw = self.client.get(self._key(organization_id))
        except RedisError as e:
            logger.error(f"Policy cache get error for {organization_id}: {e}")
            return None
        if raw is None:
            return None
        try:
            return BookingPolicy.model_validate_json(raw)
        except ValueError as e:
            logger.warning(f"Discarding unreadable cached policy for {organization_id}: {e}")
            self.invalidate(organization_id)
            return None

    def set(self, organization_id: str, policy: BookingPolicy) -> None:
        try:
            self.client.set(self._key(organization_id), policy.model_dump_json())
        except RedisError as e:
            logger.error(f"Policy cache set error for {organization_id}: {e}")

    def invalidate(self, organization_id: str) -> bool:
        try:
            return bool(self.client.delete(self._key(organization_id)))
        except RedisError as e:
            logger.error(f"Policy cache delete error for {organization_id}: {e}")
            return False

    def clear(self) -> int:
        count = 0
        try:
            for key in self.client.scan_iter(match=f"{self.prefix}:*"):
                if self.client.delete(key):
                    count += 1
        except RedisError as e:
            logger.error(f"Policy cache clear error: {e}")
        return count


def create_policy_cache(config: Settings) -> PolicyCache:
    """Build the cache selected by ``policy_cache_backend``."""
    if config.policy_cache_backend == "redis":
        client = redis.Redis.from_url(config.redis_url, decode_responses=True)
        logger.info("Using Redis booking policy cache")
        return RedisPolicyCache(client, prefix=config.policy_cache_redis_prefix)
    return InMemoryPolicyCache()
