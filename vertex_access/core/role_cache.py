"""Role cache keyed by subject id.

Correctness comes from invalidation, not from the TTL: a promotion/demotion
calls `invalidate()` before it is acknowledged, and any lookup that was in
flight while an invalidation happened is not allowed to repopulate the cache
with the value it read. The TTL only bounds staleness if an invalidation is
lost (e.g. a Redis publish from another worker never arrives).

The cache is an explicit object handed to the resolver; there is no module
level instance.
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from uuid import UUID

from vertex_access.core.config import settings
from vertex_access.core.redis_client import get_redis_client, get_redis_url
from vertex_access.db.enums import Role

logger = logging.getLogger(__name__)

ROLE_CACHE_INVALIDATE_CHANNEL = "vertex:role-cache:invalidate"


class RoleCache:
    """Bounded TTL + LRU map of subject id -> Role, safe for concurrent use."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        publish: Callable[[str], None] | None = None,
    ):
        self.ttl = settings.ROLE_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.max_entries = (
            settings.ROLE_CACHE_MAX_ENTRIES if max_entries is None else max_entries
        )
        self._clock = clock
        self._publish = publish
        self._lock = threading.RLock()
        self._data: OrderedDict[str, tuple[float, Role]] = OrderedDict()
        # Bumped on every invalidation; lookups started before a bump may not store.
        self._generation = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get(self, subject_id: UUID | str) -> Role | None:
        key = str(subject_id)
        now = self._clock()
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            stored_at, role = item
            if now - stored_at > self.ttl:
                self._data.pop(key, None)
                return None
            self._data.move_to_end(key)
            return role

    def begin_lookup(self) -> int:
        """Snapshot taken before reading the store; pass it back to `put`."""
        with self._lock:
            return self._generation

    def put(self, subject_id: UUID | str, role: Role, generation: int | None = None) -> bool:
        """
        Store a role. Returns False (and stores nothing) if an invalidation
        happened since `generation` was taken.
        """
        if self.ttl <= 0 or self.max_entries <= 0:
            return False
        key = str(subject_id)
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._data[key] = (self._clock(), role)
            self._data.move_to_end(key)
            while len(self._data) > self.max_entries:
                self._data.popitem(last=False)
            return True

    def invalidate(self, subject_id: UUID | str, *, broadcast: bool = True) -> None:
        """Drop a subject's entry synchronously, then notify other workers."""
        key = str(subject_id)
        with self._lock:
            self._generation += 1
            self._data.pop(key, None)
        logger.info("Invalidated cached role for subject %s", key)
        if broadcast and self._publish is not None:
            try:
                self._publish(key)
            except Exception:
                logger.warning("Failed to publish role cache invalidation", exc_info=True)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._data.clear()


# =============================================================================
# Cross-worker invalidation (optional, Redis pub/sub)
# =============================================================================

def publish_invalidation(subject_id: str) -> None:
    """Publish an invalidation for other workers. No-op without Redis."""
    client = get_redis_client()
    if client is None:
        return
    client.publish(ROLE_CACHE_INVALIDATE_CHANNEL, subject_id)


def subscribe_invalidations(cache: RoleCache):
    """
    Listen for invalidations published by other workers.

    Returns the pub/sub worker thread, or None when Redis is not configured.
    """
    client = get_redis_client()
    if client is None:
        return None

    def _handle(message: dict) -> None:
        data = message.get("data")
        if isinstance(data, bytes):
            data = data.decode()
        if data:
            cache.invalidate(data, broadcast=False)

    pubsub = client.pubsub(ignore_subscribe_messages=True)
    pubsub.subscribe(**{ROLE_CACHE_INVALIDATE_CHANNEL: _handle})
    return pubsub.run_in_thread(sleep_time=1.0, daemon=True)


def build_role_cache() -> RoleCache:
    """Role cache wired to Redis invalidation when REDIS_URL is set."""
    publish = publish_invalidation if get_redis_url() else None
    return RoleCache(publish=publish)
