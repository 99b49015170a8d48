"""Planner answer cache with pluggable Redis / in-memory backends.

Planning results are keyed by a deterministic fingerprint of the planner
inputs and expire after a bounded lifetime, so repeated intents against
the same actor skip the LLM round-trip.

Usage::

    from actorrun.planner.cache import build_plan_cache

    cache = build_plan_cache()
    cache.set("planner:abc", {"url": "https://..."}, ttl_seconds=1800)
    hit = cache.get("planner:abc")
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class PlanCache:
    """Abstract-ish plan cache interface implemented by both backends."""

    def get(self, key: str) -> dict[str, Any] | None:
        """Return the cached payload or ``None`` on a miss."""
        raise NotImplementedError

    def set(self, key: str, data: dict[str, Any], *, ttl_seconds: int) -> None:
        """Store *data* under *key* for *ttl_seconds*."""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Remove a cached entry."""
        raise NotImplementedError


class InMemoryPlanCache(PlanCache):
    """In-memory plan cache with per-entry expiry.

    Args:
        clock: Monotonic clock (injectable for tests).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._data: dict[str, tuple[float, dict[str, Any]]] = {}
        self._clock = clock

    def get(self, key: str) -> dict[str, Any] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return payload

    def set(self, key: str, data: dict[str, Any], *, ttl_seconds: int) -> None:
        self._data[key] = (self._clock() + ttl_seconds, data)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class RedisPlanCache(PlanCache):
    """Redis-backed plan cache shared across workers.

    Keys are written with ``SETEX`` so Redis enforces the lifetime.

    Args:
        redis_url: Redis connection string (e.g. ``redis://localhost:6379/0``).
        client: Pre-built Redis client (overrides *redis_url*; used by tests).
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0", client: Any = None) -> None:
        if client is None:
            import redis as redis_lib

            client = redis_lib.Redis.from_url(redis_url, decode_responses=True)
        self._client = client

    def get(self, key: str) -> dict[str, Any] | None:
        raw = self._client.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unparseable cached plan under %s", key)
            return None

    def set(self, key: str, data: dict[str, Any], *, ttl_seconds: int) -> None:
        self._client.setex(key, ttl_seconds, json.dumps(data, default=str))

    def delete(self, key: str) -> None:
        self._client.delete(key)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_singleton: PlanCache | None = None


def build_plan_cache(*, force_new: bool = False) -> PlanCache:
    """Return a plan cache matching the current planner settings.

    The instance is cached as a module singleton so all callers share the
    same store (important for the in-memory backend).

    Args:
        force_new: Bypass the singleton cache and create a fresh instance.
    """
    global _singleton  # noqa: PLW0603
    if _singleton is not None and not force_new:
        return _singleton

    from actorrun.settings import get_settings

    planner_cfg = get_settings().planner

    if planner_cfg.cache_backend == "redis":
        logger.info("Using Redis plan cache at %s", planner_cfg.redis_url)
        _singleton = RedisPlanCache(redis_url=planner_cfg.redis_url)
    else:
        logger.info("Using in-memory plan cache")
        _singleton = InMemoryPlanCache()

    return _singleton
