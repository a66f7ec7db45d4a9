"""
Redis caching for the upcoming-events listing.

CACHING STRATEGY
================

What we cache:
  - The upcoming-events list (event rows only, JSON-serialized)
  - Single key: "events:upcoming"

Why:
  - It is the most frequent read and only changes when an event is created
  - It carries no occupancy data, so registrations never make it stale

Invalidation strategy:
  - On event creation: delete the key
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)
  - Events that started after the list was cached are filtered out on read,
    so a cached list never returns a past event

Why NOT cache occupancy / stats:
  - Registration decisions must count rows under the event lock
  - A cached count is exactly the stale read the locking exists to avoid

The Redis client is owned by an UpcomingEventsCache instance created in the
application lifespan. When Redis is disabled or unreachable the cache is a
no-op and every read goes to the database.
"""

import json
from datetime import datetime
from typing import Optional

import redis.asyncio as redis
from fastapi import Request

from event_registry.core.clock import as_utc, utcnow
from event_registry.core.config import Settings
from event_registry.core.logging import get_logger
from event_registry.core.metrics import record_cache_operation

logger = get_logger(__name__)

UPCOMING_EVENTS_KEY = "events:upcoming"


class UpcomingEventsCache:
    def __init__(self, client: Optional[redis.Redis] = None, ttl: int = 60):
        self._client = client
        self.ttl = ttl

    @classmethod
    async def connect(cls, settings: Settings) -> "UpcomingEventsCache":
        """Build the cache from settings. Never raises; falls back to a disabled cache."""
        if not settings.REDIS_ENABLED:
            return cls(None, settings.REDIS_CACHE_TTL)

        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except (redis.RedisError, OSError) as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return cls(None, settings.REDIS_CACHE_TTL)

        logger.info("redis_connected", url=settings.REDIS_URL)
        return cls(client, settings.REDIS_CACHE_TTL)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_upcoming(self, now: Optional[datetime] = None) -> Optional[list[dict]]:
        """Cached upcoming events still in the future, or None on miss."""
        if not self.enabled:
            return None

        try:
            data = await self._client.get(UPCOMING_EVENTS_KEY)
        except redis.RedisError as e:
            record_cache_operation("get", "error")
            logger.error("cache_get_error", key=UPCOMING_EVENTS_KEY, error=str(e))
            return None

        if data is None:
            record_cache_operation("get", "miss")
            return None

        record_cache_operation("get", "hit")
        now = now or utcnow()
        return [
            item for item in json.loads(data)
            if as_utc(datetime.fromisoformat(item["event_datetime"])) > now
        ]

    async def set_upcoming(self, events: list[dict]) -> None:
        if not self.enabled:
            return

        try:
            await self._client.setex(UPCOMING_EVENTS_KEY, self.ttl, json.dumps(events, default=str))
            record_cache_operation("set", "ok")
        except redis.RedisError as e:
            record_cache_operation("set", "error")
            logger.error("cache_set_error", key=UPCOMING_EVENTS_KEY, error=str(e))

    async def invalidate(self) -> None:
        if not self.enabled:
            return

        try:
            deleted = await self._client.delete(UPCOMING_EVENTS_KEY)
            record_cache_operation("invalidate", "ok")
            logger.info("cache_invalidated", keys_deleted=deleted)
        except redis.RedisError as e:
            record_cache_operation("invalidate", "error")
            logger.error("cache_invalidation_error", error=str(e))

    async def stats(self) -> dict:
        """Redis cache statistics for the health endpoint."""
        if not self.enabled:
            return {"status": "disabled"}

        try:
            info = await self._client.info("stats")
        except redis.RedisError as e:
            return {"status": "error", "error": str(e)}

        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }


def get_cache(request: Request) -> UpcomingEventsCache:
    """FastAPI dependency returning the application's cache."""
    return request.app.state.cache
