"""Redis caching utilities for API responses and external lookups.

Provides async Redis caching with JSON serialization, per-key TTLs and
cache key namespacing. The cache is fail-open: when Redis is unreachable at
startup it stays disabled for the process, and runtime errors are treated as
misses.
"""

import json
from datetime import timedelta
from typing import Any

import redis.asyncio as redis

from src.config import get_settings
from src.constants import CACHE_TTL_PLAYLIST
from src.utils.logging import get_logger
from src.utils.metrics import metrics

logger = get_logger(__name__)
settings = get_settings()


class RedisCache:
    """Async Redis cache client with JSON serialization."""

    def __init__(self) -> None:
        self._client: redis.Redis | None = None
        self._connected = False

    @property
    def enabled(self) -> bool:
        return self._connected

    async def _get_client(self) -> redis.Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(
                settings.redis_url,
                password=settings.redis_password or None,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def connect(self) -> bool:
        """Test Redis connection, enabling the cache when it answers."""
        try:
            client = await self._get_client()
            await client.ping()
            self._connected = True
            return True
        except Exception as e:
            logger.warning(f"Redis cache unavailable: {e}")
            self._connected = False
            return False

    async def ping(self) -> bool:
        """Ping Redis to check connection health."""
        client = await self._get_client()
        return await client.ping()

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._connected = False

    async def get(self, key: str) -> Any | None:
        """Get value from cache.

        Returns:
            Cached value or None if not found, expired, or Redis is unavailable
        """
        if not self._connected:
            return None

        try:
            client = await self._get_client()
            data = await client.get(key)
        except Exception as e:
            logger.debug(f"Cache get error for {key}: {e}")
            return None

        if data is None:
            metrics.cache_requests_total.inc(result="miss")
            return None

        metrics.cache_requests_total.inc(result="hit")
        try:
            return json.loads(data)
        except ValueError:
            return data

    async def set(
        self,
        key: str,
        value: Any,
        ttl: timedelta | int | None = None,
    ) -> bool:
        """Set value in cache.

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live, as seconds or timedelta (default: 30 minutes)

        Returns:
            True if successful
        """
        if not self._connected:
            return False

        if ttl is None:
            ttl = CACHE_TTL_PLAYLIST
        expire_seconds = int(ttl.total_seconds()) if isinstance(ttl, timedelta) else int(ttl)

        try:
            client = await self._get_client()
            serialized = json.dumps(value, default=str)
            await client.setex(key, expire_seconds, serialized)
            return True
        except Exception as e:
            logger.debug(f"Cache set error for {key}: {e}")
            return False

    async def delete(self, *keys: str) -> bool:
        """Delete one or more keys from cache."""
        if not self._connected or not keys:
            return False

        try:
            client = await self._get_client()
            await client.delete(*keys)
            return True
        except Exception as e:
            logger.debug(f"Cache delete error for {keys}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern.

        Args:
            pattern: Glob pattern (e.g., "video:*")

        Returns:
            Number of keys deleted
        """
        if not self._connected:
            return 0

        try:
            client = await self._get_client()
            keys = []
            async for key in client.scan_iter(match=pattern):
                keys.append(key)
            if keys:
                return await client.delete(*keys)
            return 0
        except Exception as e:
            logger.debug(f"Cache delete pattern error for {pattern}: {e}")
            return 0


# Global cache instance
cache = RedisCache()


def make_cache_key(namespace: str, *parts: Any) -> str:
    """Build a namespaced key, e.g. make_cache_key("playlist", 12) -> "playlist:12"."""
    return ":".join([namespace, *(str(p) for p in parts if p is not None)])


async def invalidate_user_cache(user_id: int) -> None:
    """Drop the cached profile, categories and daily goal of a user."""
    await cache.delete(
        make_cache_key("user", user_id),
        make_cache_key("categories", user_id),
        make_cache_key("daily-goal", user_id),
    )


async def invalidate_playlist_cache(user_id: int, *playlist_ids: int) -> None:
    """Drop the user's playlist list and the given playlist details."""
    keys = [make_cache_key("playlists", user_id)]
    keys.extend(make_cache_key("playlist", pid) for pid in playlist_ids)
    await cache.delete(*keys)


async def invalidate_video_details(*video_ids: int) -> None:
    await cache.delete(*(make_cache_key("video", vid) for vid in video_ids))


async def invalidate_video_cache(user_id: int, playlist_id: int, *video_ids: int) -> None:
    """Drop cached video details together with their playlist views."""
    await invalidate_video_details(*video_ids)
    await invalidate_playlist_cache(user_id, playlist_id)


async def invalidate_badge_cache(user_id: int) -> None:
    await cache.delete(make_cache_key("badges", user_id))
