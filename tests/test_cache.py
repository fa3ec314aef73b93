"""Tests for the Redis cache layer and its invalidation by API writes."""

import importlib.util
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fakeredis import FakeAsyncRedis
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.models import Badge, Playlist, User, Video
from src.utils.cache import cache, make_cache_key
from src.utils.metrics import metrics


def load_script(name: str):
    path = Path(__file__).parent.parent / "scripts" / f"{name}.py"
    module_spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


cleanup_script = load_script("cleanup_badges")


class TestRedisCache:
    """Tests for the RedisCache client."""

    @pytest.mark.asyncio
    async def test_set_then_get(self, redis_cache: FakeAsyncRedis):
        hits = metrics.cache_requests_total.get(result="hit")

        assert await cache.set("playlist:1", {"name": "Python", "ids": [1, 2]}, ttl=60)
        assert await cache.get("playlist:1") == {"name": "Python", "ids": [1, 2]}
        assert metrics.cache_requests_total.get(result="hit") == hits + 1
        assert 0 < await redis_cache.ttl("playlist:1") <= 60

    @pytest.mark.asyncio
    async def test_missing_key_is_miss(self, redis_cache: FakeAsyncRedis):
        misses = metrics.cache_requests_total.get(result="miss")

        assert await cache.get("playlist:404") is None
        assert metrics.cache_requests_total.get(result="miss") == misses + 1

    @pytest.mark.asyncio
    async def test_delete_pattern(self, redis_cache: FakeAsyncRedis):
        await cache.set("video:1", {"id": 1})
        await cache.set("video:2", {"id": 2})
        await cache.set("badges:1", [])

        assert await cache.delete_pattern("video:*") == 2
        assert await redis_cache.exists("badges:1") == 1

    @pytest.mark.asyncio
    async def test_redis_errors_are_misses(
        self, redis_cache: FakeAsyncRedis, monkeypatch: pytest.MonkeyPatch
    ):
        down = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
        monkeypatch.setattr(redis_cache, "get", down)
        monkeypatch.setattr(redis_cache, "setex", down)
        monkeypatch.setattr(redis_cache, "delete", down)

        assert await cache.get("user:1") is None
        assert await cache.set("user:1", {"id": 1}) is False
        assert await cache.delete("user:1") is False

    @pytest.mark.asyncio
    async def test_disabled_cache(self):
        assert not cache.enabled
        assert await cache.set("user:1", {"id": 1}) is False
        assert await cache.get("user:1") is None

    def test_make_cache_key(self):
        assert make_cache_key("video", 12) == "video:12"
        assert make_cache_key("transcript", "dQw4w9WgXcQ", None) == "transcript:dQw4w9WgXcQ"


class TestCachedEndpoints:
    """Tests for cached responses and their invalidation after writes."""

    @pytest.mark.asyncio
    async def test_categories_cached_and_invalidated(
        self, authenticated_client: AsyncClient, redis_cache: FakeAsyncRedis, test_user: User
    ):
        key = make_cache_key("categories", test_user.id)

        await authenticated_client.get("/api/user/categories")
        assert await cache.get(key) == {"categories": ["Programming"]}

        response = await authenticated_client.post("/api/user/category", json={"category": "Math"})
        assert response.status_code == 200
        assert await redis_cache.exists(key) == 0

        response = await authenticated_client.get("/api/user/categories")
        assert response.json()["categories"] == ["Programming", "Math"]

    @pytest.mark.asyncio
    async def test_cached_video_detail_is_served(
        self, authenticated_client: AsyncClient, redis_cache: FakeAsyncRedis, videos: list[Video]
    ):
        key = make_cache_key("video", videos[0].id)
        await authenticated_client.get(f"/api/video/{videos[0].id}")

        cached = await cache.get(key)
        cached["title"] = "From cache"
        await cache.set(key, cached)

        response = await authenticated_client.get(f"/api/video/{videos[0].id}")
        assert response.json()["title"] == "From cache"

    @pytest.mark.asyncio
    async def test_playlist_category_change_refreshes_video_detail(
        self,
        authenticated_client: AsyncClient,
        redis_cache: FakeAsyncRedis,
        db_session: AsyncSession,
        test_user: User,
        playlist: Playlist,
        videos: list[Video],
    ):
        test_user.categories = ["Programming", "Music"]
        await db_session.commit()

        response = await authenticated_client.get(f"/api/video/{videos[0].id}")
        assert response.json()["playlist_category"] == "Programming"

        response = await authenticated_client.patch(
            f"/api/playlist/{playlist.id}/category", json={"category": "Music"}
        )
        assert response.status_code == 200

        response = await authenticated_client.get(f"/api/video/{videos[0].id}")
        assert response.json()["playlist_category"] == "Music"

    @pytest.mark.asyncio
    async def test_category_rename_refreshes_video_detail(
        self, authenticated_client: AsyncClient, redis_cache: FakeAsyncRedis, videos: list[Video]
    ):
        await authenticated_client.get(f"/api/video/{videos[1].id}")

        response = await authenticated_client.put(
            "/api/user/category", json={"old_category": "Programming", "new_category": "Coding"}
        )
        assert response.status_code == 200

        response = await authenticated_client.get(f"/api/video/{videos[1].id}")
        assert response.json()["playlist_category"] == "Coding"

    @pytest.mark.asyncio
    async def test_status_update_refreshes_cached_streak(
        self, authenticated_client: AsyncClient, redis_cache: FakeAsyncRedis, videos: list[Video]
    ):
        response = await authenticated_client.get("/api/auth/user")
        assert response.json()["current_streak"] == 0

        await authenticated_client.patch(
            f"/api/video/{videos[0].id}/status", json={"status": "in-progress"}
        )

        response = await authenticated_client.get("/api/auth/user")
        assert response.json()["current_streak"] == 1

    @pytest.mark.asyncio
    async def test_time_update_refreshes_cached_streak(
        self, authenticated_client: AsyncClient, redis_cache: FakeAsyncRedis, videos: list[Video]
    ):
        await authenticated_client.get("/api/auth/user")

        await authenticated_client.patch(f"/api/video/{videos[0].id}/time", json={"time_spent": 15})

        response = await authenticated_client.get("/api/auth/user")
        assert response.json()["current_streak"] == 1

    @pytest.mark.asyncio
    async def test_completion_refreshes_playlist_list(
        self, authenticated_client: AsyncClient, redis_cache: FakeAsyncRedis, videos: list[Video]
    ):
        response = await authenticated_client.get("/api/playlist/")
        assert response.json()[0]["completed_videos"] == 0

        await authenticated_client.patch(
            f"/api/video/{videos[0].id}/status", json={"status": "completed"}
        )

        response = await authenticated_client.get("/api/playlist/")
        assert response.json()[0]["completed_videos"] == 1

    @pytest.mark.asyncio
    async def test_routes_work_when_redis_fails(
        self,
        authenticated_client: AsyncClient,
        redis_cache: FakeAsyncRedis,
        monkeypatch: pytest.MonkeyPatch,
        videos: list[Video],
    ):
        down = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
        monkeypatch.setattr(redis_cache, "get", down)
        monkeypatch.setattr(redis_cache, "setex", down)
        monkeypatch.setattr(redis_cache, "delete", down)

        response = await authenticated_client.get(f"/api/video/{videos[0].id}")
        assert response.status_code == 200

        response = await authenticated_client.patch(
            f"/api/video/{videos[0].id}/status", json={"status": "completed"}
        )
        assert response.status_code == 200
        assert response.json()["video"]["status"] == "completed"


class TestCleanupScript:
    """Tests for scripts/cleanup_badges.py."""

    @pytest.mark.asyncio
    async def test_repair_drops_cached_badges(
        self,
        db_session: AsyncSession,
        redis_cache: FakeAsyncRedis,
        test_user: User,
        monkeypatch: pytest.MonkeyPatch,
    ):
        earned = datetime(2024, 1, 1)
        db_session.add_all(
            [
                Badge(
                    user_id=test_user.id,
                    title="Playlist Master",
                    description="",
                    icon="",
                    earned_at=earned + timedelta(hours=i),
                )
                for i in range(3)
            ]
        )
        await db_session.commit()

        key = make_cache_key("badges", test_user.id)
        await cache.set(key, [{"title": "Playlist Master"}] * 3)

        session_maker = async_sessionmaker(db_session.bind, expire_on_commit=False)
        monkeypatch.setattr(cleanup_script, "async_session_maker", session_maker)
        monkeypatch.setattr(cache, "close", AsyncMock())

        totals = await cleanup_script.cleanup_badges(user_id=test_user.id)

        assert totals.duplicates_removed == 2
        assert await redis_cache.exists(key) == 0

        result = await db_session.execute(
            select(func.count(Badge.id)).where(Badge.user_id == test_user.id)
        )
        assert result.scalar() == 1

    @pytest.mark.asyncio
    async def test_dry_run_keeps_rows_and_cache(
        self,
        db_session: AsyncSession,
        redis_cache: FakeAsyncRedis,
        test_user: User,
        monkeypatch: pytest.MonkeyPatch,
    ):
        db_session.add_all(
            [
                Badge(user_id=test_user.id, title="Playlist Master", description="", icon="")
                for _ in range(2)
            ]
        )
        await db_session.commit()

        key = make_cache_key("badges", test_user.id)
        await cache.set(key, [])

        session_maker = async_sessionmaker(db_session.bind, expire_on_commit=False)
        monkeypatch.setattr(cleanup_script, "async_session_maker", session_maker)

        totals = await cleanup_script.cleanup_badges(dry_run=True, user_id=test_user.id)

        assert totals.duplicates_removed == 1
        assert await redis_cache.exists(key) == 1

        result = await db_session.execute(
            select(func.count(Badge.id)).where(Badge.user_id == test_user.id)
        )
        assert result.scalar() == 2
