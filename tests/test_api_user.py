"""Tests for user API endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Playlist, User


class TestCategoryEndpoints:
    """Tests for /api/user category endpoints."""

    @pytest.mark.asyncio
    async def test_get_categories_unauthenticated(self, client: AsyncClient):
        response = await client.get("/api/user/categories")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_get_categories(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/api/user/categories")
        assert response.status_code == 200
        assert response.json() == {"categories": ["Programming"]}

    @pytest.mark.asyncio
    async def test_add_category(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/api/user/category", json={"category": " Math "})
        assert response.status_code == 200
        assert response.json()["categories"] == ["Programming", "Math"]

    @pytest.mark.asyncio
    async def test_add_duplicate_category(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            "/api/user/category", json={"category": "Programming"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_add_blank_category(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/api/user/category", json={"category": "  "})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_rename_moves_playlists(
        self,
        authenticated_client: AsyncClient,
        db_session: AsyncSession,
        playlist: Playlist,
    ):
        response = await authenticated_client.put(
            "/api/user/category",
            json={"old_category": "Programming", "new_category": "Coding"},
        )
        assert response.status_code == 200
        assert response.json()["categories"] == ["Coding"]

        result = await db_session.execute(
            select(Playlist.category).where(Playlist.id == playlist.id)
        )
        assert result.scalar() == "Coding"

    @pytest.mark.asyncio
    async def test_rename_unknown_category(self, authenticated_client: AsyncClient):
        response = await authenticated_client.put(
            "/api/user/category", json={"old_category": "Nope", "new_category": "Coding"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_rename_to_existing_category(
        self, authenticated_client: AsyncClient, test_user: User
    ):
        test_user.categories = ["Programming", "Math"]
        response = await authenticated_client.put(
            "/api/user/category", json={"old_category": "Math", "new_category": "Programming"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_empty_category(self, authenticated_client: AsyncClient):
        response = await authenticated_client.delete("/api/user/category/Programming")
        assert response.status_code == 200
        assert response.json() == {"categories": [], "deleted_playlists_count": 0}

    @pytest.mark.asyncio
    async def test_delete_category_with_playlists_refused(
        self, authenticated_client: AsyncClient, playlist: Playlist
    ):
        """Without the flag the category and its playlists are kept."""
        response = await authenticated_client.delete("/api/user/category/Programming")
        assert response.status_code == 400
        data = response.json()
        assert data["has_playlists"] is True
        assert data["count"] == 1

        categories = await authenticated_client.get("/api/user/categories")
        assert categories.json()["categories"] == ["Programming"]

    @pytest.mark.asyncio
    async def test_delete_category_with_playlists(
        self,
        authenticated_client: AsyncClient,
        db_session: AsyncSession,
        test_user: User,
        playlist: Playlist,
    ):
        response = await authenticated_client.delete(
            "/api/user/category/Programming",
            params={"delete_associated_playlists": "true"},
        )
        assert response.status_code == 200
        assert response.json() == {"categories": [], "deleted_playlists_count": 1}

        result = await db_session.execute(select(Playlist).where(Playlist.user_id == test_user.id))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_delete_unknown_category(self, authenticated_client: AsyncClient):
        response = await authenticated_client.delete("/api/user/category/Nope")
        assert response.status_code == 400


class TestDailyGoalEndpoints:
    """Tests for /api/user/daily-goal."""

    @pytest.mark.asyncio
    async def test_daily_goal_defaults_empty(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/api/user/daily-goal")
        assert response.status_code == 200
        assert response.json() == {"daily_goal": ""}

    @pytest.mark.asyncio
    async def test_set_daily_goal(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            "/api/user/daily-goal", json={"daily_goal": " Watch two videos "}
        )
        assert response.status_code == 200
        assert response.json() == {"daily_goal": "Watch two videos"}

        response = await authenticated_client.get("/api/user/daily-goal")
        assert response.json()["daily_goal"] == "Watch two videos"

    @pytest.mark.asyncio
    async def test_daily_goal_too_long(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            "/api/user/daily-goal", json={"daily_goal": "x" * 501}
        )
        assert response.status_code == 422
