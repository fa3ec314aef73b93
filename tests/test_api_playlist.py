"""Tests for playlist API endpoints."""

from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Badge, Playlist, User, Video, VideoStatus
from src.services.youtube import YouTubeAPIError, youtube_client

YT_URL = "https://www.youtube.com/playlist?list=PLtest123"


def yt_contents(video_ids: list[str]) -> dict[str, Any]:
    return {
        "playlist": {
            "yt_playlist_id": "PLtest123",
            "title": "FastAPI Course",
            "description": "Full course",
            "thumbnail": "https://i.ytimg.com/vi/x/hqdefault.jpg",
            "channel_title": "Some Channel",
            "item_count": len(video_ids),
            "published_at": "2024-01-01T00:00:00Z",
        },
        "videos": [
            {
                "yt_id": yt_id,
                "title": f"Lesson {yt_id}",
                "description": "00:00 - Intro",
                "thumbnail": "",
                "duration": "PT10M",
                "view_count": 100,
                "like_count": 10,
                "published_at": "2024-01-02T00:00:00Z",
                "channel_title": "Some Channel",
            }
            for yt_id in video_ids
        ],
    }


@pytest.fixture
def fake_youtube(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    """Replace YouTube playlist fetching; mutate state["ids"] to change the answer."""
    state: dict[str, Any] = {"ids": ["aaaaaaaaaaa", "bbbbbbbbbbb"], "calls": []}

    async def get_playlist_contents(playlist_id: str, use_cache: bool = True) -> dict[str, Any]:
        state["calls"].append((playlist_id, use_cache))
        return yt_contents(state["ids"])

    monkeypatch.setattr(youtube_client, "get_playlist_contents", get_playlist_contents)
    return state


class TestCreatePlaylist:
    """Tests for POST /api/playlist/add."""

    @pytest.mark.asyncio
    async def test_create_unauthenticated(self, client: AsyncClient):
        response = await client.post("/api/playlist/add", json={"name": "X", "is_custom": True})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_custom_playlist(self, authenticated_client: AsyncClient):
        """Custom playlists start empty and incomplete."""
        response = await authenticated_client.post(
            "/api/playlist/add",
            json={"name": "My Mix", "category": "Programming", "is_custom": True},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "My Mix"
        assert data["category"] == "Programming"
        assert data["is_custom"] is True
        assert data["completed"] is False
        assert data["videos"] == []

    @pytest.mark.asyncio
    async def test_unknown_category_falls_back(
        self, authenticated_client: AsyncClient, test_user: User
    ):
        """Unknown categories file the playlist under Uncategorized."""
        response = await authenticated_client.post(
            "/api/playlist/add",
            json={"name": "Misc", "category": "Nope", "is_custom": True},
        )
        assert response.status_code == 201
        assert response.json()["category"] == "Uncategorized"
        assert "Uncategorized" in test_user.categories

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            "/api/playlist/add", json={"name": "   ", "is_custom": True}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_import_youtube_playlist(
        self, authenticated_client: AsyncClient, fake_youtube: dict
    ):
        """Videos are imported in YouTube order with playlist metadata."""
        response = await authenticated_client.post(
            "/api/playlist/add",
            json={"name": "FastAPI", "category": "Programming", "yt_playlist_url": YT_URL},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["is_custom"] is False
        assert data["yt_playlist_id"] == "PLtest123"
        assert data["yt_title"] == "FastAPI Course"
        assert [v["yt_id"] for v in data["videos"]] == ["aaaaaaaaaaa", "bbbbbbbbbbb"]
        assert [v["position"] for v in data["videos"]] == [0, 1]
        assert all(v["status"] == "to-watch" for v in data["videos"])

    @pytest.mark.asyncio
    async def test_import_requires_url(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/api/playlist/add", json={"name": "FastAPI"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_import_invalid_url(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            "/api/playlist/add",
            json={"name": "FastAPI", "yt_playlist_url": "https://www.youtube.com/watch?v=abc"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid YouTube playlist URL"

    @pytest.mark.asyncio
    async def test_import_duplicate_rejected(
        self, authenticated_client: AsyncClient, fake_youtube: dict
    ):
        """The same YouTube playlist cannot be imported twice."""
        payload = {"name": "FastAPI", "yt_playlist_url": YT_URL}
        first = await authenticated_client.post("/api/playlist/add", json=payload)
        assert first.status_code == 201

        second = await authenticated_client.post(
            "/api/playlist/add", json={**payload, "name": "FastAPI again"}
        )
        assert second.status_code == 400
        assert second.json()["detail"] == "This playlist has already been added"

    @pytest.mark.asyncio
    async def test_import_youtube_failure(
        self,
        authenticated_client: AsyncClient,
        db_session: AsyncSession,
        test_user: User,
        monkeypatch: pytest.MonkeyPatch,
    ):
        """A YouTube error is a 500 and leaves no playlist behind."""

        async def failing(playlist_id: str, use_cache: bool = True):
            raise YouTubeAPIError("quota exceeded", status_code=403, reason="quotaExceeded")

        monkeypatch.setattr(youtube_client, "get_playlist_contents", failing)

        response = await authenticated_client.post(
            "/api/playlist/add", json={"name": "FastAPI", "yt_playlist_url": YT_URL}
        )
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to fetch data from YouTube"

        result = await db_session.execute(select(Playlist).where(Playlist.user_id == test_user.id))
        assert result.scalars().all() == []


class TestListAndDetail:
    """Tests for GET /api/playlist/ and GET /api/playlist/{id}."""

    @pytest.mark.asyncio
    async def test_list_with_progress(
        self,
        authenticated_client: AsyncClient,
        db_session: AsyncSession,
        playlist: Playlist,
        videos: list[Video],
    ):
        videos[0].status = VideoStatus.COMPLETED
        videos[0].time_spent = 12
        videos[1].status = VideoStatus.IN_PROGRESS
        videos[1].time_spent = 3
        videos[1].notes = "remember this"
        await db_session.commit()

        response = await authenticated_client.get("/api/playlist/")
        assert response.status_code == 200
        [entry] = response.json()
        assert entry["id"] == playlist.id
        assert entry["total_videos"] == 3
        assert entry["completed_videos"] == 1
        assert entry["in_progress_videos"] == 1
        assert entry["progress"] == 33
        assert entry["total_time_spent"] == 15
        assert entry["notes_count"] == 1

    @pytest.mark.asyncio
    async def test_list_empty_playlist(
        self, authenticated_client: AsyncClient, make_playlist, test_user: User
    ):
        await make_playlist(test_user, name="Empty", video_count=0)

        response = await authenticated_client.get("/api/playlist/")
        [entry] = response.json()
        assert entry["total_videos"] == 0
        assert entry["progress"] == 0

    @pytest.mark.asyncio
    async def test_list_only_own_playlists(
        self, authenticated_client: AsyncClient, make_playlist, other_user: User
    ):
        await make_playlist(other_user, name="Not mine")

        response = await authenticated_client.get("/api/playlist/")
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_detail_orders_videos(
        self, authenticated_client: AsyncClient, playlist: Playlist
    ):
        response = await authenticated_client.get(f"/api/playlist/{playlist.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Python Basics"
        assert [v["position"] for v in data["videos"]] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_detail_of_other_user_is_404(
        self, authenticated_client: AsyncClient, make_playlist, other_user: User
    ):
        foreign = await make_playlist(other_user, name="Not mine")

        response = await authenticated_client.get(f"/api/playlist/{foreign.id}")
        assert response.status_code == 404


class TestDeletePlaylist:
    """Tests for DELETE /api/playlist/{id}."""

    @pytest.mark.asyncio
    async def test_delete_removes_videos_and_badge(
        self,
        authenticated_client: AsyncClient,
        db_session: AsyncSession,
        test_user: User,
        playlist: Playlist,
        videos: list[Video],
    ):
        for video in videos:
            response = await authenticated_client.patch(
                f"/api/video/{video.id}/status", json={"status": "completed"}
            )
            assert response.status_code == 200
        assert response.json()["playlist_completed"] is True

        response = await authenticated_client.delete(f"/api/playlist/{playlist.id}")
        assert response.status_code == 200

        result = await db_session.execute(select(Video).where(Video.playlist_id == playlist.id))
        assert result.scalars().all() == []
        result = await db_session.execute(select(Badge.title).where(Badge.user_id == test_user.id))
        titles = {row[0] for row in result.all()}
        assert "Completed: Python Basics" not in titles
        assert "Playlist Master" in titles

        response = await authenticated_client.get(f"/api/playlist/{playlist.id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_other_user_playlist(
        self, authenticated_client: AsyncClient, make_playlist, other_user: User
    ):
        foreign = await make_playlist(other_user, name="Not mine")

        response = await authenticated_client.delete(f"/api/playlist/{foreign.id}")
        assert response.status_code == 404


class TestPlaylistVideos:
    """Tests for adding, syncing, resetting and reordering videos."""

    @pytest.mark.asyncio
    async def test_add_video_to_custom_playlist(
        self,
        authenticated_client: AsyncClient,
        playlist: Playlist,
        monkeypatch: pytest.MonkeyPatch,
    ):
        async def get_video(video_id: str) -> dict[str, Any]:
            return yt_contents([video_id])["videos"][0]

        monkeypatch.setattr(youtube_client, "get_video", get_video)

        response = await authenticated_client.post(
            f"/api/playlist/{playlist.id}/add-video",
            json={"video_url": "https://youtu.be/dQw4w9WgXcQ"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["yt_id"] == "dQw4w9WgXcQ"
        assert data["position"] == 3
        assert data["status"] == "to-watch"

        again = await authenticated_client.post(
            f"/api/playlist/{playlist.id}/add-video",
            json={"video_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"},
        )
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_add_video_invalid_url(
        self, authenticated_client: AsyncClient, playlist: Playlist
    ):
        response = await authenticated_client.post(
            f"/api/playlist/{playlist.id}/add-video", json={"video_url": "not a video"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_add_video_to_youtube_playlist_rejected(
        self, authenticated_client: AsyncClient, make_playlist, test_user: User
    ):
        imported = await make_playlist(test_user, name="Imported", is_custom=False)

        response = await authenticated_client.post(
            f"/api/playlist/{imported.id}/add-video",
            json={"video_url": "https://youtu.be/dQw4w9WgXcQ"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_sync_adds_only_new_videos(
        self, authenticated_client: AsyncClient, fake_youtube: dict
    ):
        created = await authenticated_client.post(
            "/api/playlist/add", json={"name": "FastAPI", "yt_playlist_url": YT_URL}
        )
        playlist_id = created.json()["id"]

        fake_youtube["ids"] = ["aaaaaaaaaaa", "bbbbbbbbbbb", "ccccccccccc"]
        response = await authenticated_client.post(f"/api/playlist/{playlist_id}/sync")
        assert response.status_code == 200
        data = response.json()
        assert data["added"] == 1
        assert data["skipped"] == 2
        assert data["total"] == 3
        assert fake_youtube["calls"][-1] == ("PLtest123", False)

        detail = await authenticated_client.get(f"/api/playlist/{playlist_id}")
        assert [v["yt_id"] for v in detail.json()["videos"]][-1] == "ccccccccccc"

    @pytest.mark.asyncio
    async def test_sync_custom_playlist_rejected(
        self, authenticated_client: AsyncClient, playlist: Playlist
    ):
        response = await authenticated_client.post(f"/api/playlist/{playlist.id}/sync")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_reset_keeps_notes(
        self,
        authenticated_client: AsyncClient,
        db_session: AsyncSession,
        playlist: Playlist,
        videos: list[Video],
    ):
        for video in videos:
            video.status = VideoStatus.COMPLETED
            video.time_spent = 5
        videos[0].notes = "keep me"
        playlist.completed = True
        await db_session.commit()

        response = await authenticated_client.post(f"/api/playlist/{playlist.id}/reset")
        assert response.status_code == 200

        detail = (await authenticated_client.get(f"/api/playlist/{playlist.id}")).json()
        assert detail["completed"] is False
        assert all(v["status"] == "to-watch" for v in detail["videos"])
        assert all(v["time_spent"] == 0 for v in detail["videos"])
        assert detail["videos"][0]["notes"] == "keep me"

    @pytest.mark.asyncio
    async def test_reorder(
        self, authenticated_client: AsyncClient, playlist: Playlist, videos: list[Video]
    ):
        first, second, third = videos
        response = await authenticated_client.patch(
            f"/api/playlist/{playlist.id}/reorder",
            json={
                "video_positions": [
                    {"id": third.id, "position": 0},
                    {"id": first.id, "position": 1},
                    {"id": second.id, "position": 2},
                ]
            },
        )
        assert response.status_code == 200
        assert [v["id"] for v in response.json()["videos"]] == [third.id, first.id, second.id]

    @pytest.mark.asyncio
    async def test_reorder_foreign_video_rejected(
        self,
        authenticated_client: AsyncClient,
        make_playlist,
        test_user: User,
        playlist: Playlist,
        videos: list[Video],
    ):
        other = await make_playlist(test_user, name="Other", video_count=1)
        detail = (await authenticated_client.get(f"/api/playlist/{other.id}")).json()
        foreign_id = detail["videos"][0]["id"]

        response = await authenticated_client.patch(
            f"/api/playlist/{playlist.id}/reorder",
            json={
                "video_positions": [
                    {"id": videos[0].id, "position": 1},
                    {"id": foreign_id, "position": 0},
                ]
            },
        )
        assert response.status_code == 400

        detail = (await authenticated_client.get(f"/api/playlist/{playlist.id}")).json()
        assert [v["id"] for v in detail["videos"]] == [v.id for v in videos]

    @pytest.mark.asyncio
    async def test_toggle_pin(
        self, authenticated_client: AsyncClient, playlist: Playlist, videos: list[Video]
    ):
        url = f"/api/playlist/{playlist.id}/toggle-pin-video/{videos[1].id}"

        response = await authenticated_client.patch(url)
        assert response.status_code == 200
        assert response.json() == {"id": videos[1].id, "pinned": True}

        response = await authenticated_client.patch(url)
        assert response.json()["pinned"] is False

    @pytest.mark.asyncio
    async def test_update_category(
        self, authenticated_client: AsyncClient, test_user: User, playlist: Playlist
    ):
        test_user.categories = ["Programming", "Math"]

        response = await authenticated_client.patch(
            f"/api/playlist/{playlist.id}/category", json={"category": "Math"}
        )
        assert response.status_code == 200
        assert response.json()["category"] == "Math"

        response = await authenticated_client.patch(
            f"/api/playlist/{playlist.id}/category", json={"category": "Unknown"}
        )
        assert response.json()["category"] == "Uncategorized"
