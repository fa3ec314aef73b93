"""YouTube Data API v3 client (API-key authenticated)."""

import logging
import re
from typing import Any
from urllib.parse import parse_qs, urlparse

from src.config import get_settings
from src.constants import (
    CACHE_TTL_YT_PLAYLIST,
    YOUTUBE_API_BASE_URL,
    YOUTUBE_MAX_PLAYLIST_ITEMS,
    YOUTUBE_PAGE_SIZE,
)
from src.utils.cache import cache, make_cache_key
from src.utils.http_client import get_google_client
from src.utils.metrics import metrics

settings = get_settings()
logger = logging.getLogger(__name__)

_PLAYLIST_ID_RE = re.compile(r"^[A-Za-z0-9_-]{10,64}$")


class YouTubeAPIError(Exception):
    """YouTube answered with a non-200 status, or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None, reason: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


def extract_playlist_id(url: str | None) -> str | None:
    """Get the `list=` parameter from a YouTube playlist URL."""
    if not url:
        return None
    query = parse_qs(urlparse(url.strip()).query)
    values = query.get("list")
    if not values:
        return None
    playlist_id = values[0].strip()
    return playlist_id if _PLAYLIST_ID_RE.match(playlist_id) else None


def extract_video_id(url: str) -> str | None:
    """Extract YouTube video ID from various URL formats."""
    patterns = [
        r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})",
        r"youtube\.com/(?:shorts|live)/([a-zA-Z0-9_-]{11})",
        r"^([a-zA-Z0-9_-]{11})$",  # Just the ID
    ]
    for pattern in patterns:
        match = re.search(pattern, url.strip())
        if match:
            return match.group(1)
    return None


def get_best_thumbnail(thumbnails: dict[str, Any] | None) -> str:
    """Get the best quality thumbnail URL."""
    thumbnails = thumbnails or {}
    for quality in ["maxres", "standard", "high", "medium", "default"]:
        if quality in thumbnails and thumbnails[quality].get("url"):
            return thumbnails[quality]["url"]
    return ""


class YouTubeClient:
    """Thin wrapper over the three Data API endpoints the app needs."""

    def __init__(self, api_key: str | None = None) -> None:
        self.api_key = api_key if api_key is not None else settings.youtube_api_key

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        client = get_google_client()
        try:
            response = await client.get(
                f"{YOUTUBE_API_BASE_URL}/{endpoint}",
                params={**params, "key": self.api_key},
            )
        except Exception as e:
            metrics.youtube_api_requests_total.inc(endpoint=endpoint, status="error")
            raise YouTubeAPIError(f"YouTube request failed: {e}") from e

        metrics.youtube_api_requests_total.inc(endpoint=endpoint, status=str(response.status_code))
        if response.status_code != 200:
            reason = None
            try:
                error = response.json().get("error", {})
                reason = (error.get("errors") or [{}])[0].get("reason") or error.get("message")
            except ValueError:
                pass
            logger.error(f"YouTube API error on {endpoint}: {response.status_code} {reason}")
            raise YouTubeAPIError(
                f"YouTube API returned {response.status_code}",
                status_code=response.status_code,
                reason=reason,
            )
        return response.json()

    async def get_playlist_info(self, playlist_id: str) -> dict[str, Any]:
        """Fetch playlist snippet metadata.

        Raises:
            YouTubeAPIError: on API failure, or if the playlist does not exist
        """
        data = await self._get(
            "playlists",
            {"part": "snippet,contentDetails", "id": playlist_id, "maxResults": 1},
        )
        items = data.get("items", [])
        if not items:
            raise YouTubeAPIError(f"Playlist {playlist_id} not found", status_code=404)

        item = items[0]
        snippet = item.get("snippet", {})
        return {
            "yt_playlist_id": playlist_id,
            "title": snippet.get("title", ""),
            "description": snippet.get("description", ""),
            "thumbnail": get_best_thumbnail(snippet.get("thumbnails")),
            "channel_title": snippet.get("channelTitle", ""),
            "item_count": item.get("contentDetails", {}).get("itemCount"),
            "published_at": snippet.get("publishedAt", ""),
        }

    async def get_playlist_video_ids(self, playlist_id: str) -> list[str]:
        """All video ids of a playlist, in playlist order (all pages)."""
        video_ids: list[str] = []
        page_token = None

        while True:
            params: dict[str, Any] = {
                "part": "snippet",
                "playlistId": playlist_id,
                "maxResults": YOUTUBE_PAGE_SIZE,
            }
            if page_token:
                params["pageToken"] = page_token

            data = await self._get("playlistItems", params)
            for item in data.get("items", []):
                resource_id = item.get("snippet", {}).get("resourceId", {})
                if resource_id.get("kind") != "youtube#video":
                    continue
                video_id = resource_id.get("videoId")
                if video_id and video_id not in video_ids:
                    video_ids.append(video_id)

            page_token = data.get("nextPageToken")
            if not page_token or len(video_ids) >= YOUTUBE_MAX_PLAYLIST_ITEMS:
                break

        return video_ids

    async def get_videos(self, video_ids: list[str]) -> list[dict[str, Any]]:
        """Fetch details for videos, keeping the order of `video_ids`.

        Deleted or private videos are absent from the API answer and are
        skipped.
        """
        details: dict[str, dict[str, Any]] = {}

        # Process in batches of 50 (API limit)
        for i in range(0, len(video_ids), YOUTUBE_PAGE_SIZE):
            batch = video_ids[i:i + YOUTUBE_PAGE_SIZE]
            data = await self._get(
                "videos",
                {"part": "snippet,contentDetails,statistics", "id": ",".join(batch)},
            )
            for item in data.get("items", []):
                snippet = item.get("snippet", {})
                statistics = item.get("statistics", {})
                details[item["id"]] = {
                    "yt_id": item["id"],
                    "title": snippet.get("title", ""),
                    "description": snippet.get("description", ""),
                    "thumbnail": get_best_thumbnail(snippet.get("thumbnails")),
                    "duration": item.get("contentDetails", {}).get("duration", ""),
                    "view_count": int(statistics.get("viewCount", 0)),
                    "like_count": int(statistics.get("likeCount", 0)),
                    "published_at": snippet.get("publishedAt", ""),
                    "channel_title": snippet.get("channelTitle", ""),
                }

        return [details[video_id] for video_id in video_ids if video_id in details]

    async def get_video(self, video_id: str) -> dict[str, Any] | None:
        videos = await self.get_videos([video_id])
        return videos[0] if videos else None

    async def get_playlist_contents(
        self,
        playlist_id: str,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Playlist metadata plus its detailed videos.

        Cached for a day under yt:playlist:<id>; sync passes use_cache=False
        to read the current state and refresh the entry.
        """
        key = make_cache_key("yt:playlist", playlist_id)
        if use_cache:
            cached = await cache.get(key)
            if cached:
                return cached

        info = await self.get_playlist_info(playlist_id)
        video_ids = await self.get_playlist_video_ids(playlist_id)
        videos = await self.get_videos(video_ids)

        contents = {"playlist": info, "videos": videos}
        await cache.set(key, contents, ttl=CACHE_TTL_YT_PLAYLIST)
        logger.info(f"Fetched YouTube playlist {playlist_id}: {len(videos)} videos")
        return contents


youtube_client = YouTubeClient()
