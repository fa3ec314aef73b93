"""Import and synchronization of YouTube playlists into local playlists."""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.crud.playlist import add_videos, get_playlist_yt_ids, refresh_completion
from src.models.playlist import Playlist
from src.models.video import Video
from src.services.youtube.client import youtube_client
from src.utils.logging import LogContext

logger = logging.getLogger(__name__)


@dataclass
class PlaylistSyncResult:
    """Result of a playlist sync."""

    added: int = 0
    skipped: int = 0
    total: int = 0
    message: str = ""


def apply_playlist_metadata(playlist: Playlist, info: dict[str, Any]) -> None:
    """Copy YouTube playlist metadata onto the local playlist."""
    playlist.yt_title = info.get("title") or None
    playlist.yt_description = info.get("description") or None
    playlist.yt_thumbnail = info.get("thumbnail") or None
    playlist.yt_channel_title = info.get("channel_title") or None
    playlist.yt_item_count = info.get("item_count")
    playlist.yt_published_at = info.get("published_at") or None


async def import_playlist_videos(
    db: AsyncSession,
    playlist: Playlist,
    contents: dict[str, Any],
) -> list[Video]:
    """Fill a freshly created playlist from fetched YouTube contents, in YouTube order."""
    apply_playlist_metadata(playlist, contents["playlist"])
    videos = await add_videos(db, playlist, contents["videos"])
    await refresh_completion(db, playlist)
    return videos


async def sync_playlist(db: AsyncSession, playlist: Playlist) -> PlaylistSyncResult:
    """Add videos that appeared on YouTube since the last import or sync.

    Existing videos and their progress are left untouched; videos removed on
    YouTube are kept locally.

    Raises:
        YouTubeAPIError: if YouTube cannot be read
    """
    log = LogContext(logger, user=playlist.user_id, playlist=playlist.id)
    result = PlaylistSyncResult()

    contents = await youtube_client.get_playlist_contents(playlist.yt_playlist_id, use_cache=False)
    apply_playlist_metadata(playlist, contents["playlist"])

    existing = await get_playlist_yt_ids(db, playlist.id)
    new_items = []
    for item in contents["videos"]:
        if item["yt_id"] in existing:
            result.skipped += 1
            continue
        existing.add(item["yt_id"])
        new_items.append(item)

    if new_items:
        await add_videos(db, playlist, new_items)
    result.added = len(new_items)
    result.total = len(existing)
    await refresh_completion(db, playlist)

    if result.added:
        result.message = f"Added {result.added} new video{'s' if result.added != 1 else ''}"
    else:
        result.message = "Playlist is already up to date"
    log.info(f"Sync finished: added={result.added} skipped={result.skipped}")
    return result
