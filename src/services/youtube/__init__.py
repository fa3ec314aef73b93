"""YouTube services module."""

from src.services.youtube.client import (
    YouTubeAPIError,
    YouTubeClient,
    extract_playlist_id,
    extract_video_id,
    youtube_client,
)
from src.services.youtube.sync import (
    PlaylistSyncResult,
    import_playlist_videos,
    sync_playlist,
)

__all__ = [
    "PlaylistSyncResult",
    "YouTubeAPIError",
    "YouTubeClient",
    "extract_playlist_id",
    "extract_video_id",
    "import_playlist_videos",
    "sync_playlist",
    "youtube_client",
]
