"""CRUD operations module."""

from src.db.crud.badge import (
    award_badge,
    get_user_badges,
    lock_user,
    remove_duplicate_badges,
)
from src.db.crud.playlist import (
    add_videos,
    delete_playlists,
    get_playlist,
    get_playlist_with_videos,
    get_playlists_with_progress,
    refresh_completion,
)
from src.db.crud.user import get_or_create_google_user, get_user, record_activity, resolve_category
from src.db.crud.video import get_video, normalize_tags

__all__ = [
    "add_videos",
    "award_badge",
    "delete_playlists",
    "get_or_create_google_user",
    "get_playlist",
    "get_playlist_with_videos",
    "get_playlists_with_progress",
    "get_user",
    "get_user_badges",
    "get_video",
    "lock_user",
    "normalize_tags",
    "record_activity",
    "refresh_completion",
    "remove_duplicate_badges",
    "resolve_category",
]
