"""SQLAlchemy models."""

from src.models.badge import Badge
from src.models.base import Base
from src.models.playlist import Playlist
from src.models.user import User
from src.models.video import ResourceType, Video, VideoResource, VideoStatus

__all__ = [
    "Base",
    "Badge",
    "Playlist",
    "ResourceType",
    "User",
    "Video",
    "VideoResource",
    "VideoStatus",
]
