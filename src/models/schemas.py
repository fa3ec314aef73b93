"""Pydantic schemas for API validation and serialization."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Re-export enums from video model (avoid duplication)
from src.models.video import ResourceType as ResourceTypeEnum
from src.models.video import VideoStatus as VideoStatusEnum


# User schemas
class UserRead(BaseModel):
    """User read schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    avatar_url: str | None = None
    categories: list[str] = []
    daily_goal: str = ""
    current_streak: int = 0
    created_at: datetime


class GoogleAuthRequest(BaseModel):
    """Google sign-in payload: an OAuth access token or an ID token."""

    access_token: str | None = None
    credential: str | None = None


class AuthResponse(BaseModel):
    """Issued bearer token plus the signed-in user."""

    token: str
    user: UserRead


class CategoryCreate(BaseModel):
    category: str


class CategoryRename(BaseModel):
    old_category: str
    new_category: str


class CategoriesResponse(BaseModel):
    categories: list[str]


class CategoryDeleteResponse(BaseModel):
    categories: list[str]
    deleted_playlists_count: int = 0


class DailyGoal(BaseModel):
    daily_goal: str = Field("", max_length=500)


# Resource schemas
class ResourceCreate(BaseModel):
    """Video resource creation schema."""

    title: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=2000)
    type: ResourceTypeEnum = ResourceTypeEnum.OTHER


class ResourceRead(BaseModel):
    """Video resource read schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    url: str
    type: ResourceTypeEnum


# Video schemas
class VideoRead(BaseModel):
    """Video as listed inside a playlist."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    playlist_id: int
    yt_id: str
    title: str
    description: str = ""
    thumbnail: str = ""
    duration: str = ""
    view_count: int = 0
    like_count: int = 0
    published_at: str = ""
    channel_title: str = ""
    status: VideoStatusEnum
    time_spent: int = 0
    notes: str = ""
    ai_summary: str = ""
    ai_summary_generated: bool = False
    tags: list[str] = []
    pinned: bool = False
    position: int = 0
    resources: list[ResourceRead] = []


class Chapter(BaseModel):
    time: str
    topic: str


class VideoDetail(VideoRead):
    """Video detail with its playlist context and parsed chapters."""

    playlist_name: str = ""
    playlist_category: str = ""
    chapters: list[Chapter] = []


class PinnedVideo(VideoRead):
    playlist_name: str = ""


class VideoStatusUpdate(BaseModel):
    status: VideoStatusEnum


class VideoNoteUpdate(BaseModel):
    note: str = ""


class VideoTimeUpdate(BaseModel):
    time_spent: int = Field(..., ge=0)


class VideoSummaryUpdate(BaseModel):
    summary: str


class TagsRequest(BaseModel):
    tags: list[str]


class TagsResponse(BaseModel):
    success: bool = True
    tags: list[str]


class VideoStatusResponse(BaseModel):
    """Video after a status change, with the resulting playlist state."""

    video: VideoRead
    playlist_completed: bool
    new_badges: list["BadgeRead"] = []


# Playlist schemas
class PlaylistCreate(BaseModel):
    """Playlist creation schema."""

    name: str = Field(..., min_length=1, max_length=255)
    category: str | None = None
    yt_playlist_url: str | None = None
    is_custom: bool = False


class PlaylistCategoryUpdate(BaseModel):
    category: str | None = None


class AddVideoRequest(BaseModel):
    video_url: str


class VideoPosition(BaseModel):
    id: int
    position: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    video_positions: list[VideoPosition]


class PlaylistRead(BaseModel):
    """Playlist fields shared by list and detail views."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str
    yt_playlist_url: str = ""
    yt_playlist_id: str = ""
    is_custom: bool = False
    yt_title: str | None = None
    yt_description: str | None = None
    yt_thumbnail: str | None = None
    yt_channel_title: str | None = None
    yt_item_count: int | None = None
    yt_published_at: str | None = None
    completed: bool = False
    created_at: datetime
    updated_at: datetime


class PlaylistProgress(PlaylistRead):
    """Playlist list entry with aggregated progress."""

    total_videos: int = 0
    completed_videos: int = 0
    in_progress_videos: int = 0
    progress: int = 0  # percent, 0-100
    total_time_spent: int = 0
    notes_count: int = 0


class PlaylistDetail(PlaylistRead):
    """Playlist with its ordered videos."""

    videos: list[VideoRead] = []


class PlaylistSyncResponse(BaseModel):
    added: int = 0
    skipped: int = 0
    total: int = 0
    message: str = ""


class PinToggleResponse(BaseModel):
    id: int
    pinned: bool


# Badge schemas
class BadgeRead(BaseModel):
    """Badge read schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    icon: str = ""
    earned_at: datetime


class BadgeDefinition(BaseModel):
    title: str
    description: str
    icon: str


class BadgeCheckResponse(BaseModel):
    new_badges: list[BadgeRead] = []
    message: str = ""


class BadgeCleanupResponse(BaseModel):
    success: bool = True
    message: str = ""
    removed_count: int = 0


class BadgeSyncStats(BaseModel):
    orphaned_removed: int = 0
    duplicates_removed: int = 0
    completion_added: int = 0
    other_added: int = 0


class BadgeSyncResponse(BaseModel):
    success: bool = True
    message: str = ""
    stats: BadgeSyncStats
    badges: list[BadgeRead] = []


class MessageResponse(BaseModel):
    message: str


VideoStatusResponse.model_rebuild()
