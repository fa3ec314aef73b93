"""Video model and attached learning resources."""

import enum
from typing import TYPE_CHECKING

from sqlalchemy import JSON, BigInteger, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.playlist import Playlist


class VideoStatus(str, enum.Enum):
    """Watch progress of a video."""

    TO_WATCH = "to-watch"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REWATCH = "rewatch"


class ResourceType(str, enum.Enum):
    """Kind of link attached to a video."""

    GITHUB = "github"
    DOCS = "docs"
    NOTES = "notes"
    ARTICLE = "article"
    OTHER = "other"


class Video(Base, TimestampMixin):
    """A YouTube video tracked inside one playlist."""

    __tablename__ = "videos"

    id: Mapped[int] = mapped_column(primary_key=True)
    playlist_id: Mapped[int] = mapped_column(
        ForeignKey("playlists.id", ondelete="CASCADE"), index=True
    )
    yt_id: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Cached from YouTube
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    thumbnail: Mapped[str] = mapped_column(String(500), default="")
    duration: Mapped[str] = mapped_column(String(50), default="")  # ISO 8601, e.g. PT12M3S
    view_count: Mapped[int] = mapped_column(BigInteger, default=0)
    like_count: Mapped[int] = mapped_column(BigInteger, default=0)
    published_at: Mapped[str] = mapped_column(String(50), default="")
    channel_title: Mapped[str] = mapped_column(String(255), default="")

    # User tracking
    status: Mapped[VideoStatus] = mapped_column(
        Enum(VideoStatus), default=VideoStatus.TO_WATCH, nullable=False, index=True
    )
    time_spent: Mapped[int] = mapped_column(default=0)  # minutes
    notes: Mapped[str] = mapped_column(Text, default="")
    ai_summary: Mapped[str] = mapped_column(Text, default="")
    ai_summary_generated: Mapped[bool] = mapped_column(default=False)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    pinned: Mapped[bool] = mapped_column(default=False)
    position: Mapped[int] = mapped_column(default=0)

    # Relationships
    playlist: Mapped["Playlist"] = relationship("Playlist", back_populates="videos")
    resources: Mapped[list["VideoResource"]] = relationship(
        "VideoResource",
        back_populates="video",
        cascade="all, delete-orphan",
        order_by="VideoResource.id",
        lazy="selectin",
    )

    __table_args__ = (Index("ix_videos_playlist_position", "playlist_id", "position"),)

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, yt_id={self.yt_id}, status={self.status})>"


class VideoResource(Base, TimestampMixin):
    """Reference link (repo, docs, article...) attached to a video."""

    __tablename__ = "video_resources"

    id: Mapped[int] = mapped_column(primary_key=True)
    video_id: Mapped[int] = mapped_column(ForeignKey("videos.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(2000), nullable=False)
    type: Mapped[ResourceType] = mapped_column(
        Enum(ResourceType), default=ResourceType.OTHER, nullable=False
    )

    video: Mapped["Video"] = relationship("Video", back_populates="resources")

    def __repr__(self) -> str:
        return f"<VideoResource(id={self.id}, title={self.title})>"
