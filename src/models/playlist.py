"""Playlist model."""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.user import User
    from src.models.video import Video


class Playlist(Base, TimestampMixin):
    """A user-owned collection of videos, imported from YouTube or custom."""

    __tablename__ = "playlists"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)

    # Source ("" for custom playlists)
    yt_playlist_url: Mapped[str] = mapped_column(String(500), default="")
    yt_playlist_id: Mapped[str] = mapped_column(String(100), default="", index=True)
    is_custom: Mapped[bool] = mapped_column(default=False)

    # Cached YouTube playlist metadata
    yt_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    yt_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    yt_thumbnail: Mapped[str | None] = mapped_column(String(500), nullable=True)
    yt_channel_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    yt_item_count: Mapped[int | None] = mapped_column(nullable=True)
    yt_published_at: Mapped[str | None] = mapped_column(String(50), nullable=True)

    completed: Mapped[bool] = mapped_column(default=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="playlists")
    videos: Mapped[list["Video"]] = relationship(
        "Video",
        back_populates="playlist",
        cascade="all, delete-orphan",
        order_by="Video.position",
        lazy="select",
    )

    __table_args__ = (Index("ix_playlists_user_category", "user_id", "category"),)

    def __repr__(self) -> str:
        return f"<Playlist(id={self.id}, name={self.name})>"
