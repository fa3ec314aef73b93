"""User model."""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Date, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.badge import Badge
    from src.models.playlist import Playlist


class User(Base, TimestampMixin):
    """Learner account, created on first Google sign-in."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    avatar_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(255), unique=True, index=True, nullable=True)

    # Ordered list of category names; playlists reference them by name
    categories: Mapped[list[str]] = mapped_column(JSON, default=list)
    daily_goal: Mapped[str] = mapped_column(String(500), default="")

    # Activity streak (consecutive days with watch activity)
    current_streak: Mapped[int] = mapped_column(default=0)
    last_active_on: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Relationships
    # lazy="select": playlists and badges are always queried explicitly
    playlists: Mapped[list["Playlist"]] = relationship(
        "Playlist",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="select",
    )
    badges: Mapped[list["Badge"]] = relationship(
        "Badge",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
