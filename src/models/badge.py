"""Badge model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, utcnow

if TYPE_CHECKING:
    from src.models.user import User


class Badge(Base):
    """Achievement granted by a badge rule. The title is the dedup key per user."""

    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(String(500), default="")
    icon: Mapped[str] = mapped_column(String(50), default="")
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="badges")

    # Not unique: rows written before award locking may hold duplicates,
    # which the cleanup/sync operations remove.
    __table_args__ = (Index("ix_badges_user_title", "user_id", "title"),)

    def __repr__(self) -> str:
        return f"<Badge(id={self.id}, title={self.title})>"
