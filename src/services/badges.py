"""Badge rules: evaluation, playlist completion awards and repair.

Every award goes through award_badge with the user's row lock held, so one
title is granted at most once per user even under concurrent requests.
"""

import logging
from dataclasses import asdict, dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.constants import COMPLETION_BADGE_PREFIX, STREAK_BADGE_DAYS
from src.db.crud.badge import (
    award_badge,
    delete_badges_by_title,
    get_badge_titles,
    lock_user,
    remove_duplicate_badges,
)
from src.db.crud.video import count_completed_videos
from src.models.badge import Badge
from src.models.playlist import Playlist
from src.models.user import User
from src.utils.logging import LogContext
from src.utils.metrics import metrics

logger = logging.getLogger(__name__)

FIRST_PLAYLIST = "First Playlist Added"
CONSISTENCY_CHAMPION = "Consistency Champion"
PLAYLIST_MASTER = "Playlist Master"

VIDEO_MILESTONES = [
    (10, "10 Videos Completed", "🎓"),
    (50, "50 Videos Completed", "🏆"),
    (100, "100 Videos Completed", "🌟"),
]

BADGE_CATALOG = [
    {
        "title": FIRST_PLAYLIST,
        "description": "You added your first playlist to track",
        "icon": "📋",
    },
    *(
        {"title": title, "description": f"You've completed {count} videos", "icon": icon}
        for count, title, icon in VIDEO_MILESTONES
    ),
    {
        "title": CONSISTENCY_CHAMPION,
        "description": f"You maintained a {STREAK_BADGE_DAYS}-day learning streak",
        "icon": "🔥",
    },
    {
        "title": PLAYLIST_MASTER,
        "description": "You completed every video in a playlist",
        "icon": "🏆",
    },
]

_CATALOG_BY_TITLE = {badge["title"]: badge for badge in BADGE_CATALOG}


def completion_badge_title(playlist_name: str) -> str:
    return f"{COMPLETION_BADGE_PREFIX}{playlist_name}"


@dataclass
class BadgeSyncStats:
    """Outcome of a badge repair pass."""

    orphaned_removed: int = 0
    duplicates_removed: int = 0
    completion_added: int = 0
    other_added: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


async def _award(
    db: AsyncSession,
    user_id: int,
    title: str,
    rule: str,
    description: str | None = None,
    icon: str | None = None,
) -> Badge | None:
    entry = _CATALOG_BY_TITLE.get(title, {})
    badge = await award_badge(
        db,
        user_id,
        title,
        description if description is not None else entry.get("description", ""),
        icon if icon is not None else entry.get("icon", ""),
    )
    if badge:
        metrics.badges_awarded_total.inc(rule=rule)
        logger.info(f"[user={user_id}] Awarded badge '{title}'")
    return badge


async def award_playlist_completion(
    db: AsyncSession,
    user_id: int,
    playlist: Playlist,
) -> list[Badge]:
    """Grant the completion badge of a playlist, and Playlist Master for the first one."""
    await lock_user(db, user_id)
    awarded = []

    badge = await _award(
        db,
        user_id,
        completion_badge_title(playlist.name),
        rule="playlist_completion",
        description=f'Completed all videos in the "{playlist.name}" playlist',
        icon="🏆",
    )
    if badge:
        awarded.append(badge)

    master = await _award(db, user_id, PLAYLIST_MASTER, rule="playlist_master")
    if master:
        awarded.append(master)
    return awarded


async def _check_first_playlist(db: AsyncSession, user: User) -> list[Badge]:
    result = await db.execute(select(func.count(Playlist.id)).where(Playlist.user_id == user.id))
    if not result.scalar():
        return []
    badge = await _award(db, user.id, FIRST_PLAYLIST, rule="first_playlist")
    return [badge] if badge else []


async def _check_video_milestones(db: AsyncSession, user: User) -> list[Badge]:
    completed = await count_completed_videos(db, user.id)
    awarded = []
    for count, title, icon in VIDEO_MILESTONES:
        if completed < count:
            break
        badge = await _award(
            db,
            user.id,
            title,
            rule="video_milestone",
            description=f"You've completed {count} videos. Keep up the great work!",
            icon=icon,
        )
        if badge:
            awarded.append(badge)
    return awarded


async def _check_streak(db: AsyncSession, user: User) -> list[Badge]:
    if (user.current_streak or 0) < STREAK_BADGE_DAYS:
        return []
    badge = await _award(db, user.id, CONSISTENCY_CHAMPION, rule="streak")
    return [badge] if badge else []


async def _check_playlist_completions(db: AsyncSession, user: User) -> list[Badge]:
    result = await db.execute(
        select(Playlist)
        .where(Playlist.user_id == user.id, Playlist.completed.is_(True))
        .order_by(Playlist.id)
    )
    awarded = []
    for playlist in result.scalars().all():
        badge = await _award(
            db,
            user.id,
            completion_badge_title(playlist.name),
            rule="playlist_completion",
            description=f'Completed all videos in the "{playlist.name}" playlist',
            icon="🏆",
        )
        if badge:
            awarded.append(badge)
        master = await _award(db, user.id, PLAYLIST_MASTER, rule="playlist_master")
        if master:
            awarded.append(master)
    return awarded


async def check_all_badges(db: AsyncSession, user: User) -> list[Badge]:
    """Run every badge rule for a user and return the newly granted badges."""
    await lock_user(db, user.id)
    awarded: list[Badge] = []
    awarded += await _check_first_playlist(db, user)
    awarded += await _check_video_milestones(db, user)
    awarded += await _check_streak(db, user)
    awarded += await _check_playlist_completions(db, user)
    return awarded


async def sync_badges(db: AsyncSession, user: User) -> BadgeSyncStats:
    """Repair a user's badges against the current playlists.

    Removes completion badges whose playlist no longer exists, removes
    duplicate titles (keeping the most recent), then grants every badge the
    user qualifies for.
    """
    log = LogContext(logger, user=user.id)
    stats = BadgeSyncStats()
    await lock_user(db, user.id)

    result = await db.execute(select(Playlist.name).where(Playlist.user_id == user.id))
    existing_names = {row[0] for row in result.all()}
    titles = await get_badge_titles(db, user.id)
    orphaned = [
        title
        for title in titles
        if title.startswith(COMPLETION_BADGE_PREFIX)
        and title[len(COMPLETION_BADGE_PREFIX):] not in existing_names
    ]
    stats.orphaned_removed = await delete_badges_by_title(db, user.id, orphaned)
    stats.duplicates_removed = await remove_duplicate_badges(db, user.id)

    for badge in await check_all_badges(db, user):
        if badge.title.startswith(COMPLETION_BADGE_PREFIX):
            stats.completion_added += 1
        else:
            stats.other_added += 1

    log.info(f"Badge sync: {stats.to_dict()}")
    return stats
