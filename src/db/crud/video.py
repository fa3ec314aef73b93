"""CRUD operations for videos, tags and resources."""

from collections.abc import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.constants import MAX_SEARCH_RESULTS
from src.models.playlist import Playlist
from src.models.schemas import ResourceCreate
from src.models.video import Video, VideoResource, VideoStatus


async def get_video(db: AsyncSession, video_id: int) -> Video | None:
    """Get a video with its playlist loaded (ownership is checked by the caller)."""
    await db.flush()
    result = await db.execute(
        select(Video)
        .options(selectinload(Video.playlist))
        .where(Video.id == video_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_video_ids(db: AsyncSession, *playlist_ids: int) -> list[int]:
    """Ids of every video in the given playlists."""
    if not playlist_ids:
        return []
    result = await db.execute(select(Video.id).where(Video.playlist_id.in_(playlist_ids)))
    return [row[0] for row in result.all()]


async def get_pinned_videos(db: AsyncSession, user_id: int) -> Sequence[tuple[Video, str]]:
    """Pinned videos across the user's playlists, with the playlist name."""
    result = await db.execute(
        select(Video, Playlist.name)
        .join(Playlist, Video.playlist_id == Playlist.id)
        .where(Playlist.user_id == user_id, Video.pinned.is_(True))
        .order_by(Playlist.id, Video.position)
    )
    return result.tuples().all()


async def search_videos_by_tags(
    db: AsyncSession,
    user_id: int,
    tags: Iterable[str],
) -> list[Video]:
    """Videos of the user carrying every given tag."""
    wanted = set(normalize_tags(tags))
    if not wanted:
        return []

    # JSON containment differs per backend; filter tagged rows in Python
    result = await db.execute(
        select(Video)
        .join(Playlist, Video.playlist_id == Playlist.id)
        .where(Playlist.user_id == user_id)
        .order_by(Video.updated_at.desc(), Video.id.desc())
    )
    matches = [video for video in result.scalars().all() if wanted.issubset(video.tags or [])]
    return matches[:MAX_SEARCH_RESULTS]


async def search_videos_by_notes(db: AsyncSession, user_id: int, query: str) -> Sequence[Video]:
    """Case-insensitive substring search over the user's notes."""
    result = await db.execute(
        select(Video)
        .join(Playlist, Video.playlist_id == Playlist.id)
        .where(
            Playlist.user_id == user_id,
            Video.notes.icontains(query.strip(), autoescape=True),
        )
        .order_by(Video.updated_at.desc(), Video.id.desc())
        .limit(MAX_SEARCH_RESULTS)
    )
    return result.scalars().all()


async def count_completed_videos(db: AsyncSession, user_id: int) -> int:
    await db.flush()
    result = await db.execute(
        select(func.count(Video.id))
        .join(Playlist, Video.playlist_id == Playlist.id)
        .where(Playlist.user_id == user_id, Video.status == VideoStatus.COMPLETED)
    )
    return result.scalar() or 0


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Trim, lowercase and deduplicate tags, keeping first-seen order."""
    seen: list[str] = []
    for tag in tags:
        cleaned = tag.strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def add_tags(video: Video, tags: Iterable[str]) -> list[str]:
    current = list(video.tags or [])
    video.tags = current + [t for t in normalize_tags(tags) if t not in current]
    return video.tags


def remove_tags(video: Video, tags: Iterable[str]) -> list[str]:
    removed = set(normalize_tags(tags))
    video.tags = [t for t in video.tags or [] if t not in removed]
    return video.tags


async def add_resource(db: AsyncSession, video: Video, data: ResourceCreate) -> VideoResource:
    resource = VideoResource(video_id=video.id, title=data.title, url=data.url, type=data.type)
    db.add(resource)
    await db.flush()
    await db.refresh(video, attribute_names=["resources"])
    return resource


async def delete_resource(db: AsyncSession, video: Video, resource_id: int) -> bool:
    """Delete a resource attached to this video."""
    result = await db.execute(
        select(VideoResource).where(
            VideoResource.id == resource_id, VideoResource.video_id == video.id
        )
    )
    resource = result.scalar_one_or_none()
    if not resource:
        return False

    await db.delete(resource)
    await db.flush()
    await db.refresh(video, attribute_names=["resources"])
    return True


async def remove_video(db: AsyncSession, video: Video) -> None:
    """Delete a video and close the gap it leaves in the playlist order."""
    playlist_id = video.playlist_id
    await db.delete(video)
    await db.flush()

    result = await db.execute(
        select(Video).where(Video.playlist_id == playlist_id).order_by(Video.position, Video.id)
    )
    for position, remaining in enumerate(result.scalars().all()):
        remaining.position = position
    await db.flush()
