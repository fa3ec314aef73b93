"""Initial schema: users, playlists, videos, video resources and badges

Revision ID: a1f3c9e2b7d4
Revises:
Create Date: 2026-10-18 10:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1f3c9e2b7d4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

video_status = sa.Enum('TO_WATCH', 'IN_PROGRESS', 'COMPLETED', 'REWATCH', name='videostatus')
resource_type = sa.Enum('GITHUB', 'DOCS', 'NOTES', 'ARTICLE', 'OTHER', name='resourcetype')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('avatar_url', sa.String(length=2000), nullable=True),
        sa.Column('google_id', sa.String(length=255), nullable=True),
        sa.Column('categories', sa.JSON(), nullable=False),
        sa.Column('daily_goal', sa.String(length=500), nullable=False),
        sa.Column('current_streak', sa.Integer(), nullable=False),
        sa.Column('last_active_on', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_google_id'), 'users', ['google_id'], unique=True)

    op.create_table(
        'playlists',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=255), nullable=False),
        sa.Column('yt_playlist_url', sa.String(length=500), nullable=False),
        sa.Column('yt_playlist_id', sa.String(length=100), nullable=False),
        sa.Column('is_custom', sa.Boolean(), nullable=False),
        sa.Column('yt_title', sa.String(length=500), nullable=True),
        sa.Column('yt_description', sa.Text(), nullable=True),
        sa.Column('yt_thumbnail', sa.String(length=500), nullable=True),
        sa.Column('yt_channel_title', sa.String(length=255), nullable=True),
        sa.Column('yt_item_count', sa.Integer(), nullable=True),
        sa.Column('yt_published_at', sa.String(length=50), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_playlists_user_id'), 'playlists', ['user_id'], unique=False)
    op.create_index(op.f('ix_playlists_yt_playlist_id'), 'playlists', ['yt_playlist_id'], unique=False)
    op.create_index('ix_playlists_user_category', 'playlists', ['user_id', 'category'], unique=False)

    op.create_table(
        'videos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('playlist_id', sa.Integer(), nullable=False),
        sa.Column('yt_id', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('thumbnail', sa.String(length=500), nullable=False),
        sa.Column('duration', sa.String(length=50), nullable=False),
        sa.Column('view_count', sa.BigInteger(), nullable=False),
        sa.Column('like_count', sa.BigInteger(), nullable=False),
        sa.Column('published_at', sa.String(length=50), nullable=False),
        sa.Column('channel_title', sa.String(length=255), nullable=False),
        sa.Column('status', video_status, nullable=False),
        sa.Column('time_spent', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('ai_summary', sa.Text(), nullable=False),
        sa.Column('ai_summary_generated', sa.Boolean(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('pinned', sa.Boolean(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['playlist_id'], ['playlists.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_videos_playlist_id'), 'videos', ['playlist_id'], unique=False)
    op.create_index(op.f('ix_videos_yt_id'), 'videos', ['yt_id'], unique=False)
    op.create_index(op.f('ix_videos_status'), 'videos', ['status'], unique=False)
    op.create_index('ix_videos_playlist_position', 'videos', ['playlist_id', 'position'], unique=False)

    op.create_table(
        'video_resources',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('video_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('url', sa.String(length=2000), nullable=False),
        sa.Column('type', resource_type, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['video_id'], ['videos.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_video_resources_video_id'), 'video_resources', ['video_id'], unique=False)

    op.create_table(
        'badges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=300), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=False),
        sa.Column('earned_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_badges_user_id'), 'badges', ['user_id'], unique=False)
    # Not unique: duplicates are repaired by the badge cleanup
    op.create_index('ix_badges_user_title', 'badges', ['user_id', 'title'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_badges_user_title', table_name='badges')
    op.drop_index(op.f('ix_badges_user_id'), table_name='badges')
    op.drop_table('badges')

    op.drop_index(op.f('ix_video_resources_video_id'), table_name='video_resources')
    op.drop_table('video_resources')

    op.drop_index('ix_videos_playlist_position', table_name='videos')
    op.drop_index(op.f('ix_videos_status'), table_name='videos')
    op.drop_index(op.f('ix_videos_yt_id'), table_name='videos')
    op.drop_index(op.f('ix_videos_playlist_id'), table_name='videos')
    op.drop_table('videos')

    op.drop_index('ix_playlists_user_category', table_name='playlists')
    op.drop_index(op.f('ix_playlists_yt_playlist_id'), table_name='playlists')
    op.drop_index(op.f('ix_playlists_user_id'), table_name='playlists')
    op.drop_table('playlists')

    op.drop_index(op.f('ix_users_google_id'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')

    resource_type.drop(op.get_bind(), checkfirst=True)
    video_status.drop(op.get_bind(), checkfirst=True)
