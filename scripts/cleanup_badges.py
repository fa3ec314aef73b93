#!/usr/bin/env python3
"""Repair badges for every user (or a single one).

This script:
1. Removes "Completed: <name>" badges whose playlist no longer exists
2. Removes duplicate badges, keeping the most recently earned one
3. Grants any badge a user qualifies for but does not hold yet

Usage:
    python scripts/cleanup_badges.py [--dry-run] [--user-id=ID]

Options:
    --dry-run   Show what would be done without making changes
    --user-id   Only process badges of a specific user
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from src.db.database import async_session_maker
from src.models.user import User
from src.services.badges import BadgeSyncStats, sync_badges
from src.utils.cache import cache, invalidate_badge_cache

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


async def cleanup_badges(dry_run: bool = False, user_id: int | None = None) -> BadgeSyncStats:
    """Run the badge repair pass and return the summed stats."""
    totals = BadgeSyncStats()

    async with async_session_maker() as db:
        query = select(User.id).order_by(User.id)
        if user_id:
            query = query.where(User.id == user_id)
        user_ids = [row[0] for row in (await db.execute(query)).all()]

    logger.info(f"Processing {len(user_ids)} users{' (dry run)' if dry_run else ''}")
    if not dry_run:
        await cache.connect()

    # One transaction per user keeps the row lock short
    for uid in user_ids:
        async with async_session_maker() as db:
            user = await db.get(User, uid)
            if user is None:
                continue

            stats = await sync_badges(db, user)
            if dry_run:
                await db.rollback()
            else:
                await db.commit()
                await invalidate_badge_cache(uid)

        changes = stats.to_dict()
        if any(changes.values()):
            logger.info(f"  User {uid}: {changes}")
        for name, value in changes.items():
            setattr(totals, name, getattr(totals, name) + value)

    logger.info("=" * 60)
    logger.info(f"Orphaned completion badges removed: {totals.orphaned_removed}")
    logger.info(f"Duplicate badges removed:           {totals.duplicates_removed}")
    logger.info(f"Completion badges granted:          {totals.completion_added}")
    logger.info(f"Other badges granted:               {totals.other_added}")
    if dry_run:
        logger.info("Dry run: no changes were written")
    else:
        await cache.close()
    return totals


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Repair user badges")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be done without changes")
    parser.add_argument("--user-id", type=int, help="Only process badges of a specific user")
    args = parser.parse_args()

    asyncio.run(cleanup_badges(
        dry_run=args.dry_run,
        user_id=args.user_id,
    ))
