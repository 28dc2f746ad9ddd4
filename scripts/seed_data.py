"""Seed script to create the schema and populate the platform catalogue.

Usage:
    PYTHONPATH=src python scripts/seed_data.py populate
    PYTHONPATH=src python scripts/seed_data.py populate --force
    PYTHONPATH=src python scripts/seed_data.py clear
"""

import argparse
import asyncio

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.cache import PLATFORM_CONFIG_ID, CacheLayer, CacheNamespace
from core.config import get_settings
from core.redis import RedisClient
from models import Base, Platform

# ---------------------------------------------------------------------------
# Platform data
# ---------------------------------------------------------------------------
# url_pattern is matched case-insensitively against the full link URL.

PLATFORMS = [
    {
        'name': 'website',
        'display_name': 'Website',
        'url_pattern': r'^https?://[\w.-]+\.[a-z]{2,}/?.*$',
    },
    {
        'name': 'discord',
        'display_name': 'Discord',
        'url_pattern': r'^https?://(www\.)?discord\.(gg|com)/[\w-]+/?$',
    },
    {
        'name': 'facebook',
        'display_name': 'Facebook',
        'url_pattern': r'^https?://(www\.)?facebook\.com/[\w.]+/?$',
    },
    {
        'name': 'pinterest',
        'display_name': 'Pinterest',
        'url_pattern': r'^https?://(www\.)?pinterest\.com/[\w-]+/?$',
    },
    {
        'name': 'linkedin',
        'display_name': 'LinkedIn',
        'url_pattern': r'^https?://(www\.)?linkedin\.com/in/[\w-]+/?$',
    },
    {
        'name': 'x',
        'display_name': 'X',
        'url_pattern': r'^https?://(www\.)?(twitter|x)\.com/\w+/?$',
    },
    {
        'name': 'youtube',
        'display_name': 'YouTube',
        'url_pattern': r'^https?://(www\.)?youtube\.com/(c/|channel/|@)[\w-]+/?$',
    },
    {
        'name': 'snapchat',
        'display_name': 'Snapchat',
        'url_pattern': r'^https?://(www\.)?snapchat\.com/add/[\w-]+/?$',
    },
    {
        'name': 'reddit',
        'display_name': 'Reddit',
        'url_pattern': r'^https?://(www\.)?reddit\.com/u/[\w-]+/?$',
    },
    {
        'name': 'medium',
        'display_name': 'Medium',
        'url_pattern': r'^https?://(www\.)?medium\.com/@[\w-]+/?$',
    },
    {
        'name': 'threads',
        'display_name': 'Threads',
        'url_pattern': r'^https?://(www\.)?threads\.net/@[\w-]+/?$',
    },
    {
        'name': 'tiktok',
        'display_name': 'TikTok',
        'url_pattern': r'^https?://(www\.)?tiktok\.com/@[\w.]+/?$',
    },
    {
        'name': 'github',
        'display_name': 'GitHub',
        'url_pattern': r'^https?://(www\.)?github\.com/[\w-]+/?$',
    },
    {
        'name': 'instagram',
        'display_name': 'Instagram',
        'url_pattern': r'^https?://(www\.)?instagram\.com/[\w.]+/?$',
    },
    {
        'name': 'twitch',
        'display_name': 'Twitch',
        'url_pattern': r'^https?://(www\.)?twitch\.tv/\w+/?$',
    },
]


async def create_platforms(session: AsyncSession) -> int:
    """Insert any missing platforms; returns how many were added."""
    existing = set((await session.execute(select(Platform.name))).scalars().all())
    added = 0
    for data in PLATFORMS:
        if data['name'] in existing:
            continue
        session.add(Platform(**data))
        added += 1
    await session.flush()
    return added


async def invalidate_platform_cache() -> None:
    """Drop the cached platform config so the API serves the new catalogue."""
    settings = get_settings()
    redis_client = RedisClient(
        url=settings.redis_url,
        enabled=settings.redis_enabled,
        pool_size=1,
    )
    await redis_client.connect()
    try:
        await CacheLayer(redis_client).invalidate(CacheNamespace.PLATFORM_CONFIG, PLATFORM_CONFIG_ID)
    finally:
        await redis_client.close()


async def populate(force: bool = False) -> None:
    """Create tables and seed platforms."""
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        try:
            platform_count = (await session.execute(
                select(func.count()).select_from(Platform)
            )).scalar()

            if platform_count and force:
                print('Existing platforms found, clearing first (--force)...')
                await session.execute(delete(Platform))
                await session.flush()

            print('Populating platforms...')
            added = await create_platforms(session)
            await session.commit()
            print(f'Seed data created successfully ({added} platforms added).')
        except Exception:
            await session.rollback()
            raise
        finally:
            await engine.dispose()

    await invalidate_platform_cache()


async def clear() -> None:
    """Remove all platforms."""
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            await session.execute(delete(Platform))
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await engine.dispose()

    await invalidate_platform_cache()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description='Create tables and seed the platform catalogue.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    populate_parser = subparsers.add_parser('populate', help='Create tables and add platforms')
    populate_parser.add_argument(
        '--force', action='store_true',
        help='Delete existing platforms before populating',
    )

    subparsers.add_parser('clear', help='Remove all platforms')

    args = parser.parse_args()

    if args.command == 'populate':
        asyncio.run(populate(force=args.force))
    elif args.command == 'clear':
        asyncio.run(clear())


if __name__ == '__main__':
    main()
