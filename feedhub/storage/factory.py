"""Factory functions to create storage instances.

The database URL comes from DATABASE_URL (standard for cloud platforms),
then FH_DATABASE_URL, then the settings default (a local SQLite file).
PostgreSQL URLs are routed to the psycopg driver.
"""

import os
from functools import lru_cache

import structlog

logger = structlog.get_logger()


def get_database_url() -> str:
    """Get database URL from environment, with fallback to SQLite."""
    url = os.environ.get('DATABASE_URL') or os.environ.get('FH_DATABASE_URL')
    if not url:
        from ..config.settings import settings
        url = settings.database_url

    # Heroku/Supabase style URLs use the bare postgres scheme
    if url.startswith('postgres://'):
        url = 'postgresql+psycopg://' + url[len('postgres://'):]
    elif url.startswith('postgresql://'):
        url = 'postgresql+psycopg://' + url[len('postgresql://'):]
    return url


def is_postgres() -> bool:
    """Check if we're using PostgreSQL."""
    return get_database_url().startswith('postgresql')


@lru_cache(maxsize=1)
def get_feed_storage():
    """Get the shared FeedStorage instance."""
    from .database import FeedStorage

    url = get_database_url()
    logger.info("using_storage", backend="postgres" if is_postgres() else "sqlite", url=url[:40] + "...")
    return FeedStorage(url)


def clear_cache():
    """Clear cached instances (useful for testing)."""
    get_feed_storage.cache_clear()
