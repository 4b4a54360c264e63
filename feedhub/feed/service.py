"""Cursor-paginated feed listing and trend reads."""

from datetime import datetime
from typing import List, Optional

import structlog

from .freshness import is_new
from .interfaces import AnnotatedEntry, Page
from ..config.settings import settings
from ..ingestion.interfaces import FeedEntry, StorageInterface

logger = structlog.get_logger()


class FeedService:
    """Serves entries newest-first with a stable keyset cursor.

    The cursor is the id of the last entry a client has seen. It resolves to
    that entry's position in the (created_at DESC, id DESC) order, so pages do
    not shift when new entries are inserted above it.
    """

    def __init__(self, storage: StorageInterface, page_size_max: int = None, trend_limit: int = None):
        self.storage = storage
        self.page_size_max = page_size_max or settings.page_size_max
        self.trend_limit = trend_limit or settings.trend_limit

    def list_page(
        self,
        last_seen_id: Optional[int] = None,
        page_size: int = None,
        viewer_watermark: Optional[datetime] = None,
    ) -> Page:
        """Return the page that follows last_seen_id (or the newest page)."""
        page_size = page_size if page_size is not None else settings.page_size_default
        if not 1 <= page_size <= self.page_size_max:
            raise ValueError(f"page_size must be between 1 and {self.page_size_max}")

        rows = self.storage.query_page(last_seen_id, page_size + 1)
        has_more = len(rows) > page_size
        rows = rows[:page_size]

        items = [AnnotatedEntry(entry=row, is_new=is_new(row, viewer_watermark)) for row in rows]
        last_id = rows[-1].id if rows else None

        logger.debug(
            "feed_page_served",
            after=last_seen_id,
            size=len(items),
            last_id=last_id,
            has_more=has_more,
        )
        return Page(items=items, last_id=last_id, has_more=has_more)

    def trend(self, limit: int = None) -> List[FeedEntry]:
        """Return the top entries by view count."""
        return self.storage.query_top_by_views(limit or self.trend_limit)
