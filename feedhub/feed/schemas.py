"""Response schemas for the feed API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .interfaces import AnnotatedEntry, Page
from ..ingestion.interfaces import FeedEntry


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeedTrendResult(_CamelModel):
    """A feed entry as shown in listings."""
    id: int
    author: str
    platform: str
    title: str
    path: str
    created_at: datetime
    thumbnail: Optional[str] = None
    view_count: int = 0

    @classmethod
    def from_entry(cls, entry: FeedEntry, **extra) -> "FeedTrendResult":
        return cls(
            id=entry.id,
            # Listings credit the blog, as registered, over per-post bylines
            author=entry.blog_name or entry.author,
            platform=entry.platform.value,
            title=entry.title,
            path=entry.path,
            created_at=entry.created_at,
            thumbnail=entry.thumbnail,
            view_count=entry.view_count,
            **extra,
        )


class FeedResult(FeedTrendResult):
    """A listing entry annotated with the viewer's freshness flag."""
    is_new: bool = False

    @classmethod
    def from_annotated(cls, item: AnnotatedEntry) -> "FeedResult":
        return cls.from_entry(item.entry, is_new=item.is_new)


class FeedPaginationResponse(_CamelModel):
    """Response body of the paginated listing: {result, lastId, hasMore}."""
    result: List[FeedResult]
    last_id: Optional[int] = None
    has_more: bool = False

    @classmethod
    def from_page(cls, page: Page) -> "FeedPaginationResponse":
        return cls(
            result=[FeedResult.from_annotated(item) for item in page.items],
            last_id=page.last_id,
            has_more=page.has_more,
        )
