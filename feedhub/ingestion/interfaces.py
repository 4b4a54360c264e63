"""Interface definitions for feed ingestion."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set

from ..classification.interfaces import BlogPlatform


class SourceState(str, Enum):
    """Registration state of a source. Only ACCEPTED sources are crawled."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class Source:
    """A blog whose syndication feed we ingest."""
    id: Optional[int] = None
    name: str = ""
    rss_url: str = ""
    platform: BlogPlatform = BlogPlatform.ETC
    state: SourceState = SourceState.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_crawlable(self) -> bool:
        return self.state == SourceState.ACCEPTED

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "rss_url": self.rss_url,
            "platform": self.platform.value,
            "state": self.state.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class RawEntry:
    """A normalized entry as parsed from a feed document."""
    title: str
    path: str
    author: str = ""
    published_at: Optional[datetime] = None
    thumbnail: Optional[str] = None


@dataclass
class FeedEntry:
    """A stored feed entry.

    ``platform`` and ``blog_name`` are joined from the owning source on reads
    and are not persisted on the entry itself.
    """
    id: Optional[int] = None
    source_id: Optional[int] = None
    title: str = ""
    path: str = ""
    author: str = ""
    created_at: Optional[datetime] = None
    thumbnail: Optional[str] = None
    view_count: int = 0
    platform: BlogPlatform = BlogPlatform.ETC
    blog_name: str = ""


class FetcherInterface:
    """Interface for raw feed document retrieval."""

    async def fetch(self, url: str) -> bytes:
        """Fetch the raw feed document at url."""
        raise NotImplementedError


class ParserInterface:
    """Interface for feed document parsing."""

    def parse(self, raw: bytes) -> List[RawEntry]:
        """Parse a feed document into entries, in document order."""
        raise NotImplementedError


class StorageInterface:
    """Storage operations the ingestion and read paths depend on."""

    def find_existing_paths(self, source_id: int) -> Set[str]:
        """Return the canonical paths already stored for a source."""
        raise NotImplementedError

    def insert_batch(self, source_id: int, entries: Sequence[FeedEntry]) -> List[FeedEntry]:
        """Persist entries atomically, return them with ids assigned."""
        raise NotImplementedError

    def query_page(self, after_id: Optional[int], limit: int) -> List[FeedEntry]:
        """Return up to limit entries strictly after the cursor entry."""
        raise NotImplementedError

    def query_top_by_views(self, limit: int) -> List[FeedEntry]:
        """Return the most viewed entries."""
        raise NotImplementedError

    def get_stats(self) -> Dict[str, int]:
        """Return storage statistics."""
        raise NotImplementedError
