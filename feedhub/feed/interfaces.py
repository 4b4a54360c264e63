"""Read-side types for feed listings."""

from dataclasses import dataclass, field
from typing import List, Optional

from ..ingestion.interfaces import FeedEntry


@dataclass
class AnnotatedEntry:
    """A feed entry with its per-viewer freshness flag."""
    entry: FeedEntry
    is_new: bool = False


@dataclass
class Page:
    """One page of the recency-ordered listing."""
    items: List[AnnotatedEntry] = field(default_factory=list)
    last_id: Optional[int] = None
    has_more: bool = False
