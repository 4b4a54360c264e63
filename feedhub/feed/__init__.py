"""Feed read side - pagination, freshness and trends."""

from .interfaces import AnnotatedEntry, Page
from .freshness import is_new
from .service import FeedService

__all__ = ["AnnotatedEntry", "Page", "is_new", "FeedService"]
