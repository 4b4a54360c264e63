"""Feed ingestion - fetching and parsing RSS/Atom documents."""

from .interfaces import (
    Source, SourceState, RawEntry, FeedEntry,
    FetcherInterface, ParserInterface, StorageInterface
)
from .fetcher import FeedFetcher
from .parser import FeedParser

__all__ = [
    "Source", "SourceState", "RawEntry", "FeedEntry",
    "FetcherInterface", "ParserInterface", "StorageInterface",
    "FeedFetcher", "FeedParser",
]
