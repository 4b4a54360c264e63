"""Database storage and models."""

from .database import FeedStorage
from .models import SourceModel, FeedEntryModel, init_db

__all__ = ["FeedStorage", "SourceModel", "FeedEntryModel", "init_db"]
