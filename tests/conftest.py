"""Pytest configuration and shared fixtures."""

import os
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from feedhub.classification.interfaces import BlogPlatform
from feedhub.ingestion.interfaces import FeedEntry, Source, SourceState



@pytest.fixture
def temp_db():
    """Provide a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield f"sqlite:///{db_path}"
    # Cleanup
    try:
        os.unlink(db_path)
    except FileNotFoundError:
        pass


@pytest.fixture
def storage(temp_db):
    """A FeedStorage on a fresh temporary database."""
    from feedhub.storage.database import FeedStorage
    storage = FeedStorage(temp_db)
    yield storage
    storage.engine.dispose()


@pytest.fixture
def source(storage):
    """An accepted source persisted in storage."""
    return storage.add_source(Source(
        name="Example Blog",
        rss_url="https://blog.example.com/rss",
        platform=BlogPlatform.ETC,
        state=SourceState.ACCEPTED,
    ))


@pytest.fixture
def five_entries(storage, source):
    """Five stored entries, ids 1..5, created one day apart (5 is newest)."""
    base = datetime(2024, 1, 1, 10, 0, 0)
    entries = [
        FeedEntry(
            source_id=source.id,
            title=f"Post {i}",
            path=f"https://blog.example.com/posts/{i}",
            author="Example Blog",
            created_at=base + timedelta(days=i - 1),
        )
        for i in range(1, 6)
    ]
    return storage.insert_batch(source.id, entries)
