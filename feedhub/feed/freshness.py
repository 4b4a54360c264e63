"""Per-viewer "is new" computation."""

from datetime import datetime
from typing import Optional

from ..ingestion.interfaces import FeedEntry
from ..timeutil import to_naive_utc


def is_new(entry: FeedEntry, watermark: Optional[datetime]) -> bool:
    """True iff the entry was created strictly after the viewer's watermark.

    Computed at read time from caller state; never stored on the entry.
    """
    if watermark is None or entry.created_at is None:
        return False
    return to_naive_utc(entry.created_at) > to_naive_utc(watermark)
