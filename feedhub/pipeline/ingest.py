"""Deduplication and persistence gate."""

from datetime import datetime
from typing import List, Sequence

import structlog

from ..errors import DuplicateConflict
from ..ingestion.interfaces import FeedEntry, RawEntry, StorageInterface

logger = structlog.get_logger()


class IngestGate:
    """Persists only the entries of a source that are not stored yet.

    The in-memory path filter avoids pointless writes; the storage unique
    constraint on (source, path) is what actually guarantees uniqueness.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def ingest(self, source_id: int, candidates: Sequence[RawEntry]) -> List[FeedEntry]:
        """Insert the new candidates for a source and return them.

        Idempotent: a second run with the same candidates inserts nothing.
        """
        existing = self.storage.find_existing_paths(source_id)
        fresh = self.select_new(candidates, existing)

        if not fresh:
            logger.debug("no_new_entries", source_id=source_id, candidates=len(candidates))
            return []

        now = datetime.utcnow()
        entries = [
            FeedEntry(
                source_id=source_id,
                title=raw.title,
                path=raw.path,
                author=raw.author,
                created_at=raw.published_at or now,
                thumbnail=raw.thumbnail,
            )
            for raw in fresh
        ]
        # Oldest first so ids grow with publish time
        entries.sort(key=lambda e: e.created_at)

        try:
            inserted = self.storage.insert_batch(source_id, entries)
        except DuplicateConflict:
            logger.info("ingest_conflict_ignored", source_id=source_id, batch=len(entries))
            return []

        logger.info(
            "entries_ingested",
            source_id=source_id,
            candidates=len(candidates),
            inserted=len(inserted),
        )
        return inserted

    @staticmethod
    def select_new(candidates: Sequence[RawEntry], existing_paths) -> List[RawEntry]:
        """Drop already-stored paths and in-batch duplicates (first one wins)."""
        seen = set(existing_paths)
        fresh = []
        for raw in candidates:
            if raw.path in seen:
                continue
            seen.add(raw.path)
            fresh.append(raw)
        return fresh
