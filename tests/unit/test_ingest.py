"""Unit tests for the dedup and persistence gate."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from feedhub.errors import DuplicateConflict, StorageError
from feedhub.ingestion.interfaces import RawEntry
from feedhub.pipeline.ingest import IngestGate


def raw(n, published_at=None):
    return RawEntry(
        title=f"Post {n}",
        path=f"https://blog.example.com/posts/{n}",
        author="Example Blog",
        published_at=published_at or datetime(2024, 1, n, 10, 0),
    )


class TestIngestGate:
    """Tests for IngestGate."""

    def test_first_run_inserts_second_run_nothing(self, storage, source):
        """Re-ingesting an unchanged feed inserts nothing."""
        gate = IngestGate(storage)
        candidates = [raw(n) for n in (5, 4, 3, 2, 1)]

        first = gate.ingest(source.id, candidates)
        second = gate.ingest(source.id, candidates)

        assert len(first) == 5
        assert second == []
        assert storage.get_stats()["total_entries"] == 5

    def test_oldest_entries_get_lowest_ids(self, storage, source):
        """Newest-first feed order is stored oldest-first."""
        inserted = IngestGate(storage).ingest(source.id, [raw(n) for n in (3, 2, 1)])

        assert [e.title for e in inserted] == ["Post 1", "Post 2", "Post 3"]
        assert inserted[0].id < inserted[-1].id

    def test_only_new_paths_inserted(self, storage, source):
        """A feed that grew by one inserts exactly that one."""
        gate = IngestGate(storage)
        gate.ingest(source.id, [raw(2), raw(1)])

        inserted = gate.ingest(source.id, [raw(3), raw(2), raw(1)])
        assert [e.path for e in inserted] == ["https://blog.example.com/posts/3"]

    def test_in_batch_duplicates_collapse(self, storage, source):
        """The same path twice in one document is stored once; the first wins."""
        first = RawEntry(title="First", path="https://blog.example.com/x", published_at=datetime(2024, 1, 1))
        second = RawEntry(title="Second", path="https://blog.example.com/x", published_at=datetime(2024, 1, 2))

        inserted = IngestGate(storage).ingest(source.id, [first, second])
        assert [e.title for e in inserted] == ["First"]

    def test_missing_publish_time_uses_now(self, storage, source):
        """Undated entries are stamped at ingest time."""
        before = datetime.utcnow()
        undated = RawEntry(title="Undated", path="https://blog.example.com/undated")

        inserted = IngestGate(storage).ingest(source.id, [undated])
        assert inserted[0].created_at >= before.replace(microsecond=0)

    def test_empty_candidates(self, storage, source):
        """No candidates means no write."""
        assert IngestGate(storage).ingest(source.id, []) == []

    def test_conflict_is_not_an_error(self):
        """A lost race against a concurrent writer yields nothing new."""
        storage = MagicMock()
        storage.find_existing_paths.return_value = set()
        storage.insert_batch.side_effect = DuplicateConflict("race")

        assert IngestGate(storage).ingest(1, [raw(1)]) == []
        storage.insert_batch.assert_called_once()

    def test_storage_error_propagates(self):
        """Unexpected storage failures reach the caller."""
        storage = MagicMock()
        storage.find_existing_paths.return_value = set()
        storage.insert_batch.side_effect = StorageError("disk full")

        with pytest.raises(StorageError):
            IngestGate(storage).ingest(1, [raw(1)])


def test_select_new():
    """Drops stored paths and repeats."""
    candidates = [raw(1), raw(2), raw(2), raw(3)]
    fresh = IngestGate.select_new(candidates, {"https://blog.example.com/posts/3"})
    assert [r.title for r in fresh] == ["Post 1", "Post 2"]
