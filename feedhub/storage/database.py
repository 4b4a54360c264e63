"""Database operations for sources and feed entries."""

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
import structlog

from .models import ENTRY_PATH_CONSTRAINT, FeedEntryModel, SourceModel, init_db
from ..classification.interfaces import BlogPlatform
from ..config.settings import settings
from ..errors import DuplicateConflict, SourceAlreadyRegistered, StorageError
from ..ingestion.interfaces import FeedEntry, Source, SourceState, StorageInterface

logger = structlog.get_logger()

# Transient lock/connection errors are retried before surfacing as StorageError
_transient_retry = retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(settings.storage_max_retries),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
    reraise=True,
)


def _is_entry_path_conflict(error: IntegrityError) -> bool:
    """True if the violated constraint is the (source_id, path) dedup key.

    PostgreSQL names the constraint; SQLite names the columns instead.
    """
    message = str(error.orig)
    return ENTRY_PATH_CONSTRAINT in message or "feed_entries.source_id, feed_entries.path" in message


def _is_source_url_conflict(error: IntegrityError) -> bool:
    message = str(error.orig)
    return "sources_rss_url_key" in message or "UNIQUE constraint failed: sources.rss_url" in message


class FeedStorage(StorageInterface):
    """SQL storage for sources and their feed entries."""

    def __init__(self, database_url: str = None):
        if database_url is None:
            database_url = settings.database_url

        # Ensure data directory exists
        if database_url.startswith("sqlite:///") and database_url != "sqlite:///:memory:":
            db_path = database_url.replace("sqlite:///", "")
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.engine = init_db(database_url)
        self.Session = sessionmaker(bind=self.engine)

    # ------------------------------------------------------------------
    # Entries: ingestion side

    def find_existing_paths(self, source_id: int) -> Set[str]:
        """Return the canonical paths already stored for a source."""
        session = self.Session()
        try:
            rows = session.query(FeedEntryModel.path)\
                .filter(FeedEntryModel.source_id == source_id)\
                .all()
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            raise StorageError(f"could not read existing paths: {e}") from e
        finally:
            session.close()

    def insert_batch(self, source_id: int, entries: Sequence[FeedEntry]) -> List[FeedEntry]:
        """Insert entries for one source in a single transaction.

        Either every entry is committed or none is. A (source, path) collision
        rolls the whole batch back and raises DuplicateConflict.
        """
        if not entries:
            return []

        try:
            inserted = self._commit_batch(source_id, entries)
        except IntegrityError as e:
            if not _is_entry_path_conflict(e):
                logger.error("batch_insert_failed", source_id=source_id, error=str(e))
                raise StorageError(f"batch insert failed: {e}") from e
            logger.info("batch_duplicate_conflict", source_id=source_id, size=len(entries))
            raise DuplicateConflict(f"duplicate path for source {source_id}") from e
        except SQLAlchemyError as e:
            logger.error("batch_insert_failed", source_id=source_id, error=str(e))
            raise StorageError(f"batch insert failed: {e}") from e

        logger.debug("batch_inserted", source_id=source_id, count=len(inserted))
        return inserted

    @_transient_retry
    def _commit_batch(self, source_id: int, entries: Sequence[FeedEntry]) -> List[FeedEntry]:
        session = self.Session()
        try:
            source = session.get(SourceModel, source_id)
            if source is None:
                raise StorageError(f"unknown source {source_id}")

            models = [
                FeedEntryModel(
                    source_id=source_id,
                    title=entry.title,
                    path=entry.path,
                    author=entry.author,
                    thumbnail=entry.thumbnail,
                    created_at=entry.created_at,
                    view_count=entry.view_count or 0,
                )
                for entry in entries
            ]
            session.add_all(models)
            session.flush()

            inserted = [self._model_to_entry(m, source) for m in models]
            session.commit()
            return inserted
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Entries: read side

    def query_page(self, after_id: Optional[int], limit: int) -> List[FeedEntry]:
        """Return up to limit entries after the cursor in (created_at, id) DESC order.

        An unknown cursor falls back to the newest entry.
        """
        session = self.Session()
        try:
            query = session.query(FeedEntryModel, SourceModel)\
                .join(SourceModel, FeedEntryModel.source_id == SourceModel.id)

            if after_id is not None:
                cursor = session.get(FeedEntryModel, after_id)
                if cursor is None:
                    logger.info("cursor_not_found", after_id=after_id)
                else:
                    query = query.filter(or_(
                        FeedEntryModel.created_at < cursor.created_at,
                        and_(
                            FeedEntryModel.created_at == cursor.created_at,
                            FeedEntryModel.id < cursor.id,
                        ),
                    ))

            rows = query\
                .order_by(FeedEntryModel.created_at.desc(), FeedEntryModel.id.desc())\
                .limit(limit)\
                .all()
            return [self._model_to_entry(entry, source) for entry, source in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"page query failed: {e}") from e
        finally:
            session.close()

    def query_top_by_views(self, limit: int) -> List[FeedEntry]:
        """Return the most viewed entries, newest first among ties."""
        session = self.Session()
        try:
            rows = session.query(FeedEntryModel, SourceModel)\
                .join(SourceModel, FeedEntryModel.source_id == SourceModel.id)\
                .order_by(
                    FeedEntryModel.view_count.desc(),
                    FeedEntryModel.created_at.desc(),
                    FeedEntryModel.id.desc(),
                )\
                .limit(limit)\
                .all()
            return [self._model_to_entry(entry, source) for entry, source in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"trend query failed: {e}") from e
        finally:
            session.close()

    def get_entry(self, entry_id: int) -> Optional[FeedEntry]:
        """Get entry by id."""
        session = self.Session()
        try:
            row = session.query(FeedEntryModel, SourceModel)\
                .join(SourceModel, FeedEntryModel.source_id == SourceModel.id)\
                .filter(FeedEntryModel.id == entry_id)\
                .first()
            return self._model_to_entry(*row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"entry lookup failed: {e}") from e
        finally:
            session.close()

    def increment_view_count(self, entry_id: int) -> Optional[int]:
        """Bump an entry's view count, return the new count or None if unknown."""
        session = self.Session()
        try:
            updated = session.query(FeedEntryModel)\
                .filter(FeedEntryModel.id == entry_id)\
                .update({FeedEntryModel.view_count: FeedEntryModel.view_count + 1})
            session.commit()
            if not updated:
                return None
            return session.query(FeedEntryModel.view_count)\
                .filter(FeedEntryModel.id == entry_id)\
                .scalar()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"view count update failed: {e}") from e
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Sources

    def add_source(self, source: Source) -> Source:
        """Save a source, return it with its id assigned."""
        session = self.Session()
        try:
            model = SourceModel(
                name=source.name,
                rss_url=source.rss_url,
                platform=source.platform.value,
                state=source.state.value,
                created_at=source.created_at or datetime.utcnow(),
            )
            session.add(model)
            session.commit()
            logger.info("source_saved", id=model.id, url=source.rss_url, platform=model.platform)
            return self._model_to_source(model)
        except IntegrityError as e:
            session.rollback()
            if not _is_source_url_conflict(e):
                raise StorageError(f"could not save source: {e}") from e
            raise SourceAlreadyRegistered(f"already registered: {source.rss_url}") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"could not save source: {e}") from e
        finally:
            session.close()

    def get_source(self, source_id: int) -> Optional[Source]:
        """Get source by id."""
        session = self.Session()
        try:
            model = session.get(SourceModel, source_id)
            return self._model_to_source(model) if model else None
        except SQLAlchemyError as e:
            raise StorageError(f"source lookup failed: {e}") from e
        finally:
            session.close()

    def get_source_by_url(self, rss_url: str) -> Optional[Source]:
        """Get source by feed URL."""
        session = self.Session()
        try:
            model = session.query(SourceModel)\
                .filter(SourceModel.rss_url == rss_url)\
                .first()
            return self._model_to_source(model) if model else None
        except SQLAlchemyError as e:
            raise StorageError(f"source lookup failed: {e}") from e
        finally:
            session.close()

    def list_sources(self, state: SourceState = None) -> List[Source]:
        """List sources, optionally filtered by state."""
        session = self.Session()
        try:
            query = session.query(SourceModel)
            if state is not None:
                query = query.filter(SourceModel.state == state.value)
            return [self._model_to_source(m) for m in query.order_by(SourceModel.id).all()]
        except SQLAlchemyError as e:
            raise StorageError(f"source listing failed: {e}") from e
        finally:
            session.close()

    def remove_source(self, source_id: int, policy: str = "retain") -> Optional[int]:
        """Remove a source according to policy.

        ``retain`` marks the source rejected and keeps its entries readable;
        ``cascade`` deletes the source together with its entries. Returns the
        number of entries deleted, or None if the source does not exist.
        """
        if policy not in ("retain", "cascade"):
            raise ValueError(f"unknown removal policy: {policy}")

        session = self.Session()
        try:
            model = session.get(SourceModel, source_id)
            if model is None:
                return None

            deleted = 0
            if policy == "cascade":
                deleted = session.query(FeedEntryModel)\
                    .filter(FeedEntryModel.source_id == source_id)\
                    .delete(synchronize_session=False)
                session.delete(model)
            else:
                model.state = SourceState.REJECTED.value

            session.commit()
            logger.info("source_removed", id=source_id, policy=policy, entries_deleted=deleted)
            return deleted
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"source removal failed: {e}") from e
        finally:
            session.close()

    def get_stats(self) -> Dict[str, int]:
        """Get database statistics."""
        session = self.Session()
        try:
            return {
                "total_sources": session.query(SourceModel).count(),
                "accepted_sources": session.query(SourceModel)
                    .filter(SourceModel.state == SourceState.ACCEPTED.value).count(),
                "total_entries": session.query(FeedEntryModel).count(),
            }
        except SQLAlchemyError as e:
            raise StorageError(f"stats query failed: {e}") from e
        finally:
            session.close()

    # ------------------------------------------------------------------

    def _model_to_entry(self, model: FeedEntryModel, source: SourceModel) -> FeedEntry:
        """Convert database models to a FeedEntry."""
        return FeedEntry(
            id=model.id,
            source_id=model.source_id,
            title=model.title,
            path=model.path,
            author=model.author or "",
            created_at=model.created_at,
            thumbnail=model.thumbnail,
            view_count=model.view_count or 0,
            platform=BlogPlatform(source.platform),
            blog_name=source.name,
        )

    def _model_to_source(self, model: SourceModel) -> Source:
        """Convert database model to Source."""
        return Source(
            id=model.id,
            name=model.name,
            rss_url=model.rss_url,
            platform=BlogPlatform(model.platform),
            state=SourceState(model.state),
            created_at=model.created_at,
        )
