"""SQLAlchemy models for the feedhub database."""

from datetime import datetime

from sqlalchemy import (
    create_engine, Column, Integer, String, Text, DateTime, ForeignKey,
    Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()

ENTRY_PATH_CONSTRAINT = "uq_feed_entries_source_path"


class SourceModel(Base):
    """Database model for blog sources."""
    __tablename__ = "sources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    rss_url = Column(String(2048), unique=True, nullable=False)

    # Assigned once at acceptance time
    platform = Column(String(20), nullable=False, default="etc")
    state = Column(String(20), nullable=False, default="pending")

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index('idx_sources_state', 'state'),
    )


class FeedEntryModel(Base):
    """Database model for ingested feed entries."""
    __tablename__ = "feed_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_id = Column(Integer, ForeignKey("sources.id"), nullable=False)

    title = Column(Text, nullable=False)
    path = Column(String(2048), nullable=False)
    author = Column(String(255))
    thumbnail = Column(String(2048))

    # Publish time, naive UTC
    created_at = Column(DateTime, nullable=False)
    ingested_at = Column(DateTime, default=datetime.utcnow)

    view_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        # Dedup key; the true guardian against concurrent double-inserts
        UniqueConstraint('source_id', 'path', name=ENTRY_PATH_CONSTRAINT),
        Index('idx_entries_recency', 'created_at', 'id'),
        Index('idx_entries_views', 'view_count'),
    )


def init_db(database_url: str):
    """Initialize database and create all tables."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection so every thread sees the same in-memory DB
        engine = create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return engine

