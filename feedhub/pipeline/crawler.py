"""Crawl orchestration across sources."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import structlog

from .ingest import IngestGate
from ..config.settings import settings
from ..errors import CrawlError
from ..ingestion.fetcher import FeedFetcher
from ..ingestion.interfaces import (
    FeedEntry, FetcherInterface, ParserInterface, RawEntry, Source, StorageInterface
)
from ..ingestion.parser import FeedParser

logger = structlog.get_logger()


@dataclass
class SourceOutcome:
    """What happened to one source during a crawl."""
    source_id: int
    entries: List[FeedEntry] = field(default_factory=list)
    stage: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class CrawlResult:
    """Aggregate result of a crawl batch. Never persisted."""
    inserted: Dict[int, List[int]] = field(default_factory=dict)
    failures: Dict[int, str] = field(default_factory=dict)
    skipped: List[int] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def add(self, outcome: SourceOutcome) -> None:
        if outcome.success:
            self.inserted.setdefault(outcome.source_id, []).extend(e.id for e in outcome.entries)
        else:
            self.failures[outcome.source_id] = outcome.error

    @property
    def new_entry_ids(self) -> List[int]:
        return [entry_id for ids in self.inserted.values() for entry_id in ids]

    @property
    def new_count(self) -> int:
        return sum(len(ids) for ids in self.inserted.values())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "inserted": {str(k): v for k, v in self.inserted.items()},
            "failures": {str(k): v for k, v in self.failures.items()},
            "skipped": self.skipped,
            "new_count": self.new_count,
            "elapsed_seconds": self.elapsed_seconds,
        }


class CrawlOrchestrator:
    """Runs fetch -> parse -> ingest for each source with bounded concurrency.

    Each stage raises a CrawlError subclass on failure, which short-circuits
    the rest of that source's pipeline and is recorded in the CrawlResult.
    Other sources are unaffected.
    """

    def __init__(
        self,
        storage: StorageInterface,
        fetcher: FetcherInterface = None,
        parser: ParserInterface = None,
        max_concurrency: int = None,
    ):
        self.gate = IngestGate(storage)
        self.fetcher = fetcher or FeedFetcher()
        self.parser = parser or FeedParser()
        self.max_concurrency = max_concurrency or settings.crawl_max_concurrency
        self._locks: Dict[int, asyncio.Lock] = {}

        self.stages = (
            ("fetch", self._fetch_stage),
            ("parse", self._parse_stage),
            ("ingest", self._ingest_stage),
        )

    async def crawl_all(self, sources: Sequence[Source]) -> CrawlResult:
        """Crawl every accepted source; failures are contained per source."""
        start = time.time()
        result = CrawlResult()

        targets = []
        for source in sources:
            if source.is_crawlable:
                targets.append(source)
            else:
                logger.info("source_skipped", source_id=source.id, state=source.state.value)
                result.skipped.append(source.id)

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def crawl_with_semaphore(source: Source) -> SourceOutcome:
            async with semaphore:
                return await self.crawl_source(source)

        outcomes = await asyncio.gather(
            *(crawl_with_semaphore(s) for s in targets), return_exceptions=True
        )
        for source, outcome in zip(targets, outcomes):
            if isinstance(outcome, Exception):
                logger.error("source_crawl_exception", source_id=source.id, error=str(outcome))
                outcome = SourceOutcome(source_id=source.id, error=f"crawl: {outcome!r}")
            result.add(outcome)

        result.elapsed_seconds = time.time() - start
        logger.info(
            "crawl_completed",
            sources=len(targets),
            new_entries=result.new_count,
            failed=len(result.failures),
            skipped=len(result.skipped),
            elapsed_seconds=round(result.elapsed_seconds, 2),
        )
        return result

    async def crawl_source(self, source: Source) -> SourceOutcome:
        """Run the stage pipeline for one source.

        Crawls of the same source id are serialized.
        """
        async with self._lock_for(source.id):
            value = source.rss_url
            name = None
            try:
                for name, stage in self.stages:
                    value = await stage(source, value)
                    logger.debug("crawl_stage_done", source_id=source.id, stage=name)
            except CrawlError as e:
                logger.warning(
                    "source_crawl_failed",
                    source_id=source.id,
                    url=source.rss_url,
                    stage=e.stage,
                    error=str(e),
                )
                return SourceOutcome(source_id=source.id, stage=e.stage, error=f"{e.stage}: {e}")
            except Exception as e:
                # Unexpected errors stay with this source and are blamed on the running stage
                reason = str(e) or type(e).__name__
                logger.exception(
                    "source_crawl_crashed",
                    source_id=source.id,
                    url=source.rss_url,
                    stage=name,
                    error=reason,
                )
                return SourceOutcome(source_id=source.id, stage=name, error=f"{name}: {reason}")

        return SourceOutcome(source_id=source.id, entries=value)

    def _lock_for(self, source_id: int) -> asyncio.Lock:
        lock = self._locks.get(source_id)
        if lock is None:
            lock = self._locks[source_id] = asyncio.Lock()
        return lock

    async def _fetch_stage(self, source: Source, url: str) -> bytes:
        return await self.fetcher.fetch(url)

    async def _parse_stage(self, source: Source, raw: bytes) -> List[RawEntry]:
        return self.parser.parse(raw)

    async def _ingest_stage(self, source: Source, candidates: List[RawEntry]) -> List[FeedEntry]:
        # Storage calls block; keep them off the event loop
        return await asyncio.to_thread(self.gate.ingest, source.id, candidates)
