"""Source registration and removal."""

import asyncio
from typing import List, Optional, Tuple

import structlog

from ..classification.classifier import PlatformClassifier
from ..config.settings import settings
from ..config.sources import load_source_seeds
from ..errors import SourceAlreadyRegistered
from ..ingestion.interfaces import Source, SourceState
from ..pipeline.crawler import CrawlOrchestrator, SourceOutcome
from ..storage.database import FeedStorage

logger = structlog.get_logger()


class SourceRegistry:
    """Accepts sources for crawling and removes them again.

    The platform tag is computed once, when a source is accepted. A later
    change of the feed URL does not re-tag it.
    """

    def __init__(
        self,
        storage: FeedStorage,
        orchestrator: CrawlOrchestrator = None,
        classifier: PlatformClassifier = None,
        removal_policy: str = None,
    ):
        self.storage = storage
        self.orchestrator = orchestrator or CrawlOrchestrator(storage)
        self.classifier = classifier or PlatformClassifier()
        self.removal_policy = removal_policy or settings.source_removal_policy

    async def accept(self, name: str, rss_url: str) -> Tuple[Source, SourceOutcome]:
        """Register an accepted source and crawl it right away.

        A failed first crawl does not undo the acceptance; it is reported in
        the returned outcome and the next scheduled crawl retries.
        """
        rss_url = rss_url.strip()
        if await asyncio.to_thread(self.storage.get_source_by_url, rss_url):
            raise SourceAlreadyRegistered(f"already registered: {rss_url}")

        source = Source(
            name=name.strip(),
            rss_url=rss_url,
            platform=self.classifier.classify(rss_url),
            state=SourceState.ACCEPTED,
        )
        source = await asyncio.to_thread(self.storage.add_source, source)
        logger.info("source_accepted", source_id=source.id, platform=source.platform.value)

        outcome = await self.orchestrator.crawl_source(source)
        return source, outcome

    def remove(self, source_id: int, policy: str = None) -> Optional[int]:
        """Remove a source; returns entries deleted, or None if unknown."""
        return self.storage.remove_source(source_id, policy or self.removal_policy)

    def accepted_sources(self) -> List[Source]:
        """Sources that crawls target."""
        return self.storage.list_sources(state=SourceState.ACCEPTED)

    async def import_seeds(self, config_path: str = None) -> dict:
        """Accept every seed in the sources file, skipping known URLs."""
        stats = {"accepted": 0, "skipped": 0, "new_entries": 0, "failures": {}}

        for seed in load_source_seeds(config_path):
            try:
                source, outcome = await self.accept(seed.name, seed.rss_url)
            except SourceAlreadyRegistered:
                stats["skipped"] += 1
                continue

            stats["accepted"] += 1
            if outcome.success:
                stats["new_entries"] += len(outcome.entries)
            else:
                stats["failures"][source.rss_url] = outcome.error

        logger.info(
            "seeds_imported",
            accepted=stats["accepted"],
            skipped=stats["skipped"],
            failed=len(stats["failures"]),
        )
        return stats
