"""Scheduled crawl worker.

Runs as a separate service and crawls every accepted source on a fixed
interval (FH_CRAWL_INTERVAL_MINUTES, default 30), plus once at startup.

Usage:
    python scripts/worker.py

Environment Variables:
    DATABASE_URL: database connection string (defaults to local SQLite)
    FH_CRAWL_MAX_CONCURRENCY: parallel source fetches
    FH_FETCH_TIMEOUT_SECONDS: per-source fetch timeout
"""

import os
import sys
import asyncio
import signal
from datetime import datetime

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from dotenv import load_dotenv

load_dotenv()

from feedhub.config.logging import setup_logging
from feedhub.config.settings import settings
from feedhub.ingestion.interfaces import SourceState
from feedhub.pipeline.crawler import CrawlOrchestrator
from feedhub.storage.factory import get_feed_storage

logger = structlog.get_logger()


class CrawlWorker:
    """Manages the scheduled crawl job."""

    def __init__(self):
        self.storage = get_feed_storage()
        self.orchestrator = CrawlOrchestrator(self.storage)
        self.scheduler = AsyncIOScheduler()
        self.stopped = asyncio.Event()

    def setup_jobs(self):
        """Configure scheduled jobs."""
        self.scheduler.add_job(
            self.crawl,
            IntervalTrigger(minutes=settings.crawl_interval_minutes),
            id='crawl_sources',
            name='Crawl accepted sources',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=600
        )
        logger.info("jobs_configured", count=len(self.scheduler.get_jobs()))

    async def crawl(self):
        """Crawl all accepted sources."""
        logger.info("job_started", job="crawl_sources")
        start_time = datetime.now()

        sources = await asyncio.to_thread(self.storage.list_sources, SourceState.ACCEPTED)
        result = await self.orchestrator.crawl_all(sources)

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info("job_completed", job="crawl_sources",
                    sources=len(sources),
                    new_entries=result.new_count,
                    failed=len(result.failures),
                    elapsed_seconds=elapsed)
        return result

    def start(self):
        """Start the worker."""
        self.setup_jobs()
        self.scheduler.start()
        logger.info("worker_started", jobs=len(self.scheduler.get_jobs()),
                    interval_minutes=settings.crawl_interval_minutes)

    def stop(self):
        """Stop the worker gracefully."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.stopped.set()
        logger.info("worker_stopped")


async def main():
    """Main entry point."""
    setup_logging()
    worker = CrawlWorker()

    # Handle graceful shutdown
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, worker.stop)

    worker.start()

    # Run immediately on startup
    logger.info("running_initial_crawl")
    await worker.crawl()

    await worker.stopped.wait()


if __name__ == "__main__":
    asyncio.run(main())
