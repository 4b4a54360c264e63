#!/usr/bin/env python3
"""Run one crawl of every accepted source."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from feedhub.config.logging import setup_logging
from feedhub.ingestion.fetcher import FeedFetcher
from feedhub.ingestion.interfaces import SourceState
from feedhub.pipeline.crawler import CrawlOrchestrator
from feedhub.storage.factory import get_feed_storage


async def crawl() -> tuple:
    storage = get_feed_storage()
    sources = storage.list_sources(state=SourceState.ACCEPTED)

    async with FeedFetcher() as fetcher:
        orchestrator = CrawlOrchestrator(storage, fetcher=fetcher)
        result = await orchestrator.crawl_all(sources)
    return sources, result


def main():
    setup_logging()

    print("\n" + "=" * 50)
    print("FEEDHUB CRAWL")
    print("=" * 50 + "\n")

    sources, result = asyncio.run(crawl())
    names = {s.id: s.name for s in sources}

    print("\nRESULTS:")
    print(f"  Sources: {len(sources)} crawled, {len(result.failures)} failed")
    print(f"  New entries: {result.new_count}")

    for source_id, ids in result.inserted.items():
        if ids:
            print(f"    {names.get(source_id, source_id)}: +{len(ids)}")

    if result.failures:
        print("\nFAILED:")
        for source_id, reason in result.failures.items():
            print(f"  - {names.get(source_id, source_id)}: {reason}")

    print(f"\nTIME: {result.elapsed_seconds:.1f}s\n")


if __name__ == "__main__":
    main()
