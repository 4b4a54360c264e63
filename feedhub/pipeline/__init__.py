"""Pipeline orchestration - crawling and ingestion."""

from .ingest import IngestGate
from .crawler import CrawlOrchestrator, CrawlResult, SourceOutcome

__all__ = ["IngestGate", "CrawlOrchestrator", "CrawlResult", "SourceOutcome"]
