"""HTTP API: paginated feed, trends, view counting and crawl trigger."""

import asyncio
from datetime import datetime
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from .dependencies import get_feed_service, get_orchestrator, get_storage, get_viewer_watermark
from ..config.logging import setup_logging
from ..config.settings import settings
from ..errors import StorageError
from ..feed.schemas import FeedPaginationResponse, FeedTrendResult
from ..feed.service import FeedService
from ..ingestion.interfaces import SourceState
from ..pipeline.crawler import CrawlOrchestrator
from ..storage.database import FeedStorage

logger = structlog.get_logger()


def create_app(configure_logging: bool = True) -> FastAPI:
    """Build the FastAPI application."""
    if configure_logging:
        setup_logging()

    app = FastAPI(title="feedhub")

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error("storage_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=503, content={"detail": "storage unavailable"})

    @app.get("/health")
    def health_check(storage: FeedStorage = Depends(get_storage)):
        """Health check endpoint for load balancers."""
        try:
            stats = storage.get_stats()
        except Exception as e:
            logger.error("health_check_failed", error=str(e))
            return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(e)})
        return {"status": "healthy", **stats}

    @app.get("/api/feed", response_model=FeedPaginationResponse)
    def list_feed(
        last_id: Optional[int] = Query(None, alias="lastId", description="Id of the last entry seen"),
        limit: int = Query(settings.page_size_default, ge=1, le=settings.page_size_max),
        watermark: Optional[datetime] = Depends(get_viewer_watermark),
        service: FeedService = Depends(get_feed_service),
    ):
        """Newest-first listing with a keyset cursor."""
        page = service.list_page(last_seen_id=last_id, page_size=limit, viewer_watermark=watermark)
        return FeedPaginationResponse.from_page(page)

    @app.get("/api/feed/trend", response_model=List[FeedTrendResult])
    def trend(service: FeedService = Depends(get_feed_service)):
        """Most viewed entries."""
        return [FeedTrendResult.from_entry(entry) for entry in service.trend()]

    @app.post("/api/feed/{entry_id}/view")
    def record_view(entry_id: int, storage: FeedStorage = Depends(get_storage)):
        """Count a read of an entry."""
        count = storage.increment_view_count(entry_id)
        if count is None:
            raise HTTPException(status_code=404, detail="feed entry not found")
        return {"id": entry_id, "viewCount": count}

    @app.post("/api/crawl")
    async def run_crawl(
        storage: FeedStorage = Depends(get_storage),
        orchestrator: CrawlOrchestrator = Depends(get_orchestrator),
    ):
        """Crawl all accepted sources now."""
        sources = await asyncio.to_thread(storage.list_sources, SourceState.ACCEPTED)
        result = await orchestrator.crawl_all(sources)
        return result.to_dict()

    return app
