"""FastAPI dependency providers."""

from datetime import datetime
from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from ..feed.service import FeedService
from ..pipeline.crawler import CrawlOrchestrator
from ..storage.database import FeedStorage
from ..storage.factory import get_feed_storage

logger = structlog.get_logger()


def get_storage() -> FeedStorage:
    return get_feed_storage()


def get_feed_service(storage: FeedStorage = Depends(get_storage)) -> FeedService:
    return FeedService(storage)


def get_orchestrator(request: Request, storage: FeedStorage = Depends(get_storage)) -> CrawlOrchestrator:
    # One orchestrator per app so per-source locks are shared across requests
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = request.app.state.orchestrator = CrawlOrchestrator(storage)
    return orchestrator


def get_viewer_watermark(x_last_visit: Optional[str] = Header(None)) -> Optional[datetime]:
    """The viewer's last-visit timestamp, passed by the session layer as ISO-8601."""
    if not x_last_visit:
        return None
    try:
        return datetime.fromisoformat(x_last_visit.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.debug("invalid_watermark_header", value=x_last_visit[:40])
        return None
