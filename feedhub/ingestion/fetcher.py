"""Async feed document fetcher."""

import asyncio
import time
from typing import Optional

import aiohttp
import structlog

from .interfaces import FetcherInterface
from ..config.settings import settings
from ..errors import FetchError

logger = structlog.get_logger()


class FeedFetcher(FetcherInterface):
    """Fetches raw feed documents over HTTP with a bounded timeout.

    Use as an async context manager to share one connection pool across a
    crawl batch; outside of one, each fetch opens its own session.
    """

    def __init__(self, timeout: float = None, user_agent: str = None):
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self.user_agent = user_agent or settings.user_agent
        self.session: Optional[aiohttp.ClientSession] = None

    def _new_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={"User-Agent": self.user_agent},
        )

    async def __aenter__(self):
        self.session = self._new_session()
        return self

    async def __aexit__(self, *args):
        if self.session:
            await self.session.close()
            self.session = None

    async def fetch(self, url: str) -> bytes:
        """Fetch the raw document at url."""
        if self.session is not None:
            return await self._fetch(self.session, url)
        async with self._new_session() as session:
            return await self._fetch(session, url)

    async def _fetch(self, session: aiohttp.ClientSession, url: str) -> bytes:
        start_time = time.time()
        try:
            async with session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise FetchError(f"HTTP {response.status}", source_url=url)
                body = await response.read()
        except asyncio.TimeoutError as e:
            raise FetchError(f"timed out after {self.timeout}s", source_url=url) from e
        except aiohttp.ClientError as e:
            raise FetchError(f"HTTP error: {e}", source_url=url) from e

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info("feed_fetched", url=url, bytes=len(body), time_ms=elapsed_ms)
        return body
