"""Unit tests for the feed fetcher."""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from feedhub.errors import FetchError
from feedhub.ingestion.fetcher import FeedFetcher

from feed_samples import five_post_rss


@pytest.fixture
async def feed_server():
    """A local HTTP server with good, missing and slow feeds."""
    async def good(request):
        return web.Response(body=five_post_rss(), content_type="application/rss+xml")

    async def missing(request):
        return web.Response(status=404, text="not found")

    async def slow(request):
        await asyncio.sleep(1.0)
        return web.Response(body=five_post_rss(), content_type="application/rss+xml")

    async def agent(request):
        return web.Response(text=request.headers.get("User-Agent", ""))

    app = web.Application()
    app.router.add_get("/good.xml", good)
    app.router.add_get("/missing.xml", missing)
    app.router.add_get("/slow.xml", slow)
    app.router.add_get("/agent", agent)

    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()


class TestFeedFetcher:
    """Tests for FeedFetcher."""

    async def test_fetch_returns_body(self, feed_server):
        """Should return the raw document bytes."""
        body = await FeedFetcher(timeout=5).fetch(str(feed_server.make_url("/good.xml")))
        assert body == five_post_rss()

    async def test_shared_session(self, feed_server):
        """Works as an async context manager over several fetches."""
        async with FeedFetcher(timeout=5) as fetcher:
            first = await fetcher.fetch(str(feed_server.make_url("/good.xml")))
            second = await fetcher.fetch(str(feed_server.make_url("/good.xml")))
        assert first == second
        assert fetcher.session is None

    async def test_user_agent_sent(self, feed_server):
        """The configured User-Agent goes out with each request."""
        body = await FeedFetcher(timeout=5, user_agent="feedhub-test/1.0").fetch(
            str(feed_server.make_url("/agent"))
        )
        assert body == b"feedhub-test/1.0"

    async def test_non_success_status(self, feed_server):
        """A 404 is a FetchError carrying the status."""
        url = str(feed_server.make_url("/missing.xml"))
        with pytest.raises(FetchError) as exc_info:
            await FeedFetcher(timeout=5).fetch(url)

        assert "404" in str(exc_info.value)
        assert exc_info.value.source_url == url
        assert exc_info.value.stage == "fetch"

    async def test_timeout(self, feed_server):
        """A response slower than the timeout is a FetchError."""
        with pytest.raises(FetchError) as exc_info:
            await FeedFetcher(timeout=0.2).fetch(str(feed_server.make_url("/slow.xml")))
        assert "timed out" in str(exc_info.value)

    async def test_connection_refused(self):
        """Unreachable hosts are a FetchError."""
        with pytest.raises(FetchError):
            await FeedFetcher(timeout=2).fetch("http://127.0.0.1:1/feed.xml")
