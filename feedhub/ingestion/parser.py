"""RSS/Atom document parser built on feedparser."""

import io
import re
from datetime import datetime
from typing import List, Optional

import feedparser
import structlog

from .interfaces import ParserInterface, RawEntry
from ..errors import ParseError

logger = structlog.get_logger()

IMG_SRC_PATTERN = re.compile(r"<img[^>]+src\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)


class FeedParser(ParserInterface):
    """Turns raw RSS 2.0 / Atom bytes into RawEntry records."""

    def parse(self, raw: bytes) -> List[RawEntry]:
        """Parse a feed document, preserving document order."""
        try:
            feed = feedparser.parse(io.BytesIO(raw or b""))
        except Exception as e:
            raise ParseError(f"feed parser crashed: {e}") from e

        if not feed.get("version") and not feed.entries:
            reason = feed.get("bozo_exception") or "unrecognised feed format"
            raise ParseError(f"not a valid feed: {reason}")

        channel_title = (feed.feed.get("title") or "").strip()

        entries = []
        for entry in feed.entries:
            parsed = self._parse_entry(entry, channel_title)
            if parsed:
                entries.append(parsed)

        if feed.bozo:
            # Keep what a malformed document still yields; nothing at all is a failure
            if not entries:
                raise ParseError(f"malformed feed: {feed.get('bozo_exception')}")
            logger.warning(
                "feed_parsed_with_errors",
                version=feed.get("version"),
                recovered=len(entries),
                error=str(feed.get("bozo_exception")),
            )

        logger.debug("feed_parsed", version=feed.get("version"), entries=len(entries))
        return entries

    def _parse_entry(self, entry, channel_title: str) -> Optional[RawEntry]:
        """Parse a feedparser entry into a RawEntry."""
        path = (entry.get("link") or "").strip()
        if not path:
            logger.debug("entry_skipped_no_link", title=entry.get("title"))
            return None

        title = (entry.get("title") or "").strip() or path
        author = (entry.get("author") or "").strip() or channel_title

        return RawEntry(
            title=title,
            path=path,
            author=author,
            published_at=self._parse_date(entry),
            thumbnail=self._extract_thumbnail(entry),
        )

    @staticmethod
    def _parse_date(entry) -> Optional[datetime]:
        # feedparser normalizes *_parsed to UTC struct_time
        for attr in ("published_parsed", "updated_parsed"):
            parsed = entry.get(attr)
            if parsed:
                try:
                    return datetime(*parsed[:6])
                except (TypeError, ValueError):
                    pass
        return None

    @staticmethod
    def _extract_thumbnail(entry) -> Optional[str]:
        """Find a thumbnail image URL, or None when the entry has none."""
        for thumb in entry.get("media_thumbnail") or []:
            if thumb.get("url"):
                return thumb["url"]

        for media in entry.get("media_content") or []:
            media_type = media.get("type") or ""
            if media.get("url") and (media.get("medium") == "image" or media_type.startswith("image/")):
                return media["url"]

        for enclosure in entry.get("enclosures") or []:
            if enclosure.get("href") and (enclosure.get("type") or "").startswith("image/"):
                return enclosure["href"]

        html_sources = [c.get("value", "") for c in entry.get("content") or []]
        html_sources.append(entry.get("summary") or "")
        for html in html_sources:
            match = IMG_SRC_PATTERN.search(html)
            if match:
                return match.group(1)

        return None
