"""Unit tests for the feed parser."""

from datetime import datetime

import pytest

from feedhub.errors import ParseError
from feedhub.ingestion.parser import FeedParser

from feed_samples import ATOM_DOC, five_post_rss, make_rss


class TestRSSParsing:
    """RSS 2.0 documents."""

    def test_entries_in_document_order(self):
        """Should keep the order entries appear in."""
        entries = FeedParser().parse(five_post_rss())

        assert [e.title for e in entries] == ["Post 5", "Post 4", "Post 3", "Post 2", "Post 1"]
        assert entries[0].path == "https://blog.example.com/posts/5"

    def test_publish_date_is_naive_utc(self):
        """pubDate becomes a naive UTC datetime."""
        entries = FeedParser().parse(five_post_rss())
        assert entries[-1].published_at == datetime(2024, 1, 1, 10, 0, 0)

    def test_author_from_creator_or_channel(self):
        """dc:creator wins; otherwise the channel title stands in."""
        doc = make_rss([
            ("By Alice", "https://b.example.com/1", None, "<dc:creator>Alice</dc:creator>"),
            ("Anonymous", "https://b.example.com/2", None, ""),
        ], title="Team Blog")

        entries = FeedParser().parse(doc)
        assert entries[0].author == "Alice"
        assert entries[1].author == "Team Blog"

    def test_missing_thumbnail_is_absent(self):
        """No image anywhere means thumbnail is None, not an error."""
        entries = FeedParser().parse(five_post_rss())
        assert all(e.thumbnail is None for e in entries)

    def test_thumbnail_sources(self):
        """media:thumbnail, image enclosures and inline images are recognised."""
        doc = make_rss([
            ("Media", "https://b.example.com/1", None,
             '<media:thumbnail url="https://cdn.example.com/t1.png"/>'),
            ("Enclosure", "https://b.example.com/2", None,
             '<enclosure url="https://cdn.example.com/t2.jpg" type="image/jpeg" length="10"/>'),
            ("Inline", "https://b.example.com/3", None,
             '<description>&lt;p&gt;&lt;img src="https://cdn.example.com/t3.gif"&gt;&lt;/p&gt;</description>'),
        ])

        thumbs = [e.thumbnail for e in FeedParser().parse(doc)]
        assert thumbs == [
            "https://cdn.example.com/t1.png",
            "https://cdn.example.com/t2.jpg",
            "https://cdn.example.com/t3.gif",
        ]

    def test_entries_without_link_are_skipped(self):
        """An item without a link has no dedup key and is dropped."""
        doc = make_rss([
            ("Linked", "https://b.example.com/1", None, ""),
            ("Unlinked", None, None, ""),
        ])
        entries = FeedParser().parse(doc)
        assert [e.title for e in entries] == ["Linked"]

    def test_missing_date(self):
        """No pubDate leaves published_at unset."""
        doc = make_rss([("Undated", "https://b.example.com/1", None, "")])
        assert FeedParser().parse(doc)[0].published_at is None

    def test_empty_channel(self):
        """A valid feed with no items parses to nothing."""
        assert FeedParser().parse(make_rss([])) == []


class TestAtomParsing:
    """Atom documents."""

    def test_atom_entries(self):
        """Should read title, alternate link, author and dates."""
        entries = FeedParser().parse(ATOM_DOC)

        assert [e.path for e in entries] == [
            "https://atom.example.com/2",
            "https://atom.example.com/1",
        ]
        assert entries[0].title == "Second post"
        assert entries[0].author == "Jane Doe"
        # +09:00 offset normalized to UTC
        assert entries[0].published_at == datetime(2024, 3, 2, 0, 0, 0)
        # Falls back to <updated>
        assert entries[1].published_at == datetime(2024, 3, 1, 10, 0, 0)

    def test_atom_inline_thumbnail(self):
        """The first image in HTML content becomes the thumbnail."""
        entries = FeedParser().parse(ATOM_DOC)
        assert entries[0].thumbnail == "https://atom.example.com/img/2.png"
        assert entries[1].thumbnail is None


class TestMalformedDocuments:
    """Documents that are not feeds."""

    @pytest.mark.parametrize("raw", [b"", b"this is not xml at all", b"{\"json\": true}"])
    def test_parse_error(self, raw):
        """Should raise ParseError for non-feed input."""
        with pytest.raises(ParseError):
            FeedParser().parse(raw)

    def test_parse_error_stage(self):
        """ParseError reports the parse stage."""
        with pytest.raises(ParseError) as exc_info:
            FeedParser().parse(b"garbage")
        assert exc_info.value.stage == "parse"


    @pytest.mark.parametrize("raw", [
        b'<?xml version="1.0"?><rss version="2.0"><channel><title>x</title><item><title>a',
        b'<?xml version="1.0"?><rss version="2.0"><channel><title>x</title>',
    ])
    def test_truncated_document(self, raw):
        """A download cut off before any complete entry is not an empty feed."""
        with pytest.raises(ParseError):
            FeedParser().parse(raw)

    def test_truncated_after_entries_keeps_them(self):
        """Entries recovered from a malformed document are still returned."""
        raw = five_post_rss()
        truncated = raw[:raw.rindex(b"</channel>")]

        entries = FeedParser().parse(truncated)
        assert [e.title for e in entries] == ["Post 5", "Post 4", "Post 3", "Post 2", "Post 1"]


def test_to_naive_utc():
    """Aware datetimes are shifted to UTC and made naive."""
    from datetime import timedelta, timezone

    from feedhub.timeutil import to_naive_utc

    kst = timezone(timedelta(hours=9))
    assert to_naive_utc(datetime(2024, 1, 1, 9, 0, tzinfo=kst)) == datetime(2024, 1, 1, 0, 0)
    assert to_naive_utc(datetime(2024, 1, 1, 9, 0)) == datetime(2024, 1, 1, 9, 0)
    assert to_naive_utc(None) is None
