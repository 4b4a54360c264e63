"""Error taxonomy shared by the crawl pipeline and storage."""


class FeedHubError(Exception):
    """Base class for all feedhub errors."""


class CrawlError(FeedHubError):
    """A failure that aborts the crawl of a single source."""

    stage = "crawl"

    def __init__(self, message: str, source_url: str = None):
        super().__init__(message)
        self.source_url = source_url


class FetchError(CrawlError):
    """Network failure, timeout or non-success status."""

    stage = "fetch"


class ParseError(CrawlError):
    """Document is not a recognisable RSS/Atom feed."""

    stage = "parse"


class StorageError(CrawlError):
    """Unexpected persistence failure."""

    stage = "ingest"


class DuplicateConflict(FeedHubError):
    """Storage rejected a (source, path) pair that already exists."""


class SourceAlreadyRegistered(FeedHubError):
    """A source with the same feed URL is already registered."""
