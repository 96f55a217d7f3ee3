"""Error taxonomy shared by the crawler packages."""


class CrawlerError(Exception):
    """Base class for crawler failures."""


class StorageError(CrawlerError):
    """Frontier store failure (I/O, constraint violation, lost connection)."""


class TransportError(CrawlerError):
    """Fetch failure: network error, timeout, non-success status or undecodable body."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class ExtractionError(CrawlerError):
    """Page could not be parsed into a document."""
