"""Error types raised while scraping Realtime Results pages."""


class RealtimeResultsError(Exception):
    """Base class for scraper failures that are reported per event."""


class FetchError(RealtimeResultsError):
    """A page could not be downloaded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class FormatError(RealtimeResultsError):
    """Page text does not look like a single HY-TEK event or index page."""


class WriteError(RealtimeResultsError):
    """An output file could not be written."""
