"""
Exception hierarchy for the scraping pipeline.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .core.models import ScrapeSession


class ScraperError(Exception):
    """Base class for all scraper errors."""


class PageAgentError(ScraperError):
    """The page could not be fetched, or a script/driver call against it failed."""


class InvalidProductUrlError(ScraperError):
    """URL is not an Amazon page or does not carry an ASIN."""


class StorageError(ScraperError):
    """Persisted scrape state could not be read or written."""


class ScrapeAbortedError(ScraperError):
    """A pagination run was aborted; ``session`` holds whatever was collected."""

    def __init__(self, message: str, session: Optional["ScrapeSession"] = None):
        super().__init__(message)
        self.session = session
