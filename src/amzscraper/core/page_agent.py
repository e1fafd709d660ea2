"""
Page capability interface used by the extractors and the review paginator.

A PageAgent is the only thing that touches a live page. Implementations:
SeleniumPageAgent (Chrome via Selenium) and StaticPageAgent (saved HTML).
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional
from urllib.parse import urlencode

from bs4 import BeautifulSoup

from ..exceptions import PageAgentError
from ..extraction.navigation import plan_navigation
from ..extraction.text import parse_html, query_document, select_all, select_one
from ..urls import absolutize
from .models import FieldSelector, NavigationMechanism, NavigationPlan

logger = logging.getLogger(__name__)


class PageAgent(ABC):
    """Abstract capability interface over a browser tab (or a stand-in)."""

    @property
    @abstractmethod
    def current_url(self) -> str:
        pass

    @abstractmethod
    def navigate(self, url: str) -> None:
        """Load ``url``; raises PageAgentError when the page cannot be fetched."""
        pass

    @abstractmethod
    def document(self) -> BeautifulSoup:
        """Parsed snapshot of the current page."""
        pass

    @abstractmethod
    def query_fields(self, selectors: Mapping[str, FieldSelector]) -> Dict[str, Optional[str]]:
        """Read a handful of fields from the live page without a full snapshot."""
        pass

    @abstractmethod
    def trigger_navigation(self, target_page: int) -> Optional[NavigationMechanism]:
        """
        Activate the best available control leading to ``target_page``.

        Returns:
            Mechanism used, or None when the page offers no usable control
        """
        pass

    @abstractmethod
    def wait_for_change(self, predicate: Callable[[], bool], timeout: float) -> bool:
        """Poll ``predicate`` until it holds or ``timeout`` seconds pass; False on timeout."""
        pass

    @abstractmethod
    def pause(self, seconds: float) -> None:
        pass

    @abstractmethod
    def expand_sections(self) -> int:
        """Open collapsed "see more" sections; returns the number of controls clicked."""
        pass


class StaticPageAgent(PageAgent):
    """
    PageAgent over saved HTML.

    Pages are keyed by URL. Navigation controls are resolved against the
    stored pages: following a control whose target was not saved leaves the
    current page unchanged, so a subsequent wait times out.
    """

    def __init__(self, pages: Mapping[str, str], start_url: Optional[str] = None):
        if not pages:
            raise ValueError("StaticPageAgent needs at least one page")
        self.pages: Dict[str, str] = dict(pages)
        self._url = start_url or next(iter(self.pages))
        if self._url not in self.pages:
            raise PageAgentError(f"No saved page for {self._url}")
        self.pauses: List[float] = []

    @classmethod
    def from_file(cls, path: str, url: str) -> "StaticPageAgent":
        """Agent over a single saved page."""
        try:
            html = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise PageAgentError(f"Cannot read saved page {path}: {e}") from e
        return cls({url: html}, start_url=url)

    @property
    def current_url(self) -> str:
        return self._url

    def navigate(self, url: str) -> None:
        if url not in self.pages:
            raise PageAgentError(f"No saved page for {url}")
        logger.debug(f"Static navigation to {url}")
        self._url = url

    def document(self) -> BeautifulSoup:
        return parse_html(self.pages[self._url])

    def query_fields(self, selectors: Mapping[str, FieldSelector]) -> Dict[str, Optional[str]]:
        return query_document(self.document(), selectors)

    def trigger_navigation(self, target_page: int) -> Optional[NavigationMechanism]:
        doc = self.document()
        plan = plan_navigation(doc, target_page)
        if plan is None:
            return None

        url = self._resolve_target(doc, plan)
        if url in self.pages:
            self._url = url
        else:
            logger.debug(f"Navigation target {url} is not a saved page")
        return plan.mechanism

    def _resolve_target(self, doc: BeautifulSoup, plan: NavigationPlan) -> Optional[str]:
        if plan.mechanism == NavigationMechanism.PAGINATION_FORM:
            form = select_one(doc, plan.selector)
            action = absolutize(form.get("action")) if form is not None else None
            if not action:
                return None
            separator = "&" if "?" in action else "?"
            return f"{action}{separator}{urlencode({plan.form_field: plan.target_page})}"

        links = select_all(doc, plan.selector)
        if plan.index >= len(links):
            return None
        return absolutize(links[plan.index].get("href"))

    def wait_for_change(self, predicate: Callable[[], bool], timeout: float) -> bool:
        # Saved pages never change on their own; one check is conclusive.
        return bool(predicate())

    def pause(self, seconds: float) -> None:
        self.pauses.append(seconds)

    def expand_sections(self) -> int:
        return 0
