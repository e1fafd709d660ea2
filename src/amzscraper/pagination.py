"""
Multi-page review scraping.

ReviewPaginator walks the review-listing pages of one product through a
PageAgent, accumulating de-duplicated reviews into a ScrapeSession:

    AWAITING_PAGE_1 -> SCRAPING_PAGE(n) -> NAVIGATING(n -> n+1) -> SCRAPING_PAGE(n+1) ...
    SCRAPING_PAGE(n) | NAVIGATING -> DONE_SUCCESS | DONE_FAILURE

Navigation problems end the run with the reviews collected so far; page or
driver failures abort it with ScrapeAbortedError.
"""

import logging
from typing import Callable, Optional

from .config import PaginationConfig
from .core.models import PaginationState, RunOutcome, ScrapeSession
from .core.page_agent import PageAgent
from .exceptions import PageAgentError, ScrapeAbortedError
from .extraction.reviews import (
    PAGE_STATE_FIELDS,
    extract_product_name,
    extract_reviews,
    find_review_fragments,
    has_next_page,
    parse_page_number,
)
from .urls import build_page_url

logger = logging.getLogger(__name__)

ALL_PAGES = -1

ProgressCallback = Callable[[str], None]


class ReviewPaginator:
    """Drives one pagination run over a product's review pages."""

    def __init__(
        self,
        agent: PageAgent,
        config: Optional[PaginationConfig] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize paginator.

        Args:
            agent: Page the reviews are read from
            config: Budget, timeouts and delays (defaults when omitted)
            progress: Receives human-readable status messages
        """
        self.agent = agent
        self.config = config or PaginationConfig()
        self.progress = progress or (lambda message: None)

        max_pages = self.config.max_pages
        if max_pages is not None and max_pages != ALL_PAGES and max_pages < 1:
            raise ValueError(f"max_pages must be -1, null or a positive integer, got {max_pages}")

    def run(self, session: ScrapeSession) -> ScrapeSession:
        """
        Scrape every page within the budget into ``session``.

        Returns:
            The finished session (DONE_SUCCESS or DONE_FAILURE with partial data)

        Raises:
            ScrapeAbortedError: The page agent failed; the error carries the session
        """
        logger.info(f"Starting review pagination for {session.asin} (max_pages={self._budget_label()})")

        try:
            self._ensure_first_page(session)

            page_number = 1
            while True:
                outcome = self._scrape_page(session, page_number)
                if outcome is not None:
                    session.finish(outcome)
                    break

                if not self._navigate(session, page_number):
                    session.finish(RunOutcome.PARTIAL)
                    break
                page_number += 1

        except PageAgentError as e:
            logger.error(f"Review scraping aborted on {session.asin}: {e}")
            session.finish(RunOutcome.ABORTED, error=str(e))
            self.progress(f"Scraping failed: {e}")
            raise ScrapeAbortedError(f"Review scraping aborted: {e}", session=session) from e

        message = (
            f"Finished! Scraped {session.total_reviews} reviews "
            f"from {session.pages_scraped} pages."
        )
        logger.info(f"{message} Outcome: {session.outcome.value}")
        self.progress(message)
        return session

    def _budget_label(self) -> str:
        max_pages = self.config.max_pages
        return "all" if max_pages in (None, ALL_PAGES) else str(max_pages)

    def _budget_reached(self, page_number: int) -> bool:
        max_pages = self.config.max_pages
        if max_pages is None or max_pages == ALL_PAGES:
            return False
        return page_number >= max_pages

    def _ensure_first_page(self, session: ScrapeSession) -> None:
        """Force the canonical page-1 URL when the listing is opened mid-way."""
        session.state = PaginationState.AWAITING_PAGE_1
        fields = self.agent.query_fields(PAGE_STATE_FIELDS)
        current = parse_page_number(fields.get("page_indicator"))

        if current is not None and current != 1:
            logger.info(f"Currently on page {current}, navigating to page 1 first...")
            self.progress("Navigating to page 1...")
            self.agent.navigate(build_page_url(session.asin, 1))
            self.agent.pause(self.config.page_load_delay)

    def _scrape_page(self, session: ScrapeSession, page_number: int) -> Optional[RunOutcome]:
        """
        Scrape the current page into the session.

        Returns:
            Terminal outcome when the run should stop here, None to continue
        """
        session.state = PaginationState.SCRAPING_PAGE
        self.progress(f"Scraping page {page_number}...")

        doc = self.agent.document()
        if not session.product_name:
            session.product_name = extract_product_name(doc)

        fragment_count = len(find_review_fragments(doc))
        if fragment_count == 0:
            logger.info(f"No reviews found on page {page_number}, stopping")
            return RunOutcome.EARLY_STOP

        records = extract_reviews(doc, page_number)
        accepted = session.add_reviews(records)
        session.pages_scraped += 1

        duplicates = len(records) - len(accepted)
        logger.info(
            f"Page {page_number} complete: {len(accepted)} new reviews"
            f"{f' ({duplicates} duplicates dropped)' if duplicates else ''}, "
            f"total: {session.total_reviews}"
        )

        if self._budget_reached(page_number):
            logger.info(f"Page budget of {self.config.max_pages} reached")
            return RunOutcome.COMPLETED
        if not has_next_page(doc):
            logger.info("No more pages available")
            return RunOutcome.COMPLETED
        return None

    def _navigate(self, session: ScrapeSession, page_number: int) -> bool:
        """Move from ``page_number`` to the next page; False when that fails."""
        session.state = PaginationState.NAVIGATING
        target = page_number + 1
        previous_first_id = self.agent.query_fields(PAGE_STATE_FIELDS).get("first_review_id")

        self.progress(f"Navigating to page {target}...")
        mechanism = self.agent.trigger_navigation(target)
        if mechanism is None:
            logger.warning(f"No navigation control leads to page {target}; keeping partial results")
            return False
        logger.debug(f"Triggered navigation to page {target} via {mechanism.value}")

        self.agent.pause(self.config.pre_wait_delay)

        def page_changed() -> bool:
            fields = self.agent.query_fields(PAGE_STATE_FIELDS)
            if parse_page_number(fields.get("page_indicator")) == target:
                return True
            first_id = fields.get("first_review_id")
            return bool(first_id) and first_id != previous_first_id

        if not self.agent.wait_for_change(page_changed, self.config.navigation_timeout):
            logger.warning(
                f"Page {target} did not load within {self.config.navigation_timeout}s; "
                "keeping partial results"
            )
            return False

        self.agent.pause(self.config.settle_delay)
        return True
