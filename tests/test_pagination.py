"""Tests for the multi-page review paginator."""

from __future__ import annotations

from typing import Callable, Dict, List, Mapping, Optional

import pytest

from amzscraper.config import PaginationConfig
from amzscraper.core.models import (
    FieldSelector,
    NavigationMechanism,
    PaginationState,
    RunOutcome,
    ScrapeSession,
)
from amzscraper.core.page_agent import PageAgent
from amzscraper.exceptions import PageAgentError, ScrapeAbortedError
from amzscraper.extraction.navigation import plan_navigation
from amzscraper.extraction.text import parse_html, query_document
from amzscraper.pagination import ReviewPaginator
from amzscraper.urls import build_page_url

ASIN = "B0TEST0001"


class FakePageAgent(PageAgent):
    """Scripted sequence of review pages; page ``n`` is ``pages[n - 1]``."""

    def __init__(
        self,
        pages: List[str],
        start_page: int = 1,
        stuck: bool = False,
        no_controls: bool = False,
        fail_on_page: Optional[int] = None,
    ) -> None:
        self.pages = pages
        self.position = start_page - 1
        self.stuck = stuck
        self.no_controls = no_controls
        self.fail_on_page = fail_on_page
        self.visited: List[int] = []
        self.navigation_targets: List[int] = []
        self.navigated_urls: List[str] = []
        self.pauses: List[float] = []

    @property
    def current_url(self) -> str:
        return build_page_url(ASIN, self.position + 1)

    def navigate(self, url: str) -> None:
        self.navigated_urls.append(url)
        if url == build_page_url(ASIN, 1):
            self.position = 0

    def document(self):
        page_number = self.position + 1
        if self.fail_on_page == page_number:
            raise PageAgentError(f"script injection failed on page {page_number}")
        self.visited.append(page_number)
        return parse_html(self.pages[self.position])

    def query_fields(self, selectors: Mapping[str, FieldSelector]) -> Dict[str, Optional[str]]:
        return query_document(parse_html(self.pages[self.position]), selectors)

    def trigger_navigation(self, target_page: int) -> Optional[NavigationMechanism]:
        self.navigation_targets.append(target_page)
        if self.no_controls:
            return None
        plan = plan_navigation(parse_html(self.pages[self.position]), target_page)
        if plan is None:
            return None
        if not self.stuck and target_page <= len(self.pages):
            self.position = target_page - 1
        return plan.mechanism

    def wait_for_change(self, predicate: Callable[[], bool], timeout: float) -> bool:
        return predicate()

    def pause(self, seconds: float) -> None:
        self.pauses.append(seconds)

    def expand_sections(self) -> int:
        return 0


def new_session() -> ScrapeSession:
    return ScrapeSession(asin=ASIN, reviews_url=build_page_url(ASIN, 1))


def test_overlapping_pages_keep_first_occurrence(review_page) -> None:
    agent = FakePageAgent([
        review_page(["r1", "r2"], page=1),
        review_page(["r2", "r3"], page=2, has_next=False),
    ])

    session = ReviewPaginator(agent).run(new_session())

    assert [r.review_id for r in session.reviews] == ["r1", "r2", "r3"]
    assert [r.index for r in session.reviews] == [1, 2, 3]
    assert session.reviews[1].page == 1
    assert session.pages_scraped == 2
    assert session.outcome == RunOutcome.COMPLETED
    assert session.state == PaginationState.DONE_SUCCESS
    assert session.product_name == "Acme Water Bottle"


def test_page_budget_bounds_visited_pages(review_page) -> None:
    pages = [review_page([f"p{n}a", f"p{n}b"], page=n) for n in range(1, 6)]
    agent = FakePageAgent(pages)

    session = ReviewPaginator(agent, PaginationConfig(max_pages=2)).run(new_session())

    assert session.pages_scraped == 2
    assert max(agent.visited) == 2
    assert agent.navigation_targets == [2]
    assert session.total_reviews == 4
    assert session.outcome == RunOutcome.COMPLETED


@pytest.mark.parametrize("max_pages", [-1, None])
def test_unbounded_budget_visits_every_page(review_page, max_pages) -> None:
    pages = [review_page([f"p{n}"], page=n, has_next=n < 4) for n in range(1, 5)]
    agent = FakePageAgent(pages)

    session = ReviewPaginator(agent, PaginationConfig(max_pages=max_pages)).run(new_session())

    assert session.pages_scraped == 4
    assert session.outcome == RunOutcome.COMPLETED


def test_empty_page_stops_early_without_navigating(review_page) -> None:
    agent = FakePageAgent([
        review_page(["r1"], page=1),
        review_page([], page=2, has_next=True),
        review_page(["r9"], page=3),
    ])

    session = ReviewPaginator(agent).run(new_session())

    assert session.outcome == RunOutcome.EARLY_STOP
    assert session.state == PaginationState.DONE_SUCCESS
    assert agent.navigation_targets == [2]
    assert [r.review_id for r in session.reviews] == ["r1"]
    assert session.pages_scraped == 1


def test_navigation_timeout_keeps_partial_results(review_page) -> None:
    agent = FakePageAgent(
        [review_page(["r1", "r2"], page=1), review_page(["r3"], page=2)],
        stuck=True,
    )

    session = ReviewPaginator(agent).run(new_session())

    assert session.outcome == RunOutcome.PARTIAL
    assert session.state == PaginationState.DONE_FAILURE
    assert [r.review_id for r in session.reviews] == ["r1", "r2"]
    assert session.error is None


def test_missing_navigation_control_keeps_partial_results(review_page) -> None:
    agent = FakePageAgent(
        [review_page(["r1"], page=1), review_page(["r2"], page=2)],
        no_controls=True,
    )

    session = ReviewPaginator(agent).run(new_session())

    assert session.outcome == RunOutcome.PARTIAL
    assert session.total_reviews == 1
    assert agent.pauses == []


def test_page_failure_aborts_with_collected_session(review_page) -> None:
    agent = FakePageAgent(
        [review_page(["r1"], page=1), review_page(["r2"], page=2)],
        fail_on_page=2,
    )

    with pytest.raises(ScrapeAbortedError) as excinfo:
        ReviewPaginator(agent).run(new_session())

    session = excinfo.value.session
    assert session is not None
    assert session.outcome == RunOutcome.ABORTED
    assert session.state == PaginationState.DONE_FAILURE
    assert "page 2" in session.error
    assert [r.review_id for r in session.reviews] == ["r1"]


def test_run_started_mid_listing_returns_to_page_one(review_page) -> None:
    agent = FakePageAgent(
        [
            review_page(["r1"], page=1),
            review_page(["r2"], page=2),
            review_page(["r3"], page=3, has_next=False),
        ],
        start_page=3,
    )

    session = ReviewPaginator(agent, PaginationConfig(page_load_delay=3.0)).run(new_session())

    assert agent.navigated_urls == [build_page_url(ASIN, 1)]
    assert agent.visited[0] == 1
    assert [r.review_id for r in session.reviews] == ["r1", "r2", "r3"]
    assert agent.pauses[0] == 3.0


def test_delays_follow_configuration(review_page) -> None:
    agent = FakePageAgent([
        review_page(["r1"], page=1),
        review_page(["r2"], page=2, has_next=False),
    ])
    config = PaginationConfig(pre_wait_delay=0.25, settle_delay=1.5)

    ReviewPaginator(agent, config).run(new_session())

    assert agent.pauses == [0.25, 1.5]


def test_synthesized_ids_do_not_collide_across_pages(review_page) -> None:
    agent = FakePageAgent([
        review_page([None, None], page=1),
        review_page([None], page=2, has_next=False),
    ])

    session = ReviewPaginator(agent).run(new_session())

    assert [r.review_id for r in session.reviews] == ["review-1-0", "review-1-1", "review-2-0"]


def test_progress_callback_receives_status_messages(review_page) -> None:
    messages: List[str] = []
    agent = FakePageAgent([
        review_page(["r1", "r2"], page=1),
        review_page(["r2", "r3"], page=2, has_next=False),
    ])

    ReviewPaginator(agent, progress=messages.append).run(new_session())

    assert messages[0] == "Scraping page 1..."
    assert "Navigating to page 2..." in messages
    assert messages[-1] == "Finished! Scraped 3 reviews from 2 pages."


def test_invalid_budget_is_rejected() -> None:
    agent = FakePageAgent(["<html></html>"])

    with pytest.raises(ValueError):
        ReviewPaginator(agent, PaginationConfig(max_pages=0))
