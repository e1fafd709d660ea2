"""
Review-listing page extraction.
Turns ``[data-hook="review"]`` fragments into ReviewRecord objects.
"""

import json
import logging
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..core.models import NOT_AVAILABLE, FieldSelector, ReviewRecord
from ..urls import absolutize
from .text import first_match, first_text, node_text, select_all, select_one

logger = logging.getLogger(__name__)

REVIEW_SELECTOR = '[data-hook="review"]'
PAGE_INDICATOR_SELECTOR = ".a-pagination .a-selected"
NEXT_PAGE_SELECTOR = "li.a-last:not(.a-disabled) a"
# Enabled "next" item, with or without an anchor inside it
NEXT_ITEM_SELECTOR = ".a-pagination .a-last:not(.a-disabled)"
PRODUCT_NAME_NOT_FOUND = "Product Name Not Found"

# Candidate selectors per field, highest priority first.
PRODUCT_NAME_SELECTORS = (
    "#cm_cr_dp_d_product_info h1 a",
    "#cm_cr_dp_d_product_info h1",
    '[data-hook="product-link"]',
)
TITLE_SELECTORS = (
    '[data-hook="review-title"] span:not([class])',
    '[data-hook="review-title"]',
)
RATING_SELECTORS = (
    '[data-hook="review-star-rating"] span',
    '[data-hook="review-star-rating"]',
    '[data-hook="cmps-review-star-rating"] span',
)
AUTHOR_SELECTORS = (".a-profile-name",)
AUTHOR_LINK_SELECTORS = ("a.a-profile",)
DATE_SELECTORS = ('[data-hook="review-date"]',)
BODY_SELECTORS = (
    '[data-hook="review-body"] span',
    '[data-hook="review-body"]',
)
HELPFUL_SELECTORS = ('[data-hook="helpful-vote-statement"]',)
VERIFIED_SELECTORS = ('[data-hook="avp-badge"]',)
VARIATION_SELECTORS = (
    '[data-hook="format-strip"]',
    ".review-format-strip",
)
REVIEW_IMAGE_SELECTOR = 'img[data-hook="review-image-tile"]'
VINE_SELECTOR = "span.a-color-success.a-text-bold"

# Fields polled by the paginator while waiting for a page change.
PAGE_STATE_FIELDS = {
    "page_indicator": FieldSelector(PAGE_INDICATOR_SELECTOR),
    "first_review_id": FieldSelector(REVIEW_SELECTOR, attribute="id"),
}


def synthesize_review_id(page_number: int, offset: int) -> str:
    """Fallback identifier for fragments without an ``id`` attribute."""
    return f"review-{page_number}-{offset}"


def extract_product_name(doc: BeautifulSoup) -> str:
    """Product name shown in the review page header."""
    return first_text(doc, PRODUCT_NAME_SELECTORS, PRODUCT_NAME_NOT_FOUND)


def read_page_indicator(doc: BeautifulSoup) -> Optional[int]:
    """Page number highlighted in the pagination bar, if any."""
    return parse_page_number(node_text(select_one(doc, PAGE_INDICATOR_SELECTOR)))


def parse_page_number(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    digits = text.strip().replace(",", "")
    return int(digits) if digits.isdigit() else None


def has_next_page(doc: BeautifulSoup) -> bool:
    """True when an enabled "next page" control is present."""
    return first_match(doc, (NEXT_PAGE_SELECTOR, NEXT_ITEM_SELECTOR)) is not None


def first_review_id(doc: BeautifulSoup) -> Optional[str]:
    fragment = select_one(doc, REVIEW_SELECTOR)
    if fragment is None:
        return None
    return fragment.get("id") or None


def find_review_fragments(doc: BeautifulSoup) -> List[Tag]:
    return select_all(doc, REVIEW_SELECTOR)


def extract_reviews(doc: BeautifulSoup, page_number: int) -> List[ReviewRecord]:
    """
    Extract every review fragment on the current page.

    Args:
        doc: Parsed review-listing page
        page_number: Page the document belongs to

    Returns:
        ReviewRecord list in DOM order (not yet de-duplicated)
    """
    records: List[ReviewRecord] = []
    fragments = find_review_fragments(doc)
    logger.debug(f"Found {len(fragments)} review fragments on page {page_number}")

    for offset, fragment in enumerate(fragments):
        try:
            records.append(extract_review(fragment, page_number, offset))
        except Exception as exc:
            logger.warning(f"Error parsing review {offset + 1} on page {page_number}: {exc}")

    return records


def extract_review(fragment: Tag, page_number: int, offset: int) -> ReviewRecord:
    """Build a ReviewRecord from one review fragment."""
    review_id = fragment.get("id") or synthesize_review_id(page_number, offset)

    author_link = first_match(fragment, AUTHOR_LINK_SELECTORS)
    if author_link is None:
        profile = select_one(fragment, "div.a-profile-content")
        author_link = profile.find_parent("a") if profile is not None else None
    profile_link = absolutize(author_link.get("href")) if author_link is not None else None

    return ReviewRecord(
        review_id=review_id,
        page=page_number,
        title=first_text(fragment, TITLE_SELECTORS, NOT_AVAILABLE),
        rating=first_text(fragment, RATING_SELECTORS, NOT_AVAILABLE),
        author=first_text(fragment, AUTHOR_SELECTORS, NOT_AVAILABLE),
        author_profile_link=profile_link or NOT_AVAILABLE,
        date=first_text(fragment, DATE_SELECTORS, NOT_AVAILABLE),
        text=first_text(fragment, BODY_SELECTORS, NOT_AVAILABLE),
        helpful=first_text(fragment, HELPFUL_SELECTORS, NOT_AVAILABLE),
        verified="Verified Purchase" if first_match(fragment, VERIFIED_SELECTORS) else "Not Verified",
        product_variation=first_text(fragment, VARIATION_SELECTORS, NOT_AVAILABLE),
        images=_review_images(fragment),
        is_vine_review=_is_vine_review(fragment),
    )


def _review_images(fragment: Tag) -> str:
    urls = [img.get("src") for img in select_all(fragment, REVIEW_IMAGE_SELECTOR) if img.get("src")]
    if not urls:
        return ""
    if len(urls) == 1:
        return urls[0]
    return json.dumps(urls)


def _is_vine_review(fragment: Tag) -> bool:
    badge = select_one(fragment, VINE_SELECTOR)
    return badge is not None and "Amazon Vine" in node_text(badge)
