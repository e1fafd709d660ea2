"""
Amazon URL helpers: ASIN parsing and review-page URL construction.
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlparse

AMAZON_ORIGIN = "https://www.amazon.com"

# Tried in order; the last pattern is a loose fallback for unusual URL shapes.
_STRICT_ASIN_PATTERNS = (
    re.compile(r"/dp/([A-Z0-9]{10})", re.IGNORECASE),
    re.compile(r"/gp/product/([A-Z0-9]{10})", re.IGNORECASE),
)
_REVIEW_ASIN_PATTERNS = (
    re.compile(r"/dp/([A-Z0-9]{10})", re.IGNORECASE),
    re.compile(r"/product-reviews/([A-Z0-9]{10})", re.IGNORECASE),
    re.compile(r"/gp/product/([A-Z0-9]{10})", re.IGNORECASE),
    re.compile(r"/([A-Z0-9]{10})(?:/|$|\?)", re.IGNORECASE),
)


def is_amazon_url(url: Optional[str]) -> bool:
    """True when the URL points at an amazon.com host."""
    return bool(url) and "amazon.com" in url


def is_reviews_page(url: Optional[str]) -> bool:
    return bool(url) and "/product-reviews/" in url


def parse_asin(url: Optional[str], strict: bool = False) -> Optional[str]:
    """
    Extract the ASIN from an Amazon URL.

    Args:
        url: Product, review-listing or other Amazon URL
        strict: Only accept product detail URL shapes (``/dp/``, ``/gp/product/``)

    Returns:
        Upper-cased ASIN, or None when no pattern matches
    """
    if not url:
        return None

    patterns = _STRICT_ASIN_PATTERNS if strict else _REVIEW_ASIN_PATTERNS
    path = urlparse(url).path or url
    for pattern in patterns:
        match = pattern.search(path)
        if match:
            return match.group(1).upper()
    return None


def build_reviews_url(asin: str) -> str:
    """Canonical "all reviews" URL for a product."""
    return build_page_url(asin, 1)


def build_page_url(asin: str, page_number: int) -> str:
    """URL of a specific review-listing page."""
    if page_number <= 1:
        return (
            f"{AMAZON_ORIGIN}/product-reviews/{asin}/ref=cm_cr_dp_d_show_all_btm"
            "?ie=UTF8&reviewerType=all_reviews"
        )
    return (
        f"{AMAZON_ORIGIN}/product-reviews/{asin}/ref=cm_cr_arp_d_paging_btm_next_{page_number}"
        f"?ie=UTF8&reviewerType=all_reviews&pageNumber={page_number}"
    )


def absolutize(href: Optional[str], base: str = AMAZON_ORIGIN) -> Optional[str]:
    """Resolve site-relative links against the marketplace origin."""
    if not href:
        return None
    if href.startswith("http"):
        return href
    if href.startswith("/"):
        return urljoin(base + "/", href)
    return None
