"""Shared HTML builders for scraper tests."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import pytest

ASIN = "B0TEST0001"


def build_review_page(
    review_ids: Sequence[Optional[str]],
    page: int,
    has_next: bool = True,
    next_href: Optional[str] = None,
    product_name: str = "Acme Water Bottle",
) -> str:
    """Minimal review-listing page; ``None`` ids produce fragments without an id attribute."""
    fragments = []
    for offset, review_id in enumerate(review_ids):
        id_attr = f' id="{review_id}"' if review_id else ""
        label = review_id or f"anon-{page}-{offset}"
        fragments.append(
            f'<div data-hook="review"{id_attr}>'
            f'<span class="a-profile-name">Author {label}</span>'
            f'<a data-hook="review-title"><span>Title {label}</span></a>'
            f'<span data-hook="review-body"><span>Body {label}</span></span>'
            "</div>"
        )

    href = next_href or f"/product-reviews/{ASIN}?pageNumber={page + 1}"
    next_item = (
        f'<li class="a-last"><a href="{href}">Next page</a></li>'
        if has_next
        else '<li class="a-disabled a-last">Next page</li>'
    )
    return (
        "<html><body>"
        f'<div id="cm_cr_dp_d_product_info"><h1><a href="/dp/{ASIN}">{product_name}</a></h1></div>'
        f'<div id="cm_cr-review_list">{"".join(fragments)}</div>'
        f'<ul class="a-pagination"><li class="a-selected"><a>{page}</a></li>{next_item}</ul>'
        "</body></html>"
    )


@pytest.fixture()
def review_page() -> Callable[..., str]:
    return build_review_page
