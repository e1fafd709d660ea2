"""
Pagination control discovery.
Decides which control moves the listing to a target page.
"""

import logging
from typing import Optional

from bs4 import BeautifulSoup

from ..core.models import NavigationMechanism, NavigationPlan
from .reviews import NEXT_PAGE_SELECTOR
from .text import node_text, select_all, select_one

logger = logging.getLogger(__name__)

PAGE_LINK_SELECTOR = ".a-pagination li:not(.a-selected) a"
PAGINATION_FORM_SELECTOR = 'form[action*="product-reviews"]'
PAGE_NUMBER_FIELD = "pageNumber"


def plan_navigation(doc: BeautifulSoup, target_page: int) -> Optional[NavigationPlan]:
    """
    Pick the first available navigation mechanism for ``target_page``.

    Priority: enabled "next" control, explicit page-number link, pagination
    form with a ``pageNumber`` field.

    Returns:
        NavigationPlan, or None when the page offers no usable control
    """
    if select_one(doc, NEXT_PAGE_SELECTOR) is not None:
        return NavigationPlan(NavigationMechanism.NEXT_BUTTON, target_page, NEXT_PAGE_SELECTOR)

    for position, link in enumerate(select_all(doc, PAGE_LINK_SELECTOR)):
        if node_text(link) == str(target_page):
            return NavigationPlan(
                NavigationMechanism.PAGE_LINK,
                target_page,
                PAGE_LINK_SELECTOR,
                index=position,
            )

    form = select_one(doc, PAGINATION_FORM_SELECTOR)
    if form is not None and select_one(form, f'input[name="{PAGE_NUMBER_FIELD}"]') is not None:
        return NavigationPlan(
            NavigationMechanism.PAGINATION_FORM,
            target_page,
            PAGINATION_FORM_SELECTOR,
            form_field=PAGE_NUMBER_FIELD,
        )

    logger.debug(f"No pagination control found for page {target_page}")
    return None

