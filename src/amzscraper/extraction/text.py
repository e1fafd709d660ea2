"""
Text and DOM query helpers shared by all extractors.

Every helper here is total: a missing node or an unexpected shape produces
the caller's default instead of an exception.
"""

import logging
import re
from typing import Dict, Iterable, Mapping, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..core.models import FieldSelector

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_WS_RE = re.compile(r"[\n\r\t]+")
_MULTI_WS_RE = re.compile(r"\s{2,}")
_NUMBER_RE = re.compile(r"(\d+\.?\d*)")

# Applied in order to turn thumbnail URLs into full-size image URLs.
_IMAGE_SIZE_SUFFIXES = (
    re.compile(r"\._[A-Z]+\d+[^.]*_\."),
    re.compile(r"\._SS\d+_\."),
    re.compile(r"\._SX\d+_\."),
    re.compile(r"\._AC_[^.]*_\."),
)


def parse_html(html: str) -> BeautifulSoup:
    """Parse page source into a queryable document."""
    return BeautifulSoup(html or "", "html.parser")


def sanitize_text(text: Optional[str]) -> Optional[str]:
    """Strip HTML tags, collapse whitespace and trim."""
    if text is None:
        return None
    cleaned = _TAG_RE.sub("", str(text))
    cleaned = _CONTROL_WS_RE.sub(" ", cleaned)
    cleaned = _MULTI_WS_RE.sub(" ", cleaned)
    return cleaned.strip()


def to_full_size_image(url: Optional[str]) -> Optional[str]:
    """Best-guess full-size variant of an Amazon thumbnail URL."""
    if not url:
        return url
    full = url
    for pattern in _IMAGE_SIZE_SUFFIXES:
        full = pattern.sub(".", full, count=1)
    if full.endswith("."):
        full = full[:-1] + ".jpg"
    return full


def first_number(text: Optional[str]) -> Optional[str]:
    """First integer or decimal found in ``text``."""
    if not text:
        return None
    match = _NUMBER_RE.search(text)
    return match.group(1) if match else None


def node_text(node: Optional[Tag]) -> str:
    """Stripped text content of ``node`` ('' when missing)."""
    if node is None:
        return ""
    return node.get_text().strip()


def page_text(doc: BeautifulSoup) -> str:
    """Full text content of the page body."""
    body = doc.body if doc.body is not None else doc
    return body.get_text()


def select_one(node, selector: str) -> Optional[Tag]:
    """CSS ``select_one`` that swallows selector/parse errors."""
    if node is None:
        return None
    try:
        return node.select_one(selector)
    except Exception as exc:
        logger.debug(f"Selector {selector!r} failed: {exc}")
        return None


def select_all(node, selector: str) -> list:
    """CSS ``select`` that swallows selector/parse errors."""
    if node is None:
        return []
    try:
        return node.select(selector)
    except Exception as exc:
        logger.debug(f"Selector {selector!r} failed: {exc}")
        return []


def first_match(node, selectors: Sequence[str]) -> Optional[Tag]:
    """Return the element matched by the first selector that finds anything."""
    for selector in selectors:
        element = select_one(node, selector)
        if element is not None:
            return element
    return None


def first_text(node, selectors: Sequence[str], default: Optional[str] = None) -> Optional[str]:
    """Text of the first matching selector, or ``default`` when nothing matches or text is empty."""
    element = first_match(node, selectors)
    text = node_text(element)
    return text if text else default


def element_value(element: Optional[Tag], attribute: Optional[str] = None) -> Optional[str]:
    """Attribute value, or stripped text when ``attribute`` is None."""
    if element is None:
        return None
    if attribute is None:
        return node_text(element)
    value = element.get(attribute)
    if isinstance(value, list):
        value = " ".join(value)
    return value


def query_document(
    doc: BeautifulSoup, selectors: Mapping[str, FieldSelector]
) -> Dict[str, Optional[str]]:
    """Resolve a mapping of field name -> selector against ``doc``."""
    return {
        name: element_value(select_one(doc, selector.css), selector.attribute)
        for name, selector in selectors.items()
    }


def unique(values: Iterable[str]) -> list:
    """Order-preserving de-duplication."""
    seen = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
