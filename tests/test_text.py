"""Tests for text and DOM helpers."""

from __future__ import annotations

import pytest

from amzscraper.core.models import FieldSelector
from amzscraper.extraction.text import (
    first_number,
    first_text,
    parse_html,
    query_document,
    sanitize_text,
    select_one,
    to_full_size_image,
    unique,
)


def test_sanitize_text() -> None:
    assert sanitize_text("  <b>Bold</b>\n\tname   here ") == "Bold name here"
    assert sanitize_text(None) is None


@pytest.mark.parametrize(
    "thumbnail, full",
    [
        ("https://m.media-amazon.com/images/I/abc._AC_SX679_.jpg", "https://m.media-amazon.com/images/I/abc.jpg"),
        ("https://m.media-amazon.com/images/I/abc._SS40_.jpg", "https://m.media-amazon.com/images/I/abc.jpg"),
        ("https://m.media-amazon.com/images/I/abc.jpg", "https://m.media-amazon.com/images/I/abc.jpg"),
        ("", ""),
    ],
)
def test_to_full_size_image(thumbnail, full) -> None:
    assert to_full_size_image(thumbnail) == full


def test_first_number() -> None:
    assert first_number("4.5 out of 5 stars") == "4.5"
    assert first_number("no digits") is None


def test_queries_tolerate_bad_selectors() -> None:
    doc = parse_html("<div><span class='x'>One</span></div>")

    assert select_one(doc, "span[") is None
    assert first_text(doc, ("span[", ".missing", "span.x")) == "One"
    assert first_text(doc, (".missing",), "fallback") == "fallback"


def test_query_document_reads_text_and_attributes() -> None:
    doc = parse_html('<div data-hook="review" id="R1"><b>hello</b></div>')

    fields = query_document(doc, {
        "id": FieldSelector('[data-hook="review"]', attribute="id"),
        "bold": FieldSelector("b"),
        "missing": FieldSelector("i"),
    })

    assert fields == {"id": "R1", "bold": "hello", "missing": None}


def test_unique_preserves_order() -> None:
    assert unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
