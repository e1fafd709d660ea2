"""Tests for CSV export."""

from __future__ import annotations

import csv
import io
import json

import pytest

from amzscraper.core.models import ProductRecord, ReviewRecord, ScrapeSession
from amzscraper.exceptions import StorageError
from amzscraper.export import (
    MATERIALS_CARE_COLUMN,
    PRODUCT_COLUMNS,
    REVIEW_COLUMNS,
    products_to_csv,
    reviews_to_csv,
    rows_to_csv,
    write_csv_export,
)


def parse_csv(text: str):
    return list(csv.reader(io.StringIO(text, newline="")))


def test_special_characters_survive_a_csv_reader() -> None:
    tricky = ['plain', 'a,b', 'say "hi"', "line\nbreak", "carriage\rreturn"]
    text = rows_to_csv([{"value": v} for v in tricky], ["value"])

    rows = parse_csv(text)

    assert rows[0] == ["value"]
    assert [r[0] for r in rows[1:]] == tricky


def test_minimal_quoting_and_nulls() -> None:
    text = rows_to_csv(
        [{"a": "simple", "b": None, "c": 'x"y'}],
        ["a", "b", "c"],
    )

    assert text == 'a,b,c\r\nsimple,,"x""y"\r\n'


def test_booleans_and_nested_values() -> None:
    text = rows_to_csv([{"flag": True, "other": False, "items": ["a", "b"]}], ["flag", "other", "items"])

    row = parse_csv(text)[1]

    assert row[:2] == ["true", "false"]
    assert json.loads(row[2]) == ["a", "b"]


def test_empty_export_is_header_only() -> None:
    assert parse_csv(rows_to_csv([], ["x", "y"])) == [["x", "y"]]


def test_product_columns_and_materials_toggle() -> None:
    record = ProductRecord(asin="B0TEST0001", title="Bottle, steel", price="19.99")
    record.materials_care_export = {"material": "steel"}

    plain = parse_csv(products_to_csv([record]))
    extended = parse_csv(products_to_csv([record], include_materials_care=True))

    assert plain[0] == PRODUCT_COLUMNS
    assert plain[1][1] == "Bottle, steel"
    assert plain[1][PRODUCT_COLUMNS.index("brand")] == ""
    assert extended[0] == PRODUCT_COLUMNS + [MATERIALS_CARE_COLUMN]
    assert json.loads(extended[1][-1]) == {"material": "steel"}


def test_products_accept_persisted_dicts() -> None:
    record = ProductRecord(asin="B0TEST0001", is_prime=1)

    rows = parse_csv(products_to_csv([record.to_dict()]))

    assert rows[1][0] == "B0TEST0001"
    assert rows[1][PRODUCT_COLUMNS.index("is_prime")] == "1"


def test_review_rows_carry_session_identity() -> None:
    session = ScrapeSession(asin="B0TEST0001", reviews_url="https://www.amazon.com/product-reviews/B0TEST0001")
    session.add_reviews([
        ReviewRecord(review_id="r1", page=1, author="Jane", text="Great,\nreally", is_vine_review=True),
        ReviewRecord(review_id="r2", page=2),
    ])

    rows = parse_csv(reviews_to_csv([session]))

    assert rows[0] == REVIEW_COLUMNS
    first = dict(zip(REVIEW_COLUMNS, rows[1]))
    assert first["product_url"] == "https://www.amazon.com/product-reviews/B0TEST0001"
    assert first["product_name"] == "N/A"
    assert first["reviewer_name"] == "Jane"
    assert first["actual_review"] == "Great,\nreally"
    assert first["is_vine_review"] == "true"
    second = dict(zip(REVIEW_COLUMNS, rows[2]))
    assert second["page_number"] == "2"
    assert second["is_vine_review"] == "false"
    assert second["review_images"] == ""


def test_write_csv_export(tmp_path) -> None:
    target = tmp_path / "exports" / "out.csv"

    path = write_csv_export("a,b\r\n1,2\r\n", target)

    assert path == target
    assert target.read_bytes() == b"a,b\r\n1,2\r\n"


def test_write_csv_export_failure(tmp_path) -> None:
    occupied = tmp_path / "out.csv"
    occupied.mkdir()

    with pytest.raises(StorageError):
        write_csv_export("a\r\n", occupied)
