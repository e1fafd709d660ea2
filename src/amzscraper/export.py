"""
CSV serialization of scraped products and reviews.

Columns are emitted in a fixed order. A field is quoted only when it holds
a delimiter, a quote or a line break; embedded quotes are doubled, nulls
become empty strings and nested values are JSON-encoded first.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union

import pandas as pd

from .core.models import NOT_AVAILABLE, ProductRecord, ReviewRecord, ScrapeSession
from .exceptions import StorageError
from .utils.io import safe_write_text_with_backup

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = [
    "asin", "title", "brand", "price", "rating", "ratings_count", "availability",
    "category", "seller_info", "upc", "shop_url", "is_prime",
    "main_image_count", "aplus_image_count", "total_image_count",
    "main_product_images_json", "aplus_images_json", "features_json",
    "variations_json", "subscribe_save_json", "item_details_json",
    "measurements_json", "features_specs_json",
    "safety_info_json", "directions_json", "additional_details_json",
]
MATERIALS_CARE_COLUMN = "materials_care_json"

REVIEW_COLUMNS = [
    "product_url", "asin", "product_name", "page_number", "reviewer_name",
    "reviewer_profile_link", "review_title", "review_star_rating", "review_date",
    "review_product_variation", "review_images", "is_vine_review", "actual_review",
]

# CRLF is the RFC 4180 record separator; both characters trigger quoting.
LINE_TERMINATOR = "\r\n"


def _cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return value


def rows_to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """
    Serialize mappings to CSV text with a fixed column order.

    Args:
        rows: One mapping per record; missing keys become empty fields
        columns: Header and column order

    Returns:
        CSV text including the header line
    """
    records = [[_cell(row.get(column)) for column in columns] for row in rows]
    df = pd.DataFrame(records, columns=list(columns), dtype=object)
    return df.to_csv(
        index=False,
        na_rep="",
        quoting=csv.QUOTE_MINIMAL,
        lineterminator=LINE_TERMINATOR,
    )


def products_to_csv(
    products: Iterable[Union[ProductRecord, Mapping[str, Any]]],
    include_materials_care: bool = False,
) -> str:
    """Product export; accepts records or their persisted dictionaries."""
    columns = PRODUCT_COLUMNS + ([MATERIALS_CARE_COLUMN] if include_materials_care else [])
    rows = [p.to_row() if isinstance(p, ProductRecord) else p for p in products]
    logger.debug(f"Serializing {len(rows)} product rows")
    return rows_to_csv(rows, columns)


def review_row(review: ReviewRecord, session: ScrapeSession) -> Dict[str, Any]:
    """Flatten a review, enriched with its session's product identity."""
    return {
        "product_url": session.product_url or session.reviews_url or NOT_AVAILABLE,
        "asin": session.asin or NOT_AVAILABLE,
        "product_name": session.product_name or NOT_AVAILABLE,
        "page_number": review.page or 1,
        "reviewer_name": review.author,
        "reviewer_profile_link": review.author_profile_link,
        "review_title": review.title,
        "review_star_rating": review.rating,
        "review_date": review.date,
        "review_product_variation": review.product_variation or NOT_AVAILABLE,
        "review_images": review.images or "",
        "is_vine_review": bool(review.is_vine_review),
        "actual_review": review.text,
    }


def reviews_to_csv(sessions: Iterable[ScrapeSession]) -> str:
    """Review export across sessions, in session then insertion order."""
    rows: List[Dict[str, Any]] = [
        review_row(review, session) for session in sessions for review in session.reviews
    ]
    logger.debug(f"Serializing {len(rows)} review rows")
    return rows_to_csv(rows, REVIEW_COLUMNS)


def write_csv_export(text: str, path: Union[str, Path]) -> Path:
    """
    Write CSV text to ``path``, keeping the previous file if the write fails.

    Raises:
        StorageError: The file could not be written
    """
    path = Path(path)
    if not safe_write_text_with_backup(text, path):
        raise StorageError(f"Failed to write CSV export {path}")
    logger.info(f"Wrote {path}")
    return path
