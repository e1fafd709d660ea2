"""
Product detail page extraction.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from bs4 import BeautifulSoup

from ..core.models import ProductRecord
from ..urls import absolutize
from .specs import MaterialsCareClassifier, extract_section_tables, harvest_specs
from .text import (
    first_number,
    node_text,
    page_text,
    sanitize_text,
    select_all,
    select_one,
    to_full_size_image,
    unique,
)
from .variations import extract_variations

logger = logging.getLogger(__name__)

PRICE_SELECTORS = ("span.a-offscreen", "span.a-price-whole", ".a-price .a-offscreen")
MAX_FEATURES = 10

_PRICE_RE = re.compile(r"\$?([,\d]+\.?\d*)")
_COUNT_RE = re.compile(r"([\d,]+)")
_SUBSCRIBE_RE = re.compile(r"subscribe\s*&\s*save", re.IGNORECASE)
_SUBSCRIBE_DISCOUNT_RE = re.compile(r"(\d+)%.*subscribe\s*&\s*save", re.IGNORECASE)
_VISIT_STORE_RE = re.compile(r"visit.*store", re.IGNORECASE)
_UPC_PATTERNS = (
    re.compile(r"UPC[\s:]*(\d{12,13})", re.IGNORECASE),
    re.compile(r"UPCA?[\s:]*(\d{12,13})", re.IGNORECASE),
    re.compile(r"Universal Product Code[\s:]*(\d{12,13})", re.IGNORECASE),
    re.compile(r"Product Code[\s:]*(\d{12,13})", re.IGNORECASE),
    re.compile(r"Barcode[\s:]*(\d{12,13})", re.IGNORECASE),
)
_PIXEL_PLACEHOLDERS = ("grey-pixel", "transparent-pixel")


def _guarded(name: str, extractor: Callable[[], Any], default: Any = None) -> Any:
    """Run one field extractor; any failure yields ``default``."""
    try:
        return extractor()
    except Exception as e:
        logger.debug(f"Field '{name}' extraction failed: {e}")
        return default


def extract_product(
    doc: BeautifulSoup,
    asin: str,
    url: str = "",
    include_materials_care: bool = False,
) -> ProductRecord:
    """
    Extract a ProductRecord from a product detail page.

    Every field is extracted independently; a missing element produces the
    field's sentinel and never fails the record.

    Args:
        doc: Parsed product page
        asin: ASIN the page belongs to
        url: Product URL the page was loaded from
        include_materials_care: Also build the cleaned materials/care column

    Returns:
        ProductRecord
    """
    record = ProductRecord(asin=asin, product_url=url)

    record.title = _guarded("title", lambda: extract_title(doc))
    record.brand = _guarded("brand", lambda: extract_brand(doc))
    record.price = _guarded("price", lambda: extract_price(doc))
    record.rating = _guarded("rating", lambda: extract_rating(doc))
    record.ratings_count = _guarded("ratings_count", lambda: extract_ratings_count(doc))
    record.availability = _guarded("availability", lambda: extract_availability(doc))
    record.category = _guarded("category", lambda: extract_category(doc))
    record.seller_info = _guarded("seller_info", lambda: extract_seller_info(doc))
    record.upc = _guarded("upc", lambda: extract_upc(doc))
    record.shop_url = _guarded("shop_url", lambda: extract_shop_url(doc))
    record.is_prime = _guarded("is_prime", lambda: extract_is_prime(doc), 0)
    record.main_product_images = _guarded("main_images", lambda: extract_main_images(doc), [])
    record.aplus_images = _guarded("aplus_images", lambda: extract_aplus_images(doc), [])
    record.features = _guarded("features", lambda: extract_features(doc), [])
    record.variations = _guarded("variations", lambda: extract_variations(doc), {})
    record.subscribe_save = _guarded(
        "subscribe_save",
        lambda: extract_subscribe_save(doc),
        {"available": 0, "discount": None},
    )

    specs = _guarded("specs", lambda: harvest_specs(doc))
    if specs is not None:
        record.specs = specs
        record.specs.safety_info = [sanitize_text(s) for s in specs.safety_info]
    record.sections = _guarded("sections", lambda: extract_section_tables(doc), {})

    if include_materials_care:
        record.materials_care_export = MaterialsCareClassifier().clean(record.specs.materials_care)

    logger.info(
        f"Extracted product {asin}: title={'yes' if record.title else 'no'}, "
        f"price={record.price}, images={record.total_image_count}"
    )
    return record


def extract_title(doc: BeautifulSoup) -> Optional[str]:
    element = select_one(doc, "#productTitle")
    return sanitize_text(element.get_text()) if element is not None else None


def extract_brand(doc: BeautifulSoup) -> Optional[str]:
    element = select_one(doc, "#bylineInfo")
    if element is None:
        return None
    text = element.get_text()
    for noise in ("Visit the", "Store", "Brand:"):
        text = text.replace(noise, "", 1)
    return sanitize_text(text)


def extract_price(doc: BeautifulSoup) -> Optional[str]:
    """Numeric price string (no currency symbol or thousands separators)."""
    for selector in PRICE_SELECTORS:
        element = select_one(doc, selector)
        if element is None:
            continue
        match = _PRICE_RE.search(node_text(element))
        price = match.group(1).replace(",", "") if match else ""
        if price:
            return price
    return None


def extract_rating(doc: BeautifulSoup) -> Optional[str]:
    element = select_one(doc, "span.a-icon-alt")
    return first_number(node_text(element)) if element is not None else None


def extract_ratings_count(doc: BeautifulSoup) -> Optional[str]:
    element = select_one(doc, "#acrCustomerReviewText")
    if element is None:
        return None
    match = _COUNT_RE.search(node_text(element))
    return match.group(1).replace(",", "") if match else None


def extract_availability(doc: BeautifulSoup) -> Optional[str]:
    element = select_one(doc, "#availability span")
    return sanitize_text(element.get_text()) if element is not None else None


def extract_category(doc: BeautifulSoup) -> Optional[str]:
    """Breadcrumb path joined with ``" > "``."""
    crumbs = select_all(doc, "#wayfinding-breadcrumbs_feature_div a")
    if not crumbs:
        return None
    return sanitize_text(" > ".join(crumb.get_text() for crumb in crumbs))


def extract_seller_info(doc: BeautifulSoup) -> Optional[str]:
    ships_from = next(
        (span for span in select_all(doc, "span") if "Ships from" in span.get_text()),
        None,
    )
    if ships_from is None:
        return None

    seller_text = ""
    label = ships_from.find_parent("div", attrs={"offer-display-feature-name": True})
    feature_text = label.find_next_sibling() if label is not None else None
    seller = select_one(feature_text, "span") if feature_text is not None else None
    if seller is not None:
        seller_text = node_text(seller)
    return sanitize_text(f"{node_text(ships_from)} {seller_text}".strip())


def _match_upc(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    for pattern in _UPC_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def extract_upc(doc: BeautifulSoup) -> Optional[str]:
    """UPC from detail bullets, technical specs, page text, then JSON-LD ``gtin`` fields."""
    for selector in ("#detailBullets_feature_div", "#technicalSpecifications_feature_div"):
        element = select_one(doc, selector)
        upc = _match_upc(element.get_text() if element is not None else None)
        if upc:
            return upc

    upc = _match_upc(page_text(doc))
    if upc:
        return upc

    for script in select_all(doc, 'script[type="application/ld+json"]'):
        try:
            data = json.loads(script.string or script.get_text())
        except ValueError:
            continue
        if isinstance(data, dict):
            gtin = data.get("gtin") or data.get("gtin12") or data.get("gtin13")
            if gtin:
                return str(gtin)
    return None


def extract_shop_url(doc: BeautifulSoup) -> Optional[str]:
    anchors = select_all(doc, "a")
    shop = next((a for a in anchors if "/stores/" in (a.get("href") or "")), None)
    if shop is None:
        shop = next((a for a in anchors if _VISIT_STORE_RE.search(a.get_text() or "")), None)
    if shop is None:
        return None
    return absolutize(shop.get("href") or "")


def extract_is_prime(doc: BeautifulSoup) -> int:
    """1 when any Prime badge is present, else 0."""
    indicators = (
        select_one(doc, 'i[class*="prime"]'),
        next((s for s in select_all(doc, "span") if "Prime" in s.get_text()), None),
        select_one(doc, 'img[alt*="Prime"]'),
    )
    return 1 if any(indicator is not None for indicator in indicators) else 0


def extract_main_images(doc: BeautifulSoup) -> List[str]:
    """Landing image plus gallery thumbnails, normalized to full size."""
    images: List[str] = []
    landing = select_one(doc, "img#landingImage")
    if landing is not None and landing.get("src"):
        images.append(to_full_size_image(landing.get("src")))

    for img in select_all(doc, "div#altImages img"):
        src = img.get("src") or ""
        if "images/I/" not in src:
            continue
        if "360_icon" in src or any(p in src for p in _PIXEL_PLACEHOLDERS):
            continue
        images.append(to_full_size_image(src))
    return unique(images)


def extract_aplus_images(doc: BeautifulSoup) -> List[str]:
    images: List[str] = []
    for img in select_all(doc, "div#aplus img"):
        src = img.get("data-src") or img.get("src") or ""
        is_aplus = "aplus-media" in src or ("media-amazon.com" in src and "images/S/" in src)
        if is_aplus and not any(p in src for p in _PIXEL_PLACEHOLDERS):
            images.append(src)
    return images


def extract_features(doc: BeautifulSoup) -> List[str]:
    features = []
    for item in select_all(doc, "#feature-bullets span.a-list-item"):
        text = node_text(item)
        if len(text) > 10 and not text.startswith("Make sure"):
            features.append(sanitize_text(text))
    return features[:MAX_FEATURES]


def extract_subscribe_save(doc: BeautifulSoup) -> Dict[str, Any]:
    """Subscribe & Save availability with the advertised discount, if any."""
    text = page_text(doc)
    info: Dict[str, Any] = {"available": 0, "discount": None}
    if _SUBSCRIBE_RE.search(text):
        info["available"] = 1
        match = _SUBSCRIBE_DISCOUNT_RE.search(text)
        if match:
            info["discount"] = f"{match.group(1)}%"
    return info
