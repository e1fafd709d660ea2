"""
Specification mining and categorization for product detail pages.

Key/value pairs are harvested from every structure that commonly carries
them (tables, detail divs, definition lists, inline script JSON), routed
into buckets by SpecCategorizer, then supplemented by free-text sweeps.
Dedicated page sections (``#prodDetails`` expanders and
``#important-information``) override the heuristic buckets where present.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Pattern, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..core.models import SpecificationTables
from .text import node_text, page_text, select_all, select_one

logger = logging.getLogger(__name__)

MAX_SWEEP_ENTRIES = 10

FEATURE_KEYWORDS = (
    "feature", "special", "design", "style", "pattern", "capacity", "performance",
    "function", "technology", "battery", "power", "speed", "memory",
)


def _compile(patterns: Iterable[str]) -> List[Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


ITEM_DETAIL_PATTERNS = _compile([
    r"product|details?|specifications?|info|about|description",
    r"model|brand|manufacturer|seller|vendor|company",
    r"package|contents|includes|contains|comprising",
    r"type|category|class|classification|series",
    r"version|edition|release|update|variant",
    r"certification|approved|tested|verified|compliant",
])
MEASUREMENT_PATTERNS = _compile([
    r"dimension|measurement|size|capacity|volume",
    r"weight|mass|density|load|pressure",
    r"length|width|height|depth|thickness|diameter",
    r"inch|cm|mm|ft|meter|pound|kg|oz|gram",
    r"area|square|cubic|ratio|proportion",
    r"temperature|degree|fahrenheit|celsius",
])
MATERIAL_CARE_PATTERNS = _compile([
    r"material|fabric|textile|composition|made of|construction",
    r"care|wash|clean|maintain|dry|iron|bleach",
    r"instruction|guideline|direction|recommendation",
    r"cotton|polyester|wool|silk|leather|metal|wood",
    r"surface|finish|coating|treatment|processing",
    r"color|dye|paint|stain|shade|tone",
])
ADDITIONAL_PATTERNS = _compile([
    r"additional|extra|more|other|supplementary",
    r"note|tip|hint|suggestion|advice",
    r"benefit|advantage|feature|quality|trait",
    r"usage|application|purpose|function|utility",
    r"storage|shelf|life|duration|period",
])

# Free-text sweeps
MEASUREMENT_SWEEP_PATTERNS = _compile([
    r"(\d+(?:\.\d+)?)\s*(inch|in|cm|mm|foot|ft|meter|m)\b",
    r"(\d+(?:\.\d+)?)\s*(pound|lb|ounce|oz|gram|g|kg)\b",
    r"(\d+(?:\.\d+)?)\s*x\s*(\d+(?:\.\d+)?)\s*x\s*(\d+(?:\.\d+)?)",
    r"weight:?\s*(\d+(?:\.\d+)?\s*(?:pound|lb|ounce|oz|gram|g|kg))",
    r"dimensions?:?\s*([\d.\s×x]+)",
])
MATERIAL_KEYWORDS = (
    "cotton", "polyester", "wool", "silk", "leather", "plastic", "metal", "wood",
    "glass", "ceramic", "rubber", "fabric", "material", "made of", "constructed", "finish",
)
SAFETY_KEYWORDS = (
    "warning", "caution", "safety", "hazard", "danger", "not suitable", "choking",
    "age restriction",
)
DIRECTION_KEYWORDS = (
    "instruction", "direction", "how to", "usage", "assembly", "setup", "installation",
)

DETAIL_DIV_KEYWORDS = ("detail", "spec", "feature", "bullet", "info", "attribute", "prop")
SCRIPT_BLOB_PATTERNS = _compile([
    r'"productDetails"\s*:\s*\{([^}]+)\}',
    r'"specifications"\s*:\s*\{([^}]+)\}',
    r'"attributes"\s*:\s*\{([^}]+)\}',
    r'"features"\s*:\s*\[([^\]]+)\]',
    r'"dimensions"\s*:\s*\{([^}]+)\}',
    r'"materials"\s*:\s*\{([^}]+)\}',
])
_SCRIPT_PAIR_RE = re.compile(r'"([^"]+)"\s*:\s*"([^"]+)"')
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]")
_KEY_NOISE_RE = re.compile(r"[:\n\r\t]+")
_LABEL_ONLY_RE = re.compile(r"^[a-z\s]+:\s*$", re.IGNORECASE)
_BULLET_KEY_TRAIL_RE = re.compile("[:\\s‏‎]+$")
_BEST_SELLERS_RE = re.compile(r"#[\d,]+\s+in\s+[^(]+")
_STAR_RATING_RE = re.compile(r"(\d+\.?\d*)\s+out of \d+ stars")
_REVIEW_COUNT_RE = re.compile(r"\((\d+)\)")


def _matches_any(text: str, patterns: Sequence[Pattern]) -> bool:
    return any(p.search(text) for p in patterns)


class SpecCategorizer:
    """Route a specification key/value pair to a bucket of SpecificationTables."""

    DEFAULT_BUCKET = "item_details"

    # Tested against key and value, first match wins.
    ORDERED_RULES = (
        ("item_details", ITEM_DETAIL_PATTERNS),
        ("measurements", MEASUREMENT_PATTERNS),
        ("materials_care", MATERIAL_CARE_PATTERNS),
        ("additional_details", ADDITIONAL_PATTERNS),
    )

    def categorize(self, key: str, value: str) -> str:
        lowered_key = key.lower()
        if any(word in lowered_key for word in FEATURE_KEYWORDS):
            return "features_specs"
        for bucket, patterns in self.ORDERED_RULES:
            if _matches_any(lowered_key, patterns) or _matches_any(value, patterns):
                return bucket
        return self.DEFAULT_BUCKET

    def store(self, specs: SpecificationTables, key: str, value: str) -> None:
        specs.bucket(self.categorize(key, value))[key] = value


class MaterialsCareClassifier:
    """Clean-up classifier used only for the optional materials/care export column."""

    ITEM_PATTERNS = _compile([
        r"model|brand|manufacturer|part|number|asin|upc|isbn|sku|release|date|package|warranty|country|origin",
        r"product|dimensions|weight|specifications|details|features|description",
        r"compatible|compatibility|requirements|recommended|suitable",
    ])
    MATERIAL_PATTERNS = _compile([
        r"material|fabric|textile|composition|made from|constructed|built|contents",
        r"care|wash|clean|maintain|dry|iron|bleach|instructions|temperature",
        r"cotton|polyester|wool|silk|leather|plastic|metal|wood|glass|ceramic",
    ])
    MEASUREMENT_PATTERNS = _compile([
        r"\d+\s*(?:inch|in|cm|mm|ft|meter|m|kg|lb|oz|gram|g)\b",
        r"(?:length|width|height|depth|thickness|diameter|radius|volume|weight|size)",
        r"dimensions|measurements|specifications|capacity|load|pressure|temperature",
    ])

    def categorize(self, text: str, key: str = "") -> str:
        lowered_text, lowered_key = text.lower(), key.lower()
        if _matches_any(lowered_key, self.ITEM_PATTERNS) or _matches_any(lowered_text, self.ITEM_PATTERNS):
            return "item_details"
        if _matches_any(lowered_key, self.MATERIAL_PATTERNS) or _matches_any(lowered_text, self.MATERIAL_PATTERNS):
            return "materials_care"
        if _matches_any(lowered_key, self.MEASUREMENT_PATTERNS) or _matches_any(lowered_text, self.MEASUREMENT_PATTERNS):
            return "measurements"
        return "additional_details"

    def clean(self, materials: Dict[str, str]) -> Dict[str, str]:
        """Keep values longer than 5 chars, lower-cased, with keys reduced to ``[a-z0-9_]``."""
        result: Dict[str, str] = {}
        for key, value in materials.items():
            if not isinstance(value, str) or len(value) <= 5:
                continue
            clean_key = re.sub(r"[^a-z0-9_]", "", key, flags=re.IGNORECASE).lower()
            result[clean_key] = value.lower().strip()
        return result


def harvest_specs(doc: BeautifulSoup, categorizer: Optional[SpecCategorizer] = None) -> SpecificationTables:
    """
    Mine every specification source on the page into categorized buckets.

    Args:
        doc: Parsed product page
        categorizer: Bucket routing rules (default SpecCategorizer)

    Returns:
        SpecificationTables with section overrides applied
    """
    categorizer = categorizer or SpecCategorizer()
    specs = SpecificationTables()

    for key, value in _table_pairs(doc):
        categorizer.store(specs, key, value)
    for key, value in _detail_div_pairs(doc):
        categorizer.store(specs, key, value)
    for key, value in _definition_pairs(doc):
        categorizer.store(specs, key, value)

    text = page_text(doc)
    _sweep_measurements(specs, text)
    _sweep_materials(specs, text)
    _sweep_safety_and_directions(specs, text)

    for key, value in _script_pairs(doc):
        categorizer.store(specs, key, value)

    specs.directions = extract_directions(doc)
    specs.additional_details = expander_table(doc, "additional details", exact=False)
    return specs


def _table_pairs(doc: BeautifulSoup):
    for table in select_all(doc, "table"):
        for row in table.find_all("tr"):
            cells = row.find_all(["td", "th"])
            if len(cells) < 2:
                continue
            key, value = node_text(cells[0]), node_text(cells[1])
            if not key or not value or len(key) > 150:
                continue
            key = _KEY_NOISE_RE.sub(" ", key).strip()
            value = _KEY_NOISE_RE.sub(" ", value).strip()
            if key.lower() == value.lower():
                continue
            if key.isdigit() or _LABEL_ONLY_RE.match(key):
                continue
            yield key, value


def _split_pair(line: str):
    if ":" not in line or len(line) >= 300:
        return None
    key, _, rest = line.partition(":")
    key, value = key.strip(), rest.strip()
    if key and value and len(key) < 100:
        return key, value
    return None


def _detail_div_pairs(doc: BeautifulSoup):
    divs: List[Tag] = []
    for keyword in DETAIL_DIV_KEYWORDS:
        divs.extend(select_all(doc, f'div[id*="{keyword}"], div[class*="{keyword}"]'))

    for div in divs:
        for line in div.get_text().split("\n"):
            pair = _split_pair(line)
            if pair:
                yield pair
        for item in div.find_all(["span", "li", "p", "div"]):
            pair = _split_pair(node_text(item))
            if pair:
                yield pair


def _definition_pairs(doc: BeautifulSoup):
    for dt in select_all(doc, "dt"):
        dd = dt.find_next_sibling()
        if dd is None or dd.name != "dd":
            continue
        key, value = node_text(dt), node_text(dd)
        if key and value:
            yield key, value


def _script_pairs(doc: BeautifulSoup):
    for script in select_all(doc, "script"):
        text = script.string or script.get_text()
        if not text:
            continue
        for pattern in SCRIPT_BLOB_PATTERNS:
            for blob in pattern.finditer(text):
                for key, value in _SCRIPT_PAIR_RE.findall(blob.group(1)):
                    yield key, value


def _sentences(text: str) -> List[str]:
    return _SENTENCE_SPLIT_RE.split(text)


def _sweep_measurements(specs: SpecificationTables, text: str) -> None:
    found = 0
    for pattern in MEASUREMENT_SWEEP_PATTERNS:
        for match in pattern.finditer(text):
            if found >= MAX_SWEEP_ENTRIES:
                return
            specs.measurements[f"Measurement_{found + 1}"] = match.group(0)
            found += 1


def _sweep_materials(specs: SpecificationTables, text: str) -> None:
    sentences = _sentences(text)
    for keyword in MATERIAL_KEYWORDS:
        for sentence in sentences:
            if keyword in sentence.lower() and len(sentence) < 200:
                specs.materials_care[f"Material_info_{keyword}"] = sentence.strip()
                break


def _sweep_safety_and_directions(specs: SpecificationTables, text: str) -> None:
    for sentence in _sentences(text):
        stripped = sentence.strip()
        lowered = stripped.lower()
        if not 10 < len(stripped) < 300:
            continue
        if any(k in lowered for k in SAFETY_KEYWORDS):
            specs.safety_info.append(stripped)
        if any(k in lowered for k in DIRECTION_KEYWORDS):
            specs.directions.append(stripped)
    specs.safety_info = specs.safety_info[:MAX_SWEEP_ENTRIES]
    specs.directions = specs.directions[:MAX_SWEEP_ENTRIES]


def extract_directions(doc: BeautifulSoup) -> List[str]:
    """Paragraphs of the "Directions" block under ``#important-information``."""
    section = select_one(doc, "#important-information")
    if section is None:
        return []

    for block in select_all(section, "div.a-section.content"):
        headers = select_all(block, "span.a-text-bold, h1, h2, h3, h4, h5, h6, strong, b")
        if any(node_text(h).lower() == "directions" for h in headers):
            return [node_text(p) for p in block.find_all("p") if node_text(p)]
    return []


def _expander_container(doc: BeautifulSoup, heading: str, exact: bool) -> Optional[Tag]:
    section = select_one(doc, "#prodDetails")
    if section is None:
        return None
    for container in select_all(section, "div.a-expander-container"):
        prompt = node_text(select_one(container, "span.a-expander-prompt")).lower()
        if (exact and prompt == heading) or (not exact and heading in prompt):
            return container
    return None


def _header_rows(table: Optional[Tag]) -> Dict[str, str]:
    rows: Dict[str, str] = {}
    if table is None:
        return rows
    for row in table.find_all("tr"):
        key, value = node_text(row.find("th")), node_text(row.find("td"))
        if key and value:
            rows[key] = value
    return rows


def expander_table(doc: BeautifulSoup, heading: str, exact: bool = True) -> Dict[str, str]:
    """
    Rows of the ``table.prodDetTable`` inside the ``#prodDetails`` expander titled ``heading``.

    Args:
        doc: Parsed product page
        heading: Lower-case expander prompt text, e.g. ``"measurements"``
        exact: Require an exact prompt match instead of a substring match

    Returns:
        ``{th: td}`` mapping, empty when the section is missing
    """
    container = _expander_container(doc, heading, exact)
    if container is None:
        return {}
    return _header_rows(select_one(container, "table.prodDetTable"))


def extract_item_details_section(doc: BeautifulSoup) -> Dict[str, str]:
    """"Item details" expander, falling back to the detail-bullets list."""
    container = _expander_container(doc, "item details", exact=True)
    if container is not None:
        return _header_rows(select_one(container, "table.prodDetTable"))

    details: Dict[str, str] = {}
    wrapper = select_one(doc, "#detailBulletsWrapper_feature_div")
    if wrapper is None:
        return details

    for item in select_all(wrapper, "ul.detail-bullet-list li"):
        bold = select_one(item, "span.a-text-bold")
        if bold is None:
            continue
        key = _BULLET_KEY_TRAIL_RE.sub("", bold.get_text()).strip()
        item_text = node_text(item)
        value = item_text.replace(node_text(bold), "", 1).strip()

        lowered = key.lower()
        if "best sellers rank" in lowered:
            ranks = _BEST_SELLERS_RE.findall(item_text)
            if ranks:
                value = ", ".join(ranks)
        elif "customer reviews" in lowered:
            rating = _STAR_RATING_RE.search(item_text)
            count = _REVIEW_COUNT_RE.search(item_text)
            if rating and count:
                value = f"{rating.group(1)} out of 5 stars ({count.group(1)} reviews)"

        if key and value:
            details[key] = value
    return details


def extract_section_tables(doc: BeautifulSoup) -> Dict[str, Dict[str, str]]:
    """Dedicated page sections exported in place of the heuristic buckets."""
    return {
        "item_details": extract_item_details_section(doc),
        "measurements": expander_table(doc, "measurements"),
        "features_specs": expander_table(doc, "features & specs"),
    }
