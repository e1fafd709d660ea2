"""
Product variation extraction using Strategy pattern.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from .text import node_text, select_all

logger = logging.getLogger(__name__)

MAX_VARIATION_VALUES = 15

_PLACEHOLDER_OPTIONS = {"select", "choose", "pick"}
_SIZE_SELECT_NAME_RE = re.compile(r"(size|dropdown)", re.IGNORECASE)
_SWATCH_CONTAINER_ID_RE = re.compile(r"variation.*(color|style)", re.IGNORECASE)
_STYLE_CLASS_RE = re.compile(r"(style.*name|color.*name)", re.IGNORECASE)
_SCRIPT_MARKER_RE = re.compile(
    r"(colorImages|dimensionValuesDisplayData|variationValues)", re.IGNORECASE
)
_COLOR_IMAGES_RE = re.compile(r'"colorImages"\s*:\s*(\{.*?\})', re.DOTALL)
_DIMENSION_VALUES_RE = re.compile(r'"dimensionValuesDisplayData"\s*:\s*(\{.*?\})', re.DOTALL)


class VariationStrategy(ABC):
    """Abstract base class for variation extraction strategies."""

    @abstractmethod
    def extract(self, doc: BeautifulSoup, found: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Return buckets discovered on the page (``sizes`` and/or ``colors``)."""
        pass


class SizeSelectStrategy(VariationStrategy):
    """Sizes from ``<select>`` dropdowns named like size/dropdown."""

    def extract(self, doc: BeautifulSoup, found: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for select in select_all(doc, "select"):
            if not _SIZE_SELECT_NAME_RE.search(select.get("name") or ""):
                continue
            options = [
                text for text in (node_text(o) for o in select.find_all("option"))
                if text and text.lower() not in _PLACEHOLDER_OPTIONS
            ]
            if options:
                return {"sizes": options[:MAX_VARIATION_VALUES]}
        return {}


class SwatchContainerStrategy(VariationStrategy):
    """Colours/styles from swatch containers (``id`` like ``variation_color_name``)."""

    def extract(self, doc: BeautifulSoup, found: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for container in select_all(doc, "div, ul"):
            if not _SWATCH_CONTAINER_ID_RE.search(container.get("id") or ""):
                continue
            values = []
            for item in container.find_all(["li", "span", "button"]):
                name = item.get("title") or item.get("aria-label") or node_text(item)
                if name and len(name) < 100 and name.lower() not in ("select", "choose"):
                    values.append(name)
            if values:
                return {"colors": values[:MAX_VARIATION_VALUES]}
        return {}


class StyleClassStrategy(VariationStrategy):
    """Fallback: elements whose class looks like a style or colour name."""

    def extract(self, doc: BeautifulSoup, found: Dict[str, List[str]]) -> Dict[str, List[str]]:
        if "colors" in found:
            return {}
        styles = []
        for element in select_all(doc, "span, div"):
            classes = " ".join(element.get("class") or [])
            if not _STYLE_CLASS_RE.search(classes):
                continue
            text = node_text(element)
            if text and len(text) < 100:
                styles.append(text)
        if styles:
            return {"colors": styles[:MAX_VARIATION_VALUES]}
        return {}


class ScriptJsonStrategy(VariationStrategy):
    """Keys of ``colorImages`` / ``dimensionValuesDisplayData`` blobs in inline scripts."""

    def extract(self, doc: BeautifulSoup, found: Dict[str, List[str]]) -> Dict[str, List[str]]:
        if "colors" in found:
            return {}

        result: Dict[str, List[str]] = {}
        for script in select_all(doc, "script"):
            text = script.string or script.get_text() or ""
            if not _SCRIPT_MARKER_RE.search(text):
                continue

            colors = self._object_keys(_COLOR_IMAGES_RE, text)
            if colors:
                result["colors"] = colors[:MAX_VARIATION_VALUES]
                break

            if "sizes" not in found and "sizes" not in result:
                sizes = self._object_keys(_DIMENSION_VALUES_RE, text)
                if sizes:
                    result["sizes"] = sizes[:MAX_VARIATION_VALUES]
        return result

    @staticmethod
    def _object_keys(pattern: re.Pattern, text: str) -> Optional[List[str]]:
        match = pattern.search(text)
        if not match:
            return None
        try:
            return list(json.loads(match.group(1)).keys())
        except (ValueError, AttributeError) as e:
            logger.debug(f"Variation JSON parse failed: {e}")
            return None


class VariationExtractorChain:
    """Chain of responsibility for variation extraction."""

    def __init__(self):
        """Initialize extractor chain."""
        self.strategies = [
            SizeSelectStrategy(),
            SwatchContainerStrategy(),
            StyleClassStrategy(),
            ScriptJsonStrategy(),
        ]

    def extract_variations(self, doc: BeautifulSoup) -> Dict[str, List[str]]:
        """
        Run every strategy in order; a bucket filled by an earlier strategy is kept.

        Args:
            doc: Parsed product page

        Returns:
            Mapping of ``sizes`` / ``colors`` to at most 15 values each
        """
        variations: Dict[str, List[str]] = {}

        for strategy in self.strategies:
            strategy_name = strategy.__class__.__name__
            try:
                buckets = strategy.extract(doc, variations)
            except Exception as e:
                logger.debug(f"{strategy_name} failed: {e}")
                continue

            for bucket, values in buckets.items():
                if bucket not in variations:
                    variations[bucket] = values
                    logger.debug(f"{strategy_name} found {len(values)} {bucket}")

        return variations


def extract_variations(doc: BeautifulSoup) -> Dict[str, List[str]]:
    """Convenience wrapper around VariationExtractorChain."""
    return VariationExtractorChain().extract_variations(doc)
