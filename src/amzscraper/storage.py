"""
Persisted intermediate state between commands.

The store is a single JSON document:

    {
      "products": {"<asin>_<epoch_ms>": {"metadata": {...}, "reviews": [...]}},
      "productInfo": [{...product row...}]
    }
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Union

from .core.models import ProductRecord, ScrapeSession
from .exceptions import StorageError
from .utils.io import read_json_file, write_json_file

logger = logging.getLogger(__name__)


def ensure_structure(data: Any) -> Dict[str, Any]:
    """Coerce whatever was loaded into the ``{products, productInfo}`` shape."""
    if not isinstance(data, dict):
        return {"products": {}, "productInfo": []}
    if not isinstance(data.get("products"), dict):
        data["products"] = {}
    if not isinstance(data.get("productInfo"), list):
        data["productInfo"] = []
    return data


class ScrapeStore:
    """JSON-file store accumulating review sessions and product snapshots."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return ensure_structure(None)
        try:
            return ensure_structure(read_json_file(self.path))
        except ValueError as e:
            raise StorageError(f"Scrape store {self.path} is unreadable: {e}") from e

    def save(self, data: Dict[str, Any]) -> None:
        try:
            write_json_file(ensure_structure(data), self.path)
        except ValueError as e:
            raise StorageError(f"Failed to save scrape store {self.path}: {e}") from e

    def add_session(self, session: ScrapeSession) -> str:
        """Persist a finished review session; returns its storage key."""
        data = self.load()
        key = f"{session.asin}_{int(time.time() * 1000)}"
        data["products"][key] = session.to_dict()
        self.save(data)
        logger.info(f"Stored {session.total_reviews} reviews for {session.asin} as {key}")
        return key

    def add_product_info(self, product: ProductRecord) -> None:
        data = self.load()
        data["productInfo"].append(product.to_dict())
        self.save(data)
        logger.info(f"Stored product info for {product.asin}")

    def sessions(self) -> List[ScrapeSession]:
        """Stored review sessions in insertion order."""
        products = self.load()["products"]
        return [
            ScrapeSession.from_dict(entry)
            for entry in products.values()
            if isinstance(entry, dict) and entry.get("metadata") and entry.get("reviews") is not None
        ]

    def product_info(self) -> List[Dict[str, Any]]:
        return list(self.load()["productInfo"])

    def stats(self) -> Dict[str, int]:
        data = self.load()
        review_count = sum(
            len(entry.get("reviews") or []) for entry in data["products"].values()
            if isinstance(entry, dict)
        )
        return {
            "products": len(data["products"]),
            "product_info": len(data["productInfo"]),
            "reviews": review_count,
        }

    def is_empty(self) -> bool:
        stats = self.stats()
        return stats["products"] == 0 and stats["product_info"] == 0

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Cleared scrape store {self.path}")
