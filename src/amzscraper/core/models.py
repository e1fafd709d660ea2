"""
Data models for the Amazon scraping system.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

NOT_AVAILABLE = "N/A"


def utc_timestamp() -> str:
    """ISO-8601 timestamp in UTC with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PaginationState(str, Enum):
    """States of a multi-page review run."""
    AWAITING_PAGE_1 = "awaiting_page_1"
    SCRAPING_PAGE = "scraping_page"
    NAVIGATING = "navigating"
    DONE_SUCCESS = "done_success"
    DONE_FAILURE = "done_failure"


class RunOutcome(str, Enum):
    """How a pagination run ended."""
    COMPLETED = "completed"
    EARLY_STOP = "early_stop"
    PARTIAL = "partial"
    ABORTED = "aborted"


class NavigationMechanism(str, Enum):
    """Ways of moving to the next review page, in priority order."""
    NEXT_BUTTON = "next_button"
    PAGE_LINK = "page_link"
    PAGINATION_FORM = "pagination_form"


@dataclass
class SpecificationTables:
    """Categorized key/value specification data mined from a product page."""
    item_details: Dict[str, str] = field(default_factory=dict)
    measurements: Dict[str, str] = field(default_factory=dict)
    materials_care: Dict[str, str] = field(default_factory=dict)
    features_specs: Dict[str, str] = field(default_factory=dict)
    additional_details: Dict[str, str] = field(default_factory=dict)
    safety_info: List[str] = field(default_factory=list)
    directions: List[str] = field(default_factory=list)

    def bucket(self, name: str) -> Dict[str, str]:
        """Return the mapping bucket called ``name``."""
        return getattr(self, name)


@dataclass
class ProductRecord:
    """Best-effort snapshot of a product detail page."""
    asin: str
    product_url: str = ""
    scrape_timestamp: str = field(default_factory=utc_timestamp)
    title: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[str] = None
    rating: Optional[str] = None
    ratings_count: Optional[str] = None
    availability: Optional[str] = None
    category: Optional[str] = None
    seller_info: Optional[str] = None
    upc: Optional[str] = None
    shop_url: Optional[str] = None
    is_prime: int = 0
    main_product_images: List[str] = field(default_factory=list)
    aplus_images: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)
    variations: Dict[str, List[str]] = field(default_factory=dict)
    subscribe_save: Dict[str, Any] = field(
        default_factory=lambda: {"available": 0, "discount": None}
    )
    specs: SpecificationTables = field(default_factory=SpecificationTables)
    # item_details / measurements / features_specs as laid out on the page
    sections: Dict[str, Dict[str, str]] = field(default_factory=dict)
    materials_care_export: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.asin:
            raise ValueError("ProductRecord requires an ASIN")

    @property
    def main_image_count(self) -> int:
        return len(self.main_product_images)

    @property
    def aplus_image_count(self) -> int:
        return len(self.aplus_images)

    @property
    def total_image_count(self) -> int:
        return self.main_image_count + self.aplus_image_count

    def to_row(self) -> Dict[str, Any]:
        """Flatten into the product export row (nested values JSON-encoded)."""
        return {
            "asin": self.asin,
            "title": self.title,
            "brand": self.brand,
            "price": self.price,
            "rating": self.rating,
            "ratings_count": self.ratings_count,
            "availability": self.availability,
            "category": self.category,
            "seller_info": self.seller_info,
            "upc": self.upc,
            "shop_url": self.shop_url,
            "is_prime": self.is_prime,
            "main_image_count": self.main_image_count,
            "aplus_image_count": self.aplus_image_count,
            "total_image_count": self.total_image_count,
            "main_product_images_json": _dumps(self.main_product_images),
            "aplus_images_json": _dumps(self.aplus_images),
            "features_json": _dumps(self.features),
            "variations_json": _dumps(self.variations),
            "subscribe_save_json": _dumps(self.subscribe_save),
            "item_details_json": _dumps(self.sections.get("item_details", {})),
            "measurements_json": _dumps(self.sections.get("measurements", {})),
            "features_specs_json": _dumps(self.sections.get("features_specs", {})),
            "safety_info_json": _dumps(self.specs.safety_info),
            "directions_json": _dumps(self.specs.directions),
            "additional_details_json": _dumps(self.specs.additional_details),
            "materials_care_json": _dumps(self.materials_care_export),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted dictionary representation."""
        row = self.to_row()
        row["product_url"] = self.product_url
        row["scrape_timestamp"] = self.scrape_timestamp
        # Every mined bucket, including the ones the CSV does not export
        row["specs"] = asdict(self.specs)
        return row


@dataclass
class ReviewRecord:
    """A single customer review as shown on a review-listing page."""
    review_id: str
    page: int
    index: int = 0
    title: str = NOT_AVAILABLE
    rating: str = NOT_AVAILABLE
    author: str = NOT_AVAILABLE
    author_profile_link: str = NOT_AVAILABLE
    date: str = NOT_AVAILABLE
    text: str = NOT_AVAILABLE
    helpful: str = NOT_AVAILABLE
    verified: str = "Not Verified"
    product_variation: str = NOT_AVAILABLE
    images: str = ""
    is_vine_review: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted dictionary representation."""
        return {
            "id": self.review_id,
            "index": self.index,
            "page": self.page,
            "title": self.title,
            "rating": self.rating,
            "author": self.author,
            "authorProfileLink": self.author_profile_link,
            "date": self.date,
            "text": self.text,
            "helpful": self.helpful,
            "verified": self.verified,
            "productVariation": self.product_variation,
            "images": self.images,
            "isVineReview": self.is_vine_review,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewRecord":
        """Rebuild a record from its persisted representation."""
        return cls(
            review_id=str(data.get("id") or ""),
            page=int(data.get("page") or 1),
            index=int(data.get("index") or 0),
            title=data.get("title", NOT_AVAILABLE),
            rating=data.get("rating", NOT_AVAILABLE),
            author=data.get("author", NOT_AVAILABLE),
            author_profile_link=data.get("authorProfileLink", NOT_AVAILABLE),
            date=data.get("date", NOT_AVAILABLE),
            text=data.get("text", NOT_AVAILABLE),
            helpful=data.get("helpful", NOT_AVAILABLE),
            verified=data.get("verified", "Not Verified"),
            product_variation=data.get("productVariation", NOT_AVAILABLE),
            images=data.get("images", ""),
            is_vine_review=bool(data.get("isVineReview", False)),
        )


@dataclass
class ScrapeSession:
    """Accumulator for one pagination run over a product's reviews.

    The session is owned by the paginator for the duration of a run and is
    passed explicitly through every step. ``add_reviews`` keeps the first
    occurrence of each review identifier and preserves insertion order.
    """
    asin: str
    product_url: str = ""
    reviews_url: str = ""
    product_name: str = ""
    reviews: List[ReviewRecord] = field(default_factory=list)
    seen_ids: Set[str] = field(default_factory=set)
    pages_scraped: int = 0
    started_at: str = field(default_factory=utc_timestamp)
    finished_at: Optional[str] = None
    state: PaginationState = PaginationState.AWAITING_PAGE_1
    outcome: Optional[RunOutcome] = None
    error: Optional[str] = None

    @property
    def total_reviews(self) -> int:
        return len(self.reviews)

    @property
    def is_finished(self) -> bool:
        return self.state in (PaginationState.DONE_SUCCESS, PaginationState.DONE_FAILURE)

    def add_reviews(self, records: List[ReviewRecord]) -> List[ReviewRecord]:
        """Append records not seen before; return the ones accepted."""
        accepted: List[ReviewRecord] = []
        for record in records:
            if record.review_id in self.seen_ids:
                continue
            self.seen_ids.add(record.review_id)
            record.index = len(self.reviews) + 1
            self.reviews.append(record)
            accepted.append(record)
        return accepted

    def finish(self, outcome: RunOutcome, error: Optional[str] = None) -> None:
        """Move the session into its terminal state."""
        self.outcome = outcome
        self.error = error
        if outcome in (RunOutcome.COMPLETED, RunOutcome.EARLY_STOP):
            self.state = PaginationState.DONE_SUCCESS
        else:
            self.state = PaginationState.DONE_FAILURE
        self.finished_at = utc_timestamp()

    def metadata(self) -> Dict[str, Any]:
        """Metadata block stored alongside the reviews."""
        return {
            "asin": self.asin,
            "originalUrl": self.product_url or self.reviews_url,
            "reviewsUrl": self.reviews_url,
            "scrapeDate": self.finished_at or self.started_at,
            "totalReviews": self.total_reviews,
            "pagesScraped": self.pages_scraped,
            "productName": self.product_name,
            "outcome": self.outcome.value if self.outcome else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted ``{metadata, reviews}`` representation."""
        return {
            "metadata": self.metadata(),
            "reviews": [review.to_dict() for review in self.reviews],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScrapeSession":
        """Rebuild a finished session from the persisted representation."""
        metadata = data.get("metadata") or {}
        session = cls(
            asin=str(metadata.get("asin") or ""),
            product_url=metadata.get("originalUrl") or "",
            reviews_url=metadata.get("reviewsUrl") or "",
            product_name=metadata.get("productName") or "",
            pages_scraped=int(metadata.get("pagesScraped") or 0),
        )
        session.add_reviews([ReviewRecord.from_dict(r) for r in data.get("reviews") or []])
        outcome = metadata.get("outcome")
        if outcome:
            session.finish(RunOutcome(outcome))
        session.finished_at = metadata.get("scrapeDate")
        return session


@dataclass
class FieldSelector:
    """CSS selector plus the attribute to read (text content when ``None``)."""
    css: str
    attribute: Optional[str] = None


@dataclass
class NavigationPlan:
    """How to reach a target review page from the current document."""
    mechanism: NavigationMechanism
    target_page: int
    selector: str
    index: int = 0
    form_field: Optional[str] = None


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)
