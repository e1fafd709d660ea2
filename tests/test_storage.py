"""Tests for the JSON scrape store."""

from __future__ import annotations

import pytest

from amzscraper.core.models import (
    PaginationState,
    ProductRecord,
    ReviewRecord,
    RunOutcome,
    ScrapeSession,
)
from amzscraper.exceptions import StorageError
from amzscraper.storage import ScrapeStore, ensure_structure


@pytest.fixture()
def store(tmp_path):
    return ScrapeStore(tmp_path / "state" / "store.json")


def finished_session(asin: str = "B0TEST0001") -> ScrapeSession:
    session = ScrapeSession(asin=asin, product_url=f"https://www.amazon.com/dp/{asin}", product_name="Bottle")
    session.add_reviews([
        ReviewRecord(review_id="r1", page=1, author="Jane", is_vine_review=True),
        ReviewRecord(review_id="r2", page=1),
    ])
    session.pages_scraped = 1
    session.finish(RunOutcome.COMPLETED)
    return session


def test_missing_store_is_empty(store) -> None:
    assert store.load() == {"products": {}, "productInfo": []}
    assert store.is_empty()


def test_sessions_round_trip(store) -> None:
    key = store.add_session(finished_session())

    assert key.startswith("B0TEST0001_")
    [restored] = store.sessions()
    assert restored.asin == "B0TEST0001"
    assert restored.product_name == "Bottle"
    assert restored.pages_scraped == 1
    assert restored.outcome == RunOutcome.COMPLETED
    assert [r.review_id for r in restored.reviews] == ["r1", "r2"]
    assert restored.reviews[0].is_vine_review is True
    assert restored.is_finished
    assert restored.state == PaginationState.DONE_SUCCESS


def test_partial_session_restores_failure_state(store) -> None:
    session = finished_session()
    session.finish(RunOutcome.PARTIAL)
    stored_at = session.finished_at
    store.add_session(session)

    [restored] = store.sessions()

    assert restored.outcome == RunOutcome.PARTIAL
    assert restored.state == PaginationState.DONE_FAILURE
    assert restored.finished_at == stored_at


def test_product_info_keeps_mined_specs(store) -> None:
    product = ProductRecord(asin="B0TEST0001")
    product.specs.measurements["Measurement_1"] = "12 inch"
    product.specs.features_specs["Special Feature"] = "Leak proof"

    store.add_product_info(product)

    specs = store.product_info()[0]["specs"]
    assert specs["measurements"] == {"Measurement_1": "12 inch"}
    assert specs["features_specs"] == {"Special Feature": "Leak proof"}
    assert specs["safety_info"] == []


def test_persisted_layout(store) -> None:
    store.add_session(finished_session())

    entry = next(iter(store.load()["products"].values()))

    assert entry["metadata"]["totalReviews"] == 2
    assert entry["metadata"]["originalUrl"] == "https://www.amazon.com/dp/B0TEST0001"
    assert entry["reviews"][0]["authorProfileLink"] == "N/A"
    assert entry["reviews"][0]["isVineReview"] is True


def test_stats_and_clear(store) -> None:
    store.add_session(finished_session())
    store.add_product_info(ProductRecord(asin="B0TEST0001", title="Bottle"))

    assert store.stats() == {"products": 1, "product_info": 1, "reviews": 2}
    assert store.product_info()[0]["title"] == "Bottle"
    assert not store.is_empty()

    store.clear()

    assert not store.path.exists()
    assert store.is_empty()


def test_corrupt_store_raises(store) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        store.load()


@pytest.mark.parametrize(
    "loaded",
    [None, [], {"products": [], "productInfo": {}}, {"other": 1}],
)
def test_ensure_structure_repairs_shapes(loaded) -> None:
    data = ensure_structure(loaded)

    assert data["products"] == {}
    assert data["productInfo"] == []
