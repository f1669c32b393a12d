import numpy as np
import pandas as pd
import pytest

from localfinder.catalog.config import CatalogConfig
from localfinder.catalog.data_store import CatalogStore, prepare_offerings
from localfinder.search.errors import CatalogRetrievalFailed, EnrichmentFailed

OFFERINGS = pd.DataFrame([
    {
        "id": 1, "business_id": 10, "title": "Vegan Pancakes", "business_name": "Green Griddle",
        "description": "Fluffy plant-based pancakes", "tags": "vegan|breakfast", "category": "Cafe",
        "status": "Active", "latitude": 37.7750, "longitude": -122.4190,
        "hours": "7am - 3pm", "gallery_urls": "/g1.png|/g2.png", "image_url": None,
    },
    {
        "id": 2, "business_id": 20, "title": "Tofu Scramble", "business_name": "Sprout",
        "description": "Breakfast scramble", "tags": "vegan", "category": "Cafe",
        "status": "active", "latitude": 38.5816, "longitude": -121.4944,
        "hours": "8am - 2pm", "gallery_urls": None, "image_url": "/sprout.png",
    },
    {
        "id": 3, "business_id": 30, "title": "Bacon Plate", "business_name": "Hog Heaven",
        "description": "Pork", "tags": "", "category": "Diner",
        "status": "inactive", "latitude": 37.7751, "longitude": -122.4191,
        "hours": None, "gallery_urls": None, "image_url": None,
    },
    {
        "id": 4, "business_id": 40, "title": "Mobile Smoothies", "business_name": "Blend Van",
        "description": "Smoothies", "tags": "vegan|drinks", "category": "Food Truck",
        "status": "active", "latitude": None, "longitude": None,
        "hours": None, "gallery_urls": None, "image_url": None,
    },
])

# Row-aligned with OFFERINGS
EMBEDDINGS = np.array([
    [1.0, 0.0, 0.0],
    [0.8, 0.6, 0.0],
    [1.0, 0.0, 0.0],
    [0.0, 1.0, 0.0],
])

QUERY = np.array([1.0, 0.0, 0.0])


def _store(offerings=OFFERINGS, embeddings=EMBEDDINGS):
    return CatalogStore(CatalogConfig(), offerings=offerings, embeddings=embeddings)


def test_prepare_offerings_normalises_columns():
    df = prepare_offerings(OFFERINGS)
    assert df.loc[0, "id"] == "1"
    assert df.loc[0, "status"] == "active"
    assert df.loc[0, "tags"] == ["vegan", "breakfast"]
    assert df.loc[2, "tags"] == []


def test_prepare_offerings_requires_columns():
    with pytest.raises(ValueError):
        prepare_offerings(OFFERINGS.drop(columns=["status"]))


def test_similarity_search_orders_and_filters_inactive():
    rows = _store().similarity_search(QUERY, threshold=0.1, limit=10)
    assert [r["id"] for r in rows] == ["1", "2"]
    assert rows[0]["similarity"] == pytest.approx(1.0)
    assert rows[1]["similarity"] == pytest.approx(0.8)
    assert rows[0]["distance_miles"] is None


def test_similarity_search_respects_limit():
    rows = _store().similarity_search(QUERY, threshold=0.0, limit=1)
    assert len(rows) == 1


def test_similarity_search_drops_far_rows_but_keeps_missing_coordinates():
    rows = _store().similarity_search(
        np.array([0.6, 0.8, 0.0]), threshold=0.0, limit=10,
        latitude=37.7749, longitude=-122.4194, max_distance_miles=10,
    )
    ids = [r["id"] for r in rows]
    # Sacramento is ~75 miles out; the food truck has no coordinates
    assert "2" not in ids
    assert "4" in ids
    assert "1" in ids
    near = next(r for r in rows if r["id"] == "1")
    assert near["distance_miles"] < 1
    assert next(r for r in rows if r["id"] == "4")["distance_miles"] is None


def test_similarity_search_rejects_out_of_sync_matrix():
    with pytest.raises(CatalogRetrievalFailed):
        _store(embeddings=EMBEDDINGS[:2]).similarity_search(QUERY, threshold=0.1, limit=10)


def test_similarity_search_rejects_dimension_mismatch():
    with pytest.raises(CatalogRetrievalFailed):
        _store().similarity_search(np.zeros(5), threshold=0.1, limit=10)


def test_missing_embeddings_file(tmp_path):
    store = CatalogStore(CatalogConfig(data_dir=tmp_path), offerings=OFFERINGS)
    with pytest.raises(CatalogRetrievalFailed):
        store.similarity_search(QUERY, threshold=0.1, limit=10)


def test_is_available_reflects_data_dir(tmp_path):
    config = CatalogConfig(data_dir=tmp_path)
    store = CatalogStore(config)
    assert store.is_available() is False

    OFFERINGS.assign(tags="vegan").to_csv(config.offerings_path, index=False)
    assert store.is_available() is False

    np.save(config.embeddings_path, EMBEDDINGS)
    assert store.is_available() is True
    assert len(store.dataframe) == 4
    assert store.embeddings.shape == (4, 3)


def test_is_available_needs_embeddings_when_offerings_are_in_memory(tmp_path):
    store = CatalogStore(CatalogConfig(data_dir=tmp_path), offerings=OFFERINGS)
    assert store.is_available() is False
    assert CatalogStore(CatalogConfig(data_dir=tmp_path), OFFERINGS, EMBEDDINGS).is_available() is True


def test_fetch_offerings_returns_active_records_with_image():
    records = _store().fetch_offerings(["1", "2", "3", "99"])
    assert set(records) == {"1", "2"}
    assert records["1"]["image_url"] == "/g1.png"
    assert records["2"]["image_url"] == "/sprout.png"
    assert records["1"]["hours"] == "7am - 3pm"


def test_fetch_offerings_falls_back_to_placeholder():
    records = _store().fetch_offerings(["4"])
    assert records["4"]["image_url"] == CatalogConfig().placeholder_image
    assert records["4"]["latitude"] is None


def test_fetch_offerings_load_failure(tmp_path):
    store = CatalogStore(CatalogConfig(data_dir=tmp_path))
    with pytest.raises(EnrichmentFailed):
        store.fetch_offerings(["1"])
