"""Tests for the FastAPI application endpoints.

This module contains integration tests for the HavenRec API endpoints,
including health checks and recommendation endpoints.
"""

import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor

from src.api.routes import recommend
from src.recommender.config import CART_KEY, WISHLIST_KEY


def ids(response):
    return [p["id"] for p in response.json()["recommendations"]]


def test_ping_endpoint(api_client):
    """Test that the /ping endpoint returns correct status and JSON."""
    response = api_client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_status_endpoint_before_and_after_load(api_client):
    """Test that /status reports data only once it has been loaded."""
    data = api_client.get("/status").json()

    assert data["data_loaded"] is False
    assert data["timestamp_last_loaded"] is None

    api_client.get("/recommend/trending")
    data = api_client.get("/status").json()

    assert data["data_loaded"] is True
    assert isinstance(data["timestamp_last_loaded"], str)
    assert data["num_products"] == 8
    assert data["num_orders"] == 4


def test_personalized_endpoint_response_structure(api_client):
    response = api_client.get("/recommend/personalized", params={"session_id": "s1", "limit": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["strategy"] == "personalized"
    assert data["scores"] is None
    assert len(data["recommendations"]) == 5
    first = data["recommendations"][0]
    for field in ("id", "name", "category", "brand", "price", "rating", "review_count", "stock"):
        assert field in first


def test_personalized_endpoint_uses_session_cart(api_client):
    recommend.get_session_store("s1").set_json(CART_KEY, [{"productId": 1}])
    recommend.get_session_store("s1").set_json(WISHLIST_KEY, [5])

    response = api_client.get("/recommend/personalized", params={"session_id": "s1", "user_id": 99})

    assert ids(response) == [2, 7, 8, 3, 5, 6, 1]


def test_personalized_endpoint_fresh_session_is_trending(api_client):
    response = api_client.get("/recommend/personalized", params={"session_id": "new", "user_id": 99})

    assert ids(response) == [8, 5, 1, 3, 2, 7]


def test_personalized_endpoint_explain(api_client):
    # Without user_id every order counts, so product 6 is the only unpurchased candidate
    response = api_client.get("/recommend/personalized", params={"explain": "true"})

    data = response.json()
    assert ids(response) == [6, 8, 5, 1, 3, 2, 7]
    assert data["scores"]["method"] == "personalized"
    assert data["scores"]["strategy_candidates"]["purchase_history"] == [6]
    assert data["scores"]["trending_count"] == 6
    assert data["scores"]["hybrid_scores"]["6"] == 2.0


def test_similar_endpoint_records_view(api_client):
    response = api_client.get("/recommend/similar/1", params={"session_id": "s2"})

    assert response.status_code == 200
    assert response.json()["strategy"] == "similar"
    assert ids(response) == [5, 2, 8, 3, 7, 6]

    history = api_client.get("/recommend/history", params={"session_id": "s2"}).json()
    assert history == {"session_id": "s2", "history": [1]}


def test_similar_endpoint_unknown_product_falls_back_to_trending(api_client):
    response = api_client.get("/recommend/similar/999", params={"limit": 5})

    assert response.status_code == 200
    assert ids(response) == [8, 5, 1, 3, 2]


def test_similar_endpoint_non_numeric_product(api_client):
    response = api_client.get("/recommend/similar/abc", params={"session_id": "s3"})

    assert response.status_code == 200
    assert ids(response) == [8, 5, 1, 3, 2, 7]
    assert api_client.get("/recommend/history", params={"session_id": "s3"}).json()["history"] == []


def test_context_strategy_endpoints(api_client):
    store = recommend.get_session_store("s4")
    store.set_json(CART_KEY, [{"productId": 1}])
    store.set(WISHLIST_KEY, json.dumps({"productIds": [5], "addedDates": {}}))

    cart = api_client.get("/recommend/cart", params={"session_id": "s4", "limit": 3})
    wishlist = api_client.get("/recommend/wishlist", params={"session_id": "s4", "limit": 2})
    purchases = api_client.get("/recommend/purchase-history", params={"user_id": 1})

    assert ids(cart) == [2, 3, 5]
    assert ids(wishlist) == [6, 7]
    assert ids(purchases) == [7, 6]
    assert purchases.json()["strategy"] == "purchase_history"


def test_trending_endpoint_with_exclusions(api_client):
    response = api_client.get("/recommend/trending", params={"limit": 3, "exclude": [8, 5]})

    assert response.status_code == 200
    assert ids(response) == [1, 3, 2]


def test_history_endpoints(api_client):
    for product_id in (3, 5, 3):
        response = api_client.post(f"/recommend/history/{product_id}", params={"session_id": "s5"})
        assert response.status_code == 200

    assert response.json()["history"] == [3, 5]
    # Sessions do not share state
    assert api_client.get("/recommend/history", params={"session_id": "other"}).json()["history"] == []


def test_metrics_endpoint_counts_calls(api_client):
    api_client.get("/recommend/personalized")
    api_client.get("/recommend/trending")
    api_client.get("/recommend/trending")

    data = api_client.get("/metrics").json()

    assert data["total_calls"] == 3
    assert data["operations"]["trending"]["count"] == 2
    assert data["operations"]["trending"]["trending_padded_count"] == 0
    assert data["operations"]["personalized"]["trending_padded_count"] == 1
    assert data["operations"]["personalized"]["max_latency_ms"] >= 0


def test_request_id_header(api_client):
    response = api_client.get("/ping", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = api_client.get("/ping").headers["X-Request-ID"]
    assert generated


def test_reload_data_endpoint(api_client, data_dir):
    api_client.get("/recommend/trending")

    products = json.loads((data_dir / "products.json").read_text())
    (data_dir / "products.json").write_text(json.dumps(products[:3]))

    response = api_client.post("/recommend/reload-data")

    assert response.status_code == 200
    assert response.json() == {"status": "Data reloaded successfully"}
    assert api_client.get("/status").json()["num_products"] == 3


def test_put_cart_and_wishlist_drive_recommendations(api_client):
    cart = api_client.put(
        "/recommend/cart",
        params={"session_id": "s6"},
        json=[{"productId": 1, "quantity": 2}, {"name": "no id"}],
    )
    wishlist = api_client.put("/recommend/wishlist", params={"session_id": "s6"}, json={"productIds": [5]})

    assert cart.status_code == 200
    assert cart.json() == {"session_id": "s6", "product_ids": [1]}
    assert wishlist.json() == {"session_id": "s6", "product_ids": [5]}

    params = {"session_id": "s6", "limit": 3}
    assert ids(api_client.get("/recommend/cart", params=params)) == [2, 3, 5]
    assert ids(api_client.get("/recommend/wishlist", params={"session_id": "s6", "limit": 2})) == [6, 7]

    response = api_client.get("/recommend/personalized", params={"session_id": "s6", "user_id": 99})
    assert ids(response) == [2, 7, 8, 3, 5, 6, 1]


def test_put_cart_replaces_previous_cart(api_client):
    api_client.put("/recommend/cart", params={"session_id": "s7"}, json=[{"productId": 1}])
    response = api_client.put("/recommend/cart", params={"session_id": "s7"}, json={"items": []})

    assert response.json()["product_ids"] == []
    assert ids(api_client.get("/recommend/cart", params={"session_id": "s7", "limit": 3})) == []


def test_put_cart_rejects_non_json_body(api_client):
    response = api_client.put("/recommend/cart", params={"session_id": "s8"}, json="not a cart")

    assert response.status_code == 422


def test_read_only_requests_do_not_register_sessions(api_client):
    for i in range(50):
        assert api_client.get("/recommend/cart", params={"session_id": f"r{i}"}).status_code == 200
        api_client.get("/recommend/history", params={"session_id": f"h{i}"})
        api_client.get("/recommend/personalized", params={"session_id": f"p{i}"})

    assert len(recommend._session_stores) == 0


def test_session_registry_evicts_least_recently_used(api_client, monkeypatch):
    monkeypatch.setattr(recommend, "MAX_SESSIONS", 3)

    for i in range(5):
        api_client.post("/recommend/history/1", params={"session_id": f"s{i}"})

    assert list(recommend._session_stores) == ["s2", "s3", "s4"]
    assert api_client.get("/recommend/history", params={"session_id": "s0"}).json()["history"] == []

    # Reading s2 makes it the most recent, so s3 goes next
    assert api_client.get("/recommend/history", params={"session_id": "s2"}).json()["history"] == [1]
    api_client.post("/recommend/history/2", params={"session_id": "s5"})

    assert list(recommend._session_stores) == ["s4", "s2", "s5"]


def test_concurrent_first_requests_load_data_once(api_client, monkeypatch):
    calls = []
    lock = threading.Lock()
    real_load = recommend.load_data_snapshot

    def slow_load(data_dir):
        with lock:
            calls.append(data_dir)
        time.sleep(0.05)
        return real_load(data_dir)

    monkeypatch.setattr(recommend, "load_data_snapshot", slow_load)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: recommend.load_data_if_needed(), range(8)))

    assert len(calls) == 1
    assert all(result is results[0] for result in results)
