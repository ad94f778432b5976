"""Shared fixtures for the HavenRec test suite.

The fixture catalog is small enough that expected rankings can be worked
out by hand:

    id  category     subcategory  brand  price  rating  reviews  stock
    1   Electronics  Audio        Acme   100    4.5     100      10
    2   Electronics  Audio        Acme   105    4.6     50       5
    3   Electronics  Video        Acme   300    3.0     1000     3
    4   Electronics  Audio        Sonic  120    4.2     10       0   (sold out)
    5   Home         Kitchen      Chef   40     4.8     200      20
    6   Home         Kitchen      Chef   45     4.0     0        8   (unreviewed)
    7   Home         Decor        Lux    90     3.5     30       2
    8   Sports       Fitness      Fit    60     4.4     400      12

Orders: user 1 bought [1, 2, 5] and [3, 4]; user 2 bought [1, 5, 8];
user 3 bought [7].
"""

import json
import sys
from pathlib import Path
from typing import Callable, Iterator, List

import pytest
from fastapi.testclient import TestClient

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.recommender.context import InMemoryStore, ShopperContext
from src.recommender.models import Catalog, Order, OrderItem, Product

PRODUCT_ROWS = [
    (1, "Electronics", "Audio", "Acme", 100.0, 4.5, 100, 10),
    (2, "Electronics", "Audio", "Acme", 105.0, 4.6, 50, 5),
    (3, "Electronics", "Video", "Acme", 300.0, 3.0, 1000, 3),
    (4, "Electronics", "Audio", "Sonic", 120.0, 4.2, 10, 0),
    (5, "Home", "Kitchen", "Chef", 40.0, 4.8, 200, 20),
    (6, "Home", "Kitchen", "Chef", 45.0, 4.0, 0, 8),
    (7, "Home", "Decor", "Lux", 90.0, 3.5, 30, 2),
    (8, "Sports", "Fitness", "Fit", 60.0, 4.4, 400, 12),
]

ORDER_ROWS = [
    (1, 1, [1, 2, 5]),
    (2, 2, [1, 5, 8]),
    (3, 1, [3, 4]),
    (4, 3, [7]),
]


@pytest.fixture
def products() -> List[Product]:
    return [
        Product(pid, cat, sub, brand, price, rating, reviews, stock, name=f"Product {pid}")
        for pid, cat, sub, brand, price, rating, reviews, stock in PRODUCT_ROWS
    ]


@pytest.fixture
def catalog(products) -> Catalog:
    return Catalog(products)


@pytest.fixture
def orders() -> List[Order]:
    return [
        Order(order_id=oid, user_id=uid, items=tuple(OrderItem(pid) for pid in pids))
        for oid, uid, pids in ORDER_ROWS
    ]


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def make_context(catalog, orders, store) -> Callable[..., ShopperContext]:
    """Factory for contexts sharing the fixture catalog, orders and store."""

    def _make(**overrides) -> ShopperContext:
        fields = dict(catalog=catalog, orders=orders, store=store, user_id=None)
        fields.update(overrides)
        return ShopperContext(**fields)

    return _make


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Directory holding the fixture catalog and orders in storefront JSON format."""
    directory = tmp_path / "data"
    directory.mkdir()

    product_records = [
        {
            "Id": pid,
            "name": f"Product {pid}",
            "category": cat,
            "subcategory": sub,
            "brand": brand,
            "price": price,
            "rating": rating,
            "reviewCount": reviews,
            "stock": stock,
        }
        for pid, cat, sub, brand, price, rating, reviews, stock in PRODUCT_ROWS
    ]
    order_records = [
        {
            "Id": oid,
            "orderId": f"MH-2024-{oid:03d}",
            "userId": uid,
            "items": [{"productId": pid, "quantity": 1} for pid in pids],
        }
        for oid, uid, pids in ORDER_ROWS
    ]

    (directory / "products.json").write_text(json.dumps(product_records))
    (directory / "orders.json").write_text(json.dumps(order_records))

    return directory


@pytest.fixture
def api_client(data_dir, monkeypatch) -> Iterator[TestClient]:
    """Test client serving the fixture data with fresh sessions and metrics."""
    from src.api.main import app
    from src.api.metrics import metrics_service
    from src.api.routes import recommend

    monkeypatch.setattr(recommend, "DEFAULT_DATA_DIR", str(data_dir))
    monkeypatch.setattr(recommend, "_data_cache", None)
    recommend.reset_sessions()
    metrics_service.reset()

    yield TestClient(app)

    recommend.reset_sessions()
