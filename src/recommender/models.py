"""Domain records for the recommendation engine.

Products, orders and cart entries are immutable snapshots owned by their
stores; the engine only reads them. ``CandidateScores`` is the per-call
scratch structure strategies and the aggregator accumulate into.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Product:
    """A catalog product."""

    product_id: int
    category: str
    subcategory: str
    brand: str
    price: float
    rating: float
    review_count: int
    stock: int
    name: str = ""

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.product_id,
            "name": self.name,
            "category": self.category,
            "subcategory": self.subcategory,
            "brand": self.brand,
            "price": self.price,
            "rating": self.rating,
            "review_count": self.review_count,
            "stock": self.stock,
        }


@dataclass(frozen=True)
class OrderItem:
    product_id: int
    quantity: int = 1


@dataclass(frozen=True)
class Order:
    """A past order. ``user_id`` is None for orders placed anonymously."""

    order_id: int
    items: Tuple[OrderItem, ...] = ()
    user_id: Optional[int] = None

    @property
    def product_ids(self) -> List[int]:
        return [item.product_id for item in self.items]

    def contains(self, product_id: int) -> bool:
        return any(item.product_id == product_id for item in self.items)


@dataclass(frozen=True)
class CartItem:
    """A cart entry as stored by the storefront.

    ``product`` is the snapshot saved alongside the entry, when there is one.
    """

    product_id: int
    product: Optional[Product] = None
    quantity: int = 1


class Catalog:
    """Ordered, read-only product collection with lookup by id.

    Iteration follows the order the products were loaded in ("catalog
    order"), which is what trending ties fall back to.
    """

    def __init__(self, products: Iterable[Product] = ()):
        self._products: Tuple[Product, ...] = tuple(products)
        self._by_id: Dict[int, Product] = {p.product_id: p for p in self._products}

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._by_id

    def get(self, product_id: int) -> Optional[Product]:
        return self._by_id.get(product_id)

    def in_stock(self) -> List[Product]:
        return [p for p in self._products if p.in_stock]

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products


@dataclass
class CandidateScores:
    """Insertion-ordered map of product id to (product, accumulated score).

    ``ranked()`` sorts by score descending with a stable sort, so products
    with equal scores keep the order in which they were first added.
    """

    _entries: Dict[int, Tuple[Product, float]] = field(default_factory=dict)

    def add(self, product: Product, weight: float = 1.0) -> None:
        pid = product.product_id
        if pid in self._entries:
            existing, score = self._entries[pid]
            self._entries[pid] = (existing, score + weight)
        else:
            self._entries[pid] = (product, weight)

    def add_all(self, products: Sequence[Product], weight: float = 1.0) -> None:
        for product in products:
            self.add(product, weight)

    def score(self, product_id: int) -> float:
        entry = self._entries.get(product_id)
        return entry[1] if entry else 0.0

    def ranked(self) -> List[Product]:
        ordered = sorted(self._entries.values(), key=lambda entry: entry[1], reverse=True)
        return [product for product, _ in ordered]

    def scores(self) -> Dict[int, float]:
        return {pid: score for pid, (_, score) in self._entries.items()}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._entries
