"""Shopper context: catalog, order history and client-side state.

The storefront keeps cart, wishlist and browsing history as JSON strings in
a key-value store (browser local storage in the web client). Every read here
goes through ``read_json``, which reports decode failures in its return value
and substitutes a default instead of raising.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Union

from src.recommender.config import (
    BROWSING_HISTORY_CAP,
    BROWSING_HISTORY_KEY,
    CART_KEY,
    WISHLIST_KEY,
)
from src.recommender.models import CartItem, Catalog, Order, Product

logger = logging.getLogger(__name__)

# Errors a store may raise when a stored value cannot be read back
STORE_READ_ERRORS = (OSError, UnicodeDecodeError)


class KeyValueStore(Protocol):
    """String key-value storage, shaped like browser local storage."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def update(self, key: str, func: Callable[[Optional[str]], str]) -> None:
        """Replace the value with ``func(current)`` as one atomic step."""
        ...


class InMemoryStore:
    """Thread-safe dictionary-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def update(self, key: str, func: Callable[[Optional[str]], str]) -> None:
        with self._lock:
            self._data[key] = func(self._data.get(key))

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))


class FileStore:
    """Store that keeps each key in its own file under a directory.

    Used by the CLI so that browsing history survives between runs. Updates
    are atomic within one process only.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(value, encoding="utf-8")

    def update(self, key: str, func: Callable[[Optional[str]], str]) -> None:
        """Like ``InMemoryStore.update``; an undecodable file counts as absent."""
        with self._lock:
            try:
                current = self.get(key)
            except UnicodeDecodeError as e:
                logger.warning(
                    "Overwriting undecodable stored value",
                    extra={"key": key, "error": str(e)},
                )
                current = None
            self.set(key, func(current))


@dataclass(frozen=True)
class StorageRead:
    """Outcome of reading a JSON value from a store.

    ``value`` always holds something usable: the decoded value on success,
    the caller's default otherwise. ``error`` describes why the default was
    substituted, and is None when the key was simply absent.
    """

    value: Any
    error: Optional[str] = None
    found: bool = True

    @property
    def ok(self) -> bool:
        return self.error is None


def decode_json(raw: Optional[str], key: str, default: Any) -> StorageRead:
    """Decode a raw stored string, falling back to ``default``."""
    if raw is None:
        return StorageRead(value=default, found=False)

    try:
        return StorageRead(value=json.loads(raw))
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(
            "Discarding malformed stored value",
            extra={"key": key, "error": str(e)},
        )
        return StorageRead(value=default, error=str(e))


def read_json(store: Optional[KeyValueStore], key: str, default: Any) -> StorageRead:
    """Read and decode a JSON value, falling back to ``default``.

    Args:
        store: Store to read from. None behaves like an empty store.
        key: Storage key.
        default: Value to substitute when the key is missing or unreadable.

    Returns:
        StorageRead with the decoded value, or the default and an error.
    """
    if store is None:
        return StorageRead(value=default, found=False)

    try:
        raw = store.get(key)
    except STORE_READ_ERRORS as e:
        logger.warning(
            "Failed to read from store",
            extra={"key": key, "error": str(e), "error_type": type(e).__name__},
        )
        return StorageRead(value=default, error=str(e), found=False)

    return decode_json(raw, key, default)


def coerce_int(value: Any) -> Optional[int]:
    """Convert a stored or requested integer (ids, quantities) to int, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _product_from_snapshot(raw: Any) -> Optional[Product]:
    if not isinstance(raw, dict):
        return None
    product_id = coerce_int(raw.get("Id", raw.get("id")))
    if product_id is None:
        return None
    try:
        return Product(
            product_id=product_id,
            category=str(raw.get("category", "")),
            subcategory=str(raw.get("subcategory", "")),
            brand=str(raw.get("brand", "")),
            price=float(raw.get("price", 0)),
            rating=float(raw.get("rating", 0)),
            review_count=int(raw.get("reviewCount", raw.get("review_count", 0))),
            stock=int(raw.get("stock", 0)),
            name=str(raw.get("name", "")),
        )
    except (TypeError, ValueError):
        return None


def _unwrap_list(value: Any, *keys: str) -> List[Any]:
    """Accept a bare list or a dict wrapping one under any of ``keys``."""
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        for key in keys:
            if isinstance(value.get(key), list):
                return value[key]
    return []


@dataclass
class ShopperContext:
    """Everything the engine needs to know about one shopper.

    Attributes:
        catalog: Product catalog snapshot.
        orders: Order history snapshot.
        store: Client-side state (cart, wishlist, browsing history).
        user_id: Shopper whose orders count as purchase history. None means
            every order counts.
        history_cap: Maximum browsing history length.
    """

    catalog: Catalog
    orders: Sequence[Order] = field(default_factory=tuple)
    store: Optional[KeyValueStore] = None
    user_id: Optional[int] = None
    history_cap: int = BROWSING_HISTORY_CAP

    def cart_items(self) -> List[CartItem]:
        entries = _unwrap_list(read_json(self.store, CART_KEY, []).value, "items")

        items = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            product = _product_from_snapshot(entry.get("product"))
            product_id = coerce_int(entry.get("productId"))
            if product_id is None and product is not None:
                product_id = product.product_id
            if product_id is None:
                continue
            quantity = coerce_int(entry.get("quantity")) or 1
            items.append(CartItem(product_id=product_id, product=product, quantity=quantity))

        return items

    def wishlist_product_ids(self) -> List[int]:
        raw = read_json(self.store, WISHLIST_KEY, []).value
        ids = (coerce_int(v) for v in _unwrap_list(raw, "productIds", "items"))
        return list(dict.fromkeys(pid for pid in ids if pid is not None))

    def purchased_product_ids(self) -> List[int]:
        """Products bought by this shopper, in first-seen order."""
        purchased: Dict[int, None] = {}
        for order in self.orders:
            if self.user_id is not None and order.user_id != self.user_id:
                continue
            for pid in order.product_ids:
                purchased.setdefault(pid, None)
        return list(purchased)

    def browsing_history(self) -> List[int]:
        return self._history_ids(read_json(self.store, BROWSING_HISTORY_KEY, []).value)

    def _history_ids(self, raw: Any) -> List[int]:
        if not isinstance(raw, list):
            return []
        ids = (coerce_int(v) for v in raw)
        return list(dict.fromkeys(pid for pid in ids if pid is not None))[: self.history_cap]

    def record_view(self, product_id: int) -> List[int]:
        """Move ``product_id`` to the front of the browsing history.

        The read and the write happen in one store update, so concurrent
        views in the same session are not lost.

        Returns:
            The updated history. Failing to persist it is logged, not raised.
        """
        updated = [product_id][: self.history_cap]

        if self.store is None:
            return updated

        def prepend(raw: Optional[str]) -> str:
            history = self._history_ids(decode_json(raw, BROWSING_HISTORY_KEY, []).value)
            updated[:] = ([product_id] + [pid for pid in history if pid != product_id])[
                : self.history_cap
            ]
            return json.dumps(updated)

        try:
            self.store.update(BROWSING_HISTORY_KEY, prepend)
        except STORE_READ_ERRORS as e:
            logger.error(
                "Failed to save browsing history",
                extra={"product_id": product_id, "error": str(e)},
            )

        return updated
