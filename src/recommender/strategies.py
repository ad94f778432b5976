"""Candidate generation strategies.

Each strategy returns an ordered list of distinct, in-stock products no
longer than ``limit``. Strategies never raise for unknown product ids or
empty context; they return an empty list instead.
"""

import logging
from typing import Dict, Iterable, List, Set

from src.recommender.config import (
    DEFAULT_BROWSING_NEIGHBORS,
    DEFAULT_BROWSING_WINDOW,
    DEFAULT_CART_NEIGHBORS,
    DEFAULT_PURCHASE_NEIGHBORS,
    DEFAULT_STRATEGY_LIMIT,
    DEFAULT_WISHLIST_NEIGHBORS,
)
from src.recommender.context import ShopperContext
from src.recommender.cooccurrence import frequently_bought_together
from src.recommender.models import CandidateScores, Product
from src.recommender.similarity import similarity

logger = logging.getLogger(__name__)


def content_based(
    context: ShopperContext,
    product_id: int,
    limit: int = DEFAULT_STRATEGY_LIMIT,
) -> List[Product]:
    """Find in-stock products with the most similar attributes.

    Args:
        context: Shopper context providing the catalog.
        product_id: Reference product. Never part of the result.
        limit: Maximum number of products to return.

    Returns:
        Products ordered by similarity descending; ties keep catalog order.
    """
    if limit <= 0:
        return []

    product = context.catalog.get(product_id)
    if product is None:
        logger.debug("Unknown product, no content-based candidates", extra={"product_id": product_id})
        return []

    scored = [
        (candidate, similarity(product, candidate))
        for candidate in context.catalog
        if candidate.product_id != product.product_id and candidate.in_stock
    ]
    scored.sort(key=lambda pair: pair[1], reverse=True)

    return [candidate for candidate, _ in scored[:limit]]


def collaborative(
    context: ShopperContext,
    product_id: int,
    limit: int = DEFAULT_STRATEGY_LIMIT,
) -> List[Product]:
    """Find in-stock products frequently bought with a product.

    The most frequent companions are taken first and then resolved against
    the catalog, so unknown or sold-out companions shorten the result.
    """
    if limit <= 0:
        return []

    companions = frequently_bought_together(context.orders, product_id)[:limit]

    products = []
    for pid in companions:
        product = context.catalog.get(pid)
        if product is not None and product.in_stock:
            products.append(product)

    return products


def _expand_neighbors(
    context: ShopperContext,
    seed_ids: Iterable[int],
    exclude_ids: Set[int],
    neighbors: int,
) -> List[Product]:
    """Union of each seed's content-based neighbors, in first-seen order."""
    union: Dict[int, Product] = {}
    for seed_id in seed_ids:
        for product in content_based(context, seed_id, neighbors):
            if product.product_id not in exclude_ids:
                union.setdefault(product.product_id, product)
    return list(union.values())


def cart_based(
    context: ShopperContext,
    limit: int = DEFAULT_STRATEGY_LIMIT,
    neighbors: int = DEFAULT_CART_NEIGHBORS,
) -> List[Product]:
    """Recommend products similar to what is in the cart."""
    if limit <= 0:
        return []

    cart_ids = [item.product_id for item in context.cart_items()]
    if not cart_ids:
        return []

    return _expand_neighbors(context, cart_ids, set(cart_ids), neighbors)[:limit]


def wishlist_based(
    context: ShopperContext,
    limit: int = DEFAULT_STRATEGY_LIMIT,
    neighbors: int = DEFAULT_WISHLIST_NEIGHBORS,
) -> List[Product]:
    """Recommend products similar to wishlisted ones."""
    if limit <= 0:
        return []

    wishlist_ids = context.wishlist_product_ids()
    if not wishlist_ids:
        return []

    return _expand_neighbors(context, wishlist_ids, set(wishlist_ids), neighbors)[:limit]


def purchase_history_based(
    context: ShopperContext,
    limit: int = DEFAULT_STRATEGY_LIMIT,
    neighbors: int = DEFAULT_PURCHASE_NEIGHBORS,
) -> List[Product]:
    """Recommend products similar to many past purchases.

    A candidate earns one point per purchased product it neighbors, and
    candidates are ranked by points.
    """
    if limit <= 0:
        return []

    purchased_ids = context.purchased_product_ids()
    if not purchased_ids:
        return []

    purchased = set(purchased_ids)
    counts = CandidateScores()
    for pid in purchased_ids:
        for product in content_based(context, pid, neighbors):
            if product.product_id not in purchased:
                counts.add(product)

    return counts.ranked()[:limit]


def browsing_history_based(
    context: ShopperContext,
    limit: int = DEFAULT_STRATEGY_LIMIT,
    neighbors: int = DEFAULT_BROWSING_NEIGHBORS,
    window: int = DEFAULT_BROWSING_WINDOW,
) -> List[Product]:
    """Recommend products similar to the most recently viewed ones.

    Only the ``window`` most recent views seed candidates, but anything in
    the history is excluded.
    """
    if limit <= 0:
        return []

    history = context.browsing_history()
    if not history:
        return []

    return _expand_neighbors(context, history[:window], set(history), neighbors)[:limit]
