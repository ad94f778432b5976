"""Module for getting recommendations.

Public entry points of the engine. Each takes the shopper's context
explicitly, times the call and logs the outcome with structured fields.
"""

import logging
import time
from typing import Any, Callable, Iterable, List, Optional, Union

from src.recommender.config import (
    DEFAULT_PERSONALIZED_LIMIT,
    DEFAULT_SIMILAR_LIMIT,
    DEFAULT_STRATEGY_LIMIT,
    EngineConfig,
)
from src.recommender.context import ShopperContext, coerce_int
from src.recommender.hybrid import HybridRecommender, Recommendations
from src.recommender.models import Product
from src.recommender.strategies import cart_based, purchase_history_based, wishlist_based
from src.recommender.trending import trending_products

# Configure module logger
logger = logging.getLogger(__name__)


def _timed(operation: str, run: Callable[[], Any], **fields: Any) -> Any:
    start_time = time.time()

    logger.debug("Starting recommendation generation", extra={"operation": operation, **fields})

    result = run()
    products = result[0] if isinstance(result, tuple) else result
    total_time = time.time() - start_time

    logger.info(
        "Recommendations generated",
        extra={
            "operation": operation,
            "num_recommendations": len(products),
            "total_time_ms": round(total_time * 1000, 2),
            **fields,
        },
    )

    return result


def get_personalized_recommendations(
    context: ShopperContext,
    limit: int = DEFAULT_PERSONALIZED_LIMIT,
    config: Optional[EngineConfig] = None,
    return_scores: bool = False,
) -> Recommendations:
    """Get recommendations blended from cart, wishlist and history.

    Args:
        context: The shopper's context.
        limit: Number of products wanted.
        config: Weights and limits; defaults to ``EngineConfig()``.
        return_scores: If True, return ``(products, breakdown)``.

    Returns:
        Up to ``limit`` distinct in-stock products. Shoppers without any
        context get trending products.

    Example:
        >>> context = ShopperContext(catalog=catalog, orders=orders, store=store)
        >>> products = get_personalized_recommendations(context, limit=12)
    """
    recommender = HybridRecommender(config)
    return _timed(
        "personalized",
        lambda: recommender.personalized(context, limit, return_scores=return_scores),
        limit=limit,
        user_id=context.user_id,
    )


def get_similar_products(
    context: ShopperContext,
    product_id: Union[int, str],
    limit: int = DEFAULT_SIMILAR_LIMIT,
    config: Optional[EngineConfig] = None,
    return_scores: bool = False,
) -> Recommendations:
    """Get products related to ``product_id`` and record it as viewed.

    Unknown products fall back to trending products.
    """
    recommender = HybridRecommender(config)
    return _timed(
        "similar",
        lambda: recommender.similar(context, product_id, limit, return_scores=return_scores),
        limit=limit,
        product_id=str(product_id),
    )


def get_cart_based_recommendations(
    context: ShopperContext,
    limit: int = DEFAULT_STRATEGY_LIMIT,
) -> List[Product]:
    """Get products similar to the cart contents."""
    return _timed("cart", lambda: cart_based(context, limit), limit=limit)


def get_wishlist_based_recommendations(
    context: ShopperContext,
    limit: int = DEFAULT_STRATEGY_LIMIT,
) -> List[Product]:
    """Get products similar to the wishlist."""
    return _timed("wishlist", lambda: wishlist_based(context, limit), limit=limit)


def get_purchase_history_recommendations(
    context: ShopperContext,
    limit: int = DEFAULT_STRATEGY_LIMIT,
) -> List[Product]:
    """Get products similar to past purchases."""
    return _timed(
        "purchase_history",
        lambda: purchase_history_based(context, limit),
        limit=limit,
        user_id=context.user_id,
    )


def get_trending_products(
    context: ShopperContext,
    limit: int = DEFAULT_STRATEGY_LIMIT,
    exclude_ids: Iterable[int] = (),
) -> List[Product]:
    """Get the most popular in-stock products, leaving out ``exclude_ids``."""
    excluded = list(exclude_ids)
    return _timed(
        "trending",
        lambda: trending_products(context.catalog, limit, excluded),
        limit=limit,
        num_excluded=len(excluded),
    )


def add_to_browsing_history(context: ShopperContext, product_id: Union[int, str]) -> List[int]:
    """Record a product view.

    Repeating the call for the same id only moves it to the front.

    Returns:
        The updated browsing history, most recent first. Non-numeric ids are
        ignored and the current history is returned.
    """
    pid = coerce_int(product_id)
    if pid is None:
        logger.warning(f"Ignoring non-numeric product id {product_id!r}")
        return context.browsing_history()

    history = context.record_view(pid)
    logger.debug("Recorded product view", extra={"product_id": pid, "history_size": len(history)})
    return history
