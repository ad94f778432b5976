"""Popularity ranking used to pad short recommendation lists."""

import logging
from typing import Iterable, List, Optional

import numpy as np

from src.recommender.models import Catalog, Product

logger = logging.getLogger(__name__)


def popularity_scores(products: List[Product]) -> np.ndarray:
    """Score products as ``rating * ln(review_count + 1)``.

    The log dampens very large review counts while still rewarding volume.
    """
    ratings = np.array([p.rating for p in products], dtype=np.float64)
    review_counts = np.array([p.review_count for p in products], dtype=np.float64)
    return ratings * np.log1p(review_counts)


def trending_products(
    catalog: Catalog,
    limit: int = 10,
    exclude_ids: Optional[Iterable[int]] = None,
) -> List[Product]:
    """Get the most popular in-stock products.

    Args:
        catalog: Catalog to rank.
        limit: Maximum number of products to return.
        exclude_ids: Product ids to leave out.

    Returns:
        Products ordered by popularity descending. Ties keep catalog order.
        Unreviewed products score zero and are never returned.
    """
    if limit <= 0:
        return []

    excluded = set(exclude_ids or ())
    candidates = [
        p for p in catalog
        if p.in_stock and p.review_count > 0 and p.product_id not in excluded
    ]
    if not candidates:
        logger.debug("No trending candidates", extra={"excluded": len(excluded)})
        return []

    scores = popularity_scores(candidates)
    order = np.argsort(-scores, kind="stable")[:limit]

    return [candidates[int(idx)] for idx in order]
