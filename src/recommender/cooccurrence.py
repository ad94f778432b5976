"""Co-purchase counts derived from order history."""

import logging
from collections import Counter
from typing import Iterable, List

from src.recommender.models import Order

logger = logging.getLogger(__name__)


def co_purchase_counts(orders: Iterable[Order], product_id: int) -> Counter:
    """Count how often each product shares an order with ``product_id``.

    Every line item of an order containing the product counts once, so a
    product listed twice in the same order counts twice. Keys are inserted in
    the order they are first observed.
    """
    counts: Counter = Counter()

    for order in orders:
        if not order.contains(product_id):
            continue
        for item in order.items:
            if item.product_id != product_id:
                counts[item.product_id] += 1

    return counts


def frequently_bought_together(orders: Iterable[Order], product_id: int) -> List[int]:
    """Get products purchased alongside a product, most frequent first.

    Args:
        orders: Order history to scan.
        product_id: Product to find companions for.

    Returns:
        Product ids ordered by co-purchase count descending. Ties keep the
        order in which the products were first seen. Empty when the product
        was never bought with anything else.
    """
    counts = co_purchase_counts(orders, product_id)

    # most_common() is a stable sort over insertion order
    companions = [pid for pid, _ in counts.most_common()]

    logger.debug(
        "Computed co-purchases",
        extra={"product_id": product_id, "num_companions": len(companions)},
    )

    return companions
