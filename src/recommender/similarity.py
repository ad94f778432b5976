"""Attribute similarity between two catalog products.

The score is additive over independent factors with a fixed point budget:

    same category       40
    same subcategory    20
    same brand          15
    price closeness     15 (<10% apart) / 10 (<30% apart)
    rating closeness    10 (<0.5 apart) / 5 (<1.0 apart)

so any pair scores between 0 and 100.
"""

from src.recommender.models import Product

CATEGORY_POINTS = 40
SUBCATEGORY_POINTS = 20
BRAND_POINTS = 15

CLOSE_PRICE_RATIO = 0.10
NEAR_PRICE_RATIO = 0.30
CLOSE_PRICE_POINTS = 15
NEAR_PRICE_POINTS = 10

CLOSE_RATING_DIFF = 0.5
NEAR_RATING_DIFF = 1.0
CLOSE_RATING_POINTS = 10
NEAR_RATING_POINTS = 5

MAX_SIMILARITY = (
    CATEGORY_POINTS + SUBCATEGORY_POINTS + BRAND_POINTS
    + CLOSE_PRICE_POINTS + CLOSE_RATING_POINTS
)


def _price_points(price_a: float, price_b: float) -> int:
    avg_price = (price_a + price_b) / 2
    if avg_price <= 0:
        # Relative difference is undefined for two free products
        return 0

    variation = abs(price_a - price_b) / avg_price
    if variation < CLOSE_PRICE_RATIO:
        return CLOSE_PRICE_POINTS
    if variation < NEAR_PRICE_RATIO:
        return NEAR_PRICE_POINTS
    return 0


def _rating_points(rating_a: float, rating_b: float) -> int:
    diff = abs(rating_a - rating_b)
    if diff < CLOSE_RATING_DIFF:
        return CLOSE_RATING_POINTS
    if diff < NEAR_RATING_DIFF:
        return NEAR_RATING_POINTS
    return 0


def similarity(product_a: Product, product_b: Product) -> int:
    """Score how alike two products are, from 0 to 100.

    Args:
        product_a: First product.
        product_b: Second product.

    Returns:
        Integer similarity score. Comparing attributes is commutative, so
        ``similarity(a, b) == similarity(b, a)``.

    Example:
        >>> a = Product(1, "Electronics", "Audio", "Acme", 100.0, 4.5, 10, 3)
        >>> b = Product(2, "Electronics", "Video", "Acme", 105.0, 4.6, 10, 3)
        >>> similarity(a, b)
        80
    """
    score = 0

    if product_a.category == product_b.category:
        score += CATEGORY_POINTS

    if product_a.subcategory == product_b.subcategory:
        score += SUBCATEGORY_POINTS

    if product_a.brand == product_b.brand:
        score += BRAND_POINTS

    score += _price_points(product_a.price, product_b.price)
    score += _rating_points(product_a.rating, product_b.rating)

    return score
