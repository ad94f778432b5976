"""Engine configuration.

Strategy weights, per-strategy limits and neighbor counts, the storage keys
shared with the storefront, and environment-driven settings.
"""

import os
from dataclasses import dataclass

# Environment settings
DEFAULT_DATA_DIR = os.environ.get("HAVENREC_DATA_DIR", "data")
LOG_LEVEL = os.environ.get("HAVENREC_LOG_LEVEL", "INFO").upper()

PRODUCTS_FILENAME = "products.json"
ORDERS_FILENAME = "orders.json"

# Keys the storefront persists client state under
CART_KEY = "market-haven-cart"
WISHLIST_KEY = "market-haven-wishlist"
BROWSING_HISTORY_KEY = "browsing_history"

BROWSING_HISTORY_CAP = 20

# Neighbor counts used when expanding context items through content similarity
DEFAULT_CART_NEIGHBORS = 5
DEFAULT_WISHLIST_NEIGHBORS = 5
DEFAULT_PURCHASE_NEIGHBORS = 3
DEFAULT_BROWSING_NEIGHBORS = 3
DEFAULT_BROWSING_WINDOW = 5

DEFAULT_PERSONALIZED_LIMIT = 12
DEFAULT_SIMILAR_LIMIT = 8
DEFAULT_STRATEGY_LIMIT = 10


@dataclass
class EngineConfig:
    """Weights and limits for the hybrid recommender.

    Attributes:
        cart_weight: Weight of each cart-based candidate.
        wishlist_weight: Weight of each wishlist-based candidate.
        purchase_weight: Weight of each purchase-history candidate.
        browsing_weight: Weight of each browsing-history candidate.
        context_limit: Candidates requested from each context strategy.
        collaborative_weight: Weight of frequently-bought-together candidates.
        collaborative_limit: Candidates requested from collaborative filtering.
        content_weight: Weight of attribute-similar candidates.
        content_limit: Candidates requested from content-based filtering.
    """

    cart_weight: float = 3.0
    wishlist_weight: float = 2.5
    purchase_weight: float = 2.0
    browsing_weight: float = 1.5
    context_limit: int = 8

    collaborative_weight: float = 3.0
    collaborative_limit: int = 4
    content_weight: float = 2.0
    content_limit: int = 6

    cart_neighbors: int = DEFAULT_CART_NEIGHBORS
    wishlist_neighbors: int = DEFAULT_WISHLIST_NEIGHBORS
    purchase_neighbors: int = DEFAULT_PURCHASE_NEIGHBORS
    browsing_neighbors: int = DEFAULT_BROWSING_NEIGHBORS
    browsing_window: int = DEFAULT_BROWSING_WINDOW

    def __post_init__(self) -> None:
        weights = (
            self.cart_weight,
            self.wishlist_weight,
            self.purchase_weight,
            self.browsing_weight,
            self.collaborative_weight,
            self.content_weight,
        )
        if any(w < 0 for w in weights):
            raise ValueError("Strategy weights must be non-negative")
