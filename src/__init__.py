"""HavenRec: product recommendations for the Market Haven storefront.

This package provides a backend service that ranks catalog products for a
shopper by blending attribute similarity, co-purchase patterns, the shopper's
cart, wishlist and history, and a popularity fallback.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: Scoring strategies and the hybrid recommender
"""

__version__ = "0.1.0"
