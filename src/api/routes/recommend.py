"""Recommendation endpoints for the HavenRec API.

This module provides API endpoints for personalized recommendations, similar
products, context-based suggestions and trending products. Shopper state
(cart, wishlist, browsing history) is kept per ``session_id``.
"""

import logging
import threading
import time
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Query
from pydantic import BaseModel, Field

from src.api.exceptions import CatalogLoadError, CatalogNotFoundError, HavenRecException, RecommendationError
from src.api.metrics import metrics_service
from src.recommender import infer
from src.recommender.config import CART_KEY, DEFAULT_DATA_DIR, WISHLIST_KEY
from src.recommender.context import InMemoryStore, ShopperContext
from src.recommender.models import Product
from src.recommender.utils import check_data_exists, load_data_snapshot

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)

DEFAULT_SESSION_ID = "anonymous"
MAX_LIMIT = 100
MAX_SESSIONS = 10000

# Cache for loaded catalog and orders
_data_cache: Optional[Dict[str, Any]] = None
_data_lock = threading.Lock()

# Per-session client state
_session_stores: "OrderedDict[str, InMemoryStore]" = OrderedDict()
_session_lock = threading.Lock()


class ProductResponse(BaseModel):
    """A recommended product."""

    id: int
    name: str = ""
    category: str
    subcategory: str = ""
    brand: str
    price: float
    rating: float
    review_count: int
    stock: int


class RecommendationResponse(BaseModel):
    """Response model for recommendation requests.

    Attributes:
        strategy: Which operation produced the list.
        recommendations: Recommended products, best first.
        scores: Score breakdown when ``explain=true``.
    """

    strategy: str = Field(..., description="Operation that produced the list")
    recommendations: List[ProductResponse] = Field(
        ..., description="Recommended products, best first"
    )
    scores: Optional[Dict[str, Any]] = Field(
        default=None, description="Score breakdown (explain mode only)"
    )


class HistoryResponse(BaseModel):
    session_id: str
    history: List[int]


class SessionStateResponse(BaseModel):
    """Product ids the session's cart or wishlist now holds."""

    session_id: str
    product_ids: List[int]


def get_session_store(session_id: str, create: bool = True) -> InMemoryStore:
    """Get the state store for a session.

    With ``create=False`` an unknown session gets an empty store that is not
    registered, so read-only requests do not grow the registry. The registry
    keeps the ``MAX_SESSIONS`` most recently used sessions.
    """
    with _session_lock:
        store = _session_stores.get(session_id)
        if store is not None:
            _session_stores.move_to_end(session_id)
            return store
        if not create:
            return InMemoryStore()

        store = InMemoryStore()
        _session_stores[session_id] = store
        while len(_session_stores) > MAX_SESSIONS:
            evicted, _ = _session_stores.popitem(last=False)
            logger.debug("Evicted session state", extra={"session_id": evicted})
        return store


def reset_sessions() -> None:
    with _session_lock:
        _session_stores.clear()


def load_data_if_needed(data_dir: Optional[str] = None) -> Dict[str, Any]:
    """Load catalog and orders from disk if not already loaded.

    Uses a module-level cache to avoid reloading the data on every request.
    Concurrent first requests wait for a single load.

    Raises:
        CatalogNotFoundError: If the catalog file is missing.
        CatalogLoadError: If the data cannot be parsed.
    """
    global _data_cache

    cached = _data_cache
    if cached is not None:
        logger.debug("Using cached data")
        return cached

    with _data_lock:
        if _data_cache is not None:
            return _data_cache

        data_dir = data_dir or DEFAULT_DATA_DIR

        if not check_data_exists(data_dir):
            logger.error(f"Catalog not found in {data_dir}")
            raise CatalogNotFoundError(data_dir)

        try:
            logger.info(f"Loading data from {data_dir}")
            catalog, orders = load_data_snapshot(data_dir)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load data: {e}", exc_info=True)
            raise CatalogLoadError(data_dir, e) from e

        _data_cache = {
            "catalog": catalog,
            "orders": orders,
            "data_dir": data_dir,
            "loaded_at": datetime.now(timezone.utc).isoformat(),
        }

        logger.info("Data loaded successfully")
        return _data_cache


def get_data_status() -> Dict[str, Any]:
    """Report what is loaded without triggering a load."""
    cached = _data_cache
    if cached is None:
        return {
            "data_loaded": False,
            "timestamp_last_loaded": None,
            "num_products": 0,
            "num_orders": 0,
        }
    return {
        "data_loaded": True,
        "timestamp_last_loaded": cached["loaded_at"],
        "num_products": len(cached["catalog"]),
        "num_orders": len(cached["orders"]),
    }


def build_context(
    session_id: str,
    user_id: Optional[int] = None,
    create_session: bool = False,
) -> ShopperContext:
    """Build a shopper context. Only routes that write state create a session."""
    data = load_data_if_needed()
    return ShopperContext(
        catalog=data["catalog"],
        orders=data["orders"],
        store=get_session_store(session_id, create=create_session),
        user_id=user_id,
    )


def _to_response(
    strategy: str,
    products: List[Product],
    scores: Optional[Dict[str, Any]] = None,
) -> RecommendationResponse:
    return RecommendationResponse(
        strategy=strategy,
        recommendations=[ProductResponse(**p.to_dict()) for p in products],
        scores=scores,
    )


def _run(
    operation: str,
    run: Callable[[], Any],
    explain: bool = False,
    subject: Optional[Any] = None,
) -> RecommendationResponse:
    """Run an engine call, recording metrics and wrapping unexpected errors."""
    start_time = time.time()

    try:
        result = run()
    except HavenRecException:
        raise
    except Exception as e:
        logger.error(f"Error generating {operation} recommendations: {e}", exc_info=True)
        raise RecommendationError(operation, e, subject) from e

    products, scores = result if isinstance(result, tuple) else (result, None)
    padded = bool(scores and scores.get("trending_count"))

    metrics_service.record_call(operation, (time.time() - start_time) * 1000, padded=padded)

    return _to_response(operation, products, scores if explain else None)


@router.get("/personalized", response_model=RecommendationResponse)
def personalized_recommendations(
    session_id: str = DEFAULT_SESSION_ID,
    user_id: Optional[int] = None,
    limit: int = Query(12, ge=1, le=MAX_LIMIT),
    explain: bool = False,
) -> RecommendationResponse:
    """Get recommendations from the session's cart, wishlist and history.

    Example:
        GET /recommend/personalized?session_id=abc&limit=12
    """
    context = build_context(session_id, user_id)
    return _run(
        "personalized",
        lambda: infer.get_personalized_recommendations(context, limit, return_scores=True),
        explain=explain,
        subject=session_id,
    )


@router.get("/similar/{product_id}", response_model=RecommendationResponse)
def similar_products(
    product_id: str,
    session_id: str = DEFAULT_SESSION_ID,
    limit: int = Query(8, ge=1, le=MAX_LIMIT),
    explain: bool = False,
) -> RecommendationResponse:
    """Get products related to a product and record it as viewed.

    Unknown products return trending products instead of an error.

    Example:
        GET /recommend/similar/42?session_id=abc
    """
    context = build_context(session_id, create_session=True)
    return _run(
        "similar",
        lambda: infer.get_similar_products(context, product_id, limit, return_scores=True),
        explain=explain,
        subject=product_id,
    )


@router.get("/cart", response_model=RecommendationResponse)
def cart_recommendations(
    session_id: str = DEFAULT_SESSION_ID,
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
) -> RecommendationResponse:
    """Get products similar to the session's cart."""
    context = build_context(session_id)
    return _run("cart", lambda: infer.get_cart_based_recommendations(context, limit), subject=session_id)


@router.get("/wishlist", response_model=RecommendationResponse)
def wishlist_recommendations(
    session_id: str = DEFAULT_SESSION_ID,
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
) -> RecommendationResponse:
    """Get products similar to the session's wishlist."""
    context = build_context(session_id)
    return _run(
        "wishlist", lambda: infer.get_wishlist_based_recommendations(context, limit), subject=session_id
    )


@router.get("/purchase-history", response_model=RecommendationResponse)
def purchase_history_recommendations(
    user_id: Optional[int] = None,
    session_id: str = DEFAULT_SESSION_ID,
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
) -> RecommendationResponse:
    """Get products similar to past purchases.

    Without ``user_id`` every order in the history counts.
    """
    context = build_context(session_id, user_id)
    return _run(
        "purchase_history",
        lambda: infer.get_purchase_history_recommendations(context, limit),
        subject=user_id,
    )


@router.get("/trending", response_model=RecommendationResponse)
def trending(
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    exclude: Optional[List[int]] = Query(None),
) -> RecommendationResponse:
    """Get the most popular in-stock products.

    Example:
        GET /recommend/trending?limit=5&exclude=3&exclude=7
    """
    context = build_context(DEFAULT_SESSION_ID)
    return _run("trending", lambda: infer.get_trending_products(context, limit, exclude or []))


@router.get("/history", response_model=HistoryResponse)
def browsing_history(session_id: str = DEFAULT_SESSION_ID) -> HistoryResponse:
    """Get the session's browsing history, most recent first."""
    context = build_context(session_id)
    return HistoryResponse(session_id=session_id, history=context.browsing_history())


@router.post("/history/{product_id}", response_model=HistoryResponse)
def record_view(product_id: str, session_id: str = DEFAULT_SESSION_ID) -> HistoryResponse:
    """Record a product view in the session's browsing history."""
    context = build_context(session_id, create_session=True)
    history = infer.add_to_browsing_history(context, product_id)
    return HistoryResponse(session_id=session_id, history=history)


@router.put("/cart", response_model=SessionStateResponse)
def set_cart(
    payload: Union[List[Any], Dict[str, Any]] = Body(...),
    session_id: str = DEFAULT_SESSION_ID,
) -> SessionStateResponse:
    """Replace the session's cart.

    Accepts the storefront's cart layout: a list of ``{"productId", "quantity"}``
    entries, or ``{"items": [...]}``. Entries without a usable id are ignored.

    Example:
        PUT /recommend/cart?session_id=abc  [{"productId": 1, "quantity": 2}]
    """
    context = build_context(session_id, create_session=True)
    context.store.set_json(CART_KEY, payload)
    product_ids = [item.product_id for item in context.cart_items()]
    logger.info("Cart updated", extra={"session_id": session_id, "count": len(product_ids)})
    return SessionStateResponse(session_id=session_id, product_ids=product_ids)


@router.put("/wishlist", response_model=SessionStateResponse)
def set_wishlist(
    payload: Union[List[Any], Dict[str, Any]] = Body(...),
    session_id: str = DEFAULT_SESSION_ID,
) -> SessionStateResponse:
    """Replace the session's wishlist with a list of ids or ``{"productIds": [...]}``."""
    context = build_context(session_id, create_session=True)
    context.store.set_json(WISHLIST_KEY, payload)
    product_ids = context.wishlist_product_ids()
    logger.info("Wishlist updated", extra={"session_id": session_id, "count": len(product_ids)})
    return SessionStateResponse(session_id=session_id, product_ids=product_ids)


@router.post("/reload-data")
def reload_data() -> Dict[str, str]:
    """Reload catalog and orders from disk.

    Useful when the data files have been regenerated and the server should
    pick them up without restarting.
    """
    global _data_cache

    logger.info("Reloading data...")
    with _data_lock:
        _data_cache = None

    load_data_if_needed()
    return {"status": "Data reloaded successfully"}
