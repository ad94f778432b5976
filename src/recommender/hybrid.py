"""Hybrid recommendation module.

Blends the candidate strategies by weighted sum and pads short results with
trending products.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from src.recommender.config import (
    DEFAULT_PERSONALIZED_LIMIT,
    DEFAULT_SIMILAR_LIMIT,
    EngineConfig,
)
from src.recommender.context import ShopperContext, coerce_int
from src.recommender.models import CandidateScores, Product
from src.recommender.strategies import (
    browsing_history_based,
    cart_based,
    collaborative,
    content_based,
    purchase_history_based,
    wishlist_based,
)
from src.recommender.trending import trending_products

# Configure module logger
logger = logging.getLogger(__name__)

Strategy = Callable[[], List[Product]]
Recommendations = Union[List[Product], Tuple[List[Product], Dict[str, Any]]]


class HybridRecommender:
    """Combines context, collaborative and content-based recommendations.

    Weights are applied as-is: raw strategy memberships are summed without
    normalization, so a product suggested by several strategies ranks above
    one suggested by a single heavier strategy only if its weights add up to
    more.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

        logger.info(
            f"Initialized HybridRecommender: "
            f"cart={self.config.cart_weight}, "
            f"wishlist={self.config.wishlist_weight}, "
            f"purchases={self.config.purchase_weight}, "
            f"browsing={self.config.browsing_weight}, "
            f"collaborative={self.config.collaborative_weight}, "
            f"content={self.config.content_weight}"
        )

    def _blend(
        self,
        strategies: Sequence[Tuple[str, Strategy, float]],
    ) -> Tuple[CandidateScores, Dict[str, List[int]]]:
        """Run strategies in order and accumulate weighted scores."""
        scores = CandidateScores()
        contributions: Dict[str, List[int]] = {}

        for name, strategy, weight in strategies:
            products = strategy()
            contributions[name] = [p.product_id for p in products]
            scores.add_all(products, weight)

        return scores, contributions

    def _finalize(
        self,
        context: ShopperContext,
        scores: CandidateScores,
        limit: int,
        exclude_ids: Sequence[int] = (),
    ) -> Tuple[List[Product], int]:
        """Rank candidates and pad with trending products up to ``limit``.

        Returns:
            The final list and how many entries came from trending.
        """
        ranked = scores.ranked()

        if len(ranked) >= limit:
            return ranked[:limit], 0

        selected_ids = list(exclude_ids) + [p.product_id for p in ranked]
        padding = trending_products(context.catalog, limit - len(ranked), selected_ids)

        if padding:
            logger.debug(
                "Padded recommendations with trending products",
                extra={"personalized": len(ranked), "trending": len(padding)},
            )

        return ranked + padding, len(padding)

    def _breakdown(
        self,
        recommendations: List[Product],
        scores: CandidateScores,
        contributions: Dict[str, List[int]],
        weights: Dict[str, float],
        trending_count: int,
        method: str,
    ) -> Dict[str, Any]:
        return {
            "method": method,
            "strategy_candidates": contributions,
            "hybrid_scores": {
                p.product_id: scores.score(p.product_id) for p in recommendations
            },
            "weights": weights,
            "trending_count": trending_count,
        }

    def personalized(
        self,
        context: ShopperContext,
        limit: int = DEFAULT_PERSONALIZED_LIMIT,
        return_scores: bool = False,
    ) -> Recommendations:
        """Get recommendations for a shopper's cart, wishlist and history.

        Args:
            context: The shopper's context.
            limit: Number of products wanted.
            return_scores: If True, also return a score breakdown.

        Returns:
            Up to ``limit`` products, optionally with a breakdown dict.
        """
        cfg = self.config
        if limit <= 0:
            return ([], {"method": "personalized"}) if return_scores else []

        logger.info(f"Generating personalized recommendations, limit={limit}")

        strategies = [
            ("cart", lambda: cart_based(context, cfg.context_limit, cfg.cart_neighbors), cfg.cart_weight),
            (
                "wishlist",
                lambda: wishlist_based(context, cfg.context_limit, cfg.wishlist_neighbors),
                cfg.wishlist_weight,
            ),
            (
                "purchase_history",
                lambda: purchase_history_based(context, cfg.context_limit, cfg.purchase_neighbors),
                cfg.purchase_weight,
            ),
            (
                "browsing_history",
                lambda: browsing_history_based(
                    context, cfg.context_limit, cfg.browsing_neighbors, cfg.browsing_window
                ),
                cfg.browsing_weight,
            ),
        ]

        scores, contributions = self._blend(strategies)
        recommendations, trending_count = self._finalize(context, scores, limit)

        logger.info(
            f"Generated {len(recommendations)} personalized recommendations "
            f"({trending_count} from trending)"
        )

        if return_scores:
            weights = {name: weight for name, _, weight in strategies}
            return recommendations, self._breakdown(
                recommendations, scores, contributions, weights, trending_count, "personalized"
            )
        return recommendations

    def similar(
        self,
        context: ShopperContext,
        product_id: Union[int, str],
        limit: int = DEFAULT_SIMILAR_LIMIT,
        return_scores: bool = False,
    ) -> Recommendations:
        """Get products related to one product.

        Records the product as viewed before scoring. Unknown products get
        no collaborative or content-based candidates, so the result is pure
        trending.
        """
        cfg = self.config
        pid = coerce_int(product_id)

        if pid is not None:
            context.record_view(pid)
        else:
            logger.warning(f"Ignoring non-numeric product id {product_id!r}")

        if limit <= 0:
            return ([], {"method": "similar"}) if return_scores else []

        logger.info(f"Generating similar products for product {product_id}, limit={limit}")

        strategies: List[Tuple[str, Strategy, float]] = []
        if pid is not None:
            strategies = [
                (
                    "collaborative",
                    lambda: collaborative(context, pid, cfg.collaborative_limit),
                    cfg.collaborative_weight,
                ),
                (
                    "content",
                    lambda: content_based(context, pid, cfg.content_limit),
                    cfg.content_weight,
                ),
            ]

        scores, contributions = self._blend(strategies)
        exclude = [pid] if pid is not None else []
        recommendations, trending_count = self._finalize(context, scores, limit, exclude)

        logger.info(
            f"Generated {len(recommendations)} similar products for product {product_id} "
            f"({trending_count} from trending)"
        )

        if return_scores:
            weights = {
                "collaborative": cfg.collaborative_weight,
                "content": cfg.content_weight,
            }
            return recommendations, self._breakdown(
                recommendations, scores, contributions, weights, trending_count, "similar"
            )
        return recommendations
