"""CLI script for getting product recommendations.

Useful for testing and evaluation. Loads the catalog and orders from a data
directory, keeps shopper state (cart, wishlist, browsing history) in a state
directory, and prints recommendations to the console.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.recommender import infer
from src.recommender.config import DEFAULT_DATA_DIR
from src.recommender.context import FileStore, ShopperContext
from src.recommender.models import Product
from src.recommender.utils import load_data_snapshot

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = ".havenrec"


def get_recommendations(
    command: str,
    context: ShopperContext,
    limit: int,
    product_id: Optional[str] = None,
    exclude: Optional[List[int]] = None,
    explain: bool = False,
) -> Tuple[List[Product], Optional[Dict]]:
    """Run one engine operation.

    Args:
        command: Operation name (personalized, similar, trending, cart,
            wishlist, purchases)
        context: Shopper context
        limit: Number of products to return
        product_id: Source product for "similar"
        exclude: Product ids to leave out of "trending"
        explain: If True, also return score breakdown

    Returns:
        Tuple of (products, optional scores dict)
    """
    if command == "personalized":
        products, scores = infer.get_personalized_recommendations(context, limit, return_scores=True)
        return products, scores if explain else None

    if command == "similar":
        products, scores = infer.get_similar_products(context, product_id, limit, return_scores=True)
        return products, scores if explain else None

    if command == "trending":
        return infer.get_trending_products(context, limit, exclude or []), None

    if command == "cart":
        return infer.get_cart_based_recommendations(context, limit), None

    if command == "wishlist":
        return infer.get_wishlist_based_recommendations(context, limit), None

    if command == "purchases":
        return infer.get_purchase_history_recommendations(context, limit), None

    raise ValueError(f"Unknown command: {command}")


def print_products(products: List[Product]) -> None:
    for rank, product in enumerate(products, start=1):
        print(
            f"  {rank:>2}. [{product.product_id}] {product.name or '(unnamed)'} - "
            f"{product.brand}, {product.category}/{product.subcategory}, "
            f"${product.price:.2f}, rating {product.rating} ({product.review_count} reviews)"
        )


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations from the HavenRec engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/recommend_cli.py personalized
  python scripts/recommend_cli.py similar 42 --limit 5 --explain
  python scripts/recommend_cli.py trending --exclude 3 7
  python scripts/recommend_cli.py purchases --user-id 12
  python scripts/recommend_cli.py history
        """
    )

    parser.add_argument(
        "command",
        choices=["personalized", "similar", "trending", "cart", "wishlist", "purchases", "history"],
        help="Recommendation operation to run"
    )

    parser.add_argument(
        "product_id",
        nargs="?",
        help="Source product id (required for 'similar')"
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Number of products to return (default depends on the command)"
    )

    parser.add_argument(
        "--exclude",
        type=int,
        nargs="*",
        default=[],
        help="Product ids to exclude from trending"
    )

    parser.add_argument(
        "--user-id",
        type=int,
        default=None,
        help="Limit purchase history to this user's orders"
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=DEFAULT_DATA_DIR,
        help=f"Directory containing products.json and orders.json (default: {DEFAULT_DATA_DIR})"
    )

    parser.add_argument(
        "--state-dir",
        type=str,
        default=DEFAULT_STATE_DIR,
        help=f"Directory holding cart, wishlist and browsing history (default: {DEFAULT_STATE_DIR})"
    )

    parser.add_argument(
        "--explain",
        action="store_true",
        help="Show score breakdown for recommendations"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    if args.command == "similar" and args.product_id is None:
        parser.error("'similar' requires a product_id")

    try:
        catalog, orders = load_data_snapshot(args.data_dir)
    except FileNotFoundError as e:
        print(f"Error: Catalog not found in {args.data_dir}", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    context = ShopperContext(
        catalog=catalog,
        orders=orders,
        store=FileStore(args.state_dir),
        user_id=args.user_id,
    )

    if args.command == "history":
        print(f"\nBrowsing history: {context.browsing_history()}\n")
        return

    default_limits = {"personalized": 12, "similar": 8}
    limit = args.limit if args.limit is not None else default_limits.get(args.command, 10)

    products, scores = get_recommendations(
        command=args.command,
        context=context,
        limit=limit,
        product_id=args.product_id,
        exclude=args.exclude,
        explain=args.explain,
    )

    title = args.command if args.product_id is None else f"{args.command} {args.product_id}"
    print(f"\nRecommendations ({title}): {len(products)} products")
    print_products(products)

    if args.explain and scores:
        print("\nScore breakdown:")
        print(json.dumps(scores, indent=2, default=str))

    print()


if __name__ == "__main__":
    main()
