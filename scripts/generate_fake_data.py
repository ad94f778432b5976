"""Generate a fake catalog and order history for testing and development.

This module creates synthetic storefront data in the same JSON layout as the
storefront's mock data: ``products.json`` (one record per product) and
``orders.json`` (orders with nested line items).

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_catalog
        products = generate_fake_catalog(num_products=50)
"""

import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

# Default configuration constants
DEFAULT_NUM_PRODUCTS = 60
DEFAULT_NUM_ORDERS = 120
DEFAULT_NUM_USERS = 25
DEFAULT_MAX_ITEMS_PER_ORDER = 4
DEFAULT_DAYS_BACK = 90
DEFAULT_RANDOM_SEED = 42

CATEGORIES: Dict[str, List[str]] = {
    "Electronics": ["Audio", "Phones", "Laptops", "Accessories"],
    "Home": ["Kitchen", "Decor", "Furniture"],
    "Clothing": ["Shirts", "Shoes", "Outerwear"],
    "Sports": ["Fitness", "Outdoor", "Cycling"],
}

BRANDS = ["Acme", "Northwind", "Globex", "Initech", "Umbrella", "Stark"]

PRICE_RANGES = {
    "Electronics": (20.0, 1500.0),
    "Home": (10.0, 600.0),
    "Clothing": (15.0, 250.0),
    "Sports": (10.0, 900.0),
}


def generate_fake_catalog(
    num_products: int = DEFAULT_NUM_PRODUCTS,
    random_seed: Optional[int] = DEFAULT_RANDOM_SEED,
) -> pd.DataFrame:
    """Generate synthetic catalog products.

    Args:
        num_products: Number of products. Must be positive.
        random_seed: Seed for reproducible output.

    Returns:
        DataFrame with the storefront's product columns: Id, name, category,
        subcategory, brand, price, rating, reviewCount, stock. Roughly one in
        ten products is out of stock and a few have no reviews yet.

    Raises:
        ValueError: If num_products is not positive.
    """
    if num_products <= 0:
        raise ValueError("num_products must be positive")

    rng = random.Random(random_seed)
    products = []

    for product_id in range(1, num_products + 1):
        category = rng.choice(list(CATEGORIES))
        subcategory = rng.choice(CATEGORIES[category])
        brand = rng.choice(BRANDS)
        low, high = PRICE_RANGES[category]

        products.append({
            "Id": product_id,
            "name": f"{brand} {subcategory} {product_id}",
            "category": category,
            "subcategory": subcategory,
            "brand": brand,
            "price": round(rng.uniform(low, high), 2),
            "rating": round(rng.uniform(2.5, 5.0), 1),
            "reviewCount": 0 if rng.random() < 0.05 else rng.randint(1, 2500),
            "stock": 0 if rng.random() < 0.1 else rng.randint(1, 200),
        })

    return pd.DataFrame(products)


def generate_fake_orders(
    product_ids: List[int],
    num_orders: int = DEFAULT_NUM_ORDERS,
    num_users: int = DEFAULT_NUM_USERS,
    max_items: int = DEFAULT_MAX_ITEMS_PER_ORDER,
    random_seed: Optional[int] = DEFAULT_RANDOM_SEED,
) -> List[Dict]:
    """Generate synthetic orders with nested line items.

    Args:
        product_ids: Products that can be ordered.
        num_orders: Number of orders. Must be positive.
        num_users: Number of distinct users placing orders.
        max_items: Maximum line items per order.
        random_seed: Seed for reproducible output.

    Returns:
        Order records sorted by orderDate, newest first, each with Id,
        orderId, userId, orderDate and items.

    Raises:
        ValueError: If there are no products or any count is not positive.
    """
    if not product_ids:
        raise ValueError("product_ids must not be empty")
    if num_orders <= 0 or num_users <= 0 or max_items <= 0:
        raise ValueError("num_orders, num_users and max_items must be positive")

    rng = random.Random(random_seed)
    now = datetime.now()
    orders = []

    for order_id in range(1, num_orders + 1):
        num_items = rng.randint(1, min(max_items, len(product_ids)))
        items = [
            {"productId": pid, "quantity": rng.randint(1, 3)}
            for pid in rng.sample(product_ids, num_items)
        ]
        order_date = now - timedelta(
            days=rng.randrange(DEFAULT_DAYS_BACK), seconds=rng.randrange(86400)
        )
        orders.append({
            "Id": order_id,
            "orderId": f"MH-{order_date.year}-{order_id:03d}",
            "userId": rng.randint(1, num_users),
            "orderDate": order_date.isoformat(),
            "items": items,
        })

    orders.sort(key=lambda o: o["orderDate"], reverse=True)
    return orders


def main() -> None:
    """Main entry point for the data generation script.

    Generates fake catalog and order data with default parameters and saves
    it to data/products.json and data/orders.json.
    """
    print(f"Generating {DEFAULT_NUM_PRODUCTS} products and {DEFAULT_NUM_ORDERS} orders...")

    try:
        catalog = generate_fake_catalog()
        orders = generate_fake_orders(catalog["Id"].tolist())
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    data_dir = Path(__file__).parent.parent / 'data'
    data_dir.mkdir(exist_ok=True)

    products_path = data_dir / 'products.json'
    orders_path = data_dir / 'orders.json'
    catalog.to_json(products_path, orient="records", indent=2)
    pd.DataFrame(orders).to_json(orders_path, orient="records", indent=2)

    print("\nData generated successfully!")
    print(f"Saved to: {products_path} and {orders_path}")
    print("\nCatalog preview:")
    print(catalog.head(10))
    print("\nCatalog summary:")
    print(f"  Products: {len(catalog)}")
    print(f"  Out of stock: {int((catalog['stock'] == 0).sum())}")
    print(f"  Per category: {catalog['category'].value_counts().to_dict()}")
    print(f"  Orders: {len(orders)}")


if __name__ == '__main__':
    main()
