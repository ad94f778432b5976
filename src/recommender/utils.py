"""Utility functions for loading catalog and order data.

This module reads the storefront's product catalog and order history from
disk and turns them into the immutable records the engine works on. Both the
storefront's camelCase mock-data format (``Id``, ``reviewCount``,
``productId``) and snake_case columns are accepted.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import pandas as pd

from src.recommender.config import ORDERS_FILENAME, PRODUCTS_FILENAME
from src.recommender.context import coerce_int
from src.recommender.models import Catalog, Order, OrderItem, Product

# Configure module logger
logger = logging.getLogger(__name__)

PRODUCT_COLUMN_ALIASES = {
    "Id": "product_id",
    "id": "product_id",
    "reviewCount": "review_count",
    "reviews": "review_count",
}

REQUIRED_PRODUCT_COLUMNS = {
    "product_id",
    "category",
    "brand",
    "price",
    "rating",
    "review_count",
    "stock",
}

PathLike = Union[str, Path]


def _read_product_frame(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".csv":
        return pd.read_csv(path)
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"Expected a JSON array of products in {path}")
    return pd.DataFrame(raw)


def products_from_frame(df: pd.DataFrame) -> List[Product]:
    """Validate a product DataFrame and convert it to Product records.

    Args:
        df: One row per product. Column names may use the storefront's
            camelCase aliases.

    Returns:
        Products in row order.

    Raises:
        ValueError: If required columns are missing, ids are duplicated or
            not positive, or price, stock or review counts are negative.
    """
    if df.empty:
        return []

    df = df.rename(columns=PRODUCT_COLUMN_ALIASES)
    df = df.loc[:, ~df.columns.duplicated()]

    if not REQUIRED_PRODUCT_COLUMNS.issubset(df.columns):
        missing = REQUIRED_PRODUCT_COLUMNS - set(df.columns)
        raise ValueError(f"Catalog missing required columns: {sorted(missing)}")

    if "subcategory" not in df.columns:
        df["subcategory"] = ""
    if "name" not in df.columns:
        df["name"] = ""
    df[["subcategory", "name"]] = df[["subcategory", "name"]].fillna("")

    for column in ("product_id", "price", "rating", "review_count", "stock"):
        try:
            df[column] = pd.to_numeric(df[column])
        except (TypeError, ValueError) as e:
            raise ValueError(f"Catalog column '{column}' is not numeric: {e}") from e
        if df[column].isna().any():
            raise ValueError(f"Catalog column '{column}' has missing values")

    if df["product_id"].duplicated().any():
        duplicates = sorted(df.loc[df["product_id"].duplicated(), "product_id"].unique())
        raise ValueError(f"Duplicate product ids in catalog: {duplicates}")

    if (df["product_id"] <= 0).any():
        raise ValueError("Product ids must be positive integers")

    for column in ("price", "stock", "review_count"):
        if (df[column] < 0).any():
            raise ValueError(f"Catalog column '{column}' has negative values")

    products = [
        Product(
            product_id=int(row.product_id),
            category=str(row.category),
            subcategory=str(row.subcategory),
            brand=str(row.brand),
            price=float(row.price),
            rating=float(row.rating),
            review_count=int(row.review_count),
            stock=int(row.stock),
            name=str(row.name),
        )
        for row in df.itertuples(index=False)
    ]

    return products


def load_catalog(path: PathLike) -> Catalog:
    """Load the product catalog from a JSON array or CSV file.

    Args:
        path: Path to ``products.json`` or a CSV with one product per row.

    Returns:
        Catalog preserving file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is malformed.

    Example:
        >>> catalog = load_catalog("data/products.json")
        >>> print(f"Loaded {len(catalog)} products")
    """
    catalog_file = Path(path)
    if not catalog_file.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    logger.info(f"Loading catalog from {path}")

    try:
        df = _read_product_frame(catalog_file)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {path}")
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    catalog = Catalog(products_from_frame(df))

    logger.info(f"Loaded {len(catalog)} products")
    logger.info(f"In stock: {len(catalog.in_stock())}")

    return catalog


def orders_from_records(records: List[Dict[str, Any]]) -> List[Order]:
    """Convert order records with nested line items into Order objects.

    Records without an ``items`` list are skipped. Line items are flattened
    with ``pandas.json_normalize`` and regrouped per order in file order.
    """
    valid = [r for r in records if isinstance(r, dict) and isinstance(r.get("items"), list)]
    skipped = len(records) - len(valid)
    if skipped:
        logger.warning(f"Skipped {skipped} order records without line items")

    if not valid:
        return []

    # Tag each record with its position so orders without an id still group
    tagged = [
        {
            "_position": position,
            "_order_id": coerce_int(record.get("Id", record.get("id"))) or position + 1,
            "_user_id": coerce_int(record.get("userId", record.get("user_id"))),
            "items": [item for item in record["items"] if isinstance(item, dict)],
        }
        for position, record in enumerate(valid)
    ]

    lines = pd.json_normalize(
        tagged,
        record_path="items",
        meta=["_position"],
    )
    if lines.empty:
        return []

    # Both spellings can appear in one file
    if "product_id" in lines.columns:
        if "productId" in lines.columns:
            lines["productId"] = lines["productId"].fillna(lines["product_id"])
        else:
            lines["productId"] = lines["product_id"]

    if "productId" not in lines.columns:
        raise ValueError("Order line items are missing 'productId'")
    if "quantity" not in lines.columns:
        lines["quantity"] = 1

    lines["productId"] = pd.to_numeric(lines["productId"], errors="coerce")
    bad_lines = lines["productId"].isna()
    if bad_lines.any():
        logger.warning(f"Dropped {int(bad_lines.sum())} line items with invalid product ids")
        lines = lines[~bad_lines].copy()

    lines["quantity"] = pd.to_numeric(lines["quantity"], errors="coerce").fillna(1)

    orders = []
    for position, group in lines.groupby("_position", sort=False):
        record = tagged[int(position)]
        items = tuple(
            OrderItem(product_id=int(pid), quantity=int(qty))
            for pid, qty in zip(group["productId"], group["quantity"])
        )
        orders.append(
            Order(order_id=record["_order_id"], items=items, user_id=record["_user_id"])
        )

    return orders


def load_orders(path: PathLike) -> List[Order]:
    """Load order history from a JSON array of orders.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON array of orders.
    """
    orders_file = Path(path)
    if not orders_file.exists():
        raise FileNotFoundError(f"Orders file not found: {path}")

    logger.info(f"Loading orders from {path}")

    try:
        with open(orders_file, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {path}")
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(raw, list):
        raise ValueError(f"Expected a JSON array of orders in {path}")

    orders = orders_from_records(raw)

    logger.info(f"Loaded {len(orders)} orders")

    return orders


def get_data_paths(
    data_dir: PathLike,
    products_filename: str = PRODUCTS_FILENAME,
    orders_filename: str = ORDERS_FILENAME,
) -> Tuple[Path, Path]:
    """Get file paths for the catalog and order history without loading them."""
    data_path = Path(data_dir)
    return data_path / products_filename, data_path / orders_filename


def check_data_exists(data_dir: PathLike) -> bool:
    """Check if the catalog file exists. Order history is optional."""
    products_path, _ = get_data_paths(data_dir)
    return products_path.exists()


def load_data_snapshot(data_dir: PathLike) -> Tuple[Catalog, List[Order]]:
    """Load catalog and order history from a data directory.

    A missing orders file means an empty order history.

    Raises:
        FileNotFoundError: If the catalog file is missing.
        ValueError: If either file is malformed.
    """
    products_path, orders_path = get_data_paths(data_dir)

    catalog = load_catalog(products_path)

    if orders_path.exists():
        orders = load_orders(orders_path)
    else:
        logger.warning(f"No order history at {orders_path}, using empty history")
        orders = []

    return catalog, orders
