"""SQLite catalog store: connection, schema, and CRUD helpers for products."""

import json
import logging
import sqlite3
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import DB_PATH, DB_TIMEOUT, LOG_LEVEL
from .models.schemas import Product

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS products (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    price REAL NOT NULL,
    modelPath TEXT NOT NULL,
    color TEXT NOT NULL,
    availableColors TEXT NOT NULL,
    category TEXT NOT NULL,
    description TEXT NOT NULL,
    features TEXT NOT NULL,
    rating REAL NOT NULL,
    reviews INTEGER NOT NULL,
    inStock INTEGER NOT NULL,
    date TEXT NOT NULL,
    shoeScale REAL
)
"""

_COLUMNS = (
    "id", "name", "price", "modelPath", "color", "availableColors", "category",
    "description", "features", "rating", "reviews", "inStock", "date", "shoeScale",
)


class StoreError(Exception):
    """The catalog store could not be queried."""

    message = "Failed to retrieve products"


class StoreUnavailable(StoreError):
    """The catalog store could not be opened or initialized."""

    message = "Database connection failed"


class ProductExistsError(StoreError):
    """A product with the same id is already stored."""

    message = "Product already exists"


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------

def get_connection(db_path: str | Path = DB_PATH) -> sqlite3.Connection:
    """Open the store and make sure the products table exists.

    Raises StoreUnavailable if the file cannot be opened or is not a database.
    """
    try:
        conn = sqlite3.connect(db_path, timeout=DB_TIMEOUT, check_same_thread=False)
    except sqlite3.Error as e:
        raise StoreUnavailable(f"cannot open {db_path}: {e}") from e

    conn.row_factory = sqlite3.Row
    try:
        init_db(conn)
    except sqlite3.Error as e:
        conn.close()
        raise StoreUnavailable(f"cannot initialize {db_path}: {e}") from e
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    conn.execute(SCHEMA)
    conn.commit()


def table_exists(conn: sqlite3.Connection) -> bool:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'products'"
    ).fetchone()
    return row is not None


# ---------------------------------------------------------------------------
# Row <-> Product
# ---------------------------------------------------------------------------

def _decode_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Stored list column is not valid JSON: %r", raw)
        return []
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def product_to_row(product: Product) -> tuple:
    """Convert a Product into the positional parameters of an INSERT."""
    return (
        product.id,
        product.name,
        product.price,
        product.model_path,
        product.color,
        json.dumps(product.available_colors),
        product.category,
        product.description,
        json.dumps(product.features),
        product.rating,
        product.reviews,
        1 if product.in_stock else 0,
        product.date,
        product.shoe_scale,
    )


def product_from_row(row: sqlite3.Row) -> Product:
    """Convert a stored row back into a typed Product.

    List columns are decoded from JSON text, numeric columns are coerced
    regardless of how SQLite stored them, and ``inStock`` becomes a bool.
    """
    shoe_scale = row["shoeScale"]
    return Product(
        id=str(row["id"]),
        name=row["name"],
        price=float(row["price"]),
        model_path=row["modelPath"],
        color=row["color"],
        available_colors=_decode_list(row["availableColors"]),
        category=row["category"],
        description=row["description"],
        features=_decode_list(row["features"]),
        rating=float(row["rating"]),
        reviews=int(row["reviews"]),
        in_stock=bool(int(row["inStock"])),
        date=row["date"],
        shoe_scale=float(shoe_scale) if shoe_scale is not None else None,
    )


# ---------------------------------------------------------------------------
# products
# ---------------------------------------------------------------------------

def create_product(conn: sqlite3.Connection, product: Product) -> None:
    """Insert one product. The caller owns the transaction (use ``with conn:``)."""
    placeholders = ", ".join("?" for _ in _COLUMNS)
    try:
        conn.execute(
            f"INSERT INTO products ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
            product_to_row(product),
        )
    except sqlite3.IntegrityError as e:
        raise ProductExistsError(f"product {product.id!r} already exists") from e
    except sqlite3.Error as e:
        raise StoreError(f"insert of product {product.id!r} failed: {e}") from e


def list_products(conn: sqlite3.Connection) -> list[Product]:
    """Return every product in storage order."""
    try:
        rows = conn.execute("SELECT * FROM products").fetchall()
        return [product_from_row(r) for r in rows]
    except (sqlite3.Error, ValidationError, TypeError, ValueError) as e:
        raise StoreError(f"listing products failed: {e}") from e


def get_product(conn: sqlite3.Connection, product_id: str) -> Product | None:
    try:
        row = conn.execute(
            "SELECT * FROM products WHERE id = ? LIMIT 1", (product_id,)
        ).fetchone()
        return product_from_row(row) if row else None
    except (sqlite3.Error, ValidationError, TypeError, ValueError) as e:
        raise StoreError(f"fetching product {product_id!r} failed: {e}") from e


def count_products(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) AS count FROM products").fetchone()["count"]


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------

def seed_products(
    conn: sqlite3.Connection,
    products: list[Product] | None = None,
    db_path: str | Path = DB_PATH,
) -> list[str]:
    """Replace the whole catalog with a fixed product set.

    Destructive: every stored product is deleted first, so seeding twice
    leaves exactly one copy of each product. Returns the diagnostic log.
    """
    if products is None:
        from .demo.fixtures import SAMPLE_PRODUCTS

        products = SAMPLE_PRODUCTS

    log = [
        "Database connection: SUCCESS",
        f"Database file exists: {'YES' if Path(db_path).exists() else 'NO'}",
        f"Database file path: {db_path}",
    ]

    with conn:
        conn.execute("DELETE FROM products")
        log.append("Deleted existing products")
        log.append("Products table exists" if table_exists(conn) else "Products table does not exist!")

        added = 0
        for product in products:
            create_product(conn, product)
            added += 1
            log.append(f"Added product: {product.name}")

    log.append(f"Database initialized with {added} products")
    log.append(f"Products count in database: {count_products(conn)}")

    for line in log:
        logger.info(line)
    return log


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    try:
        conn = get_connection(DB_PATH)
    except StoreUnavailable as e:
        print(f"Failed to connect to the database: {e}", file=sys.stderr)
        sys.exit(1)
    try:
        for line in seed_products(conn, db_path=DB_PATH):
            print(line)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
