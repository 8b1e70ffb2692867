"""
SQLCipher Explorer: sample database generation.

Generates a small shop database (customers, products, orders, line_items and
an order_totals view) with foreign keys and indexes, optionally encrypted in
SQLCipher 3 compatibility mode.

Usage:
    python scripts/generate_sample_db.py [--output PATH] [--seed N] [--key SECRET]
"""

import argparse
import datetime
import random
import sys
from pathlib import Path

from sqlcipher3 import dbapi2 as sqlcipher

from cipherdb.DatabaseProvider import CIPHER_COMPATIBILITY, escape_key

NUM_CUSTOMERS = 8
NUM_ORDERS = 20
MAX_LINE_ITEMS_PER_ORDER = 4
DEFAULT_SEED = 42

SCHEMA_SQL = """
CREATE TABLE customers (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    city TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE products (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    category TEXT,
    price REAL NOT NULL,
    thumbnail BLOB
);

CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    customer_id INTEGER NOT NULL REFERENCES customers(id) ON DELETE CASCADE,
    status TEXT NOT NULL DEFAULT 'pending',
    total NUMERIC,
    ordered_at TEXT NOT NULL
);

CREATE TABLE line_items (
    id INTEGER PRIMARY KEY,
    order_id INTEGER NOT NULL REFERENCES orders(id),
    product_id INTEGER NOT NULL REFERENCES products(id),
    quantity INTEGER NOT NULL,
    unit_price REAL NOT NULL
);

CREATE UNIQUE INDEX idx_customers_email ON customers(email);
CREATE INDEX idx_orders_customer ON orders(customer_id);
CREATE INDEX idx_line_items_order_product ON line_items(order_id, product_id);

CREATE VIEW order_totals AS
    SELECT o.id AS order_id, c.name AS customer, SUM(li.quantity * li.unit_price) AS amount
    FROM orders o
    JOIN customers c ON c.id = o.customer_id
    JOIN line_items li ON li.order_id = o.id
    GROUP BY o.id;
"""

CITIES = ["Lisbon", "Porto", "Berlin", "Oslo", None]

PRODUCT_DEFINITIONS = [
    {"name": "Notebook", "category": "Stationery", "price": 3.5},
    {"name": "Fountain Pen", "category": "Stationery", "price": 24.0},
    {"name": "Desk Lamp", "category": "Furniture", "price": 39.9},
    {"name": "Office Chair", "category": "Furniture", "price": 149.0},
    {"name": "USB Cable", "category": None, "price": 7.25},
    {"name": "Headphones", "category": "Electronics", "price": 89.0},
]

ORDER_STATUSES = ["pending", "paid", "shipped", "cancelled"]


def parse_args():
    """Parse command-line arguments for the sample database generator.

    Returns:
        argparse.Namespace with 'output' (Path), 'seed' (int) and 'key'
        (str or None).
    """
    parser = argparse.ArgumentParser(
        description="Generate a sample SQLCipher / SQLite shop database.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("data/sample.db"),
        help="Output path for the database file (default: data/sample.db)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help=f"Random seed for reproducible data (default: {DEFAULT_SEED})",
    )
    parser.add_argument(
        "--key",
        default=None,
        help="Encrypt the database with this SQLCipher passphrase",
    )
    return parser.parse_args()


# =============================================================================
# Data generation
# =============================================================================


def generate_customers(cursor, rng):
    customer_ids = []
    base = datetime.datetime(2024, 1, 1)
    for i in range(1, NUM_CUSTOMERS + 1):
        cursor.execute(
            "INSERT INTO customers (name, email, city, created_at) VALUES (?, ?, ?, ?)",
            (
                f"Customer {i}",
                f"customer{i}@example.com",
                CITIES[i % len(CITIES)],
                (base + datetime.timedelta(days=rng.randint(0, 180))).isoformat(),
            ),
        )
        customer_ids.append(cursor.lastrowid)
    return customer_ids


def generate_products(cursor):
    """Insert PRODUCT_DEFINITIONS; the first two products carry a thumbnail."""
    product_ids = []
    for i, product in enumerate(PRODUCT_DEFINITIONS):
        thumbnail = bytes([0x89, 0x50, 0x4E, 0x47, i]) if i < 2 else None
        cursor.execute(
            "INSERT INTO products (name, category, price, thumbnail) VALUES (?, ?, ?, ?)",
            (product["name"], product["category"], product["price"], thumbnail),
        )
        product_ids.append(cursor.lastrowid)
    return product_ids


def generate_orders(cursor, rng, customer_ids, product_ids):
    """Insert orders with 1..MAX_LINE_ITEMS_PER_ORDER line items each.

    Returns:
        The number of line items written.
    """
    prices = {pid: p["price"] for pid, p in zip(product_ids, PRODUCT_DEFINITIONS)}
    base = datetime.datetime(2024, 7, 1)
    line_item_count = 0

    for _ in range(NUM_ORDERS):
        cursor.execute(
            "INSERT INTO orders (customer_id, status, ordered_at) VALUES (?, ?, ?)",
            (
                rng.choice(customer_ids),
                rng.choice(ORDER_STATUSES),
                (base + datetime.timedelta(hours=rng.randint(0, 24 * 60))).isoformat(),
            ),
        )
        order_id = cursor.lastrowid

        total = 0.0
        for product_id in rng.sample(product_ids, rng.randint(1, MAX_LINE_ITEMS_PER_ORDER)):
            quantity = rng.randint(1, 5)
            cursor.execute(
                "INSERT INTO line_items (order_id, product_id, quantity, unit_price) "
                "VALUES (?, ?, ?, ?)",
                (order_id, product_id, quantity, prices[product_id]),
            )
            total += quantity * prices[product_id]
            line_item_count += 1

        cursor.execute("UPDATE orders SET total = ? WHERE id = ?", (round(total, 2), order_id))

    return line_item_count


def build_database(output_path: Path, key: str | None = None, seed: int = DEFAULT_SEED) -> dict:
    """Create the sample database at ``output_path``, replacing any existing file.

    Args:
        output_path: Where to write the database.
        key: Optional SQLCipher passphrase. Without it the file is plain SQLite.
        seed: Random seed; the same seed always produces the same data.

    Returns:
        Row counts per table.
    """
    rng = random.Random(seed)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.exists():
        output_path.unlink()

    conn = sqlcipher.connect(str(output_path))
    try:
        cursor = conn.cursor()
        if key:
            cursor.execute(f"PRAGMA key = '{escape_key(key)}'")
            cursor.execute(f"PRAGMA cipher_compatibility = {CIPHER_COMPATIBILITY}")
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.executescript(SCHEMA_SQL)

        customer_ids = generate_customers(cursor, rng)
        product_ids = generate_products(cursor)
        line_items = generate_orders(cursor, rng, customer_ids, product_ids)
        conn.commit()
    finally:
        conn.close()

    return {
        "customers": len(customer_ids),
        "products": len(product_ids),
        "orders": NUM_ORDERS,
        "line_items": line_items,
    }


def print_summary(output_path, seed, encrypted, counts):
    print("Sample database generated successfully.")
    print(f"  Output:     {output_path}")
    print(f"  Seed:       {seed}")
    print(f"  Encrypted:  {'yes' if encrypted else 'no'}")
    for table, count in counts.items():
        print(f"  {table.capitalize() + ':':<11} {count}")


def main():
    args = parse_args()
    try:
        counts = build_database(args.output, key=args.key, seed=args.seed)
    except PermissionError:
        print(f"Error: Cannot write to {args.output}: permission denied", file=sys.stderr)
        sys.exit(1)
    except (sqlcipher.Error, OSError) as e:
        print(f"Error: Database generation failed: {e}", file=sys.stderr)
        if args.output.exists():
            args.output.unlink()
        sys.exit(1)

    print_summary(args.output, args.seed, bool(args.key), counts)


if __name__ == "__main__":
    main()
