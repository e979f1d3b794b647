"""Database helpers for the category cache."""

import logging
from contextlib import contextmanager
from typing import List, Optional, Sequence

from psycopg2 import pool

from instockr.core.config import get_settings

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


_SELECT_CATEGORIES = """
SELECT categories
FROM product_categories
WHERE product_name_normalized = %(product_name_normalized)s
LIMIT 1;
"""

_UPSERT_CATEGORIES = """
INSERT INTO product_categories (
    product_name,
    product_name_normalized,
    categories
) VALUES (
    %(product_name)s,
    %(product_name_normalized)s,
    %(categories)s
)
ON CONFLICT (product_name_normalized) DO UPDATE SET
    categories = EXCLUDED.categories,
    updated_at = NOW();
"""


def fetch_product_categories(product_name_normalized: str) -> Optional[List[str]]:
    """Return cached categories for a normalized product name, if any."""
    if not product_name_normalized:
        raise ValueError("product_name_normalized is required")

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_SELECT_CATEGORIES, {"product_name_normalized": product_name_normalized})
            row = cur.fetchone()
        conn.commit()
    if not row or not row[0]:
        return None
    return list(row[0])


def upsert_product_categories(product_name: str, product_name_normalized: str, categories: Sequence[str]) -> None:
    """Persist categories for a product; concurrent writers resolve last-write-wins."""
    if not product_name_normalized or not categories:
        raise ValueError("product_name_normalized and categories are required for upsert")

    params = {
        "product_name": product_name,
        "product_name_normalized": product_name_normalized,
        "categories": list(categories),
    }
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_UPSERT_CATEGORIES, params)
        conn.commit()
        logger.debug("Cached categories for %s", product_name_normalized)
