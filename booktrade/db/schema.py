from __future__ import annotations

import logging
from typing import Any

from ..models.config_models import EntityKind

"""Table definitions for the two entity kinds.

CREATE ... IF NOT EXISTS only; there is no migration framework. The unique
constraints here are the natural keys the reconciler relies on for
ON CONFLICT.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DDL",
    "ensure_schema",
]

DDL: dict[str, list[str]] = {
    "booksonix_records": [
        """
        CREATE TABLE IF NOT EXISTS booksonix_records (
            id SERIAL PRIMARY KEY,
            sku VARCHAR(100) UNIQUE NOT NULL,
            isbn VARCHAR(50),
            title VARCHAR(500),
            author VARCHAR(500),
            publisher VARCHAR(500),
            price DECIMAL(10,2),
            quantity INTEGER DEFAULT 0,
            format VARCHAR(100),
            publication_date DATE,
            description TEXT,
            category VARCHAR(200),
            upload_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            last_updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_booksonix_isbn ON booksonix_records(isbn)",
    ],
    "gazelle_sales": [
        """
        CREATE TABLE IF NOT EXISTS gazelle_sales (
            id SERIAL PRIMARY KEY,
            order_ref VARCHAR(100) NOT NULL,
            order_date DATE,
            customer_name VARCHAR(500) NOT NULL DEFAULT '',
            city VARCHAR(200),
            country VARCHAR(100),
            title VARCHAR(500),
            isbn13 VARCHAR(20) NOT NULL DEFAULT '',
            quantity INTEGER DEFAULT 0,
            unit_price DECIMAL(10,2),
            discount DECIMAL(5,2) DEFAULT 0,
            publisher VARCHAR(500),
            format VARCHAR(100),
            upload_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(order_ref, isbn13, customer_name)
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_gazelle_customer ON gazelle_sales(customer_name)",
        "CREATE INDEX IF NOT EXISTS idx_gazelle_isbn ON gazelle_sales(isbn13)",
        "CREATE INDEX IF NOT EXISTS idx_gazelle_date ON gazelle_sales(order_date)",
    ],
}


def ensure_schema(cursor: Any, kind: EntityKind) -> None:
    """Create the table and indexes for `kind` if they do not exist yet."""
    statements = DDL.get(kind.table)
    if statements is None:
        raise KeyError(f"no DDL for table {kind.table}")
    for statement in statements:
        cursor.execute(statement)
    logger.info("schema ready table=%s", kind.table)
