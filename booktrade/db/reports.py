from __future__ import annotations

from typing import Any

"""Aggregate report queries over the ingested tables."""

__all__ = [
    "catalog_stats",
    "customer_summary",
    "sales_stats",
]

_REVENUE = "quantity * unit_price * (1 - discount/100)"


def _fetch_dict(cursor: Any) -> dict[str, Any]:
    row = cursor.fetchone()
    names = [d[0] for d in cursor.description]
    if row is None:
        return {n: 0 for n in names}
    return {n: (v if v is not None else 0) for n, v in zip(names, row, strict=False)}


def catalog_stats(cursor: Any) -> dict[str, Any]:
    cursor.execute(
        """
        SELECT
            COUNT(*) AS total_records,
            COUNT(DISTINCT sku) AS unique_skus,
            COUNT(DISTINCT isbn) AS unique_isbns,
            COUNT(DISTINCT publisher) AS publishers
        FROM booksonix_records
        """
    )
    return _fetch_dict(cursor)


def sales_stats(cursor: Any) -> dict[str, Any]:
    cursor.execute(
        f"""
        SELECT
            COUNT(*) AS total_records,
            COUNT(DISTINCT order_ref) AS unique_orders,
            SUM(quantity) AS total_quantity,
            SUM({_REVENUE}) AS total_revenue,
            COUNT(DISTINCT customer_name) AS unique_customers,
            COUNT(DISTINCT title) AS unique_titles,
            COUNT(DISTINCT publisher) AS unique_publishers
        FROM gazelle_sales
        """
    )
    return _fetch_dict(cursor)


def customer_summary(cursor: Any) -> list[dict[str, Any]]:
    """Per-customer order roll-up, ordered by customer name."""
    cursor.execute(
        f"""
        SELECT
            customer_name,
            city,
            country,
            COUNT(DISTINCT order_ref) AS total_orders,
            SUM(quantity) AS total_quantity,
            SUM({_REVENUE}) AS total_revenue,
            MAX(order_date) AS last_order
        FROM gazelle_sales
        GROUP BY customer_name, city, country
        ORDER BY customer_name
        """
    )
    names = [d[0] for d in cursor.description]
    return [dict(zip(names, row, strict=False)) for row in cursor.fetchall()]
