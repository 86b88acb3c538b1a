from __future__ import annotations

from datetime import date
from decimal import Decimal

from booktrade.db import reports


class FakeCursor:
    def __init__(self, description, rows) -> None:
        self.description = [(name,) for name in description]
        self.rows = rows
        self.sql: list[str] = []

    def execute(self, sql, params=None):
        self.sql.append(sql)

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return self.rows


def test_catalog_stats():
    cur = FakeCursor(["total_records", "unique_skus", "unique_isbns", "publishers"], [(10, 9, 8, 3)])
    assert reports.catalog_stats(cur) == {
        "total_records": 10,
        "unique_skus": 9,
        "unique_isbns": 8,
        "publishers": 3,
    }
    assert "FROM booksonix_records" in cur.sql[0]


def test_sales_stats_nulls_become_zero():
    names = [
        "total_records", "unique_orders", "total_quantity", "total_revenue",
        "unique_customers", "unique_titles", "unique_publishers",
    ]
    cur = FakeCursor(names, [(0, 0, None, None, 0, 0, 0)])
    data = reports.sales_stats(cur)
    assert data["total_quantity"] == 0
    assert data["total_revenue"] == 0
    assert "quantity * unit_price * (1 - discount/100)" in cur.sql[0]


def test_customer_summary_rows():
    names = ["customer_name", "city", "country", "total_orders", "total_quantity", "total_revenue", "last_order"]
    rows = [("Acme Books", "Leeds", "UK", 2, 5, Decimal("42.50"), date(2025, 3, 1))]
    result = reports.customer_summary(FakeCursor(names, rows))
    assert result == [
        {
            "customer_name": "Acme Books",
            "city": "Leeds",
            "country": "UK",
            "total_orders": 2,
            "total_quantity": 5,
            "total_revenue": Decimal("42.50"),
            "last_order": date(2025, 3, 1),
        }
    ]
