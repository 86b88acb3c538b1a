from __future__ import annotations

from decimal import Decimal

import pytest

from booktrade.config.sources import CATALOG, SALES
from booktrade.db.memory import MemoryStore
from booktrade.db.store import DuplicateKeyError
from booktrade.models.record import NormalizedRecord


def _catalog(**values) -> NormalizedRecord:
    base = {c: None for c in CATALOG.columns}
    base.update(values)
    return NormalizedRecord(values=base)


def test_upsert_inserts_then_merges(memory_store: MemoryStore):
    first_id, inserted = memory_store.upsert(CATALOG, _catalog(sku="A", title="Dune", quantity=3))
    assert inserted
    same_id, inserted = memory_store.upsert(CATALOG, _catalog(sku="A", title="", quantity=0))
    assert same_id == first_id
    assert not inserted
    row = memory_store.find(CATALOG, ("A",))
    # empty text keeps the stored title, a real zero replaces the quantity
    assert row["title"] == "Dune"
    assert row["quantity"] == 0
    assert row["last_updated"] is not None


def test_upsert_none_never_overwrites(memory_store: MemoryStore):
    memory_store.upsert(CATALOG, _catalog(sku="A", price=Decimal("4.00")))
    memory_store.upsert(CATALOG, _catalog(sku="A", price=None))
    assert memory_store.find(CATALOG, ("A",))["price"] == Decimal("4.00")


def test_insert_rejects_existing_key(memory_store: MemoryStore):
    memory_store.insert(CATALOG, _catalog(sku="A"))
    with pytest.raises(DuplicateKeyError):
        memory_store.insert(CATALOG, _catalog(sku="A"))
    assert len(memory_store.rows(CATALOG)) == 1


def test_kinds_are_separate_tables(memory_store: MemoryStore):
    memory_store.insert(CATALOG, _catalog(sku="A"))
    sale = {c: None for c in SALES.columns}
    sale.update(order_ref="A", isbn13="", customer_name="")
    memory_store.insert(SALES, NormalizedRecord(values=sale))
    assert len(memory_store.rows(CATALOG)) == 1
    assert len(memory_store.rows(SALES)) == 1
    assert memory_store.find(SALES, ("A",)) is None


def test_delete_all(memory_store: MemoryStore):
    memory_store.insert(CATALOG, _catalog(sku="A"))
    memory_store.insert(CATALOG, _catalog(sku="B"))
    assert memory_store.delete_all(CATALOG) == 2
    assert memory_store.rows(CATALOG) == []
    assert memory_store.delete_all(SALES) == 0
    # keys are released with the rows
    memory_store.insert(CATALOG, _catalog(sku="A"))
