from __future__ import annotations

from typing import Any, Protocol

import psycopg2
from psycopg2 import errorcodes

from ..models.config_models import EntityKind
from ..models.record import NormalizedRecord

"""PostgreSQL entity store.

The store is the pipeline's only persistence seam. It is handed an open
psycopg2 cursor by the process bootstrap (cli) and never opens or closes
connections itself. The connection runs in autocommit mode so every row is
persisted independently; a failing row does not poison the rest of the
upload.

Merge-on-conflict relies on PostgreSQL's INSERT ... ON CONFLICT so that two
concurrent uploads of the same key resolve in the database, not here.
"""

__all__ = [
    "DuplicateKeyError",
    "EntityStore",
    "PostgresStore",
    "StoreError",
    "build_insert_sql",
    "build_upsert_sql",
]


class StoreError(Exception):
    """Unexpected storage failure for a single operation."""


class DuplicateKeyError(StoreError):
    """Plain insert hit the natural-key unique constraint."""


class EntityStore(Protocol):
    def upsert(self, kind: EntityKind, record: NormalizedRecord) -> tuple[Any, bool]: ...

    def insert(self, kind: EntityKind, record: NormalizedRecord) -> Any: ...

    def delete_all(self, kind: EntityKind) -> int: ...


def _merge_expr(kind: EntityKind, column: str) -> str:
    # coalesce-keep-existing: NULL (and '' for text) never overwrites a stored value
    incoming = f'EXCLUDED."{column}"'
    if column in kind.text_columns:
        incoming = f"NULLIF({incoming}, '')"
    return f'"{column}" = COALESCE({incoming}, {kind.table}."{column}")'


def build_insert_sql(kind: EntityKind) -> str:
    cols_sql = ",".join(f'"{c}"' for c in kind.columns)
    placeholders = ",".join(["%s"] * len(kind.columns))
    return f"INSERT INTO {kind.table} ({cols_sql}) VALUES ({placeholders}) RETURNING id"


def build_upsert_sql(kind: EntityKind) -> str:
    cols_sql = ",".join(f'"{c}"' for c in kind.columns)
    placeholders = ",".join(["%s"] * len(kind.columns))
    key_sql = ",".join(f'"{c}"' for c in kind.key_columns)
    assignments = [_merge_expr(kind, c) for c in kind.update_columns]
    assignments.append(f'"{kind.touch_column}" = CURRENT_TIMESTAMP')
    return (
        f"INSERT INTO {kind.table} ({cols_sql}) VALUES ({placeholders}) "
        f"ON CONFLICT ({key_sql}) DO UPDATE SET {', '.join(assignments)} "
        f"RETURNING id, (xmax = 0) AS inserted"
    )


class PostgresStore:
    """EntityStore over a psycopg2 cursor (autocommit connection expected)."""

    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def _params(self, kind: EntityKind, record: NormalizedRecord) -> list[Any]:
        return [record.get(c) for c in kind.columns]

    def upsert(self, kind: EntityKind, record: NormalizedRecord) -> tuple[Any, bool]:
        try:
            self.cursor.execute(build_upsert_sql(kind), self._params(kind, record))
            row = self.cursor.fetchone()
        except psycopg2.Error as e:
            raise StoreError(str(e).strip()) from e
        if row is None:
            raise StoreError(f"upsert into {kind.table} returned no row")
        return row[0], bool(row[1])

    def insert(self, kind: EntityKind, record: NormalizedRecord) -> Any:
        try:
            self.cursor.execute(build_insert_sql(kind), self._params(kind, record))
            row = self.cursor.fetchone()
        except psycopg2.Error as e:
            if getattr(e, "pgcode", None) == errorcodes.UNIQUE_VIOLATION:
                raise DuplicateKeyError(str(e).strip()) from e
            raise StoreError(str(e).strip()) from e
        return row[0] if row else None

    def delete_all(self, kind: EntityKind) -> int:
        try:
            self.cursor.execute(f"DELETE FROM {kind.table}")
        except psycopg2.Error as e:
            raise StoreError(str(e).strip()) from e
        return self.cursor.rowcount
