from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from ..models.config_models import EntityKind
from ..models.record import NormalizedRecord
from .store import DuplicateKeyError

"""In-process EntityStore used for dry runs.

Mirrors the PostgreSQL semantics of PostgresStore: a unique natural key per
kind, coalesce-keep-existing on upsert, and duplicate rejection on plain
insert. Nothing is persisted beyond the process.
"""

__all__ = [
    "MemoryStore",
]


def _is_empty(kind: EntityKind, column: str, value: Any) -> bool:
    if value is None:
        return True
    return column in kind.text_columns and value == ""


class MemoryStore:
    def __init__(self) -> None:
        self.tables: dict[str, dict[int, dict[str, Any]]] = {}
        self._keys: dict[str, dict[tuple[Any, ...], int]] = {}
        self._next_id = 1

    def rows(self, kind: EntityKind) -> list[dict[str, Any]]:
        return list(self.tables.get(kind.table, {}).values())

    def find(self, kind: EntityKind, key: tuple[Any, ...]) -> dict[str, Any] | None:
        entity_id = self._keys.get(kind.table, {}).get(key)
        if entity_id is None:
            return None
        return self.tables[kind.table][entity_id]

    def _create(self, kind: EntityKind, record: NormalizedRecord) -> int:
        entity_id = self._next_id
        self._next_id += 1
        now = datetime.now(UTC)
        row = {c: record.get(c) for c in kind.columns}
        row["id"] = entity_id
        row[kind.touch_column] = now
        self.tables.setdefault(kind.table, {})[entity_id] = row
        self._keys.setdefault(kind.table, {})[record.key(kind.key_columns)] = entity_id
        return entity_id

    def upsert(self, kind: EntityKind, record: NormalizedRecord) -> tuple[Any, bool]:
        existing = self.find(kind, record.key(kind.key_columns))
        if existing is None:
            return self._create(kind, record), True
        for column in kind.update_columns:
            value = record.get(column)
            if not _is_empty(kind, column, value):
                existing[column] = value
        existing[kind.touch_column] = datetime.now(UTC)
        return existing["id"], False

    def insert(self, kind: EntityKind, record: NormalizedRecord) -> Any:
        key = record.key(kind.key_columns)
        if self.find(kind, key) is not None:
            raise DuplicateKeyError(f"duplicate key value violates unique constraint on {kind.table}: {key}")
        return self._create(kind, record)

    def delete_all(self, kind: EntityKind) -> int:
        count = len(self.tables.get(kind.table, {}))
        self.tables[kind.table] = {}
        self._keys[kind.table] = {}
        return count
