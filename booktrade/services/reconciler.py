from __future__ import annotations

import logging
from dataclasses import replace

from ..db.store import DuplicateKeyError, EntityStore, StoreError
from ..models.config_models import EntityKind, IngestMode
from ..models.record import NormalizedRecord, Outcome, ReconcileResult, RejectReason

"""Record reconciler: NormalizedRecord -> persisted entity + outcome.

Decides whether a record is new, an update of an existing entity (matched on
its natural key) or rejected. The store is injected; the reconciler holds no
connection state of its own.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "has_natural_key",
    "reconcile",
]


def has_natural_key(kind: EntityKind, record: NormalizedRecord) -> bool:
    for column in kind.required_key_columns:
        value = record.get(column)
        if value is None or (isinstance(value, str) and value == ""):
            return False
    return True


def _fill_key(kind: EntityKind, record: NormalizedRecord) -> NormalizedRecord:
    # Optional key components are stored as '' so the unique constraint compares them
    missing = [c for c in kind.key_columns if record.get(c) is None]
    if not missing:
        return record
    values = dict(record.values)
    for column in missing:
        values[column] = ""
    return replace(record, values=values)


def reconcile(
    store: EntityStore,
    kind: EntityKind,
    record: NormalizedRecord,
    mode: IngestMode = IngestMode.MERGE,
) -> ReconcileResult:
    """Persist one record according to `mode`.

    Never raises for storage problems: they come back as REJECTED results
    carrying the error message.
    """
    if not has_natural_key(kind, record):
        return ReconcileResult.rejected(RejectReason.NO_KEY)

    record = _fill_key(kind, record)
    try:
        if mode is IngestMode.APPEND:
            entity_id = store.insert(kind, record)
            return ReconcileResult(outcome=Outcome.NEW, entity_id=entity_id)
        entity_id, inserted = store.upsert(kind, record)
    except DuplicateKeyError as e:
        return ReconcileResult.rejected(RejectReason.DUPLICATE, str(e))
    except StoreError as e:
        logger.debug("store failure table=%s row=%d: %s", kind.table, record.row_number, e)
        return ReconcileResult.rejected(RejectReason.ERROR, str(e))

    outcome = Outcome.NEW if inserted else Outcome.UPDATED
    return ReconcileResult(outcome=outcome, entity_id=entity_id)
