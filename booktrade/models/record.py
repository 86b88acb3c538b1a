from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Normalized record and reconciliation outcome models."""

__all__ = [
    "NormalizedRecord",
    "Outcome",
    "RejectReason",
    "ReconcileResult",
]


@dataclass(frozen=True)
class NormalizedRecord:
    """A fully typed record ready for storage.

    Values are str, Decimal, int, datetime.date or None. None means the
    source had no value for the field; merge keeps the stored value then.
    """
    values: dict[str, Any] = field(default_factory=dict)
    row_number: int = -1

    def get(self, name: str) -> Any:
        return self.values.get(name)

    def key(self, columns: tuple[str, ...]) -> tuple[Any, ...]:
        return tuple(self.values.get(c) for c in columns)


class Outcome(Enum):
    NEW = "new"
    UPDATED = "updated"
    REJECTED = "rejected"


class RejectReason(Enum):
    NO_KEY = "no_key"  # Required natural-key column empty
    DUPLICATE = "duplicate"  # Uniqueness violation in append mode
    ERROR = "error"  # Unexpected storage failure


@dataclass(frozen=True)
class ReconcileResult:
    outcome: Outcome
    entity_id: Any = None
    reason: RejectReason | None = None
    error: str | None = None

    @staticmethod
    def rejected(reason: RejectReason, error: str | None = None) -> ReconcileResult:
        return ReconcileResult(outcome=Outcome.REJECTED, reason=reason, error=error)
