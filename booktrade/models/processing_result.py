from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

"""Ingestion result models.

IngestSummary is what every upload returns to its caller, even when some rows
failed. Only pipeline-fatal errors replace it with an exception.
"""


@dataclass(frozen=True)
class ErrorSample:
    """Diagnostic detail kept for one of the first N failed rows."""
    row: int  # Spreadsheet row number (1-based)
    value: str | None  # Offending value (natural key as text)
    message: str


@dataclass(frozen=True)
class IngestSummary:
    """Aggregated outcome counts for one upload."""
    source: str
    file_name: str
    mode: str  # merge / append
    total_rows: int  # Non-blank data rows seen
    new_records: int
    updated_records: int
    duplicates: int  # Append mode uniqueness violations
    skipped_rows: int  # Rejected for missing natural key
    errors: int  # Row-level storage failures
    blank_rows: int = 0
    error_sample: list[ErrorSample] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None
    elapsed_seconds: float = 0.0

    @property
    def updated_or_duplicate(self) -> int:
        return self.updated_records + self.duplicates

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["start_time"] = self.start_time.isoformat() if self.start_time else None
        data["end_time"] = self.end_time.isoformat() if self.end_time else None
        return data


class SummaryCounter:
    """Mutable accumulator the orchestrator fills while iterating rows."""

    def __init__(self, sample_limit: int = 5) -> None:
        self.sample_limit = sample_limit
        self.total_rows = 0
        self.blank_rows = 0
        self.new_records = 0
        self.updated_records = 0
        self.duplicates = 0
        self.skipped_rows = 0
        self.errors = 0
        self.samples: list[ErrorSample] = []

    def add_error_sample(self, row: int, value: Any, message: str) -> None:
        if len(self.samples) >= self.sample_limit:
            return
        self.samples.append(
            ErrorSample(row=row, value=None if value is None else str(value), message=message)
        )

    def postfix(self) -> dict[str, int]:
        return {
            "new": self.new_records,
            "upd": self.updated_records,
            "skip": self.skipped_rows,
            "err": self.errors,
        }
