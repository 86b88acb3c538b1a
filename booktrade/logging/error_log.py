from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Per-run JSON Lines log of rejected and failed rows.

The upload summary only carries a bounded error sample; this log keeps every
row the reconciler turned away, one ErrorRecord per line.
"""

__all__ = [
    "ErrorLogBuffer",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords for one run and appends them to `errors-<UTC stamp>.log`.

    The file name is fixed when the buffer is created, so every flush of a run
    lands in the same file. Nothing touches the disk until there is a record
    to write.
    """

    def __init__(self, logs_dir: Path, started: datetime | None = None) -> None:
        stamp = (started or datetime.now(UTC)).strftime(TIMESTAMP_FMT)
        self.path = logs_dir / f"errors-{stamp}.log"
        self.pending: list[ErrorRecord] = []

    def append(self, record: ErrorRecord) -> None:
        self.pending.append(record)

    def __len__(self) -> int:
        return len(self.pending)

    def flush(self) -> Path | None:
        """Append pending records; returns the log path, or None when there was nothing to write."""
        if not self.pending:
            return None
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.writelines(r.to_json_line() + "\n" for r in self.pending)
        self.pending.clear()
        return self.path
