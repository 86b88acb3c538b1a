from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for error logging.

ErrorRecord is the structured line written to the JSON Lines error log for
every rejected or failed row of an upload. row=-1 marks upload-level errors
where no specific row applies (unreadable workbook, missing sheet).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded workbook name
        source: Upstream source name (booksonix, gazelle)
        row: Spreadsheet row number (1-based). -1 for upload-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Storage error message or description
        value: Offending value (natural key or raw cell), if any
    """
    timestamp: str
    file: str
    source: str
    row: int
    error_type: str
    message: str
    value: str | None = None

    @staticmethod
    def create(
        file: str,
        source: str,
        row: int,
        error_type: str,
        message: str,
        value: str | None = None,
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            source=source,
            row=row,
            error_type=error_type,
            message=message,
            value=value,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
