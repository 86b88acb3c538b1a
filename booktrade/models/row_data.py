from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

"""RowData model for the ingestion pipeline.

RowData represents one raw spreadsheet row during a single upload. It is
ephemeral: it is built by the orchestrator from the sheet, resolved, and
dropped.
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """A raw data row as read from the sheet.

    `values` is the label -> cell mapping when the sheet has a usable header;
    it is None in positional mode, where only `cells` is meaningful.
    """
    row_number: int  # 1-based spreadsheet row number
    cells: Sequence[Any]  # Positional cell values (None for blank cells)
    values: Mapping[str, Any] | None = None

    @property
    def raw(self) -> Mapping[str, Any] | Sequence[Any]:
        """The row in the shape the column resolver expects."""
        return self.values if self.values is not None else self.cells

    @property
    def is_blank(self) -> bool:
        return all(c is None for c in self.cells)
