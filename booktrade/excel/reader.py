from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.row_data import RowData
from .header import HeaderLayout

"""Workbook reader.

Sheets are read raw (header=None) with pandas so that header detection can be
done afterwards by a HeaderLocator. Date cells come back as datetime objects;
blank cells and whitespace-only strings are turned into None here so that
the rest of the pipeline only has one notion of "blank".
"""

__all__ = [
    "SheetRows",
    "WorkbookError",
    "build_rows",
    "read_sheet",
    "sheet_names",
]


class WorkbookError(Exception):
    """Raised when the workbook cannot be opened or the sheet is missing."""


@dataclass
class SheetRows:
    sheet_name: str
    rows: list[list[Any]]  # Positional cells, None for blank


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):  # pragma: no cover - array-like cell
        return value
    return value


def sheet_names(path: Path) -> list[str]:
    try:
        with pd.ExcelFile(path) as xls:
            return [str(n) for n in xls.sheet_names]
    except Exception as e:
        raise WorkbookError(f"cannot open workbook {path.name}: {e}") from e


def read_sheet(path: Path, sheet: str | int | None = None) -> SheetRows:
    """Read one sheet of a workbook as raw positional rows.

    Parameters
    ----------
    path: workbook path
    sheet: sheet name, 0-based sheet index, or None for the first sheet
    """
    try:
        xls = pd.ExcelFile(path)
    except Exception as e:
        raise WorkbookError(f"cannot open workbook {path.name}: {e}") from e

    with xls:
        names = [str(n) for n in xls.sheet_names]
        if not names:
            raise WorkbookError(f"workbook {path.name} has no sheets")
        if sheet is None:
            target = names[0]
        elif isinstance(sheet, int):
            if sheet >= len(names):
                raise WorkbookError(f"workbook {path.name} has no sheet #{sheet}")
            target = names[sheet]
        else:
            if sheet not in names:
                raise WorkbookError(f"sheet '{sheet}' not found in {path.name} (sheets={names})")
            target = sheet
        try:
            df = xls.parse(target, header=None, dtype=object)
        except Exception as e:
            raise WorkbookError(f"cannot read sheet '{target}' of {path.name}: {e}") from e

    rows = [[_clean_cell(v) for v in raw] for raw in df.itertuples(index=False, name=None)]
    return SheetRows(sheet_name=target, rows=rows)


def build_rows(rows: list[list[Any]], layout: HeaderLayout) -> list[RowData]:
    """Turn raw sheet rows into RowData according to the detected layout.

    Header mode keeps the first occurrence of a duplicated label and ignores
    blank labels.
    """
    result: list[RowData] = []
    columns = layout.columns
    for index in range(layout.data_start, len(rows)):
        cells = rows[index]
        values: dict[str, Any] | None = None
        if not layout.positional:
            values = {}
            for label, cell in zip(columns, cells, strict=False):
                if label and label not in values:
                    values[label] = cell
        result.append(RowData(row_number=index + 1, cells=cells, values=values))
    return result
