from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..models.config_models import FieldSpec

"""Column resolver: raw row + FieldSpec -> raw cell value.

Header rows are label -> value mappings and are searched by alias, in the
declared order, with case-sensitive exact label matching. Positional rows are
plain sequences and are indexed by FieldSpec.position; aliases are not
consulted. The orchestrator picks the row shape per upload from the detected
sheet layout, so the two modes never mix within one job.

The resolver never raises. A missing column, a blank cell and an unset
position all come back as ABSENT.
"""

__all__ = [
    "ABSENT",
    "is_blank",
    "resolve",
    "resolve_row",
]


class _Absent:
    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


def is_blank(value: Any) -> bool:
    """True for None, NaN and whitespace-only strings."""
    if value is None or value is ABSENT:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def resolve(row: Mapping[str, Any] | Sequence[Any], spec: FieldSpec) -> Any:
    if isinstance(row, Mapping):
        for alias in spec.aliases:
            value = row.get(alias, ABSENT)
            if not is_blank(value):
                return value
        return ABSENT

    if spec.position is None or spec.position < 0 or spec.position >= len(row):
        return ABSENT
    value = row[spec.position]
    return ABSENT if is_blank(value) else value


def resolve_row(
    row: Mapping[str, Any] | Sequence[Any], fields: Iterable[FieldSpec]
) -> dict[str, Any]:
    """Resolve every field of a row; absent fields map to ABSENT."""
    return {spec.name: resolve(row, spec) for spec in fields}
