from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from ..models.config_models import FieldSpec

"""Header location strategies.

Upstream exports disagree on where the header sits: Booksonix writes it on the
first row, Gazelle sometimes puts a report title above it, and some exports
arrive with no usable header at all. Each source is configured with one
HeaderLocator; the orchestrator only sees the resulting HeaderLayout.
"""

__all__ = [
    "AliasHeaderLocator",
    "FixedHeaderLocator",
    "HeaderLayout",
    "HeaderLocator",
    "NoHeaderLocator",
    "header_labels",
    "locator_from_setting",
]


@dataclass(frozen=True)
class HeaderLayout:
    """Detected sheet layout.

    header_index is the 0-based sheet row holding column labels; data starts
    on the next row. None means positional mode: every row is data.
    """
    header_index: int | None
    columns: tuple[str, ...] = ()

    @property
    def positional(self) -> bool:
        return self.header_index is None

    @property
    def data_start(self) -> int:
        return 0 if self.header_index is None else self.header_index + 1


class HeaderLocator(Protocol):
    def locate(
        self,
        rows: Sequence[Sequence[Any]],
        fields: Sequence[FieldSpec],
        key_fields: Sequence[str] = (),
    ) -> HeaderLayout: ...


def header_labels(row: Sequence[Any]) -> tuple[str, ...]:
    """Stringify a header row; blank cells become empty labels."""
    return tuple("" if c is None else str(c).strip() for c in row)


class FixedHeaderLocator:
    """Header always at a given row index."""

    def __init__(self, index: int = 0) -> None:
        self.index = index

    def locate(
        self,
        rows: Sequence[Sequence[Any]],
        fields: Sequence[FieldSpec],
        key_fields: Sequence[str] = (),
    ) -> HeaderLayout:
        if len(rows) <= self.index:
            return HeaderLayout(header_index=None)
        return HeaderLayout(header_index=self.index, columns=header_labels(rows[self.index]))


class NoHeaderLocator:
    """Sheet has no usable header; fields are read by position."""

    def locate(
        self,
        rows: Sequence[Sequence[Any]],
        fields: Sequence[FieldSpec],
        key_fields: Sequence[str] = (),
    ) -> HeaderLayout:
        return HeaderLayout(header_index=None)


class AliasHeaderLocator:
    """Pick the candidate row whose labels match the most field aliases.

    Only the first `candidates` rows are inspected (row 0 header, or row 1
    header below a title row). A row qualifies when it matches at least
    `min_matches` distinct fields, or when it names one of `key_fields`
    (a lone "SKU" column is still a header). Without a qualifying row the
    sheet falls back to positional mode.
    """

    def __init__(self, candidates: int = 2, min_matches: int = 2) -> None:
        self.candidates = candidates
        self.min_matches = min_matches

    def locate(
        self,
        rows: Sequence[Sequence[Any]],
        fields: Sequence[FieldSpec],
        key_fields: Sequence[str] = (),
    ) -> HeaderLayout:
        best_index: int | None = None
        best_score = 0
        for index, row in enumerate(rows[: self.candidates]):
            labels = set(header_labels(row))
            matched = {spec.name for spec in fields if labels.intersection(spec.aliases)}
            if len(matched) < self.min_matches and not matched.intersection(key_fields):
                continue
            # earlier row wins ties
            if len(matched) > best_score:
                best_index, best_score = index, len(matched)
        if best_index is None:
            return HeaderLayout(header_index=None)
        return HeaderLayout(header_index=best_index, columns=header_labels(rows[best_index]))


def locator_from_setting(setting: Any) -> HeaderLocator:
    """Build a locator from the `header` config value: auto | none | <row index>."""
    if setting is None or setting == "auto":
        return AliasHeaderLocator()
    if setting == "none":
        return NoHeaderLocator()
    if isinstance(setting, int) and not isinstance(setting, bool) and setting >= 0:
        return FixedHeaderLocator(setting)
    raise ValueError(f"invalid header setting: {setting!r}")
