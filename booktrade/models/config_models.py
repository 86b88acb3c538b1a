from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..excel.header import HeaderLocator

"""Domain configuration models for the book-trade ingestion pipeline.

These are the typed, validated counterparts of the raw YAML configuration
produced by booktrade.config.loader. The per-source field tables in
booktrade.config.sources are expressed with these classes.
"""


class FieldKind(Enum):
    """Value kind of a target field; selects the normalizer applied to it."""
    TEXT = "text"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    QUANTITY = "quantity"
    DATE = "date"
    IDENTIFIER = "identifier"


class IngestMode(Enum):
    """Conflict policy when a row's natural key already exists.

    - MERGE: natural-key collision updates the stored entity (coalesce-keep-existing)
    - APPEND: every qualifying row is inserted; storage uniqueness violations
      are reported as duplicates
    """
    MERGE = "merge"
    APPEND = "append"


@dataclass(frozen=True)
class FieldSpec:
    """Declares how one target field is found in a sheet and how it is typed."""
    name: str  # Target column name
    kind: FieldKind
    aliases: tuple[str, ...] = ()  # Header labels tried in order (case-sensitive)
    position: int | None = None  # Column index used when the sheet has no usable header
    strip_hyphens: bool = False  # identifier kind only


@dataclass(frozen=True)
class EntityKind:
    """Relational shape of one persisted entity kind."""
    name: str
    table: str
    key_columns: tuple[str, ...]  # Natural key (unique constraint)
    required_key_columns: tuple[str, ...]  # Empty value here -> row rejected
    columns: tuple[str, ...]  # All data columns written on insert, key included
    text_columns: frozenset[str] = frozenset()  # '' is treated as empty on merge
    touch_column: str = "last_updated"  # Timestamp refreshed on merge

    @property
    def update_columns(self) -> tuple[str, ...]:
        return tuple(c for c in self.columns if c not in self.key_columns)


@dataclass(frozen=True)
class SourceSpec:
    """Everything the orchestrator needs to ingest one upstream export format."""
    name: str  # e.g. "booksonix"
    entity: EntityKind
    fields: tuple[FieldSpec, ...]
    header_locator: HeaderLocator
    mode: IngestMode = IngestMode.MERGE
    sheet: str | int | None = None  # None -> first sheet in the workbook
    currency_symbols: tuple[str, ...] = ()
    currency_codes: tuple[str, ...] = ()

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class IngestConfig:
    """Root configuration object loaded from config/ingest.yml."""
    upload_dir: str
    logs_dir: str
    error_sample_limit: int
    currency_symbols: tuple[str, ...]
    currency_codes: tuple[str, ...]
    sources: dict[str, dict] = field(default_factory=dict)  # Raw per-source overrides
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
