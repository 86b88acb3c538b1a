"""Domain models for the book-trade ingestion pipeline.

This package contains the dataclasses shared by the reader, the pipeline
services and the stores.
"""

from .config_models import (
    DatabaseConfig,
    EntityKind,
    FieldKind,
    FieldSpec,
    IngestConfig,
    IngestMode,
    SourceSpec,
)
from .error_record import ErrorRecord
from .processing_result import ErrorSample, IngestSummary
from .record import NormalizedRecord, Outcome, ReconcileResult, RejectReason
from .row_data import RowData

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "EntityKind",
    "FieldKind",
    "FieldSpec",
    "IngestConfig",
    "IngestMode",
    "SourceSpec",
    # Processing models
    "ErrorRecord",
    "ErrorSample",
    "IngestSummary",
    "NormalizedRecord",
    "Outcome",
    "ReconcileResult",
    "RejectReason",
    "RowData",
]
