from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..db.store import EntityStore
from ..excel.header import HeaderLayout
from ..excel.reader import WorkbookError, build_rows, read_sheet
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import IngestMode, SourceSpec
from ..models.error_record import ErrorRecord
from ..models.processing_result import IngestSummary, SummaryCounter
from ..models.record import NormalizedRecord, Outcome, ReconcileResult, RejectReason
from ..models.row_data import RowData
from .normalizer import normalize_value
from .progress import RowProgress
from .reconciler import reconcile
from .resolver import resolve_row
from .upload import transient_upload

"""Ingestion orchestration for one uploaded workbook.

Start -> LocateHeader -> IterateRows -> Finalize:
1. Read the configured sheet of the transient upload
2. Let the source's HeaderLocator decide header row / positional layout
3. Pipe every non-blank data row through resolver -> normalizer -> reconciler
4. Delete the upload and return an IngestSummary

Rows are persisted independently. A bad row is counted and the upload goes
on; only a workbook that cannot be read at all aborts with IngestError.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "IngestError",
    "ingest_upload",
    "locate_header",
    "normalize_row",
]

DEFAULT_ERROR_SAMPLE_LIMIT = 5

_REJECT_ERROR_TYPES = {
    RejectReason.NO_KEY: "MISSING_NATURAL_KEY",
    RejectReason.DUPLICATE: "DUPLICATE_KEY",
    RejectReason.ERROR: "STORAGE_ERROR",
}


class IngestError(Exception):
    """Pipeline-fatal error: the upload could not be processed at all."""


def locate_header(rows: list[list[Any]], source: SourceSpec) -> HeaderLayout:
    """Run the source's header strategy over the sheet rows.

    Each locator bounds its own search; a fixed header row may sit anywhere.
    """
    layout = source.header_locator.locate(rows, source.fields, source.entity.required_key_columns)
    if layout.positional:
        logger.info("source=%s no usable header found -> positional columns", source.name)
    else:
        logger.debug("source=%s header_row=%d columns=%s", source.name, layout.header_index, list(layout.columns))
    return layout


def normalize_row(row: RowData, source: SourceSpec) -> NormalizedRecord:
    """Resolve and normalize every field of one raw row."""
    resolved = resolve_row(row.raw, source.fields)
    values = {
        spec.name: normalize_value(
            resolved[spec.name],
            spec,
            currency_symbols=source.currency_symbols,
            currency_codes=source.currency_codes,
        )
        for spec in source.fields
    }
    return NormalizedRecord(values=values, row_number=row.row_number)


def _key_text(record: NormalizedRecord, source: SourceSpec) -> str | None:
    parts = [record.get(c) for c in source.entity.key_columns]
    if all(p in (None, "") for p in parts):
        return None
    return "/".join("" if p is None else str(p) for p in parts)


def _count(
    result: ReconcileResult,
    record: NormalizedRecord,
    source: SourceSpec,
    counter: SummaryCounter,
    error_log: ErrorLogBuffer | None,
    file_name: str,
) -> None:
    if result.outcome is Outcome.NEW:
        counter.new_records += 1
        return
    if result.outcome is Outcome.UPDATED:
        counter.updated_records += 1
        return

    key = _key_text(record, source)
    if result.reason is RejectReason.NO_KEY:
        counter.skipped_rows += 1
    elif result.reason is RejectReason.DUPLICATE:
        counter.duplicates += 1
    else:
        counter.errors += 1
        counter.add_error_sample(record.row_number, key, result.error or "storage error")
        logger.warning("row=%d key=%s storage error: %s", record.row_number, key, result.error)

    if error_log is not None:
        error_log.append(
            ErrorRecord.create(
                file=file_name,
                source=source.name,
                row=record.row_number,
                error_type=_REJECT_ERROR_TYPES[result.reason or RejectReason.ERROR],
                message=result.error or "natural key is empty",
                value=key,
            )
        )


def ingest_upload(
    upload_path: Path,
    source: SourceSpec,
    store: EntityStore,
    *,
    mode: IngestMode | None = None,
    error_sample_limit: int = DEFAULT_ERROR_SAMPLE_LIMIT,
    error_log: ErrorLogBuffer | None = None,
    original_name: str | None = None,
    show_progress: bool = True,
) -> IngestSummary:
    """Ingest one transient upload and delete it.

    Args:
        upload_path: Transient workbook path; removed before this returns or raises
        source: Source format (field table, header strategy, entity kind)
        store: Injected entity store
        mode: Overrides the source's configured ingestion mode
        error_sample_limit: Number of failed rows kept in the summary
        error_log: Receives one ErrorRecord per rejected/failed row
        original_name: File name reported in the summary (defaults to the upload name)

    Returns:
        IngestSummary with per-outcome counts and the bounded error sample

    Raises:
        IngestError: workbook unreadable or sheet missing
    """
    start_time = datetime.now(UTC)
    mode = mode or source.mode
    file_name = original_name or upload_path.name
    counter = SummaryCounter(sample_limit=error_sample_limit)

    with transient_upload(upload_path):
        try:
            sheet = read_sheet(upload_path, source.sheet)
        except WorkbookError as e:
            if error_log is not None:
                error_log.append(
                    ErrorRecord.create(
                        file=file_name,
                        source=source.name,
                        row=-1,
                        error_type="WORKBOOK_ERROR",
                        message=str(e),
                    )
                )
            raise IngestError(str(e)) from e

        logger.info(
            "source=%s file=%s sheet=%s mode=%s raw_rows=%d",
            source.name, file_name, sheet.sheet_name, mode.value, len(sheet.rows),
        )
        layout = locate_header(sheet.rows, source)
        data_rows = build_rows(sheet.rows, layout)

        with RowProgress(len(data_rows), description=f"{source.name}", enabled=show_progress) as progress:
            for row in data_rows:
                if row.is_blank:
                    counter.blank_rows += 1
                    progress.advance()
                    continue
                counter.total_rows += 1
                record = normalize_row(row, source)
                result = reconcile(store, source.entity, record, mode)
                _count(result, record, source, counter, error_log, file_name)
                progress.advance(**counter.postfix())

    end_time = datetime.now(UTC)
    summary = IngestSummary(
        source=source.name,
        file_name=file_name,
        mode=mode.value,
        total_rows=counter.total_rows,
        new_records=counter.new_records,
        updated_records=counter.updated_records,
        duplicates=counter.duplicates,
        skipped_rows=counter.skipped_rows,
        errors=counter.errors,
        blank_rows=counter.blank_rows,
        error_sample=list(counter.samples),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
    )
    logger.info(
        "source=%s file=%s rows=%d new=%d updated=%d duplicates=%d skipped=%d errors=%d",
        summary.source, summary.file_name, summary.total_rows, summary.new_records,
        summary.updated_records, summary.duplicates, summary.skipped_rows, summary.errors,
    )
    return summary
