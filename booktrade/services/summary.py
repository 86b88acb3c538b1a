from __future__ import annotations

from ..models.processing_result import IngestSummary

"""Summary line rendering for ingestion results."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(summary: IngestSummary) -> str:
    """Render the SUMMARY line for one upload.

    Format:
    SUMMARY source={source} file={file} mode={mode} rows={total} new={new}
    updated={updated} duplicates={dup} skipped={skipped} errors={errors}
    elapsed_sec={elapsed}

    Examples:
        >>> s = IngestSummary(
        ...     source="booksonix", file_name="stock.xlsx", mode="merge", total_rows=3,
        ...     new_records=1, updated_records=1, duplicates=0, skipped_rows=1, errors=0,
        ...     elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(s)
        'SUMMARY source=booksonix file=stock.xlsx mode=merge rows=3 new=1 updated=1 duplicates=0 skipped=1 errors=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY source={summary.source} "
        f"file={summary.file_name} "
        f"mode={summary.mode} "
        f"rows={summary.total_rows} "
        f"new={summary.new_records} "
        f"updated={summary.updated_records} "
        f"duplicates={summary.duplicates} "
        f"skipped={summary.skipped_rows} "
        f"errors={summary.errors} "
        f"elapsed_sec={_format_seconds(summary.elapsed_seconds)}"
    )


def render_error_sample(summary: IngestSummary) -> list[str]:
    return [
        f"row={s.row} value={s.value if s.value is not None else '-'} error={s.message}"
        for s in summary.error_sample
    ]
