from __future__ import annotations
import json
from datetime import UTC, datetime
from pathlib import Path
from booktrade.logging.error_log import ErrorLogBuffer
from booktrade.models.error_record import ErrorRecord

KEYS = {"timestamp", "file", "source", "row", "error_type", "message", "value"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        file="stock.xlsx",
        source="booksonix",
        row=10,
        error_type="STORAGE_ERROR",
        message="value too long for type character varying(100)",
        value="ABC123",
    )
    data = json.loads(rec.to_json_line())
    assert data["file"] == "stock.xlsx"
    assert data["source"] == "booksonix"
    assert data["row"] == 10
    assert data["value"] == "ABC123"
    assert "timestamp" in data and data["timestamp"].endswith("Z")
    assert set(data.keys()) == KEYS


def test_error_record_keeps_non_ascii():
    rec = ErrorRecord.create("ventes.xlsx", "gazelle", 3, "MISSING_NATURAL_KEY", "natural key is empty", "Éditions £")
    assert "Éditions £" in rec.to_json_line()


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    buf.append(ErrorRecord.create("f1.xlsx", "booksonix", 2, "MISSING_NATURAL_KEY", "natural key is empty"))
    buf.append(ErrorRecord.create("f1.xlsx", "booksonix", 5, "STORAGE_ERROR", "boom", "X1"))
    assert len(buf) == 2
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == temp_workdir / "logs"
    assert path.name.startswith("errors-") and path.suffix == ".log"
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw).keys()) == KEYS
    assert len(buf) == 0
    assert buf.pending == []


def test_error_log_buffer_multiple_flushes(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    buf.append(ErrorRecord.create("f.xlsx", "gazelle", 1, "DUPLICATE_KEY", "dup"))
    path = buf.flush()
    size1 = path.stat().st_size
    buf.append(ErrorRecord.create("f.xlsx", "gazelle", 2, "DUPLICATE_KEY", "dup2"))
    path2 = buf.flush()
    assert path == path2
    assert path2.stat().st_size > size1


def test_error_log_buffer_name_uses_start_time(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path, started=datetime(2025, 3, 1, 9, 5, 7, tzinfo=UTC))
    assert buf.path == tmp_path / "errors-20250301-090507.log"


def test_error_log_buffer_empty_flush_writes_nothing(tmp_path: Path):
    logs = tmp_path / "nested" / "logs"
    buf = ErrorLogBuffer(logs)
    assert buf.flush() is None
    assert not logs.exists()
