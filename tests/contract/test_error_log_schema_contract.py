from __future__ import annotations

import json
import re
from pathlib import Path

from booktrade.cli import main as cli_main

"""JSON Lines error log contract: one object per rejected row, fixed keys."""

KEYS = {"timestamp", "file", "source", "row", "error_type", "message", "value"}
TYPES = {"MISSING_NATURAL_KEY", "DUPLICATE_KEY", "STORAGE_ERROR", "WORKBOOK_ERROR"}


def _records(logs_dir: Path) -> list[dict]:
    files = sorted(logs_dir.glob("errors-*.log"))
    assert files, "no error log written"
    assert re.match(r"^errors-\d{8}-\d{6}\.log$", files[0].name)
    return [json.loads(line) for f in files for line in f.read_text(encoding="utf-8").splitlines()]


def test_rejected_rows_logged(temp_workdir: Path, make_workbook):
    path = make_workbook(
        [["Order Ref", "Customer Name"], ["ORD-1", "Acme"], ["ORD-1", "Acme"], [None, "Acme"]],
        name="sales.xlsx",
    )
    cli_main(["ingest", "gazelle", str(path), "--dry-run", "--mode", "append"])
    records = _records(temp_workdir / "logs")
    assert len(records) == 2
    for rec in records:
        assert set(rec) == KEYS
        assert rec["error_type"] in TYPES
        assert rec["file"] == "sales.xlsx"
        assert rec["source"] == "gazelle"
        assert rec["timestamp"].endswith("Z")
    assert [(r["row"], r["error_type"]) for r in records] == [(3, "DUPLICATE_KEY"), (4, "MISSING_NATURAL_KEY")]
    assert records[0]["value"] == "ORD-1//Acme"


def test_workbook_error_uses_row_minus_one(temp_workdir: Path):
    bad = temp_workdir / "data" / "broken.xlsx"
    bad.write_bytes(b"\x00\x01")
    assert cli_main(["ingest", "booksonix", str(bad), "--dry-run"]) == 1
    records = _records(temp_workdir / "logs")
    assert records == [
        {**records[0], "row": -1, "error_type": "WORKBOOK_ERROR", "file": "broken.xlsx", "value": None}
    ]
