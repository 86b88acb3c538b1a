# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from booktrade.config.sources import default_sources
from booktrade.db.memory import MemoryStore
from booktrade.logging.init import reset_logging
from booktrade.models.config_models import SourceSpec


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "uploads").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """upload_dir: ./uploads
logs_dir: ./logs
error_sample_limit: 5
currency:
  symbols: ["£", "$"]
  codes: [GBP, USD]
sources:
  booksonix:
    mode: merge
    header: auto
    strip_hyphens:
      sku: true
    aliases:
      sku: ["Stock Code"]
  gazelle:
    mode: append
    header: 1
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: booktrade
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Write rows (first row included) to a one-sheet .xlsx without a pandas header."""

    def _make(rows: list[list[object]], name: str = "upload.xlsx", sheet: str = "Sheet1") -> Path:
        path = tmp_path / name
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
        return path

    return _make


@pytest.fixture()
def sources() -> dict[str, SourceSpec]:
    return default_sources()


@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()
