from __future__ import annotations

from pathlib import Path

import pytest

from booktrade.config.loader import ConfigError, default_config, load_config
from booktrade.services.normalizer import DEFAULT_CURRENCY_SYMBOLS


def test_load_config_basic(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.upload_dir == "./uploads"
    assert cfg.logs_dir == "./logs"
    assert cfg.error_sample_limit == 5
    assert cfg.currency_symbols == ("£", "$")
    assert cfg.currency_codes == ("GBP", "USD")
    assert cfg.sources["gazelle"]["mode"] == "append"
    assert cfg.sources["booksonix"]["aliases"] == {"sku": ["Stock Code"]}
    assert cfg.database.user == "appuser"
    assert cfg.database.port == 5432
    assert cfg.database.dsn is None


def test_load_config_minimal_applies_defaults(temp_workdir: Path):
    cfg_path = temp_workdir / "config" / "ingest.yml"
    cfg_path.write_text("{}\n", encoding="utf-8")
    cfg = load_config(cfg_path)
    assert cfg.upload_dir == "./uploads"
    assert cfg.error_sample_limit == 5
    assert cfg.currency_symbols == DEFAULT_CURRENCY_SYMBOLS
    assert cfg.sources == {}


def test_load_config_codes_are_upper_cased(temp_workdir: Path):
    cfg_path = temp_workdir / "config" / "ingest.yml"
    cfg_path.write_text("currency:\n  codes: [chf, Sek]\n", encoding="utf-8")
    assert load_config(cfg_path).currency_codes == ("CHF", "SEK")


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_load_config_invalid_yaml(temp_workdir: Path):
    cfg_path = temp_workdir / "config" / "ingest.yml"
    cfg_path.write_text("upload_dir: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(cfg_path)


def test_load_config_root_must_be_mapping(temp_workdir: Path):
    cfg_path = temp_workdir / "config" / "ingest.yml"
    cfg_path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(cfg_path)


@pytest.mark.parametrize(
    "body",
    [
        "unexpected_key: 1\n",
        "error_sample_limit: -1\n",
        "sources:\n  amazon:\n    mode: merge\n",
        "sources:\n  booksonix:\n    mode: replace\n",
        "sources:\n  gazelle:\n    header: first\n",
        "sources:\n  booksonix:\n    strip_hyphens:\n      sku: yes please\n",
        "currency:\n  codes: [POUNDS]\n",
    ],
)
def test_load_config_schema_violations(temp_workdir: Path, body: str):
    cfg_path = temp_workdir / "config" / "ingest.yml"
    cfg_path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(cfg_path)


def test_default_config():
    cfg = default_config()
    assert cfg.logs_dir == "./logs"
    assert cfg.sources == {}
    assert cfg.database.dsn is None
