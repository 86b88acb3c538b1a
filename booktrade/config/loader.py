from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DatabaseConfig, IngestConfig
from ..services.normalizer import DEFAULT_CURRENCY_CODES, DEFAULT_CURRENCY_SYMBOLS

"""Config loader.

Responsibilities:
- Load YAML config (default config/ingest.yml)
- Validate against the bundled JSON schema (ingest_schema.json)
- Apply defaults for every optional key
"""

SCHEMA_PATH = Path(__file__).with_name("ingest_schema.json")
DEFAULT_CONFIG_PATH = Path("config/ingest.yml")

DEFAULT_UPLOAD_DIR = "./uploads"
DEFAULT_LOGS_DIR = "./logs"
DEFAULT_ERROR_SAMPLE_LIMIT = 5


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (unknown keys, wrong types, ...).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> IngestConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    currency = data.get("currency") or {}
    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return IngestConfig(
        upload_dir=data.get("upload_dir", DEFAULT_UPLOAD_DIR),
        logs_dir=data.get("logs_dir", DEFAULT_LOGS_DIR),
        error_sample_limit=data.get("error_sample_limit", DEFAULT_ERROR_SAMPLE_LIMIT),
        currency_symbols=tuple(currency.get("symbols", DEFAULT_CURRENCY_SYMBOLS)),
        currency_codes=tuple(c.upper() for c in currency.get("codes", DEFAULT_CURRENCY_CODES)),
        sources=data.get("sources") or {},
        database=db,
    )


def default_config() -> IngestConfig:
    """Configuration used when no config file is present."""
    return IngestConfig(
        upload_dir=DEFAULT_UPLOAD_DIR,
        logs_dir=DEFAULT_LOGS_DIR,
        error_sample_limit=DEFAULT_ERROR_SAMPLE_LIMIT,
        currency_symbols=DEFAULT_CURRENCY_SYMBOLS,
        currency_codes=DEFAULT_CURRENCY_CODES,
    )
