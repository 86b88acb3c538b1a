from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from booktrade.config.loader import DEFAULT_CONFIG_PATH, ConfigError, default_config, load_config
from booktrade.config.sources import SourceConfigError, build_sources
from booktrade.db import reports
from booktrade.db.memory import MemoryStore
from booktrade.db.schema import ensure_schema
from booktrade.db.store import PostgresStore, StoreError
from booktrade.excel.reader import WorkbookError, build_rows, read_sheet
from booktrade.logging.error_log import ErrorLogBuffer
from booktrade.logging.init import log_summary, setup_logging
from booktrade.models.config_models import DatabaseConfig, IngestConfig, IngestMode
from booktrade.services.orchestrator import IngestError, ingest_upload, locate_header
from booktrade.services.summary import render_error_sample, render_summary_line
from booktrade.services.upload import UploadError, stage_upload, transient_upload

"""Command line entrypoint.

    booktrade-ingest ingest {booksonix,gazelle} FILE [--mode merge|append] [--dry-run] [--json]
    booktrade-ingest clear {booksonix,gazelle}
    booktrade-ingest stats {booksonix,gazelle}
    booktrade-ingest customers
    booktrade-ingest init-db
    booktrade-ingest inspect FILE [--source NAME]

The CLI plays the upload transport: it stages a copy of FILE as the
transient upload that the orchestrator consumes and deletes.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

SOURCE_NAMES = ("booksonix", "gazelle")

_STATS = {
    "booksonix": reports.catalog_stats,
    "gazelle": reports.sales_stats,
}


def _resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Connection settings, in order of precedence:

    1. DATABASE_URL / PGDSN (from the environment or .env)
    2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the database section of ingest.yml
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_cursor(cfg: IngestConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Open an autocommit connection and yield a cursor; closed on exit."""
    conn = psycopg2.connect(_resolve_dsn(cfg.database))
    try:
        # every row commits on its own
        conn.autocommit = True
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="booktrade-ingest", description="Book-trade spreadsheet ingestion")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Ingest one spreadsheet export")
    ingest.add_argument("source", choices=SOURCE_NAMES)
    ingest.add_argument("file", type=Path)
    ingest.add_argument("--mode", choices=[m.value for m in IngestMode], default=None)
    ingest.add_argument("--dry-run", action="store_true", help="Reconcile against an in-memory store")
    ingest.add_argument("--json", action="store_true", help="Print the summary as JSON")

    clear = sub.add_parser("clear", help="Delete every record of a source")
    clear.add_argument("source", choices=SOURCE_NAMES)

    stats = sub.add_parser("stats", help="Print aggregate statistics")
    stats.add_argument("source", choices=SOURCE_NAMES)

    sub.add_parser("customers", help="Print the per-customer sales roll-up (JSON Lines)")

    sub.add_parser("init-db", help="Create tables and indexes")

    inspect = sub.add_parser("inspect", help="Print detected header and first rows then exit")
    inspect.add_argument("file", type=Path)
    inspect.add_argument("--source", choices=SOURCE_NAMES, default="booksonix")
    return p.parse_args(argv)


def _load(args: argparse.Namespace) -> IngestConfig:
    if args.config is not None:
        return load_config(args.config)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def _cmd_ingest(args: argparse.Namespace, cfg: IngestConfig, logger: Any) -> int:
    source = build_sources(cfg)[args.source]
    mode = IngestMode(args.mode) if args.mode else None
    error_log = ErrorLogBuffer(Path(cfg.logs_dir))

    try:
        upload = stage_upload(args.file, Path(cfg.upload_dir))
    except UploadError as e:
        logger.error(f"upload: {e}")
        return EXIT_FATAL

    def run(store: Any) -> Any:
        return ingest_upload(
            upload,
            source,
            store,
            mode=mode,
            error_sample_limit=cfg.error_sample_limit,
            error_log=error_log,
            original_name=args.file.name,
        )

    try:
        # also covers a failed connect, before the orchestrator takes ownership
        with transient_upload(upload):
            if args.dry_run:
                summary = run(MemoryStore())
            else:
                with _db_cursor(cfg) as cur:
                    summary = run(PostgresStore(cur))
    except psycopg2.Error as e:
        logger.error(f"database: {str(e).strip()}")
        return EXIT_FATAL
    except IngestError as e:
        logger.error(f"ingest: {e}")
        return EXIT_FATAL
    finally:
        path = error_log.flush()
        if path is not None:
            logger.info(f"row errors written to {path}")

    if args.json:
        print(json.dumps(summary.to_dict(), ensure_ascii=False, default=str))
    for line in render_error_sample(summary):
        logger.warning(line)
    log_summary(render_summary_line(summary))
    return EXIT_PARTIAL_FAILURE if summary.has_errors else EXIT_SUCCESS


def _cmd_clear(args: argparse.Namespace, cfg: IngestConfig, logger: Any) -> int:
    kind = build_sources(cfg)[args.source].entity
    with _db_cursor(cfg) as cur:
        deleted = PostgresStore(cur).delete_all(kind)
    logger.info(f"cleared table={kind.table} deleted={deleted}")
    return EXIT_SUCCESS


def _cmd_stats(args: argparse.Namespace, cfg: IngestConfig, logger: Any) -> int:
    with _db_cursor(cfg) as cur:
        data = _STATS[args.source](cur)
    print(json.dumps(data, ensure_ascii=False, default=str))
    return EXIT_SUCCESS


def _cmd_customers(args: argparse.Namespace, cfg: IngestConfig, logger: Any) -> int:
    with _db_cursor(cfg) as cur:
        rows = reports.customer_summary(cur)
    for row in rows:
        print(json.dumps(row, ensure_ascii=False, default=str))
    logger.info(f"customers={len(rows)}")
    return EXIT_SUCCESS


def _cmd_init_db(args: argparse.Namespace, cfg: IngestConfig, logger: Any) -> int:
    sources = build_sources(cfg)
    with _db_cursor(cfg) as cur:
        for source in sources.values():
            ensure_schema(cur, source.entity)
    return EXIT_SUCCESS


def _cmd_inspect(args: argparse.Namespace, cfg: IngestConfig, logger: Any) -> int:
    source = build_sources(cfg)[args.source]
    try:
        sheet = read_sheet(args.file, source.sheet)
    except WorkbookError as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    layout = locate_header(sheet.rows, source)
    print(f"FILE: {args.file.name} SHEET: {sheet.sheet_name}")
    if layout.positional:
        print("  header: none (positional)")
    else:
        print(f"  header_row={layout.header_index + 1} cols={list(layout.columns)}")
    for row in build_rows(sheet.rows, layout)[:3]:
        cells = row.values if row.values is not None else row.cells
        print(f"  row {row.row_number}: {cells}")
    return EXIT_SUCCESS


_COMMANDS = {
    "ingest": _cmd_ingest,
    "clear": _cmd_clear,
    "stats": _cmd_stats,
    "customers": _cmd_customers,
    "init-db": _cmd_init_db,
    "inspect": _cmd_inspect,
}


def main(argv: list[str] | None = None) -> int:
    # None only: an empty list from tests must not pick up pytest's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    load_dotenv(dotenv_path=Path(".env"), override=True)

    try:
        cfg = _load(args)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        return _COMMANDS[args.command](args, cfg, logger)
    except SourceConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except (psycopg2.Error, StoreError) as e:
        logger.error(f"database: {str(e).strip()}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
