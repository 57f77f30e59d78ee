#!/usr/bin/env python
"""Command-line entry point for the Keep to Memos importer."""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from keep2memos import __version__
from keep2memos.config import ImporterConfig
from keep2memos.exceptions import ImporterError, SourceDirectoryError
from keep2memos.observability import configure_logging, metrics
from keep2memos.services.import_service import ImportService
from keep2memos.storage import MemosApiBackend, MemosDatabaseBackend, SyncBackend

logger = logging.getLogger(__name__)

# (flag, config field, type, help)
_OPTIONS = [
    ("--source-dir", "source_dir", Path, "Directory with the Keep JSON export"),
    ("--backend", "backend", str, "Sync backend: 'api' or 'db'"),
    ("--workers", "workers", int, "Notes processed in parallel"),
    ("--memos-url", "memos_url", str, "Memos server URL (api backend)"),
    ("--memos-token", "memos_token", str, "Memos access token (api backend)"),
    ("--timeout", "request_timeout", float, "Request timeout in seconds"),
    ("--db-url", "database_url", str, "Full SQLAlchemy URL of the Memos database"),
    ("--db-host", "db_host", str, "Memos database host"),
    ("--db-port", "db_port", int, "Memos database port"),
    ("--db-name", "db_name", str, "Memos database name"),
    ("--db-username", "db_username", str, "Memos database user"),
    ("--db-password", "db_password", str, "Memos database password"),
    ("--memos-user", "memos_user_id", int, "Memos user id owning the imported memos"),
    ("--memos-dir", "memos_dir", Path, "Memos data directory (db backend)"),
    ("--memos-resources-path", "memos_resources_path", str,
     "Resources directory inside the Memos data directory"),
    ("--log-dir", "log_dir", Path, "Directory for a rotating log file"),
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="keep2memos",
        description="Import a Google Keep export into Memos",
    )
    for flag, dest, type_, help_text in _OPTIONS:
        parser.add_argument(flag, dest=dest, type=type_, help=help_text, default=None)
    parser.add_argument(
        "--log-level",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def update_config(args: argparse.Namespace, cfg: ImporterConfig) -> ImporterConfig:
    """Override config values with those given on the command line."""
    for _, dest, _, _ in _OPTIONS:
        value = getattr(args, dest)
        if value is not None:
            setattr(cfg, dest, value)
    if args.log_level:
        cfg.log_level = args.log_level
    return cfg


def build_backend(cfg: ImporterConfig) -> SyncBackend:
    """Create the backend selected in the config."""
    if cfg.backend == "api":
        return MemosApiBackend(cfg.memos_url, cfg.memos_token, timeout=cfg.request_timeout)
    return MemosDatabaseBackend.from_config(cfg)


def main(argv: Optional[List[str]] = None) -> int:
    """Run an import. Returns the process exit status."""
    args = parse_args(argv)

    try:
        cfg = update_config(args, ImporterConfig())
    except PydanticValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    log_level = getattr(logging, cfg.log_level.upper(), logging.INFO)
    try:
        configure_logging(level=log_level, log_dir=cfg.log_dir)
    except OSError as e:
        # Fall back to console logging if the log directory is unusable
        logging.basicConfig(level=log_level)
        logger.warning(f"Failed to configure file logging: {e}")

    try:
        cfg.validate_for_backend()
    except ImporterError as e:
        logger.error(str(e))
        return 1

    logger.info(f"keep2memos {__version__}: importing {cfg.source_dir} via {cfg.backend} backend")

    try:
        backend = build_backend(cfg)
    except (SQLAlchemyError, ImportError) as e:
        logger.error(f"Failed to set up the {cfg.backend} backend: {e}")
        return 1

    try:
        with backend:
            service = ImportService(backend, cfg.source_dir, workers=cfg.workers)
            counters = service.run()
    except SourceDirectoryError as e:
        logger.error(str(e))
        return 1

    metrics.log_summary()

    print()
    for line in counters.summary_lines():
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
