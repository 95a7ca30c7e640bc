"""Shared CLI plumbing: config + database + service wiring."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from rich.console import Console

from archivist.cli.errors import err_config, err_no_db
from archivist.config import ArchivistConfig, ConfigError, load_config
from archivist.db.connection import Database
from archivist.db.migrations import initialize
from archivist.knowledge import KnowledgeService
from archivist.log import configure_logging

DEFAULT_DB = Path(".archivist.db")


def load_cli_config(console: Console) -> ArchivistConfig:
    """Load config and set up logging; exit 1 on an invalid config."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    configure_logging(cfg.logging.level)
    return cfg


def open_db(db_path: Path) -> sqlite3.Connection:
    conn = Database(db_path).connect()
    initialize(conn)
    return conn


@contextmanager
def open_service(db_path: Path, console: Console) -> Iterator[KnowledgeService]:
    """Yield a KnowledgeService over an existing database, closing it afterwards."""
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)
    cfg = load_cli_config(console)
    conn = open_db(db_path)
    try:
        yield KnowledgeService.from_config(conn, cfg)
    finally:
        conn.close()
