"""archivist init — create an empty knowledge base.

Creates:
  .archivist.db    — SQLite database with the current schema
  archivist.yaml   — project config with defaults (only if missing)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from archivist.cli.context import DEFAULT_DB, open_db

console = Console()

_PROJECT_YAML = """\
# Archivist project configuration.
# NEVER store API keys here. Use environment variables:
#   export GEMINI_API_KEY=...

embedding:
  model: gemini/gemini-embedding-001
  timeout: 15
  max_input_tokens: 2048

chunking:
  max_chars: 800
  overlap: 100

retrieval:
  top_k: 10
"""


def init_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .archivist.db (created if missing)."),
    ] = DEFAULT_DB,
    write_config: Annotated[
        bool,
        typer.Option("--config/--no-config", help="Write archivist.yaml next to the database."),
    ] = True,
) -> None:
    """Create the knowledge base database (idempotent)."""
    existed = db.exists()
    db.parent.mkdir(parents=True, exist_ok=True)
    conn = open_db(db)
    conn.close()

    if existed:
        console.print(f"[dim]↷ {db} already exists — schema is up to date[/]")
    else:
        console.print(f"[green]✓[/] {db}")

    if write_config:
        cfg_path = db.parent / "archivist.yaml"
        if not cfg_path.exists():
            cfg_path.write_text(_PROJECT_YAML, encoding="utf-8")
            console.print(f"[green]✓[/] {cfg_path}")
