"""archivist backfill — re-index every stored document.

Useful after changing the embedding model or chunking settings, or to fill
in documents written while the embedding provider was unavailable. A failing
document is counted and skipped; the run always completes.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from archivist.cli.context import DEFAULT_DB, open_service
from archivist.cli.errors import err_no_api_key
from archivist.rag.embeddings import required_api_key

console = Console()


def backfill_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .archivist.db."),
    ] = DEFAULT_DB,
) -> None:
    """Rebuild the chunks and embeddings of all agent and global documents."""
    with open_service(db, console) as service:
        model = service.config.embedding.model
        env_var = required_api_key(model)
        if env_var and not os.environ.get(env_var):
            console.print(err_no_api_key(model))
            raise typer.Exit(1)

        agent_total = len(service.repo.list_agent_documents())
        global_total = len(service.repo.list_global_documents())
        with console.status("Re-indexing…"):
            report = service.reindex_all()

    console.print("[green]✓[/] Backfill done.")
    console.print(
        f"  Agent:  {report.agent_done} ok, {report.agent_failed} failed (total {agent_total})"
    )
    console.print(
        f"  Global: {report.global_done} ok, {report.global_failed} failed (total {global_total})"
    )
    if report.failed:
        raise typer.Exit(1)
