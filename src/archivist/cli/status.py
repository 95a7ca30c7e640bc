"""archivist status — knowledge base overview.

Shows document, chunk and assignment counts, and the share of chunks that
carry an embedding (the rest are invisible to retrieval until backfilled).
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from archivist.cli.context import DEFAULT_DB, open_service
from archivist.db.models import AGENT, GLOBAL
from archivist.knowledge import KnowledgeService

console = Console()


def status_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .archivist.db."),
    ] = DEFAULT_DB,
    list_docs: Annotated[
        bool,
        typer.Option("--list", "-l", help="List every document with its chunk count."),
    ] = False,
) -> None:
    """Show knowledge base statistics."""
    with open_service(db, console) as service:
        _show_summary_panel(db, service)
        if list_docs:
            _show_document_table(service)


def _show_summary_panel(db: Path, service: KnowledgeService) -> None:
    repo = service.repo
    agent_docs = repo.list_agent_documents()
    global_docs = repo.list_global_documents()
    total_chunks = repo.count_chunks()
    embedded = repo.count_chunks(embedded_only=True)
    agents = {d.agent_id for d in agent_docs}

    size_mb = db.stat().st_size / (1024 * 1024)
    lines = [
        f"Database:  {db} ({size_mb:.1f} MB)",
        f"Model:     {service.config.embedding.model}",
        f"Documents: [bold]{len(agent_docs)}[/] agent ({len(agents)} agents)  |  "
        f"[bold]{len(global_docs)}[/] global",
        f"Chunks:    [bold]{total_chunks:,}[/]  |  embedded: [bold]{embedded:,}[/]",
        f"Assignments: [bold]{repo.count_assignments()}[/]",
    ]
    if embedded < total_chunks:
        lines.append(
            f"[yellow]⚠ {total_chunks - embedded} chunks without embedding — run: archivist backfill[/]"
        )
    console.print(Panel("\n".join(lines), title="[bold]Knowledge Base[/]", expand=False))


def _show_document_table(service: KnowledgeService) -> None:
    repo = service.repo
    table = Table(title="Documents")
    table.add_column("Scope")
    table.add_column("Id")
    table.add_column("Owner")
    table.add_column("Title")
    table.add_column("Chunks", justify="right")

    for doc in repo.list_agent_documents():
        table.add_row(AGENT, doc.id, doc.agent_id, doc.title, str(repo.count_chunks_by_source(AGENT, doc.id)))
    for gdoc in repo.list_global_documents():
        table.add_row(GLOBAL, gdoc.id, "—", gdoc.title, str(repo.count_chunks_by_source(GLOBAL, gdoc.id)))
    console.print(table)
