"""archivist add / assign / remove — document lifecycle.

Usage:
  archivist add --agent agent-1 --title "Opening hours" --file hours.txt
  archivist add --global --title "Return policy" --file returns.md
  archivist assign --agent agent-1 --global-id <id>
  archivist assign --agent agent-1 --global-id <id> --remove
  archivist remove --id <document-id> --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from archivist.cli.context import DEFAULT_DB, open_service
from archivist.cli.errors import (
    err_document_not_found,
    err_file_not_found,
    err_scope_required,
    warn_no_embeddings,
)
from archivist.db.models import AGENT, GLOBAL

console = Console()


def add_cmd(
    file: Annotated[
        Path,
        typer.Option("--file", "-f", help="UTF-8 text file holding the document content."),
    ],
    title: Annotated[
        str,
        typer.Option("--title", "-t", help="Document title (defaults to the file name)."),
    ] = "",
    agent: Annotated[
        str | None,
        typer.Option("--agent", "-a", help="Agent that privately owns the document."),
    ] = None,
    shared: Annotated[
        bool,
        typer.Option("--global", help="Store as a global document shared via assignments."),
    ] = False,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .archivist.db."),
    ] = DEFAULT_DB,
) -> None:
    """Store a document and index it for retrieval."""
    if bool(agent) == shared:
        console.print(err_scope_required())
        raise typer.Exit(1)
    if not file.is_file():
        console.print(err_file_not_found(str(file)))
        raise typer.Exit(1)

    content = file.read_text(encoding="utf-8")
    doc_title = title or file.stem

    with open_service(db, console) as service:
        if agent:
            doc = service.add_agent_document(agent, doc_title, content)
            source_type = AGENT
        else:
            doc = service.add_global_document(doc_title, content)
            source_type = GLOBAL
        stored = service.repo.count_chunks_by_source(source_type, doc.id)
        fragments = len(service.chunk(content, doc_title))

    console.print(f"[green]✓[/] {source_type} document [bold]{doc.id}[/] — {doc_title}")
    console.print(f"  {fragments} fragments, {stored} chunks stored")
    if fragments and not stored:
        console.print(warn_no_embeddings())


def assign_cmd(
    agent: Annotated[
        str,
        typer.Option("--agent", "-a", help="Agent receiving access."),
    ],
    global_id: Annotated[
        str,
        typer.Option("--global-id", "-g", help="Global document id."),
    ],
    remove: Annotated[
        bool,
        typer.Option("--remove", help="Revoke the assignment instead."),
    ] = False,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .archivist.db."),
    ] = DEFAULT_DB,
) -> None:
    """Grant (or revoke) an agent's access to a global document."""
    with open_service(db, console) as service:
        if remove:
            removed = service.unassign_global(agent, global_id)
            if removed:
                console.print(f"[green]✓[/] {agent} no longer sees {global_id}")
            else:
                console.print(f"[dim]{agent} was not assigned {global_id}[/]")
            return
        try:
            service.assign_global(agent, global_id)
        except KeyError:
            console.print(err_document_not_found(global_id))
            raise typer.Exit(1)
    console.print(f"[green]✓[/] {agent} can now retrieve from {global_id}")


def remove_cmd(
    doc_id: Annotated[
        str,
        typer.Option("--id", help="Document id to remove."),
    ],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .archivist.db."),
    ] = DEFAULT_DB,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove a document and all of its chunks."""
    with open_service(db, console) as service:
        agent_doc = service.repo.get_agent_document(doc_id)
        global_doc = None if agent_doc else service.repo.get_global_document(doc_id)
        if agent_doc is None and global_doc is None:
            console.print(err_document_not_found(doc_id))
            raise typer.Exit(0)

        source_type = AGENT if agent_doc else GLOBAL
        doc_title = agent_doc.title if agent_doc else global_doc.title
        chunk_count = service.repo.count_chunks_by_source(source_type, doc_id)

        console.print(f"\nRemove {source_type} document: [bold]{doc_title}[/] ({doc_id})")
        console.print(f"  Chunks: {chunk_count}")

        if not yes:
            if not typer.confirm("Confirm removal?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        service.delete_document(doc_id)

    console.print(f"\n[green]✓[/] Removed: {doc_title}")
    console.print(f"  {chunk_count} chunks deleted")
