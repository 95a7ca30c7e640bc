"""archivist search / chunk — inspect what retrieval and chunking produce.

Usage:
  archivist search --agent agent-1 --query "when do you open?" --top-k 3
  archivist search --agent agent-1 --query "refunds" --prompt
  archivist chunk --file handbook.txt --max-chars 400
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from archivist.cli.context import DEFAULT_DB, load_cli_config, open_service
from archivist.cli.errors import err_file_not_found
from archivist.ingest.chunker import TextChunker
from archivist.rag.context import format_context, retrieve_context

console = Console()

_PREVIEW_CHARS = 160


def search_cmd(
    agent: Annotated[
        str,
        typer.Option("--agent", "-a", help="Agent whose knowledge is searched."),
    ],
    query: Annotated[
        str,
        typer.Option("--query", "-q", help="Free-text query."),
    ],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", help="Maximum results (default: retrieval.top_k)."),
    ] = None,
    prompt: Annotated[
        bool,
        typer.Option("--prompt", help="Print the context block exactly as injected into a prompt."),
    ] = False,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .archivist.db."),
    ] = DEFAULT_DB,
) -> None:
    """Show the fragments an agent would receive as context for QUERY."""
    with open_service(db, console) as service:
        results = retrieve_context(service.retriever, agent, query, top_k)

    if not results:
        console.print("[yellow]No context found.[/] (empty knowledge base or embedding unavailable)")
        return

    if prompt:
        console.print(format_context(results), markup=False, highlight=False)
        return

    for rank, item in enumerate(results, start=1):
        console.print(f"\n[bold]{rank}. {item.title}[/]")
        console.print(item.content)


def chunk_cmd(
    file: Annotated[
        Path,
        typer.Option("--file", "-f", help="UTF-8 text file to split."),
    ],
    title: Annotated[
        str,
        typer.Option("--title", "-t", help="Title copied onto each fragment."),
    ] = "",
    max_chars: Annotated[
        int | None,
        typer.Option("--max-chars", help="Window size (default: chunking.max_chars)."),
    ] = None,
    overlap: Annotated[
        int | None,
        typer.Option("--overlap", help="Overlap in characters (default: chunking.overlap)."),
    ] = None,
) -> None:
    """Print the fragments a file would be split into. Nothing is stored."""
    if not file.is_file():
        console.print(err_file_not_found(str(file)))
        raise typer.Exit(1)

    cfg = load_cli_config(console)
    try:
        chunker = TextChunker(
            max_chars=max_chars if max_chars is not None else cfg.chunking.max_chars,
            overlap=overlap if overlap is not None else cfg.chunking.overlap,
        )
    except ValueError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(1)

    fragments = chunker.chunk(file.read_text(encoding="utf-8"), title or file.stem)

    table = Table(title=f"{file.name} — {len(fragments)} fragments")
    table.add_column("#", justify="right")
    table.add_column("Chars", justify="right")
    table.add_column("Preview")
    for fragment in fragments:
        preview = fragment.content[:_PREVIEW_CHARS].replace("\n", " ")
        if len(fragment.content) > _PREVIEW_CHARS:
            preview += "…"
        table.add_row(str(fragment.chunk_index), str(len(fragment.content)), preview)
    console.print(table)
