"""Archivist rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from archivist.cli.errors import err_no_db
    console.print(err_no_db(".archivist.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from archivist.rag.embeddings import required_api_key


def err_no_db(db_path: str = ".archivist.db") -> str:
    """No database found at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  archivist init"
    )


def err_no_api_key(model: str) -> str:
    """No API key for the provider of *model*.

    Example:
        No API key for 'gemini/gemini-embedding-001'. Set:  export GEMINI_API_KEY=...
    """
    env_var = required_api_key(model) or f"{model.split('/')[0].upper()}_API_KEY"
    return (
        f"[red]Error:[/] No API key for '{model}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_document_not_found(doc_id: str) -> str:
    return (
        f"[yellow]Document not found:[/] '{doc_id}' is not in the knowledge base.\n"
        "  Run:  archivist status --list  to see all documents."
    )


def err_file_not_found(path: str) -> str:
    return (
        f"[red]Error:[/] File not found: '{path}'\n"
        "  Pass an existing UTF-8 text file with --file."
    )


def err_scope_required() -> str:
    """Neither or both of --agent / --global were given."""
    return (
        "[red]Error:[/] Choose exactly one scope.\n"
        "  Use --agent AGENT_ID for a private document or --global for a shared one."
    )


def err_config(message: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix archivist.yaml (or ~/.archivist/config.yaml) and retry."
    )


def warn_no_embeddings() -> str:
    """Shown when a document was stored but no fragment could be embedded."""
    return (
        "[yellow]⚠[/] Document stored, but no fragment was embedded.\n"
        "  Check the embedding provider credentials, then run:  archivist backfill"
    )
