"""Archivist CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from archivist.cli.backfill import backfill_cmd
from archivist.cli.documents import add_cmd, assign_cmd, remove_cmd
from archivist.cli.init import init_cmd
from archivist.cli.search import chunk_cmd, search_cmd
from archivist.cli.status import status_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("archivist")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"archivist {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="archivist",
    help=(
        "Archivist — per-agent knowledge base with semantic retrieval.\n\n"
        "  archivist add     Store a document and index it.\n"
        "  archivist search  Show the context an agent would retrieve."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Archivist — per-agent knowledge base with semantic retrieval."""


app.command("init")(init_cmd)
app.command("add")(add_cmd)
app.command("assign")(assign_cmd)
app.command("remove")(remove_cmd)
app.command("search")(search_cmd)
app.command("chunk")(chunk_cmd)
app.command("backfill")(backfill_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Archivist version."""
    typer.echo(f"archivist {_installed_version()}")


if __name__ == "__main__":
    app()
