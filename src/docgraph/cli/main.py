"""docgraph CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer

from docgraph.cli.chat import chat_cmd
from docgraph.cli.clear import clear_cmd
from docgraph.cli.ingest import ingest_cmd
from docgraph.cli.init import init_cmd
from docgraph.observability import configure_logging


def _installed_version() -> str:
    try:
        return importlib.metadata.version("docgraph")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"docgraph {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="docgraph",
    help=(
        "docgraph — chat with your documents.\n\n"
        "  docgraph init    Create the database and config files.\n"
        "  docgraph ingest  Parse, embed and store Markdown, PDF and CSV files.\n"
        "  docgraph chat    Ask questions; answers cite the retrieved sources.\n"
        "  docgraph clear   Delete every document from the knowledge base."
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
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log pipeline events to stderr."),
    ] = False,
    log_json: Annotated[
        bool,
        typer.Option("--log-json", help="Emit logs as JSON lines."),
    ] = False,
) -> None:
    """docgraph — chat with your documents."""
    configure_logging(logging.INFO if verbose else logging.WARNING, json=log_json)


app.command("init")(init_cmd)
app.command("ingest")(ingest_cmd)
app.command("chat")(chat_cmd)
app.command("clear")(clear_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed docgraph version."""
    typer.echo(f"docgraph {_installed_version()}")


if __name__ == "__main__":
    app()
