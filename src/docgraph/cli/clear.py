"""docgraph clear — delete everything from the knowledge base.

Documents, chunks, embeddings of every model, sections and topics are all
removed. The schema and vec tables stay, so the next ingest starts from an
empty database.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from docgraph.cli.errors import describe_error, err_config, err_no_db
from docgraph.config import ConfigError, load_config
from docgraph.db.connection import Database
from docgraph.db.repository import Repository
from docgraph.errors import DocgraphError

console = Console()


def clear_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the database."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete every ingested document from the knowledge base."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    db_path = db or Path(cfg.database.path)
    database = Database(db_path)
    if not database.exists:
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    if not yes:
        console.print(
            f"[yellow]⚠[/]  This permanently deletes all documents in {escape(str(db_path))}."
        )
        if not typer.confirm("Continue?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

    conn = database.open()
    try:
        removed = Repository(conn).clear()
    except DocgraphError as exc:
        console.print(describe_error(exc))
        raise typer.Exit(1)
    finally:
        conn.close()

    console.print(f"[green]✓[/] Cleared {removed} document(s).")
