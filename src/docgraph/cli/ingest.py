"""docgraph ingest — parse, embed and store documents in the knowledge base.

Accepts any mix of files and directories. Directories are walked
recursively; only .md / .markdown / .pdf / .csv files are picked up there.
Explicitly named files of another type are reported as unsupported.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from docgraph.cli.errors import describe_error, err_config, err_no_api_key
from docgraph.config import ConfigError, EmbeddingCfg, load_config
from docgraph.db.connection import Database
from docgraph.db.repository import Repository
from docgraph.db.vectors import ensure_vec_table, model_to_slug
from docgraph.errors import DimensionMismatchError, DocgraphError
from docgraph.ingest.service import IngestionService, IngestReport
from docgraph.rag.llm_client import (
    LiteLLMEmbedder,
    provider_of,
    required_env_var,
    validate_api_key,
)

console = Console()


def ingest_cmd(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Files or directories to ingest."),
    ],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the database (created if missing)."),
    ] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", help="Target chunk size in characters."),
    ] = None,
    overlap: Annotated[
        int | None,
        typer.Option("--overlap", help="Chunk overlap; 0 disables overlap."),
    ] = None,
) -> None:
    """Ingest documents into the docgraph knowledge base."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    require_api_key(cfg.embedding.model)

    db_path = db or Path(cfg.database.path)
    try:
        repo = open_repository(db_path, cfg.embedding)
    except DocgraphError as exc:
        console.print(describe_error(exc))
        raise typer.Exit(1)

    service = IngestionService(
        LiteLLMEmbedder(
            cfg.embedding.model, cfg.embedding.dimensions, timeout=cfg.embedding.timeout
        ),
        repo,
        chunk_size=chunk_size if chunk_size is not None else cfg.chunking.chunk_size,
        overlap=overlap if overlap is not None else cfg.chunking.overlap,
    )

    report = IngestReport()
    try:
        for path in paths:
            if path.is_dir():
                _merge(report, service.ingest_directory(path))
            else:
                service.ingest_file(path, report=report)
    except DocgraphError as exc:
        console.print(describe_error(exc))
        raise typer.Exit(1)
    finally:
        repo.conn.close()

    _print_report(report)
    if report.failed:
        raise typer.Exit(1)


# ------------------------------------------------------------------
# Shared helpers (also used by `docgraph chat`)
# ------------------------------------------------------------------


def require_api_key(model: str) -> None:
    """Exit with an actionable message when *model* has no API key set."""
    try:
        validate_api_key(model)
    except DocgraphError:
        console.print(err_no_api_key(provider_of(model), required_env_var(model) or ""))
        raise typer.Exit(1)


def open_repository(db_path: Path, embedding: EmbeddingCfg) -> Repository:
    """Open (or create) the database, run migrations and bind the vec table.

    Raises:
        DimensionMismatchError: The vec table for the embedding model already
            exists with a different dimension.
    """
    conn = Database(db_path).open()
    try:
        table = ensure_vec_table(conn, model_to_slug(embedding.model), embedding.dimensions)
    except DimensionMismatchError:
        conn.close()
        raise
    return Repository(conn, table, embedding.dimensions)


# ------------------------------------------------------------------
# Report display
# ------------------------------------------------------------------


def _merge(into: IngestReport, other: IngestReport) -> None:
    into.ingested.update(other.ingested)
    into.unchanged.extend(other.unchanged)
    into.skipped.extend(other.skipped)
    into.failed.update(other.failed)


def _print_report(report: IngestReport) -> None:
    for path, count in report.ingested.items():
        console.print(f"  [green]✓[/] {escape(path)} — {count} chunks")
    for path in report.unchanged:
        console.print(f"  [dim]↷ {escape(path)} — unchanged[/]")
    for path in report.skipped:
        console.print(f"  [yellow]✗ {escape(path)} — no chunks produced (empty document)[/]")
    for path, message in report.failed.items():
        console.print(f"  [red]✗ {escape(path)}[/] — {escape(message)}")

    console.print(
        f"\n[bold]{report.total}[/] files: "
        f"[green]{len(report.ingested)} ingested[/], "
        f"{len(report.unchanged)} unchanged, "
        f"{len(report.skipped)} skipped, "
        f"[red]{len(report.failed)} failed[/]"
    )
