"""docgraph rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from docgraph.cli.errors import describe_error
    console.print(describe_error(exc))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape

from docgraph.errors import (
    ChatCancelledError,
    DimensionMismatchError,
    DocgraphError,
    EmbedError,
    EmptyQuestionError,
    GenerateError,
    NoSectionMatchError,
    NoTopicMatchError,
    SearchError,
    StorageError,
    UnsupportedFormatError,
)
from docgraph.ingest.formats import SUPPORTED_EXTENSIONS


def err_no_api_key(provider: str, env_var: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = ".docgraph.db") -> str:
    """No database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{escape(db_path)}'.\n"
        "  Run:  docgraph ingest <path>  to build one."
    )


def err_config(message: str) -> str:
    return f"[red]Error:[/] {escape(message)}"


def err_dimension_mismatch(expected: int, actual: int) -> str:
    """Stored vectors and the configured embedding model disagree."""
    return (
        "[red]Error:[/] Embedding dimension mismatch.\n"
        f"  Expected:  {expected}\n"
        f"  Got:       {actual}\n"
        "  Set embedding.dimensions in docgraph.yaml to match the model, "
        "or re-ingest into a fresh database (--db)."
    )


def err_unsupported_format(path: str) -> str:
    supported = ", ".join(sorted(SUPPORTED_EXTENSIONS))
    return (
        f"[red]Error:[/] Unsupported file type: '{escape(path)}'\n"
        f"  Supported extensions: {supported}"
    )


def err_no_section_match(filters: list[str]) -> str:
    return (
        f"[red]Error:[/] No retrieved chunks matched the requested sections: "
        f"{escape(', '.join(filters))}\n"
        "  Use a section title substring or a section number, or drop --section."
    )


def err_no_topic_match(filters: list[str]) -> str:
    return (
        f"[red]Error:[/] No retrieved documents matched the requested topics: "
        f"{escape(', '.join(filters))}\n"
        "  Topics come from level-2 headings and CSV columns; adjust or drop --topic."
    )


def err_upstream(stage: str, message: str) -> str:
    return (
        f"[red]Error:[/] {stage} failed: {escape(message)}\n"
        "  Check the model name, your network connection and the provider API key."
    )


def err_storage(message: str) -> str:
    return (
        f"[red]Error:[/] Database operation failed: {escape(message)}\n"
        "  Check that no other docgraph process is using the database, then re-run."
    )


def describe_error(exc: DocgraphError) -> str:
    """Map a docgraph exception to a rich-formatted, actionable message."""
    if isinstance(exc, EmptyQuestionError):
        return "[red]Error:[/] The question is empty.\n  Type a question, or 'exit' to quit."
    if isinstance(exc, UnsupportedFormatError):
        return err_unsupported_format(exc.path)
    if isinstance(exc, DimensionMismatchError):
        return err_dimension_mismatch(exc.expected, exc.actual)
    if isinstance(exc, NoSectionMatchError):
        return err_no_section_match(exc.filters)
    if isinstance(exc, NoTopicMatchError):
        return err_no_topic_match(exc.filters)
    if isinstance(exc, EmbedError):
        return err_upstream("Embedding", str(exc))
    if isinstance(exc, SearchError):
        return err_upstream("Vector search", str(exc))
    if isinstance(exc, GenerateError):
        return err_upstream("Generation", str(exc))
    if isinstance(exc, StorageError):
        return err_storage(str(exc))
    if isinstance(exc, ChatCancelledError):
        return "[yellow]Cancelled.[/]"
    return f"[red]Error:[/] {escape(str(exc))}"
