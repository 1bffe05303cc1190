"""docgraph chat — ask questions against the knowledge base.

With a QUESTION argument a single turn is answered. Without one an
interactive loop starts; history is carried between turns and ``exit``,
``quit`` or EOF (Ctrl-D) ends the session. Ctrl-C during a turn cancels it.
"""

from __future__ import annotations

import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape

from docgraph.cli.errors import describe_error, err_config, err_no_db
from docgraph.cli.ingest import open_repository, require_api_key
from docgraph.config import ConfigError, load_config
from docgraph.db.connection import Database
from docgraph.db.graph import SqliteGraphStore
from docgraph.db.vector_store import SqliteVectorStore
from docgraph.errors import ChatCancelledError, DocgraphError
from docgraph.rag.chat import ChatService
from docgraph.rag.llm_client import LiteLLMClient, LiteLLMEmbedder
from docgraph.rag.types import ChatOptions, Message, Response

console = Console()

_EXIT_WORDS = frozenset({"exit", "quit"})


def chat_cmd(
    question: Annotated[
        str | None,
        typer.Argument(help="Question to answer. Omit for an interactive session."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the database."),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-k", help="Number of chunks to retrieve."),
    ] = None,
    section: Annotated[
        list[str] | None,
        typer.Option("--section", help="Section title substring or number (repeatable)."),
    ] = None,
    topic: Annotated[
        list[str] | None,
        typer.Option("--topic", help="Topic substring (repeatable)."),
    ] = None,
    no_stream: Annotated[
        bool,
        typer.Option("--no-stream", help="Print the answer once it is complete."),
    ] = False,
) -> None:
    """Chat with your documents."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    db_path = db or Path(cfg.database.path)
    if not Database(db_path).exists:
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    require_api_key(cfg.embedding.model)
    require_api_key(cfg.generation.model)

    options = cfg.chat.to_options()
    if limit is not None:
        options.similarity_limit = limit
    if section:
        options.section_filters = list(section)
    if topic:
        options.topic_filters = list(topic)

    try:
        repo = open_repository(db_path, cfg.embedding)
    except DocgraphError as exc:
        console.print(describe_error(exc))
        raise typer.Exit(1)

    service = ChatService(
        SqliteVectorStore(repo),
        SqliteGraphStore(repo),
        LiteLLMEmbedder(
            cfg.embedding.model, cfg.embedding.dimensions, timeout=cfg.embedding.timeout
        ),
        LiteLLMClient(
            cfg.generation.model,
            max_tokens=cfg.generation.max_tokens,
            temperature=cfg.generation.temperature,
            timeout=cfg.generation.timeout,
        ),
    )

    try:
        if question is not None:
            try:
                _turn(service, question, options, [], stream=not no_stream)
            except DocgraphError as exc:
                console.print(describe_error(exc))
                raise typer.Exit(1)
        else:
            _repl(service, options, stream=not no_stream)
    finally:
        repo.conn.close()


# ------------------------------------------------------------------
# Turns
# ------------------------------------------------------------------


def _repl(service: ChatService, options: ChatOptions, *, stream: bool) -> None:
    console.print("[dim]Ask a question. Type 'exit' or press Ctrl-D to quit.[/]")
    history: list[Message] = []
    while True:
        try:
            line = console.input("\n[bold cyan]?[/] ")
        except EOFError:
            console.print()
            break
        text = line.strip()
        if not text:
            continue
        if text.lower() in _EXIT_WORDS:
            break
        try:
            history = _turn(service, text, options, history, stream=stream)
        except DocgraphError as exc:
            console.print(describe_error(exc))


def _turn(
    service: ChatService,
    question: str,
    options: ChatOptions,
    history: list[Message],
    *,
    stream: bool,
) -> list[Message]:
    """Run one turn, print the answer and sources, return the new history.

    Raises:
        ChatCancelledError: Ctrl-C interrupted the turn.
    """
    try:
        with _cancel_on_interrupt() as cancel:

            def on_chunk(chunk: str) -> None:
                cancel.streaming = True
                _print_chunk(chunk)

            response, updated = service.chat_stream(
                question, options, history, on_chunk if stream else None, cancel=cancel
            )
    except KeyboardInterrupt:
        if stream:
            console.print()
        raise ChatCancelledError("request") from None
    if stream:
        console.print()
    else:
        console.print(Markdown(response.answer))
    _print_sources(response)
    return updated


def _print_chunk(chunk: str) -> None:
    console.print(chunk, end="", markup=False, highlight=False, soft_wrap=True)


def _print_sources(response: Response) -> None:
    if not response.sources:
        console.print("\n[dim]No sources — answered from general knowledge.[/]")
        return
    console.print("\n[bold]Sources[/]")
    for idx, source in enumerate(response.sources, start=1):
        console.print(
            f"  \\[{idx}] {escape(source.title)} "
            f"[dim]({escape(source.path)}) score {source.score:.2f}[/]",
            highlight=False,
        )


class _Interrupt:
    """Cancel token driven by Ctrl-C.

    While an answer is streaming, the first Ctrl-C only sets the token so the
    turn stops at the next chunk. A second Ctrl-C, or any Ctrl-C before the
    first chunk arrives, raises ``KeyboardInterrupt`` to abort the blocking
    provider call.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.streaming = False

    def is_set(self) -> bool:
        return self._event.is_set()

    def handle(self, signum: int, frame: object) -> None:
        if self.streaming and not self._event.is_set():
            self._event.set()
            return
        raise KeyboardInterrupt


@contextmanager
def _cancel_on_interrupt():
    """Install the Ctrl-C handler of an ``_Interrupt`` for the duration of the block."""
    interrupt = _Interrupt()
    if threading.current_thread() is not threading.main_thread():
        yield interrupt
        return
    previous = signal.signal(signal.SIGINT, interrupt.handle)
    try:
        yield interrupt
    finally:
        signal.signal(signal.SIGINT, previous)
