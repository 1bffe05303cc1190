"""Chat orchestrator: question → embed → search → insights → merge → generate.

One ``ChatService`` call is one turn. The service keeps no state between
turns; conversation history is owned by the caller and passed in on each
``chat_stream`` call.

Cancellation: pass any object with ``is_set() -> bool`` (``threading.Event``
works) as ``cancel``. It is checked before every external call and before
each streamed chunk is forwarded; once set, the turn raises
``ChatCancelledError`` and any partial answer is discarded.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

from docgraph.errors import (
    ChatCancelledError,
    DocgraphError,
    EmbedError,
    EmptyQuestionError,
    GenerateError,
    NoSectionMatchError,
    NoTopicMatchError,
    NotConfiguredError,
    SearchError,
)
from docgraph.observability import get_logger
from docgraph.rag.interfaces import (
    Embedder,
    GraphStore,
    LLMClient,
    StreamingLLMClient,
    VectorStore,
)
from docgraph.rag.merge import (
    filter_chunks_by_sections,
    filter_sources_by_topics,
    merge_sources,
    unique,
)
from docgraph.rag.prompts import build_context_prompt, format_user_prompt, system_prompt
from docgraph.rag.types import (
    DEFAULT_SIMILARITY_LIMIT,
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_USER,
    ChatOptions,
    DocumentInsight,
    Message,
    Response,
)


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


class ChatService:
    """Retrieval-augmented chat over the vector store and graph mirror.

    Args:
        vectors: Similarity search collaborator (required).
        graph: Insight collaborator; optional, failures are non-fatal.
        embedder: Question embedder (required).
        llm: Answer generator (required); streaming is used when it
            implements ``StreamingLLMClient``.
        logger: structlog logger; defaults to ``get_logger("docgraph.chat")``.
    """

    def __init__(
        self,
        vectors: VectorStore | None,
        graph: GraphStore | None,
        embedder: Embedder | None,
        llm: LLMClient | None,
        logger=None,
    ) -> None:
        self._vectors = vectors
        self._graph = graph
        self._embedder = embedder
        self._llm = llm
        self._log = logger or get_logger("docgraph.chat")

    def chat(
        self,
        question: str,
        options: ChatOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> Response:
        """Answer *question* in one non-streaming LLM call."""
        response, _ = self._run(question, options or ChatOptions(), [], None, cancel)
        return response

    def chat_stream(
        self,
        question: str,
        options: ChatOptions | None = None,
        history: Sequence[Message] | None = None,
        on_chunk: Callable[[str], None] | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> tuple[Response, list[Message]]:
        """Answer *question* after *history*, streaming output to *on_chunk*.

        Returns:
            ``(response, updated_history)``. ``updated_history`` is a new list:
            *history* followed by the new user and assistant messages. The
            caller's sequence is never modified.
        """
        return self._run(question, options or ChatOptions(), list(history or []), on_chunk, cancel)

    # ------------------------------------------------------------------
    # Turn pipeline
    # ------------------------------------------------------------------

    def _run(
        self,
        question: str,
        options: ChatOptions,
        history: list[Message],
        on_chunk: Callable[[str], None] | None,
        cancel: CancelToken | None,
    ) -> tuple[Response, list[Message]]:
        question = question.strip()
        if not question:
            raise EmptyQuestionError()
        if self._embedder is None:
            raise NotConfiguredError("embedder is not configured")
        if self._vectors is None:
            raise NotConfiguredError("vector store is not configured")
        if self._llm is None:
            raise NotConfiguredError("llm client is not configured")

        limit = options.similarity_limit
        if limit <= 0:
            limit = DEFAULT_SIMILARITY_LIMIT

        _check_cancel(cancel, "embedding")
        try:
            embeddings = self._embedder.embed([question])
        except DocgraphError:
            raise
        except Exception as exc:
            raise EmbedError(f"embed question: {exc}") from exc
        if not embeddings:
            raise EmbedError("embedder returned no vectors")

        _check_cancel(cancel, "vector search")
        try:
            chunks = self._vectors.similar_chunks(embeddings[0], limit)
        except Exception as exc:
            raise SearchError(f"vector search: {exc}") from exc

        if not chunks:
            self._log.info("no_context_available", fallback="llm_only")
        elif options.section_filters:
            chunks = filter_chunks_by_sections(chunks, options.section_filters)
            if not chunks:
                raise NoSectionMatchError(options.section_filters)

        insights: dict[str, DocumentInsight] = {}
        doc_ids = unique(c.document_id for c in chunks)
        if self._graph is not None and doc_ids:
            _check_cancel(cancel, "graph insights")
            try:
                insights = dict(self._graph.document_insights(doc_ids))
            except Exception as exc:
                self._log.warning("graph_insights_failed", error=str(exc))
                insights = {}

        sources = merge_sources(chunks, insights)
        if options.topic_filters and sources:
            sources = filter_sources_by_topics(sources, options.topic_filters)
            if not sources:
                raise NoTopicMatchError(options.topic_filters)

        context = build_context_prompt(sources) if sources else ""
        user_message = Message(ROLE_USER, format_user_prompt(question, context))
        messages = [Message(ROLE_SYSTEM, system_prompt()), *history, user_message]

        _check_cancel(cancel, "generation")
        answer = self._generate(messages, on_chunk, cancel).strip()

        updated = [*history, user_message, Message(ROLE_ASSISTANT, answer)]
        return Response(answer=answer, sources=sources), updated

    def _generate(
        self,
        messages: list[Message],
        on_chunk: Callable[[str], None] | None,
        cancel: CancelToken | None,
    ) -> str:
        llm = self._llm
        if on_chunk is None or not isinstance(llm, StreamingLLMClient):
            try:
                answer = llm.generate(messages)
            except Exception as exc:
                raise GenerateError(f"llm generate: {exc}") from exc
            if on_chunk is not None:
                _check_cancel(cancel, "generation")
                on_chunk(answer)
            return answer

        parts: list[str] = []
        callback_errors: list[BaseException] = []

        def forward(chunk: str) -> None:
            if not chunk:
                return
            _check_cancel(cancel, "streaming")
            parts.append(chunk)
            try:
                on_chunk(chunk)
            except BaseException as exc:
                callback_errors.append(exc)
                raise

        try:
            llm.generate_stream(messages, forward)
        except ChatCancelledError:
            raise
        except Exception as exc:
            if callback_errors and exc is callback_errors[0]:
                raise
            raise GenerateError(f"llm stream generate: {exc}") from exc
        return "".join(parts)


def _check_cancel(cancel: CancelToken | None, stage: str) -> None:
    if cancel is not None and cancel.is_set():
        raise ChatCancelledError(stage)
