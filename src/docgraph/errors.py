"""Exception taxonomy for docgraph.

Every error raised by the ingestion and chat pipelines derives from
``DocgraphError``. The intermediate classes are the error *kinds*; the leaf
classes name the concrete condition so callers can branch on either.

Upstream errors (embedder, vector store, LLM) are raised with the original
exception chained via ``raise ... from exc`` and a message naming the stage
that failed.
"""

from __future__ import annotations


class DocgraphError(Exception):
    """Base class for all docgraph errors."""


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class ConfigurationError(DocgraphError):
    """A required collaborator or setting is missing."""


class ValidationError(DocgraphError):
    """Caller-supplied input was rejected."""


class ParseError(DocgraphError):
    """Document bytes could not be decoded in the claimed format."""


class NoContentError(DocgraphError):
    """A document produced nothing to index."""


class UpstreamError(DocgraphError):
    """An external collaborator call failed."""


class FilterExhaustedError(DocgraphError):
    """A section or topic filter eliminated every candidate."""


class DimensionMismatchError(DocgraphError):
    """An embedding vector length disagrees with the configured dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"embedding dimension mismatch: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


# ---------------------------------------------------------------------------
# Concrete conditions
# ---------------------------------------------------------------------------


class NotConfiguredError(ConfigurationError):
    """Embedder, vector store, LLM client or document store is unset."""


class EmptyQuestionError(ValidationError):
    def __init__(self) -> None:
        super().__init__("question cannot be empty")


class UnsupportedFormatError(ValidationError):
    def __init__(self, path: str) -> None:
        super().__init__(f"unsupported document format: {path}")
        self.path = path


class NoChunksProducedError(NoContentError):
    def __init__(self, path: str = "") -> None:
        msg = "document produced no chunks"
        super().__init__(f"{msg}: {path}" if path else msg)
        self.path = path


class EmbedError(UpstreamError):
    """Embedding generation failed."""


class EmbeddingCountMismatchError(UpstreamError):
    def __init__(self, chunks: int, embeddings: int) -> None:
        super().__init__(
            f"embedding count mismatch: have {chunks} chunks, {embeddings} embeddings"
        )
        self.chunks = chunks
        self.embeddings = embeddings


class SearchError(UpstreamError):
    """Vector similarity search failed."""


class GraphError(UpstreamError):
    """Graph insight lookup or graph sync failed."""


class StorageError(UpstreamError):
    """Reading or writing the knowledge base failed."""


class GenerateError(UpstreamError):
    """LLM generation (batch or streaming) failed."""


class NoSectionMatchError(FilterExhaustedError):
    def __init__(self, filters: list[str] | tuple[str, ...] = ()) -> None:
        msg = "no chunks matched the requested sections"
        if filters:
            msg += f": {', '.join(filters)}"
        super().__init__(msg)
        self.filters = list(filters)


class NoTopicMatchError(FilterExhaustedError):
    def __init__(self, filters: list[str] | tuple[str, ...] = ()) -> None:
        msg = "no documents matched the requested topics"
        if filters:
            msg += f": {', '.join(filters)}"
        super().__init__(msg)
        self.filters = list(filters)


class ChatCancelledError(DocgraphError):
    """The caller cancelled the chat turn; any partial answer is discarded."""

    def __init__(self, stage: str = "") -> None:
        super().__init__(f"chat cancelled during {stage}" if stage else "chat cancelled")
        self.stage = stage
