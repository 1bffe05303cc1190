"""Capability protocols for the external collaborators.

Each protocol has exactly one required method; ``StreamingLLMClient`` is the
optional streaming capability of an LLM client. Concrete adapters live in
``docgraph.rag.llm_client`` (LiteLLM) and ``docgraph.db`` (SQLite).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from docgraph.rag.types import ChunkResult, DocumentInsight, Message

if TYPE_CHECKING:
    from docgraph.ingest.service import DocumentResult

Vector = list[float]


@runtime_checkable
class Embedder(Protocol):
    def embed(self, texts: list[str]) -> list[Vector]:
        """Return exactly one vector per input text, in input order."""
        ...


@runtime_checkable
class VectorStore(Protocol):
    def similar_chunks(self, embedding: Vector, limit: int) -> list[ChunkResult]:
        """Return at most *limit* hits ordered by descending score."""
        ...


@runtime_checkable
class GraphStore(Protocol):
    def document_insights(self, doc_ids: Sequence[str]) -> dict[str, DocumentInsight]:
        """Return insights keyed by document ID; unknown IDs are simply absent."""
        ...


@runtime_checkable
class LLMClient(Protocol):
    def generate(self, messages: list[Message]) -> str: ...


@runtime_checkable
class StreamingLLMClient(LLMClient, Protocol):
    def generate_stream(
        self, messages: list[Message], on_chunk: Callable[[str], None]
    ) -> None:
        """Invoke *on_chunk* with incremental output, in order.

        An exception raised by *on_chunk* must abort generation and propagate.
        """
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Persistence collaborator used by ``IngestionService.persist_document``."""

    def persist(self, result: DocumentResult) -> int:
        """Store the document row, chunks, vectors and graph rows in one transaction.

        Returns the number of chunks written, or 0 when the stored content
        hash already matches and nothing was written. On failure nothing of
        *result* is kept.
        """
        ...
