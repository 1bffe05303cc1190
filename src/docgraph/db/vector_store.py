"""``VectorStore`` adapter over the sqlite-vec chunk index."""

from __future__ import annotations

from collections.abc import Sequence

from docgraph.db.repository import Repository
from docgraph.rag.types import DEFAULT_SIMILARITY_LIMIT, ChunkResult


class SqliteVectorStore:
    """Similarity search returning ``ChunkResult`` hits, most similar first.

    sqlite-vec reports an L2 distance; it is inverted to a similarity score
    in (0, 1] via ``1 / (1 + distance)``.
    """

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def similar_chunks(self, embedding: Sequence[float], limit: int) -> list[ChunkResult]:
        if limit <= 0:
            limit = DEFAULT_SIMILARITY_LIMIT
        return [
            ChunkResult(
                chunk_id=chunk.id,
                document_id=doc.id,
                title=doc.title,
                path=doc.path,
                content=chunk.text,
                score=1.0 / (1.0 + distance),
                section_title=chunk.section_title,
                section_level=chunk.section_level,
                section_order=chunk.section_order,
            )
            for chunk, doc, distance in self._repo.search_vec(embedding, limit=limit)
        ]
