"""Retrieval merge engine — chunk hits → per-document sources.

All functions here are pure: no I/O, inputs are never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from docgraph.rag.types import ChunkResult, DocumentInsight, Source

SNIPPET_MAX_CHARS = 500
SNIPPET_ELLIPSIS = "..."
SNIPPET_SEPARATOR = "\n---\n"

_DEFAULT_SECTION = "introduction"


def merge_sources(
    chunks: Sequence[ChunkResult],
    insights: Mapping[str, DocumentInsight],
) -> list[Source]:
    """Group *chunks* by document into ``Source`` objects.

    Per document the score is the best chunk score and the snippet is the
    concatenation of each chunk's trimmed text (cut to 500 characters plus
    ``"..."``), joined by ``"\\n---\\n"``. A piece already contained in the
    accumulated snippet is skipped.

    Sources are ordered by descending score. Sources with equal scores keep
    the order in which their document first appeared in *chunks*.
    """
    grouped: dict[str, Source] = {}
    for chunk in chunks:
        source = grouped.get(chunk.document_id)
        if source is None:
            source = Source(
                document_id=chunk.document_id,
                title=chunk.title,
                path=chunk.path,
                score=chunk.score,
            )
            grouped[chunk.document_id] = source
        elif chunk.score > source.score:
            source.score = chunk.score

        piece = _snippet_piece(chunk.content)
        if not source.snippet:
            source.snippet = piece
        elif piece not in source.snippet:
            source.snippet += SNIPPET_SEPARATOR + piece

    for doc_id, source in grouped.items():
        insight = insights.get(doc_id)
        if insight is not None:
            source.insight = insight

    # sorted() is stable: equal scores stay in first-seen order.
    return sorted(grouped.values(), key=lambda s: s.score, reverse=True)


def _snippet_piece(content: str) -> str:
    piece = content.strip()
    if len(piece) > SNIPPET_MAX_CHARS:
        piece = piece[:SNIPPET_MAX_CHARS] + SNIPPET_ELLIPSIS
    return piece


def normalize_filters(filters: Iterable[str] | None) -> list[str]:
    """Lowercase and trim *filters*, dropping blanks."""
    if not filters:
        return []
    result = []
    for value in filters:
        value = value.strip().lower()
        if value:
            result.append(value)
    return result


def filter_chunks_by_sections(
    chunks: Sequence[ChunkResult], filters: Iterable[str] | None
) -> list[ChunkResult]:
    """Keep chunks whose section matches any filter.

    A filter matches when it is a substring of the lowercased section title
    (a blank title counts as "introduction") or when it equals the section
    order rendered as a decimal number. With no usable filters every chunk
    passes.
    """
    normalized = normalize_filters(filters)
    if not normalized:
        return list(chunks)

    kept: list[ChunkResult] = []
    for chunk in chunks:
        title = chunk.section_title.strip().lower() or _DEFAULT_SECTION
        order = str(chunk.section_order)
        if any(f in title or f == order for f in normalized):
            kept.append(chunk)
    return kept


def filter_sources_by_topics(
    sources: Sequence[Source], filters: Iterable[str] | None
) -> list[Source]:
    """Keep sources with at least one insight topic equal to or containing a filter."""
    normalized = normalize_filters(filters)
    if not normalized:
        return list(sources)

    kept: list[Source] = []
    for source in sources:
        topics = [t.strip().lower() for t in source.insight.topics]
        if any(f in topic for f in normalized for topic in topics):
            kept.append(source)
    return kept


def unique(values: Iterable[str]) -> list[str]:
    """Order-preserving de-duplication."""
    return list(dict.fromkeys(values))
