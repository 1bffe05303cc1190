"""Plain text chunking — blank-line paragraphs under a single section."""

from __future__ import annotations

from docgraph.ingest.base import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    ChunkFragment,
    Paragraph,
    SectionMeta,
    pack_paragraphs,
)


def normalize_plain_text(content: str) -> str:
    """Convert CRLF / CR to LF and strip trailing spaces and tabs per line."""
    content = content.replace("\r\n", "\n").replace("\r", "\n")
    return "\n".join(line.rstrip(" \t") for line in content.split("\n"))


def first_non_empty_line(content: str) -> str:
    for line in content.split("\n"):
        trimmed = line.strip()
        if trimmed:
            return trimmed
    return ""


def chunk_plain_text(
    content: str,
    title: str,
    target_size: int = DEFAULT_CHUNK_SIZE,
    overlap_size: int = DEFAULT_CHUNK_OVERLAP,
) -> tuple[list[ChunkFragment], list[SectionMeta]]:
    """Split *content* into blank-line-delimited paragraphs and pack them.

    Every paragraph is tagged with one section ``{title, level 1, order 0}``.
    No headings are parsed and no topics are extracted.
    """
    section = SectionMeta(title=title, level=1, order=0)
    paragraphs: list[Paragraph] = []
    current: list[str] = []

    for raw in content.replace("\r\n", "\n").split("\n"):
        trimmed = raw.strip()
        if not trimmed:
            if current:
                paragraphs.append(Paragraph(text="\n".join(current), section=section))
                current = []
            continue
        current.append(trimmed)

    if current:
        paragraphs.append(Paragraph(text="\n".join(current), section=section))

    return pack_paragraphs(paragraphs, target_size, overlap_size), [section]
