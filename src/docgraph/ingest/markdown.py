"""Markdown parsing — heading-aware sections, level-2 topics, overlapping chunks.

Strategy:
- Every non-blank line is a paragraph unit; headings contribute their title.
- An H1 renames the lead section (order 0) instead of opening a new one.
- H2..H6 open a new section with a strictly increasing ``order``.
- H2 titles double as document topics (first occurrence wins).
- The lead section is reported only when some unit was tagged with it.
- Units are packed with ``pack_paragraphs()``.
"""

from __future__ import annotations

from docgraph.ingest.base import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    INTRODUCTION,
    BaseParser,
    ChunkFragment,
    DocumentPayload,
    Paragraph,
    ParsedDocument,
    SectionMeta,
    TopicMeta,
    pack_paragraphs,
)

_MAX_HEADING_LEVEL = 6
_TOPIC_LEVEL = 2


def extract_title(content: str, fallback: str) -> str:
    """Return the text of the first heading line in *content*, else *fallback*."""
    for line in content.split("\n"):
        trimmed = line.strip()
        if trimmed.startswith("#"):
            return trimmed.lstrip("#").strip()
    return fallback


def heading_level(line: str) -> int:
    """Run length of leading ``#``, clamped to 1..6."""
    level = len(line) - len(line.lstrip("#"))
    if level == 0:
        return 1
    return min(level, _MAX_HEADING_LEVEL)


def chunk_markdown(
    content: str,
    target_size: int = DEFAULT_CHUNK_SIZE,
    overlap_size: int = DEFAULT_CHUNK_OVERLAP,
) -> tuple[list[ChunkFragment], list[SectionMeta], list[TopicMeta]]:
    """Split Markdown *content* into fragments, sections and topics."""
    lines = content.replace("\r\n", "\n").split("\n")

    intro_title = INTRODUCTION
    current = SectionMeta(title=INTRODUCTION, level=1, order=0)
    section_order = 0
    intro_used = False

    sections: list[SectionMeta] = []
    paragraphs: list[Paragraph] = []
    topics: list[TopicMeta] = []
    seen_topics: set[str] = set()

    for raw in lines:
        line = raw.strip()
        if not line:
            continue

        text = line
        if line.startswith("#"):
            level = heading_level(line)
            title = line[level:].strip()
            if not title:
                continue

            if level <= 1:
                intro_title = title
                current = SectionMeta(title=title, level=1, order=0)
            else:
                section_order += 1
                current = SectionMeta(title=title, level=level, order=section_order)
                sections.append(current)
                if level == _TOPIC_LEVEL and title not in seen_topics:
                    seen_topics.add(title)
                    topics.append(TopicMeta(name=title))
            text = title

        paragraphs.append(Paragraph(text=text, section=current))
        if current.order == 0:
            intro_used = True

    if intro_used:
        sections.insert(0, SectionMeta(title=intro_title, level=1, order=0))

    fragments = pack_paragraphs(paragraphs, target_size, overlap_size)
    return fragments, sections, topics


class MarkdownParser(BaseParser):
    """Parse Markdown bytes; title is the first heading or the file name."""

    def parse(self, payload: DocumentPayload) -> ParsedDocument:
        content = payload.data.decode("utf-8", errors="replace")
        title = extract_title(content, self.base_name(payload.path))
        fragments, sections, topics = chunk_markdown(content, self.chunk_size, self.overlap)
        return ParsedDocument(
            title=title, fragments=fragments, sections=sections, topics=topics
        )
