"""Shared chunking types, parser interface and the greedy overlapping packer.

Chunk sizes are measured in characters. ``overlap`` only acts as a switch:
any positive value carries the last paragraph unit of a flushed chunk into
the next one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import PurePath

from docgraph.ingest.formats import DocumentFormat

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200

INTRODUCTION = "Introduction"


@dataclass(frozen=True)
class SectionMeta:
    """Heading-derived context tag. ``order`` 0 is the lead section."""

    title: str
    level: int
    order: int


@dataclass(frozen=True)
class TopicMeta:
    name: str


@dataclass(frozen=True)
class ChunkFragment:
    """A unit of retrievable text plus the section it is attributed to."""

    text: str
    section: SectionMeta


@dataclass(frozen=True)
class Paragraph:
    """A paragraph unit: the atomic input to ``pack_paragraphs``."""

    text: str
    section: SectionMeta


@dataclass
class DocumentPayload:
    """Raw document handed to the ingestion pipeline.

    Attributes:
        path: Absolute or virtual path of the document.
        data: Raw document bytes.
        root: Ingestion root used to compute the relative path ("" = none).
        format: Explicit format override; ``UNKNOWN`` means detect from path.
    """

    path: str
    data: bytes
    root: str = ""
    format: DocumentFormat = DocumentFormat.UNKNOWN


@dataclass
class ParsedDocument:
    title: str
    fragments: list[ChunkFragment] = field(default_factory=list)
    sections: list[SectionMeta] = field(default_factory=list)
    topics: list[TopicMeta] = field(default_factory=list)


def normalize_sizes(target: int, overlap: int) -> tuple[int, int]:
    """Apply the degenerate-input fallbacks: target <= 0 → default, overlap < 0 → 0."""
    if target <= 0:
        target = DEFAULT_CHUNK_SIZE
    if overlap < 0:
        overlap = 0
    return target, overlap


def pack_paragraphs(
    paragraphs: list[Paragraph], target: int, overlap: int
) -> list[ChunkFragment]:
    """Greedily pack paragraph units into chunks of at most *target* characters.

    A unit is never split: a single unit longer than *target* becomes its own
    chunk. When *overlap* > 0 the last unit of each flushed chunk seeds the
    next one.
    """
    target, overlap = normalize_sizes(target, overlap)

    fragments: list[ChunkFragment] = []
    current: list[Paragraph] = []
    current_len = 0

    for paragraph in paragraphs:
        p_len = len(paragraph.text)
        if current and current_len + p_len > target:
            fragments.append(_build_fragment(current))
            if overlap > 0:
                last = current[-1]
                current = [last]
                current_len = len(last.text)
            else:
                current = []
                current_len = 0

        current.append(paragraph)
        current_len += p_len

    if current:
        fragments.append(_build_fragment(current))

    return fragments


def _build_fragment(paragraphs: list[Paragraph]) -> ChunkFragment:
    """Join unit texts and attribute the chunk to its newest section."""
    section = SectionMeta(title=INTRODUCTION, level=1, order=0)
    for paragraph in paragraphs:
        candidate = paragraph.section
        if candidate.order > section.order or (section.order == 0 and candidate.title):
            section = candidate
    text = "\n\n".join(p.text for p in paragraphs).strip()
    return ChunkFragment(text=text, section=section)


class BaseParser(ABC):
    """Abstract base for all document parsers.

    Subclasses implement ``parse()``. Degenerate sizes are normalised rather
    than rejected: ``chunk_size <= 0`` uses the default and a negative
    ``overlap`` is clamped to 0.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        self.chunk_size, self.overlap = normalize_sizes(chunk_size, overlap)

    @abstractmethod
    def parse(self, payload: DocumentPayload) -> ParsedDocument:
        """Turn *payload* bytes into a title plus fragments, sections and topics.

        Raises:
            ParseError: If the bytes are not decodable in this parser's format.
        """

    @staticmethod
    def base_name(path: str) -> str:
        return PurePath(path).name

    @staticmethod
    def stem(path: str) -> str:
        """File base name without its extension."""
        return PurePath(path).stem
