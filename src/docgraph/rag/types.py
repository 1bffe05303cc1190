"""Query-time data model for retrieval and chat."""

from __future__ import annotations

from dataclasses import dataclass, field

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

DEFAULT_SIMILARITY_LIMIT = 5


@dataclass(frozen=True)
class Message:
    role: str
    content: str

    def as_dict(self) -> dict[str, str]:
        """OpenAI-style message dict, as expected by litellm."""
        return {"role": self.role, "content": self.content}


@dataclass
class ChunkResult:
    """A single vector-search hit. ``score``: higher = more relevant."""

    chunk_id: str
    document_id: str
    title: str
    path: str
    content: str
    score: float
    section_title: str = ""
    section_level: int = 0
    section_order: int = 0


@dataclass
class SectionInfo:
    title: str
    level: int
    order: int


@dataclass
class RelatedDocument:
    """Another document sharing a folder or topic; never the document itself."""

    id: str
    title: str
    path: str
    weight: float = 0.0
    reason: str = ""


@dataclass
class DocumentInsight:
    """Graph-derived aggregate for one document."""

    chunk_count: int = 0
    folders: list[str] = field(default_factory=list)
    related_documents: list[RelatedDocument] = field(default_factory=list)
    sections: list[SectionInfo] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)


@dataclass
class Source:
    """One retrieved document surfaced to the chat caller."""

    document_id: str
    title: str
    path: str
    snippet: str = ""
    score: float = 0.0
    insight: DocumentInsight = field(default_factory=DocumentInsight)


@dataclass
class Response:
    answer: str
    sources: list[Source] = field(default_factory=list)


@dataclass
class ChatOptions:
    """Per-turn retrieval options.

    Attributes:
        similarity_limit: Max chunks from vector search; <= 0 uses the default (5).
        section_filters: Section title substrings or section order numbers.
        topic_filters: Topic name substrings.
    """

    similarity_limit: int = DEFAULT_SIMILARITY_LIMIT
    section_filters: list[str] = field(default_factory=list)
    topic_filters: list[str] = field(default_factory=list)
