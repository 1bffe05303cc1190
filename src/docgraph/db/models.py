"""Row models for the docgraph database layer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StoredDocument:
    id: str
    path: str
    title: str
    content_hash: str
    folder: str = ""
    ingested_at: str | None = None
    updated_at: str | None = None


@dataclass
class StoredChunk:
    id: str
    document_id: str
    chunk_index: int
    text: str
    section_title: str = ""
    section_level: int = 1
    section_order: int = 0
    rowid: int | None = None  # vec table key; None for unsaved chunks
