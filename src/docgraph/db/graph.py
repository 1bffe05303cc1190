"""Graph mirror over SQLite: document → folder / sections / topics.

The mirror answers one question per chat turn: given a set of document IDs,
what structure and neighbours does each document have? Relationships are
derived from the tables written at ingest time:

  folder   documents.folder (one folder per document, "" for the root)
  sections sections(document_id, title, level, section_order)
  topics   topics(document_id, name)

Related documents:
  - same non-empty folder  → reason "folder", weight 1.0
  - shared topic names     → reason "topic",  weight = number of shared topics
  A document related both ways gets reason "folder, topic" and the summed
  weight. A document is never related to itself.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from typing import TYPE_CHECKING

from docgraph.errors import GraphError
from docgraph.rag.types import DocumentInsight, RelatedDocument, SectionInfo

if TYPE_CHECKING:
    from docgraph.db.repository import Repository
    from docgraph.ingest.service import DocumentResult

_FOLDER_WEIGHT = 1.0


def write_graph(conn: sqlite3.Connection, doc_id: str, result: DocumentResult) -> None:
    """Replace the mirrored sections and topics of *doc_id*.

    Runs inside the caller's transaction.
    """
    conn.execute("DELETE FROM sections WHERE document_id = ?", (doc_id,))
    conn.execute("DELETE FROM topics WHERE document_id = ?", (doc_id,))
    conn.executemany(
        """
        INSERT OR REPLACE INTO sections (document_id, title, level, section_order)
        VALUES (?, ?, ?, ?)
        """,
        [(doc_id, s.title, s.level, s.order) for s in result.sections],
    )
    conn.executemany(
        "INSERT OR IGNORE INTO topics (document_id, name, position) VALUES (?, ?, ?)",
        [(doc_id, t.name, i) for i, t in enumerate(result.topics) if t.name],
    )
    conn.execute(
        "UPDATE documents SET folder = ? WHERE id = ?", (result.folder, doc_id)
    )


class SqliteGraphStore:
    """``GraphStore`` adapter reading the SQLite graph mirror."""

    def __init__(self, repo: Repository) -> None:
        self._conn = repo.conn

    def document_insights(self, doc_ids: Sequence[str]) -> dict[str, DocumentInsight]:
        """Return insights for the known IDs among *doc_ids*.

        Raises:
            GraphError: If the underlying queries fail.
        """
        insights: dict[str, DocumentInsight] = {}
        try:
            for doc_id in doc_ids:
                insight = self._insight(doc_id)
                if insight is not None:
                    insights[doc_id] = insight
        except sqlite3.Error as exc:
            raise GraphError(f"graph insights query: {exc}") from exc
        return insights

    def _insight(self, doc_id: str) -> DocumentInsight | None:
        doc = self._conn.execute(
            "SELECT folder FROM documents WHERE id = ?", (doc_id,)
        ).fetchone()
        if doc is None:
            return None
        folder = doc["folder"]

        chunk_count = self._conn.execute(
            "SELECT COUNT(*) FROM chunks WHERE document_id = ?", (doc_id,)
        ).fetchone()[0]

        sections = [
            SectionInfo(title=r["title"], level=r["level"], order=r["section_order"])
            for r in self._conn.execute(
                """
                SELECT title, level, section_order FROM sections
                WHERE document_id = ? ORDER BY section_order
                """,
                (doc_id,),
            ).fetchall()
        ]

        topics = [
            r["name"]
            for r in self._conn.execute(
                "SELECT name FROM topics WHERE document_id = ? ORDER BY position",
                (doc_id,),
            ).fetchall()
        ]

        return DocumentInsight(
            chunk_count=chunk_count,
            folders=[folder] if folder else [],
            related_documents=self._related(doc_id, folder),
            sections=sections,
            topics=topics,
        )

    def _related(self, doc_id: str, folder: str) -> list[RelatedDocument]:
        related: dict[str, RelatedDocument] = {}

        if folder:
            for r in self._conn.execute(
                "SELECT id, title, path FROM documents WHERE folder = ? AND id != ?",
                (folder, doc_id),
            ).fetchall():
                related[r["id"]] = RelatedDocument(
                    id=r["id"],
                    title=r["title"],
                    path=r["path"],
                    weight=_FOLDER_WEIGHT,
                    reason="folder",
                )

        for r in self._conn.execute(
            """
            SELECT d.id AS id, d.title AS title, d.path AS path, COUNT(*) AS shared
            FROM topics t
            JOIN topics o ON o.name = t.name AND o.document_id != t.document_id
            JOIN documents d ON d.id = o.document_id
            WHERE t.document_id = ?
            GROUP BY d.id, d.title, d.path
            """,
            (doc_id,),
        ).fetchall():
            existing = related.get(r["id"])
            if existing is None:
                related[r["id"]] = RelatedDocument(
                    id=r["id"],
                    title=r["title"],
                    path=r["path"],
                    weight=float(r["shared"]),
                    reason="topic",
                )
            else:
                existing.weight += float(r["shared"])
                existing.reason = f"{existing.reason}, topic"

        return sorted(related.values(), key=lambda d: (-d.weight, d.title))
