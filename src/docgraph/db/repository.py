"""Repository pattern for all docgraph database operations.

Single interface for documents, chunks, vec embeddings and the graph mirror
(sections, topics, folders). Implements the ``DocumentStore`` protocol used by
the ingestion service.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING

from docgraph.db.graph import write_graph
from docgraph.db.models import StoredChunk, StoredDocument
from docgraph.db.vectors import list_vec_tables
from docgraph.errors import ConfigurationError, DimensionMismatchError, StorageError
from docgraph.ingest.base import ChunkFragment

if TYPE_CHECKING:
    from docgraph.ingest.service import DocumentResult


class Repository:
    """Data access layer for all docgraph entities.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.

    Args:
        conn: Open connection with sqlite-vec loaded and schema initialised.
        vec_table: Vec table holding chunk embeddings (see ensure_vec_table).
        dimensions: Expected embedding length; vectors of any other length
            are rejected with ``DimensionMismatchError``.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        vec_table: str | None = None,
        dimensions: int | None = None,
    ) -> None:
        self._conn = conn
        self.vec_table = vec_table
        self.dimensions = dimensions

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def upsert_document(
        self, path: str, title: str, content_hash: str, folder: str = ""
    ) -> tuple[str, bool]:
        """Insert or update the document at *path* without committing.

        The write joins the caller's transaction; ``persist`` commits it
        together with the chunks and graph rows.

        Returns:
            ``(doc_id, changed)``. ``changed`` is False when the stored hash
            equals *content_hash* and the document already has chunks; in
            that case nothing is written.
        """
        existing = self.get_document_by_path(path)
        if existing is None:
            doc_id = str(uuid.uuid4())
            self._conn.execute(
                """
                INSERT INTO documents (id, path, title, folder, content_hash)
                VALUES (?, ?, ?, ?, ?)
                """,
                (doc_id, path, title, folder, content_hash),
            )
            return doc_id, True

        if existing.content_hash == content_hash and self.count_chunks(existing.id) > 0:
            return existing.id, False

        # Same hash but 0 chunks: a previous run was interrupted → rewrite.
        self._conn.execute(
            """
            UPDATE documents
            SET title = ?, folder = ?, content_hash = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (title, folder, content_hash, existing.id),
        )
        return existing.id, True

    def get_document(self, doc_id: str) -> StoredDocument | None:
        row = self._conn.execute(
            f"SELECT {_DOC_COLUMNS} FROM documents WHERE id = ?", (doc_id,)
        ).fetchone()
        return _row_to_document(row) if row else None

    def get_document_by_path(self, path: str) -> StoredDocument | None:
        row = self._conn.execute(
            f"SELECT {_DOC_COLUMNS} FROM documents WHERE path = ?", (path,)
        ).fetchone()
        return _row_to_document(row) if row else None

    def list_documents(self) -> list[StoredDocument]:
        """Return all documents ordered by path."""
        rows = self._conn.execute(
            f"SELECT {_DOC_COLUMNS} FROM documents ORDER BY path"
        ).fetchall()
        return [_row_to_document(r) for r in rows]

    def delete_document(self, doc_id: str) -> None:
        """Delete a document with its embeddings; chunks, sections and topics cascade."""
        with self._conn:
            self._delete_embeddings(doc_id)
            self._conn.execute("DELETE FROM documents WHERE id = ?", (doc_id,))

    def clear(self) -> int:
        """Delete every document, chunk, vector and graph row. Returns the document count.

        Vectors are removed from the vec table of every embedding model, not
        only the one this repository is bound to. The tables themselves stay.

        Raises:
            StorageError: If the delete fails; nothing is removed then.
        """
        try:
            with self._conn:
                count = self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
                rowids = [(r[0],) for r in self._conn.execute("SELECT rowid FROM chunks")]
                for table in list_vec_tables(self._conn):
                    self._conn.executemany(f"DELETE FROM {table} WHERE rowid = ?", rowids)
                self._conn.execute("DELETE FROM documents")
        except sqlite3.Error as exc:
            raise StorageError(f"clear knowledge base: {exc}") from exc
        return count

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def persist(self, result: DocumentResult) -> int:
        """Write a whole ingested document in one transaction.

        The document row, its chunks and vectors, and its sections and topics
        are committed together or not at all, so a failed write never leaves
        the new content hash next to the old chunks.

        Returns:
            Number of chunks written; 0 when the stored hash already matches.

        Raises:
            DimensionMismatchError: A vector has the wrong length (checked
                before anything is written).
            StorageError: A database write failed; the transaction is rolled back.
        """
        table = self._require_vec_table()
        self._check_batch(result.fragments, result.embeddings)
        try:
            with self._conn:
                doc_id, changed = self.upsert_document(
                    result.rel_path, result.title, result.content_hash, result.folder
                )
                if not changed:
                    return 0
                self._write_chunks(table, doc_id, result.fragments, result.embeddings)
                write_graph(self._conn, doc_id, result)
        except sqlite3.Error as exc:
            raise StorageError(f"persist {result.rel_path}: {exc}") from exc
        return len(result.fragments)

    # ------------------------------------------------------------------
    # Chunks + embeddings
    # ------------------------------------------------------------------

    def replace_chunks(
        self,
        doc_id: str,
        fragments: Sequence[ChunkFragment],
        embeddings: Sequence[Sequence[float]],
    ) -> int:
        """Replace every chunk and embedding of *doc_id* in one transaction.

        Returns:
            Number of chunks written.
        """
        table = self._require_vec_table()
        self._check_batch(fragments, embeddings)
        with self._conn:
            self._write_chunks(table, doc_id, fragments, embeddings)
        return len(fragments)

    def _write_chunks(
        self,
        table: str,
        doc_id: str,
        fragments: Sequence[ChunkFragment],
        embeddings: Sequence[Sequence[float]],
    ) -> None:
        self._delete_embeddings(doc_id)
        self._conn.execute("DELETE FROM chunks WHERE document_id = ?", (doc_id,))
        for idx, (fragment, vector) in enumerate(zip(fragments, embeddings)):
            cur = self._conn.execute(
                """
                INSERT INTO chunks (id, document_id, chunk_index, section_title,
                                    section_level, section_order, text)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(uuid.uuid4()),
                    doc_id,
                    idx,
                    fragment.section.title,
                    fragment.section.level,
                    fragment.section.order,
                    fragment.text,
                ),
            )
            self._conn.execute(
                f"INSERT INTO {table}(rowid, embedding) VALUES (?, ?)",
                (cur.lastrowid, json.dumps(list(vector))),
            )

    def list_chunks(self, doc_id: str) -> list[StoredChunk]:
        rows = self._conn.execute(
            f"SELECT {_CHUNK_COLUMNS} FROM chunks WHERE document_id = ? ORDER BY chunk_index",
            (doc_id,),
        ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def count_chunks(self, doc_id: str) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM chunks WHERE document_id = ?", (doc_id,)
        ).fetchone()[0]

    def search_vec(
        self, embedding: Sequence[float], limit: int = 5
    ) -> list[tuple[StoredChunk, StoredDocument, float]]:
        """Nearest-neighbour search. Returns (chunk, document, distance), closest first."""
        table = self._require_vec_table()
        self._check_dimensions(embedding)
        rows = self._conn.execute(
            f"SELECT rowid, distance FROM {table} WHERE embedding MATCH ? ORDER BY distance LIMIT ?",
            (json.dumps(list(embedding)), limit),
        ).fetchall()

        results: list[tuple[StoredChunk, StoredDocument, float]] = []
        for row in rows:
            hit = self._conn.execute(
                f"""
                SELECT {_CHUNK_COLUMNS_C}, {_DOC_COLUMNS_D}
                FROM chunks c JOIN documents d ON d.id = c.document_id
                WHERE c.rowid = ?
                """,
                (row["rowid"],),
            ).fetchone()
            if hit is not None:
                results.append((_row_to_chunk(hit), _row_to_document(hit, prefix="d_"), row["distance"]))
        return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_vec_table(self) -> str:
        if not self.vec_table:
            raise ConfigurationError(
                "repository has no vec table; call ensure_vec_table() first"
            )
        return self.vec_table

    def _check_batch(
        self,
        fragments: Sequence[ChunkFragment],
        embeddings: Sequence[Sequence[float]],
    ) -> None:
        if len(fragments) != len(embeddings):
            raise ValueError(
                f"have {len(fragments)} fragments but {len(embeddings)} embeddings"
            )
        for vector in embeddings:
            self._check_dimensions(vector)

    def _check_dimensions(self, vector: Sequence[float]) -> None:
        if self.dimensions is not None and len(vector) != self.dimensions:
            raise DimensionMismatchError(self.dimensions, len(vector))

    def _delete_embeddings(self, doc_id: str) -> None:
        if not self.vec_table:
            return
        rowids = [
            r[0]
            for r in self._conn.execute(
                "SELECT rowid FROM chunks WHERE document_id = ?", (doc_id,)
            ).fetchall()
        ]
        if rowids:
            placeholders = ",".join("?" * len(rowids))
            self._conn.execute(
                f"DELETE FROM {self.vec_table} WHERE rowid IN ({placeholders})",
                rowids,
            )


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

_DOC_COLUMNS = "id, path, title, folder, content_hash, ingested_at, updated_at"
_DOC_COLUMNS_D = (
    "d.id AS d_id, d.path AS d_path, d.title AS d_title, d.folder AS d_folder, "
    "d.content_hash AS d_content_hash, d.ingested_at AS d_ingested_at, "
    "d.updated_at AS d_updated_at"
)
_CHUNK_COLUMNS = (
    "rowid, id, document_id, chunk_index, section_title, section_level, section_order, text"
)
_CHUNK_COLUMNS_C = (
    "c.rowid AS rowid, c.id AS id, c.document_id AS document_id, "
    "c.chunk_index AS chunk_index, c.section_title AS section_title, "
    "c.section_level AS section_level, c.section_order AS section_order, c.text AS text"
)


def _row_to_document(row: sqlite3.Row, prefix: str = "") -> StoredDocument:
    return StoredDocument(
        id=row[f"{prefix}id"],
        path=row[f"{prefix}path"],
        title=row[f"{prefix}title"],
        folder=row[f"{prefix}folder"],
        content_hash=row[f"{prefix}content_hash"],
        ingested_at=row[f"{prefix}ingested_at"],
        updated_at=row[f"{prefix}updated_at"],
    )


def _row_to_chunk(row: sqlite3.Row) -> StoredChunk:
    return StoredChunk(
        rowid=row["rowid"],
        id=row["id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        section_title=row["section_title"],
        section_level=row["section_level"],
        section_order=row["section_order"],
        text=row["text"],
    )
