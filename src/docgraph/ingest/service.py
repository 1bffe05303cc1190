"""Ingestion orchestrator — parse → chunk → embed → persist.

``ingest_document`` is pure with respect to storage: it returns the in-memory
``DocumentResult`` without writing anything. ``persist_document`` hands that
result to the ``DocumentStore`` collaborator, which skips unchanged content
(same SHA-256) and otherwise writes the document row, its chunks and vectors
and its graph mirror rows in a single transaction. ``ingest_directory`` drives
both for a whole tree and isolates per-file failures.
"""

from __future__ import annotations

import hashlib
import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path

from docgraph.errors import (
    DocgraphError,
    EmbedError,
    EmbeddingCountMismatchError,
    NoChunksProducedError,
    NotConfiguredError,
    UnsupportedFormatError,
    ValidationError,
)
from docgraph.ingest.base import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    BaseParser,
    ChunkFragment,
    DocumentPayload,
    SectionMeta,
    TopicMeta,
)
from docgraph.ingest.csv_parser import CsvParser
from docgraph.ingest.formats import SUPPORTED_EXTENSIONS, DocumentFormat, detect_format
from docgraph.ingest.markdown import MarkdownParser
from docgraph.ingest.pdf import PdfParser
from docgraph.observability import get_logger
from docgraph.rag.interfaces import DocumentStore, Embedder


@dataclass
class DocumentResult:
    """Parsed, embedded document prior to persistence.

    Invariant: ``len(embeddings) == len(fragments)``.
    """

    rel_path: str
    folder: str
    title: str
    content_hash: str
    format: DocumentFormat
    fragments: list[ChunkFragment] = field(default_factory=list)
    sections: list[SectionMeta] = field(default_factory=list)
    topics: list[TopicMeta] = field(default_factory=list)
    embeddings: list[list[float]] = field(default_factory=list)


@dataclass
class IngestReport:
    """Outcome of ``ingest_directory``, keyed by file path."""

    ingested: dict[str, int] = field(default_factory=dict)  # path → chunks stored
    unchanged: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # path → error message

    @property
    def total(self) -> int:
        return len(self.ingested) + len(self.unchanged) + len(self.skipped) + len(self.failed)


def compute_hash(data: bytes) -> str:
    """SHA-256 hex digest of the raw document bytes."""
    return hashlib.sha256(data).hexdigest()


def relative_path(path: str, root: str = "") -> str:
    """*path* relative to *root* (when given) using forward slashes."""
    rel = path
    if root:
        try:
            rel = os.path.relpath(path, root)
        except ValueError:
            # Different drives on Windows: keep the path as given.
            rel = path
    return rel.replace(os.sep, "/")


def folder_of(rel_path: str) -> str:
    folder = posixpath.dirname(rel_path)
    return "" if folder in ("", ".", "/") else folder


class IngestionService:
    """Drive parsing, embedding and persistence for documents and directories.

    Args:
        embedder: Batch embedding collaborator.
        store: Persistence collaborator; required by ``persist_document`` and
            by ``ingest_directory`` to write results.
        chunk_size: Target chunk size in characters.
        overlap: Chunk overlap switch (> 0 carries the last unit forward).
        logger: structlog logger; defaults to ``get_logger("docgraph.ingest")``.
    """

    def __init__(
        self,
        embedder: Embedder | None,
        store: DocumentStore | None = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
        logger=None,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self._log = logger or get_logger("docgraph.ingest")
        self._parsers: dict[DocumentFormat, BaseParser] = {
            DocumentFormat.MARKDOWN: MarkdownParser(chunk_size, overlap),
            DocumentFormat.PDF: PdfParser(chunk_size, overlap),
            DocumentFormat.CSV: CsvParser(chunk_size, overlap),
        }

    # ------------------------------------------------------------------
    # Single document
    # ------------------------------------------------------------------

    def ingest_document(self, payload: DocumentPayload) -> DocumentResult:
        """Parse, chunk and embed *payload*. Nothing is persisted.

        Raises:
            NotConfiguredError: No embedder configured.
            ValidationError: Empty document path.
            UnsupportedFormatError: Format neither given nor detectable.
            ParseError: Bytes not decodable in the resolved format.
            NoChunksProducedError: The parser produced zero fragments.
            EmbedError: The embedder raised.
            EmbeddingCountMismatchError: Vector count != fragment count.
        """
        if self._embedder is None:
            raise NotConfiguredError("embedder not configured")
        if not payload.path:
            raise ValidationError("document path is required")

        if payload.format:
            try:
                fmt = DocumentFormat(payload.format)
            except ValueError:
                raise UnsupportedFormatError(payload.path) from None
        else:
            fmt = detect_format(payload.path)
        if fmt == DocumentFormat.UNKNOWN:
            raise UnsupportedFormatError(payload.path)
        parser = self._parsers.get(fmt)
        if parser is None:
            raise UnsupportedFormatError(payload.path)

        rel_path = relative_path(payload.path, payload.root)
        content_hash = compute_hash(payload.data)

        parsed = parser.parse(payload)
        if not parsed.fragments:
            raise NoChunksProducedError(payload.path)

        texts = [fragment.text for fragment in parsed.fragments]
        try:
            embeddings = self._embedder.embed(texts)
        except DocgraphError:
            raise
        except Exception as exc:
            raise EmbedError(f"generate embeddings: {exc}") from exc

        if len(embeddings) != len(parsed.fragments):
            raise EmbeddingCountMismatchError(len(parsed.fragments), len(embeddings))

        return DocumentResult(
            rel_path=rel_path,
            folder=folder_of(rel_path),
            title=parsed.title or Path(payload.path).name,
            content_hash=content_hash,
            format=fmt,
            fragments=parsed.fragments,
            sections=parsed.sections,
            topics=parsed.topics,
            embeddings=[list(v) for v in embeddings],
        )

    def persist_document(self, result: DocumentResult) -> int:
        """Store *result* unless its content hash is unchanged.

        The document row, chunks, vectors and graph rows are written in one
        store transaction.

        Returns:
            Number of chunks written (0 when the document was unchanged).

        Raises:
            NotConfiguredError: No store configured.
            DimensionMismatchError: An embedding has the wrong length.
            StorageError: The store write failed; nothing was kept.
        """
        if self._store is None:
            raise NotConfiguredError("document store not configured")

        count = self._store.persist(result)
        if count == 0:
            self._log.info("document_unchanged", path=result.rel_path)
            return 0

        self._log.info(
            "document_ingested",
            path=result.rel_path,
            format=result.format.value,
            chunks=count,
        )
        return count

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------

    def ingest_directory(self, directory: str | Path) -> IngestReport:
        """Ingest every supported file under *directory*, one at a time.

        A failure on one file is logged and recorded in the report; it never
        aborts the batch. Files that produce no chunks are skipped.
        """
        if self._embedder is None:
            raise NotConfiguredError("embedder not configured")
        root = Path(directory)
        if not root.is_dir():
            raise ValidationError(f"data directory does not exist: {directory}")

        report = IngestReport()
        files = scan_directory(root)
        if not files:
            self._log.warning("no_supported_documents", directory=str(root))
            return report

        for path in files:
            self.ingest_file(path, root=str(root), report=report)
        return report

    def ingest_file(
        self,
        path: str | Path,
        *,
        root: str = "",
        report: IngestReport | None = None,
    ) -> IngestReport:
        """Read, ingest and persist one file, recording the outcome in *report*.

        Errors are isolated the same way as in ``ingest_directory``.
        """
        report = report if report is not None else IngestReport()
        key = str(path)
        try:
            result = self.ingest_document(
                DocumentPayload(path=key, data=Path(path).read_bytes(), root=root)
            )
            stored = (
                self.persist_document(result)
                if self._store is not None
                else len(result.fragments)
            )
        except NoChunksProducedError:
            self._log.info("document_skipped_empty", path=key)
            report.skipped.append(key)
        except (DocgraphError, OSError) as exc:
            self._log.error("document_ingest_failed", path=key, error=str(exc))
            report.failed[key] = str(exc)
        except Exception as exc:
            self._log.exception("document_ingest_failed", path=key, error=str(exc))
            report.failed[key] = f"{type(exc).__name__}: {exc}"
        else:
            if stored > 0:
                report.ingested[key] = stored
            else:
                report.unchanged.append(key)
        return report


def scan_directory(directory: Path) -> list[Path]:
    """Return supported files under *directory*, recursively, in sorted order."""
    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        for name in sorted(filenames):
            if Path(name).suffix.lower() in SUPPORTED_EXTENSIONS:
                files.append(Path(dirpath) / name)
    return files
