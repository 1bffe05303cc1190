"""PDF parser — in-memory text extraction via pypdf."""

from __future__ import annotations

import io

import pypdf

from docgraph.errors import ParseError
from docgraph.ingest.base import BaseParser, DocumentPayload, ParsedDocument
from docgraph.ingest.plaintext import (
    chunk_plain_text,
    first_non_empty_line,
    normalize_plain_text,
)


class PdfParser(BaseParser):
    """Parse a PDF document from raw bytes.

    Strategy:
    - Extract text page-by-page via ``pypdf.PdfReader``; pages that yield no
      text (scanned images, etc.) contribute nothing.
    - Normalise line endings and trailing whitespace.
    - Title is the first non-empty line, falling back to the file stem.
    - The whole document forms one flat section named after the title; no
      topics are produced.
    """

    def parse(self, payload: DocumentPayload) -> ParsedDocument:
        content = normalize_plain_text(self._extract_text(payload.data))
        title = first_non_empty_line(content) or self.stem(payload.path)
        fragments, sections = chunk_plain_text(content, title, self.chunk_size, self.overlap)
        return ParsedDocument(title=title, fragments=fragments, sections=sections)

    @staticmethod
    def _extract_text(data: bytes) -> str:
        """Extract all page text from the PDF in *data*."""
        try:
            reader = pypdf.PdfReader(io.BytesIO(data))
            parts = [page.extract_text() or "" for page in reader.pages]
        except Exception as exc:
            # pypdf raises a mix of PdfReadError, ValueError and KeyError on
            # malformed structure.
            raise ParseError(f"open pdf: {exc}") from exc
        return "\n".join(parts)
