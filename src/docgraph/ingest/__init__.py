"""docgraph ingest pipeline — format detection, parsers, chunking, orchestration."""

from docgraph.ingest.base import BaseParser, ChunkFragment, DocumentPayload, ParsedDocument
from docgraph.ingest.csv_parser import CsvParser
from docgraph.ingest.formats import DocumentFormat, detect_format
from docgraph.ingest.markdown import MarkdownParser, chunk_markdown, extract_title
from docgraph.ingest.pdf import PdfParser
from docgraph.ingest.plaintext import chunk_plain_text
from docgraph.ingest.service import DocumentResult, IngestionService, IngestReport

__all__ = [
    "BaseParser",
    "ChunkFragment",
    "CsvParser",
    "DocumentFormat",
    "DocumentPayload",
    "DocumentResult",
    "IngestReport",
    "IngestionService",
    "MarkdownParser",
    "ParsedDocument",
    "PdfParser",
    "chunk_markdown",
    "chunk_plain_text",
    "detect_format",
    "extract_title",
]
