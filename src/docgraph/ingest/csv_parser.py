"""CSV parser — one paragraph unit per data row, column headers as topics.

Row 1 holds the column headers. Each data row is rendered as::

    Row 1
    title: Widget
    category: Tools
    Extra 3: overflow cell

and the rendered rows are grouped with the shared greedy packer.
"""

from __future__ import annotations

import csv
import io

from docgraph.errors import ParseError
from docgraph.ingest.base import (
    BaseParser,
    DocumentPayload,
    Paragraph,
    ParsedDocument,
    SectionMeta,
    TopicMeta,
    pack_paragraphs,
)

ROWS_SECTION = "Rows"


class CsvParser(BaseParser):
    """Parse comma separated values into row fragments."""

    def parse(self, payload: DocumentPayload) -> ParsedDocument:
        records = self._read_records(payload.data)
        stem = self.stem(payload.path)
        if not records:
            return ParsedDocument(title=stem)

        headers, rows = records[0], records[1:]
        title = next((h.strip() for h in headers if h.strip()), "") or stem

        section = SectionMeta(title=ROWS_SECTION, level=1, order=0)
        topics: list[TopicMeta] = []
        seen: set[str] = set()
        for header in headers:
            name = header.strip()
            if name and name not in seen:
                seen.add(name)
                topics.append(TopicMeta(name=name))

        paragraphs = [
            Paragraph(text=format_row(headers, row, idx), section=section)
            for idx, row in enumerate(rows)
        ]
        fragments = pack_paragraphs(paragraphs, self.chunk_size, self.overlap)
        return ParsedDocument(
            title=title, fragments=fragments, sections=[section], topics=topics
        )

    @staticmethod
    def _read_records(data: bytes) -> list[list[str]]:
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"parse csv: {exc}") from exc
        try:
            reader = csv.reader(io.StringIO(text, newline=""), strict=True)
            return [record for record in reader if record]
        except csv.Error as exc:
            raise ParseError(f"parse csv: {exc}") from exc


def format_row(headers: list[str], row: list[str], idx: int) -> str:
    """Render data row *idx* (0-based) as ``Row N`` plus ``Header: value`` lines."""
    lines = [f"Row {idx + 1}"]
    for i, value in enumerate(row[: len(headers)]):
        header = headers[i].strip() or f"Column {i + 1}"
        lines.append(f"{header}: {value.strip()}")
    for i in range(len(headers), len(row)):
        lines.append(f"Extra {i + 1}: {row[i].strip()}")
    return "\n".join(lines)
