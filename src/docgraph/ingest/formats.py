"""Document format detection by file extension."""

from __future__ import annotations

import enum
from pathlib import PurePath


class DocumentFormat(str, enum.Enum):
    """Supported document payload formats. ``UNKNOWN`` means unsupported."""

    UNKNOWN = ""
    MARKDOWN = "markdown"
    PDF = "pdf"
    CSV = "csv"


_EXTENSIONS: dict[str, DocumentFormat] = {
    ".md": DocumentFormat.MARKDOWN,
    ".markdown": DocumentFormat.MARKDOWN,
    ".pdf": DocumentFormat.PDF,
    ".csv": DocumentFormat.CSV,
}

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(_EXTENSIONS)


def detect_format(path: str) -> DocumentFormat:
    """Infer the document format from *path*'s extension (case-insensitive)."""
    return _EXTENSIONS.get(PurePath(path).suffix.lower(), DocumentFormat.UNKNOWN)
