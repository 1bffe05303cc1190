"""Tests for extension-based format detection."""

from __future__ import annotations

import pytest

from docgraph.ingest.formats import SUPPORTED_EXTENSIONS, DocumentFormat, detect_format


@pytest.mark.parametrize(
    "path, expected",
    [
        ("x.MD", DocumentFormat.MARKDOWN),
        ("x.markdown", DocumentFormat.MARKDOWN),
        ("notes/readme.md", DocumentFormat.MARKDOWN),
        ("x.pdf", DocumentFormat.PDF),
        ("REPORT.PDF", DocumentFormat.PDF),
        ("x.csv", DocumentFormat.CSV),
        ("x.txt", DocumentFormat.UNKNOWN),
        ("Makefile", DocumentFormat.UNKNOWN),
        ("archive.csv.gz", DocumentFormat.UNKNOWN),
    ],
)
def test_detect_format(path, expected):
    assert detect_format(path) == expected


def test_unknown_is_falsy_value():
    assert DocumentFormat.UNKNOWN.value == ""
    assert not DocumentFormat.UNKNOWN.value


def test_supported_extensions():
    assert SUPPORTED_EXTENSIONS == {".md", ".markdown", ".pdf", ".csv"}
