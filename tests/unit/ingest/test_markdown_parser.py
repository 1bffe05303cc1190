"""Tests for Markdown chunking, title extraction and MarkdownParser."""

from __future__ import annotations

import pytest

from docgraph.ingest.base import DocumentPayload, SectionMeta, TopicMeta
from docgraph.ingest.markdown import (
    MarkdownParser,
    chunk_markdown,
    extract_title,
    heading_level,
)

_OVERLAP_DOC = (
    "# Title\n\n"
    "## Section One\n\n"
    "Paragraph one."
    "\n\n"
    "Paragraph two is quite a bit longer than the first paragraph and should trigger a split."
    "\n\n"
    "Paragraph three."
    "\n\n"
    "Paragraph four."
)


# ------------------------------------------------------------------
# extract_title / heading_level
# ------------------------------------------------------------------


def test_extract_title_first_heading():
    assert extract_title("Some intro\n# Heading One\nMore text", "fallback") == "Heading One"


def test_extract_title_any_level():
    assert extract_title("text\n### Deep Title\n", "fallback") == "Deep Title"


def test_extract_title_fallback():
    assert extract_title("no headings", "fallback") == "fallback"


@pytest.mark.parametrize(
    "line, level",
    [("# a", 1), ("## a", 2), ("###### a", 6), ("######## a", 6), ("plain", 1)],
)
def test_heading_level(line, level):
    assert heading_level(line) == level


# ------------------------------------------------------------------
# chunk_markdown
# ------------------------------------------------------------------


@pytest.mark.parametrize("content", ["", "   ", "\n\n  \n\t\n"])
def test_empty_content_yields_nothing(content):
    assert chunk_markdown(content) == ([], [], [])


def test_one_h1_two_h2():
    content = "# Guide\n\nWelcome.\n\n## Install\n\nRun it.\n\n## Usage\n\nUse it."
    fragments, sections, topics = chunk_markdown(content)

    assert sections == [
        SectionMeta("Guide", 1, 0),
        SectionMeta("Install", 2, 1),
        SectionMeta("Usage", 2, 2),
    ]
    assert [s.order for s in sections] == [0, 1, 2]
    assert topics == [TopicMeta("Install"), TopicMeta("Usage")]
    assert len(fragments) == 1
    assert fragments[0].text == (
        "Guide\n\nWelcome.\n\nInstall\n\nRun it.\n\nUsage\n\nUse it."
    )
    assert fragments[0].section == SectionMeta("Usage", 2, 2)


def test_plain_text_without_headings():
    content = "First paragraph.\n\nSecond paragraph.\n\nThird paragraph."
    fragments, sections, topics = chunk_markdown(content, 1000, 0)

    assert len(fragments) >= 1
    rebuilt = [u for f in fragments for u in f.text.split("\n\n")]
    assert rebuilt == ["First paragraph.", "Second paragraph.", "Third paragraph."]
    assert sections == [SectionMeta("Introduction", 1, 0)]
    assert topics == []


def test_lead_section_omitted_when_unused():
    fragments, sections, topics = chunk_markdown("## Only\n\nBody text.")
    assert sections == [SectionMeta("Only", 2, 1)]
    assert topics == [TopicMeta("Only")]
    assert fragments[0].section == SectionMeta("Only", 2, 1)


def test_duplicate_topics_first_wins():
    _, sections, topics = chunk_markdown("## A\n\nx\n\n## A\n\ny")
    assert topics == [TopicMeta("A")]
    assert [s.order for s in sections] == [1, 2]


def test_level3_headings_are_sections_not_topics():
    _, sections, topics = chunk_markdown("## Setup\n\n### Linux\n\napt install")
    assert sections == [SectionMeta("Setup", 2, 1), SectionMeta("Linux", 3, 2)]
    assert topics == [TopicMeta("Setup")]


def test_empty_heading_is_skipped():
    fragments, sections, topics = chunk_markdown("##   \n\nbody")
    assert sections == [SectionMeta("Introduction", 1, 0)]
    assert topics == []
    assert fragments[0].text == "body"


def test_crlf_line_endings():
    fragments, sections, _ = chunk_markdown("# T\r\n\r\nline\r\n")
    assert fragments[0].text == "T\n\nline"
    assert sections == [SectionMeta("T", 1, 0)]


def test_overlap_produces_distinct_overlapping_chunks():
    fragments, sections, topics = chunk_markdown(_OVERLAP_DOC, 50, 10)

    assert len(fragments) >= 2
    assert fragments[0].text != fragments[1].text
    for prev, nxt in zip(fragments, fragments[1:]):
        assert prev.text.split("\n\n")[-1] == nxt.text.split("\n\n")[0]
    assert sections
    assert topics == [TopicMeta("Section One")]


def test_without_overlap_chunks_do_not_repeat_units():
    fragments, _, _ = chunk_markdown(_OVERLAP_DOC, 50, 0)
    rebuilt = [u for f in fragments for u in f.text.split("\n\n")]
    assert rebuilt == [
        "Title",
        "Section One",
        "Paragraph one.",
        "Paragraph two is quite a bit longer than the first paragraph and should trigger a split.",
        "Paragraph three.",
        "Paragraph four.",
    ]


def test_straddling_chunk_attributed_to_newer_section():
    fragments, _, _ = chunk_markdown(_OVERLAP_DOC, 50, 10)
    assert fragments[0].section == SectionMeta("Section One", 2, 1)


# ------------------------------------------------------------------
# MarkdownParser
# ------------------------------------------------------------------


def test_parser_title_from_heading():
    doc = MarkdownParser().parse(
        DocumentPayload(path="/kb/guide.md", data=b"# Handbook\n\n## Rules\n\nBe nice.")
    )
    assert doc.title == "Handbook"
    assert doc.topics == [TopicMeta("Rules")]
    assert len(doc.fragments) == 1


def test_parser_title_falls_back_to_base_name():
    doc = MarkdownParser().parse(DocumentPayload(path="/kb/notes.md", data=b"just text"))
    assert doc.title == "notes.md"


def test_parser_tolerates_invalid_utf8():
    doc = MarkdownParser().parse(DocumentPayload(path="x.md", data=b"caf\xe9 menu"))
    assert len(doc.fragments) == 1
    assert "menu" in doc.fragments[0].text
