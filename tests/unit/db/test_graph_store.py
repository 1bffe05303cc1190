"""Tests for the SQLite graph mirror."""

from __future__ import annotations

import pytest

from docgraph.db.graph import SqliteGraphStore
from docgraph.db.repository import Repository
from docgraph.db.vectors import ensure_vec_table
from docgraph.errors import GraphError
from docgraph.ingest.base import ChunkFragment, SectionMeta, TopicMeta
from docgraph.ingest.formats import DocumentFormat
from docgraph.ingest.service import DocumentResult
from docgraph.rag.types import SectionInfo


@pytest.fixture
def repo(tmp_db):
    table = ensure_vec_table(tmp_db, "test_model", dimensions=3)
    return Repository(tmp_db, vec_table=table, dimensions=3)


def _store(repo, rel_path, title, folder="", topics=(), sections=None, chunks=1):
    sections = sections if sections is not None else [SectionMeta(title, 1, 0)]
    result = DocumentResult(
        rel_path=rel_path,
        folder=folder,
        title=title,
        content_hash=f"hash-{rel_path}",
        format=DocumentFormat.MARKDOWN,
        fragments=[ChunkFragment(f"{title} {i}", sections[0]) for i in range(chunks)],
        sections=sections,
        topics=[TopicMeta(t) for t in topics],
        embeddings=[[1.0, 0.0, 0.0]] * chunks,
    )
    repo.persist(result)
    return repo.get_document_by_path(rel_path).id


def test_insight_structure(repo):
    sections = [SectionMeta("Guide", 1, 0), SectionMeta("Install", 2, 1), SectionMeta("Usage", 2, 2)]
    doc_id = _store(
        repo, "docs/guide.md", "Guide", folder="docs",
        topics=["Install", "Usage"], sections=sections, chunks=3,
    )

    insight = SqliteGraphStore(repo).document_insights([doc_id])[doc_id]
    assert insight.chunk_count == 3
    assert insight.folders == ["docs"]
    assert insight.sections == [
        SectionInfo("Guide", 1, 0), SectionInfo("Install", 2, 1), SectionInfo("Usage", 2, 2)
    ]
    assert insight.topics == ["Install", "Usage"]
    assert insight.related_documents == []


def test_root_document_has_no_folder(repo):
    doc_id = _store(repo, "a.md", "A")
    assert SqliteGraphStore(repo).document_insights([doc_id])[doc_id].folders == []


def test_unknown_ids_are_absent(repo):
    doc_id = _store(repo, "a.md", "A")
    insights = SqliteGraphStore(repo).document_insights(["nope", doc_id])
    assert list(insights) == [doc_id]


def test_related_by_folder(repo):
    a = _store(repo, "team/a.md", "A", folder="team")
    _store(repo, "team/b.md", "B", folder="team")
    _store(repo, "other/c.md", "C", folder="other")

    related = SqliteGraphStore(repo).document_insights([a])[a].related_documents
    assert [(r.title, r.weight, r.reason) for r in related] == [("B", 1.0, "folder")]


def test_root_documents_are_not_related_by_folder(repo):
    a = _store(repo, "a.md", "A")
    _store(repo, "b.md", "B")
    assert SqliteGraphStore(repo).document_insights([a])[a].related_documents == []


def test_related_by_shared_topics_ranked_by_weight(repo):
    a = _store(repo, "a.md", "A", topics=["Install", "Usage", "FAQ"])
    _store(repo, "b.md", "B", topics=["Install"])
    _store(repo, "c.md", "C", topics=["Install", "FAQ"])
    _store(repo, "d.md", "D", topics=["Pricing"])

    related = SqliteGraphStore(repo).document_insights([a])[a].related_documents
    assert [(r.title, r.weight, r.reason) for r in related] == [
        ("C", 2.0, "topic"),
        ("B", 1.0, "topic"),
    ]


def test_related_by_folder_and_topic(repo):
    a = _store(repo, "kb/a.md", "A", folder="kb", topics=["Setup"])
    _store(repo, "kb/b.md", "B", folder="kb", topics=["Setup"])

    related = SqliteGraphStore(repo).document_insights([a])[a].related_documents
    assert len(related) == 1
    assert related[0].weight == 2.0
    assert related[0].reason == "folder, topic"
    assert related[0].path == "kb/b.md"


def test_resync_replaces_sections_and_topics(repo):
    doc_id = _store(repo, "a.md", "A", topics=["Old"])
    result = DocumentResult(
        rel_path="a.md", folder="moved", title="A", content_hash="h2",
        format=DocumentFormat.MARKDOWN,
        fragments=[ChunkFragment("A new", SectionMeta("New", 1, 0))],
        sections=[SectionMeta("New", 1, 0)],
        topics=[TopicMeta("New"), TopicMeta("New"), TopicMeta("")],
        embeddings=[[0.0, 1.0, 0.0]],
    )
    assert repo.persist(result) == 1

    insight = SqliteGraphStore(repo).document_insights([doc_id])[doc_id]
    assert insight.topics == ["New"]
    assert insight.sections == [SectionInfo("New", 1, 0)]
    assert insight.folders == ["moved"]


def test_query_failure_raises_graph_error(repo):
    doc_id = _store(repo, "a.md", "A")
    repo.conn.execute("DROP TABLE topics")
    with pytest.raises(GraphError, match="graph insights query"):
        SqliteGraphStore(repo).document_insights([doc_id])
