"""Tests for the docgraph exception taxonomy."""

from __future__ import annotations

import pytest

from docgraph.errors import (
    ChatCancelledError,
    ConfigurationError,
    DimensionMismatchError,
    DocgraphError,
    EmbedError,
    EmbeddingCountMismatchError,
    EmptyQuestionError,
    FilterExhaustedError,
    GenerateError,
    GraphError,
    NoChunksProducedError,
    NoContentError,
    NoSectionMatchError,
    NoTopicMatchError,
    NotConfiguredError,
    SearchError,
    StorageError,
    UnsupportedFormatError,
    UpstreamError,
    ValidationError,
)


@pytest.mark.parametrize(
    "leaf, kind",
    [
        (NotConfiguredError, ConfigurationError),
        (EmptyQuestionError, ValidationError),
        (UnsupportedFormatError, ValidationError),
        (NoChunksProducedError, NoContentError),
        (EmbedError, UpstreamError),
        (EmbeddingCountMismatchError, UpstreamError),
        (SearchError, UpstreamError),
        (GraphError, UpstreamError),
        (StorageError, UpstreamError),
        (GenerateError, UpstreamError),
        (NoSectionMatchError, FilterExhaustedError),
        (NoTopicMatchError, FilterExhaustedError),
    ],
)
def test_leaf_kinds(leaf, kind):
    assert issubclass(leaf, kind)
    assert issubclass(kind, DocgraphError)


def test_dimension_mismatch_fields():
    exc = DimensionMismatchError(1536, 768)
    assert (exc.expected, exc.actual) == (1536, 768)
    assert "expected 1536, got 768" in str(exc)


def test_embedding_count_mismatch_message():
    exc = EmbeddingCountMismatchError(3, 1)
    assert str(exc) == "embedding count mismatch: have 3 chunks, 1 embeddings"


def test_filter_errors_keep_filters():
    exc = NoSectionMatchError(("setup", "2"))
    assert exc.filters == ["setup", "2"]
    assert str(exc) == "no chunks matched the requested sections: setup, 2"
    assert str(NoTopicMatchError()) == "no documents matched the requested topics"


def test_no_chunks_message_names_path():
    assert str(NoChunksProducedError("a.md")) == "document produced no chunks: a.md"
    assert str(NoChunksProducedError()) == "document produced no chunks"


def test_cancelled_stage():
    assert ChatCancelledError("streaming").stage == "streaming"
    assert str(ChatCancelledError("embedding")) == "chat cancelled during embedding"
    assert str(ChatCancelledError()) == "chat cancelled"


def test_upstream_errors_chain_cause():
    cause = RuntimeError("timeout")
    try:
        try:
            raise cause
        except RuntimeError as exc:
            raise SearchError(f"vector search: {exc}") from exc
    except SearchError as err:
        assert err.__cause__ is cause
