"""Tests for per-model sqlite-vec tables."""

from __future__ import annotations

import pytest

from docgraph.db.vectors import (
    ensure_vec_table,
    list_vec_tables,
    model_to_slug,
    vec_table_dimensions,
    vec_table_name,
)
from docgraph.errors import DimensionMismatchError


@pytest.mark.parametrize("model,slug", [
    ("openai/text-embedding-3-small", "openai_text_embedding_3_small"),
    ("Ollama/Nomic-Embed-Text", "ollama_nomic_embed_text"),
    ("voyage/voyage-3.5", "voyage_voyage_3_5"),
])
def test_slug_is_lowercase_alnum(model, slug):
    assert model_to_slug(model) == slug
    assert vec_table_name(slug) == f"vec_chunks_{slug}"


def test_first_use_creates_table_with_dimensions(tmp_db):
    table = ensure_vec_table(tmp_db, "nomic", 768)
    assert table == "vec_chunks_nomic"
    assert vec_table_dimensions(tmp_db, table) == 768


def test_second_use_with_same_dimensions_is_a_noop(tmp_db):
    table = ensure_vec_table(tmp_db, "nomic", 3)
    tmp_db.execute(f"INSERT INTO {table}(rowid, embedding) VALUES (7, '[1.0, 0.0, 0.0]')")
    assert ensure_vec_table(tmp_db, "nomic", 3) == table
    assert tmp_db.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] == 1


def test_models_get_separate_tables(tmp_db):
    small = ensure_vec_table(tmp_db, "small", 3)
    large = ensure_vec_table(tmp_db, "large", 5)
    assert small != large
    assert vec_table_dimensions(tmp_db, small) == 3
    assert vec_table_dimensions(tmp_db, large) == 5


def test_dimensions_of_unknown_table(tmp_db):
    assert vec_table_dimensions(tmp_db, "vec_chunks_unknown") is None


def test_nearest_rowid(tmp_db):
    table = ensure_vec_table(tmp_db, "nomic", 2)
    tmp_db.execute(f"INSERT INTO {table}(rowid, embedding) VALUES (1, '[1.0, 0.0]')")
    tmp_db.execute(f"INSERT INTO {table}(rowid, embedding) VALUES (2, '[0.0, 1.0]')")
    row = tmp_db.execute(
        f"SELECT rowid, distance FROM {table} WHERE embedding MATCH ? "
        "ORDER BY distance LIMIT 1",
        ("[0.1, 0.9]",),
    ).fetchone()
    assert row["rowid"] == 2


@pytest.mark.parametrize("slug", ["has-dash", "Upper", "with space", ""])
def test_unsanitized_slug_rejected(tmp_db, slug):
    with pytest.raises(ValueError, match="model_to_slug"):
        ensure_vec_table(tmp_db, slug, 3)


def test_non_positive_dimensions_rejected(tmp_db):
    with pytest.raises(ValueError, match="dimensions"):
        ensure_vec_table(tmp_db, "nomic", 0)


def test_changed_dimensions_refused(tmp_db):
    ensure_vec_table(tmp_db, "nomic", 3)
    with pytest.raises(DimensionMismatchError) as exc_info:
        ensure_vec_table(tmp_db, "nomic", 4)
    assert (exc_info.value.expected, exc_info.value.actual) == (3, 4)
    assert vec_table_dimensions(tmp_db, "vec_chunks_nomic") == 3


def test_list_vec_tables_skips_shadow_tables(tmp_db):
    assert list_vec_tables(tmp_db) == []
    ensure_vec_table(tmp_db, "small", 3)
    ensure_vec_table(tmp_db, "large", 5)
    assert list_vec_tables(tmp_db) == ["vec_chunks_large", "vec_chunks_small"]
