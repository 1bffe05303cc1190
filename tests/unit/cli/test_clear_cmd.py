"""Tests for the docgraph clear CLI command."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from docgraph.cli.main import app
from docgraph.db.connection import Database

runner = CliRunner()

_VEC_TABLE = "vec_chunks_openai_text_embedding_3_small"


def _counts(db_path: Path) -> dict[str, int]:
    with Database(db_path) as conn:
        return {
            table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            for table in ("documents", "chunks", "sections", "topics", _VEC_TABLE)
        }


def _ingest():
    result = runner.invoke(app, ["ingest", "docs"])
    assert result.exit_code == 0, result.output


def test_clear_yes_removes_everything(project, docs):
    _ingest()
    assert _counts(project / ".docgraph.db")["documents"] == 2

    result = runner.invoke(app, ["clear", "--yes"])

    assert result.exit_code == 0, result.output
    assert "Cleared 2 document(s)" in result.output
    assert set(_counts(project / ".docgraph.db").values()) == {0}


def test_clear_confirmed_at_prompt(project, docs):
    _ingest()
    result = runner.invoke(app, ["clear"], input="y\n")
    assert result.exit_code == 0, result.output
    assert _counts(project / ".docgraph.db")["documents"] == 0


def test_clear_declined_keeps_data(project, docs):
    _ingest()
    result = runner.invoke(app, ["clear"], input="n\n")

    assert result.exit_code == 0
    assert "Cancelled" in result.output
    assert _counts(project / ".docgraph.db")["chunks"] > 0


def test_clear_then_ingest_again(project, docs):
    _ingest()
    runner.invoke(app, ["clear", "-y"])
    result = runner.invoke(app, ["ingest", "docs"])
    assert result.exit_code == 0, result.output
    assert _counts(project / ".docgraph.db")["documents"] == 2


def test_clear_custom_db_path(project, docs):
    runner.invoke(app, ["ingest", "docs", "--db", "other.db"])
    result = runner.invoke(app, ["clear", "--db", "other.db", "--yes"])
    assert result.exit_code == 0, result.output
    assert _counts(project / "other.db")["documents"] == 0


def test_clear_missing_database(project):
    result = runner.invoke(app, ["clear", "--yes"])
    assert result.exit_code == 1
    assert "No database found" in result.output
    assert not (project / ".docgraph.db").exists()
