"""Tests for the docgraph init CLI command."""

from __future__ import annotations

import stat

import yaml
from typer.testing import CliRunner

from docgraph.cli.main import app
from docgraph.config import load_config
from docgraph.db.connection import Database

runner = CliRunner()


def test_init_creates_database_and_configs(project):
    (project / "docgraph.yaml").unlink()
    global_cfg = project / "no-global.yaml"

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0, result.output
    with Database(project / ".docgraph.db") as conn:
        assert conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0] == 0
    assert yaml.safe_load((project / "docgraph.yaml").read_text(encoding="utf-8")) is None
    assert global_cfg.exists()
    assert stat.S_IMODE(global_cfg.stat().st_mode) == 0o600
    assert "global config" in result.output


def test_init_output_loads_as_config(project):
    (project / "docgraph.yaml").unlink()
    runner.invoke(app, ["init"])
    cfg = load_config(project_dir=project, global_config_path=project / "no-global.yaml")
    assert cfg.generation.model == "openai/gpt-4o-mini"


def test_init_keeps_existing_files(project):
    original = (project / "docgraph.yaml").read_text(encoding="utf-8")
    (project / "no-global.yaml").write_text("generation:\n  model: custom/model\n", encoding="utf-8")

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0, result.output
    assert "already exists" in result.output
    assert (project / "docgraph.yaml").read_text(encoding="utf-8") == original
    assert "custom/model" in (project / "no-global.yaml").read_text(encoding="utf-8")


def test_init_into_new_directory(project):
    result = runner.invoke(app, ["init", "sub/kb"])
    assert result.exit_code == 0, result.output
    assert (project / "sub" / "kb" / ".docgraph.db").exists()
    assert (project / "sub" / "kb" / "docgraph.yaml").exists()


def test_init_then_ingest_uses_new_database(project, docs):
    runner.invoke(app, ["init"])
    result = runner.invoke(app, ["ingest", "docs"])
    assert result.exit_code == 0, result.output
    with Database(project / ".docgraph.db") as conn:
        assert conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0] == 2
