"""Shared fixtures for CLI tests: isolated project dir + fake model clients."""

from __future__ import annotations

from pathlib import Path

import pytest


class FakeEmbedder:
    """Stands in for LiteLLMEmbedder; every text maps to the same unit vector."""

    def __init__(self, model: str, dimensions: int | None = None, **kwargs) -> None:
        self.model = model
        self.dimensions = dimensions or 3

    def embed(self, texts):
        return [[1.0] + [0.0] * (self.dimensions - 1) for _ in texts]


class FakeLLM:
    """Stands in for LiteLLMClient; records the messages of every call."""

    calls: list[list] = []
    chunks: list[str] = ["The answer", " is 42."]

    def __init__(self, model: str, **kwargs) -> None:
        self.model = model

    def generate(self, messages):
        FakeLLM.calls.append(list(messages))
        return "".join(FakeLLM.chunks)

    def generate_stream(self, messages, on_chunk):
        FakeLLM.calls.append(list(messages))
        for chunk in FakeLLM.chunks:
            on_chunk(chunk)


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A working directory with a docgraph.yaml using 3-dim embeddings."""
    monkeypatch.setattr("docgraph.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    monkeypatch.chdir(tmp_path)
    for var in ("DOCGRAPH_GENERATION_MODEL", "DOCGRAPH_EMBEDDING_MODEL", "DOCGRAPH_DB"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    (tmp_path / "docgraph.yaml").write_text(
        "embedding:\n  model: openai/text-embedding-3-small\n  dimensions: 3\n",
        encoding="utf-8",
    )
    monkeypatch.setattr("docgraph.cli.ingest.LiteLLMEmbedder", FakeEmbedder)
    monkeypatch.setattr("docgraph.cli.chat.LiteLLMEmbedder", FakeEmbedder)
    monkeypatch.setattr("docgraph.cli.chat.LiteLLMClient", FakeLLM)
    FakeLLM.calls = []
    FakeLLM.chunks = ["The answer", " is 42."]
    return tmp_path


@pytest.fixture
def docs(project: Path) -> Path:
    """A small document tree inside the project."""
    root = project / "docs"
    (root / "guides").mkdir(parents=True)
    (root / "guides" / "setup.md").write_text(
        "# Setup Guide\n\nRead this first.\n\n## Install\n\nRun the installer.\n",
        encoding="utf-8",
    )
    (root / "items.csv").write_text("name,colour\nWidget,red\n", encoding="utf-8")
    (root / "notes.txt").write_text("not picked up", encoding="utf-8")
    return root


@pytest.fixture
def llm(project: Path) -> type[FakeLLM]:
    """The fake LLM class; ``llm.calls`` holds the messages of each call."""
    return FakeLLM
