"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from docgraph.db.connection import Database


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    conn = Database(tmp_path / ".docgraph.db").open()
    yield conn
    conn.close()
