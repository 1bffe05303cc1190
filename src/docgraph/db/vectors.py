"""sqlite-vec chunk index: one vec0 table per embedding model.

Vectors of different models are never mixed. The table for a model is named
``vec_chunks_<slug>`` and its rowids are the rowids of the ``chunks`` table.
The declared dimension of an existing table is authoritative: binding a
model with another dimension is refused.
"""

from __future__ import annotations

import re
import sqlite3

from docgraph.errors import DimensionMismatchError

_SLUG_RE = re.compile(r"[a-z0-9_]+")
_DIMENSIONS_RE = re.compile(r"float\[(\d+)\]")


def model_to_slug(model: str) -> str:
    """``"openai/text-embedding-3-small"`` → ``"openai_text_embedding_3_small"``."""
    return re.sub(r"[^a-z0-9]", "_", model.lower())


def vec_table_name(model_slug: str) -> str:
    return f"vec_chunks_{model_slug}"


def vec_table_dimensions(conn: sqlite3.Connection, table: str) -> int | None:
    """Declared vector length of *table*, or None when the table is missing."""
    row = conn.execute(
        "SELECT sql FROM sqlite_master WHERE type='table' AND name=?", (table,)
    ).fetchone()
    if row is None:
        return None
    match = _DIMENSIONS_RE.search(row[0] or "")
    return int(match.group(1)) if match else None


def ensure_vec_table(conn: sqlite3.Connection, model_slug: str, dimensions: int) -> str:
    """Create the vec table for *model_slug* on first use and return its name.

    Raises:
        ValueError: *model_slug* is not a sanitized slug or *dimensions* < 1.
        DimensionMismatchError: The table exists with another dimension.
    """
    if not _SLUG_RE.fullmatch(model_slug):
        raise ValueError(
            f"Invalid model_slug '{model_slug}'; use model_to_slug() to sanitize."
        )
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")

    table = vec_table_name(model_slug)
    existing = vec_table_dimensions(conn, table)
    if existing is None:
        conn.execute(
            f"CREATE VIRTUAL TABLE {table} USING vec0(embedding float[{dimensions}])"
        )
        conn.commit()
    elif existing != dimensions:
        raise DimensionMismatchError(existing, dimensions)
    return table


def list_vec_tables(conn: sqlite3.Connection) -> list[str]:
    """Names of every per-model vec table in the database, sorted."""
    rows = conn.execute(
        "SELECT name, sql FROM sqlite_master WHERE type='table' AND name LIKE 'vec_chunks_%'"
    ).fetchall()
    return sorted(name for name, sql in rows if "using vec0" in (sql or "").lower())
