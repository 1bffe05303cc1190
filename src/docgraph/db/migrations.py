"""Forward-only migration runner for the docgraph schema.

Vec tables (vec_chunks_*) are not migration-managed; see docgraph.db.vectors.
"""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

# documents.folder, sections and topics form the graph mirror: related
# documents are derived from shared folders and shared topic names.
_V1_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    id              TEXT PRIMARY KEY,
    path            TEXT NOT NULL UNIQUE,
    title           TEXT NOT NULL,
    folder          TEXT NOT NULL DEFAULT '',
    content_hash    TEXT NOT NULL,
    ingested_at     DATETIME NOT NULL DEFAULT (datetime('now')),
    updated_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_documents_folder ON documents(folder);

CREATE TABLE IF NOT EXISTS chunks (
    id              TEXT NOT NULL UNIQUE,
    document_id     TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    chunk_index     INTEGER NOT NULL,
    section_title   TEXT NOT NULL DEFAULT '',
    section_level   INTEGER NOT NULL DEFAULT 1,
    section_order   INTEGER NOT NULL DEFAULT 0,
    text            TEXT NOT NULL,
    created_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id);

CREATE TABLE IF NOT EXISTS sections (
    document_id     TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    title           TEXT NOT NULL,
    level           INTEGER NOT NULL,
    section_order   INTEGER NOT NULL,
    PRIMARY KEY (document_id, section_order)
);

CREATE TABLE IF NOT EXISTS topics (
    document_id     TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    name            TEXT NOT NULL,
    position        INTEGER NOT NULL,
    PRIMARY KEY (document_id, name)
);

CREATE INDEX IF NOT EXISTS idx_topics_name ON topics(name);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]

CURRENT_VERSION = MIGRATIONS[-1][0]


def schema_version(conn: sqlite3.Connection) -> int:
    """Highest applied migration, 0 for a fresh file."""
    conn.execute(_CREATE_SCHEMA_VERSION)
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


def run_migrations(conn: sqlite3.Connection) -> list[int]:
    """Apply pending migrations in ascending order; return the versions applied.

    Each migration is recorded in ``schema_version`` right after it runs, so
    an interrupted run resumes at the first unapplied version.
    """
    current = schema_version(conn)
    conn.commit()

    applied: list[int] = []
    for version, sql in MIGRATIONS:
        if version <= current:
            continue
        conn.executescript(sql)
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
        conn.commit()
        applied.append(version)
    return applied


def initialize(conn: sqlite3.Connection) -> int:
    """Bring *conn* to the current schema and return its version."""
    run_migrations(conn)
    return schema_version(conn)
