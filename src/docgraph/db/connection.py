"""SQLite connection for the docgraph knowledge base (sqlite-vec loaded)."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import sqlite_vec

from docgraph.errors import ConfigurationError

BUSY_TIMEOUT_MS = 5000


class Database:
    """One knowledge-base file: documents, chunks, graph mirror and vec tables.

    ``connect()`` returns a bare connection; ``open()`` also brings the schema
    up to date. Both are usable as a context manager via ``with Database(...)``
    (which calls ``open()``).
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def exists(self) -> bool:
        return self.db_path.is_file()

    def connect(self) -> sqlite3.Connection:
        """Open the file (creating parent directories), load sqlite-vec, set pragmas.

        Raises:
            ConfigurationError: If this interpreter's sqlite3 cannot load
                the sqlite-vec extension.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            conn.enable_load_extension(True)
            sqlite_vec.load(conn)
            conn.enable_load_extension(False)
        except (AttributeError, sqlite3.Error) as exc:
            conn.close()
            raise ConfigurationError(
                f"cannot load sqlite-vec into '{self.db_path}': {exc}"
            ) from exc
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")
        return conn

    def open(self) -> sqlite3.Connection:
        """connect() and apply pending schema migrations."""
        from docgraph.db.migrations import initialize

        conn = self.connect()
        initialize(conn)
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.open()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
