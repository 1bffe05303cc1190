"""docgraph database layer: SQLite + sqlite-vec."""

from docgraph.db.connection import Database
from docgraph.db.graph import SqliteGraphStore
from docgraph.db.migrations import MIGRATIONS, initialize, run_migrations
from docgraph.db.repository import Repository
from docgraph.db.vector_store import SqliteVectorStore
from docgraph.db.vectors import ensure_vec_table, model_to_slug, vec_table_name

__all__ = [
    "Database",
    "Repository",
    "SqliteGraphStore",
    "SqliteVectorStore",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "ensure_vec_table",
    "model_to_slug",
    "vec_table_name",
]
