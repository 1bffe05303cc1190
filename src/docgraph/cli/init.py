"""docgraph init — scaffold a project.

Creates:
  .docgraph.db             — empty knowledge base with schema
  docgraph.yaml            — project config (commented overrides)
  ~/.docgraph/config.yaml  — global model config (created once, mode 0o600)

Existing files are left untouched.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from docgraph.config import ensure_global_config
from docgraph.db.connection import Database

console = Console()

_DEFAULT_PROJECT_DIR = Path(".")
_DB_NAME = ".docgraph.db"
_PROJECT_CONFIG_NAME = "docgraph.yaml"

_PROJECT_CONFIG = (
    "# docgraph project configuration; overrides ~/.docgraph/config.yaml.\n"
    "# API keys come from environment variables, never from this file.\n"
    "\n"
    "# embedding:\n"
    "#   model: openai/text-embedding-3-small\n"
    "#   dimensions: 1536\n"
    "#   timeout: 60\n"
    "\n"
    "# generation:\n"
    "#   model: openai/gpt-4o-mini\n"
    "#   timeout: 60\n"
    "\n"
    "# chunking:\n"
    "#   chunk_size: 1000\n"
    "#   overlap: 200\n"
    "\n"
    "# chat:\n"
    "#   similarity_limit: 5\n"
)


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = _DEFAULT_PROJECT_DIR,
) -> None:
    """Create the database, a project config and the global config."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    db_path = project_dir / _DB_NAME
    if db_path.exists():
        console.print(f"  [dim]•[/] {escape(_DB_NAME)} already exists")
    else:
        Database(db_path).open().close()
        console.print(f"  [green]✓[/] {escape(_DB_NAME)}")

    cfg_file = project_dir / _PROJECT_CONFIG_NAME
    if cfg_file.exists():
        console.print(f"  [dim]•[/] {_PROJECT_CONFIG_NAME} already exists")
    else:
        cfg_file.write_text(_PROJECT_CONFIG, encoding="utf-8")
        console.print(f"  [green]✓[/] {_PROJECT_CONFIG_NAME}")

    cfg_path = ensure_global_config()
    console.print(f"  [green]✓[/] {escape(str(cfg_path))} (global config)")

    console.print("\nNext steps:")
    console.print("  1. export OPENAI_API_KEY=...        (or the key of your provider)")
    console.print("  2. docgraph ingest <path>           (build the knowledge base)")
    console.print('  3. docgraph chat "your question"    (ask about your documents)')
