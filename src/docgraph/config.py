"""docgraph configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (DOCGRAPH_GENERATION_MODEL, DOCGRAPH_EMBEDDING_MODEL,
                             DOCGRAPH_DB)
  3. Per-project docgraph.yaml  (in the working directory)
  4. Global ~/.docgraph/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from docgraph.errors import ConfigurationError
from docgraph.ingest.base import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE
from docgraph.rag.types import DEFAULT_SIMILARITY_LIMIT, ChatOptions

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".docgraph"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "docgraph.yaml"

# Per-request deadline for provider calls, in seconds.
DEFAULT_TIMEOUT_S: float = 60.0

# Fields that suggest an API key; forbidden in global config.
# Does NOT match legitimate config keys like max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"  # api_key, api-key, api_secret, apikey
    r"|_token$"                  # github_token, access_token (suffix)
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

# Known top-level sections; unknown keys produce a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "generation", "chunking", "chat", "database"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ConfigurationError, ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (docgraph.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-small"
    dimensions: int = 1536
    timeout: float = DEFAULT_TIMEOUT_S


@dataclass
class GenerationCfg:
    """LLM generation configuration (docgraph.yaml: generation:)."""

    model: str = "openai/gpt-4o-mini"
    max_tokens: int = 1024
    temperature: float = 0.2
    timeout: float = DEFAULT_TIMEOUT_S


@dataclass
class ChunkingCfg:
    """Chunk packing (docgraph.yaml: chunking:). Sizes are in characters."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    overlap: int = DEFAULT_CHUNK_OVERLAP


@dataclass
class ChatCfg:
    """Retrieval defaults for chat turns (docgraph.yaml: chat:)."""

    similarity_limit: int = DEFAULT_SIMILARITY_LIMIT
    section_filters: list[str] = field(default_factory=list)
    topic_filters: list[str] = field(default_factory=list)

    def to_options(self) -> ChatOptions:
        return ChatOptions(
            similarity_limit=self.similarity_limit,
            section_filters=list(self.section_filters),
            topic_filters=list(self.topic_filters),
        )


@dataclass
class DatabaseCfg:
    path: str = ".docgraph.db"


@dataclass
class DocgraphConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    chat: ChatCfg = field(default_factory=ChatCfg)
    database: DatabaseCfg = field(default_factory=DatabaseCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _load_yaml(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    return raw


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def _cfg_from_dict(data: dict[str, Any]) -> DocgraphConfig:
    """Build a *DocgraphConfig* from a merged raw YAML dict."""
    cfg = DocgraphConfig()

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
            timeout=float(e.get("timeout", cfg.embedding.timeout)),
        )

    if "generation" in data:
        g = data["generation"] or {}
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
            temperature=float(g.get("temperature", cfg.generation.temperature)),
            timeout=float(g.get("timeout", cfg.generation.timeout)),
        )

    if "chunking" in data:
        c = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(
            chunk_size=int(c.get("chunk_size", cfg.chunking.chunk_size)),
            overlap=int(c.get("overlap", cfg.chunking.overlap)),
        )

    if "chat" in data:
        ch = data["chat"] or {}
        cfg.chat = ChatCfg(
            similarity_limit=int(ch.get("similarity_limit", cfg.chat.similarity_limit)),
            section_filters=_str_list(ch.get("section_filters")),
            topic_filters=_str_list(ch.get("topic_filters")),
        )

    if "database" in data:
        d = data["database"] or {}
        cfg.database = DatabaseCfg(path=str(d.get("path", cfg.database.path)))

    return cfg


def _apply_env_overrides(cfg: DocgraphConfig) -> DocgraphConfig:
    """Apply DOCGRAPH_* environment variable overrides."""
    if model := os.environ.get("DOCGRAPH_GENERATION_MODEL"):
        cfg.generation.model = model
    if model := os.environ.get("DOCGRAPH_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if db_path := os.environ.get("DOCGRAPH_DB"):
        cfg.database.path = db_path
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> DocgraphConfig:
    """Load and return a merged *DocgraphConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *docgraph.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields or a
            config file is not a mapping.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = _load_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _load_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    return _apply_env_overrides(_cfg_from_dict(merged))


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.docgraph/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# docgraph global configuration: model defaults only.\n"
            "# NEVER store API keys here. Use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "embedding:\n"
            "  model: openai/text-embedding-3-small\n"
            "  dimensions: 1536\n"
            "\n"
            "generation:\n"
            "  model: openai/gpt-4o-mini\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
