"""Archivist configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (ARCHIVIST_EMBEDDING_MODEL, ARCHIVIST_LOG_LEVEL)
  3. Per-project archivist.yaml  (next to .archivist.db)
  4. Global ~/.archivist/config.yaml  (defaults only — no API keys)
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

from archivist.errors import ArchivistError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".archivist"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "archivist.yaml"

# Key names that suggest a credential; forbidden in global config.
# Does NOT match legitimate keys like max_input_tokens or top_k.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "chunking", "retrieval", "indexing", "logging"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ArchivistError, ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding provider configuration (archivist.yaml: embedding:)."""

    model: str = "gemini/gemini-embedding-001"
    timeout: float = 15.0
    max_input_tokens: int = 2048
    num_retries: int = 0


@dataclass
class ChunkingCfg:
    """Fragment window size and overlap, in characters (archivist.yaml: chunking:)."""

    max_chars: int = 800
    overlap: int = 100


@dataclass
class RetrievalCfg:
    """Retrieval configuration (archivist.yaml: retrieval:)."""

    top_k: int = 10


@dataclass
class IndexingCfg:
    """Indexer behaviour (archivist.yaml: indexing:).

    Attributes:
        keep_unembedded: Store fragments whose embedding is unavailable with a
            NULL embedding (excluded from ranking, picked up by backfill)
            instead of skipping them.
    """

    keep_unembedded: bool = False


@dataclass
class LoggingCfg:
    level: str = "INFO"


@dataclass
class ArchivistConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    indexing: IndexingCfg = field(default_factory=IndexingCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


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


def _validate(cfg: ArchivistConfig) -> None:
    if cfg.chunking.max_chars < 1:
        raise ConfigError(f"chunking.max_chars must be >= 1, got {cfg.chunking.max_chars}")
    if cfg.chunking.overlap < 0:
        raise ConfigError(f"chunking.overlap must be >= 0, got {cfg.chunking.overlap}")
    if cfg.retrieval.top_k < 0:
        raise ConfigError(f"retrieval.top_k must be >= 0, got {cfg.retrieval.top_k}")
    if cfg.embedding.timeout <= 0:
        raise ConfigError(f"embedding.timeout must be > 0, got {cfg.embedding.timeout}")
    if cfg.embedding.max_input_tokens < 1:
        raise ConfigError(
            f"embedding.max_input_tokens must be >= 1, got {cfg.embedding.max_input_tokens}"
        )


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


def _cfg_from_dict(data: dict[str, Any]) -> ArchivistConfig:
    """Build an *ArchivistConfig* from a merged raw YAML dict."""
    cfg = ArchivistConfig()

    try:
        if "embedding" in data:
            e = data["embedding"] or {}
            cfg.embedding = EmbeddingCfg(
                model=str(e.get("model", cfg.embedding.model)),
                timeout=float(e.get("timeout", cfg.embedding.timeout)),
                max_input_tokens=int(e.get("max_input_tokens", cfg.embedding.max_input_tokens)),
                num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
            )

        if "chunking" in data:
            c = data["chunking"] or {}
            cfg.chunking = ChunkingCfg(
                max_chars=int(c.get("max_chars", cfg.chunking.max_chars)),
                overlap=int(c.get("overlap", cfg.chunking.overlap)),
            )

        if "retrieval" in data:
            r = data["retrieval"] or {}
            cfg.retrieval = RetrievalCfg(top_k=int(r.get("top_k", cfg.retrieval.top_k)))

        if "indexing" in data:
            i = data["indexing"] or {}
            keep = i.get("keep_unembedded", cfg.indexing.keep_unembedded)
            if not isinstance(keep, bool):
                raise ConfigError(
                    f"indexing.keep_unembedded must be true or false, got {keep!r}"
                )
            cfg.indexing = IndexingCfg(keep_unembedded=keep)

        if "logging" in data:
            lg = data["logging"] or {}
            cfg.logging = LoggingCfg(level=str(lg.get("level", cfg.logging.level)).upper())
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: ArchivistConfig) -> ArchivistConfig:
    """Apply ARCHIVIST_* environment variable overrides."""
    if model := os.environ.get("ARCHIVIST_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if level := os.environ.get("ARCHIVIST_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> ArchivistConfig:
    """Load and return a merged *ArchivistConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *archivist.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or a value
            is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg
