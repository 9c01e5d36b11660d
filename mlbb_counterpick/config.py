"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local overrides (gitignored)
  4. Environment variables        — ``MLBB_COUNTERPICK_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Every pipeline stage and CLI command receives an ``AppConfig`` instance —
catalog paths, wiki endpoints and concurrency limits are never read from
scattered env var lookups.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Filesystem paths for catalogs and the counters knowledge base."""

    model_config = ConfigDict(frozen=True)

    heroes_file: str = "data/heroes.json"
    items_file: str = "data/items.json"
    counters_file: str = "data/counters.json"


class WikiConfig(BaseModel):
    """External category source (MediaWiki API) settings."""

    model_config = ConfigDict(frozen=True)

    api_url: str = "https://mobile-legends.fandom.com/api.php"
    user_agent: str = "mlbb-counterpick/0.1 (catalog enrichment)"
    http_timeout_seconds: float = 20.0
    lookup_timeout_seconds: float = 60.0
    concurrency: int = 8
    max_pages: int = 50
    image_batch_size: int = 50

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"concurrency must be >= 1, got {v}.")
        return v

    @field_validator("http_timeout_seconds", "lookup_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeouts must be positive, got {v}.")
        return v

    @field_validator("image_batch_size")
    @classmethod
    def validate_batch(cls, v: int) -> int:
        # MediaWiki caps `titles=` at 50 for anonymous clients.
        if not 1 <= v <= 50:
            raise ValueError(f"image_batch_size must be in [1, 50], got {v}.")
        return v


class RecommendConfig(BaseModel):
    """Hero recommendation tuning."""

    model_config = ConfigDict(frozen=True)

    hero_limit: int = 10
    role_bonus: float = 1.0
    role_penalty: float = -0.3


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + env vars.
    """

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    wiki: WikiConfig = WikiConfig()
    recommend: RecommendConfig = RecommendConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply MLBB_COUNTERPICK_* env vars to the raw config dict.

    Supported overrides:
      MLBB_COUNTERPICK_DATA_DIR      → rebases all three data file paths
      MLBB_COUNTERPICK_WIKI_API_URL  → raw["wiki"]["api_url"]
      MLBB_COUNTERPICK_CONCURRENCY   → raw["wiki"]["concurrency"]
      MLBB_COUNTERPICK_LOG_LEVEL     → raw["logging"]["level"]
      MLBB_COUNTERPICK_DEBUG         → raw["debug"]
    """
    if data_dir := os.environ.get("MLBB_COUNTERPICK_DATA_DIR"):
        data = raw.setdefault("data", {})
        defaults = DataConfig()
        for key in ("heroes_file", "items_file", "counters_file"):
            filename = Path(data.get(key, getattr(defaults, key))).name
            data[key] = str(Path(data_dir) / filename)

    if api_url := os.environ.get("MLBB_COUNTERPICK_WIKI_API_URL"):
        raw.setdefault("wiki", {})["api_url"] = api_url

    if concurrency := os.environ.get("MLBB_COUNTERPICK_CONCURRENCY"):
        raw.setdefault("wiki", {})["concurrency"] = int(concurrency)

    if log_level := os.environ.get("MLBB_COUNTERPICK_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("MLBB_COUNTERPICK_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        data=DataConfig(**raw.get("data", {})),
        wiki=WikiConfig(**raw.get("wiki", {})),
        recommend=RecommendConfig(**raw.get("recommend", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
