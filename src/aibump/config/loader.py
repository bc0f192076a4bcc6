"""Load and merge configuration from .aibump.toml and env vars."""

from __future__ import annotations

import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from aibump.config.schema import (
    AibumpConfig,
    ClassifyConfig,
    CommitConfig,
    LLMConfig,
    ManifestsConfig,
    OutputConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".aibump.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _positive_int(name: str, value: str) -> Optional[int]:
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, value)
        return None
    if parsed <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, value)
        return None
    return parsed


def _merge_env_overrides(cfg: AibumpConfig) -> None:
    """Apply AIBUMP_* environment variable overrides."""
    if val := os.environ.get("AIBUMP_MODEL"):
        cfg.llm.model = val
    if val := os.environ.get("AIBUMP_TOKEN_BUDGET"):
        budget = _positive_int("AIBUMP_TOKEN_BUDGET", val)
        if budget is not None:
            cfg.llm.token_budget = budget
    if val := os.environ.get("AIBUMP_INFRA_ROOT"):
        cfg.classify.infra_root = val
    if val := os.environ.get("AIBUMP_EXCLUDE"):
        cfg.classify.exclude.extend(p.strip() for p in val.split(",") if p.strip())
    if val := os.environ.get("AIBUMP_COMMIT"):
        cfg.commit.enabled = val.strip().lower() in ("1", "true", "yes")


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table, got {type(raw).__name__}")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(raw) - valid_fields)
    if unknown:
        logger.warning("Ignoring unknown keys in [%s]: %s", section, ", ".join(unknown))
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> AibumpConfig:
    """Load, validate, and return an AibumpConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = AibumpConfig()
    else:
        logger.debug("Loading config from %s", config_path)
        raw = _parse_toml(config_path)
        cfg = AibumpConfig(
            version=str(raw.get("version", "1.0")),
            manifests=_build_section(raw, ManifestsConfig, "manifests"),
            classify=_build_section(raw, ClassifyConfig, "classify"),
            llm=_build_section(raw, LLMConfig, "llm"),
            commit=_build_section(raw, CommitConfig, "commit"),
            output=_build_section(raw, OutputConfig, "output"),
        )

    _merge_env_overrides(cfg)
    _validate(cfg)
    return cfg


def _validate(cfg: AibumpConfig) -> None:
    if cfg.output.format not in ("terminal", "json"):
        raise ConfigError(f"Invalid output format: {cfg.output.format!r}")
    if cfg.llm.chars_per_token <= 0:
        raise ConfigError(f"llm.chars_per_token must be positive, got {cfg.llm.chars_per_token}")
    if cfg.llm.max_attempts < 1:
        raise ConfigError(f"llm.max_attempts must be at least 1, got {cfg.llm.max_attempts}")
    if not cfg.classify.infra_root.strip("/"):
        raise ConfigError("classify.infra_root must name a directory")
