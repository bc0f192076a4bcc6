"""API key lookup."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

ENV_VARS = ("AIBUMP_API_KEY", "ANTHROPIC_API_KEY")
CONFIG_KEYS = ("anthropicApiKey", "apiKey")


def user_config_path() -> Path:
    return Path.home() / ".config" / "aibump"


def _read_user_config(path: Path) -> Optional[str]:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable credentials file %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring credentials file %s: expected a JSON object", path)
        return None
    for key in CONFIG_KEYS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def resolve_api_key(explicit: Optional[str] = None, *, config_path: Optional[Path] = None) -> Optional[str]:
    """Return the first key found, or None.

    Order: *explicit*, ``AIBUMP_API_KEY``, ``ANTHROPIC_API_KEY``, then the
    ``anthropicApiKey`` / ``apiKey`` field of ``~/.config/aibump`` (JSON).
    """
    if explicit and explicit.strip():
        return explicit.strip()
    for var in ENV_VARS:
        value = os.environ.get(var, "").strip()
        if value:
            logger.debug("Using API key from %s", var)
            return value
    key = _read_user_config(config_path or user_config_path())
    if key:
        logger.debug("Using API key from user config")
    return key
