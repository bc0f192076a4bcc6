"""Versioned manifest documents (application and chart), JSON or YAML.

Each document is read fresh from disk right before it is changed and written
back in one step: the whole document is serialised in memory, written to a
temporary file beside the target, then moved over it with ``os.replace``.
Nothing is cached between reads.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Raised when a manifest is missing, malformed, or cannot be written."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class ManifestKind(str, Enum):
    APPLICATION = "application"
    CHART = "chart"


_JSON_SUFFIXES = (".json",)
_YAML_SUFFIXES = (".yaml", ".yml")


def _format_for(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in _JSON_SUFFIXES:
        return "json"
    if suffix in _YAML_SUFFIXES:
        return "yaml"
    raise ManifestError(f"unsupported manifest format {suffix or '(none)'!r}; use JSON or YAML", path)


@dataclass
class ManifestDocument:
    path: Path
    kind: ManifestKind
    data: Dict[str, Any]

    @property
    def format(self) -> str:
        return _format_for(self.path)

    @property
    def version(self) -> str:
        return self.data["version"]

    def set_version(self, version: str) -> None:
        self.data["version"] = version

    @property
    def app_version(self) -> Optional[str]:
        value = self.data.get("appVersion")
        return None if value is None else str(value)

    def set_app_version(self, version: str) -> None:
        if self.kind != ManifestKind.CHART:
            raise ManifestError("only chart manifests carry appVersion", self.path)
        self.data["appVersion"] = version


def load_manifest(path: Path, kind: ManifestKind) -> ManifestDocument:
    """Read and validate a manifest. It must be a mapping with a string ``version``."""
    fmt = _format_for(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ManifestError("file not found", path) from None
    except OSError as exc:
        raise ManifestError(f"cannot read: {exc}", path) from exc

    try:
        data = json.loads(text) if fmt == "json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ManifestError(f"not valid {fmt.upper()}: {exc}", path) from exc

    if not isinstance(data, dict):
        raise ManifestError(f"expected a mapping at the top level, got {type(data).__name__}", path)
    if "version" not in data:
        raise ManifestError("does not contain a version field", path)
    if not isinstance(data["version"], str):
        raise ManifestError(f"version must be a string, got {data['version']!r}", path)
    return ManifestDocument(path=path, kind=kind, data=data)


def dump_manifest(doc: ManifestDocument) -> str:
    """Serialise the complete document."""
    if doc.format == "json":
        return json.dumps(doc.data, indent=2, ensure_ascii=False) + "\n"
    return yaml.safe_dump(
        doc.data,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=float("inf"),
    )


def save_manifest(doc: ManifestDocument) -> None:
    """Atomically replace the manifest on disk with *doc*."""
    content = dump_manifest(doc)
    directory = doc.path.parent
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{doc.path.name}.", suffix=".tmp", dir=directory)
    except OSError as exc:
        raise ManifestError(f"cannot write: {exc}", doc.path) from exc

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        if doc.path.exists():
            os.chmod(tmp_name, doc.path.stat().st_mode & 0o7777)
        os.replace(tmp_name, doc.path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise ManifestError(f"cannot write: {exc}", doc.path) from exc
    logger.debug("Wrote %s", doc.path)
