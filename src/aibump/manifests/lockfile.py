"""Best-effort refresh of the package-manager lock artifact."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from aibump.manifests.documents import ManifestDocument, ManifestError, ManifestKind, save_manifest

logger = logging.getLogger(__name__)


def refresh_lockfile(path: Path, version: str) -> bool:
    """Mirror *version* into ``package-lock.json``-style lock files.

    Updates the top-level ``version`` and ``packages[""].version``. Returns
    True if the file was rewritten. A missing or unreadable lock file is not
    an error.
    """
    if not path.is_file():
        logger.info("%s not found; skipping lock file update", path.name)
        return False

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not update %s: %s", path, exc)
        return False
    if not isinstance(data, dict):
        logger.warning("Could not update %s: not a JSON object", path)
        return False

    data["version"] = version
    root_package = data.get("packages", {}).get("") if isinstance(data.get("packages"), dict) else None
    if isinstance(root_package, dict):
        root_package["version"] = version

    try:
        save_manifest(ManifestDocument(path=path, kind=ManifestKind.APPLICATION, data=data))
    except ManifestError as exc:
        logger.warning("Could not update %s: %s", path, exc)
        return False

    logger.info("Updated %s version to %s", path.name, version)
    return True
