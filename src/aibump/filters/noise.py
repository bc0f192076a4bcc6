"""Strip prior version bumps from diff text.

A *noise pair* is a deletion and an addition, adjacent in either order, that
each only sets a version field (``"version": "1.2.3"`` in JSON, or a
bare ``version:`` / ``appVersion:`` in YAML). Such pairs are this tool's own
earlier output and say nothing about the change being classified. A single
unpaired match is kept, since something else may have changed on that line.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

_JSON_VERSION_RE = re.compile(r'^\s*"(version)"\s*:\s*"[0-9]+\.[0-9]+\.[0-9]+"\s*,?\s*$')
_YAML_VERSION_RE = re.compile(r"""^\s*(version|appVersion)\s*:\s*(["']?)[0-9]+\.[0-9]+\.[0-9]+\2\s*$""")

# (marker, syntax, field)
_MutationKey = Tuple[str, str, str]


def _mutation_key(line: str) -> Optional[_MutationKey]:
    """Key for a +/- line that only sets a version field, else None."""
    if not line or line[0] not in "+-" or line.startswith(("+++", "---")):
        return None
    content = line[1:].rstrip("\r\n")
    m = _JSON_VERSION_RE.match(content)
    if m:
        return line[0], "json", m.group(1)
    m = _YAML_VERSION_RE.match(content)
    if m:
        return line[0], "yaml", m.group(1)
    return None


def is_version_mutation(line: str) -> bool:
    """True if *line* is a diff add/delete line that only sets a version field."""
    return _mutation_key(line) is not None


def filter_version_noise(diff_text: str) -> str:
    """Remove adjacent version-field noise pairs from *diff_text*.

    Works as a stack: a line pairs with the line kept just before it, so a
    removal that brings two matching lines together pairs them as well.
    Running the filter on its own output changes nothing.
    """
    kept: List[str] = []
    keys: List[Optional[_MutationKey]] = []
    removed = 0

    for line in diff_text.splitlines(keepends=True):
        key = _mutation_key(line)
        if key is not None and keys:
            top = keys[-1]
            if top is not None and top[0] != key[0]:
                kept.pop()
                keys.pop()
                removed += 1
                continue
        kept.append(line)
        keys.append(key)

    if removed:
        logger.debug("Removed %d version-noise pair(s) from diff", removed)
    return "".join(kept)
