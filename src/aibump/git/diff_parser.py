"""Unified diff parser.

Turns diff text into a DiffDocument of per-file FileChange records. Handles
git extended headers, renames, binary markers, mode-only changes, missing
trailing newlines and plain ``---``/``+++`` unified diffs. A malformed file
header is logged and skipped; parsing continues with the next file.
"""

from __future__ import annotations

import logging
import re
from typing import Generator, Optional

from aibump.git.models import ChangeKind, DiffDocument, FileChange, HunkLine, LineMarker

logger = logging.getLogger(__name__)

# --- Regex patterns for diff parsing ---

_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.*) b/(.*)$")
_DIFF_HEADER_QUOTED_RE = re.compile(r'^diff --git "a/(.*)" "b/(.*)"$')
_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_BINARY_RE = re.compile(r"^Binary files (.*) and (.*) differ$")
_GIT_BINARY_PATCH_RE = re.compile(r"^GIT binary patch$")
_RENAME_FROM_RE = re.compile(r"^rename from (.+)$")
_RENAME_TO_RE = re.compile(r"^rename to (.+)$")
_COPY_FROM_RE = re.compile(r"^copy from (.+)$")
_COPY_TO_RE = re.compile(r"^copy to (.+)$")
_NO_NEWLINE_RE = re.compile(r"^\\ No newline at end of file$")
_FILE_HEADER_OLD = re.compile(r"^--- (.+)$")
_FILE_HEADER_NEW = re.compile(r"^\+\+\+ (.+)$")
_SIMILARITY_RE = re.compile(r"^(?:dis)?similarity index \d+%$")
_OLD_MODE_RE = re.compile(r"^old mode \d+$")
_NEW_MODE_RE = re.compile(r"^new mode \d+$")
_DELETED_FILE_RE = re.compile(r"^deleted file mode \d+$")
_NEW_FILE_RE = re.compile(r"^new file mode \d+$")
_INDEX_RE = re.compile(r"^index [0-9a-f]+\.\.[0-9a-f]+")

_DEV_NULL = "/dev/null"


def normalise_path(raw: str) -> str:
    """Repo-relative, forward-slash path without quotes or a leading ``./``."""
    path = raw.split("\t", 1)[0].strip()
    if len(path) >= 2 and path[0] == '"' and path[-1] == '"':
        path = path[1:-1]
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def _header_path(raw: str) -> Optional[str]:
    """Path from a ``---``/``+++`` header, or None for /dev/null."""
    value = raw.split("\t", 1)[0].strip().strip('"')
    if value == _DEV_NULL:
        return None
    if value.startswith(("a/", "b/")):
        value = value[2:]
    return normalise_path(value)


class DiffParser:
    """Parse unified diff text into a DiffDocument.

    Usage::

        document = DiffParser(diff_text).parse()
        for change in document:
            print(change.path, change.additions, change.deletions)
    """

    def __init__(self, diff_text: str) -> None:
        self._lines = diff_text.splitlines()

    def parse(self) -> DiffDocument:
        return DiffDocument(files=list(self.iter_files()))

    def iter_files(self) -> Generator[FileChange, None, None]:
        """Yield one FileChange per file section, in diff order."""
        if any(line.startswith("diff --git ") for line in self._lines):
            yield from self._parse_git()
        else:
            yield from self._parse_plain()

    # ---- git-style diffs ----

    def _parse_git(self) -> Generator[FileChange, None, None]:
        idx = 0
        total = len(self._lines)
        current: Optional[FileChange] = None
        in_hunk = False

        while idx < total:
            raw_line = self._lines[idx]

            # --- diff --git header → new file context ---
            if raw_line.startswith("diff --git "):
                if current is not None:
                    yield current
                current = None
                in_hunk = False

                m = _DIFF_HEADER_QUOTED_RE.match(raw_line) or _DIFF_HEADER_RE.match(raw_line)
                if m is None:
                    logger.warning(
                        "Skipping malformed diff header at line %d: %r", idx + 1, raw_line[:120]
                    )
                    idx += 1
                    continue

                current = FileChange(path=normalise_path(m.group(2)))
                idx = self._parse_extended_headers(idx + 1, current)
                continue

            # Preamble text, or the body of a skipped file
            if current is None:
                idx += 1
                continue

            # --- File headers (--- a/ and +++ b/) before the first hunk ---
            if not in_hunk:
                if _FILE_HEADER_OLD.match(raw_line):
                    idx += 1
                    continue
                nm = _FILE_HEADER_NEW.match(raw_line)
                if nm:
                    new_path = _header_path(nm.group(1))
                    if new_path:
                        current.path = new_path
                    idx += 1
                    continue

            # --- Hunk header ---
            if _HUNK_HEADER_RE.match(raw_line):
                in_hunk = True
                idx += 1
                continue

            if in_hunk:
                _append_content(current, raw_line)
            idx += 1

        if current is not None:
            yield current

    def _parse_extended_headers(self, idx: int, change: FileChange) -> int:
        """Consume git extended header lines; return index of the next line."""
        total = len(self._lines)
        while idx < total:
            sub = self._lines[idx]
            if _INDEX_RE.match(sub) or _SIMILARITY_RE.match(sub):
                idx += 1
                continue
            if _OLD_MODE_RE.match(sub) or _NEW_MODE_RE.match(sub):
                change.mode_changed = True
                idx += 1
                continue
            if _DELETED_FILE_RE.match(sub):
                change.kind = ChangeKind.DELETED
                idx += 1
                continue
            if _NEW_FILE_RE.match(sub):
                change.kind = ChangeKind.ADDED
                idx += 1
                continue
            if (rm := _RENAME_FROM_RE.match(sub)):
                change.old_path = normalise_path(rm.group(1))
                change.kind = ChangeKind.RENAMED
                idx += 1
                continue
            if (rt := _RENAME_TO_RE.match(sub)):
                change.path = normalise_path(rt.group(1))
                idx += 1
                continue
            if (cf := _COPY_FROM_RE.match(sub)):
                change.old_path = normalise_path(cf.group(1))
                change.kind = ChangeKind.ADDED
                idx += 1
                continue
            if (ct := _COPY_TO_RE.match(sub)):
                change.path = normalise_path(ct.group(1))
                idx += 1
                continue
            if _BINARY_RE.match(sub) or _GIT_BINARY_PATCH_RE.match(sub):
                change.binary = True
                idx += 1
                continue
            break  # not a sub-header → stop
        return idx

    # ---- plain unified diffs (no git headers) ----

    def _parse_plain(self) -> Generator[FileChange, None, None]:
        idx = 0
        total = len(self._lines)
        current: Optional[FileChange] = None
        in_hunk = False

        while idx < total:
            raw_line = self._lines[idx]

            if self._is_plain_header(idx):
                if current is not None:
                    yield current
                old_path = _header_path(raw_line[4:])
                new_path = _header_path(self._lines[idx + 1][4:])
                if old_path is None and new_path is None:
                    logger.warning("Skipping diff header with no path at line %d", idx + 1)
                    current = None
                else:
                    current = FileChange(path=new_path or old_path or "")
                    if old_path is None:
                        current.kind = ChangeKind.ADDED
                    elif new_path is None:
                        current.kind = ChangeKind.DELETED
                    elif old_path != new_path:
                        current.kind = ChangeKind.RENAMED
                        current.old_path = old_path
                in_hunk = False
                idx += 2
                continue

            bm = _BINARY_RE.match(raw_line)
            if bm and not in_hunk:
                if current is not None:
                    yield current
                path = _header_path(bm.group(2)) or _header_path(bm.group(1)) or ""
                current = FileChange(path=path, binary=True)
                idx += 1
                continue

            if current is not None and _HUNK_HEADER_RE.match(raw_line):
                in_hunk = True
            elif current is not None and in_hunk:
                _append_content(current, raw_line)
            idx += 1

        if current is not None:
            yield current

    def _is_plain_header(self, idx: int) -> bool:
        lines = self._lines
        if not lines[idx].startswith("--- ") or idx + 1 >= len(lines):
            return False
        if not lines[idx + 1].startswith("+++ "):
            return False
        return idx + 2 >= len(lines) or lines[idx + 2].startswith("@@")


def _append_content(change: FileChange, raw_line: str) -> None:
    """Record one hunk body line on *change*."""
    if _NO_NEWLINE_RE.match(raw_line):
        return
    if raw_line.startswith("+"):
        change.lines.append(HunkLine(LineMarker.ADD, raw_line[1:]))
    elif raw_line.startswith("-"):
        change.lines.append(HunkLine(LineMarker.DELETE, raw_line[1:]))
    elif raw_line.startswith(" ") or raw_line == "":
        change.lines.append(HunkLine(LineMarker.CONTEXT, raw_line[1:]))
    # Anything else is outside the hunk grammar; ignore it


def parse_diff(diff_text: str) -> DiffDocument:
    """Shorthand for ``DiffParser(diff_text).parse()``."""
    return DiffParser(diff_text).parse()

