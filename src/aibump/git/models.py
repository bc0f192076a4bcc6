"""Data models for diff parsing and working-tree status."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple


class LineMarker(str, Enum):
    CONTEXT = "context"
    ADD = "add"
    DELETE = "delete"


class ChangeKind(str, Enum):
    MODIFIED = "modified"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class HunkLine:
    """A single content line from a hunk, without its leading marker."""

    marker: LineMarker
    text: str


@dataclass
class FileChange:
    """One file section of a unified diff."""

    path: str
    kind: ChangeKind = ChangeKind.MODIFIED
    old_path: Optional[str] = None  # set on renames
    lines: List[HunkLine] = field(default_factory=list)
    binary: bool = False
    mode_changed: bool = False

    @property
    def additions(self) -> int:
        return sum(1 for line in self.lines if line.marker == LineMarker.ADD)

    @property
    def deletions(self) -> int:
        return sum(1 for line in self.lines if line.marker == LineMarker.DELETE)

    @property
    def has_changes(self) -> bool:
        """True if this file carries a content, binary, or existence change.

        A mode-only change, or a file whose every add/delete line was
        stripped as version noise, does not count.
        """
        if self.additions or self.deletions or self.binary:
            return True
        return self.kind in (ChangeKind.ADDED, ChangeKind.DELETED, ChangeKind.RENAMED)


@dataclass
class DiffDocument:
    """Ordered sequence of FileChange, in diff-text order."""

    files: List[FileChange] = field(default_factory=list)

    def __iter__(self) -> Iterator[FileChange]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    @property
    def is_empty(self) -> bool:
        return not any(f.has_changes for f in self.files)


@dataclass
class WorkingTreeStatus:
    """``git status`` partitioned by change kind."""

    modified: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    renamed: List[Tuple[str, str]] = field(default_factory=list)  # (old, new)
    untracked: List[str] = field(default_factory=list)

    def changed_paths(self, include_untracked: bool = False) -> List[str]:
        """Tracked changes in status order; renames contribute their new path."""
        paths = [*self.modified, *self.added, *self.deleted]
        paths.extend(new for _old, new in self.renamed)
        if include_untracked:
            paths.extend(self.untracked)
        return list(dict.fromkeys(paths))
