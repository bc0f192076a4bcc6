"""Git interface layer: subprocess adapter and diff parsing."""

from aibump.git.adapter import GitError, GitRepo, get_repo_root, parse_status
from aibump.git.diff_parser import DiffParser, parse_diff
from aibump.git.models import (
    ChangeKind,
    DiffDocument,
    FileChange,
    HunkLine,
    LineMarker,
    WorkingTreeStatus,
)

__all__ = [
    "ChangeKind",
    "DiffDocument",
    "DiffParser",
    "FileChange",
    "GitError",
    "GitRepo",
    "HunkLine",
    "LineMarker",
    "WorkingTreeStatus",
    "get_repo_root",
    "parse_diff",
    "parse_status",
]
