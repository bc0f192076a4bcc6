"""Git subprocess wrapper for status, diffs, staging and commits."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from aibump.git.models import WorkingTreeStatus

logger = logging.getLogger(__name__)

# Hash of the empty tree; lets an unborn branch diff against "nothing".
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


def _run_git(args: list[str], cwd: Path, timeout: int = 30, *, allow_exit_1: bool = False) -> str:
    """Run a git command and return stdout. Raises GitError on failure."""
    try:
        result = subprocess.run(
            ["git", "-c", "core.quotepath=off", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode == 0 or (allow_exit_1 and result.returncode == 1):
        return result.stdout
    stderr = result.stderr.strip() or result.stdout.strip()
    raise GitError(f"git {' '.join(args)} failed: {stderr}")


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def parse_status(output: str) -> WorkingTreeStatus:
    """Parse ``git status --porcelain=v1`` output."""
    status = WorkingTreeStatus()
    for line in output.splitlines():
        if len(line) < 4:
            continue
        code, path = line[:2], line[3:]
        if code == "??":
            status.untracked.append(_unquote(path))
        elif "R" in code:
            old, _, new = path.partition(" -> ")
            status.renamed.append((_unquote(old), _unquote(new)))
        elif "D" in code:
            status.deleted.append(_unquote(path))
        elif "A" in code:
            status.added.append(_unquote(path))
        elif code.strip():
            # M, T, U, C and anything else with content changes
            status.modified.append(_unquote(path))
    return status


def _unquote(path: str) -> str:
    path = path.strip()
    if len(path) >= 2 and path[0] == '"' and path[-1] == '"':
        return path[1:-1]
    return path


class GitRepo:
    """The version-control operations the bump engine needs, bound to one root."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _git(self, *args: str, allow_exit_1: bool = False) -> str:
        return _run_git(list(args), cwd=self.root, allow_exit_1=allow_exit_1)

    # ---- queries ----

    def ensure_repository(self) -> None:
        """Fail fast if root isn't inside a git work tree."""
        out = self._git("rev-parse", "--is-inside-work-tree")
        if out.strip() != "true":
            raise GitError(f"Not a git work tree: {self.root}")

    def has_head(self) -> bool:
        try:
            self._git("rev-parse", "--verify", "--quiet", "HEAD")
        except GitError:
            return False
        return True

    def status(self) -> WorkingTreeStatus:
        return parse_status(self._git("status", "--porcelain=v1", "--untracked-files=all"))

    def changed_paths_in_range(self, commits: int) -> List[str]:
        """Paths touched by the last *commits* commits (``HEAD~N..HEAD``)."""
        out = self._git("diff", "--name-only", "--no-color", f"HEAD~{commits}..HEAD")
        return [line.strip() for line in out.splitlines() if line.strip()]

    # ---- diffs ----

    def diff(self, paths: Sequence[str]) -> str:
        """Working tree (staged + unstaged) against HEAD for *paths*."""
        if not paths:
            return ""
        base = "HEAD" if self.has_head() else EMPTY_TREE
        return self._git("diff", "--no-color", "--no-ext-diff", base, "--", *paths)

    def diff_untracked(self, paths: Sequence[str]) -> str:
        """New-file diffs for untracked *paths*."""
        chunks = []
        for path in paths:
            # --no-index exits 1 when the files differ
            chunks.append(
                self._git("diff", "--no-color", "--no-index", "--", "/dev/null", path, allow_exit_1=True)
            )
        return "".join(chunks)

    def diff_range(self, commits: int, paths: Sequence[str]) -> str:
        """Diff of ``HEAD~N..HEAD`` restricted to *paths*."""
        if not paths:
            return ""
        return self._git("diff", "--no-color", "--no-ext-diff", f"HEAD~{commits}..HEAD", "--", *paths)

    # ---- writes ----

    def stage(self, paths: Sequence[str]) -> None:
        if paths:
            self._git("add", "--all", "--", *paths)

    def commit(self, message: str) -> str:
        """Create a commit from the index; return the new HEAD sha."""
        self._git("commit", "--no-verify", "-m", message)
        sha = self._git("rev-parse", "HEAD").strip()
        logger.info("Created commit %s", sha[:12])
        return sha
