"""Bump request, state and outcome types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from aibump.classify.aggregator import ChangeType
from aibump.classify.files import ClassifiedFile
from aibump.filters.truncator import TruncatedDiff
from aibump.manifests.semver import BumpKind


class BumpState(str, Enum):
    IDLE = "idle"
    CLASSIFYING = "classifying"
    NOOP = "noop"
    PENDING_BUMP = "pending_bump"
    MUTATING = "mutating"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BumpRequest:
    """What the operator asked for.

    ``kind`` skips the classifier entirely; ``commits`` analyses the last N
    commits instead of the working tree.
    """

    kind: Optional[BumpKind] = None
    commits: Optional[int] = None
    dry_run: bool = False
    commit: bool = False
    message: Optional[str] = None


@dataclass(frozen=True)
class ManifestChange:
    path: Path  # relative to the repository root
    field: str  # "version" or "appVersion"
    old: Optional[str]
    new: str


@dataclass
class BumpOutcome:
    state: BumpState = BumpState.IDLE
    history: List[BumpState] = field(default_factory=lambda: [BumpState.IDLE])
    change_type: Optional[ChangeType] = None
    bump_kind: Optional[BumpKind] = None
    kind_overridden: bool = False
    dry_run: bool = False
    raw_diff: str = ""  # unfiltered; what the operator sees
    filtered_diff: str = ""
    classified: List[ClassifiedFile] = field(default_factory=list)
    excluded_paths: List[str] = field(default_factory=list)
    truncation: Optional[TruncatedDiff] = None
    planned: List[ManifestChange] = field(default_factory=list)
    written: List[ManifestChange] = field(default_factory=list)
    lockfile_refreshed: bool = False
    commit_sha: Optional[str] = None
    commit_message: Optional[str] = None
    commit_error: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.state == BumpState.FAILED

    @property
    def changed(self) -> bool:
        return bool(self.written)

    @property
    def written_paths(self) -> List[Path]:
        """Distinct manifest paths written, in write order."""
        return list(dict.fromkeys(change.path for change in self.written))
