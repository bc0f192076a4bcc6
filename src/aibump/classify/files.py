"""Per-file classification into excluded / infra script / infra config / app code.

The classifier is a pure function of a path and a WorkspaceFacts value; it
never looks at the filesystem. The engine probes the workspace once and
passes the facts in.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from posixpath import splitext
from typing import Iterable, List

from aibump.classify.exclusions import ExclusionSet, build_exclusions
from aibump.config.schema import DEFAULT_SCRIPT_EXTENSIONS, AibumpConfig
from aibump.git.models import DiffDocument, FileChange


class Category(str, Enum):
    EXCLUDED = "excluded"
    INFRA_SCRIPT = "infra_script"
    INFRA_CONFIG = "infra_config"
    APP_CODE = "app_code"


@dataclass(frozen=True)
class WorkspaceFacts:
    """What the workspace holds, as far as classification cares."""

    has_app_manifest: bool
    has_chart_manifest: bool

    @classmethod
    def probe(cls, root: Path, config: AibumpConfig) -> "WorkspaceFacts":
        return cls(
            has_app_manifest=(root / config.manifests.application).is_file(),
            has_chart_manifest=(root / config.manifests.chart).is_file(),
        )


@dataclass(frozen=True)
class ClassifiedFile:
    change: FileChange
    category: Category

    @property
    def path(self) -> str:
        return self.change.path


def _clean(path: str) -> str:
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


class FileClassifier:
    """Assign a Category to repo-relative paths."""

    def __init__(
        self,
        exclusions: ExclusionSet,
        *,
        infra_root: str = "helm/",
        chart_manifest: str = "helm/Chart.yaml",
        script_extensions: Iterable[str] = DEFAULT_SCRIPT_EXTENSIONS,
        script_dirs: Iterable[str] = ("scripts", "hooks"),
    ) -> None:
        self.exclusions = exclusions
        self.infra_root = _clean(infra_root).rstrip("/") + "/"
        self.chart_manifest = _clean(chart_manifest)
        self.script_extensions = frozenset(
            e.lower() if e.startswith(".") else f".{e.lower()}" for e in script_extensions
        )
        self.script_dirs = frozenset(script_dirs)

    @classmethod
    def from_config(cls, config: AibumpConfig) -> "FileClassifier":
        c = config.classify
        return cls(
            build_exclusions(c.exclude, use_defaults=c.use_default_exclusions),
            infra_root=c.infra_root,
            chart_manifest=config.manifests.chart,
            script_extensions=c.script_extensions,
            script_dirs=c.script_dirs,
        )

    def classify(self, path: str, facts: WorkspaceFacts) -> Category:
        path = _clean(path)

        if self.exclusions.matches(path):
            return Category.EXCLUDED

        # The chart manifest is where this tool writes versions; its own
        # edits are never evidence of a change.
        if self._references_chart(path):
            return Category.EXCLUDED

        if path.startswith(self.infra_root):
            return Category.INFRA_SCRIPT if self._is_script(path) else Category.INFRA_CONFIG

        return Category.APP_CODE if facts.has_app_manifest else Category.INFRA_CONFIG

    def _references_chart(self, path: str) -> bool:
        return path == self.chart_manifest or path.endswith("/" + self.chart_manifest)

    def _is_script(self, path: str) -> bool:
        if splitext(path)[1].lower() in self.script_extensions:
            return True
        below_root = path[len(self.infra_root):].split("/")[:-1]
        return any(segment in self.script_dirs for segment in below_root)

    def classify_document(self, document: DiffDocument, facts: WorkspaceFacts) -> List[ClassifiedFile]:
        return [ClassifiedFile(change, self.classify(change.path, facts)) for change in document]
