"""Exclusion rules: paths that carry no semantic signal for versioning.

A rule containing ``*`` is a glob matched against both the full path and the
basename; any other rule is a literal substring. Rules are data: the default
set below can be extended or replaced from config without touching the
classifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from posixpath import basename
from typing import Iterable, List, Tuple

DEFAULT_EXCLUSIONS: List[str] = [
    # lock files
    "package-lock.json",
    "npm-shrinkwrap.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "poetry.lock",
    "Pipfile.lock",
    "Cargo.lock",
    "Gemfile.lock",
    "composer.lock",
    "go.sum",
    # dependency and VCS directories
    "node_modules/",
    "vendor/",
    ".git/",
    # build and coverage output
    "dist/",
    "build/",
    "coverage/",
    ".nyc_output/",
    "__pycache__/",
    "*.log",
    # minified and generated assets
    "*.min.js",
    "*.min.css",
    "*.map",
    # binaries
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.gif",
    "*.ico",
    "*.woff",
    "*.woff2",
    "*.ttf",
    "*.zip",
    "*.tgz",
    "*.gz",
    "*.jar",
]


@dataclass(frozen=True)
class ExclusionRule:
    pattern: str

    @property
    def is_glob(self) -> bool:
        return "*" in self.pattern

    def matches(self, path: str) -> bool:
        if self.is_glob:
            return fnmatchcase(path, self.pattern) or fnmatchcase(basename(path), self.pattern)
        return self.pattern in path


class ExclusionSet:
    """Ordered, de-duplicated set of ExclusionRule."""

    def __init__(self, rules: Iterable[ExclusionRule] = ()) -> None:
        self._rules: List[ExclusionRule] = []
        self.extend(rules)

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> "ExclusionSet":
        return cls(ExclusionRule(p) for p in patterns if p)

    @classmethod
    def default(cls) -> "ExclusionSet":
        return cls.from_patterns(DEFAULT_EXCLUSIONS)

    def extend(self, rules: Iterable[ExclusionRule]) -> None:
        for rule in rules:
            if rule not in self._rules:
                self._rules.append(rule)

    @property
    def rules(self) -> List[ExclusionRule]:
        return list(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def match(self, path: str) -> ExclusionRule | None:
        """Return the first rule matching *path*, or None."""
        for rule in self._rules:
            if rule.matches(path):
                return rule
        return None

    def matches(self, path: str) -> bool:
        return self.match(path) is not None

    def partition(self, paths: Iterable[str]) -> Tuple[List[str], List[str]]:
        """Split *paths* into (relevant, excluded), preserving order."""
        relevant: List[str] = []
        excluded: List[str] = []
        for path in paths:
            (excluded if self.matches(path) else relevant).append(path)
        return relevant, excluded


def build_exclusions(extra: Iterable[str] = (), use_defaults: bool = True) -> ExclusionSet:
    """Default rules (optionally) followed by *extra* rules from config."""
    exclusions = ExclusionSet.default() if use_defaults else ExclusionSet()
    exclusions.extend(ExclusionRule(p) for p in extra if p)
    return exclusions
