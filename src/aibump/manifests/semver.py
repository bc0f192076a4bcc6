"""Three-component version parsing and bumping."""

from __future__ import annotations

import re
from enum import Enum
from typing import NamedTuple

_VERSION_RE = re.compile(r"^([0-9]+)\.([0-9]+)\.([0-9]+)$")


class VersionFormatError(ValueError):
    """Raised when a version string is not strictly ``N.N.N``."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid version format: {value!r} (expected MAJOR.MINOR.PATCH)")
        self.value = value


class BumpKind(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    @classmethod
    def parse(cls, value: str) -> "BumpKind":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown bump kind {value!r}; expected major, minor or patch") from None


class VersionTriple(NamedTuple):
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, value: object) -> "VersionTriple":
        if not isinstance(value, str):
            raise VersionFormatError(value)
        m = _VERSION_RE.match(value.strip())
        if m is None:
            raise VersionFormatError(value)
        return cls(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    def bump(self, kind: BumpKind) -> "VersionTriple":
        if kind == BumpKind.MAJOR:
            return VersionTriple(self.major + 1, 0, 0)
        if kind == BumpKind.MINOR:
            return VersionTriple(self.major, self.minor + 1, 0)
        return VersionTriple(self.major, self.minor, self.patch + 1)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def bump_version(version: str, kind: BumpKind) -> str:
    """``bump_version("1.2.3", BumpKind.MINOR) == "1.3.0"``."""
    return str(VersionTriple.parse(version).bump(kind))
