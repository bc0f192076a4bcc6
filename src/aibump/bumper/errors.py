"""Bump failure taxonomy.

Collaborators raise their own exceptions (``GitError``, ``ConfigError``,
``ManifestError``, ``VersionFormatError``); the engine re-raises them as one
of these with the original chained.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence


class AibumpError(Exception):
    """Base class for every bump failure."""


class PreconditionError(AibumpError):
    """Not a repository, no manifest, malformed manifest, or no API key."""


class ClassificationError(AibumpError):
    """The classifier could not produce a usable answer."""

    def __init__(self, message: str, raw_response: Optional[str] = None) -> None:
        if raw_response is not None:
            message = f"{message} (last response: {raw_response!r})"
        super().__init__(message)
        self.raw_response = raw_response


class MutationError(AibumpError):
    """A manifest could not be rewritten. Earlier writes are not rolled back."""

    def __init__(
        self,
        message: str,
        path: Path,
        attempted: Optional[str] = None,
        written: Sequence[Path] = (),
    ) -> None:
        detail = f"{path}: {message}"
        if attempted is not None:
            detail += f" (attempted version {attempted})"
        if written:
            detail += f"; already written: {', '.join(str(p) for p in written)}"
        super().__init__(detail)
        self.path = path
        self.attempted = attempted
        self.written: List[Path] = list(written)


class CommitError(AibumpError):
    """Staging or committing the bump failed."""
