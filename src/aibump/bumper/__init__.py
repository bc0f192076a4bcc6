"""Bump orchestration: request/outcome types and the failure taxonomy.

The engine itself lives in ``aibump.bumper.engine``.
"""

from aibump.bumper.errors import (
    AibumpError,
    ClassificationError,
    CommitError,
    MutationError,
    PreconditionError,
)
from aibump.bumper.models import BumpOutcome, BumpRequest, BumpState, ManifestChange

__all__ = [
    "AibumpError",
    "BumpOutcome",
    "BumpRequest",
    "BumpState",
    "ClassificationError",
    "CommitError",
    "ManifestChange",
    "MutationError",
    "PreconditionError",
]
