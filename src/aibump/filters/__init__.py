"""Diff normalisation applied before classification."""

from aibump.filters.noise import filter_version_noise, is_version_mutation
from aibump.filters.redactor import redact_large_files
from aibump.filters.truncator import TruncatedDiff, estimate_tokens, truncate_diff

__all__ = [
    "TruncatedDiff",
    "estimate_tokens",
    "filter_version_noise",
    "is_version_mutation",
    "redact_large_files",
    "truncate_diff",
]
