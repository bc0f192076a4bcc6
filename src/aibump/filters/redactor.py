"""Large-file redaction for diffs shown to the summary writer."""

from __future__ import annotations

from typing import Optional

from aibump.classify.exclusions import ExclusionSet
from aibump.filters.truncator import split_segments


def redact_body(additions: int, deletions: int) -> str:
    """Placeholder that replaces a redacted file body.

    Example: ``[content redacted: +1200 -30 lines]``
    """
    return f"[content redacted: +{additions} -{deletions} lines]\n"


def redact_large_files(
    diff_text: str,
    max_lines: int = 300,
    exclusions: Optional[ExclusionSet] = None,
) -> str:
    """Replace the body of oversized or excluded files with a placeholder.

    File headers are kept so the reader still sees which files changed.
    """
    parts = []
    for segment in split_segments(diff_text):
        excluded = bool(segment.path) and exclusions is not None and exclusions.matches(segment.path)
        if segment.content and (excluded or len(segment.content) > max_lines):
            parts.append("".join(segment.header))
            parts.append(redact_body(segment.additions, segment.deletions))
        else:
            parts.append(segment.text)
    return "".join(parts)
