"""Content-aware truncation of diff text to a token budget.

Whole file sections are kept in diff order while they fit. The first file
that overflows keeps its header and as many content lines as still fit,
followed by a summary line with its true +/- counts. Every later file is
dropped. The result always satisfies
``estimate_tokens(result.text) <= budget``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_CHARS_PER_TOKEN = 4

_DIFF_HEADER_RE = re.compile(r'^diff --git "?a/.*? "?b/(.*?)"?$')


def estimate_tokens(text: str, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN) -> int:
    """Rough token count: characters divided by a fixed ratio, rounded up."""
    if not text:
        return 0
    return math.ceil(len(text) / max(1, int(chars_per_token)))


@dataclass
class TruncatedDiff:
    """Truncation result plus a record of what was cut."""

    text: str
    truncated: bool = False
    original_tokens: int = 0
    tokens: int = 0
    included_files: List[str] = field(default_factory=list)
    partial_file: Optional[str] = None
    dropped_files: List[str] = field(default_factory=list)


@dataclass
class _Segment:
    path: str
    header: List[str] = field(default_factory=list)
    content: List[str] = field(default_factory=list)

    @property
    def additions(self) -> int:
        return sum(1 for line in self.content if line.startswith("+"))

    @property
    def deletions(self) -> int:
        return sum(1 for line in self.content if line.startswith("-"))

    @property
    def text(self) -> str:
        return "".join(self.header) + "".join(self.content)


def _with_newline(line: str) -> str:
    return line if line.endswith("\n") else line + "\n"


def split_segments(diff_text: str) -> List[_Segment]:
    """Split diff text into per-file segments of header and content lines.

    Text before the first ``diff --git`` line becomes its own segment. Within
    a segment, everything before the first ``@@`` line is header.
    """
    segments: List[_Segment] = []
    current: Optional[_Segment] = None
    in_content = False

    for line in diff_text.splitlines(keepends=True):
        if line.startswith("diff --git "):
            m = _DIFF_HEADER_RE.match(line.rstrip("\r\n"))
            path = m.group(1) if m else line[len("diff --git "):].strip()
            current = _Segment(path=path)
            segments.append(current)
            in_content = False
        elif current is None:
            current = _Segment(path="")
            segments.append(current)

        if not in_content and line.startswith("@@"):
            in_content = True
        (current.content if in_content else current.header).append(line)

    return segments


def _summary_line(segment: _Segment, dropped: int) -> str:
    name = segment.path or "diff"
    tail = f"; {dropped} later file(s) omitted" if dropped else ""
    return (
        f"... [truncated {name}: +{segment.additions} -{segment.deletions} lines total, "
        f"content cut to fit{tail}]\n"
    )


def truncate_diff(
    diff_text: str,
    token_budget: int,
    chars_per_token: int = DEFAULT_CHARS_PER_TOKEN,
) -> TruncatedDiff:
    """Reduce *diff_text* to at most *token_budget* estimated tokens."""
    cpt = max(1, int(chars_per_token))
    budget = max(0, int(token_budget))
    original = estimate_tokens(diff_text, cpt)
    segments = split_segments(diff_text)

    if original <= budget:
        return TruncatedDiff(
            text=diff_text,
            original_tokens=original,
            tokens=original,
            included_files=[s.path for s in segments if s.path],
        )

    limit = budget * cpt
    kept: List[str] = []
    used = 0
    result = TruncatedDiff(text="", truncated=True, original_tokens=original)

    for idx, segment in enumerate(segments):
        segment_text = segment.text
        if used + len(segment_text) <= limit:
            kept.append(segment_text)
            used += len(segment_text)
            if segment.path:
                result.included_files.append(segment.path)
            continue

        later = segments[idx + 1:]
        result.partial_file = segment.path or None
        result.dropped_files = [s.path for s in later if s.path]
        kept.append(_fit_partial(segment, len(later), limit - used))
        break

    result.text = "".join(kept)
    result.tokens = estimate_tokens(result.text, cpt)
    return result


def _fit_partial(segment: _Segment, dropped: int, room: int) -> str:
    """Header, a prefix of content, then the summary line, within *room* chars."""
    summary = _summary_line(segment, dropped)
    if len(summary) > room:
        return summary[:room]
    room -= len(summary)

    pieces: List[str] = []
    header_complete = True
    for line in segment.header:
        line = _with_newline(line)
        if len(line) > room:
            header_complete = False
            break
        pieces.append(line)
        room -= len(line)

    if header_complete:
        for line in segment.content:
            line = _with_newline(line)
            if len(line) > room:
                break
            pieces.append(line)
            room -= len(line)

    pieces.append(summary)
    return "".join(pieces)
