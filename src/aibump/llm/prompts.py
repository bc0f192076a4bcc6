"""Prompt templates for bump classification and release commit summaries."""

from __future__ import annotations

from aibump.classify.aggregator import ChangeType

_SCOPE_HINTS = {
    ChangeType.HELM_ONLY: "Only deployment/infrastructure files changed; the version being bumped is the chart version.",
    ChangeType.APP_ONLY: "Only application code changed; the version being bumped is the application version.",
    ChangeType.BOTH: "Both application code and deployment/infrastructure files changed.",
}

_CLASSIFY_TEMPLATE = """\
Analyze the following git diff and determine what type of version bump is appropriate according to semantic versioning (semver):

MAJOR: Breaking changes (incompatible API changes)
MINOR: New features (backwards compatible)
PATCH: Bug fixes (backwards compatible)

{scope}{truncation}
Git diff:
{diff}

Respond with only one word: "major", "minor", or "patch"."""

_TRUNCATION_NOTE = """
The diff was truncated to fit the context window. Files listed as omitted at the end
still changed; weigh their names and line counts too.
"""

_SUMMARY_TEMPLATE = """\
Write a git commit message for a release commit that bumps the version from {old} to {new}.

Format:
- First line: chore(release): bump version to {new}
- Blank line
- 2-5 bullets, each starting with "- ", naming the notable changes in the diff

Rules:
- Use imperative mood
- No markdown headers, no code fences, no preamble
- Files marked as redacted or omitted still changed; mention them only by name

Git diff:
{diff}"""


def build_classification_prompt(diff: str, change_type: ChangeType, truncated: bool = False) -> str:
    scope = _SCOPE_HINTS.get(change_type, "")
    return _CLASSIFY_TEMPLATE.format(
        scope=f"Context: {scope}\n" if scope else "",
        truncation=_TRUNCATION_NOTE if truncated else "",
        diff=diff,
    )


def build_summary_prompt(diff: str, old: str, new: str) -> str:
    return _SUMMARY_TEMPLATE.format(old=old, new=new, diff=diff)
