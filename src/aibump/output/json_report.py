"""JSON reporter for CI pipelines."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from aibump import __version__
from aibump.bumper.models import BumpOutcome, ManifestChange


def _change(change: ManifestChange) -> Dict[str, Any]:
    return {
        "path": change.path.as_posix(),
        "field": change.field,
        "old": change.old,
        "new": change.new,
    }


def to_dict(outcome: BumpOutcome, *, include_diff: bool = False) -> Dict[str, Any]:
    """Convert a BumpOutcome to a JSON-serialisable dict."""
    files: List[Dict[str, Any]] = []
    for item in outcome.classified:
        files.append({
            "path": item.path,
            "category": item.category.value,
            "kind": item.change.kind.value,
            "additions": item.change.additions,
            "deletions": item.change.deletions,
            **({"old_path": item.change.old_path} if item.change.old_path else {}),
            **({"binary": True} if item.change.binary else {}),
        })

    data: Dict[str, Any] = {
        "version": "1.0",
        "tool_version": __version__,
        "state": outcome.state.value,
        "history": [s.value for s in outcome.history],
        "dry_run": outcome.dry_run,
        "change_type": outcome.change_type.value if outcome.change_type else None,
        "bump_kind": outcome.bump_kind.value if outcome.bump_kind else None,
        "kind_overridden": outcome.kind_overridden,
        "files": files,
        "excluded_paths": outcome.excluded_paths,
        "planned": [_change(c) for c in outcome.planned],
        "written": [_change(c) for c in outcome.written],
        "lockfile_refreshed": outcome.lockfile_refreshed,
        "commit": outcome.commit_sha,
        "commit_error": outcome.commit_error,
        "error": str(outcome.error) if outcome.error else None,
    }
    if outcome.truncation is not None:
        t = outcome.truncation
        data["truncation"] = {
            "truncated": t.truncated,
            "original_tokens": t.original_tokens,
            "tokens": t.tokens,
            "partial_file": t.partial_file,
            "dropped_files": t.dropped_files,
        }
    if include_diff:
        data["diff"] = outcome.raw_diff
    return data


def render(outcome: BumpOutcome, *, include_diff: bool = False) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(outcome, include_diff=include_diff), indent=2)
