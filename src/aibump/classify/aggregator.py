"""Change-type aggregation as one decision table over classified files."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from aibump.classify.files import Category, ClassifiedFile


class ChangeType(str, Enum):
    NONE = "none"
    HELM_ONLY = "helm-only"
    APP_ONLY = "app-only"
    BOTH = "both"


@dataclass(frozen=True)
class AggregationPolicy:
    """How infra scripts weigh against other changes.

    With the defaults, script-only infra changes count as helm-only and
    scripts alongside app code count as both.
    """

    scripts_only_is_helm_only: bool = True
    scripts_join_app_changes: bool = True


@dataclass(frozen=True)
class ChangeSummary:
    infra_non_script: bool
    infra_script: bool
    app: bool
    change_type: ChangeType


def summarize(classified: Iterable[ClassifiedFile], policy: AggregationPolicy = AggregationPolicy()) -> ChangeSummary:
    """Reduce classified files to the three buckets and resolve the change type.

    Files with no remaining changes (for example, after version-noise
    filtering) and excluded files are ignored.
    """
    infra_non_script = infra_script = app = False
    counted = False
    for item in classified:
        if item.category == Category.EXCLUDED or not item.change.has_changes:
            continue
        counted = True
        if item.category == Category.INFRA_CONFIG:
            infra_non_script = True
        elif item.category == Category.INFRA_SCRIPT:
            infra_script = True
        elif item.category == Category.APP_CODE:
            app = True

    change_type = _decide(counted, infra_non_script, infra_script, app, policy)
    return ChangeSummary(infra_non_script, infra_script, app, change_type)


def _decide(
    counted: bool,
    infra_non_script: bool,
    infra_script: bool,
    app: bool,
    policy: AggregationPolicy,
) -> ChangeType:
    # First match wins.
    if not counted:
        return ChangeType.NONE
    if infra_script and not infra_non_script and not app:
        return ChangeType.HELM_ONLY if policy.scripts_only_is_helm_only else ChangeType.NONE
    if (infra_script or infra_non_script) and app:
        if not infra_non_script and not policy.scripts_join_app_changes:
            return ChangeType.APP_ONLY
        return ChangeType.BOTH
    if infra_script or infra_non_script:
        return ChangeType.HELM_ONLY
    if app:
        return ChangeType.APP_ONLY
    return ChangeType.NONE


def aggregate(classified: Iterable[ClassifiedFile], policy: AggregationPolicy = AggregationPolicy()) -> ChangeType:
    return summarize(classified, policy).change_type
