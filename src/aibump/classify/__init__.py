"""File classification and change-type aggregation."""

from aibump.classify.aggregator import (
    AggregationPolicy,
    ChangeSummary,
    ChangeType,
    aggregate,
    summarize,
)
from aibump.classify.exclusions import (
    DEFAULT_EXCLUSIONS,
    ExclusionRule,
    ExclusionSet,
    build_exclusions,
)
from aibump.classify.files import Category, ClassifiedFile, FileClassifier, WorkspaceFacts

__all__ = [
    "AggregationPolicy",
    "Category",
    "ChangeSummary",
    "ChangeType",
    "ClassifiedFile",
    "DEFAULT_EXCLUSIONS",
    "ExclusionRule",
    "ExclusionSet",
    "FileClassifier",
    "WorkspaceFacts",
    "aggregate",
    "build_exclusions",
    "summarize",
]
