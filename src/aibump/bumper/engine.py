"""Bump engine: orchestrates the full pipeline.

Idle -> Classifying -> NoOp | PendingBump -> Mutating -> Committing -> Done,
with any AibumpError landing in Failed. Manifests are read fresh right
before they are written; the chart ``appVersion`` is only ever mirrored from
an application version this run just wrote.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from aibump.bumper.errors import (
    AibumpError,
    ClassificationError,
    CommitError,
    MutationError,
    PreconditionError,
)
from aibump.bumper.models import BumpOutcome, BumpRequest, BumpState, ManifestChange
from aibump.classify.aggregator import AggregationPolicy, ChangeType, aggregate
from aibump.classify.files import FileClassifier, WorkspaceFacts
from aibump.config.schema import AibumpConfig
from aibump.filters.noise import filter_version_noise
from aibump.filters.redactor import redact_large_files
from aibump.filters.truncator import truncate_diff
from aibump.git.adapter import GitError, GitRepo
from aibump.git.diff_parser import parse_diff
from aibump.llm.client import AnthropicClassifier, TextClassifier
from aibump.llm.credentials import resolve_api_key
from aibump.llm.prompts import build_classification_prompt, build_summary_prompt
from aibump.manifests.documents import (
    ManifestDocument,
    ManifestError,
    ManifestKind,
    load_manifest,
    save_manifest,
)
from aibump.manifests.lockfile import refresh_lockfile
from aibump.manifests.semver import BumpKind, VersionFormatError, VersionTriple, bump_version

logger = logging.getLogger(__name__)

ClassifierFactory = Callable[[str], TextClassifier]

FALLBACK_COMMIT_MESSAGE = "chore(release): bump version to {version}"


class BumpEngine:
    """Decides and applies one version bump for the workspace at *root*."""

    def __init__(
        self,
        root: Path,
        config: AibumpConfig,
        repo: Optional[GitRepo] = None,
        classifier: Optional[TextClassifier] = None,
        classifier_factory: Optional[ClassifierFactory] = None,
        *,
        api_key: Optional[str] = None,
    ) -> None:
        self.root = root
        self.config = config
        self.repo = repo if repo is not None else GitRepo(root)
        self.file_classifier = FileClassifier.from_config(config)
        self.policy = AggregationPolicy(
            scripts_only_is_helm_only=config.classify.scripts_only_is_helm_only,
            scripts_join_app_changes=config.classify.scripts_join_app_changes,
        )
        self._classifier = classifier
        self._classifier_factory = classifier_factory or self._default_factory
        self._api_key = api_key
        self._app_rel = Path(config.manifests.application)
        self._chart_rel = Path(config.manifests.chart)
        self._lock_rel = Path(config.manifests.lockfile)
        self._relevant_paths: List[str] = []

    # ---- public API ----

    def run(self, request: BumpRequest) -> BumpOutcome:
        """Run the whole pipeline. Failures are returned in the outcome, not raised."""
        outcome = BumpOutcome(dry_run=request.dry_run)
        try:
            facts = self._prepare(request, outcome)
            self._enter(outcome, BumpState.CLASSIFYING)
            self._classify_locally(outcome, facts)
            if outcome.change_type == ChangeType.NONE:
                logger.info("No relevant changes found; nothing to version")
                self._enter(outcome, BumpState.NOOP)
                return outcome

            kind = self._decide_kind(request, outcome)
            outcome.bump_kind = kind

            self._enter(outcome, BumpState.PENDING_BUMP)
            outcome.planned = self._plan(outcome.change_type, kind, facts)
            if request.dry_run:
                logger.info("Dry run: %d manifest change(s) planned, nothing written", len(outcome.planned))
                return outcome

            self._enter(outcome, BumpState.MUTATING)
            self._mutate(outcome, kind)

            if request.commit or self.config.commit.enabled:
                self._enter(outcome, BumpState.COMMITTING)
                self._commit(request, outcome)

            self._enter(outcome, BumpState.DONE)
        except AibumpError as exc:
            logger.debug("Bump failed in state %s: %s", outcome.state.value, exc)
            outcome.error = exc
            self._enter(outcome, BumpState.FAILED)
        return outcome

    def inspect(self, commits: Optional[int] = None) -> BumpOutcome:
        """Collect and classify changes without asking the model or writing anything."""
        outcome = BumpOutcome(dry_run=True)
        try:
            facts = self._prepare(BumpRequest(commits=commits, dry_run=True), outcome)
            self._enter(outcome, BumpState.CLASSIFYING)
            self._classify_locally(outcome, facts)
            if outcome.change_type == ChangeType.NONE:
                self._enter(outcome, BumpState.NOOP)
        except AibumpError as exc:
            outcome.error = exc
            self._enter(outcome, BumpState.FAILED)
        return outcome

    # ---- states ----

    def _enter(self, outcome: BumpOutcome, state: BumpState) -> None:
        logger.debug("State %s -> %s", outcome.state.value, state.value)
        outcome.state = state
        outcome.history.append(state)

    def _prepare(self, request: BumpRequest, outcome: BumpOutcome) -> WorkspaceFacts:
        """Idle: check preconditions, then collect the relevant diff."""
        try:
            self.repo.ensure_repository()
        except GitError as exc:
            raise PreconditionError(f"Not in a git repository: {exc}") from exc

        facts = WorkspaceFacts.probe(self.root, self.config)
        if not (facts.has_app_manifest or facts.has_chart_manifest):
            raise PreconditionError(
                f"Neither {self._app_rel} nor {self._chart_rel} found in {self.root}. "
                "Run this command from a project with a versioned manifest."
            )
        if facts.has_app_manifest:
            self._validate_manifest(self._app_rel, ManifestKind.APPLICATION)
        if facts.has_chart_manifest:
            self._validate_manifest(self._chart_rel, ManifestKind.CHART)

        if request.commits is not None and request.commits < 1:
            raise PreconditionError(f"--commits must be at least 1, got {request.commits}")

        try:
            tracked, untracked = self._changed_paths(request)
            exclusions = self.file_classifier.exclusions
            relevant, excluded = exclusions.partition(tracked + untracked)
            if excluded:
                logger.info("Excluding %s from analysis", ", ".join(excluded))
            outcome.excluded_paths = excluded
            self._relevant_paths = relevant

            untracked_set = set(untracked)
            relevant_tracked = [p for p in relevant if p not in untracked_set]
            relevant_untracked = [p for p in relevant if p in untracked_set]
            if request.commits is not None:
                raw = self.repo.diff_range(request.commits, relevant_tracked)
            else:
                raw = self.repo.diff(relevant_tracked)
            if relevant_untracked:
                raw += self.repo.diff_untracked(relevant_untracked)
        except GitError as exc:
            raise PreconditionError(f"Failed to get git diff: {exc}") from exc

        outcome.raw_diff = raw
        return facts

    def _changed_paths(self, request: BumpRequest) -> Tuple[List[str], List[str]]:
        if request.commits is not None:
            return self.repo.changed_paths_in_range(request.commits), []
        status = self.repo.status()
        untracked = list(status.untracked) if self.config.classify.include_untracked else []
        return status.changed_paths(include_untracked=False), untracked

    def _validate_manifest(self, rel: Path, kind: ManifestKind) -> ManifestDocument:
        try:
            doc = load_manifest(self.root / rel, kind)
            VersionTriple.parse(doc.version)
        except (ManifestError, VersionFormatError) as exc:
            raise PreconditionError(f"{rel}: {exc}") from exc
        return doc

    def _classify_locally(self, outcome: BumpOutcome, facts: WorkspaceFacts) -> None:
        """Classifying, up to the change type: noise filter, parse, classify, aggregate."""
        outcome.filtered_diff = filter_version_noise(outcome.raw_diff)
        document = parse_diff(outcome.filtered_diff)
        outcome.classified = self.file_classifier.classify_document(document, facts)
        outcome.change_type = aggregate(outcome.classified, self.policy)
        logger.info("Change type detected: %s", outcome.change_type.value)

    def _decide_kind(self, request: BumpRequest, outcome: BumpOutcome) -> BumpKind:
        """Classifying, the bump kind: operator override, else the model."""
        if request.kind is not None:
            outcome.kind_overridden = True
            logger.info("Using bump kind %s from the command line", request.kind.value)
            return request.kind

        client = self._require_client()
        llm = self.config.llm
        truncation = truncate_diff(outcome.filtered_diff, llm.token_budget, llm.chars_per_token)
        outcome.truncation = truncation
        if truncation.truncated:
            logger.warning(
                "Diff truncated from ~%d to ~%d tokens; %d file(s) omitted",
                truncation.original_tokens, truncation.tokens, len(truncation.dropped_files),
            )
        prompt = build_classification_prompt(truncation.text, outcome.change_type, truncation.truncated)
        kind = client.classify(prompt)
        logger.info("Recommended version bump: %s", kind.value)
        return kind

    def _plan(self, change_type: ChangeType, kind: BumpKind, facts: WorkspaceFacts) -> List[ManifestChange]:
        """PendingBump: the writes Mutating will perform, from the current on-disk values."""
        if change_type == ChangeType.HELM_ONLY or not facts.has_app_manifest:
            if not facts.has_chart_manifest:
                raise PreconditionError(
                    f"{self._chart_rel} not found. Cannot bump the chart version for a {change_type.value} change."
                )
            chart = self._validate_manifest(self._chart_rel, ManifestKind.CHART)
            return [ManifestChange(self._chart_rel, "version", chart.version, bump_version(chart.version, kind))]

        app = self._validate_manifest(self._app_rel, ManifestKind.APPLICATION)
        new_version = bump_version(app.version, kind)
        planned = [ManifestChange(self._app_rel, "version", app.version, new_version)]
        if facts.has_chart_manifest:
            chart = self._validate_manifest(self._chart_rel, ManifestKind.CHART)
            planned.append(ManifestChange(self._chart_rel, "appVersion", chart.app_version, new_version))
        return planned

    def _mutate(self, outcome: BumpOutcome, kind: BumpKind) -> None:
        """Mutating: apply the planned writes, re-reading each manifest first."""
        app_version: Optional[str] = None

        for planned in outcome.planned:
            if planned.path == self._app_rel and planned.field == "version":
                change = self._write(outcome, planned, ManifestKind.APPLICATION, lambda doc: bump_version(doc.version, kind))
                app_version = change.new
                outcome.lockfile_refreshed = refresh_lockfile(self.root / self._lock_rel, app_version)
            elif planned.field == "appVersion":
                if app_version is None:
                    raise MutationError(
                        "refusing to mirror appVersion without a freshly written application version",
                        self.root / planned.path,
                        written=[self.root / p for p in outcome.written_paths],
                    )
                mirrored = app_version
                self._write(outcome, planned, ManifestKind.CHART, lambda doc: mirrored)
            else:
                self._write(outcome, planned, ManifestKind.CHART, lambda doc: bump_version(doc.version, kind))

        logger.info("Version bump completed successfully")

    def _write(
        self,
        outcome: BumpOutcome,
        planned: ManifestChange,
        kind: ManifestKind,
        compute: Callable[[ManifestDocument], str],
    ) -> ManifestChange:
        path = self.root / planned.path
        attempted: Optional[str] = planned.new
        try:
            doc = load_manifest(path, kind)
            old = doc.version if planned.field == "version" else doc.app_version
            attempted = compute(doc)
            if planned.field == "version":
                doc.set_version(attempted)
            else:
                doc.set_app_version(attempted)
            save_manifest(doc)
        except (ManifestError, VersionFormatError) as exc:
            raise MutationError(
                str(exc),
                path,
                attempted=attempted,
                written=[self.root / p for p in outcome.written_paths],
            ) from exc

        change = ManifestChange(planned.path, planned.field, old, attempted)
        outcome.written.append(change)
        logger.info("Updated %s %s to %s", planned.path, planned.field, attempted)
        return change

    def _commit(self, request: BumpRequest, outcome: BumpOutcome) -> None:
        """Committing: stage what changed and commit it. Git failures after a write are warnings."""
        if not outcome.written:
            raise CommitError("Nothing was written; refusing to create an empty release commit")

        new_version = outcome.written[0].new
        paths = [str(p) for p in outcome.written_paths]
        if outcome.lockfile_refreshed:
            paths.append(str(self._lock_rel))
        paths.extend(self._relevant_paths)
        paths = list(dict.fromkeys(paths))

        message = request.message or self._summarize(outcome, new_version)
        outcome.commit_message = message
        try:
            self.repo.stage(paths)
            outcome.commit_sha = self.repo.commit(message)
        except (GitError, CommitError) as exc:
            logger.warning("Version files were written but the commit failed: %s", exc)
            outcome.commit_error = str(exc)

    def _summarize(self, outcome: BumpOutcome, new_version: str) -> str:
        fallback = FALLBACK_COMMIT_MESSAGE.format(version=new_version)
        client = self._optional_client()
        if client is None:
            return fallback

        old_version = outcome.written[0].old or "0.0.0"
        net = redact_large_files(
            outcome.raw_diff,
            max_lines=self.config.commit.large_file_lines,
            exclusions=self.file_classifier.exclusions,
        )
        budget = self.config.commit.summary_token_budget
        truncated = truncate_diff(net, budget, self.config.llm.chars_per_token)
        try:
            return client.summarize(build_summary_prompt(truncated.text, old_version, new_version))
        except ClassificationError as exc:
            logger.warning("Commit summary failed, using a fixed message: %s", exc)
            return fallback

    # ---- classifier ----

    def _optional_client(self) -> Optional[TextClassifier]:
        if self._classifier is None:
            key = resolve_api_key(self._api_key)
            if key is not None:
                self._classifier = self._classifier_factory(key)
        return self._classifier

    def _require_client(self) -> TextClassifier:
        client = self._optional_client()
        if client is None:
            raise PreconditionError(
                "No API key found. Pass --api-key, set AIBUMP_API_KEY or ANTHROPIC_API_KEY, "
                "or add anthropicApiKey to ~/.config/aibump"
            )
        return client

    def _default_factory(self, api_key: str) -> TextClassifier:
        llm = self.config.llm
        return AnthropicClassifier(
            api_key=api_key,
            model=llm.model,
            max_attempts=llm.max_attempts,
            backoff_s=llm.backoff_s,
            max_output_tokens=llm.max_output_tokens,
        )
