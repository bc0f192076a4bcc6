"""Tests for exclusion rules, file classification and change-type aggregation."""

import pytest

from aibump.classify.aggregator import AggregationPolicy, ChangeType, aggregate, summarize
from aibump.classify.exclusions import ExclusionRule, ExclusionSet, build_exclusions
from aibump.classify.files import Category, ClassifiedFile, FileClassifier, WorkspaceFacts
from aibump.config.schema import AibumpConfig
from aibump.filters.noise import filter_version_noise
from aibump.git.diff_parser import parse_diff
from aibump.git.models import ChangeKind, FileChange, HunkLine, LineMarker

BOTH_MANIFESTS = WorkspaceFacts(has_app_manifest=True, has_chart_manifest=True)
CHART_ONLY = WorkspaceFacts(has_app_manifest=False, has_chart_manifest=True)


@pytest.fixture
def classifier() -> FileClassifier:
    return FileClassifier.from_config(AibumpConfig())


def _changed(path: str) -> FileChange:
    return FileChange(path=path, lines=[HunkLine(LineMarker.ADD, "x")])


def _classified(*pairs) -> list:
    return [ClassifiedFile(_changed(path), category) for path, category in pairs]


class TestExclusions:
    def test_literal_is_substring(self):
        rule = ExclusionRule("node_modules/")
        assert rule.matches("web/node_modules/react/index.js")
        assert not rule.is_glob

    def test_glob_matches_basename(self):
        rule = ExclusionRule("*.min.js")
        assert rule.is_glob
        assert rule.matches("public/js/app.min.js")
        assert not rule.matches("public/js/app.js")

    def test_defaults_cover_lock_files(self):
        exclusions = ExclusionSet.default()
        assert exclusions.matches("package-lock.json")
        assert exclusions.matches("pnpm-lock.yaml")
        assert exclusions.matches("logs/server.log")
        assert not exclusions.matches("src/index.ts")

    def test_extend_from_config(self):
        exclusions = build_exclusions(["docs/", "*.snap"])
        assert exclusions.matches("docs/README.md")
        assert exclusions.matches("tests/__snapshots__/a.snap")

    def test_without_defaults(self):
        exclusions = build_exclusions(["docs/"], use_defaults=False)
        assert len(exclusions) == 1
        assert not exclusions.matches("package-lock.json")

    def test_duplicates_ignored(self):
        exclusions = ExclusionSet.from_patterns(["a/", "a/", "b/"])
        assert [r.pattern for r in exclusions.rules] == ["a/", "b/"]

    def test_partition_preserves_order(self):
        relevant, excluded = ExclusionSet.default().partition(
            ["src/a.ts", "package-lock.json", "helm/values.yaml", "dist/app.js"]
        )
        assert relevant == ["src/a.ts", "helm/values.yaml"]
        assert excluded == ["package-lock.json", "dist/app.js"]


class TestFileClassifier:
    def test_app_code(self, classifier):
        assert classifier.classify("src/index.ts", BOTH_MANIFESTS) == Category.APP_CODE

    def test_infra_config(self, classifier):
        assert classifier.classify("helm/values.yaml", BOTH_MANIFESTS) == Category.INFRA_CONFIG
        assert classifier.classify("helm/templates/deployment.yaml", BOTH_MANIFESTS) == Category.INFRA_CONFIG

    def test_infra_script_by_extension(self, classifier):
        assert classifier.classify("helm/migrate.sh", BOTH_MANIFESTS) == Category.INFRA_SCRIPT

    def test_infra_script_by_directory(self, classifier):
        assert classifier.classify("helm/scripts/rollout", BOTH_MANIFESTS) == Category.INFRA_SCRIPT
        assert classifier.classify("helm/hooks/pre-install.yaml", BOTH_MANIFESTS) == Category.INFRA_SCRIPT

    def test_chart_manifest_is_excluded(self, classifier):
        assert classifier.classify("helm/Chart.yaml", BOTH_MANIFESTS) == Category.EXCLUDED
        assert classifier.classify("./helm/Chart.yaml", BOTH_MANIFESTS) == Category.EXCLUDED
        assert classifier.classify("services/web/helm/Chart.yaml", BOTH_MANIFESTS) == Category.EXCLUDED

    def test_chart_lookalikes_are_not_the_manifest(self, classifier):
        assert classifier.classify("helm/Chart.yaml.bak", BOTH_MANIFESTS) == Category.INFRA_CONFIG
        assert classifier.classify("myhelm/Chart.yaml", BOTH_MANIFESTS) == Category.APP_CODE

    def test_excluded_path(self, classifier):
        assert classifier.classify("package-lock.json", BOTH_MANIFESTS) == Category.EXCLUDED
        assert classifier.classify("helm/charts/dep.tgz", BOTH_MANIFESTS) == Category.EXCLUDED

    def test_no_app_manifest_demotes_app_code(self, classifier):
        assert classifier.classify("src/index.ts", CHART_ONLY) == Category.INFRA_CONFIG

    def test_outside_infra_root_with_script_extension(self, classifier):
        assert classifier.classify("scripts/build.sh", BOTH_MANIFESTS) == Category.APP_CODE

    def test_infra_root_prefix_must_be_directory(self, classifier):
        assert classifier.classify("helmet/config.js", BOTH_MANIFESTS) == Category.APP_CODE

    def test_windows_and_dot_paths(self, classifier):
        assert classifier.classify(".\\helm\\values.yaml", BOTH_MANIFESTS) == Category.INFRA_CONFIG

    def test_custom_infra_root(self):
        classifier = FileClassifier(
            ExclusionSet(),
            infra_root="deploy",
            chart_manifest="deploy/Chart.yaml",
        )
        assert classifier.classify("deploy/values.yaml", BOTH_MANIFESTS) == Category.INFRA_CONFIG
        assert classifier.classify("helm/values.yaml", BOTH_MANIFESTS) == Category.APP_CODE

    def test_classify_document(self, classifier, sample_diff_helm):
        result = classifier.classify_document(parse_diff(sample_diff_helm), BOTH_MANIFESTS)
        assert [(c.path, c.category) for c in result] == [
            ("helm/Chart.yaml", Category.EXCLUDED),
            ("helm/scripts/deploy.sh", Category.INFRA_SCRIPT),
        ]


class TestAggregation:
    def test_empty_is_none(self):
        assert aggregate([]) == ChangeType.NONE

    def test_all_excluded_is_none(self):
        assert aggregate(_classified(("package-lock.json", Category.EXCLUDED))) == ChangeType.NONE

    def test_scripts_only_is_helm_only(self):
        files = _classified(("helm/scripts/deploy.sh", Category.INFRA_SCRIPT))
        assert aggregate(files) == ChangeType.HELM_ONLY

    def test_infra_config_only(self):
        files = _classified(("helm/values.yaml", Category.INFRA_CONFIG))
        assert aggregate(files) == ChangeType.HELM_ONLY

    def test_app_only(self):
        files = _classified(("src/index.ts", Category.APP_CODE))
        assert aggregate(files) == ChangeType.APP_ONLY

    def test_infra_and_app_is_both(self):
        files = _classified(
            ("helm/values.yaml", Category.INFRA_CONFIG),
            ("src/index.ts", Category.APP_CODE),
        )
        assert aggregate(files) == ChangeType.BOTH

    def test_scripts_and_app_is_both(self):
        files = _classified(
            ("helm/scripts/deploy.sh", Category.INFRA_SCRIPT),
            ("src/index.ts", Category.APP_CODE),
        )
        assert aggregate(files) == ChangeType.BOTH

    def test_policy_scripts_do_not_join_app(self):
        files = _classified(
            ("helm/scripts/deploy.sh", Category.INFRA_SCRIPT),
            ("src/index.ts", Category.APP_CODE),
        )
        policy = AggregationPolicy(scripts_join_app_changes=False)
        assert aggregate(files, policy) == ChangeType.APP_ONLY

    def test_policy_scripts_only_ignored(self):
        files = _classified(("helm/scripts/deploy.sh", Category.INFRA_SCRIPT))
        policy = AggregationPolicy(scripts_only_is_helm_only=False)
        assert aggregate(files, policy) == ChangeType.NONE

    def test_mode_only_change_does_not_count(self):
        mode_only = FileChange(path="src/run.sh", mode_changed=True)
        assert aggregate([ClassifiedFile(mode_only, Category.APP_CODE)]) == ChangeType.NONE

    def test_deleted_file_counts(self):
        deleted = FileChange(path="src/old.ts", kind=ChangeKind.DELETED)
        assert aggregate([ClassifiedFile(deleted, Category.APP_CODE)]) == ChangeType.APP_ONLY

    def test_summary_buckets(self):
        files = _classified(
            ("helm/scripts/deploy.sh", Category.INFRA_SCRIPT),
            ("src/index.ts", Category.APP_CODE),
        )
        summary = summarize(files)
        assert summary.infra_script and summary.app and not summary.infra_non_script

    def test_version_bump_only_is_none(self, classifier, sample_diff_version_noise):
        """A manifest whose only edit is its own version is not a change."""
        doc = parse_diff(filter_version_noise(sample_diff_version_noise))
        classified = classifier.classify_document(doc, BOTH_MANIFESTS)
        assert [c.category for c in classified] == [Category.APP_CODE]
        assert aggregate(classified) == ChangeType.NONE

    def test_helm_scenario(self, classifier, sample_diff_helm):
        doc = parse_diff(filter_version_noise(sample_diff_helm))
        assert aggregate(classifier.classify_document(doc, BOTH_MANIFESTS)) == ChangeType.HELM_ONLY

    def test_app_scenario(self, classifier, sample_diff_app):
        doc = parse_diff(sample_diff_app)
        assert aggregate(classifier.classify_document(doc, BOTH_MANIFESTS)) == ChangeType.APP_ONLY
