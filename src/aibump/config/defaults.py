"""Starter .aibump.toml template."""

DEFAULT_TOML = """\
# aibump configuration
version = "1.0"

[manifests]
application = "package.json"      # JSON or YAML, must hold a "version" field
chart = "helm/Chart.yaml"         # version + appVersion mirror
lockfile = "package-lock.json"    # refreshed best-effort when the app version changes

[classify]
infra_root = "helm/"
# script_extensions = [".sh", ".bash", ".py"]
# script_dirs = ["scripts", "hooks"]
# exclude = ["docs/", "*.snap"]   # added to the built-in exclusions
use_default_exclusions = true
include_untracked = false
scripts_only_is_helm_only = true  # infra-script-only changes bump the chart
scripts_join_app_changes = true   # scripts + app code counts as "both"

[llm]
model = "claude-sonnet-4-20250514"
token_budget = 6000               # diff sent for classification is cut to fit
chars_per_token = 4
max_attempts = 3
backoff_s = 1.0

[commit]
enabled = false
summary_token_budget = 3000
large_file_lines = 300            # bodies of larger files are redacted from summaries

[output]
format = "terminal"               # terminal | json
show_diff = false
"""
