"""Configuration schema: dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal

OutputFormat = Literal["terminal", "json"]

DEFAULT_SCRIPT_EXTENSIONS: List[str] = [
    ".sh",
    ".bash",
    ".zsh",
    ".ps1",
    ".py",
    ".js",
    ".ts",
    ".rb",
    ".pl",
]


@dataclass
class ManifestsConfig:
    application: str = "package.json"
    chart: str = "helm/Chart.yaml"
    lockfile: str = "package-lock.json"  # refreshed best-effort alongside the app manifest


@dataclass
class ClassifyConfig:
    infra_root: str = "helm/"
    script_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_SCRIPT_EXTENSIONS))
    script_dirs: List[str] = field(default_factory=lambda: ["scripts", "hooks"])
    exclude: List[str] = field(default_factory=list)  # extra exclusion rules
    use_default_exclusions: bool = True
    include_untracked: bool = False
    scripts_only_is_helm_only: bool = True
    scripts_join_app_changes: bool = True


@dataclass
class LLMConfig:
    model: str = "claude-sonnet-4-20250514"
    token_budget: int = 6000
    chars_per_token: int = 4
    max_attempts: int = 3
    backoff_s: float = 1.0
    max_output_tokens: int = 512


@dataclass
class CommitConfig:
    enabled: bool = False
    summary_token_budget: int = 3000
    large_file_lines: int = 300


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_diff: bool = False


@dataclass
class AibumpConfig:
    version: str = "1.0"
    manifests: ManifestsConfig = field(default_factory=ManifestsConfig)
    classify: ClassifyConfig = field(default_factory=ClassifyConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    commit: CommitConfig = field(default_factory=CommitConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
