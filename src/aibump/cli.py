"""aibump CLI: Typer application with bump, classify and init commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from aibump import __version__

app = typer.Typer(
    name="aibump",
    help="Pick the next semantic version from your diff and bump it.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    handler = RichHandler(console=console, show_path=debug, show_time=debug, markup=False)
    pkg_logger = logging.getLogger("aibump")
    pkg_logger.handlers[:] = [handler]
    pkg_logger.setLevel(level)
    # The SDK's own retry chatter is noise unless debugging.
    for name in ("anthropic", "httpx"):
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)


def _resolve_repo_root() -> Path:
    """Find the git repo root, exit 2 on failure."""
    from aibump.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root()
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] Not in a git repository. {exc}")
        raise typer.Exit(code=2) from exc


def _load_config(repo_root: Path, config: Optional[str], format: Optional[str]):
    from aibump.config.loader import ConfigError, load_config

    try:
        cfg = load_config(repo_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if format:
        if format not in ("terminal", "json"):
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    return cfg


# ── bump ──────────────────────────────────────────────────────────────────────


@app.command()
def bump(
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="Skip the model: major | minor | patch"),
    commits: Optional[int] = typer.Option(None, "--commits", "-n", help="Analyse the last N commits instead of the working tree"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be bumped without writing anything"),
    commit: bool = typer.Option(False, "--commit", help="Commit the bump (message summarised from the diff)"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message to use instead of a summary"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Anthropic API key (not stored)"),
    model: Optional[str] = typer.Option(None, "--model", help="Claude model to classify with"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .aibump.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    show_diff: bool = typer.Option(False, "--show-diff", help="Print the analysed diff"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
) -> None:
    """Classify the pending changes and bump the manifests that own them."""
    from aibump.bumper.engine import BumpEngine
    from aibump.bumper.errors import PreconditionError
    from aibump.bumper.models import BumpRequest
    from aibump.manifests.semver import BumpKind
    from aibump.output import json_report, terminal

    _setup_logging(verbose, debug)
    repo_root = _resolve_repo_root()
    cfg = _load_config(repo_root, config, format)

    override: Optional[BumpKind] = None
    if kind:
        try:
            override = BumpKind.parse(kind)
        except ValueError as exc:
            console.print(f"[bold red]Invalid bump kind:[/bold red] {kind}")
            raise typer.Exit(code=2) from exc
    if model:
        cfg.llm.model = model
    if show_diff:
        cfg.output.show_diff = True
    if message and not (commit or cfg.commit.enabled):
        console.print("[yellow]⚠[/yellow]  --message has no effect without --commit")

    if verbose or debug:
        console.print(f"[dim]Repo root: {repo_root}[/dim]")
        console.print(f"[dim]Model: {cfg.llm.model}[/dim]")

    engine = BumpEngine(repo_root, cfg, api_key=api_key)
    outcome = engine.run(
        BumpRequest(kind=override, commits=commits, dry_run=dry_run, commit=commit, message=message)
    )

    if cfg.output.format == "json":
        print(json_report.render(outcome, include_diff=cfg.output.show_diff))
    else:
        terminal.render(outcome, show_diff=cfg.output.show_diff, console=console)

    if outcome.failed:
        raise typer.Exit(code=2 if isinstance(outcome.error, PreconditionError) else 1)
    raise typer.Exit(code=0)


# ── classify ──────────────────────────────────────────────────────────────────


@app.command()
def classify(
    commits: Optional[int] = typer.Option(None, "--commits", "-n", help="Analyse the last N commits instead of the working tree"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .aibump.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
) -> None:
    """Show how each changed file is classified, without calling the model."""
    from aibump.bumper.engine import BumpEngine
    from aibump.output import json_report, terminal

    _setup_logging(verbose, debug)
    repo_root = _resolve_repo_root()
    cfg = _load_config(repo_root, config, format)

    outcome = BumpEngine(repo_root, cfg).inspect(commits)

    if cfg.output.format == "json":
        print(json_report.render(outcome))
    elif outcome.failed:
        console.print(f"[bold red]Error:[/bold red] {outcome.error}")
    else:
        terminal.render_classification(outcome, console)

    if outcome.failed:
        raise typer.Exit(code=2)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing .aibump.toml"),
) -> None:
    """Generate a starter .aibump.toml in the repo root."""
    from aibump.config.defaults import DEFAULT_TOML
    from aibump.config.loader import CONFIG_FILENAME

    repo_root = _resolve_repo_root()
    config_path = repo_root / CONFIG_FILENAME

    if config_path.exists() and not force:
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"aibump {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """aibump: pick the next semantic version from your diff."""
