"""Rich terminal reporter: classification table, planned writes, verdict."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from aibump.bumper.models import BumpOutcome, BumpState
from aibump.classify.aggregator import ChangeType
from aibump.classify.files import Category

_CATEGORY_STYLE = {
    Category.APP_CODE: "bold green",
    Category.INFRA_CONFIG: "bold cyan",
    Category.INFRA_SCRIPT: "bold magenta",
    Category.EXCLUDED: "dim",
}

_KIND_STYLE = {
    "major": "bold white on red",
    "minor": "bold black on yellow",
    "patch": "bold black on bright_cyan",
}


def _kind_pill(kind: str) -> Text:
    return Text(f" {kind.upper()} ", style=_KIND_STYLE.get(kind, ""))


def _category_label(category: Category) -> Text:
    return Text(category.value.replace("_", " "), style=_CATEGORY_STYLE.get(category, ""))


def render_classification(outcome: BumpOutcome, console: Optional[Console] = None) -> None:
    """Print the per-file categories and the resulting change type."""
    console = console or Console(stderr=True)

    if outcome.classified:
        table = Table(
            title="Changed files",
            title_style="bold",
            border_style="dim",
        )
        table.add_column("File", style="magenta")
        table.add_column("Category", justify="center")
        table.add_column("+", justify="right", style="green")
        table.add_column("-", justify="right", style="red")
        for item in outcome.classified:
            table.add_row(
                item.path,
                _category_label(item.category),
                str(item.change.additions),
                str(item.change.deletions),
            )
        console.print(table)

    for path in outcome.excluded_paths:
        console.print(f"[dim]Excluded from analysis: {path}[/dim]")

    if outcome.change_type is not None:
        console.print(f"[dim]Change type:[/dim]  [bold]{outcome.change_type.value}[/bold]")


def render(outcome: BumpOutcome, *, show_diff: bool = False, console: Optional[Console] = None) -> None:
    """Print a bump outcome to the terminal using Rich."""
    console = console or Console(stderr=True)

    if show_diff and outcome.raw_diff:
        console.print(Syntax(outcome.raw_diff, "diff", theme="ansi_dark", word_wrap=True))

    if outcome.failed:
        console.print(f"[bold red]✗ Bump failed ({_failed_stage(outcome)}):[/bold red] {outcome.error}")
        return

    render_classification(outcome, console)
    console.print()

    if outcome.state == BumpState.NOOP or outcome.change_type == ChangeType.NONE:
        console.print("[dim]No relevant changes found. Nothing to version.[/dim]")
        return

    if outcome.bump_kind is not None:
        source = "operator override" if outcome.kind_overridden else "model"
        line = Text("Recommended version bump: ")
        line.append_text(_kind_pill(outcome.bump_kind.value))
        line.append(f"  ({source})", style="dim")
        console.print(line)

    if outcome.truncation is not None and outcome.truncation.truncated:
        t = outcome.truncation
        console.print(
            f"[yellow]⚠[/yellow]  Diff truncated to ~{t.tokens} of ~{t.original_tokens} tokens "
            f"({len(t.dropped_files)} file(s) omitted)"
        )

    changes = outcome.planned if outcome.dry_run else outcome.written
    if changes:
        table = Table(
            title="Would update" if outcome.dry_run else "Updated",
            title_style="bold",
            border_style="dim",
        )
        table.add_column("Manifest", style="magenta")
        table.add_column("Field", style="cyan")
        table.add_column("From", justify="right")
        table.add_column("To", justify="right", style="bold green")
        for change in changes:
            table.add_row(str(change.path), change.field, change.old or "-", change.new)
        console.print(table)

    if outcome.lockfile_refreshed:
        console.print("[dim]Lock file version refreshed.[/dim]")

    if outcome.commit_sha:
        console.print(f"[green]✓[/green] Committed {outcome.commit_sha[:12]}: {_first_line(outcome.commit_message)}")
    elif outcome.commit_error:
        console.print(f"[yellow]⚠[/yellow]  Versions written but not committed: {outcome.commit_error}")

    if outcome.dry_run:
        console.print("[bold yellow]Dry run: no files were changed.[/bold yellow]")
    else:
        console.print("[bold green]✓ Version bump completed.[/bold green]")


def _failed_stage(outcome: BumpOutcome) -> str:
    # state before Failed
    return outcome.history[-2].value if len(outcome.history) >= 2 else outcome.state.value


def _first_line(message: Optional[str]) -> str:
    return (message or "").splitlines()[0] if message else ""
