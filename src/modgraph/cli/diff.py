"""Diff CLI command: architectural changes between two refs."""

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..diff.models import Severity
from ..exceptions import ModgraphError
from ..logging_config import setup_logging
from ..snapshot.provider import WORKING_TREE
from . import app
from ._common import SEVERITY_STYLES, console, health_style, print_json, resolve_config


def _render(report) -> None:
    impact = report.impact
    health = impact.health_change
    delta_style = "green" if health.delta >= 0 else "red"

    console.print()
    console.print(
        Panel(
            f"[bold]{report.baseline_ref}[/bold] -> [bold]{report.current_ref}[/bold]\n"
            f"Health: [{health_style(health.before)}]{health.before:.1f}[/{health_style(health.before)}]"
            f" -> [{health_style(health.after)}]{health.after:.1f}[/{health_style(health.after)}]"
            f" ([{delta_style}]{health.delta:+.1f}[/{delta_style}])",
            title="[bold cyan]ARCHITECTURE DIFF[/bold cyan]",
            expand=False,
        )
    )

    metrics = Table(show_header=True, pad_edge=True)
    metrics.add_column("Metric")
    metrics.add_column("Before", justify="right")
    metrics.add_column("After", justify="right")
    metrics.add_column("Delta", justify="right")
    for name, change in impact.key_metrics.items():
        metrics.add_row(name, f"{change.before:g}", f"{change.after:g}", f"{change.delta:+g}")
    console.print(metrics)
    console.print()

    if not report.changes:
        console.print("[green]No architectural changes.[/green]")
        console.print()
        return

    changes = Table(show_header=True, pad_edge=True)
    changes.add_column("Severity")
    changes.add_column("Type", style="cyan")
    changes.add_column("Description")
    changes.add_column("Impact", justify="right")
    for change in report.changes:
        style = SEVERITY_STYLES[change.severity.value]
        changes.add_row(
            f"[{style}]{change.severity.value}[/{style}]",
            change.type.value,
            change.description,
            f"{change.impact.overall_score:+d}",
        )
    console.print(changes)
    console.print()

    for recommendation in report.recommendations:
        style = SEVERITY_STYLES[recommendation.priority.value]
        console.print(
            f"[{style}]{recommendation.priority.value.upper()}[/{style}] "
            f"[bold]{recommendation.title}[/bold] [dim]({recommendation.effort} effort)[/dim]"
        )
        console.print(f"  {recommendation.description}")
        for action in recommendation.actions:
            console.print(f"  - {action}")
        console.print()


@app.command(name="diff")
def diff_cmd(
    path: Path = typer.Argument(
        Path("."),
        help="Repository directory",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
    baseline: str = typer.Option(
        ...,
        "--baseline",
        "-b",
        help="Baseline git ref (branch, tag or commit)",
    ),
    current: str = typer.Option(
        WORKING_TREE,
        "--current",
        help="Current git ref (WORKTREE = files on disk)",
    ),
    min_severity: Optional[str] = typer.Option(
        None,
        "--min-severity",
        help="Hide changes below this severity (low, medium, high, critical)",
    ),
    workspace: bool = typer.Option(
        False,
        "--workspace",
        help="Materialize each ref into a temporary directory before analysis",
    ),
    fail_on_regression: bool = typer.Option(
        False,
        "--fail-on-regression",
        help="Exit with code 2 when any change has a negative impact",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
) -> None:
    """
    Compare the dependency graphs of two refs.

    [bold cyan]Examples:[/bold cyan]

      modgraph diff . --baseline main

      modgraph diff . -b v1.0 --current HEAD --min-severity high --json
    """
    from ..api import compare_refs

    setup_logging(verbose=verbose)

    if min_severity is not None:
        try:
            min_severity = Severity.parse(min_severity).value
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    try:
        settings = resolve_config(config, verbose, min_severity=min_severity)
        report = compare_refs(
            path,
            baseline,
            current,
            config=settings,
            use_workspace=workspace,
        )
    except ModgraphError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        print_json(report.to_dict())
    else:
        _render(report)

    if fail_on_regression and report.has_regressions:
        raise typer.Exit(2)
