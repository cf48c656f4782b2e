"""Dead code CLI command: unreferenced exports and unused imports."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..deadcode.models import Confidence
from ..exceptions import ModgraphError
from ..logging_config import setup_logging
from . import app
from ._common import CONFIDENCE_STYLES, console, print_json, resolve_config, short_path


def _candidate_table(title: str, candidates, root: str) -> Table:
    table = Table(title=title, show_header=True, pad_edge=True, title_justify="left")
    table.add_column("Location", style="cyan")
    table.add_column("Name")
    table.add_column("Confidence")
    table.add_column("Risk factors", style="dim")
    for candidate in candidates:
        style = CONFIDENCE_STYLES[candidate.confidence.value]
        table.add_row(
            f"{short_path(candidate.module, root)}:{candidate.line}",
            candidate.name,
            f"[{style}]{candidate.confidence.value}[/{style}]",
            ", ".join(candidate.risk_factors) or "-",
        )
    return table


@app.command(name="dead-code")
def dead_code(
    path: Path = typer.Argument(
        Path("."),
        help="Project directory to analyze",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
    min_confidence: str = typer.Option(
        "low",
        "--min-confidence",
        help="Only show candidates at or above this confidence (high, medium, low)",
    ),
    show_suggestions: bool = typer.Option(
        False,
        "--suggestions",
        "-s",
        help="Show ranked removal suggestions",
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
    Find exports nothing imports and imports nothing references.

    [bold cyan]Examples:[/bold cyan]

      modgraph dead-code src/

      modgraph dead-code . --min-confidence high --suggestions
    """
    from ..api import analyze_dead_code

    logger = setup_logging(verbose=verbose)

    try:
        threshold = Confidence(min_confidence.lower())
    except ValueError:
        console.print(
            f"[red]Error:[/red] unknown confidence '{min_confidence}' (expected high, medium or low)"
        )
        raise typer.Exit(1)

    try:
        settings = resolve_config(config, verbose)
        report = analyze_dead_code(path, config=settings)
    except ModgraphError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    logger.debug("Dead code analysis took %d ms", report.metrics.analysis_time_ms)

    dead_exports = [c for c in report.dead_exports if c.confidence.rank >= threshold.rank]
    unused_imports = [c for c in report.unused_imports if c.confidence.rank >= threshold.rank]

    if json_output:
        data = report.to_dict()
        data["deadExports"] = [c.to_dict() for c in dead_exports]
        data["unusedImports"] = [c.to_dict() for c in unused_imports]
        print_json(data)
        return

    root = report.project_path
    metrics = report.metrics
    console.print()
    console.print(
        f"[bold cyan]DEAD CODE[/bold cyan]  {metrics.total_files} files, "
        f"{metrics.total_exports} exports, {metrics.total_imports} imports"
    )
    console.print()

    if not dead_exports and not unused_imports:
        console.print("[green]No dead exports or unused imports found.[/green]")
    if dead_exports:
        console.print(_candidate_table("Dead exports", dead_exports, root))
        console.print()
    if unused_imports:
        console.print(_candidate_table("Unused imports", unused_imports, root))
        console.print()

    if show_suggestions and report.suggestions:
        console.print("[bold]Suggestions[/bold]")
        for suggestion in report.suggestions:
            style = CONFIDENCE_STYLES[suggestion.priority.value]
            console.print(
                f"  [{style}]{suggestion.priority.value:<6}[/{style}] "
                f"{suggestion.action} "
                f"[dim]({short_path(suggestion.module, root)}:{suggestion.line}, "
                f"{suggestion.safety.value})[/dim]"
            )
            for warning in suggestion.warnings:
                console.print(f"         [yellow]! {warning}[/yellow]")
            if suggestion.command:
                console.print(f"         [dim]$ {suggestion.command}[/dim]")
        console.print()

    console.print(
        f"[dim]Estimated savings: ~{metrics.estimated_savings_kb} KB, "
        f"analyzed in {metrics.analysis_time_ms} ms[/dim]"
    )
    if report.skipped:
        console.print(f"[yellow]Skipped {len(report.skipped)} file(s) that failed to parse[/yellow]")
    console.print()
