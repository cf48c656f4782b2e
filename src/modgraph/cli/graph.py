"""Graph CLI commands: dependency graph summary and circular dependencies."""

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..exceptions import ModgraphError
from ..logging_config import setup_logging
from ..snapshot.provider import WORKING_TREE
from . import app
from ._common import console, health_style, print_json, resolve_config, short_path

_PATH_ARGUMENT = typer.Argument(
    Path("."),
    help="Project directory to analyze",
    exists=True,
    file_okay=False,
    dir_okay=True,
    resolve_path=True,
)


def _snapshot(path: Path, ref: str, config: Optional[Path], verbose: bool, include_external):
    from ..api import analyze_graph

    settings = resolve_config(config, verbose, include_external=include_external)
    return analyze_graph(path, ref=ref, config=settings)


@app.command()
def graph(
    path: Path = _PATH_ARGUMENT,
    ref: str = typer.Option(
        WORKING_TREE,
        "--ref",
        "-r",
        help="Git ref to analyze (WORKTREE = files on disk)",
    ),
    no_external: bool = typer.Option(
        False,
        "--no-external",
        help="Do not add external packages as graph nodes",
    ),
    show_edges: bool = typer.Option(
        False,
        "--edges",
        help="List every dependency edge",
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
    Build the module dependency graph and show its metrics.

    [bold cyan]Examples:[/bold cyan]

      modgraph graph src/

      modgraph graph . --ref main --json
    """
    logger = setup_logging(verbose=verbose)

    try:
        snapshot = _snapshot(path, ref, config, verbose, False if no_external else None)
    except ModgraphError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    dependency_graph = snapshot.graph
    metrics = dependency_graph.metrics
    logger.debug("Graph has %d nodes", len(dependency_graph.nodes))

    if json_output:
        print_json(snapshot.to_dict())
        return

    root = dependency_graph.project_path
    score = metrics.health_score
    console.print()
    console.print(
        Panel(
            f"[bold]{root}[/bold] @ {snapshot.ref}\n"
            f"Health score: [{health_style(score)}]{score:.1f}[/{health_style(score)}] / 100",
            title="[bold cyan]DEPENDENCY GRAPH[/bold cyan]",
            expand=False,
        )
    )

    table = Table(show_header=True, pad_edge=True)
    table.add_column("Metric", min_width=24)
    table.add_column("Value", justify="right")
    table.add_row("Modules", str(metrics.total_nodes))
    table.add_row("Dependencies", str(metrics.total_edges))
    table.add_row("Internal dependencies", str(metrics.internal_edges))
    table.add_row("External dependencies", str(metrics.external_edges))
    table.add_row("Average coupling", f"{metrics.average_coupling:.1f}")
    table.add_row("Circular dependencies", str(metrics.cycle_count))
    table.add_row("Layer violations", str(metrics.layer_violations))
    table.add_row(
        "Most connected module",
        short_path(metrics.most_connected_node, root) if metrics.most_connected_node else "-",
    )
    console.print(table)

    if metrics.hotspots:
        console.print()
        console.print("[bold]Hotspots[/bold]")
        for node_id in metrics.hotspots:
            uses = len(dependency_graph.dependencies_of(node_id))
            used_by = len(dependency_graph.dependents_of(node_id))
            console.print(
                f"  [yellow]{short_path(node_id, root)}[/yellow] "
                f"[dim]uses {uses}, used by {used_by}[/dim]"
            )

    if show_edges:
        edges = Table(show_header=True, pad_edge=True)
        edges.add_column("From")
        edges.add_column("To")
        edges.add_column("Kind")
        edges.add_column("Binding")
        for edge in dependency_graph.edges:
            target = f"[dim]{edge.target}[/dim]" if edge.is_external else short_path(
                edge.target, root
            )
            edges.add_row(
                short_path(edge.source, root),
                target,
                edge.kind.value,
                edge.name or edge.binding_kind.value,
            )
        console.print()
        console.print(edges)

    if snapshot.skipped:
        console.print()
        skipped = len(snapshot.skipped)
        console.print(f"[yellow]Skipped {skipped} file(s) that failed to parse[/yellow]")
    console.print()


@app.command()
def cycles(
    path: Path = _PATH_ARGUMENT,
    ref: str = typer.Option(
        WORKING_TREE,
        "--ref",
        "-r",
        help="Git ref to analyze (WORKTREE = files on disk)",
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
    List circular dependencies between modules.

    Exits with code 2 when at least one cycle is found, so the command can
    gate CI pipelines.

    [bold cyan]Examples:[/bold cyan]

      modgraph cycles src/

      modgraph cycles . --json
    """
    setup_logging(verbose=verbose)

    try:
        snapshot = _snapshot(path, ref, config, verbose, None)
    except ModgraphError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    found = snapshot.metrics.cycles
    root = snapshot.graph.project_path

    if json_output:
        print_json({"ref": snapshot.ref, "cycles": [list(c) for c in found]})
    elif not found:
        console.print("[green]No circular dependencies found.[/green]")
    else:
        console.print()
        noun = "dependency" if len(found) == 1 else "dependencies"
        console.print(f"[bold red]{len(found)} circular {noun}[/bold red]")
        for number, cycle in enumerate(found, start=1):
            chain = " [dim]->[/dim] ".join(short_path(m, root) for m in cycle)
            console.print(f"  {number}. {chain}")
        console.print()

    if found:
        raise typer.Exit(2)
