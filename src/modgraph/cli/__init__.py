"""CLI entry point: registers all subcommands."""

from typing import Optional

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="modgraph",
    help="modgraph - ES module dependency graph analysis and architectural diffing",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"modgraph {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Analyze import/export structure of JavaScript and TypeScript projects."""


def main() -> None:
    app()


# Import subcommands to register them
from .graph import cycles as _cycles, graph as _graph  # noqa: F401, E402
from .deadcode import dead_code as _dead_code  # noqa: F401, E402
from .diff import diff_cmd as _diff  # noqa: F401, E402
