"""Command line interface for semgraph using Typer."""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from semgraph import __version__
from semgraph.errors import SemGraphError
from semgraph.extract import get_edges, get_nodes
from semgraph.graph import prepare_graph
from semgraph.layout import LAYOUT_ALGORITHMS, GridLayout

app = typer.Typer(
    name="semgraph",
    help="Draw structural equation models from their parameter tables.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


class Element(str, Enum):
    """Which table to print."""

    NODES = "nodes"
    EDGES = "edges"


def version_callback(value: bool) -> None:
    if value:
        console.print(f"semgraph {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug messages")] = False,
    version: Annotated[
        Optional[bool], typer.Option("--version", callback=version_callback, is_eager=True, help="Show version")
    ] = None,
) -> None:
    """semgraph command line."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _read_params(path: Path) -> pd.DataFrame:
    if not path.exists():
        err_console.print(f"[red]Error:[/red] parameter file not found: {path}")
        raise typer.Exit(1)
    return pd.read_csv(path)


def _read_grid(path: Path) -> GridLayout:
    return GridLayout.from_frame(pd.read_csv(path, header=None, dtype=str, keep_default_na=True))


@app.command()
def render(
    params: Annotated[Path, typer.Argument(help="Parameter table as CSV (lavaan, semopy or Mplus columns)")],
    layout: Annotated[Optional[Path], typer.Option("--layout", "-l", help="Headerless CSV grid of node names")] = None,
    algorithm: Annotated[
        str, typer.Option("--algorithm", "-a", help=f"Layout algorithm: {', '.join(sorted(LAYOUT_ALGORITHMS))}")
    ] = "tree",
    angle: Annotated[Optional[float], typer.Option("--angle", help="Vertical-connection angle, 0-180")] = None,
    label: Annotated[str, typer.Option("--label", help="Edge label formatter or template")] = "est_sig",
    variances: Annotated[bool, typer.Option("--variances", help="Draw variance loops")] = False,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write SVG here instead of stdout")] = None,
) -> None:
    """Render a parameter table to SVG."""
    try:
        frame = _read_params(params)
        grid = _read_grid(layout) if layout is not None else algorithm
        graph = prepare_graph(frame, layout=grid, angle=angle, label=label, variances=variances)
        svg = graph.render()
    except (SemGraphError, ValueError) as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    if output is None:
        typer.echo(svg)
    else:
        output.write_text(svg, encoding="utf-8")
        console.print(f"Wrote {output}")


@app.command()
def table(
    params: Annotated[Path, typer.Argument(help="Parameter table as CSV")],
    element: Annotated[Element, typer.Option("--element", "-e", help="Table to show")] = Element.EDGES,
) -> None:
    """Show the node or edge table derived from a parameter table."""
    try:
        frame = _read_params(params)
        derived = get_nodes(frame) if element == Element.NODES else get_edges(frame)
    except (SemGraphError, ValueError) as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    columns = ["name", "shape", "label"] if element == Element.NODES else ["from", "to", "arrow", "label", "show"]
    out = Table(title=element.value)
    for column in columns:
        out.add_column(column)
    for row in derived[columns].itertuples(index=False, name=None):
        out.add_row(*("" if pd.isna(v) else str(v) for v in row))
    console.print(out)


if __name__ == "__main__":
    app()
