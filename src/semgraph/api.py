"""One-call entry points: model in, SVG out."""

from __future__ import annotations

from pathlib import Path

from semgraph.graph import SemGraph, prepare_graph
from semgraph.renderers.base import Renderer


def graph_sem(model: object = None, *, renderer: Renderer | None = None, **kwargs: object) -> str:
    """Prepare a graph (see ``prepare_graph`` for keyword arguments) and render it."""
    return prepare_graph(model, **kwargs).render(renderer)


def render_svg(graph: SemGraph) -> str:
    """Render an already prepared graph to SVG."""
    return graph.render()


def save_svg(graph: SemGraph, path: str | Path) -> Path:
    return graph.save(path)
