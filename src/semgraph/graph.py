"""The graph container and the pipeline that prepares it for rendering."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from semgraph.anchors import connect_edges
from semgraph.config import ARROWS, DEFAULT_SETTINGS, SHAPES, GraphSettings
from semgraph.errors import GraphValidationError
from semgraph.extract import get_edges, get_nodes
from semgraph.layout import GridLayout, resolve_layout
from semgraph.styling import Where, edit_where

if TYPE_CHECKING:
    from semgraph.renderers.base import Renderer

logger = logging.getLogger(__name__)

ELEMENTS: tuple[str, ...] = ("nodes", "edges")


@dataclass(frozen=True, eq=False)
class SemGraph:
    """Node and edge tables that belong together.

    Construction validates that node names are unique and that every edge
    endpoint names a node. All ``with_*`` / ``edit_*`` methods return a new,
    re-validated graph.
    """

    nodes: pd.DataFrame
    edges: pd.DataFrame
    settings: GraphSettings = DEFAULT_SETTINGS

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ``GraphValidationError`` if the tables disagree."""
        if "name" not in self.nodes.columns:
            raise GraphValidationError("The node table needs a 'name' column")
        missing = [col for col in ("from", "to") if col not in self.edges.columns]
        if missing:
            raise GraphValidationError(f"The edge table needs columns {missing}")

        duplicated = self.nodes["name"][self.nodes["name"].duplicated()]
        if not duplicated.empty:
            raise GraphValidationError(f"Node {duplicated.iloc[0]!r} is defined more than once")

        names = set(self.nodes["name"])
        for src, tgt in zip(self.edges["from"], self.edges["to"]):
            for endpoint in (src, tgt):
                if endpoint not in names:
                    raise GraphValidationError(f"Edge {src} -> {tgt} refers to unknown node {endpoint!r}")

        if "arrow" in self.edges.columns:
            bad = self.edges.loc[~self.edges["arrow"].isin(ARROWS)]
            if not bad.empty:
                row = bad.iloc[0]
                raise GraphValidationError(
                    f"Edge {row['from']} -> {row['to']} has arrow {row['arrow']!r}; expected one of {ARROWS}"
                )
        if "shape" in self.nodes.columns:
            bad = self.nodes.loc[~self.nodes["shape"].isin(SHAPES)]
            if not bad.empty:
                row = bad.iloc[0]
                raise GraphValidationError(f"Node {row['name']!r} has shape {row['shape']!r}; expected one of {SHAPES}")

    # ── Table access ─────────────────────────────────────────────────────────

    def table(self, element: str) -> pd.DataFrame:
        if element not in ELEMENTS:
            raise ValueError(f"element must be one of {ELEMENTS}, got {element!r}")
        return self.nodes if element == "nodes" else self.edges

    def replace_table(self, element: str, table: pd.DataFrame) -> SemGraph:
        if element not in ELEMENTS:
            raise ValueError(f"element must be one of {ELEMENTS}, got {element!r}")
        return dataclasses.replace(self, **{element: table})

    def with_nodes(self, nodes: pd.DataFrame) -> SemGraph:
        return self.replace_table("nodes", nodes)

    def with_edges(self, edges: pd.DataFrame) -> SemGraph:
        return self.replace_table("edges", edges)

    def edit_nodes(self, where: Where = True, **values: object) -> SemGraph:
        return self.with_nodes(edit_where(self.nodes, where, **values))

    def edit_edges(self, where: Where = True, **values: object) -> SemGraph:
        return self.with_edges(edit_where(self.edges, where, **values))

    # ── Geometry ─────────────────────────────────────────────────────────────

    def node_sizes(self) -> dict[str, tuple[float, float]]:
        """(width, height) per node; ``width``/``height`` columns override the shape default."""
        sizes: dict[str, tuple[float, float]] = {}
        for row in self.nodes.to_dict("records"):
            width, height = self.settings.node_size(row.get("shape", "rect"))
            if pd.notna(row.get("width", np.nan)):
                width = float(row["width"])
            if pd.notna(row.get("height", np.nan)):
                height = float(row["height"])
            sizes[row["name"]] = (width, height)
        return sizes

    def has_coordinates(self) -> bool:
        if not {"x", "y"} <= set(self.nodes.columns):
            return False
        return bool(self.nodes[["x", "y"]].notna().all().all())

    def connect(self, angle: float | None = None) -> SemGraph:
        """Fill unset anchor sides from the current coordinates."""
        if not self.has_coordinates():
            raise GraphValidationError("Nodes need x and y coordinates before edges can be anchored")
        if angle is None:
            angle = self.settings.angle
        return self.with_edges(connect_edges(self.nodes, self.edges, angle, self.node_sizes()))

    # ── Output ───────────────────────────────────────────────────────────────

    def render(self, renderer: Renderer | None = None) -> str:
        if renderer is None:
            from semgraph.renderers.svg import SvgRenderer

            renderer = SvgRenderer()
        return renderer.render(self)

    def save(self, path: str | Path, renderer: Renderer | None = None) -> Path:
        path = Path(path)
        path.write_text(self.render(renderer), encoding="utf-8")
        logger.info("Wrote graph to %s", path)
        return path


# ─── Preparation ──────────────────────────────────────────────────────────────


def nodes_from_edges(edges: pd.DataFrame) -> pd.DataFrame:
    """One rectangular node per distinct edge endpoint, in first-seen order."""
    names = list(dict.fromkeys([*edges["from"], *edges["to"]]))
    return pd.DataFrame({"name": names, "shape": ["rect"] * len(names), "label": names}, dtype=object)


def _complete_nodes(nodes: pd.DataFrame) -> pd.DataFrame:
    nodes = nodes.copy()
    if "shape" not in nodes.columns:
        nodes["shape"] = "rect"
    if "label" not in nodes.columns:
        nodes["label"] = nodes["name"].astype(str)
    return nodes


def _complete_edges(edges: pd.DataFrame) -> pd.DataFrame:
    edges = edges.copy()
    defaults: dict[str, object] = {"arrow": "last", "label": "", "curvature": np.nan, "show": True}
    for column, value in defaults.items():
        if column not in edges.columns:
            edges[column] = value
    for column in ("connect_from", "connect_to"):
        if column not in edges.columns:
            edges[column] = pd.Series([None] * len(edges), index=edges.index, dtype=object)
    return edges


def _empty_edges() -> pd.DataFrame:
    return pd.DataFrame({"from": pd.Series(dtype=object), "to": pd.Series(dtype=object)})


def prepare_graph(
    model: object = None,
    *,
    nodes: pd.DataFrame | None = None,
    edges: pd.DataFrame | None = None,
    layout: GridLayout | pd.DataFrame | str | None = None,
    angle: float | None = None,
    settings: GraphSettings | None = None,
    label: str = "est_sig",
    node_label: str = "name",
    variances: bool = False,
) -> SemGraph:
    """Build a validated, positioned and anchored ``SemGraph``.

    Tables come from ``model`` unless given explicitly; with only ``edges``
    the nodes are derived from the edge endpoints. ``layout`` is a grid, a
    coordinate frame or an algorithm name; without one, coordinates already
    present in ``nodes`` are kept, and otherwise the layered ``"tree"``
    layout is used. Grid and algorithm coordinates are multiplied by the
    spacing settings.
    """
    settings = settings or DEFAULT_SETTINGS
    if angle is not None:
        settings = settings.replace(angle=angle)

    if model is not None:
        if nodes is None:
            nodes = get_nodes(model, label=node_label, digits=settings.digits)
        if edges is None:
            edges = get_edges(
                model, label=label, variances=variances, digits=settings.digits, curvature=settings.curvature
            )
    elif nodes is None and edges is None:
        raise GraphValidationError("prepare_graph needs a model or node/edge tables")

    edges = _complete_edges(_empty_edges() if edges is None else edges)
    nodes = _complete_nodes(nodes_from_edges(edges) if nodes is None else nodes)
    graph = SemGraph(nodes=nodes, edges=edges, settings=settings)

    if layout is not None or not graph.has_coordinates():
        coords = resolve_layout(layout, list(nodes["name"]), edges)
        coords["x"] = coords["x"] * settings.spacing_x
        coords["y"] = coords["y"] * settings.spacing_y
        positioned = nodes.drop(columns=[c for c in ("x", "y") if c in nodes.columns])
        positioned = positioned.merge(coords, on="name", how="left")
        graph = graph.with_nodes(positioned)

    logger.debug("Prepared graph with %d nodes and %d edges", len(graph.nodes), len(graph.edges))
    return graph.connect(settings.angle)
