"""Layout module — turn a layout description into one (x, y) per node.

Three kinds of layout are accepted:
  1. A ``GridLayout`` — rows × columns of node names and blanks.
  2. A coordinate frame with ``name``, ``x`` and ``y`` columns.
  3. The name of a layout algorithm. ``"tree"`` is a layered layout built
     here (greedy-FAS cycle removal, longest-path layers, barycenter
     crossing minimisation); the rest are delegated to networkx.

Coordinates use unit grid spacing with y pointing up: the top grid row has
the largest y. Scaling by the graph spacing happens in ``graph.py``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

import networkx as nx
import pandas as pd

from semgraph.errors import LayoutError

logger = logging.getLogger(__name__)

# ─── Grid Layouts ─────────────────────────────────────────────────────────────


def _is_blank(cell: object) -> bool:
    if cell is None:
        return True
    if isinstance(cell, float) and math.isnan(cell):
        return True
    return isinstance(cell, str) and cell.strip() == ""


@dataclass
class GridLayout:
    """A row-major grid of node names; ``None`` marks an empty cell."""

    cells: list[list[str | None]]

    def __post_init__(self) -> None:
        widths = {len(row) for row in self.cells}
        if len(widths) > 1:
            raise LayoutError(f"Grid rows have unequal lengths: {sorted(widths)}")
        self.cells = [[None if _is_blank(c) else str(c).strip() for c in row] for row in self.cells]
        seen: set[str] = set()
        for name in self.names():
            if name in seen:
                raise LayoutError(f"Node {name!r} appears more than once in the layout")
            seen.add(name)

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[object]]) -> GridLayout:
        return cls([list(row) for row in rows])

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> GridLayout:
        """Read a grid stored as a headerless table (e.g. a CSV of names)."""
        return cls([list(row) for row in frame.itertuples(index=False, name=None)])

    @property
    def rows(self) -> int:
        return len(self.cells)

    @property
    def columns(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    def names(self) -> list[str]:
        """Non-blank cells, row-major."""
        return [cell for row in self.cells for cell in row if cell is not None]

    def coordinates(self) -> pd.DataFrame:
        """(name, x, y) per non-blank cell: x = column, y = rows - row + 1 (1-based)."""
        records = [
            {"name": cell, "x": float(col + 1), "y": float(self.rows - row)}
            for row, cells in enumerate(self.cells)
            for col, cell in enumerate(cells)
            if cell is not None
        ]
        return pd.DataFrame(records, columns=["name", "x", "y"])

    def __str__(self) -> str:
        width = max((len(c) for c in self.names()), default=1)
        return "\n".join(" ".join((c or ".").ljust(width) for c in row) for row in self.cells)


def get_layout(*cells: object, rows: int | None = None) -> GridLayout:
    """Build a grid from names and blanks, filled left-to-right, top-to-bottom.

    ``get_layout("x", "y", rows=1)`` puts x left of y. Blanks are ``None``,
    ``""`` or NaN. The number of cells must be a multiple of ``rows``.
    """
    if len(cells) == 1 and isinstance(cells[0], (list, tuple)):
        cells = tuple(cells[0])
    if not cells:
        raise LayoutError("A layout needs at least one cell")
    if rows is None:
        rows = 1
    if rows < 1:
        raise LayoutError(f"rows must be a positive integer, got {rows!r}")
    if len(cells) % rows != 0:
        raise LayoutError(f"{len(cells)} cells cannot be arranged into {rows} rows of equal length")
    columns = len(cells) // rows
    return GridLayout([list(cells[r * columns : (r + 1) * columns]) for r in range(rows)])


# ─── Layered ("tree") Layout ─────────────────────────────────────────────────

DUMMY_PREFIX = "__dummy_"


def greedy_fas_ordering(graph: nx.DiGraph) -> list[str]:
    """Node ordering that keeps most edges pointing forward (Eades, Lin, Smyth 1993).

    Sinks are peeled to the back, sources to the front; when only cycles
    remain the node with the largest out-in surplus goes to the front.
    Ties are broken by insertion order so results are reproducible.
    """
    active: dict[str, None] = dict.fromkeys(graph.nodes)
    out_deg = {n: graph.out_degree(n) for n in graph.nodes}
    in_deg = {n: graph.in_degree(n) for n in graph.nodes}
    head: list[str] = []
    tail: list[str] = []

    def drop(node: str) -> None:
        del active[node]
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        changed = True
        while changed:
            changed = False
            for node in [n for n in active if out_deg[n] == 0]:
                drop(node)
                tail.append(node)
                changed = True
            for node in [n for n in active if in_deg[n] == 0]:
                drop(node)
                head.append(node)
                changed = True
        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            drop(best)
            head.append(best)

    tail.reverse()
    return head + tail


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Copy of ``graph`` with back-edges reversed and self-loops dropped.

    Returns the acyclic copy and the set of original (src, tgt) pairs that
    were reversed.
    """
    position = {node: pos for pos, node in enumerate(greedy_fas_ordering(graph))}
    reversed_edges: set[tuple[str, str]] = set()
    dag: nx.DiGraph = nx.DiGraph()
    dag.add_nodes_from(graph.nodes)
    for src, tgt in graph.edges():
        if src == tgt:
            continue
        if position[src] > position[tgt]:
            reversed_edges.add((src, tgt))
            dag.add_edge(tgt, src)
        else:
            dag.add_edge(src, tgt)
    return dag, reversed_edges


def assign_layers(dag: nx.DiGraph) -> dict[str, int]:
    """Longest-path layering: layer[v] = max(layer[u] + 1) over edges u → v."""
    layers = {node: 0 for node in dag.nodes}
    for node in nx.topological_sort(dag):
        for succ in dag.successors(node):
            layers[succ] = max(layers[succ], layers[node] + 1)
    return layers


def insert_dummy_nodes(dag: nx.DiGraph, layers: dict[str, int]) -> tuple[nx.DiGraph, dict[str, int]]:
    """Split edges spanning several layers into chains through dummy nodes.

    Afterwards every edge joins adjacent layers, which the barycenter sweep
    relies on. Dummy ids start with ``DUMMY_PREFIX``.
    """
    graph: nx.DiGraph = nx.DiGraph()
    graph.add_nodes_from(dag.nodes)
    layers = dict(layers)
    for index, (src, tgt) in enumerate(list(dag.edges())):
        span = layers[tgt] - layers[src]
        if span <= 1:
            graph.add_edge(src, tgt)
            continue
        prev = src
        for step in range(1, span):
            dummy = f"{DUMMY_PREFIX}{index}_{step}"
            layers[dummy] = layers[src] + step
            graph.add_edge(prev, dummy)
            prev = dummy
        graph.add_edge(prev, tgt)
    return graph, layers


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """Edge crossings between consecutive layers (pairwise inversion count)."""
    total = 0
    for idx in range(len(ordering) - 1):
        tgt_pos = {nid: i for i, nid in enumerate(ordering[idx + 1])}
        segments = [
            (sp, tgt_pos[nb])
            for sp, src in enumerate(ordering[idx])
            for nb in graph.successors(src)
            if nb in tgt_pos
        ]
        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                (a0, a1), (b0, b1) = segments[i], segments[j]
                if (a0 - b0) * (a1 - b1) < 0:
                    total += 1
    return total


def _barycenter(neighbours: Iterable[str], positions: dict[str, float], fallback: float) -> float:
    found = [positions[nb] for nb in neighbours if nb in positions]
    return sum(found) / len(found) if found else fallback


def minimise_crossings(graph: nx.DiGraph, layers: dict[str, int], max_passes: int = 24) -> list[list[str]]:
    """Order nodes within layers with alternating barycenter sweeps.

    The initial order is insertion order; sweeps stop once a pass no longer
    reduces the crossing count. Nodes without neighbours in the reference
    layer keep their current position.
    """
    layer_count = max(layers.values(), default=-1) + 1
    ordering: list[list[str]] = [[] for _ in range(layer_count)]
    for node in graph.nodes:
        ordering[layers[node]].append(node)

    best = count_crossings(ordering, graph)
    best_ordering = [list(layer) for layer in ordering]
    for _ in range(max_passes):
        for idx in range(1, layer_count):
            pos = {n: float(i) for i, n in enumerate(ordering[idx - 1])}
            current = {n: float(i) for i, n in enumerate(ordering[idx])}
            ordering[idx].sort(key=lambda n, p=pos, c=current: _barycenter(graph.predecessors(n), p, c[n]))
        for idx in range(layer_count - 2, -1, -1):
            pos = {n: float(i) for i, n in enumerate(ordering[idx + 1])}
            current = {n: float(i) for i, n in enumerate(ordering[idx])}
            ordering[idx].sort(key=lambda n, p=pos, c=current: _barycenter(graph.successors(n), p, c[n]))
        crossings = count_crossings(ordering, graph)
        if crossings >= best:
            break
        best = crossings
        best_ordering = [list(layer) for layer in ordering]
    return best_ordering


def layered_layout(graph: nx.DiGraph) -> dict[str, tuple[float, float]]:
    """Position nodes in layers, roots at the top, each layer centred."""
    if graph.number_of_nodes() == 0:
        return {}
    dag, reversed_edges = remove_cycles(graph)
    if reversed_edges:
        logger.debug("Reversed %d edges to break cycles: %s", len(reversed_edges), sorted(reversed_edges))
    layers = assign_layers(dag)
    augmented, aug_layers = insert_dummy_nodes(dag, layers)
    ordering = minimise_crossings(augmented, aug_layers)

    width = max(len(layer) for layer in ordering)
    layer_count = len(ordering)
    positions: dict[str, tuple[float, float]] = {}
    for idx, layer in enumerate(ordering):
        offset = (width - len(layer)) / 2
        for order, node in enumerate(layer):
            if node.startswith(DUMMY_PREFIX):
                continue
            positions[node] = (offset + order + 1, float(layer_count - idx))
    return positions


# ─── Algorithm Layouts ───────────────────────────────────────────────────────

LAYOUT_ALGORITHMS: dict[str, Callable[[nx.Graph], dict]] = {
    "tree": layered_layout,
    "spring": lambda g: nx.spring_layout(g, seed=1),
    "circular": nx.circular_layout,
    "kamada_kawai": nx.kamada_kawai_layout,
    "shell": nx.shell_layout,
    "spectral": nx.spectral_layout,
    "planar": nx.planar_layout,
}


def _rescale(positions: dict[str, tuple[float, float]]) -> dict[str, tuple[float, float]]:
    """Stretch continuous coordinates onto a roughly square unit grid."""
    if not positions:
        return {}
    side = max(1, math.ceil(math.sqrt(len(positions)))) - 1
    xs = [p[0] for p in positions.values()]
    ys = [p[1] for p in positions.values()]

    def stretch(value: float, low: float, high: float) -> float:
        if high - low < 1e-12:
            return 1.0
        return 1.0 + side * (value - low) / (high - low)

    return {
        name: (stretch(float(x), min(xs), max(xs)), stretch(float(y), min(ys), max(ys)))
        for name, (x, y) in positions.items()
    }


def directed_graph(node_names: Sequence[str], edges: pd.DataFrame | None) -> nx.DiGraph:
    """Directed graph over ``node_names`` using only one-headed edges."""
    graph: nx.DiGraph = nx.DiGraph()
    graph.add_nodes_from(node_names)
    if edges is None or edges.empty:
        return graph
    directed = edges
    if "arrow" in edges.columns:
        directed = edges[edges["arrow"] == "last"]
    for src, tgt in zip(directed["from"], directed["to"]):
        if src in graph and tgt in graph and src != tgt:
            graph.add_edge(src, tgt)
    return graph


def algorithm_layout(name: str, node_names: Sequence[str], edges: pd.DataFrame | None = None) -> pd.DataFrame:
    """Coordinates computed by a named layout algorithm."""
    try:
        algorithm = LAYOUT_ALGORITHMS[name]
    except KeyError:
        raise LayoutError(f"Unknown layout algorithm {name!r}; choose from {sorted(LAYOUT_ALGORITHMS)}") from None

    graph = directed_graph(node_names, edges)
    if name == "tree":
        positions = layered_layout(graph)
    else:
        try:
            positions = _rescale({n: tuple(p) for n, p in algorithm(graph.to_undirected()).items()})
        except nx.NetworkXException as exc:
            raise LayoutError(f"Layout algorithm {name!r} failed: {exc}") from exc

    logger.debug("Computed %r layout for %d nodes", name, len(positions))
    return pd.DataFrame(
        [{"name": n, "x": positions[n][0], "y": positions[n][1]} for n in node_names],
        columns=["name", "x", "y"],
    )


# ─── Resolution ───────────────────────────────────────────────────────────────


def resolve_layout(
    layout: GridLayout | pd.DataFrame | str | None,
    node_names: Sequence[str],
    edges: pd.DataFrame | None = None,
) -> pd.DataFrame:
    """Return exactly one (name, x, y) row per node, in ``node_names`` order.

    Raises ``LayoutError`` naming the first node missing from the layout, or
    the first layout entry that is not a node.
    """
    if layout is None:
        layout = "tree"
    if isinstance(layout, str):
        return algorithm_layout(layout, node_names, edges)

    if isinstance(layout, GridLayout):
        coords = layout.coordinates()
    elif isinstance(layout, pd.DataFrame):
        if not {"name", "x", "y"} <= set(layout.columns):
            raise LayoutError("A coordinate layout needs 'name', 'x' and 'y' columns")
        coords = layout[["name", "x", "y"]].copy()
        duplicated = coords["name"][coords["name"].duplicated()]
        if not duplicated.empty:
            raise LayoutError(f"Node {duplicated.iloc[0]!r} has more than one coordinate")
    else:
        raise LayoutError(f"Unsupported layout type {type(layout).__name__}")

    known = set(node_names)
    for name in coords["name"]:
        if name not in known:
            raise LayoutError(f"Layout refers to {name!r}, which is not a node in the graph")
    placed = set(coords["name"])
    for name in node_names:
        if name not in placed:
            raise LayoutError(f"Node {name!r} has no position in the layout")

    coords = coords.set_index("name").loc[list(node_names)].reset_index()
    coords["x"] = coords["x"].astype(float)
    coords["y"] = coords["y"].astype(float)
    return coords
