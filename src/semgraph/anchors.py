"""Edge anchor sides — where on a node's border an edge starts or ends.

Every node has four anchors, the midpoints of its top, bottom, left and
right sides. For each edge without an explicit ``connect_from`` /
``connect_to`` the anchors are chosen either by angle (vertical vs.
horizontal classification) or, by default, as the closest pair of anchors.
"""

from __future__ import annotations

import logging
import math

import pandas as pd

from semgraph.config import SIDES
from semgraph.errors import GraphValidationError

logger = logging.getLogger(__name__)

DEGENERATE_SIDES: tuple[str, str] = ("top", "top")


def anchor_point(x: float, y: float, side: str, width: float, height: float) -> tuple[float, float]:
    """Point on the border of a ``width`` × ``height`` node centred at (x, y); y points up."""
    if side == "top":
        return (x, y + height / 2)
    if side == "bottom":
        return (x, y - height / 2)
    if side == "left":
        return (x - width / 2, y)
    if side == "right":
        return (x + width / 2, y)
    raise ValueError(f"Unknown anchor side {side!r}; expected one of {SIDES}")


def _nearest_sides(
    from_xy: tuple[float, float],
    to_xy: tuple[float, float],
    from_size: tuple[float, float],
    to_size: tuple[float, float],
) -> tuple[str, str]:
    best: tuple[str, str] = (SIDES[0], SIDES[0])
    best_dist = math.inf
    for side_from in SIDES:
        start = anchor_point(*from_xy, side_from, *from_size)
        for side_to in SIDES:
            end = anchor_point(*to_xy, side_to, *to_size)
            dist = math.hypot(end[0] - start[0], end[1] - start[1])
            # Strict comparison keeps the first pair in SIDES order on ties.
            if dist < best_dist:
                best, best_dist = (side_from, side_to), dist
    return best


def _angle_sides(from_xy: tuple[float, float], to_xy: tuple[float, float], angle: float) -> tuple[str, str]:
    dx = to_xy[0] - from_xy[0]
    dy = to_xy[1] - from_xy[1]
    # Deviation of the centre line from the vertical axis, 0..90 degrees.
    deviation = math.degrees(math.atan2(abs(dx), abs(dy)))
    if deviation <= angle / 2:
        return ("top", "bottom") if dy > 0 else ("bottom", "top")
    return ("right", "left") if dx > 0 else ("left", "right")


def connect_points(
    from_xy: tuple[float, float],
    to_xy: tuple[float, float],
    from_size: tuple[float, float] = (1.0, 1.0),
    to_size: tuple[float, float] = (1.0, 1.0),
    angle: float | None = None,
) -> tuple[str, str]:
    """Pick (side on source, side on target) for one edge.

    With ``angle`` in [0, 180], edges whose centre line lies within
    ``angle / 2`` degrees of vertical run bottom-to-top (or top-to-bottom
    when the target is higher); all others run side-to-side. ``angle=0``
    makes only perfectly vertical edges vertical, ``angle=180`` makes every
    edge vertical. Without ``angle`` the closest anchor pair wins.

    Coincident centres, self-loops included, always give ("top", "top").
    """
    if angle is not None and not 0 <= angle <= 180:
        raise ValueError(f"angle must lie in [0, 180], got {angle!r}")
    if math.isclose(from_xy[0], to_xy[0]) and math.isclose(from_xy[1], to_xy[1]):
        return DEGENERATE_SIDES
    if angle is None:
        return _nearest_sides(from_xy, to_xy, from_size, to_size)
    return _angle_sides(from_xy, to_xy, angle)


def _missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def connect_edges(
    nodes: pd.DataFrame,
    edges: pd.DataFrame,
    angle: float | None = None,
    sizes: dict[str, tuple[float, float]] | None = None,
) -> pd.DataFrame:
    """Return ``edges`` with every unset ``connect_from`` / ``connect_to`` filled in.

    ``nodes`` must carry ``name``, ``x`` and ``y``. ``sizes`` maps node name
    to (width, height); absent names use unit size. Explicit sides already
    in the table are kept, and validated. Rows are matched by position, so
    repeated index labels are fine.
    """
    centres = {name: (float(x), float(y)) for name, x, y in zip(nodes["name"], nodes["x"], nodes["y"])}
    sizes = sizes or {}

    count = len(edges)
    given_from = list(edges["connect_from"]) if "connect_from" in edges.columns else [None] * count
    given_to = list(edges["connect_to"]) if "connect_to" in edges.columns else [None] * count
    sides_from: list[object] = []
    sides_to: list[object] = []

    for src, tgt, side_from, side_to in zip(edges["from"], edges["to"], given_from, given_to):
        for name in (src, tgt):
            if name not in centres:
                raise GraphValidationError(f"Edge {src} -> {tgt} refers to unknown node {name!r}")
        for side in (side_from, side_to):
            if not _missing(side) and side not in SIDES:
                raise ValueError(f"Edge {src} -> {tgt}: unknown anchor side {side!r}")
        if _missing(side_from) or _missing(side_to):
            chosen = connect_points(
                centres[src],
                centres[tgt],
                sizes.get(src, (1.0, 1.0)),
                sizes.get(tgt, (1.0, 1.0)),
                angle,
            )
            logger.debug("Anchored %s -> %s on %s/%s", src, tgt, *chosen)
            side_from = chosen[0] if _missing(side_from) else side_from
            side_to = chosen[1] if _missing(side_to) else side_to
        sides_from.append(side_from)
        sides_to.append(side_to)

    edges = edges.copy()
    edges["connect_from"] = pd.Series(sides_from, index=edges.index, dtype=object)
    edges["connect_to"] = pd.Series(sides_to, index=edges.index, dtype=object)
    return edges
