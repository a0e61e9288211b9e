"""SVG renderer — renders a prepared SemGraph to an SVG string."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import pandas as pd

from semgraph.anchors import anchor_point
from semgraph.config import EDGE_AESTHETICS, LABEL_AESTHETICS, NODE_AESTHETICS
from semgraph.errors import GraphValidationError

if TYPE_CHECKING:
    from semgraph.graph import SemGraph

# ─── Constants ──────────────────────────────────────────────────────────────

UNIT = 60  # pixels per data unit
PADDING = 20  # canvas padding in pixels
STROKE_SCALE = 3.0  # pixels of stroke per unit of ``size``
FONT_SCALE = 3.5  # pixels of font per unit of ``text_size``
FONT_FAMILY = "sans-serif"
LABEL_PAD = 3  # pixels around edge label text

# ggplot2 linetype names and their integer codes.
_DASHES: dict[str, str | None] = {
    "blank": None,
    "solid": "",
    "dashed": "6 4",
    "dotted": "2 3",
    "dotdash": "2 3 6 3",
    "longdash": "10 4",
    "twodash": "4 2 8 2",
}
_LINETYPE_CODES: list[str] = ["blank", "solid", "dashed", "dotted", "dotdash", "longdash", "twodash"]


def _escape(s: str) -> str:
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def _fmt(value: float) -> str:
    """Compact, stable number formatting for coordinates."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _aes(row: dict, column: str, default: object) -> object:
    value = row.get(column, default)
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
    except (TypeError, ValueError):
        pass
    return value


def _dasharray(linetype: object) -> str | None:
    """SVG dash pattern, "" for solid, None for blank."""
    if isinstance(linetype, (int, float)) and not isinstance(linetype, bool):
        code = int(linetype)
        linetype = _LINETYPE_CODES[code] if 0 <= code < len(_LINETYPE_CODES) else "solid"
    return _DASHES.get(str(linetype), "")


def _stroke_attrs(colour: object, size: object, linetype: object, alpha: object) -> str | None:
    dashes = _dasharray(linetype)
    if dashes is None:
        return None
    attrs = f'stroke="{_escape(str(colour))}" stroke-width="{_fmt(float(size) * STROKE_SCALE)}"'
    if dashes:
        attrs += f' stroke-dasharray="{dashes}"'
    if float(alpha) < 1:
        attrs += f' opacity="{_fmt(float(alpha))}"'
    return attrs


def _text(x: float, y: float, label: str, size: float, colour: object, alpha: object) -> str:
    lines = _escape(label).split("\n")
    font = f'font-family="{FONT_FAMILY}" font-size="{_fmt(size)}" fill="{_escape(str(colour))}"'
    if float(alpha) < 1:
        font += f' fill-opacity="{_fmt(float(alpha))}"'
    if len(lines) == 1:
        return (
            f'<text x="{_fmt(x)}" y="{_fmt(y)}" dominant-baseline="central" text-anchor="middle" {font}>'
            f"{lines[0]}</text>"
        )
    step = size + 2
    start_y = y - step * (len(lines) - 1) / 2
    tspans = "".join(
        f'<tspan x="{_fmt(x)}" y="{_fmt(start_y + i * step)}">{line}</tspan>' for i, line in enumerate(lines)
    )
    return f'<text dominant-baseline="central" text-anchor="middle" {font}>{tspans}</text>'


# ─── Canvas ─────────────────────────────────────────────────────────────────


class _Canvas:
    """Maps data coordinates (y up) onto pixel coordinates (y down)."""

    def __init__(self, min_x: float, max_x: float, min_y: float, max_y: float) -> None:
        self.min_x = min_x
        self.max_y = max_y
        self.width = PADDING * 2 + (max_x - min_x) * UNIT
        self.height = PADDING * 2 + (max_y - min_y) * UNIT

    def px(self, x: float) -> float:
        return PADDING + (x - self.min_x) * UNIT

    def py(self, y: float) -> float:
        return PADDING + (self.max_y - y) * UNIT

    def point(self, xy: tuple[float, float]) -> tuple[float, float]:
        return (self.px(xy[0]), self.py(xy[1]))


# ─── Edge Geometry ──────────────────────────────────────────────────────────

_OUTWARD: dict[str, tuple[float, float]] = {
    "top": (0.0, -1.0),
    "bottom": (0.0, 1.0),
    "left": (-1.0, 0.0),
    "right": (1.0, 0.0),
}


def _curve_control(
    start: tuple[float, float], end: tuple[float, float], curvature: float
) -> tuple[float, float] | None:
    """Control point of a quadratic curve leaving the chord at ``curvature / 2`` degrees."""
    if math.isnan(curvature) or curvature == 0:
        return None
    dx, dy = end[0] - start[0], end[1] - start[1]
    length = math.hypot(dx, dy)
    if length == 0:
        return None
    curvature = max(-179.0, min(179.0, curvature))
    offset = length / 2 * math.tan(math.radians(curvature) / 2)
    # Left-hand normal in screen coordinates.
    nx_, ny_ = dy / length, -dx / length
    return ((start[0] + end[0]) / 2 + nx_ * offset, (start[1] + end[1]) / 2 + ny_ * offset)


def _loop(anchor: tuple[float, float], side: str, diameter: float) -> tuple[tuple, tuple, tuple, tuple]:
    """(start, control, end, label point) of a variance loop on ``side`` of a node."""
    ox, oy = _OUTWARD.get(side, _OUTWARD["top"])
    radius = diameter / 2
    tx, ty = -oy, ox
    start = (anchor[0] - tx * radius, anchor[1] - ty * radius)
    end = (anchor[0] + tx * radius, anchor[1] + ty * radius)
    control = (anchor[0] + ox * diameter * 2, anchor[1] + oy * diameter * 2)
    label = (anchor[0] + ox * (diameter + LABEL_PAD * 4), anchor[1] + oy * (diameter + LABEL_PAD * 4))
    return start, control, end, label


# ─── Public Renderer ────────────────────────────────────────────────────────


class SvgRenderer:
    """SVG renderer — consumes a prepared SemGraph, produces an SVG string."""

    def render(self, graph: SemGraph) -> str:
        if not graph.has_coordinates():
            raise GraphValidationError("Nodes need x and y coordinates before rendering")
        nodes = graph.nodes.to_dict("records")
        if not nodes:
            return ""
        settings = graph.settings
        sizes = graph.node_sizes()
        centres = {n["name"]: (float(n["x"]), float(n["y"])) for n in nodes}

        shown = [e for e in graph.edges.to_dict("records") if bool(_aes(e, "show", True))]
        has_loops = any(e["from"] == e["to"] for e in shown)
        margin = settings.variance_diameter * 1.5 if has_loops else 0.0

        canvas = _Canvas(
            min(x - sizes[n][0] / 2 for n, (x, _) in centres.items()) - margin,
            max(x + sizes[n][0] / 2 for n, (x, _) in centres.items()) + margin,
            min(y - sizes[n][1] / 2 for n, (_, y) in centres.items()) - margin,
            max(y + sizes[n][1] / 2 for n, (_, y) in centres.items()) + margin,
        )

        markers: dict[str, int] = {}
        edge_parts: list[str] = []
        label_parts: list[str] = []
        for edge in shown:
            colour = str(_aes(edge, "colour", EDGE_AESTHETICS["colour"]))
            marker_id = markers.setdefault(colour, len(markers))
            path, label_xy = self._edge_path(edge, centres, sizes, canvas, settings.variance_diameter * UNIT)
            svg = self._render_edge(edge, path, marker_id)
            if svg:
                edge_parts.append(svg)
            label = str(_aes(edge, "label", ""))
            if label:
                label_parts.append(self._render_edge_label(edge, label, label_xy, settings.text_size))

        w, h = _fmt(canvas.width), _fmt(canvas.height)
        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{w}" height="{h}" viewBox="0 0 {w} {h}">',
            "<defs>",
        ]
        for colour, idx in markers.items():
            fill = _escape(colour)
            parts.extend(
                [
                    f'  <marker id="arrowhead-{idx}" markerWidth="10" markerHeight="7" refX="10" refY="3.5" '
                    'orient="auto" markerUnits="userSpaceOnUse">',
                    f'    <polygon points="0 0, 10 3.5, 0 7" fill="{fill}"/>',
                    "  </marker>",
                    f'  <marker id="arrowhead-rev-{idx}" markerWidth="10" markerHeight="7" refX="0" refY="3.5" '
                    'orient="auto" markerUnits="userSpaceOnUse">',
                    f'    <polygon points="10 0, 0 3.5, 10 7" fill="{fill}"/>',
                    "  </marker>",
                ]
            )
        parts.append("</defs>")
        parts.append(f'<rect width="{w}" height="{h}" fill="white"/>')

        # Edges behind nodes, labels on top of everything.
        parts.extend(edge_parts)
        for node in nodes:
            parts.append(self._render_node(node, centres, sizes, canvas, settings.text_size))
        parts.extend(label_parts)

        parts.append("</svg>")
        return "\n".join(parts)

    # ── Nodes ────────────────────────────────────────────────────────────────

    def _render_node(self, node: dict, centres: dict, sizes: dict, canvas: _Canvas, text_size: float) -> str:
        name = node["name"]
        cx, cy = canvas.point(centres[name])
        w, h = sizes[name][0] * UNIT, sizes[name][1] * UNIT

        fill = _escape(str(_aes(node, "fill", NODE_AESTHETICS["fill"])))
        stroke = _stroke_attrs(
            _aes(node, "colour", NODE_AESTHETICS["colour"]),
            _aes(node, "size", NODE_AESTHETICS["size"]),
            _aes(node, "linetype", NODE_AESTHETICS["linetype"]),
            1.0,
        )
        style = f'fill="{fill}" ' + (stroke or 'stroke="none"')
        alpha = float(_aes(node, "alpha", NODE_AESTHETICS["alpha"]))
        if alpha < 1:
            style += f' fill-opacity="{_fmt(alpha)}"'

        if node.get("shape") == "oval":
            shape_svg = f'<ellipse cx="{_fmt(cx)}" cy="{_fmt(cy)}" rx="{_fmt(w / 2)}" ry="{_fmt(h / 2)}" {style}/>'
        else:
            shape_svg = (
                f'<rect x="{_fmt(cx - w / 2)}" y="{_fmt(cy - h / 2)}" width="{_fmt(w)}" height="{_fmt(h)}" {style}/>'
            )

        label = str(_aes(node, "label", name))
        if not label:
            return shape_svg
        size = float(_aes(node, "label_size", text_size)) * FONT_SCALE
        text_svg = _text(
            cx,
            cy,
            label,
            size,
            _aes(node, "label_colour", LABEL_AESTHETICS["label_colour"]),
            _aes(node, "label_alpha", LABEL_AESTHETICS["label_alpha"]),
        )
        return f"{shape_svg}\n{text_svg}"

    # ── Edges ────────────────────────────────────────────────────────────────

    def _edge_path(
        self, edge: dict, centres: dict, sizes: dict, canvas: _Canvas, loop_diameter: float
    ) -> tuple[str, tuple[float, float]]:
        """SVG path data and label anchor (pixels) for one edge."""
        src, tgt = edge["from"], edge["to"]
        side_from = str(_aes(edge, "connect_from", "top"))
        side_to = str(_aes(edge, "connect_to", "top"))
        start = canvas.point(anchor_point(*centres[src], side_from, *sizes[src]))

        if src == tgt:
            a, c, b, label_xy = _loop(start, side_from, loop_diameter)
            path = f"M {_fmt(a[0])} {_fmt(a[1])} Q {_fmt(c[0])} {_fmt(c[1])} {_fmt(b[0])} {_fmt(b[1])}"
            return path, label_xy

        end = canvas.point(anchor_point(*centres[tgt], side_to, *sizes[tgt]))
        control = _curve_control(start, end, float(_aes(edge, "curvature", math.nan)))
        if control is None:
            path = f"M {_fmt(start[0])} {_fmt(start[1])} L {_fmt(end[0])} {_fmt(end[1])}"
            return path, ((start[0] + end[0]) / 2, (start[1] + end[1]) / 2)
        path = (
            f"M {_fmt(start[0])} {_fmt(start[1])} "
            f"Q {_fmt(control[0])} {_fmt(control[1])} {_fmt(end[0])} {_fmt(end[1])}"
        )
        mid = ((start[0] + 2 * control[0] + end[0]) / 4, (start[1] + 2 * control[1] + end[1]) / 4)
        return path, mid

    def _render_edge(self, edge: dict, path: str, marker_id: int) -> str:
        stroke = _stroke_attrs(
            _aes(edge, "colour", EDGE_AESTHETICS["colour"]),
            _aes(edge, "size", EDGE_AESTHETICS["size"]),
            _aes(edge, "linetype", EDGE_AESTHETICS["linetype"]),
            _aes(edge, "alpha", EDGE_AESTHETICS["alpha"]),
        )
        if stroke is None:
            return ""
        arrow = _aes(edge, "arrow", "last")
        markers = ""
        if arrow in ("last", "both"):
            markers += f' marker-end="url(#arrowhead-{marker_id})"'
        if arrow == "both":
            markers += f' marker-start="url(#arrowhead-rev-{marker_id})"'
        return f'<path d="{path}" fill="none" {stroke}{markers}/>'

    def _render_edge_label(self, edge: dict, label: str, xy: tuple[float, float], text_size: float) -> str:
        size = float(_aes(edge, "label_size", text_size)) * FONT_SCALE
        lines = label.split("\n")
        box_w = max(len(line) for line in lines) * size * 0.6 + 2 * LABEL_PAD
        box_h = len(lines) * (size + 2) + 2 * LABEL_PAD
        fill = _escape(str(_aes(edge, "label_fill", LABEL_AESTHETICS["label_fill"])))
        alpha = float(_aes(edge, "label_alpha", LABEL_AESTHETICS["label_alpha"]))
        box = (
            f'<rect x="{_fmt(xy[0] - box_w / 2)}" y="{_fmt(xy[1] - box_h / 2)}" '
            f'width="{_fmt(box_w)}" height="{_fmt(box_h)}" fill="{fill}"'
            + (f' fill-opacity="{_fmt(alpha)}"' if alpha < 1 else "")
            + "/>"
        )
        text = _text(
            xy[0], xy[1], label, size, _aes(edge, "label_colour", LABEL_AESTHETICS["label_colour"]), alpha
        )
        return f"{box}\n{text}"
