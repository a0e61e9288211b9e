"""Graph visualisations for structural equation models."""

from semgraph.anchors import anchor_point, connect_edges, connect_points
from semgraph.api import graph_sem, render_svg, save_svg
from semgraph.config import DEFAULT_SETTINGS, GraphSettings
from semgraph.errors import (
    GraphValidationError,
    LabelFormatError,
    LayoutError,
    ModelFormatError,
    SemGraphError,
)
from semgraph.extract import get_edges, get_nodes
from semgraph.graph import SemGraph, prepare_graph
from semgraph.layout import GridLayout, get_layout, resolve_layout
from semgraph.params import normalize_params
from semgraph.styling import (
    alpha_nonsig,
    alpha_sig,
    color_neg,
    color_nonsig,
    color_pos,
    color_sig,
    colour_neg,
    colour_nonsig,
    colour_pos,
    colour_sig,
    edit_all,
    edit_where,
    hide_nonsig_edges,
    hide_sig_edges,
    hide_var,
    label_colour_nonsig,
    label_colour_sig,
    linetype_nonsig,
    linetype_sig,
    show_var,
    size_nonsig,
    size_sig,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SETTINGS",
    "GraphSettings",
    "GraphValidationError",
    "GridLayout",
    "LabelFormatError",
    "LayoutError",
    "ModelFormatError",
    "SemGraph",
    "SemGraphError",
    "alpha_nonsig",
    "alpha_sig",
    "anchor_point",
    "color_neg",
    "color_nonsig",
    "color_pos",
    "color_sig",
    "colour_neg",
    "colour_nonsig",
    "colour_pos",
    "colour_sig",
    "connect_edges",
    "connect_points",
    "edit_all",
    "edit_where",
    "get_edges",
    "get_layout",
    "get_nodes",
    "graph_sem",
    "hide_nonsig_edges",
    "hide_sig_edges",
    "hide_var",
    "label_colour_nonsig",
    "label_colour_sig",
    "linetype_nonsig",
    "linetype_sig",
    "normalize_params",
    "prepare_graph",
    "render_svg",
    "resolve_layout",
    "save_svg",
    "show_var",
    "size_nonsig",
    "size_sig",
]
