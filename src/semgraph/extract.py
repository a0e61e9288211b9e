"""Node and edge tables derived from a model's parameter table."""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from semgraph.config import COVARIANCE_CURVATURE
from semgraph.params import (
    CANONICAL_COLUMNS,
    add_summary_columns,
    apply_labels,
    latent_variables,
    normalize_params,
)

logger = logging.getLogger(__name__)

NODE_COLUMNS: list[str] = ["name", "shape", "label"]
EDGE_COLUMNS: list[str] = ["from", "to", "arrow", "label", "connect_from", "connect_to", "curvature", "show"]
STAT_COLUMNS: list[str] = [c for c in CANONICAL_COLUMNS if c not in ("lhs", "op", "rhs")]


def node_names(params: pd.DataFrame) -> list[str]:
    """Every variable mentioned in the parameter table, in first-seen order."""
    names: dict[str, None] = {}
    for lhs, rhs in zip(params["lhs"], params["rhs"]):
        for name in (lhs, rhs):
            if name:
                names.setdefault(name, None)
    return list(names)


def get_nodes(model: object, label: str = "name", digits: int = 2) -> pd.DataFrame:
    """Build the node table.

    Latent variables (left of ``=~``) are drawn as ovals, everything else as
    rectangles. Mean/intercept estimates (``~1``) are merged onto the rows so
    they can be used in labels and conditional styling.
    """
    params = normalize_params(model)
    latent = set(latent_variables(params))
    names = node_names(params)

    nodes = pd.DataFrame(
        {
            "name": pd.Series(names, dtype=object),
            "shape": pd.Series(["oval" if n in latent else "rect" for n in names], dtype=object),
        }
    )

    means = params.loc[params["op"] == "~1", ["lhs", *STAT_COLUMNS]].drop_duplicates("lhs")
    means = means.rename(columns={"lhs": "name"})
    nodes = nodes.merge(means, on="name", how="left")
    for col in STAT_COLUMNS:
        if col not in nodes.columns:
            nodes[col] = np.nan
    nodes = add_summary_columns(nodes, digits)
    nodes["label"] = apply_labels(nodes, label, digits)

    logger.debug("Extracted %d nodes (%d latent)", len(nodes), len(latent))
    return nodes[[*NODE_COLUMNS, *[c for c in nodes.columns if c not in NODE_COLUMNS]]]


def _edge_record(row: dict, variances: bool, curvature: float) -> dict | None:
    op = row["op"]
    lhs, rhs = row["lhs"], row["rhs"]
    if not lhs or not rhs:
        return None
    if op == "=~":
        return {"from": lhs, "to": rhs, "arrow": "last", "curvature": np.nan, "show": True}
    if op == "~":
        return {"from": rhs, "to": lhs, "arrow": "last", "curvature": np.nan, "show": True}
    if op == "~~":
        if lhs == rhs:
            return {"from": lhs, "to": lhs, "arrow": "both", "curvature": np.nan, "show": variances}
        return {"from": lhs, "to": rhs, "arrow": "both", "curvature": curvature, "show": True}
    return None


def get_edges(
    model: object,
    label: str = "est_sig",
    variances: bool = False,
    digits: int = 2,
    curvature: float = COVARIANCE_CURVATURE,
) -> pd.DataFrame:
    """Build the edge table.

    Loadings point from latent to indicator, regressions from predictor to
    outcome; covariances are two-headed and curved. Variances are self-loops
    hidden unless ``variances`` is true. Anchor sides are left unset.
    """
    params = normalize_params(model)
    records: list[dict] = []
    for row in params.to_dict("records"):
        edge = _edge_record(row, variances, curvature)
        if edge is None:
            continue
        records.append({**edge, **row})

    edges = pd.DataFrame(records, columns=[*EDGE_COLUMNS, *CANONICAL_COLUMNS])
    edges["connect_from"] = pd.Series([None] * len(edges), index=edges.index, dtype=object)
    edges["connect_to"] = pd.Series([None] * len(edges), index=edges.index, dtype=object)
    edges["curvature"] = edges["curvature"].astype(float)
    edges["show"] = edges["show"].astype(bool)
    edges = add_summary_columns(edges, digits)
    edges["label"] = apply_labels(edges, label, digits)

    logger.debug("Extracted %d edges (%d shown)", len(edges), int(edges["show"].sum()))
    return edges.reset_index(drop=True)
