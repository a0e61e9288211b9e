"""Conditional styling of node and edge tables.

Every function returns a new table (or graph); inputs are never modified.
``edit_where`` is the primitive: it overwrites columns on the rows picked by
a predicate, creating missing columns with their default value first. The
named helpers below are ``edit_where`` with a fixed predicate.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, Union

import numpy as np
import pandas as pd
from pandas.api import types as ptypes

from semgraph.config import EDGE_AESTHETICS, LABEL_AESTHETICS, NODE_AESTHETICS, SIG_LEVEL

logger = logging.getLogger(__name__)

Where = Union[Callable[[pd.DataFrame], Any], pd.Series, np.ndarray, Iterable[bool], bool]

COLUMN_DEFAULTS: dict[str, object] = {
    **EDGE_AESTHETICS,
    **NODE_AESTHETICS,
    **LABEL_AESTHETICS,
    "show": True,
    "label": "",
}


def column_default(column: str) -> object:
    """Value a newly created column starts with."""
    return COLUMN_DEFAULTS.get(column)


def _mask(table: pd.DataFrame, where: Where) -> pd.Series:
    if callable(where):
        where = where(table)
    if isinstance(where, (bool, np.bool_)):
        return pd.Series(bool(where), index=table.index)
    if isinstance(where, pd.Series):
        mask = where if where.index.equals(table.index) else where.reindex(table.index)
    else:
        values = list(where)
        if len(values) != len(table):
            raise ValueError(f"Condition has {len(values)} values but the table has {len(table)} rows")
        mask = pd.Series(values, index=table.index)
    return mask.fillna(False).astype(bool)


def _holds(series: pd.Series, value: object) -> bool:
    """Whether ``value`` can be stored in ``series`` without changing its dtype."""
    if ptypes.is_object_dtype(series.dtype):
        return True
    if ptypes.is_bool_dtype(series.dtype):
        return isinstance(value, (bool, np.bool_))
    if ptypes.is_float_dtype(series.dtype):
        return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, (bool, np.bool_))
    if ptypes.is_integer_dtype(series.dtype):
        return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))
    return False


def edit_where(table: pd.DataFrame, where: Where, **values: object) -> pd.DataFrame:
    """Set ``values`` on the rows of ``table`` where ``where`` holds.

    ``where`` is a boolean mask or a function from the table to one, e.g.
    ``lambda t: t["est"] > 0``. Missing values in the mask count as false.
    Columns that do not exist yet are first filled with their default
    (see ``column_default``) on every row.
    """
    table = table.copy()
    mask = _mask(table, where)
    for column, value in values.items():
        if column not in table.columns:
            table[column] = pd.Series([column_default(column)] * len(table), index=table.index, dtype=object)
        if not _holds(table[column], value):
            table[column] = table[column].astype(object)
        table.loc[mask.to_numpy(), column] = value
    logger.debug("Edited %s on %d of %d rows", sorted(values), int(mask.sum()), len(table))
    return table


def edit_all(table: pd.DataFrame, **values: object) -> pd.DataFrame:
    """Set ``values`` on every row."""
    return edit_where(table, True, **values)


# ─── Predicates ───────────────────────────────────────────────────────────────


def _numeric(table: pd.DataFrame, column: str) -> pd.Series:
    if column not in table.columns:
        return pd.Series(np.nan, index=table.index, dtype=float)
    return pd.to_numeric(table[column], errors="coerce")


def is_sig(table: pd.DataFrame) -> pd.Series:
    return _numeric(table, "pval") < SIG_LEVEL


def is_nonsig(table: pd.DataFrame) -> pd.Series:
    return _numeric(table, "pval") >= SIG_LEVEL


def is_pos(table: pd.DataFrame) -> pd.Series:
    return _numeric(table, "est") > 0


def is_neg(table: pd.DataFrame) -> pd.Series:
    return _numeric(table, "est") < 0


def is_var(table: pd.DataFrame) -> pd.Series:
    """Variance rows: self-loop edges."""
    if "from" not in table.columns or "to" not in table.columns:
        return pd.Series(False, index=table.index)
    return table["from"] == table["to"]


# ─── Graph-level helpers ──────────────────────────────────────────────────────


def _apply(target: Any, element: str | Iterable[str], edit: Callable[[pd.DataFrame], pd.DataFrame]) -> Any:
    """Run ``edit`` on a table, or on the named tables of a ``SemGraph``."""
    if isinstance(target, pd.DataFrame):
        return edit(target)
    elements = (element,) if isinstance(element, str) else tuple(element)
    for name in elements:
        target = target.replace_table(name, edit(target.table(name)))
    return target


def _conditional(column: str, predicate: Callable[[pd.DataFrame], pd.Series], default: object, doc: str):
    def helper(target: Any, value: object = default, element: str | Iterable[str] = "edges") -> Any:
        return _apply(target, element, lambda table: edit_where(table, predicate, **{column: value}))

    helper.__doc__ = doc
    return helper


colour_sig = _conditional("colour", is_sig, "black", "Colour significant rows (p < .05).")
colour_nonsig = _conditional("colour", is_nonsig, "gray", "Colour non-significant rows.")
colour_pos = _conditional("colour", is_pos, "darkgreen", "Colour rows with a positive estimate.")
colour_neg = _conditional("colour", is_neg, "red", "Colour rows with a negative estimate.")
alpha_sig = _conditional("alpha", is_sig, 1.0, "Set opacity of significant rows.")
alpha_nonsig = _conditional("alpha", is_nonsig, 0.4, "Set opacity of non-significant rows.")
linetype_sig = _conditional("linetype", is_sig, "solid", "Set linetype of significant rows.")
linetype_nonsig = _conditional("linetype", is_nonsig, "dashed", "Set linetype of non-significant rows.")
size_sig = _conditional("size", is_sig, 1.0, "Set line width of significant rows.")
size_nonsig = _conditional("size", is_nonsig, 0.5, "Set line width of non-significant rows.")
label_colour_sig = _conditional("label_colour", is_sig, "black", "Colour labels of significant rows.")
label_colour_nonsig = _conditional("label_colour", is_nonsig, "gray", "Colour labels of non-significant rows.")

color_sig = colour_sig
color_nonsig = colour_nonsig
color_pos = colour_pos
color_neg = colour_neg


def hide_sig_edges(target: Any) -> Any:
    """Hide significant edges."""
    return _apply(target, "edges", lambda table: edit_where(table, is_sig, show=False))


def hide_nonsig_edges(target: Any) -> Any:
    """Hide non-significant edges."""
    return _apply(target, "edges", lambda table: edit_where(table, is_nonsig, show=False))


def hide_var(target: Any) -> Any:
    """Hide variance loops."""
    return _apply(target, "edges", lambda table: edit_where(table, is_var, show=False))


def show_var(target: Any) -> Any:
    """Show variance loops."""
    return _apply(target, "edges", lambda table: edit_where(table, is_var, show=True))
