"""Tests for styling.py — conditional edits on node and edge tables."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from semgraph import styling
from semgraph.extract import get_edges
from semgraph.graph import prepare_graph
from semgraph.styling import edit_all, edit_where, is_nonsig, is_sig, is_var


@pytest.fixture
def edges(lavaan_params) -> pd.DataFrame:
    return get_edges(lavaan_params)


def pairs(table: pd.DataFrame, column: str, value: object) -> set[tuple[str, str]]:
    sub = table[table[column] == value]
    return set(zip(sub["from"], sub["to"]))


# ─── edit_where ───────────────────────────────────────────────────────────────


class TestEditWhere:
    def test_new_column_defaults_elsewhere(self, edges):
        result = edit_where(edges, is_sig, colour="red")
        assert pairs(result, "colour", "red") == {
            ("visual", "x2"),
            ("textual", "x5"),
            ("visual", "textual"),
            ("x1", "x1"),
        }
        assert set(result["colour"]) == {"red", "black"}

    def test_existing_column_untouched_outside_mask(self, edges):
        styled = edit_all(edges, colour="blue")
        result = edit_where(styled, is_nonsig, colour="gray")
        assert pairs(result, "colour", "gray") == {("x1", "x4")}
        assert (result["colour"] != "gray").sum() == len(edges) - 1
        assert set(result.loc[result["colour"] != "gray", "colour"]) == {"blue"}

    def test_missing_pvalue_matches_neither(self, edges):
        sig = is_sig(edges)
        nonsig = is_nonsig(edges)
        unknown = edges["pval"].isna()
        assert not (sig & unknown).any()
        assert not (nonsig & unknown).any()

    def test_input_not_modified(self, edges):
        before = edges.copy()
        edit_where(edges, True, colour="red", show=False)
        pd.testing.assert_frame_equal(edges, before)
        assert "colour" not in edges.columns

    def test_idempotent(self, edges):
        once = edit_where(edges, is_sig, alpha=0.5, linetype="dashed")
        twice = edit_where(once, is_sig, alpha=0.5, linetype="dashed")
        pd.testing.assert_frame_equal(once, twice)

    def test_chaining(self, edges):
        result = edit_where(edit_where(edges, is_sig, colour="red"), is_var, colour="blue")
        assert result.set_index(["from", "to"]).loc[("x1", "x1"), "colour"] == "blue"
        assert result.set_index(["from", "to"]).loc[("visual", "x2"), "colour"] == "red"

    def test_several_columns_at_once(self, edges):
        result = edit_where(edges, is_var, show=True, size=2.0)
        row = result[(result["from"] == "x1") & (result["to"] == "x1")].iloc[0]
        assert row["show"]
        assert row["size"] == 2.0

    def test_boolean_list_mask(self, edges):
        mask = [False] * len(edges)
        mask[0] = True
        result = edit_where(edges, mask, label="first")
        assert list(result["label"]).count("first") == 1
        assert result.iloc[0]["label"] == "first"

    def test_mask_length_mismatch(self, edges):
        with pytest.raises(ValueError, match="values but the table has"):
            edit_where(edges, [True, False], colour="red")

    def test_series_mask_with_missing_values(self, edges):
        mask = pd.Series([np.nan] * len(edges), index=edges.index, dtype=object)
        mask.iloc[1] = True
        result = edit_where(edges, mask, colour="red")
        assert (result["colour"] == "red").sum() == 1

    def test_type_change_widens_column(self, edges):
        """A string written into a float column turns the column into objects."""
        result = edit_where(edges, is_var, curvature="auto")
        assert result.loc[result["from"] == result["to"], "curvature"].iloc[0] == "auto"
        assert result["curvature"].dtype == object

    def test_integer_column_keeps_dtype(self):
        table = pd.DataFrame({"from": ["a", "b"], "to": ["b", "a"], "size": [1, 2]})
        result = edit_where(table, [True, False], size=3)
        assert list(result["size"]) == [3, 2]
        assert pd.api.types.is_integer_dtype(result["size"].dtype)

    def test_integer_column_widened_for_floats(self):
        table = pd.DataFrame({"from": ["a"], "to": ["b"], "size": [1]})
        result = edit_all(table, size=1.5)
        assert result.loc[0, "size"] == 1.5

    def test_repeated_index_labels(self):
        """Rows appended with ``pd.concat`` share index labels; masks still apply row by row."""
        table = pd.concat(
            [pd.DataFrame({"from": ["a"], "to": ["a"]}), pd.DataFrame({"from": ["a"], "to": ["b"]})]
        )
        result = edit_where(table, is_var, show=False)
        assert list(result["show"]) == [False, True]

    def test_empty_table(self):
        empty = pd.DataFrame({"from": pd.Series(dtype=object), "to": pd.Series(dtype=object)})
        result = edit_all(empty, colour="red")
        assert result.empty
        assert "colour" in result.columns


# ─── Predicates ───────────────────────────────────────────────────────────────


class TestPredicates:
    def test_sign(self, edges):
        frame = pd.DataFrame({"est": [0.5, -0.2, 0.0, np.nan]})
        assert list(styling.is_pos(frame)) == [True, False, False, False]
        assert list(styling.is_neg(frame)) == [False, True, False, False]

    def test_missing_column_is_all_false(self):
        frame = pd.DataFrame({"name": ["a", "b"]})
        assert not is_sig(frame).any()
        assert not is_var(frame).any()

    def test_is_var(self, edges):
        assert pairs(edges[is_var(edges)], "op", "~~") == {("x1", "x1")}


# ─── Named helpers ────────────────────────────────────────────────────────────


class TestHelpers:
    def test_on_table(self, edges):
        result = styling.colour_nonsig(edges)
        assert pairs(result, "colour", "gray") == {("x1", "x4")}

    def test_custom_value(self, edges):
        result = styling.linetype_nonsig(edges, "dotted")
        assert pairs(result, "linetype", "dotted") == {("x1", "x4")}

    def test_color_alias(self, edges):
        assert styling.color_sig is styling.colour_sig

    def test_on_graph(self, lavaan_params):
        graph = prepare_graph(lavaan_params)
        styled = styling.alpha_nonsig(graph)
        assert styled is not graph
        assert "alpha" not in graph.edges.columns
        assert pairs(styled.edges, "alpha", 0.4) == {("x1", "x4")}

    def test_on_nodes(self, lavaan_params):
        graph = prepare_graph(lavaan_params)
        styled = styling.colour_sig(graph, "purple", element="nodes")
        # only x1 carries a (significant) mean
        nodes = styled.nodes.set_index("name")
        assert nodes.loc["x1", "colour"] == "purple"
        assert nodes.loc["x2", "colour"] == "black"
        assert "colour" not in styled.edges.columns

    def test_hide_and_show_variances(self, lavaan_params):
        graph = prepare_graph(lavaan_params)
        loop = (graph.edges["from"] == "x1") & (graph.edges["to"] == "x1")
        assert not graph.edges.loc[loop, "show"].iloc[0]

        shown = styling.show_var(graph)
        assert shown.edges.loc[loop, "show"].iloc[0]
        hidden = styling.hide_var(shown)
        assert not hidden.edges.loc[loop, "show"].iloc[0]

    def test_hide_nonsig_edges(self, edges):
        result = styling.hide_nonsig_edges(edges)
        assert pairs(result, "show", False) == {("x1", "x4"), ("x1", "x1")}

    def test_hide_sig_edges(self, edges):
        result = styling.hide_sig_edges(edges)
        assert ("visual", "x2") in pairs(result, "show", False)
        assert ("visual", "x1") not in pairs(result, "show", False)
