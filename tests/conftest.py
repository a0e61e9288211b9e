"""Shared parameter-table fixtures in the three supported dialects."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

NAN = np.nan

LAVAAN_COLUMNS = ["lhs", "op", "rhs", "est", "se", "pvalue", "ci.lower", "ci.upper", "std.all"]

LAVAAN_ROWS = [
    ("visual", "=~", "x1", 1.00, 0.00, NAN, 1.00, 1.00, 0.77),
    ("visual", "=~", "x2", 0.55, 0.10, 0.0001, 0.35, 0.75, 0.42),
    ("textual", "=~", "x4", 1.00, 0.00, NAN, 1.00, 1.00, 0.85),
    ("textual", "=~", "x5", 1.11, 0.07, 0.0000, 0.98, 1.24, 0.86),
    ("textual", "~", "visual", 0.40, 0.08, 0.0000, 0.24, 0.56, 0.45),
    ("x1", "~~", "x4", 0.10, 0.05, 0.2000, -0.01, 0.21, 0.09),
    ("x1", "~~", "x1", 0.55, 0.11, 0.0000, 0.33, 0.77, 0.40),
    ("x1", "~1", "", 4.94, 0.07, 0.0000, 4.81, 5.07, 4.20),
    ("ind", ":=", "a*b", 0.20, 0.05, 0.0000, 0.10, 0.30, 0.20),
]


@pytest.fixture
def lavaan_params() -> pd.DataFrame:
    return pd.DataFrame(LAVAAN_ROWS, columns=LAVAAN_COLUMNS)


@pytest.fixture
def semopy_params() -> pd.DataFrame:
    """semopy writes loadings as ``indicator ~ latent`` and "-" for fixed p-values."""
    return pd.DataFrame(
        [
            ("x1", "~", "visual", 1.00, "-", "-"),
            ("x2", "~", "visual", 0.55, 0.10, 0.0001),
            ("visual", "~", "z", 0.30, 0.10, 0.0300),
            ("x1", "~~", "x2", 0.12, 0.05, 0.0200),
            ("visual", "~~", "visual", 0.80, 0.10, 0.0000),
        ],
        columns=["lval", "op", "rval", "Estimate", "Std. Err", "p-value"],
    )


@pytest.fixture
def mplus_params() -> pd.DataFrame:
    return pd.DataFrame(
        [
            ("F1.BY", "Y1", 1.00, 0.00, 999.0),
            ("F1.BY", "Y2", 0.80, 0.10, 0.000),
            ("F2.ON", "F1", 0.50, 0.20, 0.012),
            ("Y1.WITH", "Y2", 0.10, 0.05, 0.300),
            ("Intercepts", "Y1", 2.10, 0.05, 0.000),
            ("Residual.Variances", "Y1", 0.40, 0.05, 0.000),
            ("Thresholds", "U1$1", 0.30, 0.05, 0.000),
        ],
        columns=["paramHeader", "param", "est", "se", "pval"],
    )


@pytest.fixture
def two_node_edges() -> pd.DataFrame:
    return pd.DataFrame({"from": ["x"], "to": ["y"]})
