"""Parameter tables — normalise estimator output and format labels.

Three parameter-table dialects are understood and mapped onto one canonical
frame with columns ``CANONICAL_COLUMNS``:

  * lavaan-style  ``lhs / op / rhs / est / se / pvalue / ci.lower / ci.upper``
  * semopy-style  ``lval / op / rval / Estimate / Std. Err / p-value``
  * Mplus-style   ``paramHeader / param / est / se / pval``

Labels are produced from a closed set of named formatters or from a
template string whose fields are checked against those names and the
table's own columns. Nothing is evaluated.
"""

from __future__ import annotations

import logging
import math
import string
from collections.abc import Callable, Iterable

import numpy as np
import pandas as pd

from semgraph.errors import LabelFormatError, ModelFormatError

logger = logging.getLogger(__name__)

CANONICAL_COLUMNS: list[str] = ["lhs", "op", "rhs", "est", "se", "pval", "ci_lower", "ci_upper", "est_std"]
NUMERIC_COLUMNS: list[str] = ["est", "se", "pval", "ci_lower", "ci_upper", "est_std"]
KNOWN_OPS: list[str] = ["=~", "~", "~~", "~1"]

_LAVAAN_RENAMES: dict[str, str] = {
    "pvalue": "pval",
    "ci.lower": "ci_lower",
    "ci.upper": "ci_upper",
    "std.all": "est_std",
}

_SEMOPY_RENAMES: dict[str, str] = {
    "lval": "lhs",
    "rval": "rhs",
    "Estimate": "est",
    "Std. Err": "se",
    "p-value": "pval",
    "Est. Std": "est_std",
}

_MPLUS_RENAMES: dict[str, str] = {
    "low2.5": "ci_lower",
    "up2.5": "ci_upper",
}


# ─── Normalisation ────────────────────────────────────────────────────────────


def _finish(frame: pd.DataFrame) -> pd.DataFrame:
    """Coerce a renamed frame to the canonical column set and operator vocabulary."""
    frame = frame.copy()
    for col in CANONICAL_COLUMNS:
        if col not in frame.columns:
            frame[col] = np.nan if col in NUMERIC_COLUMNS else ""
    for col in NUMERIC_COLUMNS:
        frame[col] = pd.to_numeric(frame[col], errors="coerce")
    for col in ("lhs", "op", "rhs"):
        frame[col] = frame[col].fillna("").astype(str).str.strip()

    unknown = ~frame["op"].isin(KNOWN_OPS)
    if unknown.any():
        logger.debug("Dropping %d parameter rows with unsupported operators: %s",
                     int(unknown.sum()), sorted(set(frame.loc[unknown, "op"])))
    frame = frame.loc[~unknown, CANONICAL_COLUMNS]
    return frame.reset_index(drop=True)


def _from_lavaan(frame: pd.DataFrame) -> pd.DataFrame:
    renamed = frame.rename(columns=_LAVAAN_RENAMES)
    if "est_std" not in renamed.columns and "est.std" in renamed.columns:
        renamed = renamed.rename(columns={"est.std": "est_std"})
    return _finish(renamed)


def _from_semopy(frame: pd.DataFrame, latent: Iterable[str] | None) -> pd.DataFrame:
    """semopy reports loadings as ``indicator ~ latent``; turn those back into ``=~``."""
    renamed = _finish(frame.rename(columns=_SEMOPY_RENAMES))
    latent_set = set(latent or ())
    latent_set.update(renamed.loc[renamed["op"] == "=~", "lhs"])
    if not latent_set:
        return renamed

    loading = (renamed["op"] == "~") & renamed["rhs"].isin(latent_set) & ~renamed["lhs"].isin(latent_set)
    if loading.any():
        flipped = renamed.loc[loading]
        renamed.loc[loading, "lhs"] = flipped["rhs"].to_numpy()
        renamed.loc[loading, "rhs"] = flipped["lhs"].to_numpy()
        renamed.loc[loading, "op"] = "=~"
        logger.debug("Recovered %d loadings from semopy regression rows", int(loading.sum()))
    return renamed


def _split_mplus_header(header: str, param: str) -> tuple[str, str, str] | None:
    """Map one Mplus (paramHeader, param) pair onto (lhs, op, rhs)."""
    if header.endswith(".BY"):
        return (header[: -len(".BY")], "=~", param)
    if header.endswith(".ON"):
        return (header[: -len(".ON")], "~", param)
    if header.endswith(".WITH"):
        return (header[: -len(".WITH")], "~~", param)
    if header in ("Means", "Intercepts"):
        return (param, "~1", "")
    if header in ("Variances", "Residual.Variances"):
        return (param, "~~", param)
    return None


def _from_mplus(frame: pd.DataFrame) -> pd.DataFrame:
    rows: list[dict[str, object]] = []
    skipped: set[str] = set()
    renamed = frame.rename(columns=_MPLUS_RENAMES)
    for record in renamed.to_dict("records"):
        header = str(record.get("paramHeader", ""))
        split = _split_mplus_header(header, str(record.get("param", "")))
        if split is None:
            skipped.add(header)
            continue
        lhs, op, rhs = split
        rows.append({**record, "lhs": lhs, "op": op, "rhs": rhs})
    if skipped:
        logger.debug("Skipping Mplus parameter headers: %s", sorted(skipped))
    params = _finish(pd.DataFrame(rows, columns=[*renamed.columns, "lhs", "op", "rhs"]))
    # Mplus reports 999 for the p-values of fixed parameters.
    params.loc[params["pval"] == 999, "pval"] = np.nan
    return params


def normalize_params(model: object, latent: Iterable[str] | None = None) -> pd.DataFrame:
    """Return the canonical parameter table for ``model``.

    ``model`` may be a parameter-table DataFrame in any supported dialect, or
    a fitted model object exposing ``inspect()`` (semopy). ``latent`` names
    latent variables explicitly; semopy models report them in ``vars``.
    """
    frame = model
    if not isinstance(model, pd.DataFrame):
        inspect = getattr(model, "inspect", None)
        if not callable(inspect):
            raise ModelFormatError(
                f"Cannot read parameters from {type(model).__name__}: expected a DataFrame or a fitted model"
            )
        try:
            frame = inspect(std_est=True)
        except TypeError:
            frame = inspect()
        model_vars = getattr(model, "vars", None)
        if latent is None and isinstance(model_vars, dict):
            latent = model_vars.get("latent")
        if not isinstance(frame, pd.DataFrame):
            raise ModelFormatError(f"{type(model).__name__}.inspect() did not return a DataFrame")

    columns = set(frame.columns)
    if {"lhs", "op", "rhs"} <= columns:
        params = _from_lavaan(frame)
    elif {"lval", "op", "rval"} <= columns:
        params = _from_semopy(frame, latent)
    elif {"paramHeader", "param"} <= columns:
        params = _from_mplus(frame)
    else:
        raise ModelFormatError(
            "Unrecognised parameter table; expected lhs/op/rhs, lval/op/rval or paramHeader/param columns, "
            f"got {sorted(map(str, columns))}"
        )

    logger.debug("Normalised parameter table with %d rows", len(params))
    return params


def latent_variables(params: pd.DataFrame) -> list[str]:
    """Names on the left of ``=~``, in first-seen order."""
    return list(dict.fromkeys(params.loc[params["op"] == "=~", "lhs"]))


# ─── Formatting ───────────────────────────────────────────────────────────────


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def format_number(value: object, digits: int = 2) -> str:
    """Fixed-point string, or "" for missing values."""
    if _is_missing(value):
        return ""
    number = float(value)
    if math.isinf(number):
        return "Inf" if number > 0 else "-Inf"
    text = f"{number:.{digits}f}"
    # Avoid "-0.00".
    if float(text) == 0:
        text = f"{0:.{digits}f}"
    return text


def format_pval(value: object, digits: int = 3) -> str:
    if _is_missing(value):
        return ""
    threshold = 10 ** -digits
    if float(value) < threshold:
        return "<" + f"{threshold:.{digits}f}".lstrip("0")
    return f"{float(value):.{digits}f}".lstrip("0") or "0"


def significance_stars(pval: object) -> str:
    """``***`` p<.001, ``**`` p<.01, ``*`` p<.05."""
    if _is_missing(pval):
        return ""
    p = float(pval)
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    if p < 0.05:
        return "*"
    return ""


def format_confint(lower: object, upper: object, digits: int = 2) -> str:
    if _is_missing(lower) or _is_missing(upper):
        return ""
    return f"[{format_number(lower, digits)}, {format_number(upper, digits)}]"


def _row_name(row: dict) -> str:
    if "name" in row and not _is_missing(row["name"]):
        return str(row["name"])
    if row.get("lhs"):
        return f"{row.get('lhs', '')}{row.get('op', '')}{row.get('rhs', '')}"
    return f"{row.get('from', '')}.{row.get('to', '')}"


def _joined(*parts: str) -> str:
    return "\n".join(part for part in parts if part)


Formatter = Callable[[dict, int], str]

LABEL_FORMATTERS: dict[str, Formatter] = {
    "name": lambda row, d: _row_name(row),
    "est": lambda row, d: format_number(row.get("est"), d),
    "se": lambda row, d: format_number(row.get("se"), d),
    "pval": lambda row, d: format_pval(row.get("pval")),
    "est_sig": lambda row, d: (
        format_number(row.get("est"), d) + significance_stars(row.get("pval")) if not _is_missing(row.get("est")) else ""
    ),
    "est_std": lambda row, d: format_number(row.get("est_std"), d),
    "est_sig_std": lambda row, d: (
        format_number(row.get("est_std"), d) + significance_stars(row.get("pval"))
        if not _is_missing(row.get("est_std"))
        else ""
    ),
    "confint": lambda row, d: format_confint(row.get("ci_lower"), row.get("ci_upper"), d),
    "est_ci": lambda row, d: _joined(
        format_number(row.get("est"), d), format_confint(row.get("ci_lower"), row.get("ci_upper"), d)
    ),
    "est_sig_ci": lambda row, d: _joined(
        LABEL_FORMATTERS["est_sig"](row, d), format_confint(row.get("ci_lower"), row.get("ci_upper"), d)
    ),
}


def _template_fields(template: str) -> list[str]:
    try:
        parsed = list(string.Formatter().parse(template))
    except ValueError as exc:
        raise LabelFormatError(f"Malformed label template {template!r}: {exc}") from exc
    fields: list[str] = []
    for _, field, _, _ in parsed:
        if field is None:
            continue
        if not field or not field.isidentifier():
            raise LabelFormatError(f"Label template {template!r} may only reference plain names, got {{{field}}}")
        fields.append(field)
    return fields


def label_maker(label: str, columns: Iterable[str], digits: int = 2) -> Callable[[dict], str]:
    """Compile ``label`` into a function from a row dict to label text.

    ``label`` is a formatter name (see ``LABEL_FORMATTERS``), a column name,
    or a template like ``"{est_sig}\\n{confint}"``.
    """
    column_set = set(columns)
    if label in LABEL_FORMATTERS:
        formatter = LABEL_FORMATTERS[label]
        return lambda row: formatter(row, digits)
    if "{" not in label:
        if label in column_set:
            return lambda row: "" if _is_missing(row.get(label)) else str(row.get(label))
        raise LabelFormatError(
            f"Unknown label {label!r}; use one of {sorted(LABEL_FORMATTERS)}, a column name, or a template"
        )

    fields = _template_fields(label)
    unknown = [f for f in fields if f not in LABEL_FORMATTERS and f not in column_set]
    if unknown:
        raise LabelFormatError(f"Label template {label!r} references unknown fields: {unknown}")

    def render(row: dict) -> str:
        values = {}
        for field in fields:
            if field in LABEL_FORMATTERS:
                values[field] = LABEL_FORMATTERS[field](row, digits)
            else:
                raw = row.get(field)
                values[field] = "" if _is_missing(raw) else raw
        try:
            return label.format(**values)
        except (ValueError, TypeError) as exc:
            raise LabelFormatError(f"Cannot format label template {label!r}: {exc}") from exc

    return render


def apply_labels(table: pd.DataFrame, label: str, digits: int = 2) -> pd.Series:
    """Label text for every row of ``table``."""
    make = label_maker(label, table.columns, digits)
    return pd.Series([make(row) for row in table.to_dict("records")], index=table.index, dtype=object)


def add_summary_columns(table: pd.DataFrame, digits: int = 2) -> pd.DataFrame:
    """Attach the formatted ``confint`` / ``est_sig`` text columns."""
    table = table.copy()
    records = table.to_dict("records")
    table["confint"] = [LABEL_FORMATTERS["confint"](row, digits) for row in records]
    table["est_sig"] = [LABEL_FORMATTERS["est_sig"](row, digits) for row in records]
    return table
