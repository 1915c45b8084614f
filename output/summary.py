"""Summary tables for flow results.

Renders the pairing-level flow table as plain text, GitHub markdown or LaTeX.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import cast

import numpy as np
import pandas as pd
from tabulate import tabulate

from bumblebee.estimators.base import FlowResult
from bumblebee.exceptions import ValidationError

__all__ = ["DEFAULT_SUMMARY_COLUMNS", "flows_summary"]

DEFAULT_SUMMARY_COLUMNS: tuple[str, ...] = (
    "H1_group",
    "H2_group",
    "num_linked_pairs_observed",
    "p_hat",
    "theta_hat",
    "lwr_ci_goodman",
    "upr_ci_goodman",
)

_TABLEFMT = {"text": "simple", "github": "github", "latex": "latex_booktabs"}


def _format_cell(val: object, digits: int) -> str:
    if isinstance(val, (float, np.floating)):
        if np.isnan(val):
            return "NA"
        return f"{float(val):.{digits}f}"
    return "" if val is None else str(val)


def flows_summary(
    result: FlowResult | pd.DataFrame,
    *,
    output: str = "text",
    digits: int = 4,
    columns: Sequence[str] | None = None,
) -> str:
    """Render a flow table.

    Undefined estimates (pairings without possible sampled pairs) print as
    ``NA``. ``columns`` defaults to the pairing, observed count, point
    estimates and the population-level Goodman interval.
    """
    df = result.flows if isinstance(result, FlowResult) else result
    if not isinstance(df, pd.DataFrame):
        raise ValidationError("flows_summary expects a FlowResult or a pandas DataFrame")
    fmt = str(output).lower()
    if fmt not in _TABLEFMT:
        raise ValidationError(f"output must be one of {set(_TABLEFMT)}; got {output!r}.")

    cols = list(columns) if columns is not None else [c for c in DEFAULT_SUMMARY_COLUMNS if c in df.columns]
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValidationError(f"Requested column(s) not found: {missing}")

    rows = [[_format_cell(v, digits) for v in rec] for rec in df[cols].itertuples(index=False)]
    return cast("str", tabulate(rows, headers=cols, stralign="center", tablefmt=_TABLEFMT[fmt]))
