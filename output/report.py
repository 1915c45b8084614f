"""Flow report assembly.

Attaches simultaneous confidence intervals to the pairing-level flow table and
orders the rows by descending observed linked-pair count.

Population-level intervals are computed on the estimated population linked
pairs rescaled to the observed total,

    weighted_est = est_linkedpairs_in_population / sum(est) * sum(observed),

so that methods designed for multinomial counts see data on the same scale as
the observed sample.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd

from bumblebee.core.intervals import multinomial_ci, qhurst_acswr_ci, qhurst_coinmind_ci
from bumblebee.estimators.base import ReportOptions, ci_level_to_alpha
from bumblebee.exceptions import ValidationError
from bumblebee.utils.helpers import trace

__all__ = [
    "assemble_flow_report",
    "attach_intervals",
    "interval_column_names",
    "weighted_population_counts",
]

LOGGER = logging.getLogger(__name__)

# Column suffixes that differ from the method name.
_SUFFIX = {"goodmancc": "goodman_cc"}


def interval_column_names(method: str, *, prefix: str = "") -> dict[str, str]:
    """Map engine columns (``est``, ``lwr_ci``, ...) to report column names."""
    suffix = _SUFFIX.get(method, method)
    names = {
        "est": f"{prefix}est_{suffix}",
        "lwr_ci": f"{prefix}lwr_ci_{suffix}",
        "upr_ci": f"{prefix}upr_ci_{suffix}",
    }
    if method == "qhurst_coinmind":
        names["lwr_ci_adj"] = f"{prefix}lwr_ci_qhurst_adj_coinmind"
        names["upr_ci_adj"] = f"{prefix}upr_ci_qhurst_adj_coinmind"
    return names


def weighted_population_counts(df: pd.DataFrame) -> np.ndarray:
    """Rescale ``est_linkedpairs_in_population`` to the observed total."""
    for col in ("est_linkedpairs_in_population", "num_linked_pairs_observed"):
        if col not in df.columns:
            raise ValidationError(f"weighted_population_counts: missing column '{col}'")
    est = df["est_linkedpairs_in_population"].to_numpy(dtype=np.float64)
    observed_total = float(np.nansum(df["num_linked_pairs_observed"].to_numpy(dtype=np.float64)))
    return est / np.nansum(est) * observed_total


def _interval_frame(x: np.ndarray, method: str, options: ReportOptions) -> pd.DataFrame:
    alpha = ci_level_to_alpha(options.ci_level)
    if method == "qhurst_acswr":
        return qhurst_acswr_ci(x, alpha=alpha)
    if method == "qhurst_coinmind":
        return qhurst_coinmind_ci(x, alpha=alpha)
    return multinomial_ci(
        x,
        options.ci_level,
        method=method,
        edgeworth=options.edgeworth,
        verbose=options.verbose,
    )


def attach_intervals(
    df: pd.DataFrame,
    x: Any,
    method: str,
    options: ReportOptions,
    *,
    prefix: str = "",
) -> tuple[pd.DataFrame, dict[str, Any]]:
    """Append one method's interval columns to ``df``.

    Intervals are computed over the finite entries of ``x`` only; rows where
    ``x`` is NaN (undefined ``p_hat``) receive NaN in every new column.
    Returns the extended copy and the frame's ``attrs`` (e.g. ``volume``).
    """
    x = np.asarray(x, dtype=np.float64)
    if x.shape[0] != df.shape[0]:
        raise ValidationError(f"x has {x.shape[0]} entries; expected {df.shape[0]}.")
    mask = np.isfinite(x)
    ci = _interval_frame(x[mask], method, options)

    out = df.copy()
    for src, dst in interval_column_names(method, prefix=prefix).items():
        col = np.full(df.shape[0], np.nan, dtype=np.float64)
        col[mask] = ci[src].to_numpy(dtype=np.float64)
        out[dst] = col
    trace(
        LOGGER,
        options.verbose,
        "Attached %s intervals (%s) over %d of %d pairings",
        method,
        prefix.rstrip("_") or "population",
        int(mask.sum()),
        df.shape[0],
    )
    return out, dict(ci.attrs)


def assemble_flow_report(df_theta_hat: pd.DataFrame, options: ReportOptions | None = None) -> pd.DataFrame:
    """Attach simultaneous intervals and sort the flow table.

    Goodman intervals on the observed counts are always attached (prefixed
    ``obs_trm_pairs_``), followed by ``options.methods`` on the population
    estimates rescaled by :func:`weighted_population_counts`. Rows are
    stable-sorted by descending ``num_linked_pairs_observed``.
    """
    options = ReportOptions.basic() if options is None else options
    out, _ = attach_intervals(
        df_theta_hat,
        df_theta_hat["num_linked_pairs_observed"].to_numpy(dtype=np.float64),
        "goodman",
        options,
        prefix="obs_trm_pairs_",
    )

    weighted = weighted_population_counts(df_theta_hat)
    attrs: dict[str, Any] = {}
    for method in options.methods:
        out, extra = attach_intervals(out, weighted, method, options)
        if "volume" in extra:
            attrs[f"{method}_volume"] = extra["volume"]

    out = out.sort_values(
        "num_linked_pairs_observed", ascending=False, kind="mergesort",
    ).reset_index(drop=True)
    out.attrs = attrs
    return out
