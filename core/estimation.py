"""Linkage probabilities and transmission-flow point estimates.

For a pairing (u, v):

* ``p_hat`` is the fraction of distinct possible (u, v) pairs in the sample
  that are linked.
* ``theta_hat`` is the probability that a linked pair comes from (u, v),
  obtained by extrapolating ``p_hat`` to the population and normalising over
  all pairings. Estimates follow Carnegie et al. (2014), extended to directed
  pairs.
* ``c_hat`` is the probability that an individual in u links to at least one
  individual in v.

Pairings whose sample holds no possible pairs carry NaN throughout and are
left out of every normalising sum.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Sequence

import numpy as np
import pandas as pd

from bumblebee.exceptions import ValidationError
from bumblebee.utils.helpers import as_nonnegative_vector, trace

__all__ = [
    "get_c_hat",
    "get_p_hat",
    "get_prob_group_pairing_and_linked",
    "get_theta_hat",
]

LOGGER = logging.getLogger(__name__)


def _require(df: pd.DataFrame, cols: Sequence[str], fn: str) -> None:
    if not isinstance(df, pd.DataFrame):
        raise ValidationError(f"{fn} expects a pandas DataFrame")
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValidationError(f"{fn}: missing column(s) {missing}")


def get_p_hat(df_counts: pd.DataFrame) -> pd.DataFrame:
    """Add ``p_hat = num_linked_pairs_observed / max_possible_pairs_in_sample``.

    Returns a copy; ``p_hat`` is NaN where the denominator is 0.
    """
    _require(df_counts, ["num_linked_pairs_observed", "max_possible_pairs_in_sample"], "get_p_hat")
    out = df_counts.copy()
    num = out["num_linked_pairs_observed"].to_numpy(dtype=np.float64)
    den = out["max_possible_pairs_in_sample"].to_numpy(dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        p_hat = np.where(den > 0, num / np.where(den > 0, den, 1.0), np.nan)
    out["p_hat"] = p_hat
    if np.any(p_hat > 1.0):
        warnings.warn(
            "Observed linked pairs exceed the possible pairs in the sample for some pairings; "
            "p_hat > 1.",
            RuntimeWarning,
            stacklevel=2,
        )
    n_undefined = int(np.isnan(p_hat).sum())
    if n_undefined:
        LOGGER.debug("p_hat undefined for %d pairing(s) with no possible sampled pairs", n_undefined)
    return out


def get_prob_group_pairing_and_linked(
    df_counts_and_p_hat: pd.DataFrame,
    individuals_population_in: Sequence[float],
    *,
    verbose: bool = False,
) -> pd.DataFrame:
    """Add the probability that a pair is from the pairing and is linked.

    ``(max_possible_pairs_in_population / (T choose 2)) * p_hat`` where ``T``
    is the total population over all groups.
    """
    _require(
        df_counts_and_p_hat,
        ["max_possible_pairs_in_population", "p_hat"],
        "get_prob_group_pairing_and_linked",
    )
    population = as_nonnegative_vector(individuals_population_in, "individuals_population_in")
    total = float(np.sum(population))
    total_pairs = total * (total - 1.0) / 2.0
    trace(LOGGER, verbose, "Total population %.6g; distinct possible pairs %.6g", total, total_pairs)
    if total_pairs <= 0.0:
        raise ValidationError("Total population must exceed one individual.")

    out = df_counts_and_p_hat.copy()
    max_pop = out["max_possible_pairs_in_population"].to_numpy(dtype=np.float64)
    out["prob_group_pairing_and_linked"] = (max_pop / total_pairs) * out["p_hat"].to_numpy(
        dtype=np.float64,
    )
    return out


def get_theta_hat(df_counts_and_p_hat: pd.DataFrame) -> pd.DataFrame:
    """Add ``est_linkedpairs_in_population`` and ``theta_hat``.

    ``theta_hat`` sums to 1 over the pairings with a defined ``p_hat``.
    """
    _require(df_counts_and_p_hat, ["max_possible_pairs_in_population", "p_hat"], "get_theta_hat")
    out = df_counts_and_p_hat.copy()
    est = out["max_possible_pairs_in_population"].to_numpy(dtype=np.float64) * out["p_hat"].to_numpy(
        dtype=np.float64,
    )
    total = float(np.nansum(est))
    if not total > 0.0:
        raise ValidationError(
            "No linked pairs can be extrapolated to the population; theta_hat is undefined.",
        )
    out["est_linkedpairs_in_population"] = est
    out["theta_hat"] = est / total
    return out


def get_c_hat(df_counts_and_p_hat: pd.DataFrame) -> pd.DataFrame:
    """Add ``c_hat = 1 - (1 - p_hat) ** number_hosts_population_group_2``.

    Bernoulli-trials model: each of the group-2 individuals links independently
    with probability ``p_hat``.
    """
    _require(df_counts_and_p_hat, ["p_hat", "number_hosts_population_group_2"], "get_c_hat")
    out = df_counts_and_p_hat.copy()
    p_hat = out["p_hat"].to_numpy(dtype=np.float64)
    trials = out["number_hosts_population_group_2"].to_numpy(dtype=np.float64)
    out["c_hat"] = 1.0 - np.power(1.0 - p_hat, trials)
    return out
