"""Group pairing enumeration and linkage joins.

Builds one row per ordered population-group pairing (self-pairings included)
with the maximum number of distinct pairs that could be linked in the sample
and in the population, then attaches the observed linked-pair counts.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd

from bumblebee.exceptions import ValidationError
from bumblebee.utils.helpers import (
    as_count_vector,
    as_label_vector,
    as_nonnegative_vector,
    check_same_length,
    format_labels,
    trace,
    trace_frame,
)

__all__ = [
    "LINKAGE_COLUMNS",
    "PAIRING_COLUMNS",
    "attach_linkage_counts",
    "build_group_table",
    "enumerate_group_pairings",
    "max_possible_pairs",
    "prepare_input_for_get_p_hat",
]

LOGGER = logging.getLogger(__name__)

PAIRING_COLUMNS: tuple[str, ...] = (
    "H1_group",
    "H2_group",
    "number_hosts_sampled_group_1",
    "number_hosts_sampled_group_2",
    "number_hosts_population_group_1",
    "number_hosts_population_group_2",
    "max_possible_pairs_in_sample",
    "max_possible_pairs_in_population",
)
LINKAGE_COLUMNS: tuple[str, ...] = ("H1_group", "H2_group", "num_linked_pairs_observed")
_COUNT_ALIASES = ("number_linked_pairs_observed",)


def build_group_table(
    group_in: Sequence[Any],
    individuals_sampled_in: Sequence[float],
    individuals_population_in: Sequence[float],
) -> pd.DataFrame:
    """Validate per-group sizes and return a table keyed by group.

    Repeated identifiers carrying identical sizes are collapsed to one row;
    repeated identifiers with conflicting sizes raise ``ValidationError``.
    The first-appearance order of identifiers is preserved.
    """
    groups = as_label_vector(group_in, "group_in")
    sampled = as_count_vector(individuals_sampled_in, "individuals_sampled_in")
    population = as_nonnegative_vector(individuals_population_in, "individuals_population_in")
    check_same_length(
        (groups, "group_in"),
        (sampled, "individuals_sampled_in"),
        (population, "individuals_population_in"),
    )
    if groups.size == 0:
        raise ValidationError("At least one population group is required.")

    m = pd.DataFrame(
        {
            "group": groups,
            "individuals_sampled": sampled,
            "individuals_population": population,
        },
    )
    conflicting = (
        m.groupby("group", sort=False)[["individuals_sampled", "individuals_population"]]
        .nunique()
        .max(axis=1)
    )
    conflicting = conflicting[conflicting > 1]
    if not conflicting.empty:
        raise ValidationError(
            "Group(s) defined more than once with conflicting sizes: "
            f"{format_labels(conflicting.index)}.",
        )
    return m.drop_duplicates(subset="group", keep="first").reset_index(drop=True)


def max_possible_pairs(
    size_1: np.ndarray,
    size_2: np.ndarray,
    same_group: np.ndarray,
) -> np.ndarray:
    """Count distinct possible pairs between two groups.

    Cross pairings give ``n1 * n2``; self-pairings give ``n * (n - 1) / 2`` and
    0 whenever ``n <= 1``.
    """
    n1 = np.asarray(size_1, dtype=np.float64)
    n2 = np.asarray(size_2, dtype=np.float64)
    same = np.asarray(same_group, dtype=bool)
    choose2 = np.where(n1 > 1.0, n1 * (n1 - 1.0) / 2.0, 0.0)
    return np.where(same, choose2, n1 * n2)


def enumerate_group_pairings(groups: pd.DataFrame, *, verbose: bool = False) -> pd.DataFrame:
    """Return all N^2 ordered group pairings with their maximum possible pairs."""
    missing = {"group", "individuals_sampled", "individuals_population"} - set(groups.columns)
    if missing:
        raise ValidationError(f"groups is missing column(s): {format_labels(sorted(missing))}.")

    labels = groups["group"].tolist()
    sampled = dict(zip(labels, groups["individuals_sampled"].to_numpy(dtype=np.float64)))
    population = dict(zip(labels, groups["individuals_population"].to_numpy(dtype=np.float64)))

    pairs = list(itertools.product(labels, repeat=2))
    g1 = [a for a, _ in pairs]
    g2 = [b for _, b in pairs]
    same = np.array([a == b for a, b in pairs], dtype=bool)
    n1 = np.array([sampled[a] for a in g1], dtype=np.float64)
    n2 = np.array([sampled[b] for b in g2], dtype=np.float64)
    N1 = np.array([population[a] for a in g1], dtype=np.float64)
    N2 = np.array([population[b] for b in g2], dtype=np.float64)

    out = pd.DataFrame(
        {
            "H1_group": g1,
            "H2_group": g2,
            "number_hosts_sampled_group_1": n1,
            "number_hosts_sampled_group_2": n2,
            "number_hosts_population_group_1": N1,
            "number_hosts_population_group_2": N2,
            "max_possible_pairs_in_sample": max_possible_pairs(n1, n2, same),
            "max_possible_pairs_in_population": max_possible_pairs(N1, N2, same),
        },
        columns=list(PAIRING_COLUMNS),
    )
    trace(LOGGER, verbose, "Enumerated %d ordered pairings over %d groups", len(out), len(labels))
    trace_frame(LOGGER, verbose, "group pairings", out)
    return out


def _coerce_linkage(linkage_counts_in: pd.DataFrame) -> pd.DataFrame:
    if not isinstance(linkage_counts_in, pd.DataFrame):
        raise ValidationError("linkage_counts_in must be a pandas DataFrame")
    lk = linkage_counts_in
    if "num_linked_pairs_observed" not in lk.columns:
        for alias in _COUNT_ALIASES:
            if alias in lk.columns:
                lk = lk.rename(columns={alias: "num_linked_pairs_observed"})
                break
    missing = [c for c in LINKAGE_COLUMNS if c not in lk.columns]
    if missing:
        raise ValidationError(
            f"linkage_counts_in must contain columns {{'H1_group','H2_group',"
            f"'num_linked_pairs_observed'}}; missing {format_labels(missing)}.",
        )
    return pd.DataFrame(
        {
            "H1_group": as_label_vector(lk["H1_group"], "H1_group"),
            "H2_group": as_label_vector(lk["H2_group"], "H2_group"),
            "num_linked_pairs_observed": as_count_vector(
                lk["num_linked_pairs_observed"], "num_linked_pairs_observed",
            ),
        },
    )


def attach_linkage_counts(
    pairings: pd.DataFrame,
    linkage_counts_in: pd.DataFrame,
    *,
    verbose: bool = False,
) -> pd.DataFrame:
    """Left-join observed linked-pair counts onto every ordered pairing.

    The join key ``(H1_group, H2_group)`` is order sensitive. Pairings with no
    linkage row receive a count of 0. Duplicate linkage keys and groups that do
    not appear in ``pairings`` raise ``ValidationError``.
    """
    lk = _coerce_linkage(linkage_counts_in)

    known = set(pairings["H1_group"]) | set(pairings["H2_group"])
    referenced = pd.unique(np.concatenate([lk["H1_group"].to_numpy(), lk["H2_group"].to_numpy()]))
    unknown = [g for g in referenced if g not in known]
    if unknown:
        raise ValidationError(
            f"Linkage counts reference group(s) absent from the sampling input: {format_labels(unknown)}.",
        )

    dup = lk.duplicated(subset=["H1_group", "H2_group"], keep=False)
    if dup.any():
        keys = lk.loc[dup, ["H1_group", "H2_group"]].drop_duplicates()
        rendered = [f"({a}, {b})" for a, b in keys.itertuples(index=False)]
        raise ValidationError(f"Duplicate linkage rows for pairing(s): {format_labels(rendered)}.")

    out = pairings.merge(lk, on=["H1_group", "H2_group"], how="left", sort=False, validate="one_to_one")
    out["num_linked_pairs_observed"] = out["num_linked_pairs_observed"].fillna(0.0)
    trace(
        LOGGER,
        verbose,
        "Attached %d linkage rows; %d pairings without observed links",
        len(lk),
        int((out["num_linked_pairs_observed"] == 0).sum()),
    )
    return out


def prepare_input_for_get_p_hat(
    group_in: Sequence[Any],
    individuals_sampled_in: Sequence[float],
    individuals_population_in: Sequence[float],
    linkage_counts_in: pd.DataFrame,
    *,
    verbose: bool = False,
) -> pd.DataFrame:
    """Assemble the pairing table with observed counts, ready for ``get_p_hat``."""
    groups = build_group_table(group_in, individuals_sampled_in, individuals_population_in)
    trace_frame(LOGGER, verbose, "groups", groups)
    pairings = enumerate_group_pairings(groups, verbose=verbose)
    return attach_linkage_counts(pairings, linkage_counts_in, verbose=verbose)
