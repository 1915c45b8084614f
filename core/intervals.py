"""Simultaneous confidence intervals for multinomial proportions.

Every routine takes a vector of non-negative cell counts (or count-like
weights) ``x`` with total ``n = sum(x)`` and returns one row per cell with the
point estimate ``x / n`` and simultaneous lower/upper bounds clipped to [0, 1].

Methods
-------
goodman, goodmancc
    Chi-square inversion with ``k - 1`` degrees of freedom; ``goodmancc`` adds
    a continuity correction of one half (Cherry, 1996).
wald, waldcc, wilson
    Per-cell normal approximation and score intervals with a 1-df quantile.
sisonglaz, cplus1
    Sison & Glaz (1995): the coverage of the symmetric region
    ``|X_i - x_i| <= c`` is approximated by independent truncated Poisson
    variables and an Edgeworth expansion of their sum, then the smallest ``c``
    exceeding the target level is located and interpolated.
qhurst_acswr, qhurst_coinmind
    Quesenberry & Hurst (1964) with a Bonferroni-adjusted quantile.

References
----------
Goodman (1965), Technometrics 7:247-254. Sison & Glaz (1995), JASA 90:366-369.
May & Johnson (2000), J. Stat. Software 5(6).
"""

from __future__ import annotations

import logging
import math
from typing import Any, Literal

import numpy as np
import pandas as pd
from scipy import stats

from bumblebee.exceptions import NumericalError, ValidationError
from bumblebee.utils.helpers import format_labels, trace

__all__ = [
    "INTERVAL_METHODS",
    "MULTINOM_METHODS",
    "multinomial_ci",
    "qhurst_acswr_ci",
    "qhurst_coinmind_ci",
    "simultaneous_ci",
    "sison_glaz_constant",
    "truncated_poisson_moments",
    "truncpoi_coverage",
]

LOGGER = logging.getLogger(__name__)

MULTINOM_METHODS: tuple[str, ...] = (
    "sisonglaz",
    "cplus1",
    "goodman",
    "goodmancc",
    "wald",
    "waldcc",
    "wilson",
)
INTERVAL_METHODS: tuple[str, ...] = (*MULTINOM_METHODS, "qhurst_acswr", "qhurst_coinmind")
_SIDES = ("two.sided", "left", "right")
_EDGEWORTH = ("textbook", "legacy")

Sides = Literal["two.sided", "left", "right"]
Edgeworth = Literal["textbook", "legacy"]


# ---------------------------------------------------------------------
# Validation and table helpers
# ---------------------------------------------------------------------


def _as_cells(x: Any) -> np.ndarray:
    """Validate a cell vector: 1D, at least two cells, finite, >= 0, positive total."""
    try:
        a = np.asarray(x, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ValidationError("x must be numeric.") from exc
    if a.ndim != 1:
        raise ValidationError("x must be 1D.")
    if a.size < 2:
        raise ValidationError("Simultaneous intervals need at least two cells.")
    if not np.all(np.isfinite(a)):
        raise ValidationError("x must be finite; drop undefined cells before computing intervals.")
    if np.any(a < 0):
        raise ValidationError(f"x must be non-negative; got {format_labels(a[a < 0])}.")
    if not float(np.sum(a)) > 0.0:
        raise ValidationError("x must have a positive total.")
    return a


def _check_probability(value: float, name: str) -> float:
    v = float(value)
    if not (0.0 < v < 1.0):
        raise ValidationError(f"{name} must lie in (0, 1); got {value!r}.")
    return v


def _frame(p: np.ndarray, lower: np.ndarray, upper: np.ndarray) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "est": p,
            "lwr_ci": np.maximum(0.0, lower),
            "upr_ci": np.minimum(1.0, upper),
        },
    )


# ---------------------------------------------------------------------
# Sison-Glaz: truncated Poisson moments and Edgeworth coverage
# ---------------------------------------------------------------------


def truncated_poisson_moments(c: float, lam: np.ndarray) -> tuple[np.ndarray, ...]:
    """Moments of Poisson(lam) truncated to ``[max(lam - c, 0), lam + c]``.

    Returns ``(mean, var, mu3, mu4, mass)`` per cell: the mean, the second to
    fourth central moments and the probability mass of the window. Factorial
    moments are obtained from Poisson tail differences and converted to
    central moments.
    """
    lam = np.asarray(lam, dtype=np.float64)
    a = lam + c
    b = np.maximum(lam - c, 0.0)
    cdf = stats.poisson.cdf
    cdf_a = cdf(a, lam)
    cdf_b1 = cdf(b - 1.0, lam)
    mass = cdf_a - cdf_b1

    fact = np.empty((4, lam.size), dtype=np.float64)
    for r in range(1, 5):
        pois_a = cdf_a - cdf(a - r, lam)
        pois_b = cdf_b1 - cdf(b - r - 1.0, lam)
        fact[r - 1] = lam**r * (1.0 - (pois_a - pois_b) / mass)

    f1, f2, f3, f4 = fact
    mean = f1
    var = f2 + f1 - f1**2
    mu3 = f3 + f2 * (3.0 - 3.0 * f1) + (f1 - 3.0 * f1**2 + 2.0 * f1**3)
    mu4 = (
        f4
        + f3 * (6.0 - 4.0 * f1)
        + f2 * (7.0 - 12.0 * f1 + 6.0 * f1**2)
        + f1
        - 4.0 * f1**2
        + 6.0 * f1**3
        - 3.0 * f1**4
    )
    return mean, var, mu3, mu4, mass


def truncpoi_coverage(
    c: float,
    x: np.ndarray,
    n: float,
    *,
    edgeworth: Edgeworth = "textbook",
) -> float:
    """Approximate ``P(|X_i - x_i| <= c for all i)`` for a multinomial draw.

    ``edgeworth="legacy"`` drops the squared-skewness term of the expansion,
    matching the long-standing reference implementation.
    """
    mean, var, mu3, mu4, mass = truncated_poisson_moments(c, x)
    s1 = float(np.sum(mean))
    s2 = float(np.sum(var))
    s3 = float(np.sum(mu3))
    s4 = float(np.sum(mu4 - 3.0 * var**2))

    probn = 1.0 / (stats.poisson.cdf(n, n) - stats.poisson.cdf(n - 1.0, n))
    z = (n - s1) / math.sqrt(s2)
    g1 = s3 / s2**1.5
    g2 = s4 / s2**2
    poly = 1.0 + g1 * (z**3 - 3.0 * z) / 6.0 + g2 * (z**4 - 6.0 * z**2 + 3.0) / 24.0
    if edgeworth == "textbook":
        poly += g1**2 * (z**6 - 15.0 * z**4 + 45.0 * z**2 - 15.0) / 72.0
    f = poly * math.exp(-(z**2) / 2.0) / math.sqrt(2.0 * math.pi)
    probx = float(np.prod(mass))
    return float(probn * probx * f / math.sqrt(s2))


def sison_glaz_constant(
    x: Any,
    conf_level: float = 0.95,
    *,
    edgeworth: Edgeworth = "textbook",
    verbose: bool = False,
) -> tuple[int, float]:
    """Locate the Sison-Glaz half-width constant.

    Scans ``c = 1, 2, ..., floor(n)`` for the first coverage exceeding
    ``conf_level`` and returns ``(c - 1, delta)`` where ``delta`` linearly
    interpolates between the coverages at ``c - 1`` and ``c``.

    Raises
    ------
    NumericalError
        If no ``c`` in ``[1, n]`` reaches the target level.
    """
    cells = _as_cells(x)
    level = _check_probability(conf_level, "conf_level")
    if edgeworth not in _EDGEWORTH:
        raise ValidationError(f"edgeworth must be one of {set(_EDGEWORTH)}.")
    n = float(np.sum(cells))

    pold = 0.0
    for cc in range(1, int(np.floor(n + 1e-9)) + 1):
        poi = truncpoi_coverage(cc, cells, n, edgeworth=edgeworth)
        trace(LOGGER, verbose, "Sison-Glaz search: c=%d coverage=%.6f", cc, poi)
        if poi > level and pold < level:
            delta = (level - pold) / (poi - pold)
            return cc - 1, float(delta)
        pold = poi
    raise NumericalError(
        f"Sison-Glaz coverage search did not reach {level:.4g} for c in [1, {n:.6g}]; "
        "retry with method='goodman'.",
        cells=cells,
    )


# ---------------------------------------------------------------------
# Public interval routines
# ---------------------------------------------------------------------


def multinomial_ci(
    x: Any,
    conf_level: float = 0.95,
    *,
    method: str = "sisonglaz",
    sides: Sides = "two.sided",
    edgeworth: Edgeworth = "textbook",
    verbose: bool = False,
) -> pd.DataFrame:
    """Simultaneous confidence intervals for multinomial proportions.

    Parameters
    ----------
    x
        Cell counts or count-like weights (non-negative, positive total).
    conf_level
        Joint confidence level.
    method
        One of ``MULTINOM_METHODS``.
    sides
        ``"two.sided"`` (default), ``"left"`` (upper bound fixed at 1) or
        ``"right"`` (lower bound fixed at 0). One-sided intervals are computed
        at level ``1 - 2 * (1 - conf_level)``.
    edgeworth
        Expansion used by ``sisonglaz``/``cplus1``; see :func:`truncpoi_coverage`.

    Returns
    -------
    pandas.DataFrame
        Columns ``est``, ``lwr_ci``, ``upr_ci``; one row per cell.
    """
    cells = _as_cells(x)
    level = _check_probability(conf_level, "conf_level")
    method_norm = str(method).lower()
    if method_norm not in MULTINOM_METHODS:
        raise ValidationError(f"method must be one of {set(MULTINOM_METHODS)}; got {method!r}.")
    if sides not in _SIDES:
        raise ValidationError(f"sides must be one of {set(_SIDES)}; got {sides!r}.")
    if sides != "two.sided":
        level = _check_probability(1.0 - 2.0 * (1.0 - level), "one-sided conf_level")

    n = float(np.sum(cells))
    k = int(cells.size)
    p = cells / n

    if method_norm == "goodman":
        q = float(stats.chi2.ppf(level, k - 1))
        half = np.sqrt(q * (q + 4.0 * cells * (n - cells) / n))
        lower = (q + 2.0 * cells - half) / (2.0 * (n + q))
        upper = (q + 2.0 * cells + half) / (2.0 * (n + q))
    elif method_norm == "goodmancc":
        q = float(stats.chi2.ppf(level, k - 1))
        # corrected counts stay within [0, n]
        xl = np.maximum(cells - 0.5, 0.0)
        xu = np.minimum(cells + 0.5, n)
        half_l = np.sqrt(q * (q + 4.0 * xl * (n - xl) / n))
        half_u = np.sqrt(q * (q + 4.0 * xu * (n - xu) / n))
        lower = (q + 2.0 * xl - half_l) / (2.0 * (n + q))
        upper = (q + 2.0 * xu + half_u) / (2.0 * (n + q))
    elif method_norm in {"wald", "waldcc"}:
        q = float(stats.chi2.ppf(level, 1))
        half = np.sqrt(q * p * (1.0 - p) / n)
        cc = 1.0 / (2.0 * n) if method_norm == "waldcc" else 0.0
        lower = p - half - cc
        upper = p + half + cc
    elif method_norm == "wilson":
        q = float(stats.chi2.ppf(level, 1))
        half = np.sqrt(q**2 + 4.0 * cells * q * (1.0 - p))
        lower = (q + 2.0 * cells - half) / (2.0 * (q + n))
        upper = (q + 2.0 * cells + half) / (2.0 * (q + n))
    else:
        const, delta = sison_glaz_constant(cells, level, edgeworth=edgeworth, verbose=verbose)
        trace(LOGGER, verbose, "Sison-Glaz constant c=%d delta=%.6f (n=%.6g)", const, delta, n)
        if method_norm == "sisonglaz":
            lower = p - const / n
            upper = p + const / n + 2.0 * delta / n
        else:
            lower = p - const / n - 1.0 / n
            upper = p + const / n + 1.0 / n

    res = _frame(p, lower, upper)
    if sides == "left":
        res["upr_ci"] = 1.0
    elif sides == "right":
        res["lwr_ci"] = 0.0
    return res


def qhurst_acswr_ci(x: Any, alpha: float = 0.05) -> pd.DataFrame:
    """Quesenberry-Hurst intervals in Goodman form.

    Uses the quantile ``chi2(1 - alpha / k, k - 1)``; columns ``est``,
    ``lwr_ci``, ``upr_ci``.
    """
    cells = _as_cells(x)
    alpha = _check_probability(alpha, "alpha")
    k = int(cells.size)
    n = float(np.sum(cells))
    q = float(stats.chi2.ppf(1.0 - alpha / k, k - 1))
    half = np.sqrt(q * (q + 4.0 * cells * (n - cells) / n))
    lower = (q + 2.0 * cells - half) / (2.0 * (n + q))
    upper = (q + 2.0 * cells + half) / (2.0 * (n + q))
    return _frame(cells / n, lower, upper)


def qhurst_coinmind_ci(x: Any, alpha: float = 0.05, *, bonferroni: bool = True) -> pd.DataFrame:
    """Quesenberry-Hurst intervals in score form with a joint-volume diagnostic.

    Returns ``est``, the raw bounds ``lwr_ci``/``upr_ci`` and the bounds
    clipped to [0, 1] ``lwr_ci_adj``/``upr_ci_adj``. The product of the
    clipped widths, rounded to 8 decimals, is stored in ``attrs["volume"]``.

    ``bonferroni=False`` uses ``chi2(1 - alpha, k - 1)`` instead of
    ``chi2(1 - alpha / k, k - 1)``.
    """
    cells = _as_cells(x)
    alpha = _check_probability(alpha, "alpha")
    k = int(cells.size)
    n = float(np.sum(cells))
    p = cells / n
    level = 1.0 - alpha / k if bonferroni else 1.0 - alpha
    q = float(stats.chi2.ppf(level, k - 1))
    root = np.sqrt(q * q + 4.0 * cells * q * (1.0 - p))
    upper = (q + 2.0 * cells + root) / (2.0 * (q + n))
    lower = (q + 2.0 * cells - root) / (2.0 * (q + n))
    lower_adj = np.where(lower < 0.0, 0.0, lower)
    upper_adj = np.where(upper > 1.0, 1.0, upper)
    out = pd.DataFrame(
        {
            "est": p,
            "lwr_ci": lower,
            "upr_ci": upper,
            "lwr_ci_adj": lower_adj,
            "upr_ci_adj": upper_adj,
        },
    )
    out.attrs["volume"] = round(float(np.prod(upper_adj - lower_adj)), 8)
    return out


def simultaneous_ci(
    x: Any,
    method: str,
    conf_level: float = 0.95,
    **kwargs: Any,
) -> pd.DataFrame:
    """Dispatch any method in ``INTERVAL_METHODS`` to a uniform ``est/lwr_ci/upr_ci`` frame.

    Quesenberry-Hurst methods use ``alpha = 1 - conf_level``; the coinmind
    variant reports its clipped bounds and keeps ``attrs["volume"]``.
    Remaining keyword arguments are forwarded to :func:`multinomial_ci`.
    """
    method_norm = str(method).lower()
    if method_norm == "qhurst_acswr":
        return qhurst_acswr_ci(x, alpha=1.0 - _check_probability(conf_level, "conf_level"))
    if method_norm == "qhurst_coinmind":
        alpha = 1.0 - _check_probability(conf_level, "conf_level")
        full = qhurst_coinmind_ci(x, alpha=alpha, bonferroni=kwargs.get("bonferroni", True))
        out = pd.DataFrame(
            {"est": full["est"], "lwr_ci": full["lwr_ci_adj"], "upr_ci": full["upr_ci_adj"]},
        )
        out.attrs["volume"] = full.attrs["volume"]
        return out
    kwargs.pop("bonferroni", None)
    return multinomial_ci(x, conf_level, method=method_norm, **kwargs)
