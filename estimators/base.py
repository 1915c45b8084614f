# bumblebee/estimators/base.py
"""Report configuration and result containers.

This module defines the requested-output configuration shared by the basic and
detailed flow reports, confidence-level normalisation, and the standardized
flow results container.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from bumblebee.core.intervals import MULTINOM_METHODS
from bumblebee.exceptions import ValidationError

__all__ = [
    "BASIC_METHODS",
    "DETAILED_METHODS",
    "FlowResult",
    "ReportOptions",
    "ci_level_to_alpha",
    "normalize_ci_level",
]

BASIC_METHODS: tuple[str, ...] = ("goodman",)
DETAILED_METHODS: tuple[str, ...] = (
    "goodman",
    "goodmancc",
    "sisonglaz",
    "qhurst_acswr",
    "qhurst_coinmind",
)
_POPULATION_METHODS = frozenset({*MULTINOM_METHODS, "qhurst_acswr", "qhurst_coinmind"})


def normalize_ci_level(level: float | None, *, default: float = 0.95) -> float:
    """Normalize confidence level to a probability (0, 1)."""
    if not (0.0 < float(default) < 1.0):
        raise ValidationError("default confidence level must lie in (0, 1)")
    if level is None:
        coerced = float(default)
    else:
        coerced = float(level)
        # Accept percentage-style inputs (e.g., 90 for 90%)
        if coerced > 1.0:
            coerced /= 100.0
    if not (0.0 < coerced < 1.0):
        raise ValidationError("ci_level must be in (0, 1); supply e.g. 0.95 or 95")
    return coerced


def ci_level_to_alpha(level: float | None, *, default: float = 0.95) -> float:
    """Return the corresponding tail probability ``alpha`` for a confidence level."""
    ci_level = normalize_ci_level(level, default=default)
    return 1.0 - ci_level


# ---------------------------------------------------------------------
# Requested outputs
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ReportOptions:
    """Outputs requested from a flow analysis.

    ``methods`` lists the interval methods applied to the population-scaled
    estimates, in attachment order. Goodman intervals on the observed counts
    are always attached. Use :meth:`basic` / :meth:`detailed` for the two
    standard report shapes and ``dataclasses.replace`` for variations.
    """

    methods: tuple[str, ...] = BASIC_METHODS
    include_prob_pairing: bool = False
    include_c_hat: bool = False
    ci_level: float = 0.95
    edgeworth: str = "textbook"
    verbose: bool = False

    def __post_init__(self) -> None:
        methods = tuple(str(m).lower() for m in self.methods)
        unknown = [m for m in methods if m not in _POPULATION_METHODS]
        if unknown:
            raise ValidationError(f"Unknown interval method(s): {unknown}")
        if len(set(methods)) != len(methods):
            raise ValidationError("Interval methods must not repeat.")
        if self.edgeworth not in {"textbook", "legacy"}:
            raise ValidationError("edgeworth must be 'textbook' or 'legacy'.")
        object.__setattr__(self, "methods", methods)
        object.__setattr__(self, "ci_level", normalize_ci_level(self.ci_level))

    @classmethod
    def basic(cls, **kwargs: Any) -> ReportOptions:
        return cls(methods=BASIC_METHODS, **kwargs)

    @classmethod
    def detailed(cls, **kwargs: Any) -> ReportOptions:
        return cls(
            methods=DETAILED_METHODS,
            include_prob_pairing=True,
            include_c_hat=True,
            **kwargs,
        )

    @property
    def is_detailed(self) -> bool:
        return self.include_prob_pairing or self.include_c_hat or self.methods != BASIC_METHODS


# ---------------------------------------------------------------------
# Results container
# ---------------------------------------------------------------------
@dataclass
class FlowResult:
    """Container for transmission flow results.

    ``flows`` holds one row per ordered group pairing, sorted by descending
    observed linked-pair count.
    """

    flows: pd.DataFrame
    n_pairings: int | None = None
    model_info: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    """Dictionary for method-specific diagnostics (e.g. joint interval volume)."""

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        head = ", ".join(f"{k}={v}" for k, v in self.model_info.items())
        return f"FlowResult(pairings={self.n_pairings}, {head})"

    @property
    def theta_hat(self) -> pd.Series:
        """``theta_hat`` indexed by ``(H1_group, H2_group)``."""
        return self.flows.set_index(["H1_group", "H2_group"])["theta_hat"]
