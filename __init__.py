"""bumblebee: transmission flows within and between population groups.

This package estimates the relative probability of transmission within and
between population groups from counts of observed directed transmission pairs,
adjusting for heterogeneous sampling, and reports simultaneous confidence
intervals for the resulting multinomial flow proportions.
"""
from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

__all__ = [
    "BumblebeeError",
    "FlowResult",
    "NumericalError",
    "ReportOptions",
    "TransmissionFlows",
    "ValidationError",
    "estimate_multinom_ci",
    "estimate_theta_hat",
    "estimate_transmission_flows_and_ci",
    "flows_summary",
    "multinomial_ci",
    "qhurst_acswr_ci",
    "qhurst_coinmind_ci",
    "simultaneous_ci",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BumblebeeError": ("bumblebee.exceptions", "BumblebeeError"),
    "NumericalError": ("bumblebee.exceptions", "NumericalError"),
    "ValidationError": ("bumblebee.exceptions", "ValidationError"),
    "FlowResult": ("bumblebee.estimators.base", "FlowResult"),
    "ReportOptions": ("bumblebee.estimators.base", "ReportOptions"),
    "TransmissionFlows": ("bumblebee.estimators.flows", "TransmissionFlows"),
    "estimate_multinom_ci": ("bumblebee.estimators.flows", "estimate_multinom_ci"),
    "estimate_theta_hat": ("bumblebee.estimators.flows", "estimate_theta_hat"),
    "estimate_transmission_flows_and_ci": (
        "bumblebee.estimators.flows",
        "estimate_transmission_flows_and_ci",
    ),
    "flows_summary": ("bumblebee.output.summary", "flows_summary"),
    "multinomial_ci": ("bumblebee.core.intervals", "multinomial_ci"),
    "qhurst_acswr_ci": ("bumblebee.core.intervals", "qhurst_acswr_ci"),
    "qhurst_coinmind_ci": ("bumblebee.core.intervals", "qhurst_coinmind_ci"),
    "simultaneous_ci": ("bumblebee.core.intervals", "simultaneous_ci"),
}


def __getattr__(name: str) -> Any:
    """Lazily import public estimators and utilities on first access."""
    if name in _LAZY_IMPORTS:
        module_name, attr_name = _LAZY_IMPORTS[name]
        module = import_module(module_name)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module 'bumblebee' has no attribute '{name}'")


def __dir__() -> list[str]:
    """Ensure dir() exposes lazily imported names."""
    return sorted(set(globals()) | set(__all__))
