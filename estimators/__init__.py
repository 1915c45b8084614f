"""Estimator exports with lazy loading.

Public estimator classes, configuration and result containers. Uses lazy
imports to avoid circular dependencies.
"""
from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "FlowResult",
    "ReportOptions",
    "TransmissionFlows",
    "estimate_multinom_ci",
    "estimate_theta_hat",
    "estimate_transmission_flows_and_ci",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "FlowResult": ("bumblebee.estimators.base", "FlowResult"),
    "ReportOptions": ("bumblebee.estimators.base", "ReportOptions"),
    "TransmissionFlows": ("bumblebee.estimators.flows", "TransmissionFlows"),
    "estimate_multinom_ci": ("bumblebee.estimators.flows", "estimate_multinom_ci"),
    "estimate_theta_hat": ("bumblebee.estimators.flows", "estimate_theta_hat"),
    "estimate_transmission_flows_and_ci": (
        "bumblebee.estimators.flows",
        "estimate_transmission_flows_and_ci",
    ),
}


def __getattr__(name: str) -> Any:
    """Lazily import estimator classes and shared containers."""
    if name in _LAZY_IMPORTS:
        module_name, attr_name = _LAZY_IMPORTS[name]
        module = import_module(module_name)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module 'bumblebee.estimators' has no attribute '{name}'")


def __dir__() -> list[str]:
    """Expose lazily loaded attributes to ``dir()``."""
    return sorted(set(globals()) | set(__all__))
