# bumblebee/output/__init__.py
"""Report assembly and summary output for flow results."""
from .report import (
    assemble_flow_report,
    attach_intervals,
    interval_column_names,
    weighted_population_counts,
)
from .summary import flows_summary

__all__ = [
    "assemble_flow_report",
    "attach_intervals",
    "flows_summary",
    "interval_column_names",
    "weighted_population_counts",
]
