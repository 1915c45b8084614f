# bumblebee/utils/__init__.py
"""Utility functions module."""
from .helpers import (
    as_count_vector,
    as_label_vector,
    as_nonnegative_vector,
    check_same_length,
    format_labels,
    trace,
    trace_frame,
)

__all__ = [
    "as_count_vector",
    "as_label_vector",
    "as_nonnegative_vector",
    "check_same_length",
    "format_labels",
    "trace",
    "trace_frame",
]
