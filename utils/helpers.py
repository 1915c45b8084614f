"""Shared helper utilities.

Input coercion, validation and diagnostic tracing for the estimation and
output modules.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Union

import numpy as np
import pandas as pd

from bumblebee.exceptions import ValidationError

__all__ = [
    "as_count_vector",
    "as_label_vector",
    "as_nonnegative_vector",
    "check_same_length",
    "format_labels",
    "trace",
    "trace_frame",
]

ArrayLike = Union[np.ndarray, pd.Series, Sequence[float], Sequence[int]]


def as_nonnegative_vector(x: ArrayLike, name: str) -> np.ndarray:
    """Coerce to a finite, non-negative 1D float64 array."""
    try:
        a = np.asarray(x, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be numeric.") from exc
    if a.ndim != 1:
        raise ValidationError(f"{name} must be 1D.")
    if not np.all(np.isfinite(a)):
        raise ValidationError(f"{name} must be finite.")
    if np.any(a < 0):
        bad = format_labels(a[a < 0])
        raise ValidationError(f"{name} must be non-negative; got {bad}.")
    return a


def as_count_vector(x: ArrayLike, name: str) -> np.ndarray:
    """Coerce to a non-negative, integer-valued 1D float64 array."""
    a = as_nonnegative_vector(x, name)
    frac = a != np.floor(a)
    if np.any(frac):
        raise ValidationError(f"{name} must be integer counts; got {format_labels(a[frac])}.")
    return a


def as_label_vector(x: Any, name: str) -> np.ndarray:
    """Coerce group identifiers to a 1D object array of strings.

    Missing identifiers (None/NaN) are rejected rather than stringified.
    """
    a = np.asarray(x, dtype=object)
    if a.ndim == 0:
        a = a.reshape(1)
    if a.ndim != 1:
        raise ValidationError(f"{name} must be 1D.")
    for v in a.tolist():
        if v is None or (isinstance(v, (float, np.floating)) and not np.isfinite(v)):
            raise ValidationError(f"{name} must not contain missing identifiers.")
    return np.array([str(v) for v in a.tolist()], dtype=object)


def check_same_length(*args: tuple[np.ndarray, str]) -> int:
    n = args[0][0].shape[0]
    for arr, nm in args:
        if arr.shape[0] != n:
            raise ValidationError(f"Length mismatch: {nm} has {arr.shape[0]}, expected {n}.")
    return n


def format_labels(values: Any, limit: int = 8) -> str:
    """Render a short, comma separated preview of offending values."""
    items = [str(v) for v in list(values)]
    head = ", ".join(items[:limit])
    if len(items) > limit:
        head += f", ... ({len(items) - limit} more)"
    return head


def trace(logger: logging.Logger, verbose: bool, msg: str, *args: Any) -> None:
    """Log a diagnostic message at INFO when ``verbose`` is set, else DEBUG."""
    logger.log(logging.INFO if verbose else logging.DEBUG, msg, *args)


def trace_frame(logger: logging.Logger, verbose: bool, label: str, df: pd.DataFrame) -> None:
    """Log the shape and dtypes of an intermediate table."""
    level = logging.INFO if verbose else logging.DEBUG
    if not logger.isEnabledFor(level):
        return
    dtypes = ", ".join(f"{c}:{t}" for c, t in df.dtypes.astype(str).items())
    logger.log(level, "%s: %d rows x %d cols [%s]", label, df.shape[0], df.shape[1], dtypes)
