"""Error taxonomy shared by every stage of the flow pipeline."""

from __future__ import annotations

from typing import Any

import numpy as np

__all__ = ["BumblebeeError", "NumericalError", "ValidationError"]


class BumblebeeError(Exception):
    """Base error for the bumblebee package."""


class ValidationError(BumblebeeError, ValueError):
    """Inputs violate the contract: unknown groups, negative counts, duplicates."""


class NumericalError(BumblebeeError, ArithmeticError):
    """An iterative approximation failed to converge.

    The offending cell vector is kept on ``cells`` so callers can retry with a
    closed-form method (e.g. ``goodman``).
    """

    def __init__(self, message: str, cells: Any = None) -> None:
        super().__init__(message)
        self.cells = None if cells is None else np.asarray(cells, dtype=np.float64).copy()
