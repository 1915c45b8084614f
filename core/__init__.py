# bumblebee/core/__init__.py
"""Core computational modules for bumblebee."""
from . import estimation, intervals, pairings

__all__ = ["estimation", "intervals", "pairings"]
