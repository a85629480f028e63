"""User interface helpers (progress rendering)."""

from .progress import ProgressReporter, ProgressState

__all__ = ["ProgressReporter", "ProgressState"]
