"""Console UI for MediaScribe."""

from .progress_screen import ProgressScreen

__all__ = ["ProgressScreen"]
