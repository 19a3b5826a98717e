"""Presentation layer for learning progress.

Public API
----------
- :class:`ProgressDashboard` -- rich (or plain-text) console output
- :func:`format_duration` -- compact human-readable durations
"""

from learning_progress.presentation.console import ProgressDashboard, format_duration

__all__ = [
    "ProgressDashboard",
    "format_duration",
]
