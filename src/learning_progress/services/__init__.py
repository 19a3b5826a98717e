"""Service layer for learning progress."""

from learning_progress.services.tracking import ProgressTrackingService

__all__ = [
    "ProgressTrackingService",
]
