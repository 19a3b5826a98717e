"""Learning Progress.

Per-user progress tracking for quiz-based learning apps: completed topics and
sections, graded attempt history, best scores, streaks and the statistics
derived from them, persisted as versioned JSON documents.
"""

__version__ = "0.1.0"

from learning_progress.domain import (
    LearningStats,
    ProgressSnapshot,
    QuizAttempt,
    SectionProgress,
)
from learning_progress.services import ProgressTrackingService

__all__ = [
    "LearningStats",
    "ProgressSnapshot",
    "ProgressTrackingService",
    "QuizAttempt",
    "SectionProgress",
]
