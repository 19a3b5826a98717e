"""Domain layer for learning progress.

Re-exports all public domain types so that consumers can write::

    from learning_progress.domain import ProgressSnapshot, QuizAttempt
"""

# -- Value Objects ------------------------------------------------------------
from .values import LearningStats, QuizAttempt, SectionProgress

# -- Aggregates ---------------------------------------------------------------
from .aggregates import ProgressSnapshot

# -- Domain Events ------------------------------------------------------------
from .events import DomainEvent, ProgressChanged, ProgressReset, QuizAttemptRecorded

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    ConfigurationError,
    LearningProgressError,
    PersistenceError,
    SnapshotDecodeError,
)

__all__ = [
    # values
    "LearningStats",
    "QuizAttempt",
    "SectionProgress",
    # aggregates
    "ProgressSnapshot",
    # events
    "DomainEvent",
    "ProgressChanged",
    "ProgressReset",
    "QuizAttemptRecorded",
    # exceptions
    "ConfigurationError",
    "LearningProgressError",
    "PersistenceError",
    "SnapshotDecodeError",
]
