"""Domain events for learning progress.

Every event is a frozen dataclass inheriting from ``DomainEvent``.  The
tracking service publishes them after a snapshot has been persisted; UI
observers react by re-reading progress through the service.

All events carry a ``timestamp`` and a ``source_id`` identifying the
originating component.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Base event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    timestamp: float = field(default_factory=time.time)
    source_id: str = ""


# ---------------------------------------------------------------------------
# Progress events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProgressChanged(DomainEvent):
    """A user's persisted progress changed.

    Deliberately carries no snapshot; observers fetch fresh state.
    """

    user_id: str = ""
    reason: str = ""


@dataclass(frozen=True)
class QuizAttemptRecorded(DomainEvent):
    """A graded quiz attempt was recorded and persisted."""

    user_id: str = ""
    attempt_id: str = ""
    topic_id: str = ""
    section_id: str = ""
    passed: bool = False
    score: float = 0.0


@dataclass(frozen=True)
class ProgressReset(DomainEvent):
    """A user's progress was cleared back to an empty snapshot."""

    user_id: str = ""
