"""Value objects for learning progress.

All types here are frozen dataclasses: immutable and compared by value.
They describe one section's progress, one graded quiz attempt, and the
read-only statistics projection of a user's progress.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# SectionProgress
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SectionProgress:
    """Progress within one learning section.

    ``total_topics`` is supplied by the content catalog at update time; the
    progress model itself knows nothing about how content is structured.
    """

    section_id: str = ""
    topics_completed: int = 0
    total_topics: int = 0
    section_quiz_completed: bool = False

    @property
    def progress_percentage(self) -> float:
        """Fraction of topics completed, in [0, 1] for consistent inputs."""
        if self.total_topics == 0:
            return 0.0
        return self.topics_completed / self.total_topics

    @property
    def is_complete(self) -> bool:
        """True when every topic of a non-empty section is completed."""
        return self.topics_completed >= self.total_topics and self.total_topics > 0

    @property
    def is_fully_complete(self) -> bool:
        """True when all topics and the section quiz are completed."""
        return self.is_complete and self.section_quiz_completed

    @property
    def progress_text(self) -> str:
        return f"{self.topics_completed} / {self.total_topics}"


# ---------------------------------------------------------------------------
# QuizAttempt
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class QuizAttempt:
    """One graded submission of a topic or section quiz.

    ``passed`` is decided by the caller; the passing threshold is not a
    concern of the progress model.  ``is_topic_quiz`` tells topic-level
    attempts apart from section-level ones.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    topic_id: str = ""
    section_id: str = ""
    timestamp: datetime = field(default_factory=utcnow)
    score: float = 0.0
    passed: bool = False
    time_spent: timedelta = timedelta(0)
    total_questions: int = 0
    correct_answers: int = 0
    is_topic_quiz: bool = True

    @classmethod
    def create(
        cls,
        topic_id: str,
        section_id: str,
        score: float,
        passed: bool,
        time_spent: timedelta,
        total_questions: int,
        correct_answers: int,
        is_topic_quiz: bool,
        now: datetime | None = None,
    ) -> QuizAttempt:
        """Build an attempt with a fresh id, stamped at *now* (default: current UTC time)."""
        return cls(
            topic_id=topic_id,
            section_id=section_id,
            timestamp=now if now is not None else utcnow(),
            score=score,
            passed=passed,
            time_spent=time_spent,
            total_questions=total_questions,
            correct_answers=correct_answers,
            is_topic_quiz=is_topic_quiz,
        )

    @property
    def accuracy(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return self.correct_answers / self.total_questions

    @property
    def incorrect_answers(self) -> int:
        return self.total_questions - self.correct_answers

    @property
    def average_time_per_question(self) -> timedelta:
        if self.total_questions == 0:
            return timedelta(0)
        return self.time_spent / self.total_questions


# ---------------------------------------------------------------------------
# LearningStats
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LearningStats:
    """Read-only summary of a user's progress, for dashboards and reports."""

    total_topics_completed: int = 0
    total_sections_completed: int = 0
    total_quizzes_taken: int = 0
    total_quizzes_passed: int = 0
    overall_pass_rate: float = 0.0
    average_score: float = 0.0
    overall_progress: float = 0.0
    total_time_spent: timedelta = timedelta(0)
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: datetime | None = None
    days_since_last_activity: int | None = None  # None when never active
