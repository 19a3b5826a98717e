"""Aggregate root for learning progress.

``ProgressSnapshot`` is one immutable version of a user's complete progress.
Every transformation returns a *new* snapshot; the receiver is never changed,
so a caller holding an old snapshot can never observe a partial update.

Completion is monotonic: once a topic or section has been passed it stays in
the completion set until an explicit :meth:`ProgressSnapshot.reset`.

Streaks are counted per attempt, not per calendar day: a failed attempt ends
the current run, a passed attempt extends it.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import numpy as np

from .values import LearningStats, QuizAttempt, SectionProgress, utcnow

DEFAULT_RECENT_ATTEMPTS = 10


@dataclass(frozen=True)
class ProgressSnapshot:
    """Immutable aggregate of completion sets, attempt history and counters.

    Note: the mapping fields are plain dicts.  They are copied on every
    transformation and must not be mutated by callers.  Snapshots compare by
    value but are unhashable.
    """

    __hash__ = None  # type: ignore[assignment]

    completed_topics: frozenset[str] = frozenset()
    completed_sections: frozenset[str] = frozenset()
    section_progress: Mapping[str, SectionProgress] = field(default_factory=dict)
    quiz_attempts: tuple[QuizAttempt, ...] = ()
    best_scores: Mapping[str, float] = field(default_factory=dict)
    topic_attempt_counts: Mapping[str, int] = field(default_factory=dict)
    topic_time_spent: Mapping[str, timedelta] = field(default_factory=dict)
    last_activity_date: datetime | None = None
    total_quizzes_taken: int = 0
    total_quizzes_passed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_streak_date: datetime | None = None

    @classmethod
    def empty(cls) -> ProgressSnapshot:
        """Progress of a user who has not attempted anything yet."""
        return cls()

    # -- transformations ------------------------------------------------------

    def record_quiz_attempt(
        self,
        topic_id: str,
        section_id: str,
        score: float,
        passed: bool,
        time_spent: timedelta,
        total_questions: int,
        correct_answers: int,
        is_topic_quiz: bool,
        *,
        now: datetime | None = None,
    ) -> ProgressSnapshot:
        """Return a snapshot with one more graded attempt applied.

        Appends the attempt, raises the topic's best score if improved, bumps
        the per-topic attempt count and time spent, adds the topic (topic quiz)
        or section (section quiz) to its completion set when passed, updates
        the running totals and recomputes the streak.  Inputs are not
        validated; out-of-range values are stored as given.
        """
        now = now if now is not None else utcnow()
        attempt = QuizAttempt.create(
            topic_id=topic_id,
            section_id=section_id,
            score=score,
            passed=passed,
            time_spent=time_spent,
            total_questions=total_questions,
            correct_answers=correct_answers,
            is_topic_quiz=is_topic_quiz,
            now=now,
        )

        best_scores = dict(self.best_scores)
        if topic_id and score > best_scores.get(topic_id, 0.0):
            best_scores[topic_id] = score

        attempt_counts = dict(self.topic_attempt_counts)
        attempt_counts[topic_id] = attempt_counts.get(topic_id, 0) + 1

        time_by_topic = dict(self.topic_time_spent)
        time_by_topic[topic_id] = time_by_topic.get(topic_id, timedelta(0)) + time_spent

        completed_topics = self.completed_topics
        completed_sections = self.completed_sections
        if passed:
            if is_topic_quiz:
                completed_topics = completed_topics | {topic_id}
            else:
                completed_sections = completed_sections | {section_id}

        if passed:
            current_streak = self.current_streak + 1
            longest_streak = max(self.longest_streak, current_streak)
            last_streak_date = now
        else:
            current_streak = 0
            longest_streak = self.longest_streak
            last_streak_date = self.last_streak_date

        return dataclasses.replace(
            self,
            completed_topics=completed_topics,
            completed_sections=completed_sections,
            quiz_attempts=self.quiz_attempts + (attempt,),
            best_scores=best_scores,
            topic_attempt_counts=attempt_counts,
            topic_time_spent=time_by_topic,
            last_activity_date=now,
            total_quizzes_taken=self.total_quizzes_taken + 1,
            total_quizzes_passed=self.total_quizzes_passed + (1 if passed else 0),
            current_streak=current_streak,
            longest_streak=longest_streak,
            last_streak_date=last_streak_date,
        )

    def complete_topic_quiz(
        self, topic_id: str, passed: bool, *, now: datetime | None = None
    ) -> ProgressSnapshot:
        """Record a pass/fail topic result without detailed scoring."""
        return self.record_quiz_attempt(
            topic_id=topic_id,
            section_id="",
            score=1.0 if passed else 0.0,
            passed=passed,
            time_spent=timedelta(0),
            total_questions=1,
            correct_answers=1 if passed else 0,
            is_topic_quiz=True,
            now=now,
        )

    def complete_section_quiz(
        self, section_id: str, passed: bool, *, now: datetime | None = None
    ) -> ProgressSnapshot:
        """Record a pass/fail section result without detailed scoring."""
        return self.record_quiz_attempt(
            topic_id="",
            section_id=section_id,
            score=1.0 if passed else 0.0,
            passed=passed,
            time_spent=timedelta(0),
            total_questions=1,
            correct_answers=1 if passed else 0,
            is_topic_quiz=False,
            now=now,
        )

    def update_section_progress(
        self,
        section_id: str,
        total_topics: int,
        topic_ids: Iterable[str] | None = None,
    ) -> ProgressSnapshot:
        """Recount one section's completed topics and store its entry.

        With *topic_ids* (the section's membership list) the count is the
        number of those topics that are completed.  Without it, topics are
        attributed to a section by id prefix, so topic ids must be namespaced
        by their section id (``"intro"`` owns ``"intro-1"``).
        """
        if topic_ids is not None:
            topics_completed = len(self.completed_topics.intersection(topic_ids))
        else:
            topics_completed = sum(
                1 for topic_id in self.completed_topics if topic_id.startswith(section_id)
            )
        section_progress = dict(self.section_progress)
        section_progress[section_id] = SectionProgress(
            section_id=section_id,
            topics_completed=topics_completed,
            total_topics=total_topics,
            section_quiz_completed=section_id in self.completed_sections,
        )
        return dataclasses.replace(self, section_progress=section_progress)

    def reset(self) -> ProgressSnapshot:
        """Return an empty snapshot; the only way completion is ever undone."""
        return ProgressSnapshot.empty()

    # -- accessors ------------------------------------------------------------

    def get_section_progress(self, section_id: str) -> SectionProgress:
        existing = self.section_progress.get(section_id)
        if existing is None:
            return SectionProgress(section_id=section_id)
        return existing

    def is_topic_completed(self, topic_id: str) -> bool:
        return topic_id in self.completed_topics

    def is_section_completed(self, section_id: str) -> bool:
        return section_id in self.completed_sections

    def get_best_score(self, topic_id: str) -> float:
        return self.best_scores.get(topic_id, 0.0)

    def get_topic_attempts(self, topic_id: str) -> list[QuizAttempt]:
        """Attempts for *topic_id* in chronological order."""
        return [a for a in self.quiz_attempts if a.topic_id == topic_id]

    def get_recent_attempts(self, limit: int = DEFAULT_RECENT_ATTEMPTS) -> list[QuizAttempt]:
        """Up to *limit* attempts, newest first.

        Attempts sharing a timestamp are ordered by insertion, latest first.
        """
        newest_first = sorted(
            reversed(self.quiz_attempts), key=lambda a: a.timestamp, reverse=True
        )
        return newest_first[: max(limit, 0)]

    def get_topic_pass_rate(self, topic_id: str) -> float:
        attempts = self.get_topic_attempts(topic_id)
        if not attempts:
            return 0.0
        return sum(1 for a in attempts if a.passed) / len(attempts)

    @property
    def overall_pass_rate(self) -> float:
        if self.total_quizzes_taken == 0:
            return 0.0
        return self.total_quizzes_passed / self.total_quizzes_taken

    @property
    def overall_progress(self) -> float:
        """Mean progress percentage across every tracked section."""
        if not self.section_progress:
            return 0.0
        return float(np.mean([sp.progress_percentage for sp in self.section_progress.values()]))

    @property
    def total_time_spent(self) -> timedelta:
        return sum(self.topic_time_spent.values(), timedelta(0))

    @property
    def average_quiz_score(self) -> float:
        if not self.quiz_attempts:
            return 0.0
        return float(np.mean([a.score for a in self.quiz_attempts]))

    @property
    def total_topics_completed(self) -> int:
        return len(self.completed_topics)

    def learning_stats(self, now: datetime | None = None) -> LearningStats:
        """Bundle the aggregate views into a :class:`LearningStats`."""
        days_since = None
        if self.last_activity_date is not None:
            now = now if now is not None else utcnow()
            days_since = (now - self.last_activity_date).days

        return LearningStats(
            total_topics_completed=len(self.completed_topics),
            total_sections_completed=len(self.completed_sections),
            total_quizzes_taken=self.total_quizzes_taken,
            total_quizzes_passed=self.total_quizzes_passed,
            overall_pass_rate=self.overall_pass_rate,
            average_score=self.average_quiz_score,
            overall_progress=self.overall_progress,
            total_time_spent=self.total_time_spent,
            current_streak=self.current_streak,
            longest_streak=self.longest_streak,
            last_activity_date=self.last_activity_date,
            days_since_last_activity=days_since,
        )

    def __repr__(self) -> str:
        return (
            f"ProgressSnapshot(topics={len(self.completed_topics)}, "
            f"sections={len(self.completed_sections)}, "
            f"attempts={len(self.quiz_attempts)}, streak={self.current_streak})"
        )
