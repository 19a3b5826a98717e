"""Tests for domain value objects (SectionProgress, QuizAttempt, LearningStats)."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from learning_progress.domain.values import (
    LearningStats,
    QuizAttempt,
    SectionProgress,
    utcnow,
)

# ===================================================================== #
#  SectionProgress                                                        #
# ===================================================================== #


class TestSectionProgress:

    def test_defaults(self) -> None:
        sp = SectionProgress()
        assert sp.section_id == ""
        assert sp.topics_completed == 0
        assert sp.total_topics == 0
        assert sp.section_quiz_completed is False

    def test_progress_percentage(self) -> None:
        sp = SectionProgress(section_id="s1", topics_completed=3, total_topics=4)
        assert sp.progress_percentage == pytest.approx(0.75)

    def test_progress_percentage_empty_section(self) -> None:
        assert SectionProgress(total_topics=0).progress_percentage == 0.0

    def test_is_complete(self) -> None:
        assert SectionProgress(topics_completed=4, total_topics=4).is_complete
        assert not SectionProgress(topics_completed=3, total_topics=4).is_complete

    def test_empty_section_is_never_complete(self) -> None:
        assert not SectionProgress(topics_completed=0, total_topics=0).is_complete

    def test_is_fully_complete_needs_quiz(self) -> None:
        topics_only = SectionProgress(topics_completed=2, total_topics=2)
        assert not topics_only.is_fully_complete
        both = SectionProgress(topics_completed=2, total_topics=2, section_quiz_completed=True)
        assert both.is_fully_complete

    def test_quiz_without_topics_is_not_fully_complete(self) -> None:
        sp = SectionProgress(topics_completed=1, total_topics=2, section_quiz_completed=True)
        assert not sp.is_fully_complete

    def test_progress_text(self) -> None:
        assert SectionProgress(topics_completed=3, total_topics=4).progress_text == "3 / 4"

    def test_frozen(self) -> None:
        sp = SectionProgress(section_id="s1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            sp.topics_completed = 5  # type: ignore[misc]


# ===================================================================== #
#  QuizAttempt                                                            #
# ===================================================================== #


class TestQuizAttempt:

    @pytest.fixture
    def attempt(self) -> QuizAttempt:
        return QuizAttempt.create(
            topic_id="intro-1",
            section_id="intro",
            score=0.9,
            passed=True,
            time_spent=timedelta(seconds=120),
            total_questions=10,
            correct_answers=9,
            is_topic_quiz=True,
            now=datetime(2024, 3, 1, tzinfo=timezone.utc),
        )

    def test_create_stamps_given_time(self, attempt: QuizAttempt) -> None:
        assert attempt.timestamp == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert attempt.topic_id == "intro-1"
        assert attempt.is_topic_quiz is True

    def test_create_generates_unique_ids(self) -> None:
        kwargs = dict(
            topic_id="t", section_id="", score=0.5, passed=False,
            time_spent=timedelta(0), total_questions=2, correct_answers=1,
            is_topic_quiz=True,
        )
        a = QuizAttempt.create(**kwargs)
        b = QuizAttempt.create(**kwargs)
        assert a.id and b.id
        assert a.id != b.id

    def test_create_defaults_to_current_utc_time(self) -> None:
        before = utcnow()
        a = QuizAttempt.create("t", "", 0.5, False, timedelta(0), 1, 0, True)
        assert before <= a.timestamp <= utcnow()
        assert a.timestamp.tzinfo is not None

    def test_accuracy(self, attempt: QuizAttempt) -> None:
        assert attempt.accuracy == pytest.approx(0.9)

    def test_accuracy_without_questions(self) -> None:
        assert QuizAttempt(total_questions=0).accuracy == 0.0

    def test_incorrect_answers(self, attempt: QuizAttempt) -> None:
        assert attempt.incorrect_answers == 1

    def test_average_time_per_question(self, attempt: QuizAttempt) -> None:
        assert attempt.average_time_per_question == timedelta(seconds=12)

    def test_average_time_without_questions(self) -> None:
        a = QuizAttempt(time_spent=timedelta(seconds=30), total_questions=0)
        assert a.average_time_per_question == timedelta(0)

    def test_value_equality(self, attempt: QuizAttempt) -> None:
        assert dataclasses.replace(attempt) == attempt


# ===================================================================== #
#  LearningStats                                                          #
# ===================================================================== #


class TestLearningStats:

    def test_defaults(self) -> None:
        stats = LearningStats()
        assert stats.total_quizzes_taken == 0
        assert stats.total_time_spent == timedelta(0)
        assert stats.last_activity_date is None
        assert stats.days_since_last_activity is None
