"""Serialization of progress snapshots to the stored document format.

Encoding is hand-written ``*_to_dict`` functions producing plain
JSON-serializable dicts.  Decoding goes through pydantic document models so
that a stored document is validated as a whole before any domain object is
built; every validation failure surfaces as ``SnapshotDecodeError``.

Wire conventions:
- camelCase field names (``completedTopics``, ``quizAttempts``, ...).
- Durations are integer milliseconds.
- Timestamps are ISO-8601 strings in UTC.
- Sets are written as sorted arrays; their order carries no meaning.
- ``schemaVersion`` marks the document layout.  Documents written by the
  older app model (``completedSectionQuizzes``, ``attemptDate``, attempts
  without ids, sections without ``sectionId``) are still accepted.  Such
  documents carry no ``schemaVersion`` and store durations in whole seconds.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from learning_progress.domain.aggregates import ProgressSnapshot
from learning_progress.domain.exceptions import SnapshotDecodeError
from learning_progress.domain.values import LearningStats, QuizAttempt, SectionProgress

SCHEMA_VERSION = 1


# =========================================================================== #
#  Generic helpers                                                             #
# =========================================================================== #

def _millis(td: timedelta) -> int:
    return td // timedelta(milliseconds=1)


def _from_millis(ms: int) -> timedelta:
    return timedelta(milliseconds=ms)


def _from_seconds(s: int) -> timedelta:
    return timedelta(seconds=s)


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def _as_utc(dt: datetime | None) -> datetime | None:
    """Normalize to stdlib UTC; naive timestamps are taken to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# =========================================================================== #
#  Document schema                                                             #
# =========================================================================== #

class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SectionProgressDocument(_Document):
    section_id: str = ""
    topics_completed: int = 0
    total_topics: int = 0
    section_quiz_completed: bool = False


class QuizAttemptDocument(_Document):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    topic_id: str = ""
    section_id: str = ""
    timestamp: datetime = Field(validation_alias=AliasChoices("timestamp", "attemptDate"))
    score: float = 0.0
    passed: bool = False
    time_spent: int = 0
    total_questions: int = 0
    correct_answers: int = 0
    is_topic_quiz: bool = True


class SnapshotDocument(_Document):
    schema_version: int | None = None
    completed_topics: list[str] | None = None
    completed_sections: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "completedSections", "completedSectionQuizzes", "completed_sections"
        ),
    )
    section_progress: dict[str, SectionProgressDocument] | None = None
    quiz_attempts: list[QuizAttemptDocument] | None = None
    best_scores: dict[str, float] | None = None
    topic_attempt_counts: dict[str, int] | None = None
    topic_time_spent: dict[str, int] | None = None
    last_activity_date: datetime | None = None
    total_quizzes_taken: int = 0
    total_quizzes_passed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_streak_date: datetime | None = None


# =========================================================================== #
#  Value objects                                                               #
# =========================================================================== #

def section_progress_to_dict(sp: SectionProgress) -> dict[str, Any]:
    return {
        "sectionId": sp.section_id,
        "topicsCompleted": sp.topics_completed,
        "totalTopics": sp.total_topics,
        "sectionQuizCompleted": sp.section_quiz_completed,
    }


def _section_progress_from_document(doc: SectionProgressDocument, key: str = "") -> SectionProgress:
    return SectionProgress(
        section_id=doc.section_id or key,
        topics_completed=doc.topics_completed,
        total_topics=doc.total_topics,
        section_quiz_completed=doc.section_quiz_completed,
    )


def section_progress_from_dict(data: dict[str, Any]) -> SectionProgress:
    try:
        doc = SectionProgressDocument.model_validate(data)
    except ValidationError as exc:
        raise SnapshotDecodeError(f"Invalid section progress: {exc}") from exc
    return _section_progress_from_document(doc)


def attempt_to_dict(a: QuizAttempt) -> dict[str, Any]:
    return {
        "id": a.id,
        "topicId": a.topic_id,
        "sectionId": a.section_id,
        "timestamp": _iso(a.timestamp),
        "score": a.score,
        "passed": a.passed,
        "timeSpent": _millis(a.time_spent),
        "totalQuestions": a.total_questions,
        "correctAnswers": a.correct_answers,
        "isTopicQuiz": a.is_topic_quiz,
    }


def _attempt_from_document(doc: QuizAttemptDocument, legacy: bool = False) -> QuizAttempt:
    return QuizAttempt(
        id=doc.id,
        topic_id=doc.topic_id,
        section_id=doc.section_id,
        timestamp=_as_utc(doc.timestamp),
        score=doc.score,
        passed=doc.passed,
        time_spent=_from_seconds(doc.time_spent) if legacy else _from_millis(doc.time_spent),
        total_questions=doc.total_questions,
        correct_answers=doc.correct_answers,
        is_topic_quiz=doc.is_topic_quiz,
    )


def attempt_from_dict(data: dict[str, Any]) -> QuizAttempt:
    try:
        doc = QuizAttemptDocument.model_validate(data)
    except ValidationError as exc:
        raise SnapshotDecodeError(f"Invalid quiz attempt: {exc}") from exc
    return _attempt_from_document(doc)


def learning_stats_to_dict(stats: LearningStats) -> dict[str, Any]:
    return {
        "totalTopicsCompleted": stats.total_topics_completed,
        "totalSectionsCompleted": stats.total_sections_completed,
        "totalQuizzesTaken": stats.total_quizzes_taken,
        "totalQuizzesPassed": stats.total_quizzes_passed,
        "overallPassRate": stats.overall_pass_rate,
        "averageScore": stats.average_score,
        "overallProgress": stats.overall_progress,
        "totalTimeSpent": _millis(stats.total_time_spent),
        "currentStreak": stats.current_streak,
        "longestStreak": stats.longest_streak,
        "lastActivityDate": _iso(stats.last_activity_date),
        "daysSinceLastActivity": stats.days_since_last_activity,
    }


# =========================================================================== #
#  Aggregate                                                                   #
# =========================================================================== #

def snapshot_to_dict(s: ProgressSnapshot) -> dict[str, Any]:
    return {
        "schemaVersion": SCHEMA_VERSION,
        "completedTopics": sorted(s.completed_topics),
        "completedSections": sorted(s.completed_sections),
        "sectionProgress": {
            key: section_progress_to_dict(sp) for key, sp in s.section_progress.items()
        },
        "quizAttempts": [attempt_to_dict(a) for a in s.quiz_attempts],
        "bestScores": dict(s.best_scores),
        "topicAttemptCounts": dict(s.topic_attempt_counts),
        "topicTimeSpent": {key: _millis(td) for key, td in s.topic_time_spent.items()},
        "lastActivityDate": _iso(s.last_activity_date),
        "totalQuizzesTaken": s.total_quizzes_taken,
        "totalQuizzesPassed": s.total_quizzes_passed,
        "currentStreak": s.current_streak,
        "longestStreak": s.longest_streak,
        "lastStreakDate": _iso(s.last_streak_date),
    }


def snapshot_from_dict(data: Any) -> ProgressSnapshot:
    """Validate *data* as a stored document and build the snapshot.

    Raises ``SnapshotDecodeError`` for anything that is not a valid document.
    """
    try:
        doc = SnapshotDocument.model_validate(data)
    except ValidationError as exc:
        raise SnapshotDecodeError(f"Invalid progress document: {exc}") from exc

    legacy = doc.schema_version is None
    if not legacy and doc.schema_version > SCHEMA_VERSION:
        raise SnapshotDecodeError(
            f"Unsupported schemaVersion {doc.schema_version}",
            details={"schema_version": doc.schema_version},
        )

    return ProgressSnapshot(
        completed_topics=frozenset(doc.completed_topics or ()),
        completed_sections=frozenset(doc.completed_sections or ()),
        section_progress={
            key: _section_progress_from_document(sp, key)
            for key, sp in (doc.section_progress or {}).items()
        },
        quiz_attempts=tuple(
            _attempt_from_document(a, legacy) for a in doc.quiz_attempts or ()
        ),
        best_scores=dict(doc.best_scores or {}),
        topic_attempt_counts=dict(doc.topic_attempt_counts or {}),
        topic_time_spent={
            key: _from_seconds(v) if legacy else _from_millis(v)
            for key, v in (doc.topic_time_spent or {}).items()
        },
        last_activity_date=_as_utc(doc.last_activity_date),
        total_quizzes_taken=doc.total_quizzes_taken,
        total_quizzes_passed=doc.total_quizzes_passed,
        current_streak=doc.current_streak,
        longest_streak=doc.longest_streak,
        last_streak_date=_as_utc(doc.last_streak_date),
    )


# =========================================================================== #
#  Unified serializer                                                          #
# =========================================================================== #

# Maps type -> (to_dict_fn, from_dict_fn)
_SERIALIZERS: dict[type, tuple[Any, Any]] = {
    ProgressSnapshot: (snapshot_to_dict, snapshot_from_dict),
    QuizAttempt: (attempt_to_dict, attempt_from_dict),
    SectionProgress: (section_progress_to_dict, section_progress_from_dict),
    LearningStats: (learning_stats_to_dict, None),
}


def serialize(obj: Any) -> dict[str, Any]:
    """Serialize a known domain object to a dict.

    Raises ``TypeError`` for unsupported types.
    """
    ser = _SERIALIZERS.get(type(obj))
    if ser is None:
        raise TypeError(f"Cannot serialize object of type {type(obj).__name__}")
    to_fn, _ = ser
    return to_fn(obj)


def deserialize(data: dict[str, Any], target_type: type) -> Any:
    """Deserialize a dict into *target_type*."""
    ser = _SERIALIZERS.get(target_type)
    if ser is None or ser[1] is None:
        raise TypeError(f"No deserializer registered for {target_type.__name__}")
    _, from_fn = ser
    return from_fn(data)


# =========================================================================== #
#  JSON / YAML helpers                                                         #
# =========================================================================== #

def to_json(obj: Any, *, indent: int | None = 2) -> str:
    """Serialize a domain object to a JSON string."""
    return json.dumps(serialize(obj), indent=indent)


def from_json(json_str: str, target_type: type = ProgressSnapshot) -> Any:
    """Deserialize a JSON string into *target_type*.

    Malformed JSON raises ``SnapshotDecodeError`` like any other bad document.
    """
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise SnapshotDecodeError(f"Malformed JSON: {exc}") from exc
    return deserialize(data, target_type)


def to_yaml(obj: Any) -> str:
    """Serialize a domain object to a YAML string."""
    return yaml.safe_dump(serialize(obj), default_flow_style=False, sort_keys=False)


def from_yaml(yaml_str: str, target_type: type = ProgressSnapshot) -> Any:
    """Deserialize a YAML string into *target_type*."""
    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as exc:
        raise SnapshotDecodeError(f"Malformed YAML: {exc}") from exc
    return deserialize(data, target_type)
