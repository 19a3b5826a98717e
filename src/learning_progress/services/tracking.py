"""Progress tracking service: the read-modify-persist-notify cycle.

``ProgressTrackingService`` is the orchestrator around the pure
``ProgressSnapshot`` model.  Every update follows the same sequence:

1. load the user's current snapshot (cache, then repository),
2. apply a snapshot transformation,
3. refresh the affected section entries from the content catalog,
4. persist the new snapshot,
5. publish events to observers.

Cycles for the same user are serialized with a per-user lock so that
attempts recorded close together never overwrite each other.  If the write
fails the cached snapshot stays at its last-known-good value, nobody is
notified, and ``PersistenceError`` propagates to the caller.

A stored document that cannot be decoded is treated as "no prior progress":
the failure is logged and the user starts from an empty snapshot.

The service is constructed explicitly and passed to whoever needs it; there
is no process-wide instance.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from learning_progress.domain.aggregates import ProgressSnapshot
from learning_progress.domain.events import (
    DomainEvent,
    ProgressChanged,
    ProgressReset,
    QuizAttemptRecorded,
)
from learning_progress.domain.exceptions import PersistenceError, SnapshotDecodeError
from learning_progress.domain.values import LearningStats, QuizAttempt, utcnow
from learning_progress.infrastructure.catalog import ContentCatalog
from learning_progress.infrastructure.config import TrackingConfig
from learning_progress.infrastructure.event_bus import EventBus, Handler, Subscription
from learning_progress.infrastructure.repository import ProgressRepository

logger = logging.getLogger(__name__)

Transform = Callable[[ProgressSnapshot], ProgressSnapshot]


class ProgressTrackingService:
    """Loads, updates, persists and announces users' progress.

    Parameters
    ----------
    repository:
        Where snapshots are stored.
    catalog:
        Content structure used to size sections.  Without a catalog, section
        entries are only refreshed when they already carry a topic count.
    event_bus:
        Observer bus; a private one is created when omitted.
    config:
        Passing threshold and listing defaults.
    clock:
        Returns the current time; override for deterministic tests.
    """

    def __init__(
        self,
        repository: ProgressRepository,
        catalog: ContentCatalog | None = None,
        event_bus: EventBus | None = None,
        config: TrackingConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._catalog = catalog
        self._event_bus = event_bus if event_bus is not None else EventBus()
        self._config = config if config is not None else TrackingConfig()
        self._config.validate()
        self._clock = clock or utcnow

        self._cache: dict[str, ProgressSnapshot] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # -- properties -----------------------------------------------------------

    @property
    def repository(self) -> ProgressRepository:
        return self._repository

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def config(self) -> TrackingConfig:
        return self._config

    # -- observers ------------------------------------------------------------

    def subscribe(self, handler: Handler, user_id: str | None = None) -> Subscription:
        """Call *handler* with a ``ProgressChanged`` event after every successful update."""
        return self._event_bus.subscribe(ProgressChanged, handler, user_id=user_id)

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._event_bus.unsubscribe(subscription)

    # -- reads ----------------------------------------------------------------

    def get_progress(self, user_id: str) -> ProgressSnapshot:
        """Current snapshot for *user_id* (empty for new users)."""
        with self._lock_for(user_id):
            return self._load(user_id)

    def learning_stats(self, user_id: str) -> LearningStats:
        return self.get_progress(user_id).learning_stats(now=self._clock())

    def recent_attempts(self, user_id: str, limit: int | None = None) -> list[QuizAttempt]:
        if limit is None:
            limit = self._config.recent_attempts_limit
        return self.get_progress(user_id).get_recent_attempts(limit)

    # -- updates --------------------------------------------------------------

    def record_quiz_attempt(
        self,
        user_id: str,
        topic_id: str,
        section_id: str,
        score: float,
        passed: bool,
        time_spent: timedelta,
        total_questions: int,
        correct_answers: int,
        is_topic_quiz: bool,
    ) -> ProgressSnapshot:
        """Record one graded attempt and return the persisted snapshot."""
        now = self._clock()

        def transform(snapshot: ProgressSnapshot) -> ProgressSnapshot:
            return snapshot.record_quiz_attempt(
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

        sections = self._sections_touched(topic_id, section_id, is_topic_quiz)
        updated = self._apply(user_id, transform, sections)
        attempt = updated.quiz_attempts[-1]
        logger.info(
            "Recorded %s attempt for %r: topic=%r section=%r score=%.2f %s",
            "topic" if is_topic_quiz else "section",
            user_id, topic_id, section_id, score,
            "PASSED" if passed else "FAILED",
        )
        self._notify(
            QuizAttemptRecorded(
                source_id=type(self).__name__,
                user_id=user_id,
                attempt_id=attempt.id,
                topic_id=topic_id,
                section_id=section_id,
                passed=passed,
                score=score,
            ),
            ProgressChanged(source_id=type(self).__name__, user_id=user_id, reason="quiz_attempt"),
        )
        return updated

    def record_quiz_completion(
        self,
        user_id: str,
        topic_id: str,
        score: float,
        *,
        section_id: str = "",
        time_spent: timedelta = timedelta(0),
        total_questions: int = 0,
        correct_answers: int = 0,
        passing_score: float | None = None,
    ) -> ProgressSnapshot:
        """Record a finished topic quiz, deciding pass/fail from *score*.

        The attempt passes when ``score >= passing_score`` (default taken
        from the tracking config).
        """
        threshold = self._config.passing_score if passing_score is None else passing_score
        return self.record_quiz_attempt(
            user_id,
            topic_id=topic_id,
            section_id=section_id,
            score=score,
            passed=score >= threshold,
            time_spent=time_spent,
            total_questions=total_questions,
            correct_answers=correct_answers,
            is_topic_quiz=True,
        )

    def complete_topic_quiz(self, user_id: str, topic_id: str, passed: bool) -> ProgressSnapshot:
        return self.record_quiz_attempt(
            user_id,
            topic_id=topic_id,
            section_id="",
            score=1.0 if passed else 0.0,
            passed=passed,
            time_spent=timedelta(0),
            total_questions=1,
            correct_answers=1 if passed else 0,
            is_topic_quiz=True,
        )

    def complete_section_quiz(self, user_id: str, section_id: str, passed: bool) -> ProgressSnapshot:
        return self.record_quiz_attempt(
            user_id,
            topic_id="",
            section_id=section_id,
            score=1.0 if passed else 0.0,
            passed=passed,
            time_spent=timedelta(0),
            total_questions=1,
            correct_answers=1 if passed else 0,
            is_topic_quiz=False,
        )

    def update_section_progress(
        self, user_id: str, section_id: str, total_topics: int | None = None
    ) -> ProgressSnapshot:
        """Recount one section; *total_topics* defaults to the catalog's count."""
        topic_ids = self._catalog_topics(section_id)
        if total_topics is None:
            total_topics = len(topic_ids) if topic_ids is not None else 0

        def transform(snapshot: ProgressSnapshot) -> ProgressSnapshot:
            return snapshot.update_section_progress(section_id, total_topics, topic_ids)

        updated = self._apply(user_id, transform, ())
        self._notify(
            ProgressChanged(source_id=type(self).__name__, user_id=user_id, reason="section_progress"),
        )
        return updated

    def clear_progress(self, user_id: str) -> ProgressSnapshot:
        """Replace the user's progress with an empty snapshot."""
        updated = self._apply(user_id, lambda snapshot: snapshot.reset(), ())
        logger.info("Cleared progress for %r", user_id)
        self._notify(
            ProgressReset(source_id=type(self).__name__, user_id=user_id),
            ProgressChanged(source_id=type(self).__name__, user_id=user_id, reason="reset"),
        )
        return updated

    def refresh_progress(self, user_id: str) -> ProgressSnapshot:
        """Drop the cached snapshot, reload it from storage and notify observers."""
        with self._lock_for(user_id):
            self._cache.pop(user_id, None)
            snapshot = self._load(user_id)
        self._notify(
            ProgressChanged(source_id=type(self).__name__, user_id=user_id, reason="refresh"),
        )
        return snapshot

    # -- internals ------------------------------------------------------------

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    def _load(self, user_id: str) -> ProgressSnapshot:
        """Cached snapshot, else the stored one; caller holds the user's lock."""
        cached = self._cache.get(user_id)
        if cached is not None:
            logger.debug("Progress cache hit for %r", user_id)
            return cached

        try:
            stored = self._repository.get(user_id)
        except SnapshotDecodeError as exc:
            logger.warning(
                "Discarding undecodable progress for %r, starting empty: %s", user_id, exc
            )
            stored = None
        except PersistenceError:
            logger.exception("Failed to load progress for %r", user_id)
            raise

        snapshot = stored if stored is not None else ProgressSnapshot.empty()
        self._cache[user_id] = snapshot
        logger.debug("Loaded progress for %r: %r", user_id, snapshot)
        return snapshot

    def _catalog_topics(self, section_id: str) -> tuple[str, ...] | None:
        """The section's topic ids from the catalog, or None if it is not listed."""
        if self._catalog is None or section_id not in self._catalog:
            return None
        return self._catalog.topics(section_id)

    def _sections_touched(self, topic_id: str, section_id: str, is_topic_quiz: bool) -> list[str]:
        sections: list[str] = []
        if is_topic_quiz and topic_id and self._catalog is not None:
            owner = self._catalog.section_for_topic(topic_id)
            if owner:
                sections.append(owner)
        if section_id and section_id not in sections:
            sections.append(section_id)
        return sections

    def _refresh_sections(self, snapshot: ProgressSnapshot, section_ids: Iterable[str]) -> ProgressSnapshot:
        for section_id in section_ids:
            topic_ids = self._catalog_topics(section_id)
            if topic_ids is not None:
                total = len(topic_ids)
            elif section_id in snapshot.section_progress:
                total = snapshot.section_progress[section_id].total_topics
            else:
                continue
            snapshot = snapshot.update_section_progress(section_id, total, topic_ids)
        return snapshot

    def _apply(
        self, user_id: str, transform: Transform, section_ids: Iterable[str]
    ) -> ProgressSnapshot:
        with self._lock_for(user_id):
            current = self._load(user_id)
            updated = self._refresh_sections(transform(current), section_ids)
            try:
                self._repository.put(user_id, updated)
            except PersistenceError:
                logger.exception("Failed to persist progress for %r; keeping previous snapshot", user_id)
                raise
            except OSError as exc:
                logger.exception("Failed to persist progress for %r; keeping previous snapshot", user_id)
                raise PersistenceError(
                    f"Could not write progress for {user_id!r}: {exc}",
                    user_id=user_id,
                    operation="put",
                ) from exc
            self._cache[user_id] = updated
        return updated

    def _notify(self, *events: DomainEvent) -> None:
        self._event_bus.publish_many(events)
