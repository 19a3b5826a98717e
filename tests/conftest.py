"""Shared fixtures for the learning-progress test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from learning_progress.domain.aggregates import ProgressSnapshot
from learning_progress.infrastructure.catalog import ContentCatalog
from learning_progress.infrastructure.config import TrackingConfig
from learning_progress.infrastructure.event_bus import EventBus
from learning_progress.infrastructure.repository import InMemoryProgressRepository
from learning_progress.services.tracking import ProgressTrackingService

# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class FakeClock:
    """Deterministic clock; ``advance`` moves it forward."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def t0() -> datetime:
    """Fixed UTC reference time."""
    return datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock(t0: datetime) -> FakeClock:
    return FakeClock(t0)


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def empty_snapshot() -> ProgressSnapshot:
    return ProgressSnapshot.empty()


@pytest.fixture
def catalog() -> ContentCatalog:
    """Two sections; topic ids are prefixed by their section id."""
    return ContentCatalog({
        "s1": ["s1-t1", "s1-t2", "s1-t3", "s1-t4"],
        "s2": ["s2-t1", "s2-t2"],
    })


# ---------------------------------------------------------------------------
# Infrastructure / service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def repository() -> InMemoryProgressRepository:
    return InMemoryProgressRepository()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def service(
    repository: InMemoryProgressRepository,
    catalog: ContentCatalog,
    event_bus: EventBus,
    clock: FakeClock,
) -> ProgressTrackingService:
    """Tracking service over an in-memory store with the two-section catalog."""
    return ProgressTrackingService(
        repository,
        catalog=catalog,
        event_bus=event_bus,
        config=TrackingConfig(passing_score=0.7, recent_attempts_limit=10),
        clock=clock,
    )
