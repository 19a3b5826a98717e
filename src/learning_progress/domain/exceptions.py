"""Exceptions for the learning-progress library.

All library errors inherit from ``LearningProgressError`` so callers can catch
the full family with a single ``except`` clause.  The pure domain model never
raises them; they originate in the storage, configuration and service layers.
"""

from __future__ import annotations

from typing import Any


class LearningProgressError(Exception):
    """Base exception for all learning-progress errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class PersistenceError(LearningProgressError):
    """Raised when reading or writing a user's progress document fails.

    The service layer logs the failure and keeps its last-known-good snapshot;
    the exception is then re-raised so the caller knows the update was lost.
    """

    def __init__(
        self,
        message: str = "Progress persistence failed",
        user_id: str = "",
        operation: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.user_id = user_id
        self.operation = operation


class SnapshotDecodeError(LearningProgressError):
    """Raised when a stored document cannot be decoded into a snapshot."""

    def __init__(
        self,
        message: str = "Stored progress document is invalid",
        user_id: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.user_id = user_id


class ConfigurationError(LearningProgressError, ValueError):
    """Raised when a configuration value has the wrong type or is out of range."""
