"""Configuration dataclasses for learning-progress tracking.

Each config is a frozen ``dataclass`` with a ``validate()`` method that raises
``ConfigurationError`` on invalid values, plus ``to_dict`` / ``from_dict``
helpers.  ``from_dict`` ignores unknown keys and validates the result.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from typing import Any

import yaml

from learning_progress.domain.exceptions import ConfigurationError


# ===================================================================== #
#  Tracking Configuration                                                #
# ===================================================================== #

@dataclass(frozen=True)
class TrackingConfig:
    """Parameters used by the tracking service.

    Attributes
    ----------
    passing_score:
        Minimum score in [0, 1] for ``record_quiz_completion`` to count an
        attempt as passed.
    recent_attempts_limit:
        Default number of attempts returned by ``recent_attempts``.
    """

    passing_score: float = 0.7
    recent_attempts_limit: int = 10

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if any field has the wrong type or is out of range."""
        if isinstance(self.passing_score, bool) or not isinstance(self.passing_score, (int, float)):
            raise ConfigurationError(
                f"passing_score must be a number, got {self.passing_score!r}"
            )
        if isinstance(self.recent_attempts_limit, bool) or not isinstance(
            self.recent_attempts_limit, int
        ):
            raise ConfigurationError(
                f"recent_attempts_limit must be an integer, got {self.recent_attempts_limit!r}"
            )
        if not (0.0 <= self.passing_score <= 1.0):
            raise ConfigurationError(
                f"passing_score must be in [0, 1], got {self.passing_score}"
            )
        if self.recent_attempts_limit < 1:
            raise ConfigurationError(
                f"recent_attempts_limit must be >= 1, got {self.recent_attempts_limit}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrackingConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Storage Configuration                                                 #
# ===================================================================== #

_VALID_BACKENDS = frozenset({
    "memory",
    "json_file",
})


@dataclass(frozen=True)
class StorageConfig:
    """Where progress snapshots are kept.

    Attributes
    ----------
    backend:
        ``"memory"`` (process-local, for tests and demos) or ``"json_file"``
        (one JSON document per user).
    directory:
        Target directory for the ``json_file`` backend.
    """

    backend: str = "memory"
    directory: str = ""

    def validate(self) -> None:
        if not isinstance(self.backend, str) or self.backend not in _VALID_BACKENDS:
            raise ConfigurationError(
                f"backend must be one of {sorted(_VALID_BACKENDS)}, "
                f"got '{self.backend}'"
            )
        if not isinstance(self.directory, str):
            raise ConfigurationError(
                f"directory must be a string, got {self.directory!r}"
            )
        if self.backend == "json_file" and not self.directory:
            raise ConfigurationError("directory is required for backend='json_file'")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StorageConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Unified config loader                                                 #
# ===================================================================== #

_CONFIG_MAP: dict[str, type] = {
    "tracking": TrackingConfig,
    "storage": StorageConfig,
}


def _load_sections(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ConfigurationError("Top-level config must be a mapping")
    result: dict[str, Any] = {}
    for section, data in raw.items():
        cls = _CONFIG_MAP.get(section)
        if cls is not None and isinstance(data, dict):
            result[section] = cls.from_dict(data)
        else:
            result[section] = data
    # Missing known sections fall back to defaults
    for section, cls in _CONFIG_MAP.items():
        result.setdefault(section, cls())
    return result


def load_config_from_json(json_str: str) -> dict[str, Any]:
    """Parse a JSON string into a dict of typed config objects.

    Top-level keys name config sections (``tracking``, ``storage``).  Unknown
    sections are preserved as raw values; missing known sections get their
    defaults.
    """
    return _load_sections(json.loads(json_str))


def load_config_from_yaml(yaml_str: str) -> dict[str, Any]:
    """YAML counterpart of :func:`load_config_from_json`."""
    return _load_sections(yaml.safe_load(yaml_str) or {})
