"""Tests for configuration dataclasses and loaders."""

from __future__ import annotations

import json

import pytest

from learning_progress.domain.exceptions import ConfigurationError
from learning_progress.infrastructure.config import (
    StorageConfig,
    TrackingConfig,
    load_config_from_json,
    load_config_from_yaml,
)


class TestTrackingConfig:

    def test_defaults_are_valid(self) -> None:
        cfg = TrackingConfig()
        cfg.validate()
        assert cfg.passing_score == 0.7
        assert cfg.recent_attempts_limit == 10

    @pytest.mark.parametrize("score", [-0.1, 1.1])
    def test_passing_score_range(self, score: float) -> None:
        with pytest.raises(ConfigurationError, match="passing_score"):
            TrackingConfig(passing_score=score).validate()

    def test_recent_limit_must_be_positive(self) -> None:
        with pytest.raises(ConfigurationError, match="recent_attempts_limit"):
            TrackingConfig(recent_attempts_limit=0).validate()

    def test_configuration_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            TrackingConfig(passing_score=2.0).validate()

    def test_dict_round_trip_ignores_unknown_keys(self) -> None:
        data = {**TrackingConfig(passing_score=0.8).to_dict(), "colour": "blue"}
        assert TrackingConfig.from_dict(data) == TrackingConfig(passing_score=0.8)

    def test_from_dict_validates(self) -> None:
        with pytest.raises(ConfigurationError):
            TrackingConfig.from_dict({"passing_score": 5})

    @pytest.mark.parametrize("score", ["high", True, None, [0.5]])
    def test_passing_score_must_be_number(self, score: object) -> None:
        with pytest.raises(ConfigurationError, match="passing_score"):
            TrackingConfig.from_dict({"passing_score": score})

    @pytest.mark.parametrize("limit", ["10", 2.5, False])
    def test_recent_limit_must_be_integer(self, limit: object) -> None:
        with pytest.raises(ConfigurationError, match="recent_attempts_limit"):
            TrackingConfig.from_dict({"recent_attempts_limit": limit})


class TestStorageConfig:

    def test_unknown_backend(self) -> None:
        with pytest.raises(ConfigurationError, match="backend"):
            StorageConfig(backend="sqlite").validate()

    def test_json_file_needs_directory(self) -> None:
        with pytest.raises(ConfigurationError, match="directory"):
            StorageConfig(backend="json_file").validate()

    def test_backend_must_be_string(self) -> None:
        with pytest.raises(ConfigurationError, match="backend"):
            StorageConfig.from_dict({"backend": ["memory"]})

    def test_directory_must_be_string(self) -> None:
        with pytest.raises(ConfigurationError, match="directory"):
            StorageConfig.from_dict({"backend": "json_file", "directory": 42})

    def test_to_dict(self) -> None:
        assert StorageConfig(backend="json_file", directory="/data").to_dict() == {
            "backend": "json_file",
            "directory": "/data",
        }


class TestLoaders:

    def test_json_sections(self) -> None:
        cfg = load_config_from_json(json.dumps({
            "tracking": {"passing_score": 0.6},
            "storage": {"backend": "json_file", "directory": "/tmp/progress"},
            "extra": {"kept": True},
        }))
        assert cfg["tracking"] == TrackingConfig(passing_score=0.6)
        assert cfg["storage"].directory == "/tmp/progress"
        assert cfg["extra"] == {"kept": True}

    def test_missing_sections_get_defaults(self) -> None:
        cfg = load_config_from_json("{}")
        assert cfg["tracking"] == TrackingConfig()
        assert cfg["storage"] == StorageConfig()

    def test_yaml(self) -> None:
        cfg = load_config_from_yaml("tracking:\n  recent_attempts_limit: 5\n")
        assert cfg["tracking"].recent_attempts_limit == 5

    def test_empty_yaml(self) -> None:
        assert load_config_from_yaml("")["storage"] == StorageConfig()

    def test_top_level_must_be_mapping(self) -> None:
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config_from_json("[1, 2]")
