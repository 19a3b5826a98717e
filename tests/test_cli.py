"""Tests for the learning-progress command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from learning_progress import __version__
from learning_progress.cli import main
from learning_progress.infrastructure.repository import JsonFileProgressRepository


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.fixture
def store(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"sections": {"intro": ["intro-1", "intro-2"]}}), encoding="utf-8")
    return path


class TestCli:

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run([]) == 0
        assert "usage:" in capsys.readouterr().out

    def test_record_and_stats(self, store: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code = _run([
            "--store", str(store), "record", "--user", "alice", "--topic", "intro-1",
            "--score", "0.9", "--questions", "10", "--correct", "9", "--seconds", "120",
        ])
        assert code == 0
        assert "PASSED" in capsys.readouterr().out

        snapshot = JsonFileProgressRepository(store).get("alice")
        assert snapshot.is_topic_completed("intro-1")
        assert snapshot.topic_attempt_counts["intro-1"] == 1

        assert _run(["--store", str(store), "--plain", "stats", "--user", "alice"]) == 0
        out = capsys.readouterr().out
        assert "Quizzes passed" in out
        assert "2m 00s" in out

    def test_record_below_threshold_fails(self, store: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(["--store", str(store), "record", "--user", "u", "--topic", "t", "--score", "0.5"])
        assert "FAILED" in capsys.readouterr().out
        assert not JsonFileProgressRepository(store).get("u").is_topic_completed("t")

    def test_record_forced_pass(self, store: Path) -> None:
        _run(["--store", str(store), "record", "--user", "u", "--topic", "t",
              "--score", "0.1", "--passed"])
        assert JsonFileProgressRepository(store).get("u").is_topic_completed("t")

    def test_record_section_quiz(self, store: Path) -> None:
        _run(["--store", str(store), "record", "--user", "u", "--section", "intro",
              "--section-quiz", "--score", "0.8"])
        assert JsonFileProgressRepository(store).get("u").is_section_completed("intro")

    def test_record_section_quiz_needs_section(
        self, store: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = _run(["--store", str(store), "record", "--user", "u", "--section-quiz", "--score", "1"])
        assert code == 1
        assert "--section-quiz needs --section" in capsys.readouterr().err

    def test_sections_with_catalog(
        self, store: Path, catalog_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        base = ["--store", str(store), "--catalog", str(catalog_file), "--plain"]
        _run([*base, "record", "--user", "u", "--topic", "intro-1", "--score", "1"])
        capsys.readouterr()
        assert _run([*base, "sections", "--user", "u"]) == 0
        assert "intro: 1 / 2 (50%)" in capsys.readouterr().out

    def test_sections_without_catalog(self, store: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--store", str(store), "sections", "--user", "u"]) == 1
        assert "needs --catalog" in capsys.readouterr().err

    def test_export_json_and_yaml(self, store: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(["--store", str(store), "record", "--user", "u", "--topic", "t", "--score", "1"])
        capsys.readouterr()

        assert _run(["--store", str(store), "export", "--user", "u"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["completedTopics"] == ["t"]

        assert _run(["--store", str(store), "export", "--user", "u", "--format", "yaml"]) == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["totalQuizzesTaken"] == 1

    def test_export_to_file(self, store: Path, tmp_path: Path) -> None:
        target = tmp_path / "out" / "u.json"
        assert _run(["--store", str(store), "export", "--user", "u", "--output", str(target)]) == 0
        assert json.loads(target.read_text(encoding="utf-8"))["schemaVersion"] == 1

    def test_reset(self, store: Path) -> None:
        _run(["--store", str(store), "record", "--user", "u", "--topic", "t", "--score", "1"])
        assert _run(["--store", str(store), "reset", "--user", "u"]) == 0
        assert JsonFileProgressRepository(store).get("u").total_quizzes_taken == 0

    def test_users(self, store: Path, capsys: pytest.CaptureFixture[str]) -> None:
        for user in ("bob", "alice"):
            _run(["--store", str(store), "reset", "--user", user])
        capsys.readouterr()
        assert _run(["--store", str(store), "users"]) == 0
        assert capsys.readouterr().out.split() == ["alice", "bob"]

    def test_users_from_config_store(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = tmp_path / "config.yaml"
        store = tmp_path / "from-config"
        config.write_text(
            f"storage:\n  backend: json_file\n  directory: {store}\n", encoding="utf-8"
        )
        for user in ("carol", "alice"):
            _run(["--config", str(config), "reset", "--user", user])
        capsys.readouterr()
        assert _run(["--config", str(config), "users"]) == 0
        assert capsys.readouterr().out.split() == ["alice", "carol"]

    def test_users_with_memory_store_is_empty(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["users"]) == 0
        assert capsys.readouterr().out == ""

    def test_config_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = tmp_path / "config.yaml"
        store = tmp_path / "from-config"
        config.write_text(
            f"tracking:\n  passing_score: 0.4\nstorage:\n  backend: json_file\n  directory: {store}\n",
            encoding="utf-8",
        )
        _run(["--config", str(config), "record", "--user", "u", "--topic", "t", "--score", "0.5"])
        assert JsonFileProgressRepository(store).get("u").is_topic_completed("t")

    def test_invalid_config_reports_error(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"tracking": {"passing_score": 9}}), encoding="utf-8")
        assert _run(["--config", str(config), "info"]) == 1
        assert "passing_score" in capsys.readouterr().err

    def test_wrongly_typed_config_reports_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("tracking:\n  passing_score: high\n", encoding="utf-8")
        assert _run(["--config", str(config), "info"]) == 1
        err = capsys.readouterr().err
        assert "Error:" in err
        assert "passing_score" in err

    def test_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["info"]) == 0
        out = capsys.readouterr().out
        assert f"learning-progress v{__version__}" in out
        assert "passing_score: 0.7" in out
