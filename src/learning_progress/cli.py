"""Command-line interface for learning progress.

Inspects and updates progress documents kept by the JSON-file store, which
is handy for support work and for scripting against a local data directory.

Entry point
-----------
``main()`` is registered as a console script in ``pyproject.toml``::

    [project.scripts]
    learning-progress = "learning_progress.cli:main"

Usage examples::

    learning-progress --store ./progress stats --user alice
    learning-progress --store ./progress record --user alice --topic intro-1 \\
        --score 0.9 --questions 10 --correct 9 --seconds 120
    learning-progress --store ./progress export --user alice --format yaml
    learning-progress info
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any

from learning_progress.domain.exceptions import LearningProgressError
from learning_progress.infrastructure.catalog import ContentCatalog
from learning_progress.infrastructure.config import (
    StorageConfig,
    TrackingConfig,
    load_config_from_json,
    load_config_from_yaml,
)
from learning_progress.infrastructure.repository import JsonFileProgressRepository, build_repository
from learning_progress.infrastructure.serialization import to_json, to_yaml
from learning_progress.presentation.console import ProgressDashboard
from learning_progress.services.tracking import ProgressTrackingService

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="learning-progress",
        description="Inspect and update learners' quiz progress.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Directory of per-user JSON progress documents (overrides --config storage).",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config file (.json, .yaml or .yml) with 'tracking' and 'storage' sections.",
    )
    parser.add_argument(
        "--catalog",
        type=str,
        default=None,
        help="JSON file mapping section ids to their topic ids.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. (default: WARNING)",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        default=False,
        help="Plain-text output instead of rich tables.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- stats -------------------------------------------------------------
    stats_parser = subparsers.add_parser("stats", help="Show a user's progress dashboard.")
    stats_parser.add_argument("--user", type=str, required=True, help="User id.")
    stats_parser.add_argument(
        "--recent",
        type=int,
        default=None,
        help="Number of recent attempts to list. (default: from config)",
    )

    # -- sections ----------------------------------------------------------
    sections_parser = subparsers.add_parser(
        "sections",
        help="Recount section progress from the catalog and show it.",
    )
    sections_parser.add_argument("--user", type=str, required=True, help="User id.")

    # -- record ------------------------------------------------------------
    record_parser = subparsers.add_parser("record", help="Record a graded quiz attempt.")
    record_parser.add_argument("--user", type=str, required=True, help="User id.")
    record_parser.add_argument("--topic", type=str, default="", help="Topic id.")
    record_parser.add_argument("--section", type=str, default="", help="Section id.")
    record_parser.add_argument("--score", type=float, required=True, help="Score in [0, 1].")
    record_parser.add_argument("--questions", type=int, default=0, help="Total questions.")
    record_parser.add_argument("--correct", type=int, default=0, help="Correct answers.")
    record_parser.add_argument("--seconds", type=float, default=0.0, help="Time spent in seconds.")
    record_parser.add_argument(
        "--section-quiz",
        action="store_true",
        default=False,
        help="Record a section-level quiz instead of a topic quiz.",
    )
    outcome = record_parser.add_mutually_exclusive_group()
    outcome.add_argument("--passed", dest="passed", action="store_true", default=None,
                         help="Force a pass regardless of score.")
    outcome.add_argument("--failed", dest="passed", action="store_false",
                         help="Force a fail regardless of score.")

    # -- reset -------------------------------------------------------------
    reset_parser = subparsers.add_parser("reset", help="Clear a user's progress.")
    reset_parser.add_argument("--user", type=str, required=True, help="User id.")

    # -- export ------------------------------------------------------------
    export_parser = subparsers.add_parser("export", help="Print a user's progress document.")
    export_parser.add_argument("--user", type=str, required=True, help="User id.")
    export_parser.add_argument(
        "--format",
        type=str,
        default="json",
        choices=["json", "yaml"],
        help="Output format. (default: json)",
    )
    export_parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write to this file instead of stdout.",
    )

    # -- users -------------------------------------------------------------
    subparsers.add_parser("users", help="List users with stored progress.")

    # -- info --------------------------------------------------------------
    subparsers.add_parser("info", help="Show version and effective configuration.")

    return parser


# =========================================================================
# Wiring
# =========================================================================

def _load_config(path: str | None) -> dict[str, Any]:
    if path is None:
        return {"tracking": TrackingConfig(), "storage": StorageConfig()}
    text = Path(path).read_text(encoding="utf-8")
    if Path(path).suffix.lower() in (".yaml", ".yml"):
        return load_config_from_yaml(text)
    return load_config_from_json(text)


def _build_service(args: argparse.Namespace) -> ProgressTrackingService:
    config = _load_config(args.config)
    if args.store is not None:
        repository = JsonFileProgressRepository(args.store)
    else:
        repository = build_repository(config["storage"])
    catalog = None
    if args.catalog is not None:
        catalog = ContentCatalog.from_json(Path(args.catalog).read_text(encoding="utf-8"))
    return ProgressTrackingService(repository, catalog=catalog, config=config["tracking"])


# =========================================================================
# Subcommand handlers
# =========================================================================

def _cmd_stats(args: argparse.Namespace, service: ProgressTrackingService) -> int:
    dashboard = ProgressDashboard(use_rich=not args.plain)
    snapshot = service.get_progress(args.user)
    recent = args.recent if args.recent is not None else service.config.recent_attempts_limit
    dashboard.print_snapshot(snapshot, service.learning_stats(args.user), recent=recent)
    return 0


def _cmd_sections(args: argparse.Namespace, service: ProgressTrackingService) -> int:
    if args.catalog is None:
        print("Error: 'sections' needs --catalog", file=sys.stderr)
        return 1
    catalog = ContentCatalog.from_json(Path(args.catalog).read_text(encoding="utf-8"))
    snapshot = service.get_progress(args.user)
    for section_id in catalog.sections():
        snapshot = service.update_section_progress(args.user, section_id)
    dashboard = ProgressDashboard(use_rich=not args.plain)
    dashboard.print_sections([snapshot.get_section_progress(s) for s in catalog.sections()])
    return 0


def _cmd_record(args: argparse.Namespace, service: ProgressTrackingService) -> int:
    if args.section_quiz and not args.section:
        print("Error: --section-quiz needs --section", file=sys.stderr)
        return 1
    if not args.section_quiz and not args.topic:
        print("Error: a topic quiz needs --topic", file=sys.stderr)
        return 1

    time_spent = timedelta(seconds=args.seconds)
    if args.passed is None and not args.section_quiz:
        snapshot = service.record_quiz_completion(
            args.user,
            args.topic,
            args.score,
            section_id=args.section,
            time_spent=time_spent,
            total_questions=args.questions,
            correct_answers=args.correct,
        )
    else:
        passed = args.passed
        if passed is None:
            passed = args.score >= service.config.passing_score
        snapshot = service.record_quiz_attempt(
            args.user,
            topic_id=args.topic,
            section_id=args.section,
            score=args.score,
            passed=passed,
            time_spent=time_spent,
            total_questions=args.questions,
            correct_answers=args.correct,
            is_topic_quiz=not args.section_quiz,
        )

    attempt = snapshot.quiz_attempts[-1]
    print(
        f"Recorded {'PASSED' if attempt.passed else 'FAILED'} attempt {attempt.id} "
        f"(streak {snapshot.current_streak}, best {snapshot.get_best_score(args.topic):.2f})"
    )
    return 0


def _cmd_reset(args: argparse.Namespace, service: ProgressTrackingService) -> int:
    service.clear_progress(args.user)
    print(f"Cleared progress for {args.user}")
    return 0


def _cmd_export(args: argparse.Namespace, service: ProgressTrackingService) -> int:
    snapshot = service.get_progress(args.user)
    text = to_yaml(snapshot) if args.format == "yaml" else to_json(snapshot)
    if args.output is not None:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
        print(f"Exported {args.user} to {out}")
    else:
        print(text)
    return 0


def _cmd_users(args: argparse.Namespace, service: ProgressTrackingService) -> int:
    for user_id in service.repository.user_ids():
        print(user_id)
    return 0


def _cmd_info(args: argparse.Namespace, service: ProgressTrackingService) -> int:
    from learning_progress import __version__

    print(f"learning-progress v{__version__}")
    print()
    print("Tracking:")
    for key, value in service.config.to_dict().items():
        print(f"  {key}: {value}")
    print(f"Store: {args.store or 'from config'}")
    print(f"Catalog: {args.catalog or '(none)'}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from learning_progress import __version__
        print(f"learning-progress {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handlers: dict[str, Any] = {
        "stats": _cmd_stats,
        "sections": _cmd_sections,
        "record": _cmd_record,
        "reset": _cmd_reset,
        "export": _cmd_export,
        "users": _cmd_users,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        service = _build_service(args)
        exit_code = handler(args, service)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except (LearningProgressError, OSError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)
