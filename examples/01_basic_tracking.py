#!/usr/bin/env python3
"""Example 01: Recording quiz attempts for one learner.

Demonstrates:
- Building a ProgressTrackingService over a JSON-file store and a catalog
- Subscribing an observer to progress changes
- Recording topic and section quizzes
- Printing the dashboard

Run:
    PYTHONPATH=src python examples/01_basic_tracking.py
"""

from __future__ import annotations

import tempfile
from datetime import timedelta

from learning_progress.domain.events import DomainEvent
from learning_progress.infrastructure.catalog import ContentCatalog
from learning_progress.infrastructure.repository import JsonFileProgressRepository
from learning_progress.presentation.console import ProgressDashboard
from learning_progress.services.tracking import ProgressTrackingService


def main() -> None:
    # -- Content --------------------------------------------------------------
    catalog = ContentCatalog({
        "algebra": ["algebra-linear", "algebra-quadratic", "algebra-systems"],
        "geometry": ["geometry-angles", "geometry-triangles"],
    })

    with tempfile.TemporaryDirectory() as store_dir:
        # -- Service ----------------------------------------------------------
        service = ProgressTrackingService(JsonFileProgressRepository(store_dir), catalog=catalog)

        def on_change(event: DomainEvent) -> None:
            stats = service.learning_stats(event.user_id)
            print(f"  [{event.reason}] taken={stats.total_quizzes_taken} streak={stats.current_streak}")

        service.subscribe(on_change, user_id="ada")

        print("=== Basic Tracking ===")
        for topic, score in [
            ("algebra-linear", 0.9),
            ("algebra-quadratic", 0.55),
            ("algebra-quadratic", 0.8),
            ("geometry-angles", 1.0),
        ]:
            service.record_quiz_completion(
                "ada", topic, score,
                time_spent=timedelta(minutes=4),
                total_questions=10,
                correct_answers=int(score * 10),
            )
        service.complete_section_quiz("ada", "algebra", True)
        print()

        snapshot = service.get_progress("ada")
        ProgressDashboard().print_snapshot(snapshot, service.learning_stats("ada"))
        print()
        print("Done.")


if __name__ == "__main__":
    main()
