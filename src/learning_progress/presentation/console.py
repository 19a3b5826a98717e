"""Console dashboard for learning progress.

:class:`ProgressDashboard` renders learning statistics, section progress and
recent attempts as ``rich`` tables.  Constructed with ``use_rich=False`` it
writes the same information as plain text, which is what the CLI uses when
output is piped and what tests assert against.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from datetime import timedelta
from typing import Any

from rich.console import Console as RichConsole
from rich.table import Table as RichTable

from learning_progress.domain.aggregates import ProgressSnapshot
from learning_progress.domain.values import LearningStats, QuizAttempt, SectionProgress

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

_SPARK_CHARS = " " + "▁▂▃▄▅▆▇█"


def _sparkline(values: Sequence[float], width: int = 40) -> str:
    """Unicode sparkline of scores, scaled to the fixed range [0, 1]."""
    if not values:
        return ""
    values = list(values)[-width:]
    n_chars = len(_SPARK_CHARS) - 1
    chars: list[str] = []
    for v in values:
        idx = int(round(min(max(v, 0.0), 1.0) * n_chars))
        chars.append(_SPARK_CHARS[idx])
    return "".join(chars)


def format_duration(td: timedelta) -> str:
    """``1h 02m 03s`` style rendering; minutes and hours only when non-zero."""
    total = int(td.total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {seconds:02d}s"
    if minutes:
        return f"{minutes}m {seconds:02d}s"
    return f"{seconds}s"


def _pct(value: float) -> str:
    return f"{value * 100:.0f}%"


def _stats_rows(stats: LearningStats) -> list[tuple[str, str]]:
    if stats.days_since_last_activity is None:
        last_active = "never"
    elif stats.days_since_last_activity == 0:
        last_active = "today"
    else:
        last_active = f"{stats.days_since_last_activity} day(s) ago"
    return [
        ("Topics completed", str(stats.total_topics_completed)),
        ("Sections completed", str(stats.total_sections_completed)),
        ("Quizzes taken", str(stats.total_quizzes_taken)),
        ("Quizzes passed", str(stats.total_quizzes_passed)),
        ("Pass rate", _pct(stats.overall_pass_rate)),
        ("Average score", _pct(stats.average_score)),
        ("Overall progress", _pct(stats.overall_progress)),
        ("Time spent", format_duration(stats.total_time_spent)),
        ("Current streak", str(stats.current_streak)),
        ("Longest streak", str(stats.longest_streak)),
        ("Last active", last_active),
    ]


# ---------------------------------------------------------------------------
# ProgressDashboard
# ---------------------------------------------------------------------------

class ProgressDashboard:
    """Console presentation of one user's progress.

    Parameters
    ----------
    use_rich:
        Render ``rich`` tables (default) or plain text.
    file:
        Output stream.  Defaults to ``sys.stdout``.
    """

    def __init__(self, use_rich: bool = True, file: Any = None) -> None:
        self._file = file or sys.stdout
        self._use_rich = use_rich
        self._console = RichConsole(file=self._file) if use_rich else None

    def _plain_print(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("file", self._file)
        print(*args, **kwargs)

    # -- public API --------------------------------------------------------

    def print_stats(self, stats: LearningStats, title: str = "Learning Stats") -> None:
        rows = _stats_rows(stats)
        if self._console is not None:
            table = RichTable(title=title, show_header=True, header_style="bold cyan")
            table.add_column("Statistic", style="bold")
            table.add_column("Value", justify="right")
            for name, value in rows:
                table.add_row(name, value)
            self._console.print(table)
        else:
            self._plain_print(title)
            width = max(len(name) for name, _ in rows)
            for name, value in rows:
                self._plain_print(f"  {name:<{width}}  {value}")

    def print_sections(self, sections: Sequence[SectionProgress]) -> None:
        if not sections:
            self._plain_print("[no section progress]")
            return

        if self._console is not None:
            table = RichTable(title="Sections", show_header=True, header_style="bold cyan")
            table.add_column("Section", style="bold")
            table.add_column("Topics", justify="right")
            table.add_column("Progress", justify="right")
            table.add_column("Quiz", justify="center")
            for sp in sections:
                colour = "green" if sp.is_fully_complete else ("yellow" if sp.is_complete else "white")
                table.add_row(
                    sp.section_id,
                    sp.progress_text,
                    f"[{colour}]{_pct(sp.progress_percentage)}[/{colour}]",
                    "yes" if sp.section_quiz_completed else "no",
                )
            self._console.print(table)
        else:
            self._plain_print("Sections")
            for sp in sections:
                quiz = "quiz passed" if sp.section_quiz_completed else "quiz pending"
                self._plain_print(
                    f"  {sp.section_id}: {sp.progress_text} "
                    f"({_pct(sp.progress_percentage)}), {quiz}"
                )

    def print_attempts(self, attempts: Sequence[QuizAttempt]) -> None:
        if not attempts:
            self._plain_print("[no quiz attempts]")
            return

        if self._console is not None:
            table = RichTable(title="Recent Attempts", show_header=True, header_style="bold cyan")
            table.add_column("When")
            table.add_column("Quiz", style="bold")
            table.add_column("Score", justify="right")
            table.add_column("Correct", justify="right")
            table.add_column("Time", justify="right")
            table.add_column("Result", justify="center")
            for a in attempts:
                result = "[green]PASSED[/green]" if a.passed else "[red]FAILED[/red]"
                table.add_row(
                    a.timestamp.strftime("%Y-%m-%d %H:%M"),
                    a.topic_id if a.is_topic_quiz else f"{a.section_id} (section)",
                    _pct(a.score),
                    f"{a.correct_answers}/{a.total_questions}",
                    format_duration(a.time_spent),
                    result,
                )
            self._console.print(table)
        else:
            self._plain_print("Recent Attempts")
            for a in attempts:
                quiz = a.topic_id if a.is_topic_quiz else f"{a.section_id} (section)"
                self._plain_print(
                    f"  {a.timestamp:%Y-%m-%d %H:%M}  {quiz}  {_pct(a.score)}  "
                    f"{'PASSED' if a.passed else 'FAILED'}"
                )

    def print_score_trend(self, attempts: Sequence[QuizAttempt], width: int = 40) -> None:
        """Sparkline of attempt scores in chronological order."""
        if not attempts:
            self._plain_print("[no scores to display]")
            return
        scores = [a.score for a in attempts]
        line = f"Score trend  {_sparkline(scores, width)}  last={_pct(scores[-1])}"
        if self._console is not None:
            self._console.print(line)
        else:
            self._plain_print(line)

    def print_snapshot(self, snapshot: ProgressSnapshot, stats: LearningStats, recent: int = 10) -> None:
        """Full dashboard: stats, sections, recent attempts and the score trend."""
        self.print_stats(stats)
        self.print_sections(
            [snapshot.section_progress[k] for k in sorted(snapshot.section_progress)]
        )
        self.print_attempts(snapshot.get_recent_attempts(recent))
        self.print_score_trend(snapshot.quiz_attempts)
