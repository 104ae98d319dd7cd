"""
Derived metrics for the dashboard: exam readiness and top weaknesses.

Readiness formula:
    no completed diagnostic:  50
    with diagnostic:          40 + reading_accuracy * 30 + usage_accuracy * 30
                              (usage term is 15 when no usage items were answered)
    with recent sessions:     score * 0.7 + mean_session_accuracy * 100 * 0.3

The result is clamped to [0, 100] and rounded to an integer.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from src.content.constants import USAGE_CATEGORIES, UsageCategory

from .utils import round_half_up
from .weakness import DIAGNOSTIC_WEIGHT, SESSION_WEIGHT, combined_weakness

if TYPE_CHECKING:
    from src.delivery.records import DiagnosticResult, DrillSession

BASE_READINESS = 50.0
DIAGNOSTIC_FLOOR = 40.0
COMPONENT_POINTS = 30.0
HISTORY_WEIGHT = 0.7
SESSION_ACCURACY_WEIGHT = 0.3


def _mean_session_accuracy(sessions: Sequence[DrillSession]) -> float:
    # Sessions without results count as zero accuracy
    return sum(s.results.accuracy if s.results else 0.0 for s in sessions) / len(sessions)


def exam_readiness(
    diagnostic: DiagnosticResult | None,
    recent_sessions: Sequence[DrillSession],
) -> int:
    """
    Estimate exam readiness on a 0-100 scale.

    Args:
        diagnostic: Latest diagnostic (ignored unless completed)
        recent_sessions: Recent drill sessions, oldest first

    Returns:
        Integer readiness score in [0, 100]
    """
    score = BASE_READINESS

    if diagnostic is not None and diagnostic.is_complete:
        reading_accuracy = diagnostic.reading.accuracy if diagnostic.reading else 0.0
        reading_score = reading_accuracy * COMPONENT_POINTS

        correct = total = 0
        if diagnostic.usage is not None:
            for tally in diagnostic.usage.category_scores.values():
                correct += tally.correct
                total += tally.total
        usage_score = (correct / total) * COMPONENT_POINTS if total > 0 else COMPONENT_POINTS / 2

        score = DIAGNOSTIC_FLOOR + reading_score + usage_score

    if recent_sessions:
        score = (
            score * HISTORY_WEIGHT
            + _mean_session_accuracy(recent_sessions) * 100 * SESSION_ACCURACY_WEIGHT
        )

    return round_half_up(max(0.0, min(100.0, score)))


def top_weaknesses(
    diagnostic: DiagnosticResult | None,
    recent_sessions: Sequence[DrillSession],
    n: int = 3,
    diagnostic_weight: float = DIAGNOSTIC_WEIGHT,
    session_weight: float = SESSION_WEIGHT,
) -> list[UsageCategory]:
    """Up to n categories, weakest first; ties keep catalog category order."""
    if n <= 0:
        return []

    weakness = combined_weakness(
        diagnostic,
        recent_sessions,
        diagnostic_weight=diagnostic_weight,
        session_weight=session_weight,
    )
    ranked = sorted(USAGE_CATEGORIES, key=lambda cat: weakness[cat], reverse=True)
    return ranked[:n]


def recent_accuracy_percent(sessions: Sequence[DrillSession]) -> int | None:
    """Mean accuracy of the given sessions as a whole percentage, or None."""
    if not sessions:
        return None
    return round_half_up(_mean_session_accuracy(sessions) * 100)
