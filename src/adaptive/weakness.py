"""
Weakness Scorer.

Turns diagnostic and drill history into a per-category weakness vector.
1.0 means every observed answer in that category was wrong; 0.5 is the
neutral value used when a category has no data.

    weakness = 1 - correct / total          (total > 0)
    combined = 0.3 * diagnostic + 0.7 * sessions

Recent drill sessions are weighted more heavily than the one-off
diagnostic. The vector is recomputed on every call and never stored.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from src.content.constants import USAGE_CATEGORIES, UsageCategory

if TYPE_CHECKING:
    from src.delivery.records import CategoryTally, DiagnosticResult, DrillSession

WeaknessVector = dict[UsageCategory, float]

NEUTRAL_WEAKNESS = 0.5
DIAGNOSTIC_WEIGHT = 0.3
SESSION_WEIGHT = 0.7


def neutral_vector() -> WeaknessVector:
    return {cat: NEUTRAL_WEAKNESS for cat in USAGE_CATEGORIES}


def _from_counts(counts: Mapping[UsageCategory, tuple[int, int]]) -> WeaknessVector:
    vector = neutral_vector()
    for category, (correct, total) in counts.items():
        if category in vector and total > 0:
            vector[category] = 1 - correct / total
    return vector


def score_from_diagnostic(diagnostic: DiagnosticResult | None) -> WeaknessVector:
    """
    Weakness per category from a diagnostic's usage tallies.

    Args:
        diagnostic: Latest diagnostic, or None

    Returns:
        Complete vector over all five categories
    """
    if diagnostic is None or diagnostic.usage is None:
        return neutral_vector()

    scores: Mapping[UsageCategory, CategoryTally] = diagnostic.usage.category_scores
    return _from_counts({cat: (t.correct, t.total) for cat, t in scores.items()})


def score_from_sessions(sessions: Iterable[DrillSession]) -> WeaknessVector:
    """
    Weakness per category from drill sessions.

    Counts are summed across sessions before the ratio is taken, so a
    long session weighs more than a short one.
    """
    totals = {cat: [0, 0] for cat in USAGE_CATEGORIES}

    for session in sessions:
        if session.results is None:
            continue
        for category, tally in session.results.category_breakdown.items():
            if category in totals:
                totals[category][0] += tally.correct
                totals[category][1] += tally.total

    return _from_counts({cat: (c, t) for cat, (c, t) in totals.items()})


def combine(
    diagnostic_vector: Mapping[UsageCategory, float],
    session_vector: Mapping[UsageCategory, float],
    diagnostic_weight: float = DIAGNOSTIC_WEIGHT,
    session_weight: float = SESSION_WEIGHT,
) -> WeaknessVector:
    """Weighted sum of the two vectors, category by category."""
    return {
        cat: diagnostic_vector.get(cat, NEUTRAL_WEAKNESS) * diagnostic_weight
        + session_vector.get(cat, NEUTRAL_WEAKNESS) * session_weight
        for cat in USAGE_CATEGORIES
    }


def combined_weakness(
    diagnostic: DiagnosticResult | None,
    sessions: Iterable[DrillSession],
    diagnostic_weight: float = DIAGNOSTIC_WEIGHT,
    session_weight: float = SESSION_WEIGHT,
) -> WeaknessVector:
    return combine(
        score_from_diagnostic(diagnostic),
        score_from_sessions(sessions),
        diagnostic_weight=diagnostic_weight,
        session_weight=session_weight,
    )
