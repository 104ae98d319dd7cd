"""
Adaptive Drill Engine.

Components:
- weakness: per-category weakness vectors from diagnostic and drill history
- srs: bundle-level spaced-repetition helpers
- selector: ItemSelector, adaptive and focused item selection
- readiness: exam readiness and top weaknesses for the dashboard

The engine is pure: every call takes the learner's data as arguments and
touches no storage.
"""
from src.adaptive.readiness import exam_readiness, recent_accuracy_percent, top_weaknesses
from src.adaptive.selector import (
    ItemSelector,
    SelectorConfig,
    select_adaptive,
    select_focused,
)
from src.adaptive.srs import (
    BundleState,
    IntervalUpdate,
    LastResult,
    apply_review,
    due_bundle_ids,
    is_due,
    new_bundle_state,
    next_interval,
)
from src.adaptive.weakness import (
    WeaknessVector,
    combine,
    combined_weakness,
    score_from_diagnostic,
    score_from_sessions,
)

__all__ = [
    # Weakness
    "WeaknessVector",
    "score_from_diagnostic",
    "score_from_sessions",
    "combine",
    "combined_weakness",
    # Spaced repetition
    "BundleState",
    "LastResult",
    "IntervalUpdate",
    "is_due",
    "next_interval",
    "due_bundle_ids",
    "new_bundle_state",
    "apply_review",
    # Selection
    "ItemSelector",
    "SelectorConfig",
    "select_adaptive",
    "select_focused",
    # Metrics
    "exam_readiness",
    "top_weaknesses",
    "recent_accuracy_percent",
]
