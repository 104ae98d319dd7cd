"""
Exam Vocab Boost: learner-facing delivery layer.

Components:
- records: Profile, progress, diagnostic and drill session records
- StateStore: SQLite persistence
- grading: Answer checking and session scoring
- diagnostic: Diagnostic assembly (reading speed, category tallies)
- paywall: Drill access by entitlement tier
- cli: Rich terminal interface
"""

from .diagnostic import build_diagnostic, weakest_categories
from .grading import apply_session_to_progress, build_session, check_answer
from .paywall import AccessDecision, can_start_drill
from .records import (
    AnsweredItem,
    CategoryTally,
    DiagnosticResult,
    DrillSession,
    Entitlement,
    SessionResults,
    UserProfile,
    UserProgress,
)
from .state_store import StateStore

__all__ = [
    # Records
    "AnsweredItem",
    "CategoryTally",
    "DiagnosticResult",
    "DrillSession",
    "Entitlement",
    "SessionResults",
    "UserProfile",
    "UserProgress",
    # Persistence
    "StateStore",
    # Scoring
    "check_answer",
    "build_session",
    "apply_session_to_progress",
    "build_diagnostic",
    "weakest_categories",
    # Access
    "AccessDecision",
    "can_start_drill",
]
