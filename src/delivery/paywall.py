"""
Drill access rules.

- Free tier: a limited number of drill sessions in total (adaptive or focused)
- tier_1 (active): unlimited adaptive and focused drills
- tier_2 (active): everything in tier_1 plus cram mode

Purchases happen outside this tool; the stored Entitlement is trusted.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from src.content.constants import PRICING_TIERS, SessionMode, Tier

from .records import DrillSession, Entitlement

FREE_DRILL_SESSIONS = 1


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str = ""


def can_start_drill(
    entitlement: Entitlement,
    sessions: Sequence[DrillSession],
    mode: SessionMode,
    free_sessions: int = FREE_DRILL_SESSIONS,
) -> AccessDecision:
    """
    Decide whether the learner may start a drill in the given mode.

    Args:
        entitlement: Current entitlement
        sessions: Every stored drill session
        mode: Requested session mode
        free_sessions: Drill sessions included in the free tier

    Returns:
        AccessDecision with a human-readable reason when denied
    """
    if mode == SessionMode.CRAM:
        if entitlement.active and entitlement.tier == Tier.TIER_2:
            return AccessDecision(True)
        name = PRICING_TIERS[Tier.TIER_2]["name"]
        return AccessDecision(False, f"Cram mode requires the '{name}' plan.")

    if entitlement.is_paid:
        return AccessDecision(True)

    used = len(sessions)
    if used < free_sessions:
        remaining = free_sessions - used
        return AccessDecision(True, f"{remaining} free drill(s) remaining.")

    name = PRICING_TIERS[Tier.TIER_1]["name"]
    return AccessDecision(
        False,
        f"You have used your {free_sessions} free drill(s). Upgrade to '{name}' for unlimited drills.",
    )
