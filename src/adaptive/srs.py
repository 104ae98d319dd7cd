"""
Spaced-Repetition Helpers.

Bundle-level review scheduling with a simplified SM-2 update:

    correct:   interval' = max(1, round(interval * ease))   ease' = min(3.0, ease + 0.1)
    incorrect: interval' = 1                                ease' = max(1.3, ease - 0.2)

A bundle is due once its due timestamp is at or before "now". Instants
are timezone-aware UTC; naive datetimes are read as UTC.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, NamedTuple

from .utils import as_utc, parse_instant, round_half_up, utc_now

MIN_EASE = 1.3
MAX_EASE = 3.0
DEFAULT_EASE = 2.5
EASE_BONUS = 0.1
EASE_PENALTY = 0.2


@dataclass(frozen=True)
class LastResult:
    correct: bool
    timestamp: datetime


@dataclass(frozen=True)
class BundleState:
    """Review state for one content bundle."""

    bundle_id: str
    due_at: datetime
    ease: float = DEFAULT_EASE
    interval_days: int = 1
    last_result: LastResult | None = None

    def __post_init__(self) -> None:
        # ease within [MIN_EASE, MAX_EASE], interval at least one day
        object.__setattr__(self, "ease", min(MAX_EASE, max(MIN_EASE, float(self.ease))))
        object.__setattr__(self, "interval_days", max(1, int(self.interval_days)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "bundle_id": self.bundle_id,
            "ease": self.ease,
            "interval_days": self.interval_days,
            "due_at": as_utc(self.due_at).isoformat(),
            "last_result": (
                {
                    "correct": self.last_result.correct,
                    "timestamp": as_utc(self.last_result.timestamp).isoformat(),
                }
                if self.last_result
                else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> BundleState:
        last = data.get("last_result")
        return cls(
            bundle_id=data["bundle_id"],
            due_at=parse_instant(data["due_at"]),
            ease=float(data.get("ease", DEFAULT_EASE)),
            interval_days=int(data.get("interval_days", 1)),
            last_result=(
                LastResult(correct=bool(last["correct"]), timestamp=parse_instant(last["timestamp"]))
                if last
                else None
            ),
        )


class IntervalUpdate(NamedTuple):
    interval_days: int
    ease: float


def is_due(state: BundleState, now: datetime | None = None) -> bool:
    """True when the bundle's due timestamp is not in the future."""
    now = as_utc(now) if now is not None else utc_now()
    return as_utc(state.due_at) <= now


def next_interval(current_interval_days: int, ease: float, was_correct: bool) -> IntervalUpdate:
    """
    Compute the next review interval and ease.

    Args:
        current_interval_days: Current interval (days)
        ease: Current ease factor
        was_correct: Whether the latest review was answered correctly

    Returns:
        IntervalUpdate with interval >= 1 and ease within [1.3, 3.0]
    """
    if was_correct:
        interval = max(1, round_half_up(current_interval_days * ease))
        new_ease = min(MAX_EASE, ease + EASE_BONUS)
    else:
        interval = 1
        new_ease = max(MIN_EASE, ease - EASE_PENALTY)

    return IntervalUpdate(interval_days=interval, ease=new_ease)


def due_bundle_ids(states: Iterable[BundleState], now: datetime | None = None) -> set[str]:
    now = as_utc(now) if now is not None else utc_now()
    return {state.bundle_id for state in states if is_due(state, now)}


def new_bundle_state(bundle_id: str, now: datetime | None = None) -> BundleState:
    """A fresh state, due immediately."""
    return BundleState(bundle_id=bundle_id, due_at=as_utc(now) if now is not None else utc_now())


def apply_review(state: BundleState, was_correct: bool, now: datetime | None = None) -> BundleState:
    """Return the state after one review; the input is left untouched."""
    now = as_utc(now) if now is not None else utc_now()
    update = next_interval(state.interval_days, state.ease, was_correct)

    return replace(
        state,
        ease=update.ease,
        interval_days=update.interval_days,
        due_at=now + timedelta(days=update.interval_days),
        last_result=LastResult(correct=was_correct, timestamp=now),
    )
