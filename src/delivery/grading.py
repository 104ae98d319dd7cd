"""
Answer checking and session scoring.

Single-answer items are compared exactly after trimming whitespace.
Multi-blank and sentence-build items compare their ordered answer
lists element by element.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

from src.adaptive.utils import as_utc, utc_now
from src.content.catalog import ContentItem
from src.content.constants import SessionMode

from .records import (
    AccuracyPoint,
    Answer,
    AnsweredItem,
    DrillSession,
    SessionResults,
    UserProgress,
    empty_tallies,
    keep_latest,
    new_record_id,
)

PROGRESS_HISTORY_LIMIT = 30


def check_answer(item: ContentItem, answer: Answer | None) -> bool:
    """
    Check a learner's answer against an item.

    Args:
        item: The content item
        answer: A string, or an ordered list for multi-part answers

    Returns:
        True if the answer matches exactly
    """
    if answer is None:
        return False

    if isinstance(item.answer, tuple):
        if isinstance(answer, str):
            return False
        given = [part.strip() for part in answer]
        return given == [part.strip() for part in item.answer]

    if not isinstance(answer, str):
        return False
    return answer.strip() == item.answer.strip()


def parse_response(item: ContentItem, raw: str) -> Answer:
    """
    Turn typed input into an answer for the item.

    - Choice items accept a letter (A, B, ...) or the choice text
    - Multi-blank items take comma-separated parts
    - Sentence-build items take the words in order, or their token numbers
    """
    text = raw.strip()

    if item.choices:
        if len(text) == 1 and text.isalpha():
            index = ord(text.upper()) - ord("A")
            if 0 <= index < len(item.choices):
                return item.choices[index]
        return text

    if item.tokens:
        parts = text.replace(",", " ").split()
        if parts and all(p.isdigit() for p in parts):
            indices = [int(p) - 1 for p in parts]
            if all(0 <= i < len(item.tokens) for i in indices):
                return [item.tokens[i] for i in indices]
        return parts

    if isinstance(item.answer, tuple):
        return [part.strip() for part in text.split(",")]

    return text


def grade(item: ContentItem, answer: Answer | None, time_spent_ms: int = 0) -> AnsweredItem:
    """Grade one response."""
    return AnsweredItem(
        item=item,
        user_answer=answer,
        correct=check_answer(item, answer),
        time_spent_ms=time_spent_ms,
    )


def build_session(
    mode: SessionMode,
    answered: Sequence[AnsweredItem],
    duration_sec: int,
    now: datetime | None = None,
) -> DrillSession:
    """
    Assemble a completed drill session with its results summary.

    Accuracy is 0 when nothing was answered. The breakdown always covers
    all five categories.
    """
    breakdown = empty_tallies()
    correct = 0
    for entry in answered:
        tally = breakdown[entry.category]
        tally.total += 1
        if entry.correct:
            tally.correct += 1
            correct += 1

    total = len(answered)
    created = as_utc(now) if now is not None else utc_now()

    return DrillSession(
        id=new_record_id("session"),
        created_at=created.isoformat(),
        mode=mode,
        duration_sec=max(0, int(duration_sec)),
        items=list(answered),
        results=SessionResults(
            total_items=total,
            correct=correct,
            accuracy=correct / total if total > 0 else 0.0,
            category_breakdown=breakdown,
        ),
    )


def apply_session_to_progress(
    progress: UserProgress,
    session: DrillSession,
    history_limit: int = PROGRESS_HISTORY_LIMIT,
) -> UserProgress:
    """
    Fold a finished session into the learner's progress.

    Adds drill time, counts the drill and appends a dated accuracy point
    for each category the session touched, keeping the newest
    `history_limit` points per category.
    """
    day = session.created_at[:10]
    usage_accuracy = {cat: list(points) for cat, points in progress.usage_accuracy.items()}

    if session.results is not None:
        for category, tally in session.results.category_breakdown.items():
            if tally.total > 0:
                points = usage_accuracy.setdefault(category, [])
                points.append(AccuracyPoint(date=day, accuracy=tally.accuracy))
                usage_accuracy[category] = keep_latest(points, history_limit)

    return replace(
        progress,
        total_drill_time=progress.total_drill_time + session.duration_sec,
        drills_completed=progress.drills_completed + 1,
        usage_accuracy=usage_accuracy,
    )
