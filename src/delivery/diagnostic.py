"""
Diagnostic builder.

A diagnostic is a timed reading passage with comprehension questions
followed by a fixed number of standalone usage items. The result seeds
the weakness vector and the report's top-three weaknesses.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timedelta

from src.adaptive.utils import as_utc, round_half_up, utc_now
from src.content.catalog import Catalog, ContentItem, ReadingPassage
from src.content.constants import USAGE_CATEGORIES, UsageCategory

from .records import (
    DiagnosticResult,
    ReadingAnswer,
    ReadingPoint,
    ReadingResult,
    Tallies,
    UsageAnswer,
    UsageResult,
    UserProgress,
    empty_tallies,
    keep_latest,
    new_record_id,
)

DIAGNOSTIC_USAGE_ITEMS = 15
WEAKNESS_COUNT = 3


def pick_passage(catalog: Catalog, rng: random.Random) -> ReadingPassage | None:
    if not catalog.passages:
        return None
    return rng.choice(catalog.passages)


def pick_usage_items(
    catalog: Catalog,
    rng: random.Random,
    count: int = DIAGNOSTIC_USAGE_ITEMS,
) -> list[ContentItem]:
    """A shuffled sample of standalone usage items."""
    items = catalog.standalone_items()
    rng.shuffle(items)
    return items[: max(0, count)]


def reading_wpm(word_count: int, reading_ms: int) -> int:
    """Words per minute, 0 when no reading time was recorded."""
    if reading_ms <= 0:
        return 0
    return round_half_up(word_count / (reading_ms / 1000) * 60)


def tally_categories(answers: Sequence[UsageAnswer]) -> Tallies:
    tallies = empty_tallies()
    for answer in answers:
        tallies[answer.category].total += 1
        if answer.correct:
            tallies[answer.category].correct += 1
    return tallies


def weakest_categories(tallies: Tallies, n: int = WEAKNESS_COUNT) -> list[UsageCategory]:
    """Tested categories by ascending accuracy; ties keep category order."""
    tested = [cat for cat in USAGE_CATEGORIES if tallies[cat].total > 0]
    tested.sort(key=lambda cat: tallies[cat].accuracy)
    return tested[:n]


def build_diagnostic(
    passage: ReadingPassage,
    reading_answers: Sequence[ReadingAnswer],
    reading_ms: int,
    usage_answers: Sequence[UsageAnswer],
    elapsed_seconds: float = 0,
    now: datetime | None = None,
    diagnostic_id: str | None = None,
) -> DiagnosticResult:
    """
    Assemble a completed diagnostic result.

    Args:
        passage: The passage that was read
        reading_answers: One answer per comprehension question
        reading_ms: Time spent reading the passage
        usage_answers: Graded usage items
        elapsed_seconds: Total diagnostic duration (used for started_at)
        now: Completion instant (default: current UTC time)
        diagnostic_id: Reuse an existing id (default: a new one)
    """
    completed = as_utc(now) if now is not None else utc_now()
    started = completed - timedelta(seconds=max(0.0, elapsed_seconds))

    correct_reading = sum(1 for a in reading_answers if a.correct)
    reading_accuracy = correct_reading / len(reading_answers) if reading_answers else 0.0

    category_scores = tally_categories(usage_answers)

    return DiagnosticResult(
        id=diagnostic_id or new_record_id("diag"),
        started_at=started.isoformat(),
        completed_at=completed.isoformat(),
        reading=ReadingResult(
            passage_id=passage.id,
            wpm=reading_wpm(passage.word_count, reading_ms),
            accuracy=reading_accuracy,
            time_spent_ms=reading_ms,
            answers=list(reading_answers),
        ),
        usage=UsageResult(items=list(usage_answers), category_scores=category_scores),
        weaknesses=weakest_categories(category_scores),
    )


def apply_diagnostic_to_progress(
    progress: UserProgress,
    diagnostic: DiagnosticResult,
    history_limit: int = 30,
) -> UserProgress:
    """Append the diagnostic's reading speed and accuracy to the reading history."""
    if diagnostic.reading is None or not diagnostic.is_complete:
        return progress

    point = ReadingPoint(
        date=diagnostic.completed_at[:10],
        wpm=diagnostic.reading.wpm,
        accuracy=diagnostic.reading.accuracy,
    )
    history = keep_latest([*progress.reading_history, point], history_limit)
    return replace(progress, reading_history=history)
