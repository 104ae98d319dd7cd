"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.content.catalog import Catalog  # noqa: E402
from src.content.constants import USAGE_CATEGORIES, DrillType, SessionMode, UsageCategory  # noqa: E402
from src.delivery.records import (  # noqa: E402
    CategoryTally,
    DiagnosticResult,
    DrillSession,
    ReadingResult,
    SessionResults,
    UsageResult,
    empty_tallies,
)
from src.delivery.state_store import StateStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


# =============================================================================
# Content
# =============================================================================

def item_record(item_id: str, category: UsageCategory, bundle: bool = False) -> dict:
    """A minimal valid multiple-choice item record."""
    record = {
        "id": item_id,
        "prompt": f"Prompt for {item_id}",
        "choices": ["right", "wrong"],
        "answer": "right",
        "explanation": "",
    }
    if bundle:
        record.update(itemType=DrillType.COLLOCATION_MCQ.value, errorTag=category.value)
    else:
        record.update(type=DrillType.COLLOCATION_MCQ.value, category=category.value)
    return record


@pytest.fixture
def grid_catalog():
    """
    Five categories x four items.

    Items `<category>-0` belong to bundle-0 and `<category>-1` to bundle-1;
    indices 2 and 3 are standalone.
    """
    bundles = [
        {
            "id": f"bundle-{i}",
            "headword": f"word{i}",
            "items": [item_record(f"{cat.value}-{i}", cat, bundle=True) for cat in USAGE_CATEGORIES],
        }
        for i in range(2)
    ]
    standalone = [
        item_record(f"{cat.value}-{i}", cat) for cat in USAGE_CATEGORIES for i in range(2, 4)
    ]
    passages = [
        {
            "id": "passage-1",
            "title": "Test passage",
            "content": "word " * 150,
            "wordCount": 150,
            "questions": [
                {"id": "q1", "question": "Q1?", "choices": ["a", "b"], "correctAnswer": "a"},
                {"id": "q2", "question": "Q2?", "choices": ["a", "b"], "correctAnswer": "b"},
            ],
        }
    ]
    return Catalog.from_records(bundles=bundles, items=standalone, passages=passages)


@pytest.fixture
def seed_catalog():
    """The packaged seed catalog."""
    return Catalog.load()


@pytest.fixture
def rng():
    return random.Random(1234)


# =============================================================================
# Learner records
# =============================================================================

def _tallies(scores: dict) -> dict:
    tallies = empty_tallies()
    for category, (correct, total) in scores.items():
        tallies[UsageCategory(category)] = CategoryTally(correct=correct, total=total)
    return tallies


@pytest.fixture
def make_diagnostic():
    """Factory: diagnostic with the given {category: (correct, total)} scores."""

    def _make(scores=None, reading_accuracy=0.5, complete=True, diagnostic_id="diag-1"):
        return DiagnosticResult(
            id=diagnostic_id,
            started_at="2026-01-01T10:00:00+00:00",
            completed_at="2026-01-01T10:08:00+00:00" if complete else None,
            reading=ReadingResult(
                passage_id="passage-1",
                wpm=200,
                accuracy=reading_accuracy,
                time_spent_ms=60000,
            ),
            usage=UsageResult(category_scores=_tallies(scores or {})),
        )

    return _make


@pytest.fixture
def make_session():
    """Factory: drill session with a {category: (correct, total)} breakdown."""
    counter = {"n": 0}

    def _make(breakdown=None, accuracy=None, mode=SessionMode.ADAPTIVE, duration_sec=300):
        counter["n"] += 1
        tallies = _tallies(breakdown or {})
        correct = sum(t.correct for t in tallies.values())
        total = sum(t.total for t in tallies.values())
        if accuracy is None:
            accuracy = correct / total if total else 0.0
        return DrillSession(
            id=f"session-{counter['n']}",
            created_at=f"2026-01-{counter['n']:02d}T12:00:00+00:00",
            mode=mode,
            duration_sec=duration_sec,
            results=SessionResults(
                total_items=total,
                correct=correct,
                accuracy=accuracy,
                category_breakdown=tallies,
            ),
        )

    return _make


@pytest.fixture
def store(tmp_path):
    """A StateStore backed by a temporary database."""
    state_store = StateStore(tmp_path / "state.db")
    yield state_store
    state_store.close()
