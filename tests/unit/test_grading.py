"""
Unit tests for answer checking and session scoring.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from config import Settings
from src.content.catalog import ContentItem
from src.content.constants import SessionMode, UsageCategory
from src.delivery.grading import (
    apply_session_to_progress,
    build_session,
    check_answer,
    grade,
    parse_response,
)
from src.delivery.records import UserProgress


@pytest.fixture
def choice_item():
    return ContentItem.model_validate(
        {
            "id": "choice",
            "type": "collocation_mcq",
            "category": "collocations",
            "prompt": "Governments must ___ action.",
            "choices": ["take", "make", "do", "give"],
            "answer": "take",
        }
    )


@pytest.fixture
def two_blank_item():
    return ContentItem.model_validate(
        {
            "id": "blanks",
            "type": "preposition_fill",
            "category": "prepositions",
            "prompt": "Consistent ___ findings and in line ___ expectations.",
            "answer": ["with", "with"],
        }
    )


@pytest.fixture
def build_item():
    return ContentItem.model_validate(
        {
            "id": "build",
            "itemType": "sentence_build",
            "errorTag": "grammar_frames",
            "prompt": "Put the words in order.",
            "tokens": ["of", "the", "impact", "tourism"],
            "answer": ["the", "impact", "of", "tourism"],
        }
    )


class TestCheckAnswer:
    def test_exact_match_after_trimming(self, choice_item):
        assert check_answer(choice_item, "take")
        assert check_answer(choice_item, "  take ")

    def test_case_matters(self, choice_item):
        assert not check_answer(choice_item, "Take")

    def test_wrong_or_missing(self, choice_item):
        assert not check_answer(choice_item, "make")
        assert not check_answer(choice_item, None)

    def test_ordered_answers(self, two_blank_item, build_item):
        assert check_answer(two_blank_item, ["with", " with "])
        assert not check_answer(two_blank_item, ["with"])
        assert check_answer(build_item, ["the", "impact", "of", "tourism"])
        assert not check_answer(build_item, ["impact", "the", "of", "tourism"])

    def test_shape_mismatch_is_wrong(self, choice_item, two_blank_item):
        assert not check_answer(two_blank_item, "with, with")
        assert not check_answer(choice_item, ["take"])


class TestParseResponse:
    def test_letter_selects_choice(self, choice_item):
        assert parse_response(choice_item, "a") == "take"
        assert parse_response(choice_item, "D") == "give"

    def test_out_of_range_letter_kept_as_text(self, choice_item):
        assert parse_response(choice_item, "z") == "z"

    def test_choice_text(self, choice_item):
        assert parse_response(choice_item, " make ") == "make"

    def test_token_numbers(self, build_item):
        assert parse_response(build_item, "2 3 1 4") == ["the", "impact", "of", "tourism"]

    def test_token_words(self, build_item):
        assert parse_response(build_item, "the impact of tourism") == ["the", "impact", "of", "tourism"]

    def test_comma_separated_blanks(self, two_blank_item):
        assert parse_response(two_blank_item, "with, with") == ["with", "with"]


class TestBuildSession:
    def test_results_summary(self, choice_item, two_blank_item, build_item):
        answered = [
            grade(choice_item, "take", 1200),
            grade(two_blank_item, ["with", "to"], 3000),
            grade(build_item, ["the", "impact", "of", "tourism"], 5000),
        ]
        now = datetime(2026, 2, 3, 9, 30, tzinfo=timezone.utc)
        session = build_session(SessionMode.ADAPTIVE, answered, 95, now=now)

        assert session.created_at.startswith("2026-02-03T09:30")
        assert session.duration_sec == 95
        assert session.results.total_items == 3
        assert session.results.correct == 2
        assert session.results.accuracy == pytest.approx(2 / 3)

        breakdown = session.results.category_breakdown
        assert breakdown[UsageCategory.PREPOSITIONS].total == 1
        assert breakdown[UsageCategory.PREPOSITIONS].correct == 0
        assert breakdown[UsageCategory.REGISTER].total == 0
        assert len(breakdown) == 5

    def test_empty_session(self):
        session = build_session(SessionMode.FOCUSED, [], 0)
        assert session.results.total_items == 0
        assert session.results.accuracy == 0.0

    def test_session_ids_are_unique(self):
        assert build_session(SessionMode.ADAPTIVE, [], 0).id != build_session(SessionMode.ADAPTIVE, [], 0).id


class TestApplySessionToProgress:
    def test_counts_time_and_drills(self, make_session):
        progress = apply_session_to_progress(
            UserProgress(), make_session({"register": (3, 4)}, duration_sec=120)
        )
        assert progress.total_drill_time == 120
        assert progress.drills_completed == 1

        points = progress.usage_accuracy[UsageCategory.REGISTER]
        assert len(points) == 1
        assert points[0].accuracy == pytest.approx(0.75)
        assert points[0].date == "2026-01-01"
        # Untouched categories get no point
        assert progress.usage_accuracy[UsageCategory.WORD_FORMS] == []

    def test_history_is_capped(self, make_session):
        progress = UserProgress()
        for _ in range(5):
            progress = apply_session_to_progress(
                progress, make_session({"collocations": (1, 2)}), history_limit=3
            )
        assert len(progress.usage_accuracy[UsageCategory.COLLOCATIONS]) == 3
        assert progress.drills_completed == 5

    def test_zero_history_limit_keeps_nothing(self, make_session):
        progress = apply_session_to_progress(
            UserProgress(), make_session({"collocations": (1, 2)}), history_limit=0
        )
        assert progress.usage_accuracy[UsageCategory.COLLOCATIONS] == []
        assert progress.drills_completed == 1

    def test_history_limit_setting_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(progress_history_limit=0)

    def test_original_is_not_mutated(self, make_session):
        original = UserProgress()
        apply_session_to_progress(original, make_session({"collocations": (1, 2)}))
        assert original.drills_completed == 0
        assert original.usage_accuracy[UsageCategory.COLLOCATIONS] == []
