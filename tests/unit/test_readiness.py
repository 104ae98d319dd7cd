"""
Unit tests for exam readiness and weakness ranking.
"""

from src.adaptive.readiness import exam_readiness, recent_accuracy_percent, top_weaknesses
from src.adaptive.utils import round_half_up
from src.content.constants import SessionMode, UsageCategory
from src.delivery.records import DrillSession


class TestExamReadiness:
    def test_no_data_is_fifty(self):
        assert exam_readiness(None, []) == 50

    def test_incomplete_diagnostic_is_ignored(self, make_diagnostic):
        diagnostic = make_diagnostic({"collocations": (10, 10)}, reading_accuracy=1.0, complete=False)
        assert exam_readiness(diagnostic, []) == 50

    def test_diagnostic_formula(self, make_diagnostic):
        # 40 + 0.5 * 30 + (5 / 10) * 30
        diagnostic = make_diagnostic({"collocations": (2, 5), "register": (3, 5)}, reading_accuracy=0.5)
        assert exam_readiness(diagnostic, []) == 70

    def test_no_usage_answers_gives_half_credit(self, make_diagnostic):
        # 40 + 1.0 * 30 + 15
        diagnostic = make_diagnostic({}, reading_accuracy=1.0)
        assert exam_readiness(diagnostic, []) == 85

    def test_perfect_diagnostic_is_hundred(self, make_diagnostic):
        diagnostic = make_diagnostic({"prepositions": (15, 15)}, reading_accuracy=1.0)
        assert exam_readiness(diagnostic, []) == 100

    def test_sessions_blend_with_base(self, make_session):
        # 50 * 0.7 + 0.8 * 100 * 0.3 = 59
        sessions = [make_session(accuracy=0.8), make_session(accuracy=0.8)]
        assert exam_readiness(None, sessions) == 59

    def test_sessions_without_results_count_as_zero(self, make_session):
        empty = DrillSession(id="s-empty", created_at="2026-01-01T00:00:00+00:00", mode=SessionMode.ADAPTIVE, duration_sec=0)
        # mean of 1.0 and 0.0 = 0.5 -> 50 * 0.7 + 15 = 50
        assert exam_readiness(None, [make_session(accuracy=1.0), empty]) == 50

    def test_half_points_round_up(self):
        assert round_half_up(36.5) == 37
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2

    def test_always_within_bounds(self, make_diagnostic, make_session):
        for reading in (0.0, 0.3, 1.0):
            for accuracy in (0.0, 0.5, 1.0):
                score = exam_readiness(
                    make_diagnostic({"word_forms": (0, 4)}, reading_accuracy=reading),
                    [make_session(accuracy=accuracy)],
                )
                assert 0 <= score <= 100

    def test_non_decreasing_in_reading_accuracy(self, make_diagnostic, make_session):
        usage = {"collocations": (3, 10), "register": (4, 5)}
        for sessions in ([], [make_session(accuracy=0.4)]):
            scores = [
                exam_readiness(make_diagnostic(usage, reading_accuracy=r / 20), sessions)
                for r in range(21)
            ]
            assert scores == sorted(scores)
            assert all(0 <= s <= 100 for s in scores)

    def test_non_decreasing_in_usage_accuracy(self, make_diagnostic, make_session):
        for sessions in ([], [make_session(accuracy=0.9)]):
            scores = [
                exam_readiness(
                    make_diagnostic({"prepositions": (correct, 12)}, reading_accuracy=0.6),
                    sessions,
                )
                for correct in range(13)
            ]
            assert scores == sorted(scores)
            assert all(0 <= s <= 100 for s in scores)

    def test_better_accuracy_never_lowers_score(self, make_diagnostic, make_session):
        diagnostic = make_diagnostic({"collocations": (5, 10)})
        scores = [
            exam_readiness(diagnostic, [make_session(accuracy=a / 10)]) for a in range(11)
        ]
        assert scores == sorted(scores)


class TestTopWeaknesses:
    def test_weakest_diagnostic_category_first(self, make_diagnostic):
        diagnostic = make_diagnostic(
            {
                "collocations": (2, 10),
                "prepositions": (9, 10),
                "register": (9, 10),
                "grammar_frames": (9, 10),
                "word_forms": (9, 10),
            }
        )
        weaknesses = top_weaknesses(diagnostic, [])
        assert len(weaknesses) == 3
        assert weaknesses[0] == UsageCategory.COLLOCATIONS

    def test_single_tested_category_leads(self, make_diagnostic):
        # 0.3 * 0.8 + 0.7 * 0.5 = 0.59 against 0.5 for untested categories
        diagnostic = make_diagnostic({"collocations": (2, 10)})
        assert top_weaknesses(diagnostic, [])[0] == UsageCategory.COLLOCATIONS

    def test_sessions_outweigh_diagnostic(self, make_diagnostic, make_session):
        diagnostic = make_diagnostic({"register": (0, 10), "word_forms": (10, 10)})
        sessions = [make_session({"register": (10, 10), "word_forms": (0, 10)})]
        assert top_weaknesses(diagnostic, sessions, n=1) == [UsageCategory.WORD_FORMS]

    def test_no_data_keeps_category_order(self):
        assert top_weaknesses(None, [], n=2) == [UsageCategory.COLLOCATIONS, UsageCategory.PREPOSITIONS]

    def test_n_bounds(self):
        assert top_weaknesses(None, [], n=0) == []
        assert len(top_weaknesses(None, [], n=10)) == 5


class TestRecentAccuracy:
    def test_empty_is_none(self):
        assert recent_accuracy_percent([]) is None

    def test_mean_as_percent(self, make_session):
        assert recent_accuracy_percent([make_session(accuracy=0.5), make_session(accuracy=0.75)]) == 63
