"""
Unit tests for the spaced-repetition helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.adaptive.srs import (
    BundleState,
    apply_review,
    due_bundle_ids,
    is_due,
    new_bundle_state,
    next_interval,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestNextInterval:
    def test_correct_grows_interval_and_ease(self):
        update = next_interval(2, 2.5, True)
        assert update.interval_days == 5
        assert update.ease == pytest.approx(2.6)

    def test_half_rounds_up(self):
        # 3 * 2.5 = 7.5 -> 8
        assert next_interval(3, 2.5, True).interval_days == 8

    def test_incorrect_resets_interval(self):
        update = next_interval(10, 2.5, False)
        assert update.interval_days == 1
        assert update.ease == pytest.approx(2.3)

    def test_ease_is_clamped(self):
        assert next_interval(1, 3.0, True).ease == 3.0
        assert next_interval(1, 1.3, False).ease == 1.3
        assert next_interval(1, 1.4, False).ease == pytest.approx(1.3)

    def test_interval_never_below_one(self):
        assert next_interval(0, 1.3, True).interval_days == 1

    @pytest.mark.parametrize("interval", [1, 2, 7, 30])
    @pytest.mark.parametrize("ease", [1.3, 2.0, 2.5, 3.0])
    @pytest.mark.parametrize("correct", [True, False])
    def test_bounds_hold(self, interval, ease, correct):
        update = next_interval(interval, ease, correct)
        assert 1.3 <= update.ease <= 3.0
        assert update.interval_days >= 1


class TestIsDue:
    def test_past_and_present_are_due(self):
        assert is_due(BundleState("b", due_at=NOW - timedelta(days=1)), NOW)
        assert is_due(BundleState("b", due_at=NOW), NOW)

    def test_future_not_due(self):
        assert not is_due(BundleState("b", due_at=NOW + timedelta(seconds=1)), NOW)

    def test_naive_datetimes_are_utc(self):
        naive_due = datetime(2026, 3, 1, 11, 0)
        assert is_due(BundleState("b", due_at=naive_due), NOW)

    def test_offset_datetimes_compare_by_instant(self):
        # 13:00 at +02:00 is 11:00 UTC
        plus_two = timezone(timedelta(hours=2))
        due = datetime(2026, 3, 1, 13, 0, tzinfo=plus_two)
        assert is_due(BundleState("b", due_at=due), NOW)

    def test_due_bundle_ids(self):
        states = [
            BundleState("due", due_at=NOW - timedelta(hours=1)),
            BundleState("later", due_at=NOW + timedelta(days=3)),
        ]
        assert due_bundle_ids(states, NOW) == {"due"}


class TestApplyReview:
    def test_correct_review_schedules_ahead(self):
        state = BundleState("b", due_at=NOW, ease=2.5, interval_days=2)
        reviewed = apply_review(state, True, NOW)

        assert reviewed.interval_days == 5
        assert reviewed.due_at == NOW + timedelta(days=5)
        assert reviewed.last_result.correct is True
        assert reviewed.last_result.timestamp == NOW
        # Original untouched
        assert state.interval_days == 2

    def test_new_state_is_due_now(self):
        assert is_due(new_bundle_state("b", NOW), NOW)

    def test_out_of_range_state_is_clamped(self):
        state = BundleState.from_dict(
            {"bundle_id": "b", "due_at": "2026-01-01T00:00:00Z", "ease": 9.0, "interval_days": 0}
        )
        assert state.ease == 3.0
        assert state.interval_days == 1

        low = BundleState("b", due_at=NOW, ease=0.5, interval_days=-4)
        assert low.ease == 1.3
        assert low.interval_days == 1

    def test_dict_round_trip_keeps_instants(self):
        state = apply_review(new_bundle_state("b", NOW), False, NOW)
        restored = BundleState.from_dict(state.to_dict())
        assert restored == state
