"""
Unit tests for the spaced repetition engine.

Tests:
- Mastery and stability updates on correct / incorrect answers
- Interval calculation including the 12 hour failure floor
- Initial state and due-immediately invariant
- Urgency scoring
"""

import random

import pytest

from mixmind.domain import ReviewState
from mixmind.learning.spaced_repetition import (
    HOUR_MS,
    get_urgency_score,
    initialize_review_state,
    is_due,
    update_review_state,
)


class TestUpdateReviewState:
    """Tests for the per-attempt state update."""

    def test_correct_answer_boosts_mastery_and_stability(self):
        """Correct answer: mastery + (1 - mastery) * 0.35, stability * 1.6."""
        prev = ReviewState(mastery=0.5, stability=1.0, due_at=1000)

        result = update_review_state(prev, True, 1000)

        assert result.mastery == pytest.approx(0.675)
        assert result.stability == pytest.approx(1.6)
        assert result.due_at == 1000 + int(4 * HOUR_MS * 1.6)

    def test_incorrect_answer_decays_mastery_and_stability(self):
        """Incorrect answer: mastery * 0.7, stability * 0.8."""
        prev = ReviewState(mastery=0.5, stability=1.0, due_at=1000)

        result = update_review_state(prev, False, 1000)

        assert result.mastery == pytest.approx(0.35)
        assert result.stability == pytest.approx(0.8)

    def test_failure_interval_never_below_twelve_hours(self):
        """A failed item is not shown again within 12 hours."""
        prev = ReviewState(mastery=0.5, stability=1.0, due_at=0)

        result = update_review_state(prev, False, 0)

        # 4h * 0.8 * 0.3 is below the floor
        assert result.due_at == 12 * HOUR_MS

    def test_failure_interval_scales_with_high_stability(self):
        """With enough stability the scaled failure interval exceeds the floor."""
        prev = ReviewState(mastery=0.9, stability=20.0, due_at=0)

        result = update_review_state(prev, False, 0)

        # 4h * 16 * 0.3 = 19.2h
        assert result.stability == pytest.approx(16.0)
        assert result.due_at == int(4 * HOUR_MS * 16.0 * 0.3)

    def test_stability_floor(self):
        """Stability never drops below 0.1."""
        prev = ReviewState(mastery=0.2, stability=0.1, due_at=0)

        result = update_review_state(prev, False, 0)

        assert result.stability == pytest.approx(0.1)

    def test_values_rounded_to_three_decimals(self):
        """Mastery and stability are rounded to 3 decimals."""
        prev = ReviewState(mastery=0.123456, stability=1.23456, due_at=0)

        result = update_review_state(prev, True, 0)

        assert result.mastery == round(result.mastery, 3)
        assert result.stability == round(result.stability, 3)

    def test_input_state_not_mutated(self):
        """The previous state is left untouched."""
        prev = ReviewState(mastery=0.5, stability=1.0, due_at=1000)

        update_review_state(prev, True, 5000)

        assert prev == ReviewState(mastery=0.5, stability=1.0, due_at=1000)

    def test_repeated_success_grows_interval(self):
        """Each correct answer pushes the next review further out."""
        state = initialize_review_state(0.5, 0)
        now = 0
        intervals = []
        for _ in range(4):
            next_state = update_review_state(state, True, now)
            intervals.append(next_state.due_at - now)
            now = next_state.due_at
            state = next_state

        assert intervals == sorted(intervals)
        assert intervals[-1] > intervals[0]

    def test_clamping_over_random_inputs(self):
        """Mastery stays in [0, 1] and stability >= 0.1 for arbitrary inputs."""
        rng = random.Random(42)
        for _ in range(1000):
            prev = ReviewState(
                mastery=rng.random(),
                stability=rng.uniform(0.1, 50.0),
                due_at=rng.randint(0, 10**12),
            )
            result = update_review_state(prev, rng.random() < 0.5, 10**12)

            assert 0.0 <= result.mastery <= 1.0
            assert result.stability >= 0.1


class TestInitializeReviewState:
    """Tests for new-item state."""

    def test_midpoint_difficulty(self):
        """initialize_review_state(0.5, 1000) is due immediately at neutral values."""
        state = initialize_review_state(0.5, 1000)

        assert state == ReviewState(mastery=0.5, stability=1.0, due_at=1000)

    def test_mastery_inverse_to_difficulty(self):
        """Easy items start with higher mastery."""
        assert initialize_review_state(0.2, 0).mastery == pytest.approx(0.8)
        assert initialize_review_state(0.8, 0).mastery == pytest.approx(0.2)

    def test_mastery_floor_for_hardest_items(self):
        """Mastery never starts below 0.1."""
        assert initialize_review_state(1.0, 0).mastery == pytest.approx(0.1)

    @pytest.mark.parametrize("difficulty", [0.0, 0.25, 0.5, 0.75, 1.0])
    def test_new_state_is_due_immediately(self, difficulty, now):
        """A freshly initialized item is due at its creation time."""
        assert is_due(initialize_review_state(difficulty, now), now)


class TestUrgency:
    """Tests for due checks and urgency scoring."""

    def test_not_due_in_future(self):
        """Items scheduled later are not due."""
        state = ReviewState(mastery=0.5, stability=1.0, due_at=2000)

        assert not is_due(state, 1000)
        assert get_urgency_score(state, 1000) == 0.0

    def test_urgency_weights_overdue_hours_by_low_mastery(self):
        """Two hours overdue at mastery 0.5 scores 1.0."""
        state = ReviewState(mastery=0.5, stability=1.0, due_at=0)

        assert get_urgency_score(state, 2 * HOUR_MS) == pytest.approx(1.0)

    def test_poorly_retained_items_more_urgent(self):
        """At equal lateness the lower-mastery item ranks higher."""
        weak = ReviewState(mastery=0.2, stability=1.0, due_at=0)
        strong = ReviewState(mastery=0.9, stability=1.0, due_at=0)

        assert get_urgency_score(weak, 5 * HOUR_MS) > get_urgency_score(strong, 5 * HOUR_MS)
