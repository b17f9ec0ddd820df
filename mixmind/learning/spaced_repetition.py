"""
Spaced Repetition Engine (SM-2/Leitner hybrid).

Pure functions that move a per-item ReviewState forward after each attempt:
- Correct answers push mastery toward 1 with diminishing returns and
  stretch the review interval
- Incorrect answers decay mastery multiplicatively and shrink the
  interval, but never below a 12 hour floor so a just-failed item is not
  shown again immediately

All timestamps are epoch milliseconds.
"""

from __future__ import annotations

import time

from mixmind.domain import ReviewState

# Results share the state shape
ReviewResult = ReviewState

HOUR_MS = 60 * 60 * 1000
BASE_INTERVAL_HOURS = 4
MIN_FAILURE_INTERVAL_HOURS = 12

CORRECT_MASTERY_BOOST = 0.35
CORRECT_STABILITY_GROWTH = 1.6
INCORRECT_MASTERY_DECAY = 0.7
INCORRECT_STABILITY_DECAY = 0.8
FAILURE_INTERVAL_FACTOR = 0.3
MIN_STABILITY = 0.1


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def update_review_state(
    prev_state: ReviewState,
    is_correct: bool,
    now: int | None = None,
) -> ReviewResult:
    """
    Calculate the next review state after an attempt.

    Args:
        prev_state: State before the attempt
        is_correct: Whether the answer was correct
        now: Attempt time in epoch ms (defaults to current time)

    Returns:
        New ReviewState with mastery/stability rounded to 3 decimals
    """
    if now is None:
        now = now_ms()

    mastery = prev_state.mastery
    stability = prev_state.stability

    if is_correct:
        mastery = mastery + (1 - mastery) * CORRECT_MASTERY_BOOST
        stability *= CORRECT_STABILITY_GROWTH
    else:
        mastery *= INCORRECT_MASTERY_DECAY
        stability *= INCORRECT_STABILITY_DECAY

    mastery = max(0.0, min(1.0, mastery))
    stability = max(MIN_STABILITY, stability)

    base_interval = BASE_INTERVAL_HOURS * HOUR_MS
    if is_correct:
        interval = base_interval * stability
    else:
        interval = max(
            MIN_FAILURE_INTERVAL_HOURS * HOUR_MS,
            base_interval * stability * FAILURE_INTERVAL_FACTOR,
        )

    return ReviewState(
        mastery=round(mastery, 3),
        stability=round(stability, 3),
        due_at=int(now + interval),
    )


def initialize_review_state(difficulty: float = 0.5, now: int | None = None) -> ReviewState:
    """
    Create the state for an item the learner has never seen.

    Mastery starts inversely related to difficulty (floored at 0.1) and the
    item is due immediately.
    """
    if now is None:
        now = now_ms()
    return ReviewState(mastery=max(0.1, 1 - difficulty), stability=1.0, due_at=now)


def is_due(state: ReviewState, now: int | None = None) -> bool:
    """Check if the item is eligible for review."""
    if now is None:
        now = now_ms()
    return state.due_at <= now


def get_urgency_score(state: ReviewState, now: int | None = None) -> float:
    """
    Priority signal for due items: hours overdue weighted by low mastery.

    Returns 0 for items that are not yet due.
    """
    if now is None:
        now = now_ms()
    if not is_due(state, now):
        return 0.0
    hours_overdue = (now - state.due_at) / HOUR_MS
    return max(0.0, hours_overdue * (1 - state.mastery))
