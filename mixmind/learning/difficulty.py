"""
Difficulty Adaptation using a logistic ELO update.

User skill and item difficulty live on the same 0-1 scale. After each
attempt both ratings move by the gap between the observed outcome and the
predicted success probability; items move at half the user's rate because
many learners share one item.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# Sigmoid steepness: how sharply skill gaps separate success probabilities
STEEPNESS = 5.0
K_USER = 0.1
K_ITEM = 0.05

MIN_CONFIDENCE = 0.1
MIN_INITIAL_SKILL = 0.1
MAX_INITIAL_SKILL = 0.9
DEFAULT_INITIAL_SKILL = 0.5


@dataclass(frozen=True)
class SkillUpdate:
    """Result of one ELO update."""

    new_user_skill: float
    new_item_difficulty: float
    confidence: float  # Low when the outcome was surprising


def get_expected_probability(user_skill: float, item_difficulty: float) -> float:
    """Predicted probability that the user answers the item correctly."""
    return 1 / (1 + math.exp(-(user_skill - item_difficulty) * STEEPNESS))


def update_skill(user_skill: float, item_difficulty: float, is_correct: bool) -> SkillUpdate:
    """
    Update user skill and item difficulty from one attempt.

    Args:
        user_skill: Current user skill (0-1)
        item_difficulty: Current item difficulty (0-1)
        is_correct: Whether the user answered correctly

    Returns:
        SkillUpdate with all values clamped and rounded to 3 decimals
    """
    expected = get_expected_probability(user_skill, item_difficulty)
    actual = 1.0 if is_correct else 0.0

    new_user_skill = _clamp01(user_skill + K_USER * (actual - expected))
    new_item_difficulty = _clamp01(item_difficulty + K_ITEM * (expected - actual))

    surprise = abs(actual - expected)
    confidence = max(MIN_CONFIDENCE, 1 - surprise)

    return SkillUpdate(
        new_user_skill=round(new_user_skill, 3),
        new_item_difficulty=round(new_item_difficulty, 3),
        confidence=round(confidence, 3),
    )


def recommend_difficulty(user_skill: float, target_success_rate: float = 0.8) -> float:
    """
    Item difficulty at which the user is expected to succeed at the target rate.

    Inverts the sigmoid: difficulty = skill - logit(target) / steepness.

    Raises:
        ValueError: If target_success_rate is not strictly between 0 and 1
    """
    if not 0.0 < target_success_rate < 1.0:
        raise ValueError(f"target_success_rate must be in (0, 1), got {target_success_rate}")
    log_odds = math.log(target_success_rate / (1 - target_success_rate))
    return _clamp01(user_skill - log_odds / STEEPNESS)


def initialize_user_skill(
    correct_answers: int,
    total_questions: int,
    adjustment_factor: float = 1.0,
) -> float:
    """
    Seed user skill from a placement test.

    The result stays within [0.1, 0.9] so later updates can move it either
    way. A placement test with no questions yields 0.5.
    """
    if total_questions <= 0:
        return DEFAULT_INITIAL_SKILL
    skill = (correct_answers / total_questions) * adjustment_factor
    return max(MIN_INITIAL_SKILL, min(MAX_INITIAL_SKILL, skill))


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))
