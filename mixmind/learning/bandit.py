"""
Multi-Armed Bandit for Exercise Type Selection.

Epsilon-greedy selection over the three exercise formats (mcq, order,
short). Each arm tracks a running mean of the rewards observed after
exercises of its type; the reward blends mastery gain, correctness and
response speed.

Every arm starts with one pseudo-attempt at a neutral reward of 0.5 so a
single lucky answer cannot lock the learner into one format.

State is passed in and returned, never mutated, so callers persist the
history returned by update_bandit.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from enum import Enum

from loguru import logger

from mixmind.domain import EXERCISE_TYPES, ExerciseType

DEFAULT_EPSILON = 0.1
INITIAL_REWARD = 0.5

# Reward weights
MASTERY_WEIGHT = 0.6
CORRECTNESS_WEIGHT = 0.3
SPEED_WEIGHT = 0.1

OPTIMAL_TIME_MS = 5000
MAX_TIME_MS = 30000

# Arms count as confident after this many observations
CONFIDENT_ATTEMPTS = 10


class LearningStage(str, Enum):
    """Coarse learner level used to tune exploration."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class BanditArm:
    """Reward statistics for one exercise type."""

    type: ExerciseType
    total_reward: float
    attempt_count: int
    average_reward: float

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "total_reward": self.total_reward,
            "attempt_count": self.attempt_count,
            "average_reward": self.average_reward,
        }

    @classmethod
    def from_dict(cls, data: dict) -> BanditArm:
        return cls(
            type=ExerciseType(data["type"]),
            total_reward=float(data["total_reward"]),
            attempt_count=int(data["attempt_count"]),
            average_reward=float(data["average_reward"]),
        )

    @classmethod
    def prior(cls, exercise_type: ExerciseType) -> BanditArm:
        return cls(
            type=exercise_type,
            total_reward=INITIAL_REWARD,
            attempt_count=1,
            average_reward=INITIAL_REWARD,
        )


@dataclass
class BanditHistory:
    """Per-user bandit state."""

    arms: dict[ExerciseType, BanditArm] = field(default_factory=dict)
    epsilon: float = DEFAULT_EPSILON
    total_attempts: int = 0

    def to_dict(self) -> dict:
        return {
            "arms": {t.value: arm.to_dict() for t, arm in self.arms.items()},
            "epsilon": self.epsilon,
            "total_attempts": self.total_attempts,
        }

    @classmethod
    def from_dict(cls, data: dict) -> BanditHistory:
        """
        Restore a history from its dict form.

        Unknown arm keys are dropped and missing arms get the neutral prior,
        so the result always holds exactly the known exercise types.
        """
        raw_arms = data.get("arms") or {}
        arms: dict[ExerciseType, BanditArm] = {}
        for exercise_type in EXERCISE_TYPES:
            raw = raw_arms.get(exercise_type.value)
            if raw is None:
                arms[exercise_type] = BanditArm.prior(exercise_type)
            else:
                arms[exercise_type] = BanditArm.from_dict({**raw, "type": exercise_type.value})
        return cls(
            arms=arms,
            epsilon=float(data.get("epsilon", DEFAULT_EPSILON)),
            total_attempts=int(data.get("total_attempts", len(EXERCISE_TYPES))),
        )


@dataclass(frozen=True)
class ArmStats:
    """Read-only view of one arm for dashboards."""

    type: ExerciseType
    average_reward: float
    attempts: int
    confidence: float


def initialize_bandit(epsilon: float = DEFAULT_EPSILON) -> BanditHistory:
    """Create a bandit with every exercise type seeded at the neutral prior."""
    arms = {t: BanditArm.prior(t) for t in EXERCISE_TYPES}
    return BanditHistory(arms=arms, epsilon=epsilon, total_attempts=len(EXERCISE_TYPES))


def pick_exercise_type(history: BanditHistory, rng: random.Random | None = None) -> ExerciseType:
    """
    Select an exercise type with epsilon-greedy.

    With probability epsilon a uniformly random type is returned; otherwise
    the type with the highest average reward. Ties go to the type declared
    first (mcq, order, short).

    Args:
        history: Current bandit state
        rng: Random source (module-level random when None)

    Returns:
        Selected exercise type
    """
    source = rng if rng is not None else random
    exercise_types = [t for t in EXERCISE_TYPES if t in history.arms]

    if source.random() < history.epsilon:
        choice = source.choice(exercise_types)
        logger.debug(f"Bandit explore -> {choice.value}")
        return choice

    best_type = exercise_types[0]
    best_reward = history.arms[best_type].average_reward
    for exercise_type in exercise_types[1:]:
        arm = history.arms[exercise_type]
        if arm.average_reward > best_reward:
            best_type = exercise_type
            best_reward = arm.average_reward

    logger.debug(f"Bandit exploit -> {best_type.value} (avg={best_reward:.3f})")
    return best_type


def update_bandit(
    history: BanditHistory,
    exercise_type: ExerciseType | str,
    reward: float,
) -> BanditHistory:
    """
    Record a reward for one arm.

    Args:
        history: Current bandit state (left untouched)
        exercise_type: Type that was used
        reward: Performance score (0-1)

    Returns:
        New BanditHistory with the arm's running mean updated

    Raises:
        ValueError: If exercise_type is not a known exercise type
    """
    exercise_type = ExerciseType(exercise_type)
    if exercise_type not in history.arms:
        raise ValueError(f"Unknown bandit arm: {exercise_type.value}")

    arm = history.arms[exercise_type]
    total_reward = arm.total_reward + reward
    attempt_count = arm.attempt_count + 1

    arms = dict(history.arms)
    arms[exercise_type] = replace(
        arm,
        total_reward=total_reward,
        attempt_count=attempt_count,
        average_reward=total_reward / attempt_count,
    )

    return replace(history, arms=arms, total_attempts=history.total_attempts + 1)


def calculate_reward(
    mastery_gain: float,
    time_to_answer: float,
    was_correct: bool,
    optimal_ms: int = OPTIMAL_TIME_MS,
    max_ms: int = MAX_TIME_MS,
) -> float:
    """
    Score an attempt for the bandit.

    reward = 0.6 * mastery_gain + 0.3 * correct + 0.1 * time_efficiency

    Time efficiency falls linearly from 1 at ``optimal_ms`` to 0 at
    ``max_ms`` and never goes negative.

    Returns:
        Reward clamped to [0, 1]
    """
    time_efficiency = max(0.0, min(1.0, (max_ms - time_to_answer) / (max_ms - optimal_ms)))

    reward = (
        mastery_gain * MASTERY_WEIGHT
        + (CORRECTNESS_WEIGHT if was_correct else 0.0)
        + time_efficiency * SPEED_WEIGHT
    )
    return max(0.0, min(1.0, reward))


def get_bandit_stats(history: BanditHistory) -> list[ArmStats]:
    """Per-arm performance summary in declaration order."""
    return [
        ArmStats(
            type=arm.type,
            average_reward=round(arm.average_reward, 3),
            attempts=arm.attempt_count,
            confidence=min(1.0, arm.attempt_count / CONFIDENT_ATTEMPTS),
        )
        for arm in (history.arms[t] for t in EXERCISE_TYPES if t in history.arms)
    ]


def adapt_epsilon(history: BanditHistory, learning_stage: LearningStage | str) -> float:
    """
    Exploration rate suited to the learner's stage.

    Beginners explore more (capped at 0.2), advanced learners less
    (floored at 0.05), intermediate learners keep the current rate.
    """
    stage = LearningStage(learning_stage)
    if stage == LearningStage.BEGINNER:
        return min(0.2, history.epsilon * 1.5)
    if stage == LearningStage.ADVANCED:
        return max(0.05, history.epsilon * 0.7)
    return history.epsilon
