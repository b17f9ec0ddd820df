"""
Adaptive learning algorithms.

Pure, synchronous functions with no shared state:
- spaced_repetition: per-item mastery, stability and due time
- difficulty: logistic ELO update of user skill and item difficulty
- bandit: epsilon-greedy exercise type selection
"""

from mixmind.learning.bandit import (
    ArmStats,
    BanditArm,
    BanditHistory,
    LearningStage,
    adapt_epsilon,
    calculate_reward,
    get_bandit_stats,
    initialize_bandit,
    pick_exercise_type,
    update_bandit,
)
from mixmind.learning.difficulty import (
    SkillUpdate,
    get_expected_probability,
    initialize_user_skill,
    recommend_difficulty,
    update_skill,
)
from mixmind.learning.spaced_repetition import (
    ReviewResult,
    get_urgency_score,
    initialize_review_state,
    is_due,
    update_review_state,
)

__all__ = [
    # Spaced repetition
    "ReviewResult",
    "update_review_state",
    "initialize_review_state",
    "is_due",
    "get_urgency_score",
    # Difficulty adaptation
    "SkillUpdate",
    "update_skill",
    "get_expected_probability",
    "recommend_difficulty",
    "initialize_user_skill",
    # Bandit
    "ArmStats",
    "BanditArm",
    "BanditHistory",
    "LearningStage",
    "initialize_bandit",
    "pick_exercise_type",
    "update_bandit",
    "calculate_reward",
    "get_bandit_stats",
    "adapt_epsilon",
]
