"""
Session Scheduler.

Orchestrates the learning algorithms for one learner and one module:
- Spaced repetition decides which reviewed items are due
- The exercise-type bandit gates which new items may enter the session
- The interleaver mixes new and review content into the final order

Each planning call recomputes from the collaborators' current data; the
only state carried between calls is the per-user bandit, which lives in a
BanditStateRepository rather than in process memory.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Literal

from loguru import logger

from mixmind.domain import Attempt, ExerciseType, Item, ReviewState
from mixmind.learning.bandit import (
    DEFAULT_EPSILON,
    MAX_TIME_MS,
    OPTIMAL_TIME_MS,
    BanditHistory,
    calculate_reward,
    initialize_bandit,
    pick_exercise_type,
    update_bandit,
)
from mixmind.learning.difficulty import recommend_difficulty
from mixmind.learning.difficulty import update_skill as elo_update
from mixmind.learning.spaced_repetition import now_ms
from mixmind.learning.spaced_repetition import update_review_state as sr_update
from mixmind.repos.interfaces import BanditStateRepository, ContentRepository, ProgressRepository
from mixmind.repos.memory import MemoryBanditRepository
from mixmind.study.interleaver import AdaptiveInterleaver, InterleavingPlan, ReviewCandidate

if TYPE_CHECKING:
    from mixmind.config import Settings

DAY_MS = 24 * 60 * 60 * 1000

Adjustment = Literal["easier", "harder", "maintain"]


# =============================================================================
# Configuration and Results
# =============================================================================


@dataclass
class SchedulerConfig:
    """Configuration for session planning and bandit rewards."""

    session_minutes: float = 5.0
    epsilon: float = DEFAULT_EPSILON
    recent_review_days: int = 7  # Overdue by at most this: recent review pool
    older_review_days: int = 14  # Overdue by more than this: dropped
    reward_optimal_ms: int = OPTIMAL_TIME_MS
    reward_max_ms: int = MAX_TIME_MS
    target_success_rate: float = 0.8

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SchedulerConfig:
        """Build from application settings (cached settings if None)."""
        if settings is None:
            from mixmind.config import get_settings

            settings = get_settings()
        return cls(**settings.get_scheduler_config())


@dataclass
class SessionPlan(InterleavingPlan):
    """Ordered items for one session plus how they were composed."""

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class SessionAnalysis:
    """Post-session performance heuristic."""

    average_accuracy: float
    average_time: float
    recommended_adjustment: Adjustment


# =============================================================================
# Scheduler
# =============================================================================


class SessionScheduler:
    """
    Plans practice sessions and applies per-attempt updates.

    Collaborators are injected; the bandit repository defaults to an
    in-memory one, which is only suitable for a single process.
    """

    def __init__(
        self,
        content: ContentRepository,
        progress: ProgressRepository,
        bandits: BanditStateRepository | None = None,
        config: SchedulerConfig | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize scheduler.

        Args:
            content: Curriculum lookups
            progress: Learner progress lookups
            bandits: Per-user bandit persistence (in-memory if None)
            config: Custom configuration (uses defaults if None)
            rng: Random source shared by the bandit and the interleaver
        """
        self.content = content
        self.progress = progress
        self.bandits = bandits if bandits is not None else MemoryBanditRepository()
        self.config = config or SchedulerConfig()
        self.rng = rng
        self.interleaver = AdaptiveInterleaver(rng=rng)

    async def get_next_session_plan(
        self,
        user_id: str,
        module_id: str,
        target_minutes: float | None = None,
        now: int | None = None,
        recent_correct_rate: float | None = None,
    ) -> SessionPlan:
        """
        Plan the next session for a user in a module.

        Args:
            user_id: Learner
            module_id: Module being studied
            target_minutes: Session length (config default if None)
            now: Planning time in epoch ms (current time if None)
            recent_correct_rate: Recent success rate; adapts the mix when given

        Returns:
            SessionPlan, empty when the module is unknown or has no items
        """
        if now is None:
            now = now_ms()
        if target_minutes is None:
            target_minutes = self.config.session_minutes

        module = await self.content.get_module(module_id)
        if module is None:
            logger.warning(f"Unknown module {module_id}; nothing to schedule")
            return SessionPlan()

        module_items = await self._collect_module_items(module_id, module.lesson_ids)
        if not module_items:
            logger.warning(f"Module {module_id} has no items; nothing to schedule")
            return SessionPlan()

        recent_cutoff = now - self.config.recent_review_days * DAY_MS
        older_cutoff = now - self.config.older_review_days * DAY_MS

        due_by_item = {p.item_id: p for p in await self.progress.get_due_items(user_id, now)}
        reviewed = {p.item_id for p in await self.progress.list_user_progress(user_id)}
        bandit = await self.get_bandit(user_id)

        new_items: list[Item] = []
        recent_review: list[ReviewCandidate] = []
        older_review: list[ReviewCandidate] = []
        dropped = 0

        for item in module_items:
            progress = due_by_item.get(item.id)

            if progress is None:
                if item.id in reviewed:
                    continue  # Reviewed and not yet due

                # One draw per new item: the pick gates which type may appear
                if item.type == pick_exercise_type(bandit, self.rng):
                    new_items.append(item)
            elif progress.due_at >= recent_cutoff:
                recent_review.append(ReviewCandidate(item, progress))
            elif progress.due_at >= older_cutoff:
                older_review.append(ReviewCandidate(item, progress))
            else:
                dropped += 1

        if dropped:
            logger.debug(f"Dropped {dropped} items overdue by more than {self.config.older_review_days} days")

        plan = self.interleaver.plan(
            recent_review,
            new_items,
            older_review,
            target_minutes=target_minutes,
            now=now,
            recent_correct_rate=recent_correct_rate,
        )

        logger.info(
            f"Planned {len(plan.items)} items for {user_id} in {module_id}: "
            f"{plan.mix.current} new, {plan.mix.review} review, {plan.mix.older} older"
        )

        return SessionPlan(items=plan.items, mix=plan.mix, estimated_minutes=plan.estimated_minutes)

    async def get_next_items(self, user_id: str, module_id: str, now: int | None = None) -> list[Item]:
        """Items of the next default-length session."""
        plan = await self.get_next_session_plan(user_id, module_id, now=now)
        return plan.items

    # -------------------------------------------------------------------------
    # Per-attempt updates
    # -------------------------------------------------------------------------

    def update_review_state(self, prev: ReviewState, is_correct: bool, now: int | None = None) -> ReviewState:
        return sr_update(prev, is_correct, now)

    def update_skill(self, user_skill: float, item_difficulty: float, is_correct: bool) -> dict[str, float]:
        result = elo_update(user_skill, item_difficulty, is_correct)
        return {
            "user_skill": result.new_user_skill,
            "item_difficulty": result.new_item_difficulty,
        }

    async def get_bandit(self, user_id: str) -> BanditHistory:
        """Stored bandit for a user, or a fresh one at the configured epsilon."""
        history = await self.bandits.load_bandit(user_id)
        if history is None:
            history = initialize_bandit(self.config.epsilon)
        return history

    async def update_bandit_for_user(
        self,
        user_id: str,
        exercise_type: ExerciseType | str,
        mastery_gain: float,
        time_to_answer: float,
        was_correct: bool,
    ) -> BanditHistory:
        """
        Reward the exercise type used for an attempt and persist the bandit.

        Returns:
            The saved BanditHistory
        """
        reward = calculate_reward(
            mastery_gain,
            time_to_answer,
            was_correct,
            optimal_ms=self.config.reward_optimal_ms,
            max_ms=self.config.reward_max_ms,
        )
        history = update_bandit(await self.get_bandit(user_id), exercise_type, reward)
        await self.bandits.save_bandit(user_id, history)

        logger.debug(f"Bandit reward {reward:.3f} for {user_id} on {ExerciseType(exercise_type).value}")
        return history

    def get_recommended_difficulty(
        self,
        user_skill: float = 0.5,
        target_success_rate: float | None = None,
    ) -> float:
        """Item difficulty expected to yield the target success rate."""
        if target_success_rate is None:
            target_success_rate = self.config.target_success_rate
        return recommend_difficulty(user_skill, target_success_rate)

    async def _collect_module_items(self, module_id: str, lesson_ids: list[str]) -> list[Item]:
        if lesson_ids:
            lessons = [await self.content.get_lesson(lid) for lid in lesson_ids]
        else:
            lessons = await self.content.get_lessons_for_module(module_id)

        items: list[Item] = []
        seen: set[str] = set()
        for lesson in lessons:
            if lesson is None:
                continue
            for item in await self.content.get_items_for_lesson(lesson.id):
                if item.id not in seen:
                    seen.add(item.id)
                    items.append(item)
        return items


# =============================================================================
# Session Analysis
# =============================================================================


def analyze_session_performance(items: list[Item], attempts: Iterable[Attempt]) -> SessionAnalysis:
    """
    Summarize a finished session and suggest a difficulty adjustment.

    Accuracy below 60% suggests easier content; above 90% with answers
    under five seconds suggests harder content. A session with no attempts
    reports zeros and "maintain".

    Args:
        items: Items of the session (attempts on other items are ignored
            when this is non-empty)
        attempts: Attempts made during the session
    """
    item_ids = {item.id for item in items}
    scored = [a for a in attempts if not item_ids or a.item_id in item_ids]
    if not scored:
        return SessionAnalysis(average_accuracy=0.0, average_time=0.0, recommended_adjustment="maintain")

    accuracy = sum(1 for a in scored if a.correct) / len(scored)
    average_time = sum(a.ms_to_answer for a in scored) / len(scored)

    adjustment: Adjustment = "maintain"
    if accuracy < 0.6:
        adjustment = "easier"
    elif accuracy > 0.9 and average_time < 5000:
        adjustment = "harder"

    return SessionAnalysis(
        average_accuracy=accuracy,
        average_time=average_time,
        recommended_adjustment=adjustment,
    )
