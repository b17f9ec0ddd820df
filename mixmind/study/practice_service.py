"""
Practice Service.

Applies one answered exercise to every piece of learner state:
grades the response, advances the item's review state, updates the user's
skill estimate and the item's difficulty, records progress and the attempt,
and rewards the exercise type in the user's bandit.

User skill is a single rating per user. It is stored on every progress
record the user writes, and the most recently reviewed record holds the
current value.

Updates for a single user run one at a time inside this process so each
attempt sees the state left by the previous one.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger

from mixmind.domain import Attempt, Item, ReviewState, UserProgress
from mixmind.learning.bandit import BanditHistory
from mixmind.learning.difficulty import DEFAULT_INITIAL_SKILL
from mixmind.learning.spaced_repetition import initialize_review_state, now_ms
from mixmind.repos.interfaces import ContentRepository, ProgressRepository
from mixmind.study.scheduler import SessionScheduler


@dataclass
class AttemptOutcome:
    """Everything that changed because of one attempt."""

    attempt: Attempt
    correct: bool
    previous_state: ReviewState
    review_state: ReviewState
    mastery_gain: float
    user_skill: float
    item_difficulty: float
    progress: UserProgress
    bandit: BanditHistory


class PracticeService:
    """Records attempts on top of a SessionScheduler."""

    def __init__(
        self,
        scheduler: SessionScheduler,
        content: ContentRepository,
        progress: ProgressRepository,
    ):
        self.scheduler = scheduler
        self.content = content
        self.progress = progress
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Hold the user's lock; it is discarded once no task holds or awaits it."""
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                del self._locks[user_id]

    async def current_skill(self, user_id: str) -> float:
        """Skill stored with the user's most recently reviewed item (0.5 if none)."""
        rated = [p for p in await self.progress.list_user_progress(user_id) if p.skill_level is not None]
        if not rated:
            return DEFAULT_INITIAL_SKILL
        latest = max(rated, key=lambda p: p.last_reviewed or 0)
        return latest.skill_level

    async def record_attempt(
        self,
        user_id: str,
        item: Item | str,
        response: Any = None,
        ms_to_answer: int = 0,
        correct: bool | None = None,
        user_skill: float | None = None,
        lesson_id: str | None = None,
        now: int | None = None,
    ) -> AttemptOutcome:
        """
        Apply one answered exercise.

        The item is looked up again in the content repository so grading and
        the skill update use its current difficulty.

        Args:
            user_id: Learner
            item: Item or item id that was answered
            response: Learner response, graded with Item.check_answer
            ms_to_answer: Response time
            correct: Pre-graded result; skips grading when given
            user_skill: Current skill (the user's latest stored skill, else 0.5, if None)
            lesson_id: Lesson the item was presented in
            now: Attempt time in epoch ms (current time if None)

        Returns:
            AttemptOutcome with the new state

        Raises:
            LookupError: If the content repository does not know the item
        """
        if now is None:
            now = now_ms()
        item_id = item if isinstance(item, str) else item.id

        async with self._user_lock(user_id):
            item = await self.content.get_item(item_id)
            if item is None:
                raise LookupError(f"Unknown item: {item_id}")

            is_correct = item.check_answer(response) if correct is None else bool(correct)
            existing = await self.progress.get_user_progress(user_id, item.id)

            if existing is not None:
                previous = existing.review_state
            else:
                previous = initialize_review_state(item.difficulty, now)

            new_state = self.scheduler.update_review_state(previous, is_correct, now)
            mastery_gain = max(0.0, new_state.mastery - previous.mastery)

            if user_skill is None:
                user_skill = await self.current_skill(user_id)
            skills = self.scheduler.update_skill(user_skill, item.difficulty, is_correct)
            await self.content.update_item_difficulty(item.id, skills["item_difficulty"])

            record = _next_progress(
                existing,
                user_id=user_id,
                item_id=item.id,
                lesson_id=lesson_id,
                state=new_state,
                correct=is_correct,
                skill=skills["user_skill"],
                now=now,
            )
            await self.progress.upsert_user_progress(record)

            attempt = Attempt(
                id=uuid.uuid4().hex,
                user_id=user_id,
                item_id=item.id,
                correct=is_correct,
                ms_to_answer=ms_to_answer,
                timestamp=now,
                exercise_type=item.type,
            )
            await self.progress.log_attempt(attempt)

            bandit = await self.scheduler.update_bandit_for_user(
                user_id,
                item.type,
                mastery_gain,
                ms_to_answer,
                is_correct,
            )

        logger.debug(
            f"{user_id} {'passed' if is_correct else 'failed'} {item.id}: "
            f"mastery {previous.mastery:.3f} -> {new_state.mastery:.3f}, "
            f"difficulty {item.difficulty:.3f} -> {skills['item_difficulty']:.3f}"
        )

        return AttemptOutcome(
            attempt=attempt,
            correct=is_correct,
            previous_state=previous,
            review_state=new_state,
            mastery_gain=mastery_gain,
            user_skill=skills["user_skill"],
            item_difficulty=skills["item_difficulty"],
            progress=record,
            bandit=bandit,
        )


def _next_progress(
    existing: UserProgress | None,
    *,
    user_id: str,
    item_id: str,
    lesson_id: str | None,
    state: ReviewState,
    correct: bool,
    skill: float,
    now: int,
) -> UserProgress:
    if existing is None:
        existing = UserProgress(user_id=user_id, item_id=item_id)

    # A lapse is a failure on an item that had been reviewed before
    lapsed = not correct and existing.review_count > 0

    return UserProgress(
        user_id=user_id,
        item_id=item_id,
        lesson_id=lesson_id or existing.lesson_id,
        mastery=state.mastery,
        stability=state.stability,
        due_at=state.due_at,
        streak=existing.streak + 1 if correct else 0,
        last_result="pass" if correct else "fail",
        review_count=existing.review_count + 1,
        lapse_count=existing.lapse_count + (1 if lapsed else 0),
        last_reviewed=now,
        skill_level=skill,
    )
