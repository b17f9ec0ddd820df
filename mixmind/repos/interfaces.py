"""
Collaborator interfaces consumed by the scheduler.

Content is curriculum data; only item difficulties change, as attempts
recalibrate them. Progress holds per (user, item)
review state and the attempt log. Bandit state holds one exercise-type
bandit per user so exploration survives restarts and multiple processes.

Implementations may suspend on I/O; exceptions they raise are not caught
by the scheduler.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mixmind.domain import Attempt, Item, Lesson, Module, UserProgress
from mixmind.learning.bandit import BanditHistory

# =============================================================================
# Content
# =============================================================================


@runtime_checkable
class ContentRepository(Protocol):
    """Protocol for curriculum content lookups."""

    async def get_module(self, module_id: str) -> Module | None:
        ...

    async def list_modules(self) -> list[Module]:
        """All modules ordered by chapter index."""
        ...

    async def get_modules_by_chapter(self, chapter_index: int) -> list[Module]:
        ...

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        ...

    async def get_lessons_for_module(self, module_id: str) -> list[Lesson]:
        """Lessons that declare ``module_id`` as their parent."""
        ...

    async def get_items_for_lesson(self, lesson_id: str) -> list[Item]:
        """Items of a lesson in lesson order; empty for unknown lessons."""
        ...

    async def get_item(self, item_id: str) -> Item | None:
        ...

    async def update_item_difficulty(self, item_id: str, difficulty: float) -> None:
        """Persist a recalibrated difficulty; later lookups return it."""
        ...


# =============================================================================
# Progress
# =============================================================================


@runtime_checkable
class ProgressRepository(Protocol):
    """Protocol for learner progress and attempt history."""

    async def get_user_progress(self, user_id: str, item_id: str) -> UserProgress | None:
        ...

    async def upsert_user_progress(self, record: UserProgress) -> None:
        """Insert or replace the record keyed by (user_id, item_id)."""
        ...

    async def list_user_progress(self, user_id: str) -> list[UserProgress]:
        ...

    async def get_due_items(self, user_id: str, before_timestamp: int) -> list[UserProgress]:
        """Records with ``due_at <= before_timestamp``."""
        ...

    async def log_attempt(self, attempt: Attempt) -> None:
        ...

    async def get_attempts(self, user_id: str) -> list[Attempt]:
        """Attempts for a user, oldest first."""
        ...


# =============================================================================
# Bandit State
# =============================================================================


@runtime_checkable
class BanditStateRepository(Protocol):
    """Protocol for per-user exercise-type bandit persistence."""

    async def load_bandit(self, user_id: str) -> BanditHistory | None:
        ...

    async def save_bandit(self, user_id: str, history: BanditHistory) -> None:
        ...
