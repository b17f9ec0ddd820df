"""
In-memory repositories.

Default collaborators for development, the CLI demo and tests. The content
repository applies difficulty updates to the catalog it was given. Records are
copied on the way in and out so callers cannot mutate stored state.
"""

from __future__ import annotations

from dataclasses import replace

from mixmind.domain import Attempt, Item, Lesson, Module, UserProgress
from mixmind.learning.bandit import BanditHistory
from mixmind.repos.catalog import ContentCatalog, load_catalog


class MemoryContentRepository:
    """Content lookups over a loaded ContentCatalog."""

    def __init__(self, catalog: ContentCatalog | None = None):
        """
        Args:
            catalog: Curriculum to serve (bundled seed catalog if None)
        """
        self.catalog = catalog if catalog is not None else load_catalog()

    async def get_module(self, module_id: str) -> Module | None:
        return self.catalog.modules.get(module_id)

    async def list_modules(self) -> list[Module]:
        return sorted(self.catalog.modules.values(), key=lambda m: m.chapter_index)

    async def get_modules_by_chapter(self, chapter_index: int) -> list[Module]:
        modules = [m for m in self.catalog.modules.values() if m.chapter_index == chapter_index]
        return sorted(modules, key=lambda m: m.title)

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        return self.catalog.lessons.get(lesson_id)

    async def get_lessons_for_module(self, module_id: str) -> list[Lesson]:
        return [lesson for lesson in self.catalog.lessons.values() if lesson.module_id == module_id]

    async def get_items_for_lesson(self, lesson_id: str) -> list[Item]:
        lesson = self.catalog.lessons.get(lesson_id)
        if lesson is None:
            return []
        return [self.catalog.items[iid] for iid in lesson.item_ids if iid in self.catalog.items]

    async def get_item(self, item_id: str) -> Item | None:
        return self.catalog.items.get(item_id)

    async def update_item_difficulty(self, item_id: str, difficulty: float) -> None:
        """Replace the item in the held catalog with its recalibrated difficulty."""
        item = self.catalog.items.get(item_id)
        if item is None:
            raise LookupError(f"Unknown item: {item_id}")
        self.catalog.items[item_id] = replace(item, difficulty=difficulty)


class MemoryProgressRepository:
    """Progress records keyed by (user_id, item_id) plus an append-only attempt log."""

    def __init__(self):
        self._progress: dict[tuple[str, str], UserProgress] = {}
        self._attempts: list[Attempt] = []

    async def get_user_progress(self, user_id: str, item_id: str) -> UserProgress | None:
        record = self._progress.get((user_id, item_id))
        return replace(record) if record is not None else None

    async def upsert_user_progress(self, record: UserProgress) -> None:
        self._progress[(record.user_id, record.item_id)] = replace(record)

    async def list_user_progress(self, user_id: str) -> list[UserProgress]:
        return [replace(p) for (uid, _), p in self._progress.items() if uid == user_id]

    async def get_due_items(self, user_id: str, before_timestamp: int) -> list[UserProgress]:
        return [
            replace(p)
            for (uid, _), p in self._progress.items()
            if uid == user_id and p.due_at <= before_timestamp
        ]

    async def log_attempt(self, attempt: Attempt) -> None:
        self._attempts.append(replace(attempt))

    async def get_attempts(self, user_id: str) -> list[Attempt]:
        attempts = [replace(a) for a in self._attempts if a.user_id == user_id]
        return sorted(attempts, key=lambda a: a.timestamp)

    def clear(self) -> None:
        self._progress.clear()
        self._attempts.clear()


class MemoryBanditRepository:
    """Per-user bandit histories stored in their dict form."""

    def __init__(self):
        self._states: dict[str, dict] = {}

    async def load_bandit(self, user_id: str) -> BanditHistory | None:
        state = self._states.get(user_id)
        return BanditHistory.from_dict(state) if state is not None else None

    async def save_bandit(self, user_id: str, history: BanditHistory) -> None:
        self._states[user_id] = history.to_dict()
