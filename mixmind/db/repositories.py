"""
SQL-backed progress, bandit and content repositories.

Each call runs in its own transactional session_scope, so a repository can
be shared by concurrent tasks as long as each task awaits its own calls.
"""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mixmind.domain import Attempt, Item, Lesson, Module, UserProgress
from mixmind.learning.bandit import BanditHistory
from mixmind.repos.interfaces import ContentRepository

from .database import session_scope
from .models import AttemptRecord, BanditStateRecord, ItemDifficultyRecord, UserProgressRecord


class SqlProgressRepository:
    """ProgressRepository over the user_progress and attempts tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        """
        Args:
            session_factory: Session factory (configured database if None)
        """
        self.session_factory = session_factory

    async def get_user_progress(self, user_id: str, item_id: str) -> UserProgress | None:
        async with session_scope(self.session_factory) as session:
            record = await session.scalar(
                select(UserProgressRecord).where(
                    UserProgressRecord.user_id == user_id,
                    UserProgressRecord.item_id == item_id,
                )
            )
            return record.to_domain() if record is not None else None

    async def upsert_user_progress(self, record: UserProgress) -> None:
        async with session_scope(self.session_factory) as session:
            existing = await session.scalar(
                select(UserProgressRecord).where(
                    UserProgressRecord.user_id == record.user_id,
                    UserProgressRecord.item_id == record.item_id,
                )
            )
            if existing is None:
                existing = UserProgressRecord(user_id=record.user_id, item_id=record.item_id)
                session.add(existing)
            existing.apply(record)

    async def list_user_progress(self, user_id: str) -> list[UserProgress]:
        async with session_scope(self.session_factory) as session:
            result = await session.scalars(
                select(UserProgressRecord)
                .where(UserProgressRecord.user_id == user_id)
                .order_by(UserProgressRecord.id)
            )
            return [r.to_domain() for r in result]

    async def get_due_items(self, user_id: str, before_timestamp: int) -> list[UserProgress]:
        async with session_scope(self.session_factory) as session:
            result = await session.scalars(
                select(UserProgressRecord)
                .where(
                    UserProgressRecord.user_id == user_id,
                    UserProgressRecord.due_at <= before_timestamp,
                )
                .order_by(UserProgressRecord.due_at)
            )
            return [r.to_domain() for r in result]

    async def log_attempt(self, attempt: Attempt) -> None:
        async with session_scope(self.session_factory) as session:
            session.add(AttemptRecord.from_domain(attempt))

    async def get_attempts(self, user_id: str) -> list[Attempt]:
        async with session_scope(self.session_factory) as session:
            result = await session.scalars(
                select(AttemptRecord)
                .where(AttemptRecord.user_id == user_id)
                .order_by(AttemptRecord.timestamp)
            )
            return [r.to_domain() for r in result]


class SqlBanditRepository:
    """BanditStateRepository over the bandit_state table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self.session_factory = session_factory

    async def load_bandit(self, user_id: str) -> BanditHistory | None:
        async with session_scope(self.session_factory) as session:
            record = await session.get(BanditStateRecord, user_id)
            return record.to_domain() if record is not None else None

    async def save_bandit(self, user_id: str, history: BanditHistory) -> None:
        async with session_scope(self.session_factory) as session:
            record = await session.get(BanditStateRecord, user_id)
            if record is None:
                record = BanditStateRecord(user_id=user_id)
                session.add(record)
            # Reassign rather than mutate so the JSON column is flagged dirty
            record.state = history.to_dict()
            record.total_attempts = history.total_attempts


class SqlContentRepository:
    """
    ContentRepository over a catalog with difficulties kept in the database.

    Curriculum lookups go to the wrapped catalog repository. Items are
    returned with any difficulty recorded in the item_difficulty table, and
    difficulty updates are written there, so recalibration outlives the
    process.
    """

    def __init__(
        self,
        catalog: ContentRepository,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        """
        Args:
            catalog: Read-only curriculum source
            session_factory: Session factory (configured database if None)
        """
        self.catalog = catalog
        self.session_factory = session_factory

    async def get_module(self, module_id: str) -> Module | None:
        return await self.catalog.get_module(module_id)

    async def list_modules(self) -> list[Module]:
        return await self.catalog.list_modules()

    async def get_modules_by_chapter(self, chapter_index: int) -> list[Module]:
        return await self.catalog.get_modules_by_chapter(chapter_index)

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        return await self.catalog.get_lesson(lesson_id)

    async def get_lessons_for_module(self, module_id: str) -> list[Lesson]:
        return await self.catalog.get_lessons_for_module(module_id)

    async def get_items_for_lesson(self, lesson_id: str) -> list[Item]:
        return await self._with_difficulties(await self.catalog.get_items_for_lesson(lesson_id))

    async def get_item(self, item_id: str) -> Item | None:
        item = await self.catalog.get_item(item_id)
        if item is None:
            return None
        (item,) = await self._with_difficulties([item])
        return item

    async def update_item_difficulty(self, item_id: str, difficulty: float) -> None:
        if await self.catalog.get_item(item_id) is None:
            raise LookupError(f"Unknown item: {item_id}")

        async with session_scope(self.session_factory) as session:
            record = await session.get(ItemDifficultyRecord, item_id)
            if record is None:
                record = ItemDifficultyRecord(item_id=item_id)
                session.add(record)
            record.difficulty = difficulty

    async def _with_difficulties(self, items: list[Item]) -> list[Item]:
        if not items:
            return items

        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(ItemDifficultyRecord.item_id, ItemDifficultyRecord.difficulty).where(
                    ItemDifficultyRecord.item_id.in_([item.id for item in items])
                )
            )
            overrides = {item_id: difficulty for item_id, difficulty in result.all()}

        return [replace(item, difficulty=overrides[item.id]) if item.id in overrides else item for item in items]
