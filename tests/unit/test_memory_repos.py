"""
Unit tests for the content catalog and in-memory repositories.
"""

import json

import pytest

from mixmind.domain import Attempt, ExerciseType, UserProgress
from mixmind.learning.bandit import initialize_bandit, update_bandit
from mixmind.repos.catalog import CatalogError, load_catalog
from mixmind.repos.interfaces import BanditStateRepository, ContentRepository, ProgressRepository
from mixmind.repos.memory import (
    MemoryBanditRepository,
    MemoryContentRepository,
    MemoryProgressRepository,
)


class TestCatalog:
    """Tests for JSON catalog loading."""

    def test_bundled_seed_catalog(self):
        catalog = load_catalog()

        assert {"ch1-intro", "ch2-tools-terms", "gin-101", "rum-101"} <= set(catalog.modules)
        assert catalog.modules["ch1-intro"].lesson_ids == ["lesson-glassware", "lesson-shake-stir"]
        assert catalog.items["item-glass-order"].type == ExerciseType.ORDER

    def test_every_seed_lesson_item_exists(self):
        catalog = load_catalog()

        for lesson in catalog.lessons.values():
            for item_id in lesson.item_ids:
                assert item_id in catalog.items

    def test_load_from_path(self, tmp_path, sample_catalog):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(sample_catalog.to_dict()), encoding="utf-8")

        catalog = load_catalog(path)

        assert catalog.items["short-1"].acceptable_answers == ["margarita"]
        assert catalog.modules["mod-1"].lesson_ids == ["lesson-a", "lesson-b"]

    def test_invalid_json_rejected(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_invalid_entry_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"items": [{"id": "x", "type": "essay"}]}), encoding="utf-8")

        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog(tmp_path / "missing.json")


class TestMemoryContentRepository:
    """Tests for catalog-backed content lookups."""

    @pytest.fixture
    def content(self, sample_catalog):
        return MemoryContentRepository(sample_catalog)

    def test_satisfies_protocol(self, content):
        assert isinstance(content, ContentRepository)

    @pytest.mark.asyncio
    async def test_get_module_and_missing(self, content):
        assert (await content.get_module("mod-1")).title == "Module One"
        assert await content.get_module("nope") is None

    @pytest.mark.asyncio
    async def test_list_modules_by_chapter_index(self, content):
        modules = await content.list_modules()

        assert [m.id for m in modules] == ["mod-1", "mod-2", "mod-empty"]

    @pytest.mark.asyncio
    async def test_modules_by_chapter(self, content):
        modules = await content.get_modules_by_chapter(2)

        assert [m.id for m in modules] == ["mod-2"]

    @pytest.mark.asyncio
    async def test_items_for_lesson_in_lesson_order(self, content):
        items = await content.get_items_for_lesson("lesson-a")

        assert [i.id for i in items] == ["mcq-1", "mcq-2", "mcq-3"]
        assert await content.get_items_for_lesson("missing") == []

    @pytest.mark.asyncio
    async def test_lessons_for_module(self, content):
        lessons = await content.get_lessons_for_module("mod-2")

        assert [lesson.id for lesson in lessons] == ["lesson-c"]

    @pytest.mark.asyncio
    async def test_update_item_difficulty(self, content):
        await content.update_item_difficulty("mcq-2", 0.42)

        assert (await content.get_item("mcq-2")).difficulty == 0.42
        items = await content.get_items_for_lesson("lesson-a")
        assert [i.difficulty for i in items] == [0.2, 0.42, 0.8]

    @pytest.mark.asyncio
    async def test_update_unknown_item_difficulty(self, content):
        with pytest.raises(LookupError):
            await content.update_item_difficulty("nope", 0.5)

    @pytest.mark.asyncio
    async def test_default_catalog_is_seed(self):
        content = MemoryContentRepository()

        assert await content.get_item("item-gin-def") is not None


class TestMemoryProgressRepository:
    """Tests for in-memory progress tracking."""

    @pytest.fixture
    def progress(self):
        return MemoryProgressRepository()

    def test_satisfies_protocol(self, progress):
        assert isinstance(progress, ProgressRepository)

    @pytest.mark.asyncio
    async def test_upsert_replaces_by_user_and_item(self, progress):
        await progress.upsert_user_progress(UserProgress(user_id="u1", item_id="i1", mastery=0.4))
        await progress.upsert_user_progress(UserProgress(user_id="u1", item_id="i1", mastery=0.6))
        await progress.upsert_user_progress(UserProgress(user_id="u2", item_id="i1", mastery=0.1))

        assert (await progress.get_user_progress("u1", "i1")).mastery == 0.6
        assert len(await progress.list_user_progress("u1")) == 1

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, progress):
        await progress.upsert_user_progress(UserProgress(user_id="u1", item_id="i1", mastery=0.4))

        record = await progress.get_user_progress("u1", "i1")
        record.mastery = 0.99

        assert (await progress.get_user_progress("u1", "i1")).mastery == 0.4

    @pytest.mark.asyncio
    async def test_due_items_filtered_by_user_and_time(self, progress):
        await progress.upsert_user_progress(UserProgress(user_id="u1", item_id="due", due_at=100))
        await progress.upsert_user_progress(UserProgress(user_id="u1", item_id="edge", due_at=200))
        await progress.upsert_user_progress(UserProgress(user_id="u1", item_id="later", due_at=300))
        await progress.upsert_user_progress(UserProgress(user_id="u2", item_id="other", due_at=100))

        due = await progress.get_due_items("u1", 200)

        assert {p.item_id for p in due} == {"due", "edge"}

    @pytest.mark.asyncio
    async def test_attempts_oldest_first(self, progress):
        for i, ts in enumerate([300, 100, 200]):
            await progress.log_attempt(
                Attempt(
                    id=f"a{i}",
                    user_id="u1",
                    item_id="i1",
                    correct=True,
                    ms_to_answer=1000,
                    timestamp=ts,
                    exercise_type=ExerciseType.MCQ,
                )
            )

        attempts = await progress.get_attempts("u1")

        assert [a.timestamp for a in attempts] == [100, 200, 300]
        assert await progress.get_attempts("u2") == []

    @pytest.mark.asyncio
    async def test_clear(self, progress):
        await progress.upsert_user_progress(UserProgress(user_id="u1", item_id="i1"))

        progress.clear()

        assert await progress.list_user_progress("u1") == []


class TestMemoryBanditRepository:
    """Tests for in-memory bandit persistence."""

    def test_satisfies_protocol(self):
        assert isinstance(MemoryBanditRepository(), BanditStateRepository)

    @pytest.mark.asyncio
    async def test_unknown_user_has_no_bandit(self):
        assert await MemoryBanditRepository().load_bandit("u1") is None

    @pytest.mark.asyncio
    async def test_save_and_load(self):
        repo = MemoryBanditRepository()
        history = update_bandit(initialize_bandit(0.2), ExerciseType.ORDER, 1.0)

        await repo.save_bandit("u1", history)

        assert await repo.load_bandit("u1") == history
        assert await repo.load_bandit("u2") is None
