"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from mixmind.domain import ExerciseType, Item, Lesson, Module, UserProgress  # noqa: E402
from mixmind.repos.catalog import ContentCatalog  # noqa: E402

# Fixed reference time: 2024-01-01T00:00:00Z
NOW = 1_704_067_200_000


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Frozen planning time in epoch milliseconds."""
    return NOW


@pytest.fixture
def rng():
    """Seeded random source for reproducible draws."""
    return random.Random(1234)


def _make_item(item_id: str, difficulty: float = 0.5, type: ExerciseType = ExerciseType.MCQ) -> Item:
    """Build a minimal item for scheduling tests."""
    return Item(id=item_id, type=type, prompt=f"Prompt for {item_id}", difficulty=difficulty)


def _make_progress(user_id: str, item_id: str, due_at: int, mastery: float = 0.5) -> UserProgress:
    """Build a progress record with the given due time."""
    return UserProgress(user_id=user_id, item_id=item_id, mastery=mastery, due_at=due_at, review_count=1)


@pytest.fixture
def item_factory():
    """Factory for minimal items: item_factory(id, difficulty=0.5, type=MCQ)."""
    return _make_item


@pytest.fixture
def progress_factory():
    """Factory for progress records: progress_factory(user, item, due_at, mastery=0.5)."""
    return _make_progress


@pytest.fixture
def sample_mcq():
    """Provide a sample multiple choice item."""
    return Item(
        id="item-glass-1",
        type=ExerciseType.MCQ,
        prompt="Which glass is traditionally used for a Martini?",
        options=["Highball", "Coupe", "Collins", "Old Fashioned"],
        answer_index=1,
        difficulty=0.3,
    )


@pytest.fixture
def sample_catalog():
    """
    Small catalog with one module of two lessons.

    lesson-a holds three mcq items, lesson-b one order and one short item.
    A second module declares no lesson ids and is resolved by lesson parent.
    """
    items = [
        _make_item("mcq-1", 0.2),
        _make_item("mcq-2", 0.5),
        _make_item("mcq-3", 0.8),
        Item(
            id="order-1",
            type=ExerciseType.ORDER,
            difficulty=0.4,
            order_target=["Shot glass", "Coupe", "Highball"],
        ),
        Item(
            id="short-1",
            type=ExerciseType.SHORT,
            difficulty=0.6,
            answer_text="whiskey sour",
            acceptable_answers=["margarita"],
        ),
        _make_item("orphan-1", 0.5),
    ]
    lessons = [
        Lesson(id="lesson-a", module_id="mod-1", title="A", item_ids=["mcq-1", "mcq-2", "mcq-3"]),
        Lesson(id="lesson-b", module_id="mod-1", title="B", item_ids=["order-1", "short-1"]),
        Lesson(id="lesson-c", module_id="mod-2", title="C", item_ids=["orphan-1"]),
    ]
    modules = [
        Module(id="mod-1", title="Module One", chapter_index=1, lesson_ids=["lesson-a", "lesson-b"]),
        Module(id="mod-2", title="Module Two", chapter_index=2),
        Module(id="mod-empty", title="Empty", chapter_index=3),
    ]
    return ContentCatalog(
        modules={m.id: m for m in modules},
        lessons={lesson.id: lesson for lesson in lessons},
        items={i.id: i for i in items},
    )
