"""
Domain records shared by the scheduler and its collaborators.

Content (modules, lessons, items) is owned by the content repository,
progress and attempts by the progress repository. Every record converts
to and from plain JSON-compatible dicts so any persistence layer can
store it without custom encoders.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ExerciseType(str, Enum):
    """Exercise formats an item can be presented in."""

    MCQ = "mcq"
    ORDER = "order"
    SHORT = "short"


@dataclass
class ReviewState:
    """
    Spaced repetition state for one (user, item) pair.

    Attributes:
        mastery: Estimated retention, 0-1
        stability: Interval growth multiplier, >= 0.1
        due_at: Epoch milliseconds when the item becomes eligible again
    """

    mastery: float
    stability: float
    due_at: int

    def to_dict(self) -> dict:
        return asdict(self)


# Declaration order matters: bandit ties resolve to the first entry.
EXERCISE_TYPES: tuple[ExerciseType, ...] = (
    ExerciseType.MCQ,
    ExerciseType.ORDER,
    ExerciseType.SHORT,
)


@dataclass
class Module:
    """A unit of the curriculum (chapter module or spirit module)."""

    id: str
    title: str
    chapter_index: int = 0
    description: str = ""
    prerequisite_ids: list[str] = field(default_factory=list)
    lesson_ids: list[str] = field(default_factory=list)
    estimated_minutes: int = 0
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> Module:
        return cls(
            id=data["id"],
            title=data.get("title", data["id"]),
            chapter_index=int(data.get("chapter_index", 0)),
            description=data.get("description", ""),
            prerequisite_ids=list(data.get("prerequisite_ids", [])),
            lesson_ids=list(data.get("lesson_ids", [])),
            estimated_minutes=int(data.get("estimated_minutes", 0)),
            tags=list(data.get("tags", [])),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Lesson:
    """A group of items inside a module."""

    id: str
    module_id: str
    title: str
    types: list[ExerciseType] = field(default_factory=list)
    item_ids: list[str] = field(default_factory=list)
    estimated_minutes: int = 0
    prereqs: list[str] = field(default_factory=list)
    xp_reward: int = 0
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> Lesson:
        return cls(
            id=data["id"],
            module_id=data["module_id"],
            title=data.get("title", data["id"]),
            types=[ExerciseType(t) for t in data.get("types", [])],
            item_ids=list(data.get("item_ids", [])),
            estimated_minutes=int(data.get("estimated_minutes", 0)),
            prereqs=list(data.get("prereqs", [])),
            xp_reward=int(data.get("xp_reward", 0)),
            tags=list(data.get("tags", [])),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["types"] = [t.value for t in self.types]
        return data


@dataclass
class Item:
    """
    A single exercise.

    Only ``id``, ``type`` and ``difficulty`` matter to the scheduler; the
    remaining fields carry the content needed to grade a response.
    """

    id: str
    type: ExerciseType
    prompt: str = ""
    difficulty: float = 0.5
    tags: list[str] = field(default_factory=list)

    # mcq
    options: list[str] = field(default_factory=list)
    answer_index: int | None = None

    # order
    order_target: list[str] = field(default_factory=list)

    # short
    answer_text: str | None = None
    acceptable_answers: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> Item:
        return cls(
            id=data["id"],
            type=ExerciseType(data["type"]),
            prompt=data.get("prompt", ""),
            difficulty=float(data.get("difficulty", 0.5)),
            tags=list(data.get("tags", [])),
            options=list(data.get("options", [])),
            answer_index=data.get("answer_index"),
            order_target=list(data.get("order_target", [])),
            answer_text=data.get("answer_text"),
            acceptable_answers=list(data.get("acceptable_answers", [])),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["type"] = self.type.value
        return data

    def check_answer(self, response: Any) -> bool:
        """
        Grade a learner response for this item's exercise type.

        Args:
            response: Selected option index (mcq), ordered list of
                entries (order), or free text (short)

        Returns:
            True if the response is correct
        """
        if self.type == ExerciseType.MCQ:
            if self.answer_index is None or isinstance(response, bool):
                return False
            try:
                return int(response) == self.answer_index
            except (TypeError, ValueError):
                return False

        if self.type == ExerciseType.ORDER:
            if not isinstance(response, (list, tuple)):
                return False
            return [_normalize(r) for r in response] == [_normalize(t) for t in self.order_target]

        # Short answer: compare normalized text against every accepted form
        if not isinstance(response, str):
            return False
        accepted = [a for a in [self.answer_text, *self.acceptable_answers] if a]
        return _normalize(response) in {_normalize(a) for a in accepted}


@dataclass
class UserProgress:
    """Per (user, item) learning record maintained by the progress repository."""

    user_id: str
    item_id: str
    lesson_id: str | None = None
    mastery: float = 0.5
    stability: float = 1.0
    due_at: int = 0
    streak: int = 0
    last_result: str | None = None  # 'pass' or 'fail'
    review_count: int = 0
    lapse_count: int = 0
    last_reviewed: int | None = None
    skill_level: float | None = None

    @property
    def review_state(self) -> ReviewState:
        return ReviewState(mastery=self.mastery, stability=self.stability, due_at=self.due_at)

    @classmethod
    def from_dict(cls, data: dict) -> UserProgress:
        return cls(**data)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Attempt:
    """A single answered exercise."""

    id: str
    user_id: str
    item_id: str
    correct: bool
    ms_to_answer: int
    timestamp: int
    exercise_type: ExerciseType

    @classmethod
    def from_dict(cls, data: dict) -> Attempt:
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            item_id=data["item_id"],
            correct=bool(data["correct"]),
            ms_to_answer=int(data["ms_to_answer"]),
            timestamp=int(data["timestamp"]),
            exercise_type=ExerciseType(data["exercise_type"]),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["exercise_type"] = self.exercise_type.value
        return data


def _normalize(text: Any) -> str:
    return " ".join(str(text).strip().lower().split())
