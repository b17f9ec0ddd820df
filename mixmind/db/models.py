"""
Learner State Models.

SQLAlchemy models for everything MixMind persists per learner:
- Spaced repetition progress per (user, item)
- The attempt log
- The exercise-type bandit, stored as its JSON dict form
- Item difficulties recalibrated by attempts

Curriculum content is not stored here; it comes from the content catalog.
Only difficulty overrides for catalog items live in the database.
Timestamps in domain fields are epoch milliseconds (BigInteger).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, Float, Index, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from mixmind.domain import Attempt, ExerciseType, UserProgress
from mixmind.learning.bandit import BanditHistory

from .base import Base


class UserProgressRecord(Base):
    """Review state and counters for one learner on one item."""

    __tablename__ = "user_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    item_id: Mapped[str] = mapped_column(Text, nullable=False)
    lesson_id: Mapped[str | None] = mapped_column(Text)

    # Spaced repetition state
    mastery: Mapped[float] = mapped_column(Float, default=0.5)
    stability: Mapped[float] = mapped_column(Float, default=1.0)
    due_at: Mapped[int] = mapped_column(BigInteger, default=0)

    # Counters
    streak: Mapped[int] = mapped_column(Integer, default=0)
    last_result: Mapped[str | None] = mapped_column(Text)  # 'pass' or 'fail'
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    lapse_count: Mapped[int] = mapped_column(Integer, default=0)
    last_reviewed: Mapped[int | None] = mapped_column(BigInteger)
    skill_level: Mapped[float | None] = mapped_column(Float)

    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_progress_user_item"),
        Index("idx_progress_user_due", "user_id", "due_at"),
    )

    def to_domain(self) -> UserProgress:
        return UserProgress(
            user_id=self.user_id,
            item_id=self.item_id,
            lesson_id=self.lesson_id,
            mastery=self.mastery,
            stability=self.stability,
            due_at=self.due_at,
            streak=self.streak,
            last_result=self.last_result,
            review_count=self.review_count,
            lapse_count=self.lapse_count,
            last_reviewed=self.last_reviewed,
            skill_level=self.skill_level,
        )

    def apply(self, progress: UserProgress) -> None:
        """Copy mutable fields from a domain record."""
        self.lesson_id = progress.lesson_id
        self.mastery = progress.mastery
        self.stability = progress.stability
        self.due_at = progress.due_at
        self.streak = progress.streak
        self.last_result = progress.last_result
        self.review_count = progress.review_count
        self.lapse_count = progress.lapse_count
        self.last_reviewed = progress.last_reviewed
        self.skill_level = progress.skill_level

    def __repr__(self) -> str:
        return f"<UserProgressRecord user={self.user_id} item={self.item_id} mastery={self.mastery}>"


class AttemptRecord(Base):
    """One answered exercise."""

    __tablename__ = "attempts"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    item_id: Mapped[str] = mapped_column(Text, nullable=False)
    correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    ms_to_answer: Mapped[int] = mapped_column(Integer, default=0)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    exercise_type: Mapped[str] = mapped_column(Text, nullable=False)  # 'mcq', 'order', 'short'

    __table_args__ = (Index("idx_attempts_user_time", "user_id", "timestamp"),)

    @classmethod
    def from_domain(cls, attempt: Attempt) -> AttemptRecord:
        return cls(
            id=attempt.id,
            user_id=attempt.user_id,
            item_id=attempt.item_id,
            correct=attempt.correct,
            ms_to_answer=attempt.ms_to_answer,
            timestamp=attempt.timestamp,
            exercise_type=ExerciseType(attempt.exercise_type).value,
        )

    def to_domain(self) -> Attempt:
        return Attempt(
            id=self.id,
            user_id=self.user_id,
            item_id=self.item_id,
            correct=self.correct,
            ms_to_answer=self.ms_to_answer,
            timestamp=self.timestamp,
            exercise_type=ExerciseType(self.exercise_type),
        )

    def __repr__(self) -> str:
        return f"<AttemptRecord user={self.user_id} item={self.item_id} correct={self.correct}>"


class BanditStateRecord(Base):
    """Exercise-type bandit for one learner."""

    __tablename__ = "bandit_state"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    state: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    total_attempts: Mapped[int] = mapped_column(Integer, default=0)

    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    def to_domain(self) -> BanditHistory:
        return BanditHistory.from_dict(self.state)

    def __repr__(self) -> str:
        return f"<BanditStateRecord user={self.user_id} attempts={self.total_attempts}>"


class ItemDifficultyRecord(Base):
    """Recalibrated difficulty overriding an item's catalog value."""

    __tablename__ = "item_difficulty"

    item_id: Mapped[str] = mapped_column(Text, primary_key=True)
    difficulty: Mapped[float] = mapped_column(Float, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<ItemDifficultyRecord item={self.item_id} difficulty={self.difficulty}>"
