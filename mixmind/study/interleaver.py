"""
Adaptive Interleaver for practice sessions.

Builds one session out of three pools:
- Current: new items from the module being studied (70% by default)
- Review: items that fell due within the last week (20%)
- Older: items that fell due one to two weeks ago (10%)

New items are sampled at evenly spaced difficulty positions so a session
spans the difficulty range. Review items are taken most-urgent first.
The final order is a weighted random draw across the three selections so
reviews are mixed through the session instead of blocked at one end.

Ratios shift with recent performance: struggling learners get more
reinforcement, excelling learners more new material.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field

from loguru import logger

from mixmind.domain import Item, UserProgress
from mixmind.learning.spaced_repetition import get_urgency_score, now_ms

MINUTES_PER_ITEM = 1.2

STRUGGLING_RATE = 0.6
EXCELLING_RATE = 0.9


@dataclass(frozen=True)
class InterleavingTarget:
    """Share of the session given to each pool."""
    current: float = 0.7
    review: float = 0.2
    older: float = 0.1


DEFAULT_TARGET = InterleavingTarget()
STRUGGLING_TARGET = InterleavingTarget(current=0.5, review=0.4, older=0.1)
EXCELLING_TARGET = InterleavingTarget(current=0.8, review=0.15, older=0.05)


@dataclass(frozen=True)
class ReviewCandidate:
    """A due item paired with the learner's progress on it."""
    item: Item
    progress: UserProgress


@dataclass
class PlanMix:
    """Items actually selected per pool."""
    current: int = 0
    review: int = 0
    older: int = 0

    @property
    def total(self) -> int:
        return self.current + self.review + self.older


@dataclass
class InterleavingPlan:
    """Ordered items for one session."""
    items: list[Item] = field(default_factory=list)
    mix: PlanMix = field(default_factory=PlanMix)
    estimated_minutes: float = 0.0


def plan_interleaving(
    due_items: list[ReviewCandidate],
    new_items: list[Item],
    older_items: list[ReviewCandidate],
    target_minutes: float = 5,
    target: InterleavingTarget = DEFAULT_TARGET,
    now: int | None = None,
    rng: random.Random | None = None,
) -> InterleavingPlan:
    """
    Plan an interleaved session mixing new and review content.

    Args:
        due_items: Recently due review candidates
        new_items: Unseen items from the current module
        older_items: Review candidates that have been due for longer
        target_minutes: Target session length
        target: Mixing ratios
        now: Reference time for urgency (epoch ms)
        rng: Random source for the final ordering

    Returns:
        InterleavingPlan with the actual per-pool counts
    """
    if now is None:
        now = now_ms()

    target_count = _round_half_up(target_minutes / MINUTES_PER_ITEM)

    # Rounded independently; totals come from what was actually selected
    target_current = _round_half_up(target_count * target.current)
    target_review = _round_half_up(target_count * target.review)
    target_older = _round_half_up(target_count * target.older)

    selected_current = _select_varied(new_items, target_current)
    selected_review = _select_most_urgent(due_items, target_review, now)
    selected_older = _select_most_urgent(older_items, target_older, now)

    ordered = _interleave(
        [
            (selected_current, target.current),
            ([c.item for c in selected_review], target.review),
            ([c.item for c in selected_older], target.older),
        ],
        rng,
    )

    mix = PlanMix(
        current=len(selected_current),
        review=len(selected_review),
        older=len(selected_older),
    )

    logger.debug(
        f"Interleaved {len(ordered)} items (target {target_count}): "
        f"{mix.current} current, {mix.review} review, {mix.older} older"
    )

    return InterleavingPlan(
        items=ordered,
        mix=mix,
        estimated_minutes=len(ordered) * MINUTES_PER_ITEM,
    )


def adapt_interleaving(
    recent_correct_rate: float,
    default_target: InterleavingTarget = DEFAULT_TARGET,
) -> InterleavingTarget:
    """
    Adjust mixing ratios to recent performance.

    Below 60% success the session leans on review; above 90% it leans on
    new content; otherwise the default target is kept.
    """
    if recent_correct_rate < STRUGGLING_RATE:
        return STRUGGLING_TARGET
    if recent_correct_rate > EXCELLING_RATE:
        return EXCELLING_TARGET
    return default_target


def review_urgency(progress: UserProgress, now: int) -> float:
    """Hours overdue weighted by how poorly the item is retained."""
    return get_urgency_score(progress.review_state, now)


class AdaptiveInterleaver:
    """
    Session planner with a configurable target and random source.

    The scheduler owns one instance; tests pass a seeded Random to make the
    final ordering reproducible.
    """

    def __init__(
        self,
        target: InterleavingTarget | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize interleaver.

        Args:
            target: Default mixing ratios (DEFAULT_TARGET if None)
            rng: Random source for ordering (module-level random if None)
        """
        self.target = target or DEFAULT_TARGET
        self.rng = rng

    def target_for(self, recent_correct_rate: float | None) -> InterleavingTarget:
        """Mixing ratios for a learner, adapted when a recent rate is known."""
        if recent_correct_rate is None:
            return self.target
        return adapt_interleaving(recent_correct_rate, self.target)

    def plan(
        self,
        due_items: list[ReviewCandidate],
        new_items: list[Item],
        older_items: list[ReviewCandidate],
        target_minutes: float = 5,
        now: int | None = None,
        recent_correct_rate: float | None = None,
    ) -> InterleavingPlan:
        """Plan a session using this interleaver's target and random source."""
        return plan_interleaving(
            due_items,
            new_items,
            older_items,
            target_minutes=target_minutes,
            target=self.target_for(recent_correct_rate),
            now=now,
            rng=self.rng,
        )

    @staticmethod
    def summarize(plan: InterleavingPlan) -> dict:
        """
        Get summary of a planned session.

        Args:
            plan: InterleavingPlan to summarize

        Returns:
            Dictionary with session stats
        """
        reviews = plan.mix.review + plan.mix.older
        return {
            "total_items": len(plan.items),
            "current_items": plan.mix.current,
            "review_items": plan.mix.review,
            "older_items": plan.mix.older,
            "estimated_minutes": round(plan.estimated_minutes, 1),
            "review_ratio": reviews / len(plan.items) if plan.items else 0.0,
        }


def _select_varied(items: list[Item], count: int) -> list[Item]:
    """Pick items at evenly spaced positions of the difficulty ordering."""
    if count <= 0:
        return []
    if len(items) <= count:
        return list(items)

    ordered = sorted(items, key=lambda it: it.difficulty)
    step = len(ordered) / count
    return [ordered[math.floor(i * step)] for i in range(count)]


def _select_most_urgent(
    candidates: list[ReviewCandidate],
    count: int,
    now: int,
) -> list[ReviewCandidate]:
    if count <= 0:
        return []
    if len(candidates) <= count:
        return list(candidates)

    ranked = sorted(candidates, key=lambda c: review_urgency(c.progress, now), reverse=True)
    return ranked[:count]


def _interleave(
    categories: list[tuple[list[Item], float]],
    rng: random.Random | None,
) -> list[Item]:
    """Weighted random draw without replacement across categories."""
    source = rng if rng is not None else random
    queues = [(list(items), weight) for items, weight in categories]
    result: list[Item] = []

    while True:
        available = [(items, weight) for items, weight in queues if items]
        if not available:
            break

        total_weight = sum(weight for _, weight in available)
        chosen = available[-1][0]
        if total_weight > 0:
            pick = source.random() * total_weight
            cumulative = 0.0
            for items, weight in available:
                cumulative += weight
                if pick < cumulative:
                    chosen = items
                    break
        else:
            chosen = available[0][0]

        result.append(chosen.pop(0))

    return result


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
