"""
Session planning for MixMind practice.

Provides:
- Interleaved session planning across new and review content
- The scheduler that ties spaced repetition, the bandit and interleaving together
- Attempt recording for the layer that presents exercises
"""

from mixmind.study.interleaver import (
    DEFAULT_TARGET,
    AdaptiveInterleaver,
    InterleavingPlan,
    InterleavingTarget,
    PlanMix,
    ReviewCandidate,
    adapt_interleaving,
    plan_interleaving,
)
from mixmind.study.practice_service import AttemptOutcome, PracticeService
from mixmind.study.scheduler import (
    SchedulerConfig,
    SessionAnalysis,
    SessionPlan,
    SessionScheduler,
    analyze_session_performance,
)

__all__ = [
    "AdaptiveInterleaver",
    "AttemptOutcome",
    "DEFAULT_TARGET",
    "InterleavingPlan",
    "InterleavingTarget",
    "PlanMix",
    "PracticeService",
    "ReviewCandidate",
    "SchedulerConfig",
    "SessionAnalysis",
    "SessionPlan",
    "SessionScheduler",
    "adapt_interleaving",
    "analyze_session_performance",
    "plan_interleaving",
]
