"""
MixMind adaptive learning scheduler.

Spaced repetition, logistic-ELO difficulty adaptation, interleaved session
planning and an epsilon-greedy exercise-type bandit, orchestrated by
SessionScheduler over pluggable content, progress and bandit repositories.
"""

__version__ = "0.1.0"
