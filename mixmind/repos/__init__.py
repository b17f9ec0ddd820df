"""
Repositories for content, learner progress and bandit state.

Provides:
- Async collaborator protocols consumed by the scheduler
- In-memory implementations backed by a JSON content catalog
"""

from mixmind.repos.catalog import CatalogError, ContentCatalog, load_catalog
from mixmind.repos.interfaces import (
    BanditStateRepository,
    ContentRepository,
    ProgressRepository,
)
from mixmind.repos.memory import (
    MemoryBanditRepository,
    MemoryContentRepository,
    MemoryProgressRepository,
)

__all__ = [
    "BanditStateRepository",
    "CatalogError",
    "ContentCatalog",
    "ContentRepository",
    "MemoryBanditRepository",
    "MemoryContentRepository",
    "MemoryProgressRepository",
    "ProgressRepository",
    "load_catalog",
]
