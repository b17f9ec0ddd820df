# Learner state persistence
from .base import Base
from .database import (
    build_async_engine,
    dispose_engine,
    get_async_engine,
    get_session_factory,
    init_db,
    make_session_factory,
    session_scope,
)
from .models import AttemptRecord, BanditStateRecord, ItemDifficultyRecord, UserProgressRecord
from .repositories import SqlBanditRepository, SqlContentRepository, SqlProgressRepository

__all__ = [
    "AttemptRecord",
    "BanditStateRecord",
    "Base",
    "ItemDifficultyRecord",
    "SqlBanditRepository",
    "SqlContentRepository",
    "SqlProgressRepository",
    "UserProgressRecord",
    "build_async_engine",
    "dispose_engine",
    "get_async_engine",
    "get_session_factory",
    "init_db",
    "make_session_factory",
    "session_scope",
]
