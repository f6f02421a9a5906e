"""Local-first personal growth tracker with optional remote sync."""

from .auth import LocalSessionProvider, resolve_initial_session
from .growth_data import GrowthDataManager, LoadState
from .local_store import LocalStore
from .migration import MigrationOutcome, migrate_local_data
from .models import Achievement, Goal, GrowthData, Skill, UserProfile
from .remote import RemoteStoreClient, Result
from .sync import GrowthSync

__all__ = [
    "Achievement",
    "Goal",
    "GrowthData",
    "GrowthDataManager",
    "GrowthSync",
    "LoadState",
    "LocalSessionProvider",
    "LocalStore",
    "MigrationOutcome",
    "RemoteStoreClient",
    "Result",
    "Skill",
    "UserProfile",
    "migrate_local_data",
    "resolve_initial_session",
]
