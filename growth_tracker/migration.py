"""One-shot copy of the local snapshot into an empty remote account."""

from __future__ import annotations

import logging
from enum import Enum

from .growth_data import GrowthDataManager
from .models import GrowthData
from .remote import RemoteStoreClient
from .schemas import (
    achievement_to_insert,
    goal_to_insert,
    profile_to_upsert,
    skill_to_insert,
)
from .telemetry import emit_event

logger = logging.getLogger(__name__)


class MigrationOutcome(str, Enum):
    SKIPPED_NO_LOCAL = "skipped_no_local"
    SKIPPED_REMOTE_POPULATED = "skipped_remote_populated"
    MIGRATED = "migrated"
    FAILED = "failed"


class MigrationError(RuntimeError):
    def __init__(self, step: str, error: str) -> None:
        super().__init__(f"{step}: {error}")
        self.step = step
        self.error = error


async def _copy_snapshot(remote: RemoteStoreClient, data: GrowthData, user_id: str) -> int:
    result = await remote.profiles.upsert(profile_to_upsert(user_id, data.profile, include_created_at=True))
    if not result.ok:
        raise MigrationError("profile", result.error or "unknown error")

    # Skills go last: the skills probe only sees a populated account once every
    # earlier step has landed.
    steps = (
        ("goals", remote.goals, [goal_to_insert(user_id, goal) for goal in data.goals]),
        (
            "achievements",
            remote.achievements,
            [achievement_to_insert(user_id, achievement) for achievement in data.achievements],
        ),
        ("skills", remote.skills, [skill_to_insert(user_id, skill) for skill in data.skills]),
    )
    copied = 0
    for step, repository, payloads in steps:
        batch = await repository.create_many(payloads)  # type: ignore[attr-defined]
        if not batch.ok:
            raise MigrationError(step, batch.error or "unknown error")
        copied += len(payloads)
    return copied


async def migrate_local_data(manager: GrowthDataManager, user_id: str) -> MigrationOutcome:
    """Copy local data to ``user_id``'s remote account when that account is empty.

    Canonical state is always reloaded from the remote store afterwards,
    whatever the outcome.
    """
    remote = manager.remote
    snapshot = manager.local_store.load_growth_data()
    outcome = MigrationOutcome.SKIPPED_NO_LOCAL
    try:
        if remote is None:
            logger.warning("No remote store configured; skipping migration for %s", user_id)
        elif snapshot is None:
            logger.info("No local growth data to migrate for %s", user_id)
        else:
            probe = await remote.skills.list(user_id, limit=1)
            if not probe.ok:
                raise MigrationError("probe", probe.error or "unknown error")
            if probe.data:
                outcome = MigrationOutcome.SKIPPED_REMOTE_POPULATED
                logger.info("Remote account %s already has data; skipping migration", user_id)
            else:
                copied = await _copy_snapshot(remote, snapshot, user_id)
                outcome = MigrationOutcome.MIGRATED
                logger.info("Migrated %d local records for %s", copied, user_id)
                emit_event("migration_completed", user_id=user_id, records=copied)
    except MigrationError as exc:
        outcome = MigrationOutcome.FAILED
        logger.error("Migration for %s failed at %s: %s", user_id, exc.step, exc.error)
        emit_event("migration_failed", user_id=user_id, step=exc.step, error=exc.error)

    await manager.mount(user_id)
    return outcome


__all__ = ["MigrationError", "MigrationOutcome", "migrate_local_data"]
