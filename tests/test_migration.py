from __future__ import annotations

import asyncio
from datetime import date

import httpx

from growth_tracker.growth_data import GrowthDataManager
from growth_tracker.local_store import LocalStore
from growth_tracker.migration import MigrationOutcome, migrate_local_data
from growth_tracker.remote import RemoteStoreClient
from growth_tracker.schemas import GoalInsert, SkillInsert

USER = "9b2f7c1e-3d4a-4b5c-8d6e-7f8091a2b3c4"


def _seed_local(local_store: LocalStore) -> GrowthDataManager:
    manager = GrowthDataManager(local_store)
    asyncio.run(manager.mount())
    manager.update_profile(name="Offline Ada", bio="Started offline")
    manager.add_skill("Python", "编程", 70)
    manager.add_skill("Piano", "音乐", 30)
    manager.add_goal("Finish course", date(2024, 12, 1), description="Module 3")
    manager.add_achievement("First PR", date(2024, 2, 2), "技能突破")
    return manager


def test_first_login_copies_local_data(local_store: LocalStore, make_remote) -> None:
    offline = _seed_local(local_store)
    local = offline.data

    async def scenario():
        async with make_remote() as remote:
            manager = GrowthDataManager(local_store, remote)
            outcome = await migrate_local_data(manager, USER)
            return outcome, manager

    outcome, manager = asyncio.run(scenario())

    assert outcome is MigrationOutcome.MIGRATED
    assert manager.user_id == USER
    assert manager.data.profile.name == "Offline Ada"
    assert manager.data == local
    assert [g.id for g in manager.data.goals] == [g.id for g in local.goals]
    assert manager.data.goals[0].description == "Module 3"
    assert [a.id for a in manager.data.achievements] == [a.id for a in local.achievements]


def test_populated_account_is_left_alone(local_store: LocalStore, make_remote) -> None:
    _seed_local(local_store)

    async def scenario():
        async with make_remote() as remote:
            await remote.skills.create(SkillInsert(user_id=USER, name="Existing", category="其他", level=5))
            manager = GrowthDataManager(local_store, remote)
            outcome = await migrate_local_data(manager, USER)
            return outcome, manager

    outcome, manager = asyncio.run(scenario())

    assert outcome is MigrationOutcome.SKIPPED_REMOTE_POPULATED
    assert [s.name for s in manager.data.skills] == ["Existing"]
    assert manager.data.goals == []
    assert local_store.load_growth_data() == manager.data


def test_migration_is_idempotent(local_store: LocalStore, make_remote) -> None:
    _seed_local(local_store)

    async def scenario():
        async with make_remote() as remote:
            manager = GrowthDataManager(local_store, remote)
            first = await migrate_local_data(manager, USER)
            second = await migrate_local_data(manager, USER)
            skills = await remote.skills.list(USER)
            return first, second, skills

    first, second, skills = asyncio.run(scenario())

    assert first is MigrationOutcome.MIGRATED
    assert second is MigrationOutcome.SKIPPED_REMOTE_POPULATED
    assert len(skills.data) == 2


def test_interrupted_migration_resumes_without_duplicates(local_store: LocalStore, make_remote) -> None:
    offline = _seed_local(local_store)
    goal = offline.data.goals[0]

    async def scenario():
        async with make_remote() as remote:
            # A previous attempt stored the goals but never reached the skills.
            await remote.goals.create(
                GoalInsert(id=goal.id, user_id=USER, title=goal.title, deadline=goal.deadline)
            )
            manager = GrowthDataManager(local_store, remote)
            outcome = await migrate_local_data(manager, USER)
            goals = await remote.goals.list(USER)
            return outcome, goals

    outcome, goals = asyncio.run(scenario())

    assert outcome is MigrationOutcome.MIGRATED
    assert [row.id for row in goals.data] == [goal.id]


def test_no_local_snapshot_still_reloads(local_store: LocalStore, make_remote) -> None:
    async def scenario():
        async with make_remote() as remote:
            manager = GrowthDataManager(local_store, remote)
            outcome = await migrate_local_data(manager, USER)
            return outcome, manager

    outcome, manager = asyncio.run(scenario())

    assert outcome is MigrationOutcome.SKIPPED_NO_LOCAL
    assert manager.user_id == USER
    assert local_store.load_growth_data() == manager.data


def test_failed_probe_skips_copy_and_reports(local_store: LocalStore, events) -> None:
    _seed_local(local_store)
    writes = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method != "GET":
            writes.append(request)
        return httpx.Response(503, json={"error": "maintenance"})

    async def scenario():
        async with RemoteStoreClient("http://remote.test", transport=httpx.MockTransport(handler)) as remote:
            manager = GrowthDataManager(local_store, remote)
            outcome = await migrate_local_data(manager, USER)
            return outcome, manager

    outcome, manager = asyncio.run(scenario())

    assert outcome is MigrationOutcome.FAILED
    assert writes == []
    assert manager.data.profile.name == "Offline Ada"
    failure = next(event for event in events if event.name == "migration_failed")
    assert failure.payload["step"] == "probe"
    assert "maintenance" in failure.payload["error"]
