"""Growth data manager: canonical in-memory state plus local and remote routing."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Set, Tuple, TypeVar

from pydantic import BaseModel, ValidationError

from .local_store import LocalStore
from .models import (
    SKILL_CATEGORIES,
    Achievement,
    Goal,
    GrowthData,
    GrowthStats,
    Skill,
    UserProfile,
    YearReview,
    compute_stats,
    compute_year_review,
    utcnow,
)
from .reminders import GoalReminder, goal_reminders
from .remote import RemoteStoreClient, Result
from .schemas import (
    achievement_from_row,
    achievement_to_insert,
    achievement_to_update,
    goal_from_row,
    goal_to_insert,
    goal_to_update,
    profile_from_row,
    profile_to_upsert,
    skill_from_row,
    skill_to_insert,
    skill_to_update,
)
from .telemetry import emit_event

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
RemoteCall = Callable[[RemoteStoreClient, str], Awaitable[Result[Any]]]

_SKILL_PROTECTED = frozenset({"id", "created_at", "updated_at"})
_GOAL_PROTECTED = frozenset({"id", "created_at"})
_ACHIEVEMENT_PROTECTED = frozenset({"id"})


class LoadState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


class RemoteLoadError(RuntimeError):
    """Raised internally when any of the parallel remote reads fails."""


def _find(items: Iterable[ModelT], item_id: str) -> Optional[ModelT]:
    for item in items:
        if getattr(item, "id", None) == item_id:
            return item
    return None


def _replace(items: Iterable[ModelT], updated: ModelT) -> List[ModelT]:
    target = getattr(updated, "id")
    return [updated if getattr(item, "id", None) == target else item for item in items]


def _without(items: Iterable[ModelT], item_id: str) -> List[ModelT]:
    return [item for item in items if getattr(item, "id", None) != item_id]


def _merge(current: ModelT, fields: Mapping[str, Any]) -> Optional[ModelT]:
    """Validate ``current`` overlaid with ``fields``; ``None`` when rejected."""
    model_type = type(current)
    unknown = set(fields) - set(model_type.model_fields)
    if unknown:
        logger.warning("Ignoring unknown %s fields: %s", model_type.__name__, sorted(unknown))
    payload = current.model_dump()
    payload.update({key: value for key, value in fields.items() if key not in unknown})
    try:
        return model_type.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Rejected %s update: %s", model_type.__name__, exc)
        return None


def _strip(fields: Mapping[str, Any], protected: Iterable[str]) -> dict[str, Any]:
    blocked = set(protected)
    return {key: value for key, value in fields.items() if key not in blocked}


class GrowthDataManager:
    """Single owner of the canonical :class:`GrowthData`.

    Mutations are synchronous: they replace the in-memory value, rewrite the
    local snapshot and, when a user is signed in, schedule the matching remote
    write on the running event loop without awaiting it. Remote failures are
    logged and reported through telemetry; local state is never rolled back.
    """

    def __init__(self, local_store: LocalStore, remote: Optional[RemoteStoreClient] = None) -> None:
        self._local = local_store
        self._remote = remote
        self._data = GrowthData()
        self._state = LoadState.UNINITIALIZED
        self._user_id: Optional[str] = None
        self._loads_in_flight = 0
        self._pending: Set[asyncio.Task[None]] = set()

    @property
    def data(self) -> GrowthData:
        return self._data

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def is_loading(self) -> bool:
        return self._state is not LoadState.READY

    @property
    def is_syncing(self) -> bool:
        return self._loads_in_flight > 0

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    @property
    def local_store(self) -> LocalStore:
        return self._local

    @property
    def remote(self) -> Optional[RemoteStoreClient]:
        return self._remote

    # Loading

    async def mount(self, user_id: Optional[str] = None) -> GrowthData:
        """Load canonical state for ``user_id`` (or local-only mode when absent)."""
        self._user_id = user_id or None
        self._state = LoadState.LOADING
        if self._user_id and self._remote is not None:
            await self.refresh()
        else:
            if self._user_id:
                logger.warning("No remote store configured; loading local data for %s", self._user_id)
            self._load_local()
        self._state = LoadState.READY
        return self._data

    async def refresh(self) -> bool:
        """Reload from the remote store; fall back to the local cache on failure."""
        user_id = self._user_id
        if not user_id or self._remote is None:
            return False

        self._loads_in_flight += 1
        try:
            data, profile_missing = await self._fetch_remote(user_id)
        except RemoteLoadError as exc:
            logger.warning("Failed to load growth data for %s; using local cache: %s", user_id, exc)
            emit_event("remote_load_failed", user_id=user_id, error=str(exc))
            self._load_local()
            return False
        finally:
            self._loads_in_flight -= 1

        if self._user_id != user_id:
            logger.info("Discarding remote load for %s; active user changed", user_id)
            return False
        self._commit(data)
        if profile_missing:
            await self._remote_write(
                "create_profile",
                "profile",
                user_id,
                lambda remote, uid: remote.profiles.upsert(
                    profile_to_upsert(uid, data.profile, include_created_at=True)
                ),
            )
        return True

    async def _fetch_remote(self, user_id: str) -> Tuple[GrowthData, bool]:
        """Read all four collections; the flag is set when no profile row exists yet."""
        assert self._remote is not None
        remote = self._remote
        profile_res, skills_res, goals_res, achievements_res = await asyncio.gather(
            remote.profiles.get(user_id),
            remote.skills.list(user_id),
            remote.goals.list(user_id),
            remote.achievements.list(user_id),
        )
        errors = [
            f"{name}: {res.error}"
            for name, res in (
                ("profile", profile_res),
                ("skills", skills_res),
                ("goals", goals_res),
                ("achievements", achievements_res),
            )
            if not res.ok
        ]
        if errors:
            raise RemoteLoadError("; ".join(errors))

        try:
            data = GrowthData(
                profile=profile_from_row(profile_res.data) if profile_res.data else UserProfile(),
                skills=[skill_from_row(row) for row in skills_res.data or []],
                goals=[goal_from_row(row) for row in goals_res.data or []],
                achievements=[achievement_from_row(row) for row in achievements_res.data or []],
            )
        except ValidationError as exc:
            raise RemoteLoadError(f"remote rows failed validation: {exc}") from exc
        return data, profile_res.data is None

    def _load_local(self) -> None:
        stored = self._local.load_growth_data()
        if stored is not None:
            self._data = stored

    # Persistence plumbing

    def _commit(self, data: GrowthData) -> None:
        self._data = data
        try:
            self._local.save_growth_data(data)
        except OSError:
            logger.exception("Failed to write local growth data snapshot")

    def _propagate(self, operation: str, entity_id: str, call: RemoteCall) -> None:
        user_id = self._user_id
        if not user_id or self._remote is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; %s for %s stays local", operation, entity_id)
            emit_event("sync_write_skipped", operation=operation, entity_id=entity_id, user_id=user_id)
            return
        task = loop.create_task(self._remote_write(operation, entity_id, user_id, call))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _remote_write(self, operation: str, entity_id: str, user_id: str, call: RemoteCall) -> None:
        assert self._remote is not None
        try:
            result = await call(self._remote, user_id)
            error = result.error
        except Exception as exc:  # noqa: BLE001
            error = f"{type(exc).__name__}: {exc}"
        if error:
            logger.warning("Remote %s for %s failed: %s", operation, entity_id, error)
            emit_event(
                "sync_write_failed",
                operation=operation,
                entity_id=entity_id,
                user_id=user_id,
                error=error,
            )
        else:
            logger.debug("Remote %s for %s succeeded", operation, entity_id)

    async def wait_for_pending(self) -> None:
        """Await every remote write scheduled so far (and any they trigger)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # Profile

    def update_profile(self, **fields: Any) -> Optional[UserProfile]:
        profile = _merge(self._data.profile, _strip(fields, {"created_at"}))
        if profile is None:
            return None
        self._commit(self._data.model_copy(update={"profile": profile}))
        self._propagate(
            "update_profile",
            "profile",
            lambda remote, uid: remote.profiles.upsert(profile_to_upsert(uid, profile)),
        )
        return profile

    # Skills

    def add_skill(self, name: str, category: str = SKILL_CATEGORIES[0], level: int = 0) -> Optional[Skill]:
        now = utcnow()
        try:
            skill = Skill(name=name, category=category, level=level, created_at=now, updated_at=now)
        except ValidationError as exc:
            logger.warning("Ignoring invalid skill: %s", exc)
            return None
        self._commit(self._data.model_copy(update={"skills": [skill, *self._data.skills]}))
        self._propagate(
            "add_skill",
            skill.id,
            lambda remote, uid: remote.skills.create(skill_to_insert(uid, skill)),
        )
        return skill

    def update_skill(self, skill_id: str, **fields: Any) -> Optional[Skill]:
        current = _find(self._data.skills, skill_id)
        if current is None:
            logger.info("Skill %s not found; update ignored", skill_id)
            return None
        changes = _strip(fields, _SKILL_PROTECTED)
        skill = _merge(current, {**changes, "updated_at": utcnow()})
        if skill is None:
            return None
        self._commit(self._data.model_copy(update={"skills": _replace(self._data.skills, skill)}))
        self._propagate(
            "update_skill",
            skill_id,
            lambda remote, uid: remote.skills.update(skill_id, skill_to_update(skill, changes)),
        )
        return skill

    def set_skill_level(self, skill_id: str, level: int) -> Optional[Skill]:
        return self.update_skill(skill_id, level=level)

    def delete_skill(self, skill_id: str) -> bool:
        if _find(self._data.skills, skill_id) is None:
            return False
        self._commit(self._data.model_copy(update={"skills": _without(self._data.skills, skill_id)}))
        self._propagate("delete_skill", skill_id, lambda remote, uid: remote.skills.delete(skill_id))
        return True

    # Goals

    def add_goal(
        self,
        title: str,
        deadline: date | str,
        description: Optional[str] = None,
        priority: str = "medium",
    ) -> Optional[Goal]:
        try:
            goal = Goal(
                title=title,
                deadline=deadline,
                description=description or None,
                priority=priority,
                completed=False,
                created_at=utcnow(),
            )
        except ValidationError as exc:
            logger.warning("Ignoring invalid goal: %s", exc)
            return None
        self._commit(self._data.model_copy(update={"goals": [goal, *self._data.goals]}))
        self._propagate(
            "add_goal",
            goal.id,
            lambda remote, uid: remote.goals.create(goal_to_insert(uid, goal)),
        )
        return goal

    def update_goal(self, goal_id: str, **fields: Any) -> Optional[Goal]:
        current = _find(self._data.goals, goal_id)
        if current is None:
            logger.info("Goal %s not found; update ignored", goal_id)
            return None
        changes = _strip(fields, _GOAL_PROTECTED)
        if "completed" in changes and "completed_at" not in changes and changes["completed"] != current.completed:
            changes["completed_at"] = utcnow() if changes["completed"] else None
        goal = _merge(current, changes)
        if goal is None:
            return None
        self._commit(self._data.model_copy(update={"goals": _replace(self._data.goals, goal)}))
        self._propagate(
            "update_goal",
            goal_id,
            lambda remote, uid: remote.goals.update(goal_id, goal_to_update(goal, changes)),
        )
        return goal

    def toggle_goal_complete(self, goal_id: str) -> Optional[Goal]:
        current = _find(self._data.goals, goal_id)
        if current is None:
            return None
        completed = not current.completed
        goal = current.model_copy(
            update={"completed": completed, "completed_at": utcnow() if completed else None}
        )
        self._commit(self._data.model_copy(update={"goals": _replace(self._data.goals, goal)}))
        self._propagate(
            "toggle_goal_complete",
            goal_id,
            lambda remote, uid: remote.goals.update(
                goal_id, goal_to_update(goal, {"completed": completed, "completed_at": goal.completed_at})
            ),
        )
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        if _find(self._data.goals, goal_id) is None:
            return False
        self._commit(self._data.model_copy(update={"goals": _without(self._data.goals, goal_id)}))
        self._propagate("delete_goal", goal_id, lambda remote, uid: remote.goals.delete(goal_id))
        return True

    # Achievements

    def add_achievement(
        self,
        title: str,
        date: date | str,
        category: str,
        description: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Optional[Achievement]:
        values: dict[str, Any] = {
            "title": title,
            "date": date,
            "category": category,
            "description": description or None,
        }
        if icon:
            values["icon"] = icon
        try:
            achievement = Achievement(**values)
        except ValidationError as exc:
            logger.warning("Ignoring invalid achievement: %s", exc)
            return None
        self._commit(
            self._data.model_copy(update={"achievements": [achievement, *self._data.achievements]})
        )
        self._propagate(
            "add_achievement",
            achievement.id,
            lambda remote, uid: remote.achievements.create(achievement_to_insert(uid, achievement)),
        )
        return achievement

    def update_achievement(self, achievement_id: str, **fields: Any) -> Optional[Achievement]:
        current = _find(self._data.achievements, achievement_id)
        if current is None:
            logger.info("Achievement %s not found; update ignored", achievement_id)
            return None
        changes = _strip(fields, _ACHIEVEMENT_PROTECTED)
        achievement = _merge(current, changes)
        if achievement is None:
            return None
        self._commit(
            self._data.model_copy(update={"achievements": _replace(self._data.achievements, achievement)})
        )
        self._propagate(
            "update_achievement",
            achievement_id,
            lambda remote, uid: remote.achievements.update(
                achievement_id, achievement_to_update(achievement, changes)
            ),
        )
        return achievement

    def delete_achievement(self, achievement_id: str) -> bool:
        if _find(self._data.achievements, achievement_id) is None:
            return False
        self._commit(
            self._data.model_copy(update={"achievements": _without(self._data.achievements, achievement_id)})
        )
        self._propagate(
            "delete_achievement",
            achievement_id,
            lambda remote, uid: remote.achievements.delete(achievement_id),
        )
        return True

    # Derived views

    def stats(self) -> GrowthStats:
        return compute_stats(self._data)

    def year_review(self, year: Optional[int] = None) -> YearReview:
        return compute_year_review(self._data, year)

    def reminders(self, today: Optional[date] = None) -> List[GoalReminder]:
        return goal_reminders(self._data.goals, today)


__all__ = ["GrowthDataManager", "LoadState", "RemoteLoadError"]
