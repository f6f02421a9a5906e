"""REST endpoints for profiles and the owner-scoped collections."""

import logging
from typing import Any, Dict, List, Optional, Type

from fastapi import APIRouter, Body, HTTPException, Query, status
from pydantic import BaseModel

from ..schemas import (
    AchievementInsert,
    AchievementRow,
    AchievementUpdate,
    GoalInsert,
    GoalRow,
    GoalUpdate,
    ProfileRow,
    ProfileUpsert,
    SkillInsert,
    SkillRow,
    SkillUpdate,
)
from ..telemetry import emit_event
from .repository import (
    CollectionRepository,
    achievement_repository,
    goal_repository,
    profile_repository,
    skill_repository,
)
from .session import session_scope

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 1000

profile_router = APIRouter(prefix="/profiles", tags=["profiles"])


@profile_router.get("/{user_id}", response_model=Optional[ProfileRow])
def get_profile(user_id: str) -> Optional[ProfileRow]:
    with session_scope(commit=False) as session:
        profile = profile_repository.get(session, user_id)
        if profile is None:
            return None
        return ProfileRow.model_validate(profile, from_attributes=True)


@profile_router.post("", response_model=ProfileRow)
def upsert_profile(payload: ProfileUpsert) -> ProfileRow:
    with session_scope() as session:
        profile = profile_repository.upsert(session, payload.model_dump(exclude_unset=True))
        row = ProfileRow.model_validate(profile, from_attributes=True)
    emit_event("profile_upserted", user_id=row.id)
    return row


def build_collection_router(
    name: str,
    repository: CollectionRepository[Any],
    row_model: Type[BaseModel],
    insert_model: Type[BaseModel],
    update_model: Type[BaseModel],
) -> APIRouter:
    """Create list/create/batch/update/delete routes for one collection."""
    router = APIRouter(prefix=f"/{name}", tags=[name])

    def _row(model: Any) -> BaseModel:
        return row_model.model_validate(model, from_attributes=True)

    @router.get("", response_model=List[row_model])  # type: ignore[valid-type]
    def list_rows(
        user_id: str = Query(..., min_length=1),
        limit: Optional[int] = Query(None, ge=1, le=MAX_LIST_LIMIT),
    ) -> List[BaseModel]:
        with session_scope(commit=False) as session:
            return [_row(model) for model in repository.list(session, user_id, limit)]

    @router.post("", response_model=row_model, status_code=status.HTTP_201_CREATED)
    def create_row(payload: insert_model) -> BaseModel:  # type: ignore[valid-type]
        with session_scope() as session:
            created = _row(repository.create(session, payload.model_dump(exclude_unset=True)))
        logger.debug("Created %s row %s", name, getattr(created, "id", None))
        return created

    @router.post("/batch", response_model=List[row_model], status_code=status.HTTP_201_CREATED)  # type: ignore[valid-type]
    def create_batch(payloads: List[insert_model] = Body(...)) -> List[BaseModel]:  # type: ignore[valid-type]
        with session_scope() as session:
            created = repository.create_many(
                session, [payload.model_dump(exclude_unset=True) for payload in payloads]
            )
            rows = [_row(model) for model in created]
        emit_event("batch_insert", collection=name, requested=len(payloads), inserted=len(rows))
        return rows

    @router.put("/{row_id}", response_model=row_model)
    def update_row(row_id: str, payload: update_model) -> BaseModel:  # type: ignore[valid-type]
        with session_scope() as session:
            model = repository.update(session, row_id, payload.model_dump(exclude_unset=True))
            if model is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"{name} row '{row_id}' was not found",
                )
            return _row(model)

    @router.delete("/{row_id}")
    def delete_row(row_id: str) -> Dict[str, str]:
        with session_scope() as session:
            removed = repository.delete(session, row_id)
        if not removed:
            logger.debug("Delete of missing %s row %s", name, row_id)
        return {"message": "deleted"}

    return router


skills_router = build_collection_router("skills", skill_repository, SkillRow, SkillInsert, SkillUpdate)
goals_router = build_collection_router("goals", goal_repository, GoalRow, GoalInsert, GoalUpdate)
achievements_router = build_collection_router(
    "achievements", achievement_repository, AchievementRow, AchievementInsert, AchievementUpdate
)

__all__ = [
    "achievements_router",
    "build_collection_router",
    "goals_router",
    "profile_router",
    "skills_router",
]
