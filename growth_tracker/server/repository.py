"""Database access for profiles and the owner-scoped collections."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import InstrumentedAttribute, Session

from .models import AchievementModel, GoalModel, ProfileModel, SkillModel

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", SkillModel, GoalModel, AchievementModel)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProfileRepository:
    def get(self, session: Session, user_id: str) -> Optional[ProfileModel]:
        return session.get(ProfileModel, user_id)

    def ensure(self, session: Session, user_id: str) -> ProfileModel:
        """Return the owner's profile, creating a default one when missing."""
        profile = self.get(session, user_id)
        if profile is None:
            profile = ProfileModel(id=user_id)
            session.add(profile)
            session.flush()
            logger.info("Created default profile for %s", user_id)
        return profile

    def upsert(self, session: Session, values: Dict[str, Any]) -> ProfileModel:
        """Create or update a profile; ``created_at`` only changes when supplied."""
        user_id = values["id"]
        profile = self.get(session, user_id)
        if profile is None:
            if values.get("created_at") is None:
                values = {key: value for key, value in values.items() if key != "created_at"}
            profile = ProfileModel(**values)
            session.add(profile)
        else:
            for key, value in values.items():
                if key == "id" or (key == "created_at" and value is None):
                    continue
                setattr(profile, key, value)
        session.flush()
        return profile


class CollectionRepository(Generic[ModelT]):
    """CRUD for one table whose rows belong to a profile."""

    def __init__(
        self,
        model: Type[ModelT],
        order_by: InstrumentedAttribute[Any],
        *,
        touch_updated_at: bool = False,
    ) -> None:
        self.model = model
        self._order_by = order_by
        self._touch_updated_at = touch_updated_at
        self._profiles = ProfileRepository()

    def list(self, session: Session, user_id: str, limit: Optional[int] = None) -> List[ModelT]:
        stmt = (
            select(self.model)
            .where(self.model.user_id == user_id)
            .order_by(self._order_by.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.execute(stmt).scalars())

    def get(self, session: Session, row_id: str) -> Optional[ModelT]:
        return session.get(self.model, row_id)

    def create(self, session: Session, values: Dict[str, Any]) -> ModelT:
        self._profiles.ensure(session, values["user_id"])
        row = self.model(**self._drop_missing_keys(values))
        session.add(row)
        session.flush()
        return row

    def create_many(self, session: Session, batch: Sequence[Dict[str, Any]]) -> List[ModelT]:
        """Insert every row whose id is not already stored; returns the inserted rows."""
        supplied = [values["id"] for values in batch if values.get("id")]
        existing = set()
        if supplied:
            stmt = select(self.model.id).where(self.model.id.in_(supplied))
            existing = set(session.execute(stmt).scalars())

        created: List[ModelT] = []
        for values in batch:
            row_id = values.get("id")
            if row_id and row_id in existing:
                logger.debug("Skipping existing %s row %s", self.model.__tablename__, row_id)
                continue
            created.append(self.create(session, values))
            if row_id:
                existing.add(row_id)
        return created

    def update(self, session: Session, row_id: str, values: Dict[str, Any]) -> Optional[ModelT]:
        row = self.get(session, row_id)
        if row is None:
            return None
        for key, value in values.items():
            if key in {"id", "user_id"}:
                continue
            setattr(row, key, value)
        if self._touch_updated_at and "updated_at" not in values:
            row.updated_at = _utcnow()  # type: ignore[union-attr]
        session.flush()
        return row

    def delete(self, session: Session, row_id: str) -> bool:
        row = self.get(session, row_id)
        if row is None:
            return False
        session.delete(row)
        session.flush()
        return True

    @staticmethod
    def _drop_missing_keys(values: Dict[str, Any]) -> Dict[str, Any]:
        # None for id/timestamps means "let the column default decide".
        return {
            key: value
            for key, value in values.items()
            if not (value is None and key in {"id", "created_at", "updated_at"})
        }


profile_repository = ProfileRepository()
skill_repository = CollectionRepository(SkillModel, SkillModel.created_at, touch_updated_at=True)
goal_repository = CollectionRepository(GoalModel, GoalModel.created_at)
achievement_repository = CollectionRepository(AchievementModel, AchievementModel.date)


__all__ = [
    "CollectionRepository",
    "ProfileRepository",
    "achievement_repository",
    "goal_repository",
    "profile_repository",
    "skill_repository",
]
