"""Row payloads exchanged with the remote CRUD service.

Field names on this boundary are snake_case. The ``*_from_row`` and
``*_to_insert`` helpers are the only place rows and canonical models are
translated, and each one spells out every field.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import (
    DEFAULT_ACHIEVEMENT_ICON,
    DEFAULT_PROFILE_NAME,
    Achievement,
    AchievementCategory,
    CalendarDate,
    Goal,
    GoalPriority,
    Skill,
    SkillCategory,
    UserProfile,
    utcnow,
)


class RowModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


# Profiles


class ProfileRow(RowModel):
    id: str
    name: str = DEFAULT_PROFILE_NAME
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    is_public: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpsert(RowModel):
    id: str = Field(..., min_length=1)
    name: str = Field(DEFAULT_PROFILE_NAME, min_length=1)
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    is_public: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Skills


class SkillRow(RowModel):
    id: str
    user_id: str
    name: str
    category: str
    level: int = 0
    created_at: datetime
    updated_at: datetime


class SkillInsert(RowModel):
    id: Optional[str] = None
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: SkillCategory
    level: int = Field(0, ge=0, le=100)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SkillUpdate(RowModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[SkillCategory] = None
    level: Optional[int] = Field(None, ge=0, le=100)
    updated_at: Optional[datetime] = None


# Goals


class GoalRow(RowModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    deadline: date
    priority: str = "medium"
    completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime


class GoalInsert(RowModel):
    id: Optional[str] = None
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    deadline: date
    priority: GoalPriority = "medium"
    completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class GoalUpdate(RowModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    deadline: Optional[date] = None
    priority: Optional[GoalPriority] = None
    completed: Optional[bool] = None
    completed_at: Optional[datetime] = None


# Achievements


class AchievementRow(RowModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    date: CalendarDate
    icon: Optional[str] = DEFAULT_ACHIEVEMENT_ICON
    category: str


class AchievementInsert(RowModel):
    id: Optional[str] = None
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    date: CalendarDate
    icon: str = DEFAULT_ACHIEVEMENT_ICON
    category: AchievementCategory


class AchievementUpdate(RowModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    date: Optional[CalendarDate] = None
    icon: Optional[str] = None
    category: Optional[AchievementCategory] = None


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


def profile_from_row(row: ProfileRow) -> UserProfile:
    return UserProfile(
        name=row.name,
        bio=_blank_to_none(row.bio),
        avatar_url=_blank_to_none(row.avatar_url),
        email=_blank_to_none(row.email),
        location=_blank_to_none(row.location),
        website=_blank_to_none(row.website),
        is_public=row.is_public,
        created_at=row.created_at or utcnow(),
    )


def profile_to_upsert(user_id: str, profile: UserProfile, *, include_created_at: bool = False) -> ProfileUpsert:
    values: Dict[str, Any] = {
        "id": user_id,
        "name": profile.name,
        "bio": profile.bio,
        "avatar_url": profile.avatar_url,
        "email": profile.email,
        "location": profile.location,
        "website": profile.website,
        "is_public": profile.is_public,
        "updated_at": utcnow(),
    }
    if include_created_at:
        values["created_at"] = profile.created_at
    return ProfileUpsert(**values)


def skill_from_row(row: SkillRow) -> Skill:
    return Skill(
        id=row.id,
        name=row.name,
        category=row.category,
        level=row.level,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def skill_to_insert(user_id: str, skill: Skill) -> SkillInsert:
    return SkillInsert(
        id=skill.id,
        user_id=user_id,
        name=skill.name,
        category=skill.category,
        level=skill.level,
        created_at=skill.created_at,
        updated_at=skill.updated_at,
    )


def skill_to_update(skill: Skill, changed: Mapping[str, Any]) -> SkillUpdate:
    """Build an update carrying only ``changed`` fields plus ``updated_at``."""
    values: Dict[str, Any] = {"updated_at": skill.updated_at}
    if "name" in changed:
        values["name"] = skill.name
    if "category" in changed:
        values["category"] = skill.category
    if "level" in changed:
        values["level"] = skill.level
    return SkillUpdate(**values)


def goal_from_row(row: GoalRow) -> Goal:
    return Goal(
        id=row.id,
        title=row.title,
        description=_blank_to_none(row.description),
        deadline=row.deadline,
        priority=row.priority,
        completed=row.completed,
        completed_at=row.completed_at,
        created_at=row.created_at,
    )


def goal_to_insert(user_id: str, goal: Goal) -> GoalInsert:
    return GoalInsert(
        id=goal.id,
        user_id=user_id,
        title=goal.title,
        description=goal.description,
        deadline=goal.deadline,
        priority=goal.priority,
        completed=goal.completed,
        completed_at=goal.completed_at,
        created_at=goal.created_at,
    )


def goal_to_update(goal: Goal, changed: Mapping[str, Any]) -> GoalUpdate:
    values: Dict[str, Any] = {}
    if "title" in changed:
        values["title"] = goal.title
    if "description" in changed:
        values["description"] = goal.description
    if "deadline" in changed:
        values["deadline"] = goal.deadline
    if "priority" in changed:
        values["priority"] = goal.priority
    if "completed" in changed or "completed_at" in changed:
        # Completion state always travels as a pair.
        values["completed"] = goal.completed
        values["completed_at"] = goal.completed_at
    return GoalUpdate(**values)


def achievement_from_row(row: AchievementRow) -> Achievement:
    return Achievement(
        id=row.id,
        title=row.title,
        description=_blank_to_none(row.description),
        date=row.date,
        icon=row.icon or DEFAULT_ACHIEVEMENT_ICON,
        category=row.category,
    )


def achievement_to_insert(user_id: str, achievement: Achievement) -> AchievementInsert:
    return AchievementInsert(
        id=achievement.id,
        user_id=user_id,
        title=achievement.title,
        description=achievement.description,
        date=achievement.date,
        icon=achievement.icon or DEFAULT_ACHIEVEMENT_ICON,
        category=achievement.category,
    )


def achievement_to_update(achievement: Achievement, changed: Mapping[str, Any]) -> AchievementUpdate:
    values: Dict[str, Any] = {}
    if "title" in changed:
        values["title"] = achievement.title
    if "description" in changed:
        values["description"] = achievement.description
    if "date" in changed:
        values["date"] = achievement.date
    if "icon" in changed:
        values["icon"] = achievement.icon
    if "category" in changed:
        values["category"] = achievement.category
    return AchievementUpdate(**values)


__all__ = [
    "AchievementInsert",
    "AchievementRow",
    "AchievementUpdate",
    "GoalInsert",
    "GoalRow",
    "GoalUpdate",
    "ProfileRow",
    "ProfileUpsert",
    "RowModel",
    "SkillInsert",
    "SkillRow",
    "SkillUpdate",
    "achievement_from_row",
    "achievement_to_insert",
    "achievement_to_update",
    "goal_from_row",
    "goal_to_insert",
    "goal_to_update",
    "profile_from_row",
    "profile_to_upsert",
    "skill_from_row",
    "skill_to_insert",
    "skill_to_update",
]
