"""Canonical growth data models shared by every storage backend."""

from __future__ import annotations

import math
import uuid
from datetime import date, datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

SKILL_CATEGORIES = ("编程", "语言", "设计", "音乐", "运动", "其他")
ACHIEVEMENT_CATEGORIES = ("技能突破", "目标达成", "学习里程碑", "个人成就", "其他")
ACHIEVEMENT_ICONS = ("🏆", "⭐", "🎯", "🚀", "💡", "🎨", "💪", "📚", "🔥", "✨")

DEFAULT_PROFILE_NAME = "My Growth Path"
DEFAULT_ACHIEVEMENT_ICON = ACHIEVEMENT_ICONS[0]
MIN_SKILL_LEVEL = 0
MAX_SKILL_LEVEL = 100

SkillCategory = Literal["编程", "语言", "设计", "音乐", "运动", "其他"]
AchievementCategory = Literal["技能突破", "目标达成", "学习里程碑", "个人成就", "其他"]
GoalPriority = Literal["low", "medium", "high"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def clamp_level(value: int) -> int:
    return max(MIN_SKILL_LEVEL, min(MAX_SKILL_LEVEL, int(value)))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


CalendarDate = date
Timestamp = Annotated[datetime, AfterValidator(_as_utc)]
SkillLevel = Annotated[int, AfterValidator(clamp_level)]
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CanonicalModel(BaseModel):
    """Base for the in-memory shape: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UserProfile(CanonicalModel):
    name: RequiredText = DEFAULT_PROFILE_NAME
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    is_public: bool = False
    created_at: Timestamp = Field(default_factory=utcnow)


class Skill(CanonicalModel):
    id: str = Field(default_factory=new_id)
    name: RequiredText
    category: SkillCategory = SKILL_CATEGORIES[0]
    level: SkillLevel = 0
    created_at: Timestamp = Field(default_factory=utcnow)
    updated_at: Timestamp = Field(default_factory=utcnow)


class Goal(CanonicalModel):
    id: str = Field(default_factory=new_id)
    title: RequiredText
    description: Optional[str] = None
    deadline: date
    priority: GoalPriority = "medium"
    completed: bool = False
    completed_at: Optional[Timestamp] = None
    created_at: Timestamp = Field(default_factory=utcnow)


class Achievement(CanonicalModel):
    id: str = Field(default_factory=new_id)
    title: RequiredText
    description: Optional[str] = None
    date: CalendarDate
    icon: str = DEFAULT_ACHIEVEMENT_ICON
    category: AchievementCategory


class GrowthData(CanonicalModel):
    """Aggregate root. Collections are kept newest first."""

    profile: UserProfile = Field(default_factory=UserProfile)
    skills: List[Skill] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)
    achievements: List[Achievement] = Field(default_factory=list)


class GrowthStats(CanonicalModel):
    total_skills: int = 0
    avg_skill_level: int = 0
    completed_goals: int = 0
    total_goals: int = 0
    total_achievements: int = 0
    goal_completion_rate: int = 0


class YearReview(CanonicalModel):
    year: int
    new_skills: int = 0
    goals_set: int = 0
    goals_completed: int = 0
    achievements: int = 0
    top_skills: List[Skill] = Field(default_factory=list)
    recent_achievements: List[Achievement] = Field(default_factory=list)


def round_half_up(value: float) -> int:
    """Round like ``Math.round`` so 2.5 becomes 3 rather than 2."""
    return int(math.floor(value + 0.5))


def compute_stats(data: GrowthData) -> GrowthStats:
    total_skills = len(data.skills)
    avg_level = (
        round_half_up(sum(skill.level for skill in data.skills) / total_skills)
        if total_skills
        else 0
    )
    completed_goals = sum(1 for goal in data.goals if goal.completed)
    total_goals = len(data.goals)
    return GrowthStats(
        total_skills=total_skills,
        avg_skill_level=avg_level,
        completed_goals=completed_goals,
        total_goals=total_goals,
        total_achievements=len(data.achievements),
        goal_completion_rate=round_half_up(completed_goals / total_goals * 100) if total_goals else 0,
    )


def compute_year_review(data: GrowthData, year: Optional[int] = None) -> YearReview:
    """Summarise one calendar year (UTC).

    Skills and goals are bucketed by ``created_at``; achievements by their
    calendar ``date``. ``top_skills`` deliberately spans all years.
    """
    if year is None:
        year = utcnow().year
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)

    year_skills = [skill for skill in data.skills if start <= skill.created_at <= end]
    year_goals = [goal for goal in data.goals if start <= goal.created_at <= end]
    year_achievements = [
        achievement
        for achievement in data.achievements
        if date(year, 1, 1) <= achievement.date <= date(year, 12, 31)
    ]

    return YearReview(
        year=year,
        new_skills=len(year_skills),
        goals_set=len(year_goals),
        goals_completed=sum(1 for goal in year_goals if goal.completed),
        achievements=len(year_achievements),
        top_skills=sorted(data.skills, key=lambda skill: skill.level, reverse=True)[:3],
        recent_achievements=year_achievements[-5:],
    )


__all__ = [
    "ACHIEVEMENT_CATEGORIES",
    "ACHIEVEMENT_ICONS",
    "Achievement",
    "AchievementCategory",
    "CanonicalModel",
    "DEFAULT_ACHIEVEMENT_ICON",
    "DEFAULT_PROFILE_NAME",
    "Goal",
    "GoalPriority",
    "GrowthData",
    "GrowthStats",
    "SKILL_CATEGORIES",
    "Skill",
    "SkillCategory",
    "UserProfile",
    "YearReview",
    "clamp_level",
    "compute_stats",
    "compute_year_review",
    "new_id",
    "round_half_up",
    "utcnow",
]
