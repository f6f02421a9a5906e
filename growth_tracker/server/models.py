"""ORM tables for the remote CRUD service."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, TimestampMixin

CalendarDate = date


def _uuid() -> str:
    return str(uuid.uuid4())


class ProfileModel(TimestampMixin, Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="My Growth Path")
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    skills: Mapped[list["SkillModel"]] = relationship(cascade="all, delete-orphan", passive_deletes=True)
    goals: Mapped[list["GoalModel"]] = relationship(cascade="all, delete-orphan", passive_deletes=True)
    achievements: Mapped[list["AchievementModel"]] = relationship(
        cascade="all, delete-orphan", passive_deletes=True
    )


class SkillModel(TimestampMixin, Base):
    __tablename__ = "skills"
    __table_args__ = (
        Index("ix_skills_user_created", "user_id", "created_at"),
        CheckConstraint("level >= 0 AND level <= 100", name="ck_skills_level_range"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class GoalModel(CreatedAtMixin, Base):
    __tablename__ = "goals"
    __table_args__ = (Index("ix_goals_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deadline: Mapped[date] = mapped_column(Date, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class AchievementModel(Base):
    __tablename__ = "achievements"
    __table_args__ = (Index("ix_achievements_user_date", "user_id", "date"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[CalendarDate] = mapped_column(Date, nullable=False)
    icon: Mapped[str] = mapped_column(String(16), nullable=False, default="🏆")
    category: Mapped[str] = mapped_column(String(64), nullable=False)


__all__ = ["AchievementModel", "GoalModel", "ProfileModel", "SkillModel"]
