"""Deadline reminders for goals that are due soon or recently overdue."""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Literal, Optional

from pydantic import BaseModel

from .models import Goal, utcnow

REMINDER_WINDOW_DAYS = 7
OVERDUE_GRACE_DAYS = 3

Severity = Literal["overdue", "due", "soon", "upcoming"]


class GoalReminder(BaseModel):
    goal: Goal
    days_left: int
    severity: Severity
    label: str


def _severity(days_left: int) -> Severity:
    if days_left < 0:
        return "overdue"
    if days_left <= 1:
        return "due"
    if days_left <= 3:
        return "soon"
    return "upcoming"


def status_label(days_left: int) -> str:
    if days_left < 0:
        return f"已过期 {abs(days_left)} 天"
    if days_left == 0:
        return "今天到期"
    if days_left == 1:
        return "明天到期"
    return f"{days_left} 天后到期"


def goal_reminders(goals: Iterable[Goal], today: Optional[date] = None) -> List[GoalReminder]:
    """Incomplete goals due within a week or overdue by at most three days.

    The result is ordered by ``days_left`` ascending so the most overdue goal
    comes first.
    """
    if today is None:
        today = utcnow().date()
    reminders = []
    for goal in goals:
        if goal.completed:
            continue
        days_left = (goal.deadline - today).days
        if -OVERDUE_GRACE_DAYS <= days_left <= REMINDER_WINDOW_DAYS:
            reminders.append(
                GoalReminder(
                    goal=goal,
                    days_left=days_left,
                    severity=_severity(days_left),
                    label=status_label(days_left),
                )
            )
    reminders.sort(key=lambda reminder: reminder.days_left)
    return reminders


__all__ = ["GoalReminder", "goal_reminders", "status_label"]
