from __future__ import annotations

from datetime import date

from growth_tracker.models import Goal
from growth_tracker.reminders import goal_reminders, status_label

TODAY = date(2024, 6, 10)


def _goal(title: str, deadline: date, completed: bool = False) -> Goal:
    return Goal(title=title, deadline=deadline, completed=completed)


def test_window_and_order() -> None:
    goals = [
        _goal("next week", date(2024, 6, 17)),
        _goal("too far", date(2024, 6, 18)),
        _goal("today", date(2024, 6, 10)),
        _goal("overdue", date(2024, 6, 7)),
        _goal("long overdue", date(2024, 6, 6)),
        _goal("done", date(2024, 6, 11), completed=True),
    ]

    reminders = goal_reminders(goals, TODAY)

    assert [r.goal.title for r in reminders] == ["overdue", "today", "next week"]
    assert [r.days_left for r in reminders] == [-3, 0, 7]
    assert [r.severity for r in reminders] == ["overdue", "due", "upcoming"]


def test_status_labels() -> None:
    assert status_label(-2) == "已过期 2 天"
    assert status_label(0) == "今天到期"
    assert status_label(1) == "明天到期"
    assert status_label(5) == "5 天后到期"
