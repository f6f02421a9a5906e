from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from growth_tracker.models import (
    Achievement,
    Goal,
    GrowthData,
    Skill,
    UserProfile,
    compute_stats,
    compute_year_review,
    round_half_up,
)


def _utc(*parts: int) -> datetime:
    return datetime(*parts, tzinfo=timezone.utc)


def test_skill_level_is_clamped() -> None:
    assert Skill(name="Rust", level=150).level == 100
    assert Skill(name="Rust", level=-10).level == 0
    assert Skill(name="Rust", level=42).level == 42


def test_blank_or_unknown_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        Skill(name="   ")
    with pytest.raises(ValidationError):
        Skill(name="Guitar", category="Cooking")
    with pytest.raises(ValidationError):
        Achievement(title="Shipped", date=date(2024, 1, 1), category="Unknown")


def test_document_uses_camel_case_and_omits_missing_optionals() -> None:
    goal = Goal(title="Read", deadline=date(2024, 6, 1), created_at=_utc(2024, 1, 1))
    document = goal.to_document()

    assert document["createdAt"].startswith("2024-01-01T00:00:00")
    assert "completedAt" not in document
    assert "description" not in document
    assert Goal.model_validate(document) == goal


def test_naive_timestamps_are_treated_as_utc() -> None:
    skill = Skill(name="Go", created_at=datetime(2024, 3, 1, 12, 0))
    assert skill.created_at == _utc(2024, 3, 1, 12, 0)


def test_round_half_up_matches_math_round() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(52.5) == 53
    assert round_half_up(33.333) == 33


def test_stats_on_empty_data_are_zero() -> None:
    stats = compute_stats(GrowthData())
    assert stats.total_skills == 0
    assert stats.avg_skill_level == 0
    assert stats.goal_completion_rate == 0


def test_stats_round_average_and_completion_rate() -> None:
    data = GrowthData(
        skills=[Skill(name="a", level=50), Skill(name="b", level=55)],
        goals=[
            Goal(title="g1", deadline=date(2024, 1, 1), completed=True),
            Goal(title="g2", deadline=date(2024, 1, 1)),
            Goal(title="g3", deadline=date(2024, 1, 1)),
        ],
    )
    stats = compute_stats(data)

    assert stats.avg_skill_level == 53
    assert stats.completed_goals == 1
    assert stats.total_goals == 3
    assert stats.goal_completion_rate == 33
    assert stats.to_document()["goalCompletionRate"] == 33


def test_year_review_boundaries() -> None:
    late = Skill(name="late", level=10, created_at=_utc(2024, 12, 31, 23, 59, 59))
    early = Skill(name="early", level=20, created_at=_utc(2025, 1, 1, 0, 0, 0))
    data = GrowthData(
        skills=[late, early],
        achievements=[
            Achievement(title="eve", date=date(2024, 12, 31), category="其他"),
            Achievement(title="new year", date=date(2025, 1, 1), category="其他"),
        ],
    )

    review_2024 = compute_year_review(data, 2024)
    review_2025 = compute_year_review(data, 2025)

    assert review_2024.new_skills == 1
    assert review_2025.new_skills == 1
    assert [a.title for a in review_2024.recent_achievements] == ["eve"]
    assert [a.title for a in review_2025.recent_achievements] == ["new year"]


def test_year_review_top_skills_span_all_years_and_recent_keeps_last_five() -> None:
    skills = [
        Skill(name=f"s{level}", level=level, created_at=_utc(2020, 1, 1))
        for level in (10, 90, 40, 70)
    ]
    achievements = [
        Achievement(title=f"a{day}", date=date(2024, 1, day), category="个人成就") for day in range(1, 8)
    ]
    goals = [
        Goal(title="done", deadline=date(2024, 2, 1), completed=True, created_at=_utc(2024, 1, 5)),
        Goal(title="open", deadline=date(2024, 2, 1), created_at=_utc(2024, 1, 5)),
        Goal(title="old", deadline=date(2023, 2, 1), completed=True, created_at=_utc(2023, 1, 5)),
    ]
    review = compute_year_review(GrowthData(skills=skills, goals=goals, achievements=achievements), 2024)

    assert [s.name for s in review.top_skills] == ["s90", "s70", "s40"]
    assert review.new_skills == 0
    assert review.goals_set == 2
    assert review.goals_completed == 1
    assert review.achievements == 7
    assert [a.title for a in review.recent_achievements] == ["a3", "a4", "a5", "a6", "a7"]


def test_profile_defaults() -> None:
    profile = UserProfile()
    assert profile.name == "My Growth Path"
    assert profile.is_public is False
