"""JSON backup and Markdown report exports."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import DEFAULT_ACHIEVEMENT_ICON, GrowthData, Skill, compute_stats, utcnow

EXPORT_VERSION = "1.0"
DEFAULT_BIO = "记录每一步成长"
BAR_CELLS = 10


def export_json(data: GrowthData, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Full backup document: the camelCase snapshot plus export metadata."""
    document = data.to_document()
    document["exportedAt"] = (now or utcnow()).isoformat()
    document["version"] = EXPORT_VERSION
    return document


def export_filename(kind: str, now: Optional[datetime] = None) -> str:
    stamp = (now or utcnow()).date().isoformat()
    if kind == "json":
        return f"growth-tracker-backup-{stamp}.json"
    return f"growth-tracker-report-{stamp}.md"


def level_bar(level: int) -> str:
    filled = min(BAR_CELLS, max(0, level // 10))
    return "█" * filled + "░" * (BAR_CELLS - filled)


def _skill_line(skill: Skill) -> str:
    return f"- **{skill.name}** [{skill.category}] {level_bar(skill.level)} {skill.level}%"


def export_markdown(data: GrowthData, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    stats = compute_stats(data)
    lines: List[str] = [
        f"# {data.profile.name} - 成长记录",
        "",
        f"> {data.profile.bio or DEFAULT_BIO}",
        "",
        f"导出时间: {now.date().isoformat()}",
        "",
        "## 📊 统计概览",
        "",
        f"- 技能数量: {stats.total_skills}",
        f"- 平均熟练度: {stats.avg_skill_level}%",
        f"- 目标完成: {stats.completed_goals}/{stats.total_goals}",
        f"- 成就数量: {stats.total_achievements}",
        "",
    ]

    if data.skills:
        lines += ["## 📚 技能列表", ""]
        # sorted() is stable, so equal levels keep stored order
        for skill in sorted(data.skills, key=lambda s: s.level, reverse=True):
            lines.append(_skill_line(skill))
        lines.append("")

    if data.goals:
        lines += ["## 🎯 目标列表", ""]
        active = [goal for goal in data.goals if not goal.completed]
        done = [goal for goal in data.goals if goal.completed]
        if active:
            lines.append("### 进行中")
            for goal in active:
                lines.append(f"- [ ] **{goal.title}** - 截止: {goal.deadline.isoformat()}")
                if goal.description:
                    lines.append(f"  - {goal.description}")
            lines.append("")
        if done:
            lines.append("### 已完成")
            for goal in done:
                finished = goal.completed_at.date() if goal.completed_at else goal.deadline
                lines.append(f"- [x] **{goal.title}** - 完成于: {finished.isoformat()}")
            lines.append("")

    if data.achievements:
        lines += ["## 🏆 成就记录", ""]
        for achievement in sorted(data.achievements, key=lambda a: a.date, reverse=True):
            icon = achievement.icon or DEFAULT_ACHIEVEMENT_ICON
            lines.append(f"- {icon} **{achievement.title}** - {achievement.date.isoformat()}")
            if achievement.description:
                lines.append(f"  - {achievement.description}")
        lines.append("")

    lines += ["---", "*由成长追踪器生成*"]
    return "\n".join(lines)


__all__ = ["export_filename", "export_json", "export_markdown", "level_bar"]
