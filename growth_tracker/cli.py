"""Command-line entry point: run the API, record growth data or inspect it."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from .auth import LocalSessionProvider
from .config import get_settings
from .export import export_filename, export_json, export_markdown
from .growth_data import GrowthDataManager
from .local_store import LocalStore
from .logging_config import configure_logging
from .models import SKILL_CATEGORIES, CanonicalModel
from .remote import RemoteStoreClient
from .sync import GrowthSync

logger = logging.getLogger(__name__)

Action = Callable[[GrowthSync], Awaitable[int]]

PROFILE_FIELDS = ("name", "bio", "avatar_url", "email", "location", "website", "is_public")


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def _with_sync(args: argparse.Namespace, action: Action) -> int:
    store = LocalStore(args.store)
    async with RemoteStoreClient(args.api_url) as remote:
        sync = GrowthSync(GrowthDataManager(store, remote), LocalSessionProvider(store))
        await sync.start()
        try:
            return await action(sync)
        finally:
            await sync.close()


async def _stats(sync: GrowthSync) -> int:
    _print_json(sync.manager.stats().to_document())
    return 0


def _review(year: Optional[int]) -> Action:
    async def run(sync: GrowthSync) -> int:
        _print_json(sync.manager.year_review(year).to_document())
        return 0

    return run


def _reminders(today: Optional[date]) -> Action:
    async def run(sync: GrowthSync) -> int:
        reminders = sync.manager.reminders(today)
        if not reminders:
            print("No goals due soon.")
        for reminder in reminders:
            print(f"{reminder.goal.title}: {reminder.label} ({reminder.goal.deadline.isoformat()})")
        return 0

    return run


def _export(fmt: str, output: Optional[Path]) -> Action:
    async def run(sync: GrowthSync) -> int:
        data = sync.manager.data
        if fmt == "json":
            content = json.dumps(export_json(data), indent=2, ensure_ascii=False)
        else:
            content = export_markdown(data)
        if output is None:
            print(content)
            return 0
        target = output / export_filename(fmt) if output.is_dir() else output
        target.write_text(content, encoding="utf-8")
        logger.info("Wrote %s export to %s", fmt, target)
        return 0

    return run


def _login(email: str, password: str, create: bool) -> Action:
    async def run(sync: GrowthSync) -> int:
        provider = sync.provider
        result = await (provider.sign_up(email, password) if create else provider.sign_in(email, password))
        if result.error:
            print(f"Sign-in failed: {result.error}", file=sys.stderr)
            return 1
        outcome = sync.migrations[-1].value if sync.migrations else "none"
        print(f"Signed in as {email} (migration: {outcome})")
        return 0

    return run


async def _logout(sync: GrowthSync) -> int:
    await sync.provider.sign_out()
    print("Signed out; using local data.")
    return 0


def _report(entity: Optional[CanonicalModel], what: str) -> int:
    if entity is None:
        print(f"Could not save {what}; see the log for details.", file=sys.stderr)
        return 1
    _print_json(entity.to_document())
    return 0


def _report_deleted(deleted: bool, what: str) -> int:
    if not deleted:
        print(f"No {what} found.", file=sys.stderr)
        return 1
    print(f"Deleted {what}.")
    return 0


def _changes(args: argparse.Namespace, fields: Iterable[str]) -> Dict[str, Any]:
    return {field: getattr(args, field) for field in fields if getattr(args, field, None) is not None}


def _skill(args: argparse.Namespace) -> Action:
    async def run(sync: GrowthSync) -> int:
        manager = sync.manager
        if args.action == "list":
            _print_json([skill.to_document() for skill in manager.data.skills])
            return 0
        if args.action == "add":
            return _report(manager.add_skill(args.name, args.category, args.level), "skill")
        if args.action == "level":
            return _report(manager.set_skill_level(args.id, args.level), f"skill {args.id}")
        if args.action == "update":
            changes = _changes(args, ("name", "category", "level"))
            return _report(manager.update_skill(args.id, **changes), f"skill {args.id}")
        return _report_deleted(manager.delete_skill(args.id), f"skill {args.id}")

    return run


def _goal(args: argparse.Namespace) -> Action:
    async def run(sync: GrowthSync) -> int:
        manager = sync.manager
        if args.action == "list":
            _print_json([goal.to_document() for goal in manager.data.goals])
            return 0
        if args.action == "add":
            goal = manager.add_goal(args.title, args.deadline, args.description, args.priority)
            return _report(goal, "goal")
        if args.action == "toggle":
            return _report(manager.toggle_goal_complete(args.id), f"goal {args.id}")
        if args.action == "update":
            changes = _changes(args, ("title", "deadline", "description", "priority"))
            return _report(manager.update_goal(args.id, **changes), f"goal {args.id}")
        return _report_deleted(manager.delete_goal(args.id), f"goal {args.id}")

    return run


def _achievement(args: argparse.Namespace) -> Action:
    async def run(sync: GrowthSync) -> int:
        manager = sync.manager
        if args.action == "list":
            _print_json([achievement.to_document() for achievement in manager.data.achievements])
            return 0
        if args.action == "add":
            achievement = manager.add_achievement(
                args.title, args.date, args.category, args.description, args.icon
            )
            return _report(achievement, "achievement")
        if args.action == "update":
            changes = _changes(args, ("title", "date", "category", "description", "icon"))
            return _report(manager.update_achievement(args.id, **changes), f"achievement {args.id}")
        return _report_deleted(manager.delete_achievement(args.id), f"achievement {args.id}")

    return run


def _profile(args: argparse.Namespace) -> Action:
    async def run(sync: GrowthSync) -> int:
        manager = sync.manager
        if args.action == "show":
            _print_json(manager.data.profile.to_document())
            return 0
        return _report(manager.update_profile(**_changes(args, PROFILE_FIELDS)), "profile")

    return run


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "growth_tracker.server:create_app",
        factory=True,
        host=args.host or settings.server_host,
        port=args.port or settings.server_port,
        log_config=None,
    )
    return 0


def _add_skill_commands(commands: Any) -> None:
    skill = commands.add_parser("skill", help="Manage skills.")
    actions = skill.add_subparsers(dest="action", required=True)
    actions.add_parser("list", help="List skills, newest first.")

    add = actions.add_parser("add", help="Record a new skill.")
    add.add_argument("name")
    add.add_argument("--category", default=SKILL_CATEGORIES[0])
    add.add_argument("--level", type=int, default=0, help="0-100; out-of-range values are clamped.")

    level = actions.add_parser("level", help="Set a skill's level.")
    level.add_argument("id")
    level.add_argument("level", type=int)

    update = actions.add_parser("update", help="Edit a skill.")
    update.add_argument("id")
    update.add_argument("--name")
    update.add_argument("--category")
    update.add_argument("--level", type=int)

    delete = actions.add_parser("delete", help="Delete a skill.")
    delete.add_argument("id")


def _add_goal_commands(commands: Any) -> None:
    goal = commands.add_parser("goal", help="Manage goals.")
    actions = goal.add_subparsers(dest="action", required=True)
    actions.add_parser("list", help="List goals, newest first.")

    add = actions.add_parser("add", help="Set a new goal.")
    add.add_argument("title")
    add.add_argument("deadline", type=date.fromisoformat)
    add.add_argument("--description", default=None)
    add.add_argument("--priority", choices=("low", "medium", "high"), default="medium")

    update = actions.add_parser("update", help="Edit a goal.")
    update.add_argument("id")
    update.add_argument("--title")
    update.add_argument("--deadline", type=date.fromisoformat)
    update.add_argument("--description")
    update.add_argument("--priority", choices=("low", "medium", "high"))

    for name, help_text in (("toggle", "Mark a goal done or not done."), ("delete", "Delete a goal.")):
        action = actions.add_parser(name, help=help_text)
        action.add_argument("id")


def _add_achievement_commands(commands: Any) -> None:
    achievement = commands.add_parser("achievement", help="Manage achievements.")
    actions = achievement.add_subparsers(dest="action", required=True)
    actions.add_parser("list", help="List achievements, most recent first.")

    add = actions.add_parser("add", help="Record an achievement.")
    add.add_argument("title")
    add.add_argument("date", type=date.fromisoformat)
    add.add_argument("category")
    add.add_argument("--description", default=None)
    add.add_argument("--icon", default=None)

    update = actions.add_parser("update", help="Edit an achievement.")
    update.add_argument("id")
    update.add_argument("--title")
    update.add_argument("--date", type=date.fromisoformat)
    update.add_argument("--category")
    update.add_argument("--description")
    update.add_argument("--icon")

    delete = actions.add_parser("delete", help="Delete an achievement.")
    delete.add_argument("id")


def _add_profile_commands(commands: Any) -> None:
    profile = commands.add_parser("profile", help="Show or edit the profile.")
    actions = profile.add_subparsers(dest="action", required=True)
    actions.add_parser("show", help="Print the profile.")

    edit = actions.add_parser("set", help="Change profile fields.")
    edit.add_argument("--name")
    edit.add_argument("--bio")
    edit.add_argument("--avatar-url", dest="avatar_url")
    edit.add_argument("--email")
    edit.add_argument("--location")
    edit.add_argument("--website")
    visibility = edit.add_mutually_exclusive_group()
    visibility.add_argument("--public", dest="is_public", action="store_const", const=True, default=None)
    visibility.add_argument("--private", dest="is_public", action="store_const", const=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="growth-tracker", description="Personal growth tracker.")
    parser.add_argument("--store", type=Path, default=None, help="Path to the local store file.")
    parser.add_argument("--api-url", default=None, help="Base URL of the CRUD service.")
    parser.add_argument("--log-level", default=None, help="Overrides GROWTH_LOG_LEVEL.")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the CRUD service.")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    commands.add_parser("stats", help="Print summary statistics.")

    review = commands.add_parser("review", help="Print the year in review.")
    review.add_argument("--year", type=int, default=None)

    reminders = commands.add_parser("reminders", help="List goals due soon.")
    reminders.add_argument("--today", type=date.fromisoformat, default=None)

    export = commands.add_parser("export", help="Export data as JSON or Markdown.")
    export.add_argument("--format", choices=("json", "markdown"), default="json")
    export.add_argument("--output", type=Path, default=None, help="File or directory to write.")

    _add_skill_commands(commands)
    _add_goal_commands(commands)
    _add_achievement_commands(commands)
    _add_profile_commands(commands)

    login = commands.add_parser("login", help="Sign in and migrate local data.")
    login.add_argument("email")
    login.add_argument("password")
    login.add_argument("--sign-up", action="store_true")

    commands.add_parser("logout", help="Sign out and return to local mode.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, serving=args.command == "serve")

    if args.command == "serve":
        return _serve(args)
    if args.command == "stats":
        action: Action = _stats
    elif args.command == "review":
        action = _review(args.year)
    elif args.command == "reminders":
        action = _reminders(args.today)
    elif args.command == "export":
        action = _export(args.format, args.output)
    elif args.command == "skill":
        action = _skill(args)
    elif args.command == "goal":
        action = _goal(args)
    elif args.command == "achievement":
        action = _achievement(args)
    elif args.command == "profile":
        action = _profile(args)
    elif args.command == "login":
        action = _login(args.email, args.password, args.sign_up)
    else:
        action = _logout
    return asyncio.run(_with_sync(args, action))


if __name__ == "__main__":
    sys.exit(main())
