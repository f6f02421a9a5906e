from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from growth_tracker import cli
from growth_tracker.auth import SESSION_KEY, user_id_for
from growth_tracker.local_store import STORAGE_KEY, LocalStore
from growth_tracker.remote import RemoteStoreClient

EMAIL = "ada@example.com"


class _RequestLog:
    """Stands in for the CRUD service and records every request it sees."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        return httpx.Response(503, json={"error": "offline"})


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def store(tmp_path: Path) -> Path:
    return tmp_path / "cli_store.json"


@pytest.fixture
def request_log(monkeypatch) -> _RequestLog:
    log = _RequestLog()
    monkeypatch.setattr(
        cli,
        "RemoteStoreClient",
        lambda base_url=None: RemoteStoreClient("http://remote.test", transport=httpx.MockTransport(log)),
    )
    return log


@pytest.fixture
def served(monkeypatch, make_remote) -> None:
    monkeypatch.setattr(cli, "RemoteStoreClient", lambda base_url=None: make_remote())


def _run(capsys, store: Path, *argv: str) -> tuple[int, str, str]:
    code = cli.main(["--store", str(store), *argv])
    out, err = capsys.readouterr()
    return code, out, err


def test_stats_on_a_fresh_store(capsys, store: Path, request_log: _RequestLog) -> None:
    code, out, _err = _run(capsys, store, "stats")

    assert code == 0
    assert json.loads(out) == {
        "totalSkills": 0,
        "avgSkillLevel": 0,
        "completedGoals": 0,
        "totalGoals": 0,
        "totalAchievements": 0,
        "goalCompletionRate": 0,
    }
    assert request_log.requests == []


def test_skill_commands_edit_the_local_store(capsys, store: Path, request_log: _RequestLog) -> None:
    code, out, _err = _run(capsys, store, "skill", "add", "Python", "--category", "编程", "--level", "40")
    assert code == 0
    skill_id = json.loads(out)["id"]

    code, out, _err = _run(capsys, store, "skill", "level", skill_id, "150")
    assert code == 0
    assert json.loads(out)["level"] == 100

    _run(capsys, store, "skill", "add", "Piano", "--category", "音乐", "--level", "20")
    code, out, _err = _run(capsys, store, "skill", "list")
    assert [skill["name"] for skill in json.loads(out)] == ["Piano", "Python"]

    code, out, _err = _run(capsys, store, "skill", "delete", skill_id)
    assert code == 0
    assert out.strip() == f"Deleted skill {skill_id}."

    stored = LocalStore(store).load_growth_data()
    assert [skill.name for skill in stored.skills] == ["Piano"]
    assert request_log.requests == []


def test_rejected_and_unknown_entities_exit_non_zero(capsys, store: Path, request_log: _RequestLog) -> None:
    code, out, err = _run(capsys, store, "skill", "add", "Chess", "--category", "棋类")
    assert code == 1
    assert out == ""
    assert "Could not save skill" in err

    code, _out, err = _run(capsys, store, "goal", "delete", "missing")
    assert code == 1
    assert "No goal missing found." in err

    code, _out, err = _run(capsys, store, "achievement", "add", "Talk", "2024-05-02", "unknown")
    assert code == 1
    assert "Could not save achievement" in err


def test_goal_and_achievement_commands(capsys, store: Path, request_log: _RequestLog) -> None:
    code, out, _err = _run(
        capsys, store, "goal", "add", "Finish course", "2024-12-01", "--description", "Module 3", "--priority", "high"
    )
    assert code == 0
    goal = json.loads(out)
    assert goal["priority"] == "high"
    assert goal["completed"] is False

    code, out, _err = _run(capsys, store, "goal", "toggle", goal["id"])
    assert json.loads(out)["completed"] is True
    assert "completedAt" in json.loads(out)

    code, out, _err = _run(capsys, store, "achievement", "add", "First PR", "2024-02-02", "技能突破", "--icon", "🚀")
    assert code == 0
    achievement = json.loads(out)
    assert achievement["icon"] == "🚀"

    code, out, _err = _run(capsys, store, "achievement", "update", achievement["id"], "--title", "First merged PR")
    assert json.loads(out)["title"] == "First merged PR"

    code, out, _err = _run(capsys, store, "stats")
    stats = json.loads(out)
    assert stats["completedGoals"] == 1
    assert stats["goalCompletionRate"] == 100
    assert stats["totalAchievements"] == 1


def test_profile_set_and_show(capsys, store: Path, request_log: _RequestLog) -> None:
    code, out, _err = _run(capsys, store, "profile", "set", "--name", "Ada", "--bio", "Engines", "--public")
    assert code == 0
    assert json.loads(out)["isPublic"] is True

    code, out, _err = _run(capsys, store, "profile", "show")
    profile = json.loads(out)
    assert profile["name"] == "Ada"
    assert profile["bio"] == "Engines"

    code, out, _err = _run(capsys, store, "profile", "set", "--private")
    assert json.loads(out)["isPublic"] is False
    assert json.loads(out)["name"] == "Ada"


def test_export_to_directory_and_file(capsys, store: Path, tmp_path: Path, request_log: _RequestLog) -> None:
    _run(capsys, store, "profile", "set", "--name", "Ada")
    _run(capsys, store, "skill", "add", "Python", "--level", "70")
    out_dir = tmp_path / "exports"
    out_dir.mkdir()

    code, out, _err = _run(capsys, store, "export", "--output", str(out_dir))

    assert code == 0
    assert out == ""
    [backup] = list(out_dir.glob("growth-tracker-backup-*.json"))
    payload = json.loads(backup.read_text(encoding="utf-8"))
    assert payload["version"] == "1.0"
    assert payload["skills"][0]["name"] == "Python"

    report = tmp_path / "report.md"
    code, _out, _err = _run(capsys, store, "export", "--format", "markdown", "--output", str(report))
    assert code == 0
    assert report.read_text(encoding="utf-8").startswith("# Ada - 成长记录")


def test_reminders_lists_goals_due_soon(capsys, store: Path, request_log: _RequestLog) -> None:
    _run(capsys, store, "goal", "add", "Ship v1", "2024-06-05")
    _run(capsys, store, "goal", "add", "Someday", "2025-06-05")

    code, out, _err = _run(capsys, store, "reminders", "--today", "2024-06-01")

    assert code == 0
    lines = out.strip().splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("Ship v1: ")
    assert lines[0].endswith("(2024-06-05)")


def test_login_migrates_and_later_commands_reach_the_server(
    capsys, store: Path, app: FastAPI, served: None
) -> None:
    _run(capsys, store, "skill", "add", "Python", "--level", "70")

    code, out, _err = _run(capsys, store, "login", EMAIL, "secret", "--sign-up")
    assert code == 0
    assert out.strip() == f"Signed in as {EMAIL} (migration: migrated)"
    assert LocalStore(store).get_item(SESSION_KEY) is not None

    code, out, _err = _run(capsys, store, "skill", "add", "Go", "--level", "15")
    assert code == 0

    rows = TestClient(app).get("/skills", params={"user_id": user_id_for(EMAIL)}).json()
    assert sorted(row["name"] for row in rows) == ["Go", "Python"]

    code, out, _err = _run(capsys, store, "logout")
    assert code == 0
    assert out.strip() == "Signed out; using local data."
    assert LocalStore(store).get_item(SESSION_KEY) is None
    assert len(LocalStore(store).get_item(STORAGE_KEY)["skills"]) == 2


def test_login_with_blank_password_fails(capsys, store: Path, request_log: _RequestLog) -> None:
    code, out, err = _run(capsys, store, "login", EMAIL, "")

    assert code == 1
    assert out == ""
    assert "Sign-in failed: Invalid credentials" in err
    assert request_log.requests == []
