from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from growth_tracker.server.repository import skill_repository

USER = "8c1f0d9e-1111-4222-8333-444455556666"


def _skill(**overrides):
    payload = {"user_id": USER, "name": "Python", "category": "编程", "level": 40}
    payload.update(overrides)
    return payload


def test_root_and_health(app: FastAPI) -> None:
    client = TestClient(app)
    assert client.get("/").json() == {"message": "Growth Tracker API is running"}
    assert client.get("/healthz").json() == {"status": "ok"}


def test_missing_profile_is_null(app: FastAPI) -> None:
    response = TestClient(app).get(f"/profiles/{USER}")
    assert response.status_code == 200
    assert response.json() is None


def test_profile_upsert_creates_then_replaces(app: FastAPI) -> None:
    client = TestClient(app)
    client.post("/profiles", json={"id": USER, "name": "Ada", "bio": "first"})
    client.post("/profiles", json={"id": USER, "name": "Ada L.", "is_public": True})

    profile = client.get(f"/profiles/{USER}").json()
    assert profile["name"] == "Ada L."
    assert profile["bio"] == "first"
    assert profile["is_public"] is True


def test_create_row_creates_default_profile(app: FastAPI) -> None:
    client = TestClient(app)
    response = client.post("/skills", json=_skill())

    assert response.status_code == 201
    assert response.json()["user_id"] == USER
    assert client.get(f"/profiles/{USER}").json()["name"] == "My Growth Path"


def test_validation_errors_use_error_envelope(app: FastAPI) -> None:
    client = TestClient(app)
    response = client.post("/skills", json=_skill(category="Cooking"))

    assert response.status_code == 422
    assert "category" in response.json()["error"]


def test_list_filters_by_owner_and_honours_limit(app: FastAPI) -> None:
    client = TestClient(app)
    for index in range(3):
        client.post("/skills", json=_skill(name=f"s{index}", created_at=f"2024-01-0{index + 1}T00:00:00Z"))
    client.post("/skills", json=_skill(user_id="someone-else", name="other"))

    rows = client.get("/skills", params={"user_id": USER}).json()
    assert [row["name"] for row in rows] == ["s2", "s1", "s0"]
    assert len(client.get("/skills", params={"user_id": USER, "limit": 1}).json()) == 1


def test_achievements_are_ordered_by_date(app: FastAPI) -> None:
    client = TestClient(app)
    for day in ("2024-03-01", "2024-05-01", "2024-01-01"):
        client.post(
            "/achievements",
            json={"user_id": USER, "title": day, "date": day, "category": "其他"},
        )

    rows = client.get("/achievements", params={"user_id": USER}).json()
    assert [row["date"] for row in rows] == ["2024-05-01", "2024-03-01", "2024-01-01"]
    assert rows[0]["icon"] == "🏆"


def test_batch_insert_skips_existing_ids(app: FastAPI) -> None:
    client = TestClient(app)
    batch = [_skill(id="skill-1", name="a"), _skill(id="skill-2", name="b")]

    first = client.post("/skills/batch", json=batch)
    second = client.post("/skills/batch", json=batch + [_skill(id="skill-3", name="c")])

    assert len(first.json()) == 2
    assert [row["id"] for row in second.json()] == ["skill-3"]
    assert len(client.get("/skills", params={"user_id": USER}).json()) == 3


def test_update_skill_refreshes_updated_at(app: FastAPI) -> None:
    client = TestClient(app)
    created = client.post(
        "/skills",
        json=_skill(id="skill-1", created_at="2024-01-01T00:00:00Z", updated_at="2024-01-01T00:00:00Z"),
    ).json()

    updated = client.put("/skills/skill-1", json={"level": 90}).json()

    assert updated["level"] == 90
    assert updated["updated_at"] > created["updated_at"]


def test_update_rejects_out_of_range_level(app: FastAPI) -> None:
    client = TestClient(app)
    client.post("/skills", json=_skill(id="skill-1"))
    response = client.put("/skills/skill-1", json={"level": 101})
    assert response.status_code == 422


def test_update_unknown_row_is_404(app: FastAPI) -> None:
    response = TestClient(app).put("/goals/missing", json={"title": "x"})
    assert response.status_code == 404
    assert "missing" in response.json()["error"]


def test_delete_row(app: FastAPI) -> None:
    client = TestClient(app)
    client.post(
        "/goals",
        json={"id": "goal-1", "user_id": USER, "title": "Run", "deadline": "2024-07-01"},
    )

    assert client.delete("/goals/goal-1").json() == {"message": "deleted"}
    assert client.get("/goals", params={"user_id": USER}).json() == []


def test_database_errors_return_server_error(app: FastAPI, monkeypatch) -> None:
    def broken_list(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(skill_repository, "list", broken_list)
    response = TestClient(app).get("/skills", params={"user_id": USER})

    assert response.status_code == 500
    assert response.json() == {"error": "server error"}


def test_profile_upsert_with_created_at_replaces_default(app: FastAPI) -> None:
    client = TestClient(app)
    client.post("/skills", json=_skill())
    client.post("/profiles", json={"id": USER, "name": "Ada", "created_at": "2023-05-06T07:08:09Z"})
    client.post("/profiles", json={"id": USER, "name": "Ada L."})

    profile = client.get(f"/profiles/{USER}").json()
    assert profile["name"] == "Ada L."
    assert profile["created_at"].startswith("2023-05-06T07:08:09")
