from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import httpx
import pytest
from fastapi import FastAPI

from growth_tracker.config import get_settings
from growth_tracker.local_store import LocalStore
from growth_tracker.remote import RemoteStoreClient
from growth_tracker.server import create_app
from growth_tracker.server.session import dispose_engine, init_db
from growth_tracker.telemetry import TelemetryEvent, clear_listeners, register_listener

BASE_URL = "http://testserver"


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("GROWTH_DATABASE_URL", f"sqlite:///{tmp_path / 'growth.sqlite'}")
    monkeypatch.setenv("GROWTH_LOCAL_STORE_PATH", str(tmp_path / "local_store.json"))
    get_settings.cache_clear()
    dispose_engine()
    yield
    clear_listeners()
    dispose_engine()
    get_settings.cache_clear()


@pytest.fixture
def app() -> FastAPI:
    application = create_app(create_tables=False)
    init_db()
    return application


@pytest.fixture
def local_store(tmp_path: Path) -> LocalStore:
    return LocalStore(tmp_path / "local_store.json")


@pytest.fixture
def make_remote(app: FastAPI) -> Callable[[], RemoteStoreClient]:
    """Build a client wired to the in-process API; create it inside the event loop."""

    def factory() -> RemoteStoreClient:
        return RemoteStoreClient(BASE_URL, transport=httpx.ASGITransport(app=app))

    return factory


@pytest.fixture
def events() -> List[TelemetryEvent]:
    captured: List[TelemetryEvent] = []
    register_listener(captured.append)
    return captured
