"""Local session provider and initial-session resolution."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .config import get_settings
from .local_store import LocalStore
from .models import utcnow
from .telemetry import emit_event

logger = logging.getLogger(__name__)

SESSION_KEY = "auth_session"
USER_NAMESPACE = uuid.UUID("6f1c2a4e-8d3b-5e7f-9a0c-1b2d3e4f5a6b")

AuthEvent = Literal["SIGNED_IN", "SIGNED_OUT"]
SessionListener = Callable[[AuthEvent, Optional["Session"]], Union[None, Awaitable[None]]]


class User(BaseModel):
    id: str
    email: str
    user_metadata: Dict[str, Any] = Field(default_factory=dict)


class Session(BaseModel):
    id: str
    user: User
    created_at: str = Field(default_factory=lambda: utcnow().isoformat())


@dataclass(frozen=True)
class SessionResult:
    session: Optional[Session] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class AuthResult:
    session: Optional[Session] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class InitialSession:
    user_id: Optional[str]
    session: Optional[Session] = None
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def offline(self) -> bool:
        return self.user_id is None


def user_id_for(email: str) -> str:
    """Stable user id for an email address (case and whitespace insensitive)."""
    return str(uuid.uuid5(USER_NAMESPACE, email.strip().lower()))


class Subscription:
    def __init__(self, provider: "LocalSessionProvider", listener: SessionListener) -> None:
        self._provider = provider
        self._listener = listener

    def unsubscribe(self) -> None:
        self._provider._remove_listener(self._listener)


class LocalSessionProvider:
    """Session provider that persists the active session in the local store.

    There is no credential check: any non-empty email and password sign in,
    and the same email always maps to the same user id.
    """

    def __init__(self, local_store: LocalStore) -> None:
        self._store = local_store
        self._session: Optional[Session] = None
        self._listeners: List[SessionListener] = []

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    async def get_session(self) -> SessionResult:
        saved = self._store.get_item(SESSION_KEY)
        if saved is None:
            return SessionResult(session=self._session)
        try:
            self._session = Session.model_validate(saved)
        except ValidationError as exc:
            logger.warning("Discarding unreadable saved session: %s", exc)
            return SessionResult(error="saved session is unreadable")
        return SessionResult(session=self._session)

    async def sign_up(self, email: str, password: str) -> AuthResult:
        return await self._start_session(email, password, action="sign_up")

    async def sign_in(self, email: str, password: str) -> AuthResult:
        return await self._start_session(email, password, action="sign_in")

    async def sign_out(self) -> AuthResult:
        self._session = None
        self._store.remove_item(SESSION_KEY)
        emit_event("auth_signed_out")
        await self._notify("SIGNED_OUT", None)
        return AuthResult()

    def on_session_change(self, listener: SessionListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: SessionListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    async def _start_session(self, email: str, password: str, *, action: str) -> AuthResult:
        email = (email or "").strip()
        if not email or not password:
            return AuthResult(error="Invalid credentials")
        user = User(id=user_id_for(email), email=email)
        session = Session(id=f"sess_{int(time.time() * 1000):x}", user=user)
        self._session = session
        self._store.set_item(SESSION_KEY, session.model_dump(mode="json"))
        logger.info("%s succeeded for user %s", action, user.id)
        emit_event("auth_signed_in", user_id=user.id, action=action)
        await self._notify("SIGNED_IN", session)
        return AuthResult(session=session)

    async def _notify(self, event: AuthEvent, session: Optional[Session]) -> None:
        for listener in list(self._listeners):
            try:
                outcome = listener(event, session)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:  # noqa: BLE001
                logger.exception("Session listener failed for %s", event)


async def resolve_initial_session(
    provider: LocalSessionProvider, timeout: Optional[float] = None
) -> InitialSession:
    """Fetch the current session, giving up after ``timeout`` seconds.

    A timeout or provider error yields an offline session rather than raising.
    """
    if timeout is None:
        timeout = get_settings().session_timeout_seconds
    try:
        result = await asyncio.wait_for(provider.get_session(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Session retrieval timed out after %.1fs; continuing offline", timeout)
        emit_event("session_timeout", timeout_seconds=timeout)
        return InitialSession(user_id=None, timed_out=True)
    if result.error:
        logger.warning("Session retrieval failed: %s; continuing offline", result.error)
        return InitialSession(user_id=None, error=result.error)
    if result.session is None:
        return InitialSession(user_id=None)
    return InitialSession(user_id=result.session.user.id, session=result.session)


__all__ = [
    "AuthEvent",
    "AuthResult",
    "InitialSession",
    "LocalSessionProvider",
    "Session",
    "SessionResult",
    "Subscription",
    "User",
    "resolve_initial_session",
    "user_id_for",
]
