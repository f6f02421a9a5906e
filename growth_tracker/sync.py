"""Wires the session provider, growth data manager and migration together."""

from __future__ import annotations

import logging
from typing import List, Optional

from .auth import AuthEvent, InitialSession, LocalSessionProvider, Session, Subscription, resolve_initial_session
from .growth_data import GrowthDataManager
from .migration import MigrationOutcome, migrate_local_data

logger = logging.getLogger(__name__)


class GrowthSync:
    def __init__(
        self,
        manager: GrowthDataManager,
        provider: LocalSessionProvider,
        *,
        session_timeout: Optional[float] = None,
    ) -> None:
        self.manager = manager
        self.provider = provider
        self._session_timeout = session_timeout
        self._subscription: Optional[Subscription] = None
        self.migrations: List[MigrationOutcome] = []

    async def start(self) -> InitialSession:
        initial = await resolve_initial_session(self.provider, self._session_timeout)
        await self.manager.mount(initial.user_id)
        self._subscription = self.provider.on_session_change(self._on_session_change)
        logger.info("Growth sync started (%s)", initial.user_id or "local mode")
        return initial

    async def _on_session_change(self, event: AuthEvent, session: Optional[Session]) -> None:
        if event == "SIGNED_IN" and session is not None:
            user_id = session.user.id
            if user_id == self.manager.user_id:
                return
            outcome = await migrate_local_data(self.manager, user_id)
            self.migrations.append(outcome)
        elif event == "SIGNED_OUT":
            await self.manager.wait_for_pending()
            await self.manager.mount(None)

    async def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        await self.manager.wait_for_pending()


__all__ = ["GrowthSync"]
