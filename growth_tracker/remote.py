"""Typed repositories over the remote CRUD service.

Every call resolves to a :class:`Result`. Transport failures, error statuses
and malformed payloads land in ``Result.error``; nothing raises past here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import get_settings
from .schemas import (
    AchievementInsert,
    AchievementRow,
    AchievementUpdate,
    GoalInsert,
    GoalRow,
    GoalUpdate,
    ProfileRow,
    ProfileUpsert,
    RowModel,
    SkillInsert,
    SkillRow,
    SkillUpdate,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
RowT = TypeVar("RowT", bound=BaseModel)
InsertT = TypeVar("InsertT", bound=RowModel)
UpdateT = TypeVar("UpdateT", bound=RowModel)


@dataclass(frozen=True)
class Result(Generic[T]):
    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return f"HTTP {response.status_code}: {body['error']}"
    return f"HTTP {response.status_code}"


class ProfileRepository:
    def __init__(self, client: "RemoteStoreClient") -> None:
        self._client = client

    async def get(self, user_id: str) -> Result[Optional[ProfileRow]]:
        if not user_id:
            return Result(error="user id is required")
        result = await self._client.request("GET", f"/profiles/{user_id}")
        if not result.ok or result.data is None:
            return Result(data=None, error=result.error)
        return _parse(ProfileRow, result.data)

    async def upsert(self, payload: ProfileUpsert) -> Result[ProfileRow]:
        result = await self._client.request("POST", "/profiles", json=payload.to_payload())
        if not result.ok:
            return Result(error=result.error)
        return _parse(ProfileRow, result.data)


class CollectionRepository(Generic[RowT, InsertT, UpdateT]):
    """List/create/update/delete for one owner-scoped collection."""

    def __init__(self, client: "RemoteStoreClient", name: str, row_model: Type[RowT]) -> None:
        self._client = client
        self.name = name
        self._row_model = row_model
        self._list_adapter = TypeAdapter(List[row_model])  # type: ignore[valid-type]

    async def list(self, user_id: str, *, limit: Optional[int] = None) -> Result[List[RowT]]:
        if not user_id:
            return Result(error="user id is required")
        params: Dict[str, Any] = {"user_id": user_id}
        if limit is not None:
            params["limit"] = limit
        result = await self._client.request("GET", f"/{self.name}", params=params)
        if not result.ok:
            return Result(error=result.error)
        return self._parse_list(result.data)

    async def create(self, payload: InsertT) -> Result[RowT]:
        result = await self._client.request("POST", f"/{self.name}", json=payload.to_payload())
        if not result.ok:
            return Result(error=result.error)
        return _parse(self._row_model, result.data)

    async def create_many(self, payloads: Sequence[InsertT]) -> Result[List[RowT]]:
        if not payloads:
            return Result(data=[])
        body = [payload.to_payload() for payload in payloads]
        result = await self._client.request("POST", f"/{self.name}/batch", json=body)
        if not result.ok:
            return Result(error=result.error)
        return self._parse_list(result.data)

    async def update(self, row_id: str, payload: UpdateT) -> Result[RowT]:
        if not row_id:
            return Result(error="row id is required")
        result = await self._client.request("PUT", f"/{self.name}/{row_id}", json=payload.to_payload())
        if not result.ok:
            return Result(error=result.error)
        return _parse(self._row_model, result.data)

    async def delete(self, row_id: str) -> Result[None]:
        if not row_id:
            return Result(error="row id is required")
        result = await self._client.request("DELETE", f"/{self.name}/{row_id}")
        return Result(error=result.error)

    def _parse_list(self, payload: Any) -> Result[List[RowT]]:
        try:
            return Result(data=self._list_adapter.validate_python(payload))
        except ValidationError as exc:
            logger.warning("Malformed %s list payload: %s", self.name, exc)
            return Result(error=f"invalid {self.name} payload")


def _parse(model: Type[RowT], payload: Any) -> Result[RowT]:
    try:
        return Result(data=model.model_validate(payload))
    except ValidationError as exc:
        logger.warning("Malformed %s payload: %s", model.__name__, exc)
        return Result(error=f"invalid {model.__name__} payload")


class RemoteStoreClient:
    """Async client for the remote CRUD service.

    Pass ``client`` to reuse an existing ``httpx.AsyncClient``; it must already
    carry the base URL. ``transport`` swaps the network layer of the client
    built here (tests mount the FastAPI app through ``httpx.ASGITransport``).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if client is None:
            settings = get_settings()
            client = httpx.AsyncClient(
                base_url=base_url or settings.api_url,
                timeout=httpx.Timeout(timeout if timeout is not None else settings.remote_timeout_seconds),
                headers={"Content-Type": "application/json"},
                transport=transport,
            )
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client
        self.profiles = ProfileRepository(self)
        self.skills: CollectionRepository[SkillRow, SkillInsert, SkillUpdate] = CollectionRepository(
            self, "skills", SkillRow
        )
        self.goals: CollectionRepository[GoalRow, GoalInsert, GoalUpdate] = CollectionRepository(
            self, "goals", GoalRow
        )
        self.achievements: CollectionRepository[
            AchievementRow, AchievementInsert, AchievementUpdate
        ] = CollectionRepository(self, "achievements", AchievementRow)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Result[Any]:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("Remote request %s %s failed: %s", method, path, exc)
            return Result(error=f"network error: {exc}")

        if response.is_error:
            message = _error_message(response)
            logger.warning("Remote request %s %s returned %s", method, path, message)
            return Result(error=message)

        try:
            return Result(data=response.json())
        except ValueError as exc:
            logger.warning("Remote request %s %s returned invalid JSON: %s", method, path, exc)
            return Result(error="invalid JSON response")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RemoteStoreClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = [
    "CollectionRepository",
    "ProfileRepository",
    "RemoteStoreClient",
    "Result",
]
