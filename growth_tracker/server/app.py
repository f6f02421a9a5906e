"""FastAPI application factory for the remote CRUD service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from .routes import achievements_router, goals_router, profile_router, skills_router
from .session import dispose_engine, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_db()
    logger.info("Growth tracker API ready")
    yield
    dispose_engine()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(*, create_tables: bool = True) -> FastAPI:
    app = FastAPI(
        title="Growth Tracker API",
        version="0.1.0",
        lifespan=_lifespan if create_tables else None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
            for error in exc.errors()
        )
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, problems or "invalid request")

    @app.exception_handler(SQLAlchemyError)
    async def _database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Database error handling %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "server error")

    @app.get("/")
    def root() -> Dict[str, str]:
        return {"message": "Growth Tracker API is running"}

    @app.get("/healthz")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    app.include_router(profile_router)
    app.include_router(skills_router)
    app.include_router(goals_router)
    app.include_router(achievements_router)
    return app


__all__ = ["create_app"]
