import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

DEFAULT_LOCAL_STORE_PATH = Path.home() / ".growth_tracker" / "local_store.json"


class Settings(BaseSettings):
    api_url: str = Field("http://localhost:3000", alias="GROWTH_API_URL")
    remote_timeout_seconds: Optional[float] = Field(None, alias="GROWTH_REMOTE_TIMEOUT_SECONDS")
    session_timeout_seconds: float = Field(5.0, gt=0, alias="GROWTH_SESSION_TIMEOUT_SECONDS")
    local_store_path: Path = Field(DEFAULT_LOCAL_STORE_PATH, alias="GROWTH_LOCAL_STORE_PATH")
    database_url: Optional[str] = Field(None, alias="GROWTH_DATABASE_URL")
    database_pool_size: int = Field(10, alias="GROWTH_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="GROWTH_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="GROWTH_DATABASE_ECHO")
    server_host: str = Field("127.0.0.1", alias="GROWTH_SERVER_HOST")
    server_port: int = Field(3000, alias="GROWTH_SERVER_PORT")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid growth tracker configuration: {exc}") from exc
