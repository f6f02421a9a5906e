"""Remote CRUD service backed by SQLAlchemy."""

from .app import create_app

__all__ = ["create_app"]
