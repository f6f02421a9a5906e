"""Logging setup for the CLI commands and the ``serve`` process."""

import logging
import os
from logging.config import dictConfig
from typing import Any, Dict, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ACCESS_LOG_FORMAT = "%(asctime)s ACCESS %(message)s"

# httpx and httpcore log every request at INFO.
HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")


def build_logging_config(level: Optional[str] = None, *, serving: bool = False) -> Dict[str, Any]:
    """Return the ``dictConfig`` mapping.

    Package loggers follow ``level`` (or ``GROWTH_LOG_LEVEL``); everything else
    stays at WARNING. With ``serving`` the uvicorn loggers are routed through the
    same handler, since ``serve`` starts uvicorn with ``log_config=None``.
    ``GROWTH_DEBUG_HTTP=1`` opens up the HTTP client and access logs.
    """
    level = (level or os.getenv("GROWTH_LOG_LEVEL", "INFO")).upper()
    debug_http = os.getenv("GROWTH_DEBUG_HTTP", "0") == "1"

    loggers: Dict[str, Dict[str, Any]] = {
        "growth_tracker": {"level": level},
    }
    for name in HTTP_CLIENT_LOGGERS:
        loggers[name] = {"level": "DEBUG" if debug_http else "WARNING"}
    if serving:
        loggers["uvicorn"] = {"handlers": ["default"], "level": level, "propagate": False}
        loggers["uvicorn.error"] = {"level": level}
        loggers["uvicorn.access"] = {
            "handlers": ["access"],
            "level": "DEBUG" if debug_http else "INFO",
            "propagate": False,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": DEFAULT_LOG_FORMAT},
            "access": {"format": ACCESS_LOG_FORMAT},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": loggers,
        "root": {
            "handlers": ["default"],
            "level": "WARNING",
        },
    }


def configure_logging(level: Optional[str] = None, *, serving: bool = False) -> None:
    """Configure process-wide logging for a CLI command or the API server."""
    dictConfig(build_logging_config(level, serving=serving))
    logging.getLogger(__name__).debug("Logging configured (serving=%s)", serving)
