"""JSON-file key-value store used while no session is active and as a cache."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .config import get_settings
from .models import GrowthData

logger = logging.getLogger(__name__)

STORAGE_KEY = "growth-tracker-data"


class LocalStore:
    """Persistent key-value store; every write rewrites the backing file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else get_settings().local_store_path
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def corrupt_path(self) -> Path:
        return self._path.with_suffix(self._path.suffix + ".corrupt")

    def _load_unlocked(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, ValueError):
            logger.exception("Failed to read local store %s", self._path)
            self._quarantine_unlocked()
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring local store %s; expected a JSON object", self._path)
            self._quarantine_unlocked()
            return {}
        return raw

    def _quarantine_unlocked(self) -> None:
        # Writes after this start from an empty store; the old bytes stay in corrupt_path.
        target = self.corrupt_path
        try:
            os.replace(self._path, target)
        except OSError:
            logger.exception("Failed to move unreadable local store %s aside", self._path)
            return
        logger.warning("Moved unreadable local store to %s", target)

    def _write_unlocked(self, entries: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(entries, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self._path)

    def get_item(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._load_unlocked().get(key)

    def set_item(self, key: str, value: Any) -> None:
        with self._lock:
            entries = self._load_unlocked()
            entries[key] = value
            self._write_unlocked(entries)

    def remove_item(self, key: str) -> None:
        with self._lock:
            entries = self._load_unlocked()
            if entries.pop(key, None) is not None:
                self._write_unlocked(entries)

    def load_growth_data(self) -> Optional[GrowthData]:
        """Return the stored snapshot, or ``None`` when absent or unreadable."""
        payload = self.get_item(STORAGE_KEY)
        if payload is None:
            return None
        try:
            return GrowthData.model_validate(payload)
        except ValidationError:
            logger.exception("Failed to parse stored growth data")
            return None

    def save_growth_data(self, data: GrowthData) -> None:
        self.set_item(STORAGE_KEY, data.to_document())


__all__ = ["LocalStore", "STORAGE_KEY"]
