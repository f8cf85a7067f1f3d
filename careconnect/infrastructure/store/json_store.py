from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from careconnect.application.ports.key_value_storage import KeyValueStoragePort


class JsonLocalStorage(KeyValueStoragePort):
    """
    File-backed key/value storage standing in for the browser's localStorage.

    One JSON object per file; every write goes through a temp file and an
    atomic rename so a crash never leaves a half-written record behind.
    """

    def __init__(self, path: str = "./data/local_storage.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _load(self) -> dict[str, Any]:
        """Load the whole file, return empty storage if missing or corrupted."""
        if not self._path.exists():
            return {}

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            self._logger.warning("Local storage unreadable, starting empty", extra={"error": str(e)})
            return {}

        if not isinstance(data, dict):
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        """Save storage to disk atomically."""
        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(self._path)
        except Exception:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass
            raise

    def get_item(self, key: str) -> str | None:
        with self._lock:
            value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key not in data:
                return
            del data[key]
            self._save(data)
