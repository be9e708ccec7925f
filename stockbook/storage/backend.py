"""Key-value persistence backends.

Values are stored as strings (JSON-encoded collections), one key per
collection, mirroring browser local storage. Every write replaces the whole
value for its key.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from ..utils.exceptions import PersistenceError
from ..utils.logger import get_error_logger

ITEMS_KEY = "inv_items"
LOGS_KEY = "inv_logs"
SETTINGS_KEY = "inv_settings"
VERSION_KEY = "inv_app_version"
THEME_KEY = "theme"


class KeyValueStorage:
    """Base class for string key-value storage."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def keys(self):
        raise NotImplementedError

    def read_json(self, key: str, default: Any = None) -> Any:
        """
        Read and decode the JSON value stored under ``key``.

        A missing key or an undecodable value yields ``default``; the decode
        failure is logged.
        """
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            get_error_logger().error(f"Error parsing stored value for '{key}': {str(e)}")
            return default

    def write_json(self, key: str, value: Any) -> None:
        """Encode ``value`` as JSON and store it under ``key``."""
        self.set(key, json.dumps(value, ensure_ascii=False))


class MemoryStorage(KeyValueStorage):
    """
    In-process storage.

    ``quota_bytes`` caps the total size of keys plus values; a write that
    would exceed it raises PersistenceError and leaves storage unchanged.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None, quota_bytes: Optional[int] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self.quota_bytes = quota_bytes

    def _size_with(self, key: str, value: str) -> int:
        data = dict(self._data)
        data[key] = value
        return sum(len(k.encode("utf-8")) + len(v.encode("utf-8")) for k, v in data.items())

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None and self._size_with(key, value) > self.quota_bytes:
            raise PersistenceError(
                f"Storage quota exceeded writing '{key}'",
                {"key": key, "quota_bytes": self.quota_bytes}
            )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())


class JsonFileStorage(KeyValueStorage):
    """
    Storage backed by a single JSON document on disk.

    The document is loaded once and rewritten whole on every change, via a
    temporary file and an atomic rename.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read data file {self.path}", {"error": str(e)})

        if not isinstance(data, dict):
            raise PersistenceError(f"Data file {self.path} does not contain a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write data file {self.path}", {"error": str(e)})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        data = dict(self._data)
        data[key] = value
        self._flush(data)
        self._data = data

    def remove(self, key: str) -> None:
        if key not in self._data:
            return
        data = dict(self._data)
        del data[key]
        self._flush(data)
        self._data = data

    def keys(self):
        return list(self._data.keys())
