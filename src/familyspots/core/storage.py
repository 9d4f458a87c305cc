"""
Key-value persistence capability.

The entitlement, favorites and day-log stores never touch the filesystem
directly. They receive a `KeyValueStore`:
- `MemoryStore`: process-local, used by tests and as a session fallback.
- `JsonFileStore`: one JSON document on disk (default `.familyspots/state.json`).

Failure contract:
- Reads never raise. A missing or corrupt file reads as "no value".
- Writes raise `StorageError`; callers log it and keep their in-memory state.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a value cannot be persisted (disk full, read-only, bad value)."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """A dict-backed store. Values are JSON round-tripped to mimic persistence."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"value for '{key}' is not JSON-serializable: {e}") from e

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """A filesystem-backed store holding all keys in a single JSON object."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", self._path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring state file %s: root is not an object", self._path)
            return {}
        return raw

    def _write_all(self, data: dict[str, Any]) -> None:
        """Write via a temporary file + atomic replace to avoid partial/corrupt files."""
        try:
            payload = json.dumps(data, ensure_ascii=False, indent=2)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(self._path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"cannot write {self._path}: {e}") from e

    def get(self, key: str) -> Any | None:
        return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)
