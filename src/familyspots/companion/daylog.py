"""
"My day" log: a single free-text note with its save time.

Stored as `{"text": str, "ts": epoch milliseconds}` under `storage.keys.daylog`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from familyspots.core.storage import KeyValueStore, StorageError
from familyspots.core.time import ensure_utc, utc_now
from familyspots.domain.models import DayLogEntry

logger = logging.getLogger(__name__)


class DayLogStore:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = "fs_daylog_last",
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._key = key
        self._clock = clock
        self._session: DayLogEntry | None = None

    def save(self, text: str | None) -> DayLogEntry | None:
        """Save a trimmed note. Blank text is ignored and returns None."""
        cleaned = (text or "").strip()
        if not cleaned:
            return None
        entry = DayLogEntry(text=cleaned, saved_at=ensure_utc(self._clock()))
        self._session = entry
        payload = {"text": entry.text, "ts": int(entry.saved_at.timestamp() * 1000)}
        try:
            self._store.set(self._key, payload)
        except StorageError as e:
            logger.warning("Day log not persisted: %s", e)
        return entry

    def load(self) -> DayLogEntry | None:
        if self._session is not None:
            return self._session
        raw = self._store.get(self._key)
        if not isinstance(raw, dict) or not isinstance(raw.get("text"), str) or not raw["text"].strip():
            return None
        ts = raw.get("ts")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            return None
        try:
            saved_at = datetime.fromtimestamp(ts / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        return DayLogEntry(text=raw["text"].strip(), saved_at=saved_at)
