"""
Favorites persistence.

Stored as a JSON array of spot ids under `storage.keys.favorites`. The filter
engine only ever sees the resulting frozenset.
"""

from __future__ import annotations

import logging
from typing import Iterable

from familyspots.core.storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)


def _clean_ids(values: Iterable[object]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for v in values:
        if v is None or isinstance(v, (dict, list)):
            continue
        s = str(v).strip()
        if s and s not in seen:
            seen.add(s)
            out.append(s)
    return out


class FavoritesStore:
    def __init__(self, store: KeyValueStore, *, key: str = "fs_favorites"):
        self._store = store
        self._key = key
        self._session: frozenset[str] | None = None

    def load(self) -> frozenset[str]:
        if self._session is not None:
            return self._session
        raw = self._store.get(self._key)
        if not isinstance(raw, list):
            return frozenset()
        return frozenset(_clean_ids(raw))

    def save(self, ids: Iterable[str]) -> frozenset[str]:
        cleaned = _clean_ids(ids)
        self._session = frozenset(cleaned)
        try:
            self._store.set(self._key, sorted(cleaned))
        except StorageError as e:
            logger.warning("Favorites not persisted: %s", e)
        return self._session

    def is_favorite(self, spot_id: str) -> bool:
        return str(spot_id).strip() in self.load()

    def toggle(self, spot_id: str) -> bool:
        """Flip `spot_id`; returns True if it is a favorite afterwards."""
        sid = str(spot_id).strip()
        if not sid:
            raise ValueError("spot id must be non-empty")
        current = set(self.load())
        if sid in current:
            current.discard(sid)
            added = False
        else:
            current.add(sid)
            added = True
        self.save(current)
        return added
