"""
Spot catalog loader.

The catalog is a JSON document (default: `data/spots.json`) in one of two shapes:
- a bare array of spot records, or
- `{"spots": [...], "index": {...}}` where `index` carries optional metadata.

The source may also be an `http(s)://` URL (fetched with httpx). Records are
folded into `Spot` models by `catalog.normalize`; malformed ones are dropped.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from familyspots.catalog.normalize import normalize_catalog
from familyspots.catalog.registry import CategoryRegistry
from familyspots.config.settings import Settings
from familyspots.core.env import is_url, resolve_project_path
from familyspots.core.http import get_json
from familyspots.domain.models import Spot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Catalog:
    spots: list[Spot]
    index: dict[str, Any] = field(default_factory=dict)
    dropped: int = 0
    source: str = ""

    def by_id(self) -> dict[str, Spot]:
        return {s.id: s for s in self.spots}


def split_payload(payload: Any) -> tuple[list[Any], dict[str, Any]]:
    """Return (records, index) for either catalog shape."""
    if isinstance(payload, list):
        return payload, {}
    if isinstance(payload, dict):
        spots = payload.get("spots")
        if not isinstance(spots, list):
            raise ValueError("Catalog object must contain a 'spots' list.")
        index = payload.get("index")
        return spots, index if isinstance(index, dict) else {}
    raise ValueError("Catalog root must be an array or an object with 'spots'.")


def load_raw_catalog(source: str | Path, *, timeout_seconds: float = 15) -> tuple[list[Any], dict[str, Any]]:
    """Read the raw catalog from a path or URL."""
    if is_url(source):
        payload = get_json(str(source), timeout_seconds=timeout_seconds)
    else:
        resolved = resolve_project_path(source)
        payload = json.loads(resolved.read_text(encoding="utf-8"))
    return split_payload(payload)


def load_catalog(settings: Settings, registry: CategoryRegistry, *, source: str | Path | None = None) -> Catalog:
    """Load and normalize the configured catalog."""
    src = source or settings.catalog.path
    records, index = load_raw_catalog(src, timeout_seconds=settings.catalog.http_timeout_seconds)
    spots = normalize_catalog(
        records,
        registry,
        big_adventure_min_minutes=settings.filters.big_adventure_min_visit_minutes,
    )
    dropped = len(records) - len(spots)
    logger.info("Loaded catalog %s: %s spots (%s dropped)", src, len(spots), dropped)
    return Catalog(spots=spots, index=index, dropped=dropped, source=str(src))
