"""
Raw catalog record -> `Spot`.

Catalog records come from several authoring tools and use different field
names for the same thing (`lat` / `latitude` / `location.lat`, `title` /
`name` / `spotName`, ...). This module folds them into one typed shape and
precomputes the derived fields the filter engine reads on every pass
(`merged_tags`, `search_text`).

Rules:
- A record without a non-empty `id` (after string coercion) is dropped.
- Bad coordinates drop the location, not the record.
- List-like fields accept either a list or a comma-separated string.
- Boolean flags are true if any of their aliases is true.
- Normalizing a `Spot` (or its `model_dump()`) returns an equal `Spot`.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

from familyspots.catalog.registry import CategoryRegistry
from familyspots.domain.models import GeoPoint, Spot
from familyspots.filters.tags import TagResolver

logger = logging.getLogger(__name__)

DEFAULT_BIG_ADVENTURE_MIN_MINUTES = 240.0

_NAME_KEYS = ("title", "name", "spotName")
_AGE_KEYS = ("ageGroups", "age_groups", "age", "ages")
_MOOD_KEYS = ("moods", "moodTags", "mood")
_TRAVEL_KEYS = ("travelModes", "travel_modes", "travel", "tripModes")
_BIG_ADVENTURE_KEYS = ("bigAdventure", "big_adventure", "isBigAdventure", "longTrip")
_VERIFIED_KEYS = ("verified", "isVerified")
_PLUS_ONLY_KEYS = ("plusOnly", "plus_only", "plus")
_VISIT_KEYS = ("visitMinutes", "visit_minutes")

_TRUE_STRINGS = {"1", "true", "yes", "y", "ja"}


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, tuple)):
        return ""
    return str(value).strip()


def _first_text(raw: Mapping[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        s = _text(raw.get(key))
        if s:
            return s
    return ""


def _first_present(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, "", [], ()):
            return value
    return None


def as_list(raw: Any) -> list[str]:
    """Normalize a list or comma-separated string into trimmed, non-empty strings."""
    if raw is None:
        return []
    if isinstance(raw, str):
        parts: Iterable[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple, set, frozenset)):
        parts = raw
    else:
        return []
    return [s for s in (_text(p) for p in parts) if s]


def _dedupe(values: Iterable[str]) -> tuple[str, ...]:
    out: list[str] = []
    seen: set[str] = set()
    for v in values:
        if v and v not in seen:
            seen.add(v)
            out.append(v)
    return tuple(out)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(str(value).strip().replace(",", ".")) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def _location(raw: Mapping[str, Any]) -> GeoPoint | None:
    nested = raw.get("location") if isinstance(raw.get("location"), Mapping) else {}
    lat = _as_float(_first_present(raw, ("lat", "latitude")))
    if lat is None:
        lat = _as_float(nested.get("lat"))
    lng = _as_float(_first_present(raw, ("lng", "lon", "longitude")))
    if lng is None:
        lng = _as_float(_first_present(nested, ("lng", "lon")))
    if lat is None or lng is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return GeoPoint(lat=lat, lng=lng)


def _categories(raw: Mapping[str, Any], registry: CategoryRegistry) -> tuple[str, ...]:
    collected: list[str] = []
    collected.extend(as_list([raw.get("category")]))
    collected.extend(as_list(raw.get("categories")))
    collected.extend(as_list([raw.get("categorySlug")]))
    if not collected:
        collected.extend(as_list([raw.get("type")]))
    return _dedupe(registry.canonical_slug(c) or "" for c in collected)


def _any_true(raw: Mapping[str, Any], keys: Iterable[str]) -> bool:
    return any(_as_bool(raw.get(key)) for key in keys)


def _subtitle(raw: Mapping[str, Any], city: str, town: str, country: str, address: str) -> str:
    if city and country:
        return f"{city}, {country}"
    if city:
        return city
    if town and country:
        return f"{town}, {country}"
    if address:
        return address
    return _first_text(raw, ("subtitle", "shortDescription"))


def build_search_text(
    name: str, subtitle: str, categories: Iterable[str], tags: Iterable[str], merged_tags: Iterable[str]
) -> str:
    """Lower-cased haystack for the free-text filter."""
    primary = next(iter(categories), "")
    parts = [name, subtitle, primary, " ".join(tags), " ".join(merged_tags)]
    return " ".join(p for p in parts if p).lower()


def normalize_spot(
    raw: Mapping[str, Any] | Spot,
    registry: CategoryRegistry,
    *,
    big_adventure_min_minutes: float = DEFAULT_BIG_ADVENTURE_MIN_MINUTES,
) -> Spot | None:
    """Return a `Spot`, or None when the record has no usable id."""
    if isinstance(raw, Spot):
        raw = raw.model_dump()
    if not isinstance(raw, Mapping):
        logger.debug("Dropping non-mapping catalog record: %r", type(raw).__name__)
        return None

    spot_id = _text(raw.get("id"))
    if not spot_id:
        logger.debug("Dropping catalog record without id: %r", _first_text(raw, _NAME_KEYS) or "?")
        return None

    city = _text(raw.get("city"))
    town = _text(raw.get("town"))
    country = _text(raw.get("country"))
    address = _text(raw.get("address"))
    name = _first_text(raw, _NAME_KEYS) or spot_id
    subtitle = _subtitle(raw, city, town, country, address)

    categories = _categories(raw, registry)
    tags = _dedupe(t.lower() for t in as_list(raw.get("tags")))
    merged_tags = TagResolver(registry).merge(tags, categories)

    visit_minutes = _as_float(_first_present(raw, _VISIT_KEYS))
    if visit_minutes is not None and visit_minutes <= 0:
        visit_minutes = None

    big_adventure = (
        _any_true(raw, _BIG_ADVENTURE_KEYS)
        or registry.is_big_adventure(categories, tags)
        or (visit_minutes is not None and visit_minutes >= big_adventure_min_minutes)
    )

    return Spot(
        id=spot_id,
        name=name,
        subtitle=subtitle,
        city=city,
        town=town,
        address=address,
        country=country,
        categories=categories,
        tags=tags,
        age_groups=_dedupe(v.lower() for v in as_list(_first_present(raw, _AGE_KEYS))),
        moods=_dedupe(v.lower() for v in as_list(_first_present(raw, _MOOD_KEYS))),
        travel_modes=_dedupe(v.lower() for v in as_list(_first_present(raw, _TRAVEL_KEYS))),
        verified=_any_true(raw, _VERIFIED_KEYS),
        big_adventure=big_adventure,
        plus_only=_any_true(raw, _PLUS_ONLY_KEYS),
        location=_location(raw),
        visit_minutes=visit_minutes,
        merged_tags=merged_tags,
        search_text=build_search_text(name, subtitle, categories, tags, merged_tags),
    )


def normalize_catalog(
    raws: Iterable[Any],
    registry: CategoryRegistry,
    *,
    big_adventure_min_minutes: float = DEFAULT_BIG_ADVENTURE_MIN_MINUTES,
) -> list[Spot]:
    """Normalize a record list; drop malformed records and later duplicates of an id."""
    spots: list[Spot] = []
    seen: set[str] = set()
    dropped = 0
    duplicates = 0
    for raw in raws:
        spot = normalize_spot(raw, registry, big_adventure_min_minutes=big_adventure_min_minutes)
        if spot is None:
            dropped += 1
            continue
        if spot.id in seen:
            duplicates += 1
            continue
        seen.add(spot.id)
        spots.append(spot)
    if dropped or duplicates:
        logger.info("Catalog normalized: kept=%s dropped=%s duplicates=%s", len(spots), dropped, duplicates)
    return spots
