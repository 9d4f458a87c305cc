"""
API routes.

Endpoints:
- GET  `/api/spots`: visible spots for the given filters (+ compass message).
- GET  `/api/categories`: category options (labels, groups, access level).
- GET  `/api/filters`: filter chips, radius steps and feature flags for the UI.
- GET  `/api/compass`: compass message keys + rendered text.
- GET  `/api/plus`, POST `/api/plus/redeem`: entitlement status and code redemption.
- GET/POST `/api/favorites`, GET/POST `/api/daylog`: companion state.
- GET  `/api/quality`: offline catalog quality report.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ValidationError

from familyspots.config.settings import get_settings
from familyspots.core.i18n import pick_label
from familyspots.directory.service import SpotDirectory
from familyspots.domain.models import CompassStats, FilterState, GeoPoint, SearchResult
from familyspots.filters.engine import SortMode
from familyspots.quality.report import build_quality_report_from_settings

router = APIRouter()


@lru_cache
def _directory() -> SpotDirectory:
    return SpotDirectory.build(get_settings())


class RedeemRequest(BaseModel):
    code: str = ""


class FavoriteRequest(BaseModel):
    spot_id: str


class DayLogRequest(BaseModel):
    text: str = ""


def _bad_request(e: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)})


def _filter_state(
    q: str | None,
    category: str | None,
    age: str | None,
    mood: str | None,
    travel: str | None,
    big_adventures: bool,
    verified: bool,
    favorites: bool,
    chips: str | None,
    lat: float | None,
    lng: float | None,
    radius: int | None,
) -> FilterState:
    if (lat is None) != (lng is None):
        raise ValueError("lat and lng must be given together")
    try:
        return FilterState(
            search_term=q or "",
            category=category,
            age_group=age or "all",
            mood=mood,
            travel_mode=travel,
            big_adventures_only=big_adventures,
            verified_only=verified,
            favorites_only=favorites,
            active_chip_ids=frozenset(c.strip() for c in (chips or "").split(",") if c.strip()),
            center=GeoPoint(lat=lat, lng=lng) if lat is not None and lng is not None else None,
            radius_index=radius,
        )
    except ValidationError as e:
        raise ValueError(str(e)) from e


@router.get("/api/spots", response_model=SearchResult)
def get_spots(
    q: str | None = None,
    category: str | None = None,
    age: str | None = None,
    mood: str | None = None,
    travel: str | None = None,
    big_adventures: bool = False,
    verified: bool = False,
    favorites: bool = False,
    chips: str | None = Query(default=None, description="Comma-separated chip ids"),
    lat: float | None = None,
    lng: float | None = None,
    radius: int | None = None,
    sort: SortMode = "catalog",
    lang: str | None = None,
) -> SearchResult:
    """Run one filter pass over the catalog."""
    try:
        state = _filter_state(
            q, category, age, mood, travel, big_adventures, verified, favorites, chips, lat, lng, radius
        )
        return _directory().search(state, lang=lang, sort=sort)
    except ValueError as e:
        raise _bad_request(e) from e


@router.get("/api/categories")
def get_categories(lang: str | None = None) -> dict:
    directory = _directory()
    rows = []
    for row in directory.registry.categories_for_ui(lang):
        rule = directory.policy.rule_for(row["slug"])
        rows.append({**row, "access": rule.model_dump()})
    return {"categories": rows, "groups": directory.registry.groups()}


@router.get("/api/filters")
def get_filters(lang: str | None = None) -> dict:
    """Static filter options for the UI."""
    directory = _directory()
    settings = directory.settings
    chips = [
        {"id": chip.id, "label": pick_label(chip.labels, lang, chip.id), "tags": sorted(chip.tags)}
        for chip in directory.registry.chips()
    ]
    return {
        "chips": chips,
        "radius_steps_km": list(settings.filters.radius_steps_km),
        "default_radius_index": settings.filters.default_radius_index,
        "features": settings.features.model_dump(),
        "plans": directory.policy.plans_for_ui(lang),
    }


@router.get("/api/compass")
def get_compass(
    mood: str | None = None,
    travel: str | None = None,
    age: str | None = None,
    radius: int | None = None,
    favorites: bool = False,
    matched: int = Query(default=0, ge=0),
    favorites_count: int = Query(default=0, ge=0),
    lang: str | None = None,
) -> dict:
    """Compass message for explicit filter values and counts (no catalog pass)."""
    directory = _directory()
    try:
        state = FilterState(
            mood=mood,
            travel_mode=travel,
            age_group=age or "all",
            radius_index=radius,
            favorites_only=favorites,
        )
    except ValidationError as e:
        raise _bad_request(e) from e
    decision = directory.compass.decide(state, CompassStats(matched_count=matched, favorites_count=favorites_count))
    return {"keys": list(decision.keys), "message": directory.compass.render(decision, lang)}


@router.get("/api/plus")
def get_plus(lang: str | None = None) -> dict:
    return _directory().entitlement_snapshot(lang)


@router.post("/api/plus/redeem")
def post_plus_redeem(body: RedeemRequest, lang: str | None = None) -> dict:
    directory = _directory()
    result = directory.entitlements.redeem(body.code)
    key = "redeem.ok" if result.ok else f"redeem.{result.reason}"
    return {
        **result.model_dump(mode="json"),
        "message": directory.texts.text(key, lang),
        "entitlement": directory.entitlement_snapshot(lang),
    }


@router.get("/api/favorites")
def get_favorites() -> dict:
    return {"favorites": sorted(_directory().favorites.load())}


@router.post("/api/favorites")
def post_favorite(body: FavoriteRequest) -> dict:
    directory = _directory()
    try:
        added = directory.favorites.toggle(body.spot_id)
    except ValueError as e:
        raise _bad_request(e) from e
    return {"spot_id": body.spot_id.strip(), "favorite": added, "favorites": sorted(directory.favorites.load())}


@router.get("/api/daylog")
def get_daylog() -> dict:
    entry = _directory().daylog.load()
    return {"entry": entry.model_dump(mode="json") if entry else None}


@router.post("/api/daylog")
def post_daylog(body: DayLogRequest) -> dict:
    entry = _directory().daylog.save(body.text)
    if entry is None:
        raise HTTPException(status_code=400, detail={"code": "EMPTY_TEXT", "message": "Day log text is empty."})
    return {"entry": entry.model_dump(mode="json")}


@router.get("/api/quality")
def get_quality_report() -> dict:
    """Return an offline data quality report (catalog sanity checks)."""
    directory = _directory()
    return build_quality_report_from_settings(directory.settings, directory.registry, directory.policy)
