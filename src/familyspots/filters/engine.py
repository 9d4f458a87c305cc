"""
Filter engine.

`matches()` is a conjunction of independent predicates evaluated cheapest-first
and short-circuited. All predicates read precomputed `Spot` fields only, so a
full pass is safe to re-run on every keystroke.

Predicate order:
 1. entitlement gate      7. big adventures only
 2. free-text search      8. verified only
 3. category              9. favorites only
 4. age group            10. filter chips (tag union)
 5. mood                 11. radius around a center
 6. travel mode

Age group, mood and travel mode follow "declares none, passes any": a spot
that declares no value for the dimension matches every filter value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, Iterable, Literal, Sequence

from familyspots.access.policy import AccessPolicy
from familyspots.catalog.registry import CategoryRegistry
from familyspots.config.settings import FeatureFlags, Settings
from familyspots.core.geo import haversine_km
from familyspots.domain.models import EntitlementStatus, FilterState, GeoPoint, Spot
from familyspots.filters.relevance import RelevanceScorer
from familyspots.filters.tags import resolve_chips

SortMode = Literal["catalog", "distance", "relevance"]
SORT_MODES: tuple[str, ...] = ("catalog", "distance", "relevance")

DEFAULT_RADIUS_STEPS_KM: tuple[float | None, ...] = (5, 15, 30, 60, None)
DISTANCE_TOLERANCE_KM = 1e-9


@dataclass(frozen=True)
class _PreparedFilter:
    """Per-pass values derived once from a `FilterState`."""

    term: str
    category: str | None
    age_group: str | None
    mood: str | None
    travel_mode: str | None
    chip_tags: frozenset[str]
    center: GeoPoint | None
    radius_km: float | None


def _norm(value: str | None) -> str | None:
    if value is None:
        return None
    s = str(value).strip().lower()
    return s or None


def radius_step_km(steps: Sequence[float | None], index: int | None) -> float | None:
    """Radius in km for a step index; None means no limit (also for out-of-range indexes)."""
    if index is None or isinstance(index, bool):
        return None
    if not 0 <= index < len(steps):
        return None
    return steps[index]


def distance_km(spot: Spot, center: GeoPoint | None) -> float | None:
    """Great-circle distance from `center` to the spot, or None if either is unknown."""
    if center is None or spot.location is None:
        return None
    return haversine_km(center, spot.location)


class FilterEngine:
    def __init__(
        self,
        policy: AccessPolicy,
        registry: CategoryRegistry,
        *,
        radius_steps_km: Sequence[float | None] = DEFAULT_RADIUS_STEPS_KM,
        features: FeatureFlags | None = None,
    ):
        self._policy = policy
        self._registry = registry
        self._radius_steps = tuple(radius_steps_km)
        self._features = features or FeatureFlags()
        self._scorer = RelevanceScorer(registry.relevance())

    @classmethod
    def from_settings(cls, settings: Settings, policy: AccessPolicy, registry: CategoryRegistry) -> "FilterEngine":
        return cls(
            policy,
            registry,
            radius_steps_km=settings.filters.radius_steps_km,
            features=settings.features,
        )

    @property
    def radius_steps_km(self) -> tuple[float | None, ...]:
        return self._radius_steps

    def radius_km(self, index: int | None) -> float | None:
        return radius_step_km(self._radius_steps, index)

    def prepare(self, state: FilterState) -> _PreparedFilter:
        age = _norm(state.age_group)
        return _PreparedFilter(
            term=(state.search_term or "").strip().lower(),
            category=self._registry.canonical_slug(state.category),
            age_group=None if age in (None, "all") else age,
            mood=_norm(state.mood),
            travel_mode=_norm(state.travel_mode),
            chip_tags=resolve_chips(state.active_chip_ids, self._registry.chips()),
            center=state.center,
            radius_km=self.radius_km(state.radius_index),
        )

    def _matches(
        self,
        spot: Spot,
        state: FilterState,
        prepared: _PreparedFilter,
        status: EntitlementStatus,
        favorites: Collection[str],
    ) -> bool:
        features = self._features

        if features.plus and not self._policy.is_spot_unlocked(spot, status):
            return False

        if prepared.term and prepared.term not in spot.search_text:
            return False

        if prepared.category and prepared.category not in spot.categories:
            return False

        if prepared.age_group and spot.age_groups and prepared.age_group not in spot.age_groups:
            return False

        if features.mood_filter and prepared.mood and spot.moods and prepared.mood not in spot.moods:
            return False

        if (
            features.travel_mode
            and prepared.travel_mode
            and spot.travel_modes
            and prepared.travel_mode not in spot.travel_modes
        ):
            return False

        if features.big_adventure_filter and state.big_adventures_only and not spot.big_adventure:
            return False

        if features.verified_filter and state.verified_only and not spot.verified:
            return False

        if features.favorites and state.favorites_only and spot.id not in favorites:
            return False

        if prepared.chip_tags and prepared.chip_tags.isdisjoint(spot.merged_tags):
            return False

        if prepared.center is not None and prepared.radius_km is not None and spot.location is not None:
            if haversine_km(prepared.center, spot.location) > prepared.radius_km + DISTANCE_TOLERANCE_KM:
                return False

        return True

    def matches(
        self,
        spot: Spot,
        state: FilterState,
        status: EntitlementStatus,
        favorites: Collection[str] = frozenset(),
    ) -> bool:
        return self._matches(spot, state, self.prepare(state), status, favorites)

    def filter_and_sort(
        self,
        spots: Iterable[Spot],
        state: FilterState,
        status: EntitlementStatus,
        favorites: Collection[str] = frozenset(),
        *,
        sort: SortMode = "catalog",
    ) -> list[Spot]:
        """Visible spots in catalog order, or ordered by `sort`.

        - `distance`: nearest first; spots without a location last.
        - `relevance`: highest relevance score first, then nearest, then by name.
        """
        if sort not in SORT_MODES:
            raise ValueError(f"Unknown sort mode: {sort!r}")
        prepared = self.prepare(state)
        fav = favorites if isinstance(favorites, (set, frozenset)) else frozenset(favorites)
        out = [s for s in spots if self._matches(s, state, prepared, status, fav)]

        if sort == "distance" and prepared.center is not None:
            center = prepared.center

            def _key(spot: Spot) -> tuple[int, float]:
                d = distance_km(spot, center)
                return (1, 0.0) if d is None else (0, d)

            out.sort(key=_key)
        elif sort == "relevance":
            out.sort(key=lambda spot: self._relevance_key(spot, prepared))
        return out

    def _relevance_key(self, spot: Spot, prepared: _PreparedFilter) -> tuple[int, float, str]:
        score = self._scorer.score(
            spot,
            mood=prepared.mood if self._features.mood_filter else None,
            travel_mode=prepared.travel_mode if self._features.travel_mode else None,
            age_group=prepared.age_group,
        )
        d = distance_km(spot, prepared.center)
        return (-score, float("inf") if d is None else d, spot.name.casefold())
