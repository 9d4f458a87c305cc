from __future__ import annotations

# This module is the "orchestrator" for one spot search.
# It wires together:
# - the normalized catalog (Spot list)
# - access rules (AccessPolicy) + the session entitlement (EntitlementStore)
# - the filter engine (FilterEngine) + favorites (FavoritesStore)
# - the compass message (CompassAdvisor)
#
# Design goal:
# - Keep each layer focused (catalog loads, policy decides, engine filters, this file wires).
# - Fail open on optional state (storage problems never block a search).

import logging
import time
from dataclasses import dataclass
from typing import Any

from familyspots.access.entitlements import EntitlementStore, describe_status, status_to_record
from familyspots.access.policy import AccessPolicy
from familyspots.catalog.loader import Catalog, load_catalog
from familyspots.catalog.registry import CategoryRegistry
from familyspots.compass.advisor import CompassAdvisor
from familyspots.companion.daylog import DayLogStore
from familyspots.companion.favorites import FavoritesStore
from familyspots.config.settings import Settings, get_settings, get_texts
from familyspots.core.env import resolve_project_path
from familyspots.core.i18n import MessageTable
from familyspots.core.storage import JsonFileStore, KeyValueStore
from familyspots.core.time import utc_now
from familyspots.domain.models import CompassStats, FilterState, SearchResult, Spot
from familyspots.filters.engine import FilterEngine, SortMode

logger = logging.getLogger(__name__)


@dataclass
class SpotDirectory:
    """All collaborators of a single local session."""

    settings: Settings
    registry: CategoryRegistry
    policy: AccessPolicy
    engine: FilterEngine
    compass: CompassAdvisor
    entitlements: EntitlementStore
    favorites: FavoritesStore
    daylog: DayLogStore
    texts: MessageTable
    catalog: Catalog

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        *,
        store: KeyValueStore | None = None,
        catalog: Catalog | None = None,
    ) -> "SpotDirectory":
        """Wire a directory from settings; `store` and `catalog` can be injected (tests)."""
        settings = settings or get_settings()
        registry = CategoryRegistry.from_settings()
        policy = AccessPolicy.from_settings(registry=registry, enabled=settings.features.plus)
        engine = FilterEngine.from_settings(settings, policy, registry)
        texts = MessageTable(get_texts())
        # Persist to a single JSON file unless the caller injects a store.
        kv = store if store is not None else JsonFileStore(resolve_project_path(settings.storage.path))
        keys = settings.storage.keys

        return cls(
            settings=settings,
            registry=registry,
            policy=policy,
            engine=engine,
            compass=CompassAdvisor(texts, radius_steps_km=settings.filters.radius_steps_km),
            entitlements=EntitlementStore.from_settings(settings, kv, policy),
            favorites=FavoritesStore(kv, key=keys.favorites),
            daylog=DayLogStore(kv, key=keys.daylog),
            texts=texts,
            catalog=catalog if catalog is not None else load_catalog(settings, registry),
        )

    @property
    def spots(self) -> list[Spot]:
        return self.catalog.spots

    def entitlement_snapshot(self, lang: str | None) -> dict[str, Any]:
        status = self.entitlements.get_status()
        return {
            **status_to_record(status),
            "label": describe_status(status, lang, self.texts, self.policy),
        }

    def search(
        self,
        state: FilterState | None = None,
        *,
        lang: str | None = None,
        sort: SortMode = "catalog",
    ) -> SearchResult:
        """Run one filter pass and build the compass message for it."""
        timings_ms: dict[str, int] = {}
        state = state or FilterState()
        lang = lang or self.settings.app.default_language

        # Read session state once per pass (entitlement expiry is evaluated here).
        t0 = time.monotonic()
        status = self.entitlements.get_status()
        favorites = self.favorites.load() if self.settings.features.favorites else frozenset()
        timings_ms["load_state"] = int((time.monotonic() - t0) * 1000)

        t0 = time.monotonic()
        results = self.engine.filter_and_sort(self.spots, state, status, favorites, sort=sort)
        timings_ms["filter"] = int((time.monotonic() - t0) * 1000)

        # Count spots hidden only by the access gate (for an "unlock more" hint).
        locked = sum(1 for s in self.spots if not self.policy.is_spot_unlocked(s, status))

        compass = None
        if self.settings.features.compass:
            stats = CompassStats(matched_count=len(results), favorites_count=len(favorites))
            compass = self.compass.summarize(state, stats, lang)

        logger.debug("Search matched %s of %s spots (locked=%s)", len(results), len(self.spots), locked)
        return SearchResult(
            generated_at=utc_now(),
            query=state,
            results=results,
            compass=compass,
            meta={
                "total": len(self.spots),
                "matched": len(results),
                "locked": locked,
                "sort": sort,
                "lang": lang,
                "timings_ms": timings_ms,
                "entitlement": self.entitlement_snapshot(lang),
            },
        )
