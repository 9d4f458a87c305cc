"""
Tag resolution.

Two jobs:
- merge a spot's explicit tags with the tags implied by its categories
  (computed once by the normalizer and stored on `Spot.merged_tags`);
- turn the set of active filter chips into one tag union.
"""

from __future__ import annotations

from typing import Iterable

from familyspots.catalog.registry import CategoryRegistry
from familyspots.domain.models import FilterChip, Spot


def _clean(tag: object) -> str:
    return str(tag).strip().lower()


class TagResolver:
    def __init__(self, registry: CategoryRegistry):
        self._registry = registry

    def merge(self, tags: Iterable[str], categories: Iterable[str]) -> tuple[str, ...]:
        """Explicit tags first (in order), then implied tags of each category (sorted per category)."""
        out: list[str] = []
        seen: set[str] = set()
        for tag in tags:
            t = _clean(tag)
            if t and t not in seen:
                seen.add(t)
                out.append(t)
        for slug in categories:
            for t in sorted(self._registry.implied_tags(slug)):
                if t not in seen:
                    seen.add(t)
                    out.append(t)
        return tuple(out)

    def tags_for(self, spot: Spot) -> frozenset[str]:
        if spot.merged_tags:
            return frozenset(spot.merged_tags)
        return frozenset(self.merge(spot.tags, spot.categories))


def resolve_chips(active_ids: Iterable[str], chips: Iterable[FilterChip]) -> frozenset[str]:
    """Union of the tag sets of every active chip. Empty means "no chip filter"."""
    active = {str(i) for i in active_ids}
    if not active:
        return frozenset()
    out: set[str] = set()
    for chip in chips:
        if chip.id in active:
            out.update(chip.tags)
    return frozenset(out)
