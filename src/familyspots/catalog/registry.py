"""
Category registry.

A read-only lookup over the packaged taxonomy (`config/taxonomy.yaml`):
- slug -> group, localized labels, implied tags
- alias slug -> canonical slug (e.g. `kinder_museum` -> `kinder-museum`)
- filter chips (named tag bundles)

Unknown slugs never raise: labels fall back to the slug itself and implied
tags to an empty set, so user-submitted or future categories keep working.
"""

from __future__ import annotations

from typing import Iterable

from familyspots.config.settings import RelevanceConfig, Taxonomy, get_taxonomy
from familyspots.core.i18n import pick_label
from familyspots.domain.models import CategoryDefinition, FilterChip


class CategoryRegistry:
    def __init__(self, taxonomy: Taxonomy):
        self._groups = {name: dict(group.labels) for name, group in taxonomy.groups.items()}
        self._aliases = {str(k).strip().lower(): str(v) for k, v in taxonomy.aliases.items()}
        self._definitions: dict[str, CategoryDefinition] = {
            slug: CategoryDefinition(
                slug=slug,
                group=cfg.group,
                labels=dict(cfg.labels),
                tags=frozenset(t.strip().lower() for t in cfg.tags if t and t.strip()),
            )
            for slug, cfg in taxonomy.categories.items()
        }
        self._chips = tuple(
            FilterChip(
                id=chip.id,
                tags=frozenset(t.strip().lower() for t in chip.tags if t and t.strip()),
                labels=dict(chip.labels),
            )
            for chip in taxonomy.chips
        )
        self._big_categories = frozenset(taxonomy.big_adventure.categories)
        self._big_keywords = tuple(k.strip().lower() for k in taxonomy.big_adventure.tag_keywords if k.strip())
        self._relevance = taxonomy.relevance

    @classmethod
    def from_settings(cls) -> "CategoryRegistry":
        return cls(get_taxonomy())

    def canonical_slug(self, slug: str | None) -> str | None:
        """Map an alias to its canonical slug; other slugs pass through trimmed."""
        if slug is None:
            return None
        s = str(slug).strip()
        if not s:
            return None
        return self._aliases.get(s.lower(), s)

    def definition(self, slug: str) -> CategoryDefinition | None:
        canonical = self.canonical_slug(slug)
        return self._definitions.get(canonical) if canonical else None

    def is_known(self, slug: str) -> bool:
        return self.definition(slug) is not None

    def slugs(self) -> list[str]:
        return list(self._definitions)

    def label_for(self, slug: str, lang: str | None) -> str:
        definition = self.definition(slug)
        if definition is None:
            return str(slug)
        return pick_label(definition.labels, lang, definition.slug)

    def implied_tags(self, slug: str) -> frozenset[str]:
        definition = self.definition(slug)
        return definition.tags if definition else frozenset()

    def group_of(self, slug: str) -> str | None:
        definition = self.definition(slug)
        return definition.group if definition else None

    def groups(self) -> list[str]:
        return list(self._groups)

    def group_label(self, group: str, lang: str | None) -> str:
        return pick_label(self._groups.get(group), lang, group)

    def chips(self) -> tuple[FilterChip, ...]:
        return self._chips

    def is_big_adventure(self, categories: Iterable[str], tags: Iterable[str]) -> bool:
        """Category or tag part of the big-adventure rule (visit length is checked by the normalizer)."""
        if any(c in self._big_categories for c in categories):
            return True
        return any(k in t for t in tags for k in self._big_keywords)

    def relevance(self) -> RelevanceConfig:
        return self._relevance

    def categories_for_ui(self, lang: str | None) -> list[dict[str, str | None]]:
        """Category options in taxonomy order, labelled for `lang`."""
        out: list[dict[str, str | None]] = []
        for slug, definition in self._definitions.items():
            out.append(
                {
                    "slug": slug,
                    "label": self.label_for(slug, lang),
                    "group": definition.group,
                    "group_label": self.group_label(definition.group, lang) if definition.group else None,
                }
            )
        return out
