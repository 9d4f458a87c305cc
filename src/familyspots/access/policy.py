"""
Category access policy.

Three access levels:
- `free`: always visible.
- `subscription`: needs an active status on the rule's subscription plan.
- `addon`: needs the subscription condition AND the add-on id in `status.addons`.

A spot is hidden if at least one of its categories is restricted and locked,
even when other categories are free. `plus_only` spots ignore category rules
and need only an active status.
"""

from __future__ import annotations

from familyspots.catalog.registry import CategoryRegistry
from familyspots.config.settings import AddonConfig, SubscriptionConfig, Taxonomy, get_taxonomy
from familyspots.core.i18n import pick_label
from familyspots.domain.models import FREE_RULE, AccessRule, EntitlementStatus, Spot


class AccessPolicy:
    def __init__(self, taxonomy: Taxonomy, *, registry: CategoryRegistry | None = None, enabled: bool = True):
        self._registry = registry
        self._enabled = enabled
        self._rules: dict[str, AccessRule] = {
            slug: AccessRule(level=cfg.level, subscription_id=cfg.subscription_id, addon_id=cfg.addon_id)
            for slug, cfg in taxonomy.access.rules.items()
        }
        self._subscriptions: dict[str, SubscriptionConfig] = dict(taxonomy.subscriptions)
        self._addons: dict[str, AddonConfig] = dict(taxonomy.addons)

        for addon_id, addon in self._addons.items():
            if addon.requires_subscription_id not in self._subscriptions:
                raise ValueError(
                    f"addon '{addon_id}' requires unknown subscription '{addon.requires_subscription_id}'"
                )

    @classmethod
    def from_settings(cls, *, registry: CategoryRegistry | None = None, enabled: bool = True) -> "AccessPolicy":
        return cls(get_taxonomy(), registry=registry, enabled=enabled)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _canonical(self, slug: str) -> str:
        if self._registry is None:
            return str(slug).strip()
        return self._registry.canonical_slug(slug) or ""

    def rule_for(self, slug: str) -> AccessRule:
        return self._rules.get(self._canonical(slug), FREE_RULE)

    def is_restricted(self, slug: str) -> bool:
        return self.rule_for(slug).level != "free"

    def is_unlocked(self, slug: str, status: EntitlementStatus) -> bool:
        rule = self.rule_for(slug)
        if rule.level == "free":
            return True
        has_plan = bool(status.active) and status.plan == rule.subscription_id
        if rule.level == "subscription":
            return has_plan
        return has_plan and rule.addon_id in status.addons

    def is_spot_unlocked(self, spot: Spot, status: EntitlementStatus) -> bool:
        if not self._enabled:
            return True
        if spot.plus_only:
            return bool(status.active)
        return all(self.is_unlocked(slug, status) for slug in spot.categories)

    def plans_required(self, spot: Spot) -> set[tuple[str, str | None]]:
        """(subscription_id, addon_id) pairs needed to see `spot`; empty for free spots."""
        out: set[tuple[str, str | None]] = set()
        for slug in spot.categories:
            rule = self.rule_for(slug)
            if rule.level != "free" and rule.subscription_id:
                out.add((rule.subscription_id, rule.addon_id if rule.level == "addon" else None))
        if spot.plus_only and not out:
            default_plan = next(iter(self._subscriptions), None)
            if default_plan:
                out.add((default_plan, None))
        return out

    def restricted_slugs(self) -> list[str]:
        return [slug for slug, rule in self._rules.items() if rule.level != "free"]

    def addon_ids(self) -> list[str]:
        return list(self._addons)

    def subscription(self, subscription_id: str) -> SubscriptionConfig | None:
        return self._subscriptions.get(subscription_id)

    def addon(self, addon_id: str) -> AddonConfig | None:
        return self._addons.get(addon_id)

    def subscription_label(self, subscription_id: str, lang: str | None) -> str:
        sub = self._subscriptions.get(subscription_id)
        return pick_label(sub.labels if sub else None, lang, subscription_id)

    def addon_label(self, addon_id: str, lang: str | None) -> str:
        addon = self._addons.get(addon_id)
        return pick_label(addon.labels if addon else None, lang, addon_id)

    def plans_for_ui(self, lang: str | None) -> dict[str, list[dict]]:
        """Localized subscription and add-on catalog for a pricing/status view."""
        subscriptions = [
            {
                "id": sub_id,
                "label": pick_label(sub.labels, lang, sub_id),
                "short_label": pick_label(sub.short_labels, lang, sub_id),
                "description": pick_label(sub.descriptions, lang, ""),
                "price_per_year": sub.price_per_year,
                "currency": sub.currency,
            }
            for sub_id, sub in self._subscriptions.items()
        ]
        addons = [
            {
                "id": addon_id,
                "label": pick_label(addon.labels, lang, addon_id),
                "description": pick_label(addon.descriptions, lang, ""),
                "requires_subscription_id": addon.requires_subscription_id,
                "price_per_year": addon.price_per_year,
                "currency": addon.currency,
                "categories": list(addon.categories),
            }
            for addon_id, addon in self._addons.items()
        ]
        return {"subscriptions": subscriptions, "addons": addons}
