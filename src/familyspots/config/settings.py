# src/familyspots/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/familyspots/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `FAMILYSPOTS_LOG_LEVEL`, `FAMILYSPOTS_CATALOG_PATH`)
- an external YAML file via `FAMILYSPOTS_CONFIG_PATH`

The static tables (categories, access rules, plans, filter chips) live in
`taxonomy.yaml` and the localized message table in `texts.yaml`. Both are
loaded once and treated as read-only configuration.

Design rule:
- Tuning knobs and lookup tables live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from familyspots.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `familyspots.config`."""
    text = resources.files("familyspots.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "Family Spots Map"
    log_level: str = "INFO"
    default_language: str = "de"
    languages: list[str] = Field(default_factory=lambda: ["de", "en", "da"])


class CatalogSettings(BaseModel):
    path: str = "data/spots.json"
    http_timeout_seconds: float = 15


class StorageKeys(BaseModel):
    plus: str = "fs_plus_active"
    favorites: str = "fs_favorites"
    daylog: str = "fs_daylog_last"


class StorageSettings(BaseModel):
    path: str = ".familyspots/state.json"
    keys: StorageKeys = Field(default_factory=StorageKeys)


class FeatureFlags(BaseModel):
    plus: bool = True
    mood_filter: bool = True
    travel_mode: bool = True
    big_adventure_filter: bool = True
    verified_filter: bool = True
    favorites: bool = True
    daylog: bool = True
    compass: bool = True


class FilterSettings(BaseModel):
    radius_steps_km: list[float | None] = Field(default_factory=lambda: [5, 15, 30, 60, None])
    default_radius_index: int = 4
    big_adventure_min_visit_minutes: float = Field(240, gt=0)

    @field_validator("radius_steps_km")
    @classmethod
    def _validate_steps(cls, steps: list[float | None]) -> list[float | None]:
        for step in steps:
            if step is not None and step <= 0:
                raise ValueError("filters.radius_steps_km entries must be > 0 (or null for no limit)")
        return steps


class PartnerCodeSettings(BaseModel):
    code: str
    plan: str = "family_plus"
    addons: list[str] = Field(default_factory=list)
    # None grants the plan indefinitely.
    days: int | None = Field(default=None, ge=1)
    enabled: bool = True
    partner: str | None = None


class PlusSettings(BaseModel):
    dev_force: bool = False
    partner_codes_source: str | None = None
    partner_codes: list[PartnerCodeSettings] = Field(default_factory=list)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    filters: FilterSettings = Field(default_factory=FilterSettings)
    plus: PlusSettings = Field(default_factory=PlusSettings)


# ---- Taxonomy (static tables) ----


class GroupDefinition(BaseModel):
    labels: dict[str, str] = Field(default_factory=dict)


class CategoryConfig(BaseModel):
    group: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)


class AccessRuleConfig(BaseModel):
    level: Literal["free", "subscription", "addon"] = "free"
    subscription_id: str | None = None
    addon_id: str | None = None

    @model_validator(mode="after")
    def _validate_dependencies(self) -> "AccessRuleConfig":
        if self.level in ("subscription", "addon") and not self.subscription_id:
            raise ValueError(f"access rule with level '{self.level}' needs a subscription_id")
        if self.level == "addon" and not self.addon_id:
            raise ValueError("access rule with level 'addon' needs an addon_id")
        return self


class AccessConfig(BaseModel):
    default_level: Literal["free", "subscription", "addon"] = "free"
    rules: dict[str, AccessRuleConfig] = Field(default_factory=dict)


class SubscriptionConfig(BaseModel):
    price_per_year: float = 0
    currency: str = "EUR"
    labels: dict[str, str] = Field(default_factory=dict)
    short_labels: dict[str, str] = Field(default_factory=dict)
    descriptions: dict[str, str] = Field(default_factory=dict)


class AddonConfig(BaseModel):
    requires_subscription_id: str
    price_per_year: float = 0
    currency: str = "EUR"
    labels: dict[str, str] = Field(default_factory=dict)
    descriptions: dict[str, str] = Field(default_factory=dict)
    categories: list[str] = Field(default_factory=list)


class ChipConfig(BaseModel):
    id: str
    tags: list[str] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)


class BigAdventureConfig(BaseModel):
    categories: list[str] = Field(default_factory=list)
    # Substrings matched against a spot's own (lower-cased) tags.
    tag_keywords: list[str] = Field(default_factory=list)


class RelevanceConfig(BaseModel):
    """Category maps behind the `relevance` sort (mood x10, travel x3, age x1)."""

    mood_categories: dict[str, list[str]] = Field(default_factory=dict)
    mood_keywords: dict[str, list[str]] = Field(default_factory=dict)
    travel_everyday_categories: list[str] = Field(default_factory=list)
    travel_trip_categories: list[str] = Field(default_factory=list)
    age_toddler_categories: list[str] = Field(default_factory=list)
    age_action_categories: list[str] = Field(default_factory=list)


class Taxonomy(BaseModel):
    groups: dict[str, GroupDefinition] = Field(default_factory=dict)
    categories: dict[str, CategoryConfig] = Field(default_factory=dict)
    aliases: dict[str, str] = Field(default_factory=dict)
    access: AccessConfig = Field(default_factory=AccessConfig)
    subscriptions: dict[str, SubscriptionConfig] = Field(default_factory=dict)
    addons: dict[str, AddonConfig] = Field(default_factory=dict)
    chips: list[ChipConfig] = Field(default_factory=list)
    big_adventure: BigAdventureConfig = Field(default_factory=BigAdventureConfig)
    relevance: RelevanceConfig = Field(default_factory=RelevanceConfig)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("FAMILYSPOTS_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    catalog_path = os.getenv("FAMILYSPOTS_CATALOG_PATH")
    if catalog_path:
        data.setdefault("catalog", {})["path"] = catalog_path

    storage_path = os.getenv("FAMILYSPOTS_STORAGE_PATH")
    if storage_path:
        data.setdefault("storage", {})["path"] = storage_path

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("FAMILYSPOTS_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_taxonomy() -> Taxonomy:
    """Load the packaged category/access/plan tables (cached)."""
    return Taxonomy.model_validate(_read_package_yaml("taxonomy.yaml"))


@lru_cache
def get_texts() -> dict[str, dict[str, str]]:
    """Load the localized message table (cached)."""
    raw = _read_package_yaml("texts.yaml")
    out: dict[str, dict[str, str]] = {}
    for key, value in raw.items():
        if isinstance(value, dict):
            out[str(key)] = {str(lang): str(text) for lang, text in value.items()}
    return out


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
