"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- catalog entities (`Spot`, `CategoryDefinition`, `FilterChip`)
- access control (`AccessRule`, `EntitlementStatus`, `PartnerCode`, `RedemptionResult`)
- user input (`FilterState`)
- output (`SearchResult`, `CompassStats`)

Keeping these models in one place helps:
- validation (reject bad inputs early),
- typed refactors,
- consistent JSON output across CLI/API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from familyspots.core.time import ensure_utc

AccessLevel = Literal["free", "subscription", "addon"]
RedemptionError = Literal["empty", "unknown"]


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class CategoryDefinition(BaseModel):
    """Static description of one category slug."""

    model_config = ConfigDict(frozen=True)

    slug: str
    group: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    tags: frozenset[str] = frozenset()


class AccessRule(BaseModel):
    """Access level for a category. An add-on always depends on a subscription."""

    model_config = ConfigDict(frozen=True)

    level: AccessLevel = "free"
    subscription_id: str | None = None
    addon_id: str | None = None

    @model_validator(mode="after")
    def _validate_dependencies(self) -> "AccessRule":
        if self.level != "free" and not self.subscription_id:
            raise ValueError(f"access level '{self.level}' requires a subscription_id")
        if self.level == "addon" and not self.addon_id:
            raise ValueError("access level 'addon' requires an addon_id")
        return self


FREE_RULE = AccessRule()


class FilterChip(BaseModel):
    """A named bundle of tags exposed as one toggle."""

    model_config = ConfigDict(frozen=True)

    id: str
    tags: frozenset[str] = frozenset()
    labels: dict[str, str] = Field(default_factory=dict)


class Spot(BaseModel):
    """A normalized point of interest. Build it through `normalize_spot`."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    subtitle: str = ""
    city: str = ""
    town: str = ""
    address: str = ""
    country: str = ""

    categories: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    age_groups: tuple[str, ...] = ()
    moods: tuple[str, ...] = ()
    travel_modes: tuple[str, ...] = ()

    verified: bool = False
    big_adventure: bool = False
    plus_only: bool = False

    location: GeoPoint | None = None
    visit_minutes: float | None = Field(default=None, gt=0)

    # Derived once by the normalizer.
    merged_tags: tuple[str, ...] = ()
    search_text: str = ""

    @property
    def primary_category(self) -> str | None:
        return self.categories[0] if self.categories else None


class EntitlementStatus(BaseModel):
    """Subscription/add-on state of the current session."""

    model_config = ConfigDict(frozen=True)

    active: bool = False
    plan: str | None = None
    addons: tuple[str, ...] = ()
    valid_until: datetime | None = None

    partner: str | None = None
    source: Literal["partner_code", "legacy", "dev"] | None = None
    code: str | None = None

    def is_expired(self, now: datetime) -> bool:
        if self.valid_until is None:
            return False
        return ensure_utc(now) > ensure_utc(self.valid_until)

    def effective(self, now: datetime) -> "EntitlementStatus":
        """Collapse to an inactive status once `valid_until` has passed."""
        if not self.is_expired(now):
            return self
        return EntitlementStatus(
            active=False,
            plan=None,
            addons=(),
            valid_until=self.valid_until,
            partner=self.partner,
            source=self.source,
            code=self.code,
        )


INACTIVE_STATUS = EntitlementStatus()


class PartnerCode(BaseModel):
    """A redeemable promotion code."""

    code: str = Field(..., min_length=1)
    plan: str = "family_plus"
    addons: tuple[str, ...] = ()
    # None grants the plan indefinitely.
    days: int | None = Field(default=None, ge=1)
    enabled: bool = True
    partner: str | None = None


class RedemptionResult(BaseModel):
    """Outcome of `EntitlementStore.redeem`."""

    ok: bool
    status: EntitlementStatus | None = None
    reason: RedemptionError | None = None


class FilterState(BaseModel):
    """Current filter inputs. Every field is independently optional; defaults filter nothing."""

    model_config = ConfigDict(validate_assignment=True)

    search_term: str = ""
    category: str | None = None
    age_group: str = "all"
    mood: str | None = None
    travel_mode: str | None = None
    big_adventures_only: bool = False
    verified_only: bool = False
    favorites_only: bool = False
    active_chip_ids: frozenset[str] = frozenset()
    center: GeoPoint | None = None
    radius_index: int | None = None


class CompassStats(BaseModel):
    matched_count: int = Field(0, ge=0)
    favorites_count: int = Field(0, ge=0)


class DayLogEntry(BaseModel):
    """The last saved "my day" note."""

    text: str
    saved_at: datetime


class SearchResult(BaseModel):
    """Visible spots for a filter state plus the compass message."""

    generated_at: datetime
    query: FilterState
    results: list[Spot]
    compass: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
