"""
Family compass.

Builds the short advisory message shown above the result list. The message is a
deterministic decision table over the current filters and result counts:

    mood part + travel part + age part + radius part + result part

`decide()` returns the chosen message keys only (unit-testable without wording);
`summarize()` renders them from the packaged text table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Sequence

from familyspots.config.settings import get_texts
from familyspots.core.i18n import MessageTable
from familyspots.domain.models import CompassStats, FilterState
from familyspots.filters.engine import DEFAULT_RADIUS_STEPS_KM, radius_step_km

RadiusBand = Literal["near", "comfortable", "half_day", "far", "unlimited"]
ResultBand = Literal["favorites", "none", "one", "many"]

# (upper bound in km, band), checked in order.
RADIUS_BANDS: tuple[tuple[float, RadiusBand], ...] = (
    (6, "near"),
    (20, "comfortable"),
    (40, "half_day"),
    (float("inf"), "far"),
)

MOODS = ("relaxed", "action", "water", "animals")
TRAVEL_MODES = ("everyday", "trip")
AGE_GROUPS = ("0-3", "4-9", "10+")


@dataclass(frozen=True)
class CompassDecision:
    intro: bool = False
    mood: str | None = None
    travel_mode: str | None = None
    age_group: str | None = None
    radius_band: RadiusBand = "unlimited"
    result_band: ResultBand = "none"
    count: int = 0
    keys: tuple[str, ...] = field(default=())


def radius_band(radius_km: float | None) -> RadiusBand:
    if radius_km is None:
        return "unlimited"
    for upper, band in RADIUS_BANDS:
        if radius_km <= upper:
            return band
    return "far"


def result_band(state: FilterState, stats: CompassStats) -> ResultBand:
    if state.favorites_only and stats.favorites_count > 0:
        return "favorites"
    if stats.matched_count == 0:
        return "none"
    if stats.matched_count == 1:
        return "one"
    return "many"


class CompassAdvisor:
    def __init__(
        self,
        texts: MessageTable | None = None,
        *,
        radius_steps_km: Sequence[float | None] = DEFAULT_RADIUS_STEPS_KM,
    ):
        self._texts = texts or MessageTable(get_texts())
        self._radius_steps = tuple(radius_steps_km)

    def decide(self, state: FilterState | None, stats: CompassStats | None = None) -> CompassDecision:
        if state is None:
            return CompassDecision(intro=True, keys=("compass.intro",))

        stats = stats or CompassStats()
        mood = state.mood if state.mood in MOODS else None
        travel = state.travel_mode if state.travel_mode in TRAVEL_MODES else None
        age = state.age_group if state.age_group in AGE_GROUPS else None
        band = radius_band(radius_step_km(self._radius_steps, state.radius_index))
        outcome = result_band(state, stats)

        keys: list[str] = []
        if mood:
            keys.append(f"compass.mood.{mood}")
        if travel:
            keys.append(f"compass.travel.{travel}")
        if age:
            keys.append(f"compass.age.{age}")
        keys.append(f"compass.radius.{band}")
        keys.append(f"compass.result.{outcome}")

        return CompassDecision(
            mood=mood,
            travel_mode=travel,
            age_group=age,
            radius_band=band,
            result_band=outcome,
            count=stats.matched_count,
            keys=tuple(keys),
        )

    def render(self, decision: CompassDecision, lang: str | None) -> str:
        parts: list[str] = []
        for key in decision.keys:
            if key.startswith("compass.radius."):
                parts.append(self._texts.text("compass.radius.prefix", lang) + self._texts.text(key, lang))
            elif key in ("compass.result.favorites", "compass.result.many"):
                parts.append(self._texts.text(key, lang, count=decision.count))
            else:
                parts.append(self._texts.text(key, lang))
        return " ".join(parts)

    def summarize(self, state: FilterState | None, stats: CompassStats | None, lang: str | None) -> str:
        return self.render(self.decide(state, stats), lang)
