"""
Relevance scoring for the `relevance` sort.

A spot's score for the current filters is

    mood score * 10 + travel score * 3 + age score

where each part comes from the category maps in `taxonomy.yaml` (`relevance`).
Scores only order results; they never hide a spot.
"""

from __future__ import annotations

from familyspots.config.settings import RelevanceConfig
from familyspots.domain.models import Spot

MOOD_WEIGHT = 10
TRAVEL_WEIGHT = 3
AGE_WEIGHT = 1


class RelevanceScorer:
    def __init__(self, config: RelevanceConfig):
        self._mood_categories = {m: frozenset(cats) for m, cats in config.mood_categories.items()}
        self._mood_keywords = {
            m: tuple(k.strip().lower() for k in kws if k.strip()) for m, kws in config.mood_keywords.items()
        }
        self._everyday = frozenset(config.travel_everyday_categories)
        self._trip = frozenset(config.travel_trip_categories)
        self._toddler = frozenset(config.age_toddler_categories)
        self._action = frozenset(config.age_action_categories)

    def mood_score(self, spot: Spot, mood: str | None) -> int:
        """+2 per category in the mood's map, +1 per mood keyword found in the spot's tags."""
        if not mood:
            return 0
        cats = self._mood_categories.get(mood, frozenset())
        score = 2 * sum(1 for c in spot.categories if c in cats)
        text = " ".join(spot.tags)
        score += sum(1 for kw in self._mood_keywords.get(mood, ()) if kw in text)
        return score

    def travel_score(self, spot: Spot, travel_mode: str | None) -> int:
        if not travel_mode:
            return 0
        categories = set(spot.categories)
        score = 0
        if travel_mode == "trip":
            if spot.plus_only:
                score += 2
            if categories & self._trip:
                score += 2
        elif travel_mode == "everyday":
            if spot.plus_only:
                score -= 1
            if categories & self._everyday:
                score += 1
        return score

    def age_score(self, spot: Spot, age_group: str | None) -> int:
        if not age_group or age_group == "all":
            return 0
        categories = set(spot.categories)
        toddler = bool(categories & self._toddler)
        action = bool(categories & self._action)
        if age_group == "0-3":
            return (2 if toddler else 0) - (2 if action else 0)
        if age_group == "4-9":
            return int(toddler) + int(action)
        if age_group == "10+":
            return (2 if action else 0) - (1 if toddler else 0)
        return 0

    def score(self, spot: Spot, *, mood: str | None, travel_mode: str | None, age_group: str | None) -> int:
        return (
            MOOD_WEIGHT * self.mood_score(spot, mood)
            + TRAVEL_WEIGHT * self.travel_score(spot, travel_mode)
            + AGE_WEIGHT * self.age_score(spot, age_group)
        )
