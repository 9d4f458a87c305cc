import pytest

from familyspots.access.policy import AccessPolicy
from familyspots.catalog.registry import CategoryRegistry
from familyspots.compass.advisor import CompassAdvisor, radius_band
from familyspots.core.i18n import MessageTable
from familyspots.domain.models import CompassStats, FilterState
from familyspots.filters.engine import FilterEngine


def test_missing_state_yields_intro():
    advisor = CompassAdvisor()
    decision = advisor.decide(None)
    assert decision.intro is True
    assert decision.keys == ("compass.intro",)
    assert advisor.summarize(None, None, "en").startswith("The family compass")


@pytest.mark.parametrize(
    "radius_km, band",
    [(None, "unlimited"), (5, "near"), (6, "near"), (15, "comfortable"), (30, "half_day"), (60, "far")],
)
def test_radius_bands(radius_km, band):
    assert radius_band(radius_km) == band


def test_decision_keys_follow_filters_and_counts():
    advisor = CompassAdvisor()
    state = FilterState(mood="water", travel_mode="trip", age_group="0-3", radius_index=1)

    decision = advisor.decide(state, CompassStats(matched_count=3))
    assert decision.keys == (
        "compass.mood.water",
        "compass.travel.trip",
        "compass.age.0-3",
        "compass.radius.comfortable",
        "compass.result.many",
    )


@pytest.mark.parametrize(
    "favorites_only, matched, favorites, band",
    [
        (False, 0, 0, "none"),
        (False, 1, 0, "one"),
        (False, 7, 0, "many"),
        (True, 2, 5, "favorites"),
        # Favorites-only without any favorites falls back to the count bands.
        (True, 0, 0, "none"),
    ],
)
def test_result_bands(favorites_only, matched, favorites, band):
    advisor = CompassAdvisor()
    state = FilterState(favorites_only=favorites_only)
    decision = advisor.decide(state, CompassStats(matched_count=matched, favorites_count=favorites))
    assert decision.result_band == band


def test_unknown_values_and_default_radius():
    advisor = CompassAdvisor()
    decision = advisor.decide(FilterState(mood="sleepy", age_group="all"), CompassStats())
    assert decision.mood is None
    assert decision.age_group is None
    assert decision.radius_band == "unlimited"
    assert decision.keys == ("compass.radius.unlimited", "compass.result.none")


def test_summarize_renders_counts_and_language_fallback():
    advisor = CompassAdvisor()
    state = FilterState(radius_index=0)

    en = advisor.summarize(state, CompassStats(matched_count=4), "en")
    assert "Your radius is set like this: very close by" in en
    assert "In total, 4 spots" in en

    # Unsupported language falls back to German.
    fr = advisor.summarize(state, CompassStats(matched_count=4), "fr")
    assert "Insgesamt passen gerade 4 Spots" in fr


def test_missing_text_falls_back_to_key():
    advisor = CompassAdvisor(MessageTable({}))
    assert advisor.summarize(None, None, "en") == "compass.intro"


def test_compass_and_engine_share_radius_steps():
    registry = CategoryRegistry.from_settings()
    engine = FilterEngine(AccessPolicy.from_settings(registry=registry), registry, radius_steps_km=(3, 25, None))
    advisor = CompassAdvisor(radius_steps_km=engine.radius_steps_km)

    for index in (None, -1, 0, 1, 2, 3):
        decision = advisor.decide(FilterState(radius_index=index))
        assert decision.radius_band == radius_band(engine.radius_km(index))
