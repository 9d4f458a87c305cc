import pytest
from starlette.testclient import TestClient

from familyspots.api.app import app
from familyspots.config.settings import get_settings
from familyspots.core.storage import MemoryStore
from familyspots.directory.service import SpotDirectory

FREE_IDS = {"hh-stadtpark-spielplatz", "hh-tierpark-nord", "hh-indoor-toben", "hh-kindermuseum"}


@pytest.fixture
def client(monkeypatch):
    # Patch the cached directory factory so API tests never touch the state file.
    import familyspots.api.routes as routes

    directory = SpotDirectory.build(get_settings(), store=MemoryStore())
    monkeypatch.setattr(routes, "_directory", lambda: directory)
    with TestClient(app) as c:
        yield c


def _ids(resp) -> set[str]:
    return {s["id"] for s in resp.json()["results"]}


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_spots_without_plus_hide_locked_categories(client):
    resp = client.get("/api/spots", params={"lang": "en"})
    assert resp.status_code == 200
    data = resp.json()
    assert _ids(resp) == FREE_IDS
    assert data["meta"]["total"] == 8
    assert data["meta"]["locked"] == 4
    assert data["meta"]["entitlement"]["active"] is False
    assert data["compass"]


def test_redeem_unlocks_subscription_and_addon_spots(client):
    resp = client.post("/api/plus/redeem", json={"code": " water 2026 "}, params={"lang": "en"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["status"]["addons"] == ["addon_water"]
    assert body["entitlement"]["active"] is True
    assert body["entitlement"]["validUntil"].endswith("Z")

    visible = _ids(client.get("/api/spots"))
    assert visible == FREE_IDS | {"sh-hansapark", "hh-badesee-eichbaum", "dk-legepark-ohne-koordinaten"}
    assert "sh-stellplatz-kiel" not in visible


def test_redeem_unknown_code(client):
    resp = client.post("/api/plus/redeem", json={"code": "NOPE"}, params={"lang": "en"})
    body = resp.json()
    assert body["ok"] is False
    assert body["reason"] == "unknown"
    assert body["message"] == "This code is unknown or no longer valid."
    assert client.get("/api/plus").json()["active"] is False


def test_spots_filters_and_validation(client):
    resp = client.get("/api/spots", params={"category": "kinder_museum"})
    assert _ids(resp) == {"hh-kindermuseum"}

    # Spots that declare no mood match every mood filter.
    resp = client.get("/api/spots", params={"mood": "animals"})
    assert _ids(resp) == {"hh-tierpark-nord", "hh-kindermuseum"}

    resp = client.get("/api/spots", params={"mood": "animals", "sort": "relevance"})
    assert [s["id"] for s in resp.json()["results"]] == ["hh-tierpark-nord", "hh-kindermuseum"]

    resp = client.get("/api/spots", params={"lat": 53.55})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"

    resp = client.get("/api/spots", params={"sort": "random"})
    assert resp.status_code == 422


def test_favorites_roundtrip(client):
    resp = client.post("/api/favorites", json={"spot_id": "hh-tierpark-nord"})
    assert resp.json()["favorite"] is True
    assert client.get("/api/favorites").json() == {"favorites": ["hh-tierpark-nord"]}

    resp = client.get("/api/spots", params={"favorites": "true"})
    assert _ids(resp) == {"hh-tierpark-nord"}

    resp = client.post("/api/favorites", json={"spot_id": "hh-tierpark-nord"})
    assert resp.json()["favorite"] is False

    resp = client.post("/api/favorites", json={"spot_id": "  "})
    assert resp.status_code == 400


def test_daylog(client):
    assert client.get("/api/daylog").json() == {"entry": None}
    assert client.post("/api/daylog", json={"text": "   "}).status_code == 400

    resp = client.post("/api/daylog", json={"text": "Tierpark, then ice cream"})
    assert resp.status_code == 200
    assert client.get("/api/daylog").json()["entry"]["text"] == "Tierpark, then ice cream"


def test_compass_endpoint(client):
    resp = client.get("/api/compass", params={"mood": "water", "matched": 3, "lang": "en"})
    data = resp.json()
    assert data["keys"] == ["compass.mood.water", "compass.radius.unlimited", "compass.result.many"]
    assert data["message"]


def test_static_option_endpoints(client):
    filters = client.get("/api/filters", params={"lang": "en"}).json()
    assert filters["radius_steps_km"] == [5, 15, 30, 60, None]
    assert {c["id"] for c in filters["chips"]} >= {"bad-weather", "accessible"}
    assert filters["features"]["plus"] is True

    cats = client.get("/api/categories", params={"lang": "en"}).json()
    by_slug = {c["slug"]: c for c in cats["categories"]}
    assert by_slug["spielplatz"]["label"] == "Playground"
    assert by_slug["badesee"]["access"]["addon_id"] == "addon_water"

    quality = client.get("/api/quality").json()
    assert quality["summary"]["spot_count"] == 8
    assert {i["code"] for i in quality["issues"]} >= {"CATALOG_DROPPED_RECORD", "CATALOG_MISSING_LOCATION"}
