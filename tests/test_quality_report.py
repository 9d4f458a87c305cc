from familyspots.access.policy import AccessPolicy
from familyspots.catalog.registry import CategoryRegistry
from familyspots.config.settings import Settings
from familyspots.quality.report import build_quality_report, build_quality_report_from_settings


def _deps():
    registry = CategoryRegistry.from_settings()
    return registry, AccessPolicy.from_settings(registry=registry)


def test_quality_report_flags_catalog_problems():
    registry, policy = _deps()
    records = [
        {"id": "a", "category": "spielplatz", "lat": 53.5, "lng": 10.0},
        {"id": "a", "category": "zoo"},
        {"title": "no id"},
        {"id": "b", "category": "mondbasis"},
        {"id": "c", "lat": 53.5, "lng": 10.0},
        {"id": "d", "category": "freizeitpark", "lat": 53.5, "lng": 10.0},
        {"id": "e", "category": "badesee", "lat": 53.5, "lng": 10.0},
    ]
    report = build_quality_report(records, registry, policy)
    codes = {i["code"]: i for i in report["issues"]}

    assert report["ok"] is False
    assert codes["CATALOG_DUPLICATE_ID"]["sample"] == ["a"]
    assert codes["CATALOG_DROPPED_RECORD"]["count"] == 1
    assert codes["CATALOG_MISSING_LOCATION"]["sample"] == ["b"]
    assert codes["CATALOG_NO_CATEGORY"]["sample"] == ["c"]
    assert codes["CATALOG_UNKNOWN_CATEGORY"]["sample"] == ["b:mondbasis"]

    summary = report["summary"]
    assert summary["spot_count"] == 5
    assert summary["per_access_level"] == {"free": 3, "subscription": 1, "addon": 1}
    assert summary["per_group"]["Spiel & Bewegung"] == 1


def test_quality_report_for_clean_catalog_is_ok():
    registry, policy = _deps()
    report = build_quality_report([{"id": "a", "category": "zoo", "lat": 1, "lng": 2}], registry, policy)
    assert report["ok"] is True
    assert report["issues"] == []


def test_quality_report_reports_load_failure(tmp_path):
    registry, policy = _deps()
    settings = Settings.model_validate({"catalog": {"path": str(tmp_path / "missing.json")}})
    report = build_quality_report_from_settings(settings, registry, policy)
    assert report["ok"] is False
    assert report["issues"][0]["code"] == "CATALOG_LOAD_FAILED"
