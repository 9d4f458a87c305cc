import json

import pytest

from familyspots.cli import main
from familyspots.config.settings import get_settings


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch, tmp_path):
    monkeypatch.setenv("FAMILYSPOTS_STORAGE_PATH", str(tmp_path / "state.json"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_cli_spots_json(capsys):
    assert main(["spots", "--json", "--category", "spielplatz"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [s["id"] for s in data["results"]] == ["hh-stadtpark-spielplatz"]
    assert data["meta"]["sort"] == "catalog"


def test_cli_redeem_persists_between_runs(capsys):
    assert main(["redeem", "nope", "--lang", "en"]) == 1
    assert "unknown" in capsys.readouterr().out

    assert main(["redeem", "abf2026family", "--lang", "en"]) == 0
    capsys.readouterr()

    assert main(["status", "--json"]) == 0
    status = json.loads(capsys.readouterr().out)
    assert status["active"] is True
    assert status["addons"] == ["addon_abf"]
    assert status["code"] == "ABF2026FAMILY"


def test_cli_favorites_and_daylog(capsys):
    assert main(["favorite", "hh-tierpark-nord"]) == 0
    assert main(["favorite"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[-1] == "hh-tierpark-nord"

    assert main(["daylog"]) == 0
    assert "No entry yet." in capsys.readouterr().out
    assert main(["daylog", "Zoo", "and", "lake"]) == 0
    capsys.readouterr()
    assert main(["daylog"]) == 0
    assert capsys.readouterr().out.strip().endswith("Zoo and lake")


def test_cli_rejects_half_a_center():
    with pytest.raises(ValueError):
        main(["spots", "--lat", "53.5"])
