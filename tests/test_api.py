import pytest
from fastapi.testclient import TestClient

from main import app

KEY = "test-key"


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("DIVINATION_BRIDGE_API_KEY", KEY)
    with TestClient(app, raise_server_exceptions=False) as c:
        c.headers.update({"x-api-key": KEY})
        yield c


def test_health_needs_no_key():
    with TestClient(app) as c:
        r = c.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_server_without_key_configured(monkeypatch):
    monkeypatch.delenv("DIVINATION_BRIDGE_API_KEY", raising=False)
    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/v1/iching/trigrams", headers={"x-api-key": KEY})
    assert r.status_code == 500


def test_reject_missing_and_invalid_key(monkeypatch):
    monkeypatch.setenv("DIVINATION_BRIDGE_API_KEY", KEY)
    with TestClient(app, raise_server_exceptions=False) as c:
        assert c.get("/v1/tarot/spreads").status_code == 401
        assert c.get("/v1/tarot/spreads", headers={"x-api-key": "nope"}).status_code == 401
        assert c.get("/v1/tarot/spreads", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_accept_bearer_token(monkeypatch):
    monkeypatch.setenv("DIVINATION_BRIDGE_API_KEY", KEY)
    with TestClient(app) as c:
        r = c.get("/v1/tarot/spreads", headers={"Authorization": f"Bearer {KEY}"})
    assert r.status_code == 200


def test_iching_catalogs(client):
    trigrams = client.get("/v1/iching/trigrams").json()["trigrams"]
    hexagrams = client.get("/v1/iching/hexagrams").json()["hexagrams"]
    assert [t["name"] for t in trigrams][:2] == ["Qian", "Dui"]
    assert len(hexagrams) == 64
    assert hexagrams[0]["upperTrigram"]["name"] == "Qian"


def test_iching_divine_by_numbers(client):
    r = client.post("/v1/iching/divine", json={"method": "number", "numbers": [1, 8, 3]})
    assert r.status_code == 200
    data = r.json()
    assert data["hexagram"]["number"] == 12
    assert data["changingLines"] == [6]
    assert data["resultingHexagram"]["number"] == 20
    assert data["numbers"] == [1, 8, 3]
    assert data["timeContext"] is None


def test_iching_divine_requires_three_numbers(client):
    r = client.post("/v1/iching/divine", json={"method": "number", "numbers": [1, 2]})
    assert r.status_code == 422


def test_iching_divine_by_time(client):
    r = client.post("/v1/iching/divine", json={"method": "time", "timezone": "Europe/London"})
    assert r.status_code == 200
    data = r.json()
    assert data["timeContext"]["timezone"] == "Europe/London"
    assert 1 <= len(data["changingLines"]) <= 2
    assert all(1 <= line <= 6 for line in data["changingLines"])


def test_tarot_cards_and_spreads(client):
    cards = client.get("/v1/tarot/cards").json()["cards"]
    spreads = client.get("/v1/tarot/spreads").json()["spreads"]
    assert len(cards) == 78
    assert {s["spreadType"] for s in spreads} == {"SingleCard", "ThreeCard", "CelticCross"}


def test_tarot_draw_seeded(client):
    body = {"spreadType": "CelticCross", "seed": "my question"}
    first = client.post("/v1/tarot/draw", json=body).json()
    second = client.post("/v1/tarot/draw", json=body).json()
    assert first == second
    assert len(first["cards"]) == 10


def test_tarot_draw_defaults_to_single_card(client):
    data = client.post("/v1/tarot/draw", json={}).json()
    assert data["spreadType"] == "SingleCard"
    assert len(data["cards"]) == 1


def test_birth_time_meta(client, monkeypatch):
    monkeypatch.setattr("core.solar_time.SOLAR_TIME_EOT", False)
    r = client.post(
        "/v1/birth/time-meta",
        json={
            "birthYear": 2000,
            "birthMonth": 1,
            "birthDay": 1,
            "birthHour": 12,
            "timezone": "UTC",
            "birthLocation": "51.5, 15",
        },
    )
    assert r.status_code == 200
    data = r.json()
    assert data["timezoneResolved"] == {
        "timezoneOffsetMinutes": 0,
        "birthTimestamp": 946728000000,
        "birthIso": "2000-01-01T12:00:00.000Z",
        "offsetLabel": "UTC",
    }
    assert data["trueSolar"]["applied"] is True
    assert data["trueSolar"]["correctionMinutes"] == 60
    assert data["trueSolar"]["correctedIso"] == "2000-01-01T13:00:00.000"


def test_birth_time_meta_invalid_date(client):
    r = client.post("/v1/birth/time-meta", json={"birthYear": "abc", "timezone": "UTC+08:00"})
    assert r.status_code == 200
    data = r.json()
    assert data["timezoneResolved"]["birthIso"] is None
    assert data["timezoneResolved"]["offsetLabel"] is None
    assert data["trueSolar"]["applied"] is False


def test_locations(client):
    locations = client.get("/v1/locations").json()["locations"]
    assert "Beijing" in [entry["name"] for entry in locations]

    found = client.get("/v1/locations/resolve", params={"q": "Beijing China"})
    assert found.status_code == 200
    assert found.json()["timezone"] == "Asia/Shanghai"

    missing = client.get("/v1/locations/resolve", params={"q": "Atlantis"})
    assert missing.status_code == 404
