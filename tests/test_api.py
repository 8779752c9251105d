"""HTTP surface tests using FastAPI's TestClient with offline collaborators."""

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from gear_app.app import GearConciergeApp
from gear_app.config import AppConfig
from server.api import create_app
from tools.gear_store import SQLiteGearStore
from tools.language_model import FunctionCall, MockLanguageModel, ModelReply
from tools.weather_provider import MockWeatherProvider


HOUDINI_ARGS = {"brand": "Patagonia", "model": "Houdini", "category": "shell", "size": "Large", "cost": 120}


def _reply(_system_instruction: str, prompt: str) -> ModelReply:
    if "Houdini" in prompt:
        return ModelReply(
            text="Added your Patagonia Houdini windbreaker to your shell layers.",
            calls=[FunctionCall("add_gear_item", dict(HOUDINI_ARGS))],
        )
    return ModelReply(text="Happy to help with your outdoor gear.")


@pytest.fixture()
def model() -> MockLanguageModel:
    return MockLanguageModel(_reply, json_payload={"category": "headwear", "subcategory": "beanie", "confidence": 0.9})


@pytest.fixture()
def client(tmp_path: Path, model: MockLanguageModel) -> Iterator[TestClient]:
    config = AppConfig(gear_db_path=str(tmp_path / "gear.db"))
    concierge = GearConciergeApp(
        config=config,
        store=SQLiteGearStore(config.gear_db_path),
        language_model=model,
        weather_provider=MockWeatherProvider(),
    )
    with TestClient(create_app(concierge)) as test_client:
        yield test_client


class _BrokenStore(SQLiteGearStore):
    """Store whose reads fail, as when the database file is locked or corrupt."""

    def get_gear_items(self, category=None):
        raise RuntimeError("database is locked")

    def get_gear_item(self, gear_id):
        raise RuntimeError("database is locked")

    def get_chat_history(self, limit=50):
        raise RuntimeError("database is locked")


@pytest.fixture()
def broken_client(tmp_path: Path, model: MockLanguageModel) -> Iterator[TestClient]:
    config = AppConfig(gear_db_path=str(tmp_path / "gear.db"))
    concierge = GearConciergeApp(
        config=config,
        store=_BrokenStore(config.gear_db_path),
        language_model=model,
        weather_provider=MockWeatherProvider(),
    )
    with TestClient(create_app(concierge)) as test_client:
        yield test_client


def _create_gear(client: TestClient, **overrides) -> dict:
    body = {"brand": "Smartwool", "model": "Merino 150", "category": "base_layer", **overrides}
    response = client.post("/api/gear", json=body)
    assert response.status_code == 200
    return response.json()


def test_healthcheck(client: TestClient) -> None:
    payload = client.get("/healthz").json()

    assert payload["status"] == "ok"
    assert payload["service"] == "gear-concierge"


def test_chat_adds_gear_end_to_end(client: TestClient) -> None:
    response = client.post(
        "/api/chat", json={"message": "Add my Patagonia Houdini windbreaker, size Large, cost 120"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["response"] == "Added your Patagonia Houdini windbreaker to your shell layers."
    assert body["functions"] == [{"name": "add_gear_item", "arguments": HOUDINI_ARGS}]

    gear = client.get("/api/gear").json()
    assert len(gear) == 1
    assert {key: gear[0][key] for key in ("brand", "model", "category", "size", "cost")} == HOUDINI_ARGS

    history = client.get("/api/chat/history").json()
    assert len(history) == 1
    assert history[0]["functionCalls"] == {"add_gear_item": HOUDINI_ARGS}


def test_chat_listing_returns_inventory_digest(client: TestClient, model: MockLanguageModel) -> None:
    _create_gear(client)

    body = client.post("/api/chat", json={"message": "list my gear"}).json()

    assert body["response"].startswith("Here's your complete gear inventory (1 items):")
    assert body["data"][0]["model"] == "Merino 150"
    assert "functions" not in body
    assert model.requests == []


@pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}])
def test_chat_requires_message(client: TestClient, body: dict) -> None:
    response = client.post("/api/chat", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}


def test_chat_history_headers_and_limit(client: TestClient) -> None:
    for text in ("first question", "second question", "third question"):
        client.post("/api/chat", json={"message": text})

    response = client.get("/api/chat/history", params={"limit": 2})

    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["pragma"] == "no-cache"
    assert response.headers["expires"] == "0"
    assert [entry["message"] for entry in response.json()] == ["second question", "third question"]
    assert len(client.get("/api/chat/history", params={"limit": "abc"}).json()) == 3
    assert len(client.get("/api/chat/history", params={"limit": 0}).json()) == 3
    assert len(client.get("/api/chat/history", params={"limit": "2.0"}).json()) == 2
    assert len(client.get("/api/chat/history", params={"limit": "2abc"}).json()) == 2
    assert len(client.get("/api/chat/history", params={"limit": "-1"}).json()) == 3


def test_gear_crud(client: TestClient) -> None:
    created = _create_gear(client, weightGrams=150, cost=89.5)
    _create_gear(client, brand="Arc'teryx", model="Beta AR", category="shell")

    assert created["weightGrams"] == 150
    assert created["status"] == "active"
    assert client.get(f"/api/gear/{created['id']}").json()["brand"] == "Smartwool"
    assert [item["model"] for item in client.get("/api/gear", params={"category": "shell"}).json()] == ["Beta AR"]

    patched = client.patch(f"/api/gear/{created['id']}", json={"status": "retired", "size": "M"})
    assert patched.status_code == 200
    assert patched.json()["status"] == "retired"
    assert patched.json()["size"] == "M"

    assert client.delete(f"/api/gear/{created['id']}").json() == {"deleted": True}
    assert client.get(f"/api/gear/{created['id']}").status_code == 404
    assert client.delete(f"/api/gear/{created['id']}").status_code == 404


def test_gear_errors(client: TestClient) -> None:
    missing = client.get("/api/gear/does-not-exist")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Gear item not found"}

    assert client.post("/api/gear", json={"brand": "Smartwool", "category": "base_layer"}).status_code == 400
    assert client.post("/api/gear", json={"brand": "X", "model": "Y", "category": "lighting"}).status_code == 400
    assert client.patch("/api/gear/does-not-exist", json={"size": "L"}).status_code == 404


def test_performance_endpoints(client: TestClient) -> None:
    gear = _create_gear(client)

    created = client.post(
        f"/api/gear/{gear['id']}/performance",
        json={"rating": 8, "activityType": "trail running", "performanceAspects": {"breathability": 9}},
    )
    assert created.status_code == 200
    assert created.json()["gearId"] == gear["id"]
    assert created.json()["dateLogged"]

    rejected = client.post(f"/api/gear/{gear['id']}/performance", json={"rating": 11})
    assert rejected.status_code == 400

    records = client.get(f"/api/gear/{gear['id']}/performance").json()
    assert [record["rating"] for record in records] == [8]


def test_trip_endpoints(client: TestClient) -> None:
    created = client.post(
        "/api/trips",
        json={"name": "Laugavegur", "location": "Iceland", "activities": ["hiking"], "startDate": "2025-07-01"},
    ).json()

    assert created["startDate"] == "2025-07-01"
    assert [trip["name"] for trip in client.get("/api/trips").json()] == ["Laugavegur"]
    assert client.get(f"/api/trips/{created['id']}").json()["location"] == "Iceland"
    assert client.patch(f"/api/trips/{created['id']}", json={"notes": "Book huts"}).json()["notes"] == "Book huts"
    assert client.get("/api/trips/unknown").status_code == 404
    assert client.post("/api/trips", json={"location": "Nowhere"}).status_code == 400


def test_weather_endpoint_uses_provider(client: TestClient) -> None:
    payload = client.get("/api/weather/Nowhere").json()

    assert payload["location"] == "Nowhere"
    assert set(payload["current"]) == {"temperature", "condition", "humidity", "windSpeed"}
    assert payload["forecast"]


def test_analytics_stats(client: TestClient) -> None:
    empty = client.get("/api/analytics/stats").json()
    assert empty == {"totalItems": 0, "tripsPlanned": 0, "averageRating": None, "categoryBreakdown": {}}

    gear = _create_gear(client)
    _create_gear(client, brand="Arc'teryx", model="Beta AR", category="shell")
    client.post(f"/api/gear/{gear['id']}/performance", json={"rating": 8})
    client.post(f"/api/gear/{gear['id']}/performance", json={"rating": 9})
    client.post("/api/trips", json={"name": "Weekend"})

    stats = client.get("/api/analytics/stats").json()
    assert stats["totalItems"] == 2
    assert stats["tripsPlanned"] == 1
    assert stats["averageRating"] == 8.5
    assert stats["categoryBreakdown"] == {"base_layer": 1, "shell": 1}


def test_analytics_gaps_score_and_layering(client: TestClient) -> None:
    _create_gear(client)

    gaps = client.get("/api/analytics/gaps", params={"activities": "hiking, climbing"}).json()
    assert [gap["category"] for gap in gaps] == ["base_layer", "shell", "midlayer", "footwear"]

    score = client.get("/api/analytics/score").json()
    assert score["categories"]["base_layer"] == 25
    assert score["overall"] == 5

    layering = client.post(
        "/api/analytics/layering",
        json={"activity": "hiking", "conditions": {"temperature": 8, "weather": "rain"}},
    ).json()
    assert layering["layers"]["shell"] == ["Waterproof hardshell jacket"]
    assert layering["accessories"] == ["Hiking poles", "Daypack or backpack"]

    assert client.post("/api/analytics/layering", json={"activity": "hiking"}).status_code == 400


def test_classify_endpoint(client: TestClient) -> None:
    result = client.post("/api/gear/classify", json={"description": "Merino wool beanie"}).json()

    assert result == {"category": "headwear", "confidence": 0.9, "subcategory": "beanie"}
    assert client.post("/api/gear/classify", json={}).status_code == 400


def test_store_failures_return_generic_500(broken_client: TestClient) -> None:
    chat = broken_client.post("/api/chat", json={"message": "Hello there"})
    assert chat.status_code == 500
    assert chat.json() == {"error": "Failed to process chat message"}

    listing = broken_client.get("/api/gear")
    assert listing.status_code == 500
    assert listing.json() == {"error": "Failed to fetch gear items"}

    item = broken_client.get("/api/gear/123")
    assert item.status_code == 500
    assert item.json() == {"error": "Failed to fetch gear item"}

    stats = broken_client.get("/api/analytics/stats")
    assert stats.status_code == 500
    assert stats.json() == {"error": "Failed to fetch analytics"}


def test_chat_history_failure_keeps_no_cache_headers(broken_client: TestClient) -> None:
    response = broken_client.get("/api/chat/history")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch chat history"}
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["pragma"] == "no-cache"
    assert response.headers["expires"] == "0"
