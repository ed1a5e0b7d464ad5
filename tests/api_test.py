import json
import os
import pytest
from fastapi.testclient import TestClient
from app.api.dependencies import get_gemini_client, get_places_client
from app.core.config import settings
from app.main import app
from app.services.categories import DEFAULT_PLACE_TYPES
from app.services.places import PlacesClient
from conftest import FakeLLM, FakePlacesClient, planning_payload, raw_place


def venues():
    return {
        "restaurant": [raw_place(f"r{i}", name=f"Diner {i}", rating=4.0 + i / 10, price_level=i % 3) for i in range(5)],
        "park": [raw_place(f"p{i}", name=f"Green {i}", rating=4.2) for i in range(4)],
        "night_club": [raw_place("n0", name="Club Zero", rating=4.1)],
    }


@pytest.fixture
def places_client():
    return FakePlacesClient(venues())


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def client(places_client, llm):
    app.dependency_overrides[get_places_client] = lambda: places_client
    app.dependency_overrides[get_gemini_client] = lambda: llm
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_health(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_place_types(client):
    body = client.get("/api/place-types").json()
    assert body["defaultPlaceTypes"] == DEFAULT_PLACE_TYPES
    assert "restaurant" in body["placeTypes"]


def test_nearby_places(client, places_client):
    resp = client.post(
        "/api/places/nearby",
        json={"location": {"lat": 1.28, "lng": 103.86}, "radius": 500, "placeTypes": ["park", "teleporter"]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 4
    assert body["data"][0]["category"] == "outdoor"
    assert places_client.calls == [(1.28, 103.86, 500, "park")]


def test_nearby_places_requires_types(client):
    resp = client.post("/api/places/nearby", json={"location": {"lat": 1.0, "lng": 2.0}, "placeTypes": []})
    assert resp.status_code == 400


def test_event_plan_with_fallback_and_search_log(client):
    payload = planning_payload(placeTypes=["restaurant", "park", "night_club"])

    resp = client.post("/api/event-plan", json=payload)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["placesFound"] == 10
    assert body["eventPlan"].count("Estimated time:") == 2
    assert [loc["order"] for loc in body["plannedLocations"]] == [1, 2]
    assert body["metadata"]["selectedPlaceTypes"] == ["restaurant", "park", "night_club"]

    path = os.path.join(settings.SEARCH_LOG_DIR, body["fileName"])
    assert body["fileName"].startswith("event-plan-places-")
    with open(path, encoding="utf-8") as f:
        logged = json.load(f)
    assert logged["searchMetadata"]["totalFound"] == 10
    assert logged["searchRadius"] == 1500
    assert len(logged["places"]) == 10


def test_event_plan_search_log_disabled(client, monkeypatch):
    monkeypatch.setattr(settings, "SEARCH_LOG_ENABLED", False)

    resp = client.post("/api/event-plan", json=planning_payload(placeTypes=["park"]))

    assert resp.status_code == 200
    assert resp.json()["fileName"] is None
    assert not os.path.exists(settings.SEARCH_LOG_DIR)


def test_event_plan_missing_location(client):
    resp = client.post("/api/event-plan", json=planning_payload(startingLocation={}))

    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "Starting location is required"


def test_event_plan_bad_radius(client):
    resp = client.post("/api/event-plan", json=planning_payload(radius=-5))
    assert resp.status_code == 400
    assert resp.json()["detail"]["success"] is False


def test_event_plan_alcohol_with_minors(client):
    payload = planning_payload(eventDescription="wine and cheese", ageRange=[15, 18])

    resp = client.post("/api/event-plan", json=payload)

    assert resp.status_code == 400
    assert "under 21" in resp.json()["detail"]["error"]


def test_event_plan_no_places(client, places_client):
    places_client.results = {}

    resp = client.post("/api/event-plan", json=planning_payload(placeTypes=["park"]))

    assert resp.status_code == 404


def test_event_plan_missing_places_key(llm):
    app.dependency_overrides[get_places_client] = lambda: PlacesClient(api_key="")
    app.dependency_overrides[get_gemini_client] = lambda: llm
    try:
        resp = TestClient(app).post("/api/event-plan", json=planning_payload(placeTypes=["park"]))
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert "not configured" in resp.json()["detail"]["error"]


def test_event_routes(client):
    payload = planning_payload(placeTypes=["restaurant", "park", "night_club"], numberOfRoutes=2)

    resp = client.post("/api/event-plan/routes", json=payload)

    assert resp.status_code == 200
    body = resp.json()
    assert [r["routeNumber"] for r in body["routes"]] == [1, 2]
    assert body["routes"][0]["routeName"] == "Premium Experience (Route 1)"
    assert body["routes"][1]["routeName"] == "Diverse Mix (Route 2)"
    assert body["fileName"].startswith("multiple-routes-places-")


def test_event_routes_count_is_capped(client):
    payload = planning_payload(placeTypes=["restaurant", "park"], numberOfRoutes=50)

    body = client.post("/api/event-plan/routes", json=payload).json()

    assert len(body["routes"]) == settings.MAX_ROUTE_COUNT


def test_event_routes_default_count(client):
    body = client.post("/api/event-plan/routes", json=planning_payload(placeTypes=["restaurant"])).json()
    assert len(body["routes"]) == settings.DEFAULT_ROUTE_COUNT


def test_regenerate_point(client):
    payload = {
        "startingLocation": {"location": {"lat": 1.28, "lng": 103.86}},
        "radius": 1000,
        "currentLocation": {"id": "r4", "type": "restaurant"},
        "allCurrentLocations": [{"id": "r4"}, {"id": "p0"}],
        "index": 0,
        "selectedPlaceTypes": ["restaurant", "park"],
    }

    resp = client.post("/api/event-plan/regenerate-point", json=payload)

    assert resp.status_code == 200
    new = resp.json()["newLocation"]
    assert new["id"] not in {"r4", "p0"}
    assert new["order"] == 1


def test_regenerate_point_invalid(client):
    resp = client.post("/api/event-plan/regenerate-point", json={"index": 0})
    assert resp.status_code == 400


def test_add_point(client):
    payload = {
        "startingLocation": {"location": {"lat": 1.28, "lng": 103.86}},
        "radius": 1000,
        "currentLocations": [
            {"id": "r4", "type": "restaurant"},
            {"id": "p0", "type": "park"},
            {"id": "r3", "type": "restaurant"},
        ],
        "eventDescription": "birthday dinner",
        "selectedPlaceTypes": ["restaurant", "park"],
    }

    resp = client.post("/api/event-plan/add-point", json=payload)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["newLocation"]["id"] not in {"r4", "p0", "r3"}
    assert body["newLocation"]["order"] == 4


def test_add_point_no_places(client, places_client):
    places_client.results = {}
    payload = {
        "startingLocation": {"location": {"lat": 1.28, "lng": 103.86}},
        "currentLocations": [],
    }

    resp = client.post("/api/event-plan/add-point", json=payload)

    assert resp.status_code == 404
    assert resp.json()["detail"]["success"] is False


def test_add_point_invalid(client):
    resp = client.post("/api/event-plan/add-point", json={"currentLocations": []})
    assert resp.status_code == 400


@pytest.mark.parametrize("radius", [0, -10, 50001, "wide"])
def test_nearby_places_rejects_bad_radius(client, places_client, radius):
    resp = client.post(
        "/api/places/nearby",
        json={"location": {"lat": 1.28, "lng": 103.86}, "radius": radius, "placeTypes": ["park"]},
    )

    assert resp.status_code == 400
    assert places_client.calls == []


def test_nearby_places_accepts_max_radius(client, places_client):
    resp = client.post(
        "/api/places/nearby",
        json={"location": {"lat": 1.28, "lng": 103.86}, "radius": 50000, "placeTypes": ["park"]},
    )

    assert resp.status_code == 200
    assert places_client.calls[0][2] == 50000
