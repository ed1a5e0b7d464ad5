import pytest
from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.schemas.itinerary import AgeRange, Coordinates, Place, SearchConstraints
from app.schemas.providers import RawPlace


ORIGIN = Coordinates(lat=1.2834, lng=103.8607)


class FakeLLM:
    """Gemini stand-in replaying canned replies; Exception entries are raised."""

    def __init__(self, replies=None, default=None):
        self.replies = list(replies or [])
        self.default = default
        self.calls = []

    def generate(self, prompt, **kwargs):
        self.calls.append({"prompt": prompt, **kwargs})
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise ConfigurationError("Gemini API key not configured")
        return reply


class FakePlacesClient:
    """Places stand-in keyed by place type; Exception entries are raised."""

    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []

    def nearby(self, lat, lng, radius_m, place_type):
        self.calls.append((lat, lng, radius_m, place_type))
        result = self.results.get(place_type, [])
        if isinstance(result, Exception):
            raise result
        return result


def raw_place(place_id, name=None, rating=None, price_level=None, types=None, lat=1.28, lng=103.86):
    return RawPlace.model_validate(
        {
            "place_id": place_id,
            "name": name or f"Venue {place_id}",
            "geometry": {"location": {"lat": lat, "lng": lng}},
            "vicinity": f"{place_id} Marina Way",
            "rating": rating,
            "user_ratings_total": 100 if rating else None,
            "price_level": price_level,
            "types": types or [],
        }
    )


def make_place(
    place_id,
    name=None,
    category="dining",
    place_type="restaurant",
    rating=None,
    price_level=None,
    types=None,
):
    return Place(
        id=place_id,
        displayName=name or f"Venue {place_id}",
        formattedAddress=f"{place_id} Marina Way",
        location=ORIGIN,
        category=category,
        placeType=place_type,
        rating=rating,
        priceLevel=price_level,
        types=types or [place_type],
    )


def make_constraints(**overrides):
    values = {
        "origin": ORIGIN,
        "radius_m": 1000,
        "description": "birthday dinner",
        "hour_range": 4,
        "number_of_people": 4,
    }
    values.update(overrides)
    if isinstance(values.get("age_range"), (list, tuple)):
        low, high = values["age_range"]
        values["age_range"] = AgeRange(min_age=low, max_age=high)
    return SearchConstraints(**values)


def planning_payload(**overrides):
    payload = {
        "startingLocation": {
            "location": {"lat": ORIGIN.lat, "lng": ORIGIN.lng},
            "address": "Marina Bay, Singapore",
        },
        "radius": 1500,
        "hourRange": 4,
        "numberOfPeople": 4,
        "ageRange": [25, 35],
        "budget": 50,
        "eventDate": "2025-06-01",
        "startTime": "18:00",
        "endTime": "22:00",
        "eventDescription": "birthday dinner with friends",
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def no_delays(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "PLACES_REQUEST_DELAY_SEC", 0)
    monkeypatch.setattr(settings, "ROUTE_GENERATION_DELAY_SEC", 0)
    monkeypatch.setattr(settings, "SEARCH_LOG_DIR", str(tmp_path / "api_logs"))
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
