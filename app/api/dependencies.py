from app.services.gemini import GeminiClient, gemini_client
from app.services.places import PlacesClient, places_client


def get_places_client() -> PlacesClient:
    return places_client


def get_gemini_client() -> GeminiClient:
    return gemini_client
