import time
import requests
from pydantic import ValidationError
from typing import Dict, Iterable, List, Optional
from app.core.config import settings
from app.core.exceptions import ConfigurationError, ProviderError
from app.schemas.itinerary import Coordinates, Place
from app.schemas.providers import NearbySearchResponse, RawPlace
from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CATEGORY = "dining"

# Provider tag -> normalized category; anything missing maps to DEFAULT_CATEGORY
CATEGORY_BY_PLACE_TYPE: Dict[str, str] = {
    "restaurant": "dining",
    "cafe": "dining",
    "bakery": "dining",
    "meal_takeaway": "dining",
    "meal_delivery": "dining",
    "food": "dining",
    "park": "outdoor",
    "campground": "outdoor",
    "rv_park": "outdoor",
    "zoo": "outdoor",
    "natural_feature": "outdoor",
    "night_club": "nightlife",
    "bar": "nightlife",
    "casino": "nightlife",
    "liquor_store": "nightlife",
    "museum": "culture",
    "art_gallery": "culture",
    "library": "culture",
    "tourist_attraction": "culture",
    "church": "culture",
    "hindu_temple": "culture",
    "mosque": "culture",
    "synagogue": "culture",
    "city_hall": "culture",
    "movie_theater": "entertainment",
    "bowling_alley": "entertainment",
    "amusement_park": "entertainment",
    "aquarium": "entertainment",
    "stadium": "entertainment",
    "shopping_mall": "shopping",
    "department_store": "shopping",
    "clothing_store": "shopping",
    "book_store": "shopping",
    "jewelry_store": "shopping",
    "shoe_store": "shopping",
    "store": "shopping",
    "florist": "shopping",
    "spa": "wellness",
    "gym": "wellness",
    "beauty_salon": "wellness",
    "hair_care": "wellness",
}


def categorize(place_type: str) -> str:
    return CATEGORY_BY_PLACE_TYPE.get(place_type, DEFAULT_CATEGORY)


class PlacesClient:
    def __init__(self, api_key: Optional[str] = None, url: Optional[str] = None):
        self._api_key = api_key
        self._url = url

    @property
    def api_key(self) -> str:
        return self._api_key if self._api_key is not None else settings.GOOGLE_MAPS_API_KEY

    @property
    def url(self) -> str:
        return self._url or settings.PLACES_NEARBY_URL

    def nearby(
        self, lat: float, lng: float, radius_m: int, place_type: str
    ) -> List[RawPlace]:
        """
        One nearby-search call for a single provider tag.

        Raises:
            ConfigurationError: no API key configured
            ProviderError: bad HTTP status, provider status or payload shape
        """
        if not self.api_key:
            raise ConfigurationError("Google Maps API key not configured")

        params = {
            "location": f"{lat},{lng}",
            "radius": radius_m,
            "type": place_type,
            "key": self.api_key,
        }
        resp = requests.get(self.url, params=params, timeout=settings.PLACES_TIMEOUT)
        if not resp.ok:
            raise ProviderError(
                f"Nearby search for {place_type} failed: {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            data = NearbySearchResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ProviderError(f"Malformed nearby search payload: {e}")

        if data.status not in ("OK", "ZERO_RESULTS"):
            raise ProviderError(
                f"Nearby search for {place_type} returned {data.status}: "
                f"{data.error_message or 'no message'}"
            )

        return data.results


def normalize_place(raw: RawPlace, place_type: str) -> Place:
    """Map a raw provider record onto the Place shape."""
    return Place(
        id=raw.place_id,
        displayName=raw.name or f"Unknown {place_type}",
        formattedAddress=raw.vicinity or raw.formatted_address,
        location=Coordinates(
            lat=raw.geometry.location.lat, lng=raw.geometry.location.lng
        ),
        category=categorize(place_type),
        placeType=place_type,
        rating=raw.rating,
        userRatingCount=raw.user_ratings_total,
        priceLevel=raw.price_level,
        types=list(raw.types),
        businessStatus=raw.business_status,
    )


def dedupe_places(places: Iterable[Place]) -> List[Place]:
    """Keep the first occurrence of every place id."""
    seen = set()
    unique = []
    for place in places:
        if place.id in seen:
            continue
        seen.add(place.id)
        unique.append(place)
    return unique


def search_nearby_places(
    center: Coordinates,
    radius_m: int,
    place_types: List[str],
    client: Optional[PlacesClient] = None,
) -> List[Place]:
    """
    Search every provider tag around a coordinate and merge the results.

    A failing tag is logged and skipped. A missing API key is not: the
    ConfigurationError reaches the caller.

    Args:
        center: Search origin
        radius_m: Search radius in metres
        place_types: Provider tags, searched one call each in this order
        client: Places client (defaults to the module-level one)

    Returns:
        Places deduplicated by id, first-seen order
    """
    client = client or places_client
    all_places: List[Place] = []

    for i, place_type in enumerate(place_types):
        if i > 0 and settings.PLACES_REQUEST_DELAY_SEC > 0:
            time.sleep(settings.PLACES_REQUEST_DELAY_SEC)

        try:
            raw_places = client.nearby(center.lat, center.lng, radius_m, place_type)
        except (ProviderError, requests.exceptions.RequestException) as e:
            logger.warning(f"Skipping place type {place_type}: {e}")
            continue

        kept = [
            normalize_place(raw, place_type)
            for raw in raw_places
            if raw.place_id and raw.geometry is not None
        ]
        logger.info(f"Place type {place_type}: {len(kept)} results")
        all_places.extend(kept)

    unique = dedupe_places(all_places)
    logger.info(
        f"Found {len(unique)} unique places across {len(place_types)} place types"
    )
    return unique


places_client = PlacesClient()
