from typing import List, Optional
from app.core.exceptions import ConfigurationError
from app.schemas.itinerary import SearchConstraints
from app.services.gemini import GeminiClient, extract_json, gemini_client
from app.services.prompts import category_selection_prompt
from app.utils.logger import get_logger

logger = get_logger(__name__)

MAX_PLACE_TYPES = 8

DEFAULT_PLACE_TYPES = ["restaurant", "park", "tourist_attraction"]

# Google Places nearby-search "type" values
AVAILABLE_PLACE_TYPES = [
    "accounting",
    "airport",
    "amusement_park",
    "aquarium",
    "art_gallery",
    "atm",
    "bakery",
    "bank",
    "bar",
    "beauty_salon",
    "bicycle_store",
    "book_store",
    "bowling_alley",
    "bus_station",
    "cafe",
    "campground",
    "car_dealer",
    "car_rental",
    "car_repair",
    "car_wash",
    "casino",
    "cemetery",
    "church",
    "city_hall",
    "clothing_store",
    "convenience_store",
    "courthouse",
    "dentist",
    "department_store",
    "doctor",
    "drugstore",
    "electrician",
    "electronics_store",
    "embassy",
    "fire_station",
    "florist",
    "funeral_home",
    "furniture_store",
    "gas_station",
    "gym",
    "hair_care",
    "hardware_store",
    "hindu_temple",
    "home_goods_store",
    "hospital",
    "insurance_agency",
    "jewelry_store",
    "laundry",
    "lawyer",
    "library",
    "light_rail_station",
    "liquor_store",
    "local_government_office",
    "locksmith",
    "lodging",
    "meal_delivery",
    "meal_takeaway",
    "mosque",
    "movie_rental",
    "movie_theater",
    "moving_company",
    "museum",
    "night_club",
    "painter",
    "park",
    "parking",
    "pet_store",
    "pharmacy",
    "physiotherapist",
    "plumber",
    "police",
    "post_office",
    "primary_school",
    "real_estate_agency",
    "restaurant",
    "roofing_contractor",
    "rv_park",
    "school",
    "secondary_school",
    "shoe_store",
    "shopping_mall",
    "spa",
    "stadium",
    "storage",
    "store",
    "subway_station",
    "supermarket",
    "synagogue",
    "taxi_stand",
    "tourist_attraction",
    "train_station",
    "transit_station",
    "travel_agency",
    "university",
    "veterinary_care",
    "zoo",
]

_ALLOWED = set(AVAILABLE_PLACE_TYPES)


def clean_place_types(candidates: object) -> List[str]:
    """Keep allow-listed string tags, deduplicated in order, capped."""
    if not isinstance(candidates, list):
        return []
    cleaned: List[str] = []
    for tag in candidates:
        if isinstance(tag, str) and tag in _ALLOWED and tag not in cleaned:
            cleaned.append(tag)
    return cleaned[:MAX_PLACE_TYPES]


def select_categories(
    description: str,
    constraints: SearchConstraints,
    client: Optional[GeminiClient] = None,
) -> List[str]:
    """
    Ask the model which provider tags to search for this event.

    Best effort: any failure returns DEFAULT_PLACE_TYPES.
    """
    client = client or gemini_client

    if not description or not description.strip():
        logger.warning("Empty event description, using default place types")
        return list(DEFAULT_PLACE_TYPES)

    prompt = category_selection_prompt(description, constraints, AVAILABLE_PLACE_TYPES)

    try:
        raw = client.generate(
            prompt,
            max_output_tokens=200,
            temperature=0.3,
            response_mime_type="application/json",
        )
    except ConfigurationError:
        logger.warning("Gemini not configured, using default place types")
        return list(DEFAULT_PLACE_TYPES)
    except Exception as e:
        logger.error(f"Place type selection failed: {e}")
        return list(DEFAULT_PLACE_TYPES)

    try:
        parsed = extract_json(raw)
    except ValueError:
        logger.warning(f"Non-JSON place type reply: {raw!r}")
        return list(DEFAULT_PLACE_TYPES)

    selected = clean_place_types(parsed)
    if not selected:
        logger.warning(f"No valid place types in reply: {raw!r}")
        return list(DEFAULT_PLACE_TYPES)

    logger.info(f"Selected place types for '{description}': {', '.join(selected)}")
    return selected
