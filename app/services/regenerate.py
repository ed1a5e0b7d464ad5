import random
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional
from app.core.exceptions import NoPlacesFoundError
from app.schemas.itinerary import Coordinates, Place, PlannedLocation
from app.services.extractor import to_planned_location
from app.services.places import PlacesClient, dedupe_places, search_nearby_places
from app.services.strategies import HIGH_RATING, by_rating
from app.utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_PLACE_TYPES = ["restaurant", "park", "night_club"]

# Searched at twice the radius when alternatives run low
COMMON_PLACE_TYPES = [
    "restaurant",
    "cafe",
    "park",
    "museum",
    "tourist_attraction",
    "art_gallery",
    "shopping_mall",
]

MIN_ALTERNATIVES = 10

# Regeneration
MIN_SAME_TYPE = 5
MIN_CANDIDATES = 8
TOP_POOL = 10
RANDOM_POOL = 5

# Addition
MAX_TYPE_ON_ROUTE = 2
MIN_ADD_CANDIDATES = 5
DECENT_RATING = 3.5
ADD_RANDOM_POOL = 8


def find_alternatives(
    origin: Coordinates,
    radius_m: int,
    place_types: List[str],
    excluded: set,
    client: Optional[PlacesClient] = None,
    require_initial: bool = False,
) -> List[Place]:
    """
    Places near origin that are not already on the route.

    Searches the selected types first and, when fewer than
    MIN_ALTERNATIVES remain, COMMON_PLACE_TYPES at twice the radius.

    Raises:
        NoPlacesFoundError: require_initial is set and the first search is empty
    """
    found = search_nearby_places(origin, radius_m, place_types, client=client)
    if require_initial and not found:
        raise NoPlacesFoundError("No places found in the specified area")

    available = [p for p in found if p.id not in excluded]
    logger.info(
        f"Filtered out {len(found) - len(available)} existing locations "
        f"from {len(found)} found places"
    )

    if len(available) < MIN_ALTERNATIVES:
        logger.info("Few alternatives, trying a broader search")
        broader = search_nearby_places(
            origin,
            radius_m * 2,
            COMMON_PLACE_TYPES,
            client=client,
        )
        available = dedupe_places(
            available + [p for p in broader if p.id not in excluded]
        )

    return available


def select_candidates(
    available: List[Place], current_type: Optional[str], place_types: List[str]
) -> List[Place]:
    """
    Widen from same-type places to the other selected types, then to any
    highly rated place, until there are enough candidates.
    """
    candidates = [p for p in available if p.placeType == current_type]

    if len(candidates) < MIN_SAME_TYPE:
        candidates += [
            p
            for p in available
            if p.placeType in place_types and p.placeType != current_type
        ]

    if len(candidates) < MIN_CANDIDATES:
        ids = {p.id for p in candidates}
        candidates += [
            p for p in available if (p.rating or 0) >= HIGH_RATING and p.id not in ids
        ]

    candidates = dedupe_places(candidates)
    return candidates or available


def select_addition_candidates(
    available: List[Place], route_types: List[str], place_types: List[str]
) -> List[Place]:
    """
    Prefer selected types that appear fewer than MAX_TYPE_ON_ROUTE times on
    the route; widen to any decently rated place when that leaves too few.
    """
    counts = Counter(route_types)
    underrepresented = [t for t in place_types if counts[t] < MAX_TYPE_ON_ROUTE]

    candidates = available
    if underrepresented:
        preferred = [p for p in available if p.placeType in underrepresented]
        if preferred:
            logger.info(
                f"Prioritizing underrepresented types: {', '.join(underrepresented)}"
            )
            candidates = preferred

    if len(candidates) < MIN_ADD_CANDIDATES:
        candidates = [p for p in available if (p.rating or 0) >= DECENT_RATING]

    return candidates or available


def regenerate_point(
    current_location: Dict[str, Any],
    existing_ids: Iterable[str],
    origin: Coordinates,
    radius_m: int,
    place_types: Optional[List[str]],
    index: int,
    client: Optional[PlacesClient] = None,
    rng: Optional[random.Random] = None,
) -> PlannedLocation:
    """
    Swap one stop of a route for a fresh place not already on it.

    Args:
        current_location: The stop being replaced (PlannedLocation shape)
        existing_ids: Ids of every stop currently on the route
        origin: Centre of the original search
        radius_m: Radius of the original search
        place_types: Types selected for the original plan
        index: 0-based position of the stop
        client: Places client
        rng: Random source for the final pick

    Raises:
        NoPlacesFoundError: no alternative exists even after a wider search
    """
    rng = rng or random.Random()
    types = place_types or FALLBACK_PLACE_TYPES
    excluded = {str(i) for i in existing_ids}

    available = find_alternatives(origin, radius_m, types, excluded, client=client)
    if not available:
        raise NoPlacesFoundError("No alternative places found")

    candidates = select_candidates(available, current_location.get("type"), types)
    top = by_rating(candidates)[:TOP_POOL]
    picked = top[rng.randrange(min(RANDOM_POOL, len(top)))]

    logger.info(
        f"Regenerated point {index}: {picked.displayName} "
        f"({picked.placeType}, rating: {picked.rating})"
    )
    return to_planned_location(picked, index + 1)


def add_point(
    current_locations: List[Dict[str, Any]],
    origin: Coordinates,
    radius_m: int,
    place_types: Optional[List[str]],
    client: Optional[PlacesClient] = None,
    rng: Optional[random.Random] = None,
) -> PlannedLocation:
    """
    Append a new stop to the end of a route.

    Raises:
        NoPlacesFoundError: the search is empty, or every place is on the route
    """
    rng = rng or random.Random()
    types = place_types or FALLBACK_PLACE_TYPES
    excluded = {str(loc.get("id")) for loc in current_locations if loc.get("id")}

    available = find_alternatives(
        origin, radius_m, types, excluded, client=client, require_initial=True
    )
    if not available:
        raise NoPlacesFoundError("No additional places found")

    route_types = [loc.get("type") for loc in current_locations]
    candidates = select_addition_candidates(available, route_types, types)
    top = by_rating(candidates)[:ADD_RANDOM_POOL]
    picked = top[rng.randrange(len(top))]

    logger.info(
        f"Added point from {len(candidates)} candidates: {picked.displayName} "
        f"({picked.placeType})"
    )
    return to_planned_location(picked, len(current_locations) + 1)
