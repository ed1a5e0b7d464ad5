from typing import Dict, List, Tuple
from app.schemas.itinerary import Place, PlannedLocation
from app.utils.logger import get_logger

logger = get_logger(__name__)


def to_planned_location(place: Place, order: int) -> PlannedLocation:
    return PlannedLocation(
        id=place.id,
        name=place.displayName,
        location=place.location,
        type=place.placeType,
        tags=list(place.types),
        formatted_address=place.formattedAddress,
        rating=place.rating,
        user_rating_total=place.userRatingCount,
        price_level=place.priceLevel,
        order=order,
    )


def _keep_best_rated_per_name(
    matches: List[Tuple[int, Place]],
) -> List[Tuple[int, Place]]:
    best: Dict[str, Tuple[int, Place]] = {}
    for match in matches:
        name = match[1].displayName
        current = best.get(name)
        if current is None or (match[1].rating or 0) > (current[1].rating or 0):
            best[name] = match
    return [m for m in matches if best[m[1].displayName] is m]


def extract_locations(
    itinerary_text: str, places: List[Place], dedupe_names: bool = False
) -> List[PlannedLocation]:
    """
    Map itinerary text back to the places it mentions.

    Each place is located by a case-insensitive search for its display name;
    places are ordered by first mention and numbered from 1. Names contained
    in other names (e.g. "Joe's" in "Joe's Diner") can match spuriously.

    Args:
        itinerary_text: Generated plan
        places: Places that were offered to the generator
        dedupe_names: Keep only the best-rated place among equal names

    Returns:
        Planned locations sorted by first mention
    """
    text_lower = (itinerary_text or "").lower()

    matches: List[Tuple[int, Place]] = []
    for place in places:
        if not place.displayName.strip():
            continue
        name = place.displayName.lower()
        position = text_lower.find(name)
        if position != -1:
            matches.append((position, place))

    # sorted() is stable, so equal positions keep input order
    matches = sorted(matches, key=lambda m: m[0])

    if dedupe_names:
        unique = _keep_best_rated_per_name(matches)
        if len(unique) != len(matches):
            logger.info(
                f"Dropped {len(matches) - len(unique)} duplicate venue name matches"
            )
        matches = unique

    return [
        to_planned_location(place, order)
        for order, (_, place) in enumerate(matches, start=1)
    ]
