from typing import Any, Dict, List, Optional
from app.schemas.itinerary import Place, PlannedLocation, SearchConstraints


# Configuration

ADULT_AGE = 21

ALCOHOL_KEYWORDS = [
    "alcohol",
    "drink",
    "bar",
    "pub",
    "wine",
    "beer",
    "cocktail",
    "liquor",
    "brewery",
    "winery",
    "drinking",
]

ADULT_ONLY_PLACE_TYPES = {"bar", "night_club", "liquor_store"}


# Request Validation


def validate_planning_payload(payload: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    """
    Check the fields every planning request needs before parsing.

    Returns:
        Tuple of (is_valid, error_message)
    """
    starting = payload.get("startingLocation") or {}
    location = starting.get("location") if isinstance(starting, dict) else None
    if not isinstance(location, dict) or location.get("lat") is None or location.get("lng") is None:
        return False, "Starting location is required"

    hour_range = payload.get("hourRange")
    if not isinstance(hour_range, (int, float)) or hour_range < 1:
        return False, "Time range must be at least 1 hour long"

    age_range = payload.get("ageRange")
    if age_range is not None:
        if (
            not isinstance(age_range, list)
            or len(age_range) != 2
            or not all(isinstance(a, int) for a in age_range)
        ):
            return False, "ageRange must be a [min, max] pair of whole numbers"
        if age_range[0] > age_range[1]:
            return False, "ageRange minimum cannot exceed its maximum"

    return True, None


# Age Rules


def analyze_age_range(constraints: SearchConstraints) -> Dict[str, bool]:
    """
    Returns:
        {"includes_minors": bool, "all_minors": bool}
    """
    if constraints.age_range is None:
        return {"includes_minors": False, "all_minors": False}
    return {
        "includes_minors": constraints.age_range.min_age < ADULT_AGE,
        "all_minors": constraints.age_range.max_age < ADULT_AGE,
    }


def mentions_alcohol(description: str) -> bool:
    text = (description or "").lower()
    return any(keyword in text for keyword in ALCOHOL_KEYWORDS)


def check_alcohol_rules(constraints: SearchConstraints) -> Optional[str]:
    """Error message when an all-minor group asks for alcohol, else None."""
    if analyze_age_range(constraints)["all_minors"] and mentions_alcohol(
        constraints.description
    ):
        return (
            "Your event description mentions alcohol but includes people under 21. "
            "Please remove alcohol references or adjust the age range and try again."
        )
    return None


def is_adult_only(place: Place) -> bool:
    return place.placeType in ADULT_ONLY_PLACE_TYPES or bool(
        ADULT_ONLY_PLACE_TYPES.intersection(place.types)
    )


def apply_age_restrictions(
    places: List[Place], constraints: SearchConstraints
) -> List[Place]:
    """Drop bars, night clubs and liquor stores when the group has minors."""
    if not analyze_age_range(constraints)["includes_minors"]:
        return places
    return [p for p in places if not is_adult_only(p)]


# Output Validation


def validate_planned_locations(
    itinerary_text: str,
    locations: List[PlannedLocation],
    places: List[Place],
) -> Dict[str, Any]:
    """
    Check extracted locations against the text and the offered places.

    Returns:
        {
            "valid": bool,
            "violations": [{"type": str, "message": str, "id": str}],
        }
    """
    violations = []
    offered = {p.id: p for p in places}
    text_lower = (itinerary_text or "").lower()
    previous_position = -1

    for expected_order, loc in enumerate(locations, start=1):
        if loc.id not in offered:
            violations.append(
                {
                    "type": "unknown_place",
                    "message": f"{loc.name} was not offered to the generator",
                    "id": loc.id,
                }
            )
            continue

        position = text_lower.find(offered[loc.id].displayName.lower())
        if position == -1:
            violations.append(
                {
                    "type": "not_mentioned",
                    "message": f"{loc.name} does not appear in the itinerary",
                    "id": loc.id,
                }
            )
        elif position < previous_position:
            violations.append(
                {
                    "type": "out_of_order",
                    "message": f"{loc.name} is mentioned before the previous stop",
                    "id": loc.id,
                }
            )
        else:
            previous_position = position

        if loc.order != expected_order:
            violations.append(
                {
                    "type": "order_gap",
                    "message": f"{loc.name} has order {loc.order}, expected {expected_order}",
                    "id": loc.id,
                }
            )

    return {"valid": not violations, "violations": violations}


def assert_locations_valid(
    itinerary_text: str,
    locations: List[PlannedLocation],
    places: List[Place],
) -> None:
    """Raise AssertionError listing every violation."""
    report = validate_planned_locations(itinerary_text, locations, places)
    if not report["valid"]:
        lines = [f"  - [{v['type']}] {v['message']}" for v in report["violations"]]
        raise AssertionError("Planned locations invalid:\n" + "\n".join(lines))
