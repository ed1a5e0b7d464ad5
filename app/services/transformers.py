from typing import Any, Dict, List, Optional
from app.core.config import settings
from app.schemas.itinerary import (
    AgeRange,
    EventPlanResult,
    PlanningRequest,
    RouteOption,
    SearchConstraints,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

# ============================================================================
# Frontend → Backend Transformation
# ============================================================================


def to_search_constraints(request: PlanningRequest) -> SearchConstraints:
    """
    Build the immutable constraint bundle from a parsed UI payload.

    - radius falls back to DEFAULT_RADIUS_M
    - ageRange [min, max] becomes AgeRange
    - eventDescription is stripped
    """
    age_range = None
    if request.ageRange:
        age_range = AgeRange(min_age=request.ageRange[0], max_age=request.ageRange[1])

    return SearchConstraints(
        origin=request.startingLocation.location,
        radius_m=request.radius or settings.DEFAULT_RADIUS_M,
        description=(request.eventDescription or "").strip(),
        age_range=age_range,
        budget=request.budget,
        event_date=request.eventDate,
        start_time=request.startTime,
        end_time=request.endTime,
        hour_range=request.hourRange,
        number_of_people=request.numberOfPeople,
    )


def transform_planning_payload(payload: Dict[str, Any]) -> SearchConstraints:
    """
    Parse a raw UI payload into SearchConstraints.

    Raises:
        pydantic.ValidationError: payload does not match PlanningRequest
    """
    request = PlanningRequest.model_validate(payload)
    constraints = to_search_constraints(request)
    logger.info(
        f"Planning request: origin=({constraints.origin.lat}, {constraints.origin.lng}), "
        f"radius={constraints.radius_m}m, hours={constraints.hour_range}, "
        f"people={constraints.number_of_people}"
    )
    return constraints


# ============================================================================
# Backend → Frontend Transformation
# ============================================================================


def event_parameters(constraints: SearchConstraints) -> Dict[str, Any]:
    """Event parameters echoed back in metadata and search logs."""
    age_range = None
    if constraints.age_range is not None:
        age_range = [constraints.age_range.min_age, constraints.age_range.max_age]
    return {
        "hourRange": constraints.hour_range,
        "numberOfPeople": constraints.number_of_people,
        "eventDescription": constraints.description,
        "eventDate": constraints.event_date,
        "startTime": constraints.start_time,
        "endTime": constraints.end_time,
        "ageRange": age_range,
        "budget": constraints.budget,
    }


def build_metadata(
    constraints: SearchConstraints,
    timestamp: int,
    place_types: List[str],
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    metadata = {
        "timestamp": timestamp,
        "searchLocation": constraints.origin.model_dump(),
        "radius": constraints.radius_m,
        "eventParameters": event_parameters(constraints),
        "selectedPlaceTypes": place_types,
    }
    metadata.update(extra or {})
    return metadata


def transform_plan_to_frontend(
    result: EventPlanResult,
    constraints: SearchConstraints,
    timestamp: int,
    file_name: Optional[str],
) -> Dict[str, Any]:
    """
    Shape a single-route result for the UI.

    Returns:
        {
            "success": True,
            "eventPlan": str,
            "plannedLocations": [...],
            "placesFound": int,
            "fileName": str | None,
            "metadata": {...}
        }
    """
    return {
        "success": True,
        "eventPlan": result.itinerary.text,
        "plannedLocations": [
            loc.model_dump() for loc in result.itinerary.locations
        ],
        "placesFound": len(result.places),
        "fileName": file_name,
        "metadata": build_metadata(
            constraints,
            timestamp,
            result.place_types,
            {"placesConsidered": len(result.filtered_places)},
        ),
    }


def transform_route_to_frontend(
    route: RouteOption, places_found: int
) -> Dict[str, Any]:
    return {
        "routeNumber": route.routeNumber,
        "routeName": route.routeName,
        "strategy": route.strategy,
        "suggestedPlan": route.itinerary.text,
        "plannedLocations": [loc.model_dump() for loc in route.itinerary.locations],
        "placesFound": places_found,
        "eventParameters": event_parameters(route.constraints),
    }


def transform_routes_to_frontend(
    routes: List[RouteOption],
    places_found: int,
    constraints: SearchConstraints,
    timestamp: int,
    place_types: List[str],
    file_name: Optional[str],
) -> Dict[str, Any]:
    return {
        "success": True,
        "routes": [transform_route_to_frontend(r, places_found) for r in routes],
        "placesFound": places_found,
        "fileName": file_name,
        "metadata": build_metadata(constraints, timestamp, place_types),
    }
