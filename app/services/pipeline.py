from __future__ import annotations

import time
from typing import List, Optional, Tuple
from app.core.config import settings
from app.core.exceptions import NoPlacesFoundError, PlanningValidationError
from app.schemas.itinerary import (
    EventPlanResult,
    Itinerary,
    Place,
    RouteOption,
    SearchConstraints,
)
from app.services.candidate_filter import filter_places
from app.services.categories import clean_place_types, select_categories
from app.services.extractor import extract_locations
from app.services.gemini import GeminiClient
from app.services.itinerary import generate_itinerary
from app.services.places import PlacesClient, search_nearby_places
from app.services.strategies import (
    RouteStrategy,
    pad_places,
    strategy_for_route,
)
from app.utils.logger import get_logger
from app.utils.validators import apply_age_restrictions, check_alcohol_rules

logger = get_logger(__name__)


def search_event_places(
    constraints: SearchConstraints,
    place_types: Optional[List[str]] = None,
    places_client: Optional[PlacesClient] = None,
    llm: Optional[GeminiClient] = None,
) -> Tuple[List[str], List[Place]]:
    """
    Resolve the place types for an event and search around its origin.

    Explicit place_types win when any of them are on the allow-list;
    otherwise the model picks them from the event description.

    Raises:
        PlanningValidationError: alcohol requested by an all-minor group
        ConfigurationError: places API key missing
        NoPlacesFoundError: every place type came back empty

    Returns:
        (place types searched, unique places)
    """
    error = check_alcohol_rules(constraints)
    if error:
        raise PlanningValidationError(error)

    types = clean_place_types(place_types) if place_types else []
    if not types:
        types = select_categories(constraints.description, constraints, client=llm)

    places = search_nearby_places(
        constraints.origin, constraints.radius_m, types, client=places_client
    )
    if not places:
        raise NoPlacesFoundError("No places found in the specified area")

    return types, places


def _eligible_places(places: List[Place], constraints: SearchConstraints) -> List[Place]:
    if not places:
        raise NoPlacesFoundError("No places found in the specified area")

    eligible = apply_age_restrictions(places, constraints)
    if len(eligible) != len(places):
        logger.info(
            f"Removed {len(places) - len(eligible)} adult-only venues for a group with minors"
        )
    if not eligible:
        raise NoPlacesFoundError("No age-appropriate places found in the specified area")
    return eligible


def plan_event(
    places: List[Place],
    constraints: SearchConstraints,
    place_types: Optional[List[str]] = None,
    llm: Optional[GeminiClient] = None,
) -> EventPlanResult:
    """
    Single-route pipeline: age filter → model filter → itinerary → locations.

    Raises:
        NoPlacesFoundError: nothing left to plan with
    """
    eligible = _eligible_places(places, constraints)

    filtered = filter_places(eligible, constraints, client=llm)
    text = generate_itinerary(filtered, constraints, client=llm)
    locations = extract_locations(text, filtered)

    logger.info(
        f"Event plan complete: {len(places)} found, {len(filtered)} offered, "
        f"{len(locations)} planned"
    )

    return EventPlanResult(
        itinerary=Itinerary(text=text, locations=locations),
        places=places,
        filtered_places=filtered,
        place_types=place_types or [],
    )


def generate_routes(
    places: List[Place],
    constraints: SearchConstraints,
    n: int = 3,
    strategies: Optional[List[RouteStrategy]] = None,
    llm: Optional[GeminiClient] = None,
) -> List[RouteOption]:
    """
    Build n alternative routes over one search result.

    Route i uses strategy i mod len(strategies); each shortlist is padded to
    the minimum size from the eligible places. A route that fails outright
    is logged and left out.

    Raises:
        NoPlacesFoundError: nothing left to plan with
    """
    eligible = _eligible_places(places, constraints)
    routes: List[RouteOption] = []

    for i in range(n):
        strategy = strategy_for_route(i, strategies)
        route_number = i + 1
        try:
            shortlist = pad_places(strategy.select(eligible), eligible)
            logger.info(
                f"Route {route_number}/{n} ({strategy.name}): {len(shortlist)} venues"
            )

            text = generate_itinerary(
                shortlist,
                constraints,
                route_number=route_number,
                total_routes=n,
                client=llm,
            )
            locations = extract_locations(text, shortlist, dedupe_names=True)

            routes.append(
                RouteOption(
                    routeNumber=route_number,
                    routeName=f"{strategy.label} (Route {route_number})",
                    strategy=strategy.name,
                    itinerary=Itinerary(text=text, locations=locations),
                    constraints=constraints,
                )
            )
        except Exception:
            logger.exception(f"Route {route_number}/{n} failed, skipping")

        if i < n - 1 and settings.ROUTE_GENERATION_DELAY_SEC > 0:
            time.sleep(settings.ROUTE_GENERATION_DELAY_SEC)

    logger.info(f"Generated {len(routes)} of {n} route options")
    return routes
