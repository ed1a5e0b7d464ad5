import os
import json
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from app.api.dependencies import get_gemini_client, get_places_client
from app.core.config import settings
from app.core.exceptions import (
    ConfigurationError,
    NoPlacesFoundError,
    PlanningValidationError,
)
from app.schemas.itinerary import (
    AddPointRequest,
    Place,
    RegeneratePointRequest,
    SearchConstraints,
)
from app.services.gemini import GeminiClient
from app.services.pipeline import generate_routes, plan_event, search_event_places
from app.services.places import PlacesClient
from app.services.regenerate import add_point, regenerate_point
from app.services.transformers import (
    event_parameters,
    transform_plan_to_frontend,
    transform_planning_payload,
    transform_routes_to_frontend,
)
from app.utils.logger import get_logger
from app.utils.validators import validate_planning_payload

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["events"])


# Storage Helpers


def get_search_log_dir() -> str:
    """Absolute path of the search log directory."""
    if os.path.isabs(settings.SEARCH_LOG_DIR):
        return settings.SEARCH_LOG_DIR
    return os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
        settings.SEARCH_LOG_DIR,
    )


def save_search_log(
    prefix: str,
    timestamp: int,
    constraints: SearchConstraints,
    place_types: List[str],
    places: List[Place],
) -> Optional[str]:
    """
    Write the raw search result to the flat-file log.

    Best effort: failures are logged and None is returned.
    """
    if not settings.SEARCH_LOG_ENABLED:
        return None

    file_name = f"{prefix}-{timestamp}.json"
    document = {
        "timestamp": timestamp,
        "searchLocation": constraints.origin.model_dump(),
        "searchRadius": constraints.radius_m,
        "placeType": prefix.replace("-places", ""),
        "placeTypes": place_types,
        "eventParameters": event_parameters(constraints),
        "searchMetadata": {
            "totalFound": len(places),
            "searchedAt": datetime.now(timezone.utc).isoformat(),
            "radiusMeters": constraints.radius_m,
        },
        "places": [p.model_dump() for p in places],
    }

    try:
        log_dir = get_search_log_dir()
        os.makedirs(log_dir, exist_ok=True)
        path = os.path.join(log_dir, file_name)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f, ensure_ascii=False, indent=2)
    except OSError as e:
        logger.warning(f"Failed to write search log {file_name}: {e}")
        return None

    logger.info(f"Search log saved: {path}")
    return file_name


def error_detail(message: str, details: Optional[str] = None) -> Dict[str, Any]:
    return {"success": False, "error": message, "details": details}


def parse_constraints(payload: dict) -> SearchConstraints:
    """Validate and parse a planning payload, raising 400 on bad input."""
    is_valid, error_msg = validate_planning_payload(payload)
    if not is_valid:
        raise HTTPException(status_code=400, detail=error_detail(error_msg))
    try:
        return transform_planning_payload(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=error_detail("Invalid planning request", str(e)),
        )


# API Endpoints


@router.post("/event-plan")
def create_event_plan(
    payload: dict,
    places_client: PlacesClient = Depends(get_places_client),
    llm: GeminiClient = Depends(get_gemini_client),
):
    """
    Plan a single event itinerary.

    Flow:
    1. Validate payload
    2. Pick place types (explicit placeTypes or model selection)
    3. Search nearby places and log the raw result
    4. Filter candidates, generate itinerary, extract ordered locations

    Returns:
        {
            "success": True,
            "eventPlan": str,
            "plannedLocations": [...],
            "placesFound": int,
            "fileName": str | None,
            "metadata": {...}
        }

    Raises:
        HTTPException: 400 invalid request, 404 no places, 500 config/processing errors
    """
    try:
        constraints = parse_constraints(payload)

        place_types, places = search_event_places(
            constraints,
            payload.get("placeTypes"),
            places_client=places_client,
            llm=llm,
        )

        timestamp = int(time.time() * 1000)
        file_name = save_search_log(
            "event-plan-places", timestamp, constraints, place_types, places
        )

        result = plan_event(places, constraints, place_types, llm=llm)
        return transform_plan_to_frontend(result, constraints, timestamp, file_name)

    except HTTPException:
        raise
    except PlanningValidationError as e:
        raise HTTPException(status_code=400, detail=error_detail(str(e)))
    except NoPlacesFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(str(e)))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(status_code=500, detail=error_detail(str(e)))
    except Exception as e:
        logger.exception("Failed to generate event plan")
        raise HTTPException(
            status_code=500,
            detail=error_detail(
                "Failed to generate event plan. Please try again.", str(e)
            ),
        )


@router.post("/event-plan/routes")
def create_event_routes(
    payload: dict,
    places_client: PlacesClient = Depends(get_places_client),
    llm: GeminiClient = Depends(get_gemini_client),
):
    """
    Plan several alternative routes over one search.

    numberOfRoutes defaults to DEFAULT_ROUTE_COUNT and is capped at
    MAX_ROUTE_COUNT.

    Raises:
        HTTPException: 400 invalid request, 404 no places, 500 config/processing errors
    """
    try:
        constraints = parse_constraints(payload)

        n = payload.get("numberOfRoutes") or settings.DEFAULT_ROUTE_COUNT
        n = max(1, min(int(n), settings.MAX_ROUTE_COUNT))

        place_types, places = search_event_places(
            constraints,
            payload.get("placeTypes"),
            places_client=places_client,
            llm=llm,
        )

        timestamp = int(time.time() * 1000)
        file_name = save_search_log(
            "multiple-routes-places", timestamp, constraints, place_types, places
        )

        routes = generate_routes(places, constraints, n=n, llm=llm)
        if not routes:
            raise HTTPException(
                status_code=500,
                detail=error_detail("Failed to generate any route. Please try again."),
            )

        return transform_routes_to_frontend(
            routes, len(places), constraints, timestamp, place_types, file_name
        )

    except HTTPException:
        raise
    except PlanningValidationError as e:
        raise HTTPException(status_code=400, detail=error_detail(str(e)))
    except NoPlacesFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(str(e)))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(status_code=500, detail=error_detail(str(e)))
    except Exception as e:
        logger.exception("Failed to generate multiple routes")
        raise HTTPException(
            status_code=500,
            detail=error_detail(
                "Failed to generate multiple routes. Please try again.", str(e)
            ),
        )


@router.post("/event-plan/regenerate-point")
def regenerate_route_point(
    payload: dict,
    places_client: PlacesClient = Depends(get_places_client),
):
    """
    Replace one stop of a route with a place not already on it.

    Returns:
        {"success": True, "newLocation": {...}}
    """
    try:
        try:
            request = RegeneratePointRequest.model_validate(payload)
        except ValidationError as e:
            raise HTTPException(
                status_code=400,
                detail=error_detail("Invalid regenerate request", str(e)),
            )

        existing_ids = [
            str(loc.get("id")) for loc in request.allCurrentLocations if loc.get("id")
        ]
        new_location = regenerate_point(
            current_location=request.currentLocation,
            existing_ids=existing_ids,
            origin=request.startingLocation.location,
            radius_m=request.radius or settings.DEFAULT_RADIUS_M,
            place_types=request.selectedPlaceTypes,
            index=request.index,
            client=places_client,
        )
        return {"success": True, "newLocation": new_location.model_dump()}

    except HTTPException:
        raise
    except NoPlacesFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(str(e)))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(status_code=500, detail=error_detail(str(e)))
    except Exception as e:
        logger.exception("Failed to regenerate point")
        raise HTTPException(
            status_code=500,
            detail=error_detail("Failed to regenerate point. Please try again.", str(e)),
        )


@router.post("/event-plan/add-point")
def add_route_point(
    payload: dict,
    places_client: PlacesClient = Depends(get_places_client),
):
    """
    Append one new stop, not already on the route, to the end of it.

    Returns:
        {"success": True, "newLocation": {...}}
    """
    try:
        try:
            request = AddPointRequest.model_validate(payload)
        except ValidationError as e:
            raise HTTPException(
                status_code=400,
                detail=error_detail("Invalid add point request", str(e)),
            )

        new_location = add_point(
            current_locations=request.currentLocations,
            origin=request.startingLocation.location,
            radius_m=request.radius or settings.DEFAULT_RADIUS_M,
            place_types=request.selectedPlaceTypes,
            client=places_client,
        )
        return {"success": True, "newLocation": new_location.model_dump()}

    except HTTPException:
        raise
    except NoPlacesFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(str(e)))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(status_code=500, detail=error_detail(str(e)))
    except Exception as e:
        logger.exception("Failed to add point")
        raise HTTPException(
            status_code=500,
            detail=error_detail("Failed to add point. Please try again.", str(e)),
        )
