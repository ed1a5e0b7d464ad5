from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from app.api.dependencies import get_places_client
from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.schemas.itinerary import MAX_RADIUS_M, Coordinates
from app.services.categories import (
    AVAILABLE_PLACE_TYPES,
    DEFAULT_PLACE_TYPES,
    MAX_PLACE_TYPES,
    clean_place_types,
)
from app.services.places import PlacesClient, search_nearby_places
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["places"])


@router.get("/place-types")
def list_place_types():
    """Place types the planner may search, plus the default selection."""
    return {
        "status": "success",
        "placeTypes": AVAILABLE_PLACE_TYPES,
        "defaultPlaceTypes": DEFAULT_PLACE_TYPES,
        "maxPlaceTypes": MAX_PLACE_TYPES,
    }


@router.post("/places/nearby")
def nearby_places(
    payload: dict,
    places_client: PlacesClient = Depends(get_places_client),
):
    """
    Search around a coordinate for explicit place types.

    Body:
        {"location": {"lat": float, "lng": float}, "radius": int, "placeTypes": [str]}
    """
    try:
        try:
            center = Coordinates.model_validate(payload.get("location") or {})
        except ValidationError as e:
            raise HTTPException(
                status_code=400, detail={"error": "Invalid location", "details": str(e)}
            )

        place_types = clean_place_types(payload.get("placeTypes"))
        if not place_types:
            raise HTTPException(
                status_code=400,
                detail={"error": "At least one supported place type is required"},
            )

        radius = payload.get("radius")
        if radius is None:
            radius = settings.DEFAULT_RADIUS_M
        if not isinstance(radius, int) or not 1 <= radius <= MAX_RADIUS_M:
            raise HTTPException(
                status_code=400,
                detail={"error": f"Radius must be between 1 and {MAX_RADIUS_M} meters"},
            )

        places = search_nearby_places(center, radius, place_types, client=places_client)
        return {
            "status": "success",
            "count": len(places),
            "data": [p.model_dump() for p in places],
        }

    except HTTPException:
        raise
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(status_code=500, detail={"error": str(e)})
    except Exception as e:
        logger.exception("Nearby search failed")
        raise HTTPException(status_code=500, detail={"error": str(e)})
