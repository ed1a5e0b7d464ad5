from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

# Nearby search radius limit of the places provider
MAX_RADIUS_M = 50000


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class Place(BaseModel):
    """Normalized point of interest from the places provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    displayName: str
    formattedAddress: Optional[str] = None
    location: Coordinates
    category: str = "dining"
    placeType: str
    rating: Optional[float] = None
    userRatingCount: Optional[int] = None
    priceLevel: Optional[int] = None
    types: List[str] = []
    businessStatus: Optional[str] = None


class AgeRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_age: int
    max_age: int


class SearchConstraints(BaseModel):
    """Immutable input bundle for one planning request."""

    model_config = ConfigDict(frozen=True)

    origin: Coordinates
    radius_m: int
    description: str = ""
    age_range: Optional[AgeRange] = None
    budget: Optional[float] = None
    event_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    hour_range: int = Field(ge=1)
    number_of_people: int = Field(default=1, ge=1)


class StartingLocation(BaseModel):
    location: Coordinates
    address: Optional[str] = None


class PlanningRequest(BaseModel):
    """Planning payload as posted by the map UI."""

    startingLocation: StartingLocation
    radius: Optional[int] = Field(default=None, ge=1, le=MAX_RADIUS_M)
    hourRange: int = Field(ge=1)
    numberOfPeople: int = Field(default=1, ge=1)
    ageRange: Optional[List[int]] = None
    budget: Optional[float] = Field(default=None, ge=0)
    eventDate: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    eventDescription: str = ""
    placeTypes: Optional[List[str]] = None
    numberOfRoutes: Optional[int] = Field(default=None, ge=1)


class PlannedLocation(BaseModel):
    """A place mentioned by an itinerary, with its 1-based visit order."""

    id: str
    name: str
    location: Coordinates
    type: str
    tags: List[str] = []
    formatted_address: Optional[str] = None
    rating: Optional[float] = None
    user_rating_total: Optional[int] = None
    price_level: Optional[int] = None
    order: int


class Itinerary(BaseModel):
    text: str
    locations: List[PlannedLocation]


class EventPlanResult(BaseModel):
    itinerary: Itinerary
    places: List[Place]
    filtered_places: List[Place]
    place_types: List[str]


class RouteOption(BaseModel):
    routeNumber: int
    routeName: str
    strategy: str
    itinerary: Itinerary
    constraints: SearchConstraints


class RegeneratePointRequest(BaseModel):
    startingLocation: StartingLocation
    radius: Optional[int] = Field(default=None, ge=1, le=MAX_RADIUS_M)
    currentLocation: Dict[str, Any]
    allCurrentLocations: List[Dict[str, Any]] = []
    index: int = Field(ge=0)
    eventDescription: str = ""
    selectedPlaceTypes: Optional[List[str]] = None


class AddPointRequest(BaseModel):
    startingLocation: StartingLocation
    radius: Optional[int] = Field(default=None, ge=1, le=MAX_RADIUS_M)
    currentLocations: List[Dict[str, Any]] = []
    eventDescription: str = ""
    selectedPlaceTypes: Optional[List[str]] = None
