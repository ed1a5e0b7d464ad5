"""
Named place-selection policies for alternative routes.

Each strategy turns the full search result into the shortlist handed to the
itinerary generator for one route. Routes cycle through ROUTE_STRATEGIES by
index, so adding a policy here adds a route flavour.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from app.schemas.itinerary import Place

MAX_ROUTE_PLACES = 8
MIN_ROUTE_PLACES = 3
HIGH_RATING = 4.0
MAX_BUDGET_PRICE_LEVEL = 2

CATEGORY_QUOTAS: Dict[str, int] = {"dining": 3, "outdoor": 2, "nightlife": 2}
OTHER_CATEGORY_QUOTA = 1


@dataclass(frozen=True)
class RouteStrategy:
    name: str
    label: str
    select: Callable[[List[Place]], List[Place]]


def by_rating(places: List[Place]) -> List[Place]:
    """Best rated first; unrated places last, input order kept on ties."""
    return sorted(
        places, key=lambda p: (p.rating is None, -(p.rating or 0.0))
    )


def select_top_rated(places: List[Place]) -> List[Place]:
    rated = [p for p in places if (p.rating or 0.0) >= HIGH_RATING]
    return by_rating(rated)[:MAX_ROUTE_PLACES]


def select_diverse(places: List[Place]) -> List[Place]:
    taken: Dict[str, int] = {}
    selected: List[Place] = []
    for place in by_rating(places):
        quota = CATEGORY_QUOTAS.get(place.category, OTHER_CATEGORY_QUOTA)
        if taken.get(place.category, 0) >= quota:
            continue
        taken[place.category] = taken.get(place.category, 0) + 1
        selected.append(place)
    return selected[:MAX_ROUTE_PLACES]


def select_budget(places: List[Place]) -> List[Place]:
    affordable = [
        p
        for p in places
        if p.priceLevel is None or p.priceLevel <= MAX_BUDGET_PRICE_LEVEL
    ]
    ordered = sorted(
        affordable,
        key=lambda p: (p.priceLevel is None, p.priceLevel or 0, -(p.rating or 0.0)),
    )
    return ordered[:MAX_ROUTE_PLACES]


ROUTE_STRATEGIES: List[RouteStrategy] = [
    RouteStrategy("top_rated", "Premium Experience", select_top_rated),
    RouteStrategy("diverse", "Diverse Mix", select_diverse),
    RouteStrategy("budget", "Budget Friendly", select_budget),
]


def strategy_for_route(
    index: int, strategies: Optional[List[RouteStrategy]] = None
) -> RouteStrategy:
    strategies = strategies or ROUTE_STRATEGIES
    return strategies[index % len(strategies)]


def pad_places(
    selected: List[Place], pool: List[Place], minimum: int = MIN_ROUTE_PLACES
) -> List[Place]:
    """Top up a short selection with the best-rated unused places from pool."""
    if len(selected) >= minimum:
        return selected
    used = {p.id for p in selected}
    padded = list(selected)
    for place in by_rating(pool):
        if len(padded) >= minimum:
            break
        if place.id not in used:
            padded.append(place)
            used.add(place.id)
    return padded
