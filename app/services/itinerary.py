from typing import Dict, List, Optional
from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.schemas.itinerary import Place, SearchConstraints
from app.services.gemini import GeminiClient, gemini_client
from app.services.prompts import (
    PLANNER_SYSTEM_PROMPT,
    format_age_range,
    includes_minors,
    itinerary_prompt,
)
from app.services.strategies import by_rating
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Fallback bucket order; other categories follow in first-seen order
CATEGORY_PRIORITY = ["dining", "outdoor", "nightlife"]
MAX_FALLBACK_STOPS = 8


def generate_itinerary(
    places: List[Place],
    constraints: SearchConstraints,
    route_number: Optional[int] = None,
    total_routes: Optional[int] = None,
    client: Optional[GeminiClient] = None,
) -> str:
    """
    Ask the model for a plain-text itinerary over the given places.

    Never raises: a missing key, provider error or empty reply all produce
    the deterministic fallback plan instead.

    Args:
        places: Already-filtered venues
        constraints: Event parameters
        route_number: 1-based route index when generating alternatives
        total_routes: Number of alternatives being generated
        client: Gemini client (defaults to the module-level one)

    Returns:
        Itinerary text
    """
    client = client or gemini_client

    temperature = (
        settings.ROUTE_TEMPERATURE
        if route_number is not None
        else settings.ITINERARY_TEMPERATURE
    )
    prompt = itinerary_prompt(places, constraints, route_number, total_routes)

    try:
        text = client.generate(
            prompt,
            system_instruction=PLANNER_SYSTEM_PROMPT,
            max_output_tokens=settings.ITINERARY_MAX_OUTPUT_TOKENS,
            temperature=temperature,
        )
    except ConfigurationError:
        logger.warning("Gemini not configured, using fallback itinerary")
        return generate_fallback_plan(places, constraints)
    except Exception as e:
        logger.error(f"Itinerary generation failed, using fallback itinerary: {e}")
        return generate_fallback_plan(places, constraints)

    logger.info(
        f"Generated itinerary ({len(text)} chars) for {len(places)} places"
        + (f", route {route_number}/{total_routes}" if route_number else "")
    )
    return text


def fallback_stop_count(hour_range: int) -> int:
    """Roughly one stop per two hours, between 1 and MAX_FALLBACK_STOPS."""
    return min(MAX_FALLBACK_STOPS, max(1, hour_range // 2))


def pick_fallback_places(places: List[Place], hour_range: int) -> List[Place]:
    """
    Best-rated place of each category, in CATEGORY_PRIORITY order, going
    round-robin to runner-ups only when there are fewer categories than stops.
    """
    buckets: Dict[str, List[Place]] = {}
    for place in places:
        buckets.setdefault(place.category, []).append(place)
    for category in buckets:
        buckets[category] = by_rating(buckets[category])

    ordered = [c for c in CATEGORY_PRIORITY if c in buckets]
    ordered += [c for c in buckets if c not in CATEGORY_PRIORITY]

    limit = fallback_stop_count(hour_range)
    selected: List[Place] = []
    depth = 0
    while len(selected) < limit:
        progressed = False
        for category in ordered:
            bucket = buckets[category]
            if depth < len(bucket):
                selected.append(bucket[depth])
                progressed = True
                if len(selected) >= limit:
                    break
        if not progressed:
            break
        depth += 1

    return selected


def generate_fallback_plan(places: List[Place], constraints: SearchConstraints) -> str:
    """Template itinerary used whenever the model is unavailable."""
    hours = constraints.hour_range
    people = constraints.number_of_people
    selected = pick_fallback_places(places, hours)

    logger.info(f"Building fallback plan with {len(selected)} of {len(places)} places")

    intro = f"Here's your {hours}-hour {constraints.description or 'event'} plan for {people} people"
    if constraints.age_range is not None:
        intro += f" (age range: {format_age_range(constraints)})"
    if constraints.budget:
        intro += f" with a ${constraints.budget:g} per person budget"
    intro += (
        ". This plan includes the best-rated venues in your area, organized for "
        "a smooth flow between stops. Each location was selected based on its "
        "ratings and suitability for your group."
    )
    if includes_minors(constraints):
        intro += " All venues are age-appropriate and do not include bars or night clubs."

    sections = [intro]

    if constraints.budget:
        total = constraints.budget * people
        sections.append(
            f"Budget Overview: With a ${constraints.budget:g} per person budget, "
            f"that's a total of ${total:g} for your group of {people} people "
            f"for this {hours}-hour experience."
        )

    if not selected:
        sections.append(
            "No venues were available for this plan. Try widening the search radius."
        )
    else:
        per_stop = max(1, hours // len(selected))
        for i, place in enumerate(selected, start=1):
            if place.rating:
                reason = (
                    f"Highly rated venue ({place.rating} stars) "
                    f"for {place.category} activities"
                )
            else:
                reason = f"Selected {place.category} venue based on location and type"
            sections.append(
                f"{i}. {place.displayName} - "
                f"{place.formattedAddress or 'Address not available'}\n"
                f"   {reason}\n"
                f"   Estimated time: {per_stop} hour(s)"
            )

    sections.append("You can choose to edit your plan or make another one!")
    return "\n\n".join(sections)
