import json
from typing import List, Optional
from app.schemas.itinerary import Place, SearchConstraints
from app.utils.validators import analyze_age_range

PLANNER_SYSTEM_PROMPT = (
    "You are an expert event planner specializing in practical, budget-conscious "
    "itineraries built only from real venue data. Always prioritize feasibility: "
    "every recommendation must be achievable within the given time and budget."
)

CLOSING_SENTENCE = (
    "I have made 3 different plans and you can edit each one. "
    "I can make more plans if needed."
)


def format_age_range(constraints: SearchConstraints) -> str:
    if constraints.age_range is None:
        return "Not specified"
    return f"{constraints.age_range.min_age} to {constraints.age_range.max_age}"


def format_budget(constraints: SearchConstraints) -> str:
    if not constraints.budget:
        return "Not specified - provide cost estimates"
    total = constraints.budget * constraints.number_of_people
    return (
        f"${constraints.budget:g} USD per person "
        f"(total budget: ${total:g} for {constraints.number_of_people} people)"
    )


def format_time_window(constraints: SearchConstraints) -> str:
    parts = [
        p
        for p in (constraints.event_date, constraints.start_time, constraints.end_time)
        if p
    ]
    if not parts:
        return "Flexible"
    if constraints.start_time and constraints.end_time:
        window = f"{constraints.start_time} to {constraints.end_time}"
        return f"{constraints.event_date} {window}" if constraints.event_date else window
    return " ".join(parts)


def describe_constraints(constraints: SearchConstraints) -> str:
    """Bullet list of the event parameters shared by every prompt."""
    return "\n".join(
        [
            f"- Event Description: {constraints.description or 'General outing'}",
            f"- Duration: {constraints.hour_range} hours",
            f"- Group Size: {constraints.number_of_people} people",
            f"- Age Range: {format_age_range(constraints)}",
            f"- Budget: {format_budget(constraints)}",
            f"- Date and Time: {format_time_window(constraints)}",
            f"- Starting Point: {constraints.origin.lat}, {constraints.origin.lng}",
        ]
    )


def includes_minors(constraints: SearchConstraints) -> bool:
    return analyze_age_range(constraints)["includes_minors"]


def category_selection_prompt(
    description: str, constraints: SearchConstraints, allowed: List[str]
) -> str:
    return f"""
You are an expert event planner. Analyze this event and select the most relevant place types.

EVENT DESCRIPTION: "{description}"

EVENT PARAMETERS:
{describe_constraints(constraints)}

AVAILABLE PLACE TYPES:
{", ".join(allowed)}

SELECTION RULES:
1. Choose 3-8 place types that best match the event theme and activities.
2. If the age range includes anyone under 21, do not choose bar, night_club, liquor_store or casino.
3. If the event implies eating out (dinner, lunch, brunch, food), include dining types such as restaurant, cafe or bakery.
4. For nature, family or daytime framing, prefer outdoor types such as park, zoo or campground.
5. Budget guidance:
   - below $25 per person: cafe, park, museum, library and other low-cost types;
   - $25 to $75 per person: restaurant, movie_theater, bowling_alley, amusement_park;
   - above $75 per person: premium types such as art_gallery, spa, stadium, tourist_attraction.
6. Avoid expensive categories like casino or night_club for low-budget events.

Return ONLY a JSON array of place types from the list above, e.g. ["restaurant", "park", "museum"]
"""


def place_filter_prompt(places: List[Place], constraints: SearchConstraints) -> str:
    sample = [
        {
            "id": p.id,
            "name": p.displayName,
            "category": p.category,
            "placeType": p.placeType,
            "rating": p.rating,
            "userRatingCount": p.userRatingCount,
            "priceLevel": p.priceLevel,
        }
        for p in places
    ]
    minors_rule = (
        "The group includes people under 21: exclude bars, night clubs and alcohol-focused venues."
        if includes_minors(constraints)
        else "Consider age appropriateness for every venue."
    )
    return f"""
You are an expert event planner. Pick the venues that best fit this event.

EVENT PARAMETERS:
{describe_constraints(constraints)}

CANDIDATE VENUES:
{json.dumps(sample, indent=2)}

RULES:
1. Select between 3 and 8 venues from the candidates above.
2. Respect the budget and the duration.
3. {minors_rule}
4. Prefer a mix of venue categories when the event allows it.

Return ONLY a JSON array of objects with the venue id, e.g. [{{"id": "abc"}}, {{"id": "def"}}]
"""


def itinerary_prompt(
    places: List[Place],
    constraints: SearchConstraints,
    route_number: Optional[int] = None,
    total_routes: Optional[int] = None,
) -> str:
    venues = json.dumps([p.model_dump() for p in places], indent=2)
    route_context = ""
    if route_number is not None and total_routes:
        route_context = (
            f"\nROUTE CONTEXT:\nThis is planned route {route_number} of {total_routes}. "
            "Create a plan that offers a different experience from the other routes.\n"
        )
    minors_rule = (
        "This group includes people under 21. DO NOT suggest bars, night clubs or alcohol-focused venues."
        if includes_minors(constraints)
        else "Consider age appropriateness for all venue selections."
    )
    return f"""
You are an expert event planner. Create a personalized event plan using only the provided place data.
{route_context}
EVENT REQUIREMENTS:
{describe_constraints(constraints)}

AVAILABLE PLACES DATA:
{venues}

IMPORTANT FORMATTING REQUIREMENTS:
- DO NOT use hashtags, asterisks, dashes as bullets or any markdown formatting
- Use plain text only
- Follow this exact format:

Start with a 2-3 line description of the planned event.

Then list every venue in visiting order:
1. Venue Name - Address
   Why this location and what to do here
   Estimated time: X hours

2. Venue Name - Address
   Why this location and what to do here
   Estimated time: X hours

End with: "{CLOSING_SENTENCE}"

REQUIREMENTS:
- Use ONLY the places provided in the data, each at most once
- Write venue names and addresses exactly as they appear in the data
- The whole plan must fit within {constraints.hour_range} hours including travel
- {minors_rule}
- Keep estimated costs within the budget when one is given
"""
