from typing import List, Optional, Set
from app.core.exceptions import ConfigurationError
from app.schemas.itinerary import Place, SearchConstraints
from app.services.gemini import GeminiClient, extract_json, gemini_client
from app.services.prompts import place_filter_prompt
from app.utils.logger import get_logger

logger = get_logger(__name__)

PROMPT_SAMPLE_SIZE = 15
MAX_SELECTED = 8


def parse_selected_ids(raw: str, known: Optional[Set[str]] = None) -> List[str]:
    """
    Pull venue ids out of a `[{"id": ...}, ...]` reply.

    Ids outside `known` (when given) are dropped before the MAX_SELECTED cap.

    Raises:
        ValueError: reply is not a JSON array
    """
    parsed = extract_json(raw)
    if not isinstance(parsed, list):
        raise ValueError("expected a JSON array")

    ids: List[str] = []
    for item in parsed:
        if isinstance(item, dict) and item.get("id") is not None:
            place_id = str(item["id"])
        elif isinstance(item, str):
            place_id = item
        else:
            continue
        if known is not None and place_id not in known:
            continue
        if place_id not in ids:
            ids.append(place_id)
    return ids[:MAX_SELECTED]


def filter_places(
    places: List[Place],
    constraints: SearchConstraints,
    client: Optional[GeminiClient] = None,
) -> List[Place]:
    """
    Let the model pick the venues that suit the event.

    Only the first PROMPT_SAMPLE_SIZE places are shown to the model, but the
    returned ids filter the full list. Any failure returns `places` as is.
    """
    client = client or gemini_client

    if not places:
        return places

    prompt = place_filter_prompt(places[:PROMPT_SAMPLE_SIZE], constraints)

    try:
        raw = client.generate(
            prompt,
            max_output_tokens=500,
            temperature=0.3,
            response_mime_type="application/json",
        )
        allowed = set(parse_selected_ids(raw, {p.id for p in places}))
    except ConfigurationError:
        logger.warning("Gemini not configured, skipping place filtering")
        return places
    except ValueError as e:
        logger.warning(f"Unparsable place filter reply, keeping all places: {e}")
        return places
    except Exception as e:
        logger.error(f"Place filtering failed, keeping all places: {e}")
        return places

    filtered = [p for p in places if p.id in allowed]
    if not filtered:
        logger.warning("Place filter kept nothing, keeping all places")
        return places

    logger.info(f"Place filter kept {len(filtered)} of {len(places)} places")
    return filtered
