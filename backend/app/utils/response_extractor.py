import json
import logging
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from app.exceptions import ParseError, ValidationError
from app.models.listing import ListingDraft, ListingType

logger = logging.getLogger(__name__)

# Greedy: first "{" through the last "}"
JSON_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_from_response(text: str) -> Dict[str, Any]:
    """
    Pull a single JSON object out of a free-form model response.

    Tries the whole (trimmed) text first, then the span between the first
    "{" and the last "}". Raises ParseError with the original text attached
    when neither parses to an object.
    """
    if not isinstance(text, str) or not text.strip():
        raise ParseError("Model response was empty", raw_text=text)

    stripped = text.strip()
    try:
        parsed = json.loads(stripped)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    match = JSON_OBJECT_PATTERN.search(stripped)
    if not match:
        raise ParseError("No JSON object found in model response", raw_text=text)

    try:
        parsed = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise ParseError(f"Model response was not valid JSON: {e.msg}", raw_text=text) from e

    if not isinstance(parsed, dict):
        raise ParseError("Model response JSON was not an object", raw_text=text)
    return parsed


def extract_listing(text: str, listing_type: Optional[str] = None) -> ListingDraft:
    """Parse a model response into a ListingDraft for the given listing type."""
    data = extract_json_from_response(text)
    data["listing_type"] = ListingType.from_tag(listing_type).value
    data.pop("listingType", None)

    try:
        return ListingDraft.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'listing'}: {err['msg']}" for err in e.errors()
        )
        logger.warning(f"Model response is not a usable listing: {problems}")
        raise ValidationError(f"Invalid listing data: {problems}") from e
