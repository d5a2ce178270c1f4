"""
Request validation for the /api/gemini route.

The only gate between the raw JSON body and a typed InboundRequest.
Both functions are pure; callers log rejections themselves.
"""
from typing import Any, List

from gemini_proxy.core.exceptions import MissingFieldsError
from gemini_proxy.models.proxy import InboundRequest

REQUIRED_FIELDS = ("user_id", "session_id", "prompt")


def find_missing_fields(payload: Any) -> List[str]:
    """
    Return the required fields that are absent, not strings, or blank.

    Anything that is not a JSON object (None, list, scalar) is missing
    every field.
    """
    if not isinstance(payload, dict):
        return list(REQUIRED_FIELDS)

    missing = []
    for name in REQUIRED_FIELDS:
        value = payload.get(name)
        if not isinstance(value, str) or not value.strip():
            missing.append(name)
    return missing


def validate_inbound(payload: Any) -> InboundRequest:
    """
    Validate a parsed request body.

    Args:
        payload: Parsed JSON of unknown shape

    Returns:
        The validated InboundRequest

    Raises:
        MissingFieldsError: If any required field is missing or invalid
    """
    missing = find_missing_fields(payload)
    if missing:
        raise MissingFieldsError(missing)
    return InboundRequest.model_validate(payload)
