"""
Response parser: raw model text -> GroupSetCandidate.

Models frequently wrap JSON in markdown fences despite being told not to.
The parser strips one leading fence opener (optionally tagged json) and one
trailing fence closer, then parses. It checks structure only; values are left
for the validator.
"""

from __future__ import annotations

import json
import re

from pydantic import ValidationError

from tabgrouper.grouping.errors import InvalidJson, MissingGroups
from tabgrouper.grouping.models import GroupSetCandidate
from tabgrouper.observability.logging import get_logger
from tabgrouper.observability.telemetry import counter, log_event

logger = get_logger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ``` / ```json fence, if present."""
    text = text.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def parse_group_response(raw_text: str) -> GroupSetCandidate:
    """
    Parse model output into a structurally typed candidate.

    Raises:
        InvalidJson: If the text is not JSON, or a group entry is not an
            object carrying an array-typed tabIds field
        MissingGroups: If there is no non-empty groups array
    """
    cleaned = strip_code_fences(raw_text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        counter("groups.parse.invalid_json")
        log_event("groups.parse.invalid_json", error=str(exc), preview_len=len(cleaned))
        raise InvalidJson() from exc

    groups = parsed.get("groups") if isinstance(parsed, dict) else None
    if not isinstance(groups, list) or not groups:
        counter("groups.parse.missing_groups")
        log_event("groups.parse.missing_groups", parsed_type=type(parsed).__name__)
        raise MissingGroups()

    try:
        return GroupSetCandidate.model_validate({"groups": groups})
    except ValidationError as exc:
        counter("groups.parse.invalid_shape")
        logger.warning("Model groups have an unexpected shape: %s", exc.error_count())
        raise InvalidJson("AI returned groups in an unexpected shape. Try again.") from exc
