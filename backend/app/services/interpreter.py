"""
Response interpreter — normalizes what the model gateway returned.

Free-text flows never fail once the model call succeeded: empty output
falls back to a fixed string. The recommendation flow expects a JSON
array matching RECOMMENDATION_SCHEMA and never assumes the model
complied with it — anything unparseable is an UpstreamFailure, never a
silently empty list.
"""

from __future__ import annotations

import json
import logging

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import UpstreamFailure
from app.schemas.books import Recommendation

logger = logging.getLogger(__name__)

ANALYSIS_FALLBACK = "Analysis unavailable."
SUMMARY_FALLBACK = "No summary available."

_recommendations_adapter = TypeAdapter(list[Recommendation])


def _strip_fences(content: str) -> str:
    """Strip markdown fences if the model wraps its JSON output."""
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else ""
        if content.endswith("```"):
            content = content[:-3]
        content = content.strip()
    return content


def interpret_analysis(text: str | None) -> str:
    return (text or "").strip() or ANALYSIS_FALLBACK


def interpret_summary(text: str | None) -> str:
    return (text or "").strip() or SUMMARY_FALLBACK


def interpret_recommendations(text: str | None) -> list[Recommendation]:
    """
    Parse the model's structured output.

    Empty text counts as an empty array. Missing fields in an object
    default to "", but non-object items or non-string fields fail.

    Raises:
        UpstreamFailure: Malformed JSON or a document not matching the schema.
    """
    content = _strip_fences(text or "") or "[]"

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse recommendations JSON: %s", exc)
        raise UpstreamFailure(safe=False) from exc

    if not isinstance(parsed, list):
        logger.error("Recommendations JSON is a %s, expected an array", type(parsed).__name__)
        raise UpstreamFailure(safe=False)

    try:
        return _recommendations_adapter.validate_python(parsed)
    except PydanticValidationError as exc:
        logger.error("Recommendations failed schema validation: %s", exc.error_count())
        raise UpstreamFailure(safe=False) from exc
