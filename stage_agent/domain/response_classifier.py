"""AI response classification — plain text, advice card, or action.

Pure Python, no framework dependencies beyond the pydantic schema.
The upstream model is unreliable about formatting, so every failure path
degrades to plain text instead of raising.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError

from stage_agent.domain.models import AgenticAction, ClassifiedResponse, ResponseKind

# ```json ... ``` first, then a bare fence
FENCED_JSON_RE = re.compile(r"```json\s*\n(.*?)\n?\s*```", re.DOTALL | re.IGNORECASE)
FENCED_RE = re.compile(r"```\s*\n(.*?)\n?\s*```", re.DOTALL)

_decoder = json.JSONDecoder()


def looks_structured(text: str) -> bool:
    """True when the text could carry a JSON payload at all."""
    return "{" in text or '"type"' in text


def _loads(candidate: str) -> Optional[Any]:
    try:
        return json.loads(candidate)
    except (TypeError, ValueError):
        return None


def _first_brace_span(text: str) -> Optional[Any]:
    start = text.find("{")
    if start < 0:
        return None
    try:
        value, _ = _decoder.raw_decode(text, start)
    except ValueError:
        return None
    return value


def extract_json(text: str) -> Optional[Dict[str, Any]]:
    """Pull a JSON object out of model output.

    Tries, in order: the whole text, a fenced code block, and the first
    ``{...}`` span. Returns None unless one of them yields a JSON object.
    """
    if not isinstance(text, str) or not text.strip():
        return None

    value = _loads(text.strip())
    if isinstance(value, dict):
        return value

    for pattern in (FENCED_JSON_RE, FENCED_RE):
        match = pattern.search(text)
        if match:
            value = _loads(match.group(1).strip())
            if isinstance(value, dict):
                return value

    value = _first_brace_span(text)
    if isinstance(value, dict):
        return value
    return None


def parse_agentic_action(payload: Dict[str, Any]) -> Optional[AgenticAction]:
    """Validate a decoded payload; None if it does not fit the schema."""
    try:
        action = AgenticAction.model_validate(payload)
    except ValidationError:
        return None
    if action.is_action and action.action is None:
        return None
    return action


def classify_response(text: str) -> ClassifiedResponse:
    if not isinstance(text, str):
        text = "" if text is None else str(text)

    if not looks_structured(text):
        return ClassifiedResponse(kind=ResponseKind.TEXT, text=text)

    payload = extract_json(text)
    if payload is None:
        return ClassifiedResponse(kind=ResponseKind.TEXT, text=text)

    action = parse_agentic_action(payload)
    if action is None:
        return ClassifiedResponse(kind=ResponseKind.TEXT, text=text)

    kind = ResponseKind.ACTION if action.is_action else ResponseKind.ADVICE
    return ClassifiedResponse(kind=kind, text=text, action=action)


# ── Static fallback cards ───────────────────────────────────


def _error_card(rule_match: str, quote: str, advice: str) -> AgenticAction:
    return AgenticAction(
        type="advice",
        content=advice,
        rule_match=rule_match,
        rule_number=0,
        status_emoji="⚠️",
        rule_icon="alert-circle",
        alignment_strength="Error",
        alignment_class="error",
        quote=quote,
        advice=advice,
    )


def processing_error_card() -> AgenticAction:
    return _error_card(
        "Processing Error",
        "Fall seven times, stand up eight.",
        "I encountered an error processing your request. "
        "Let's try a fresh start. Please send your message again.",
    )


def api_error_card() -> AgenticAction:
    return _error_card(
        "API Error",
        "The impediment to action advances action. What stands in the way becomes the way.",
        "I encountered a technical issue. Please try again in a moment.",
    )
