"""Tolerant parsing of JSON that a language model returned inside free text."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json ... ```) and surrounding whitespace."""
    return _FENCE_RE.sub("", text or "").strip()


def parse_json_payload(text: str, default: Optional[Any] = None) -> Any:
    """Parse model output as JSON, returning ``default`` when it is not valid JSON.

    Handles fenced output and falls back to the outermost {...} block when the
    model wrapped the JSON in prose.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        return default
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    start, end = cleaned.find("{"), cleaned.rfind("}")
    if 0 <= start < end:
        try:
            return json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError:
            pass

    logger.warning(f"Could not parse model output as JSON: {cleaned[:120]!r}")
    return default


def parse_json_object(text: str, default: Optional[dict] = None) -> dict:
    """Like parse_json_payload but only accepts a JSON object."""
    parsed = parse_json_payload(text, default=None)
    if isinstance(parsed, dict):
        return parsed
    return dict(default) if default is not None else {}
