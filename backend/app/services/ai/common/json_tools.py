"""JSON extraction from free-form model replies.

Two strategies:

* ``greedy``: everything from the first ``{`` to the last ``}``.  Lenient,
  but one stray brace in the surrounding prose breaks the parse.
* ``balanced``: slide through the text and return the first brace-balanced,
  string-aware object that parses.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_GREEDY_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def greedy_object_span(text: str) -> str | None:
    """Return the substring from the first ``{`` to the last ``}``, if any."""
    if not text:
        return None
    match = _GREEDY_OBJECT_RE.search(text)
    return match.group(0) if match else None


def loads_object(candidate: str) -> dict[str, Any] | None:
    """Parse *candidate*; ``None`` unless it is a JSON object."""
    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError, RecursionError) as exc:
        logger.warning("Error parsing AI response JSON: %s", exc)
        return None
    if not isinstance(parsed, dict):
        logger.warning("AI response JSON is a %s, not an object", type(parsed).__name__)
        return None
    return parsed


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Try to extract the first valid JSON object from *text*.

    Strategy:
    1. Attempt ``json.loads`` on the full text (fast path).
    2. Slide through the text looking for ``{`` and attempt
       brace-balanced extraction.
    3. Return ``None`` if nothing works.
    """
    if not text or not text.strip():
        return None

    stripped = text.strip()

    try:
        parsed = json.loads(stripped)
    except (json.JSONDecodeError, ValueError, RecursionError):
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    for i, ch in enumerate(stripped):
        if ch == "{":
            result = _extract_balanced(stripped, i)
            if result is not None:
                return result

    return None


def _extract_balanced(text: str, start: int) -> dict[str, Any] | None:
    """Extract a brace-balanced object starting at *start* and parse it."""
    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(text)):
        ch = text[i]

        if escape:
            escape = False
            continue

        if ch == "\\":
            if in_string:
                escape = True
            continue

        if ch == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                candidate = text[start : i + 1]
                try:
                    parsed = json.loads(candidate)
                except (json.JSONDecodeError, ValueError, RecursionError):
                    return None
                return parsed if isinstance(parsed, dict) else None

    return None
