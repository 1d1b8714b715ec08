"""Reduce a free-form model reply to a constrained classification.

The model is asked for JSON but may answer in prose, in prose wrapping a
JSON object, or not at all.  ``normalize_reply`` never raises on any of
these; the worst case is the default ``normal`` / 75 answer with the raw
text kept under ``details["raw_analysis"]``.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from app.services.ai.common.json_tools import extract_json_object, greedy_object_span, loads_object

from .contracts import (
    DEFAULT_CLASSIFICATION,
    DEFAULT_CONFIDENCE,
    KEYWORD_PRIORITY,
    VALID_CLASSIFICATIONS,
    NormalizedAnalysis,
)

logger = logging.getLogger(__name__)


def _coerce_confidence(value: Any) -> int:
    """Numeric confidence rounded into 0–100; anything else gives the default."""
    if isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    if isinstance(value, str):
        raw = value.strip().rstrip("%").strip()
        try:
            value = float(raw)
        except ValueError:
            return DEFAULT_CONFIDENCE
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return DEFAULT_CONFIDENCE
    return max(0, min(100, int(round(value))))


def _coerce_classification(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_CLASSIFICATION
    label = value.strip().lower()
    if label not in VALID_CLASSIFICATIONS:
        if label:
            logger.info("Unrecognized classification %r coerced to %r", label, DEFAULT_CLASSIFICATION)
        return DEFAULT_CLASSIFICATION
    return label


def _find_object(text: str, strategy: str) -> dict[str, Any] | None:
    if strategy == "balanced":
        return extract_json_object(text)
    candidate = greedy_object_span(text)
    if candidate is None:
        return None
    return loads_object(candidate)


def _classify_keywords(text: str) -> str:
    lowered = text.lower()
    for keyword in KEYWORD_PRIORITY:
        if keyword in lowered:
            return keyword
    return DEFAULT_CLASSIFICATION


def normalize_reply(text: str | None, *, strategy: str = "greedy") -> NormalizedAnalysis:
    """Turn raw reply *text* into a ``NormalizedAnalysis``.

    1. JSON object found and parsed: read ``classification`` and
       ``confidence`` (exact lowercase keys) and keep the object as details.
    2. Otherwise: keyword search, ``malignant`` before ``benign``.
    3. Anything outside the allowed labels becomes ``normal``.
    """
    text = text or ""

    parsed = _find_object(text, strategy)
    if parsed is not None:
        return NormalizedAnalysis(
            classification=_coerce_classification(parsed.get("classification")),
            confidence_score=_coerce_confidence(parsed.get("confidence")),
            details=parsed,
            source="json",
        )

    return NormalizedAnalysis(
        classification=_classify_keywords(text),
        confidence_score=DEFAULT_CONFIDENCE,
        details={"raw_analysis": text},
        source="keywords",
    )
