"""Contracts for tissue image classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

VALID_CLASSIFICATIONS = ("benign", "malignant", "normal")
DEFAULT_CLASSIFICATION = "normal"
DEFAULT_CONFIDENCE = 75

# Order matters: the first keyword found in plain text wins.
KEYWORD_PRIORITY = ("malignant", "benign")

VISION_SYSTEM_PROMPT = (
    "You are a medical AI assistant specialized in analyzing breast tissue images. "
    "Provide a detailed analysis indicating whether the tissue appears benign, malignant, or normal. "
    "Always include confidence scores and reasoning. "
    "Note: This is for educational purposes only and not a replacement for professional medical diagnosis."
)

VISION_USER_PROMPT = (
    "Analyze this breast tissue image. Provide: "
    "1) Classification (benign/malignant/normal), "
    "2) Confidence score (0-100), "
    "3) Key observations, "
    "4) Recommendations. "
    "Format as JSON."
)


@dataclass(frozen=True)
class NormalizedAnalysis:
    """Constrained result reduced from a free-form model reply."""

    classification: str  # benign | malignant | normal
    confidence_score: int  # 0–100
    details: dict[str, Any] = field(default_factory=dict)
    source: str = "keywords"  # json | keywords
