"""Tissue image analysis service.

One analyze call is one pass through:
gateway call → reply normalization → result persistence.

- Gateway failures (rate limit, quota, upstream errors) propagate untouched.
- Malformed replies never fail the call (see ``normalizer``).
- Persistence failures propagate as ``PersistenceError``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.image_ingress import AnalysisRequest
from app.models.analysis import Prediction
from app.services.ai.common import router as ai_router
from app.services.ai.common.providers.base import ProviderResult
from app.services.prediction_store import insert_prediction

from .contracts import VISION_SYSTEM_PROMPT, VISION_USER_PROMPT, NormalizedAnalysis
from .normalizer import normalize_reply

logger = logging.getLogger(__name__)


@dataclass
class AnalyzeResult:
    prediction: Prediction
    analysis: NormalizedAnalysis


async def request_reply(request: AnalysisRequest) -> ProviderResult:
    """Single blocking round trip to the configured vision provider."""
    config = ai_router.resolve("vision")
    logger.info(
        "Analyzing image for user=%s via provider=%s model=%s",
        request.requester_id,
        config.provider.name,
        config.model or "-",
    )
    return await config.provider.generate(
        VISION_USER_PROMPT,
        system_prompt=VISION_SYSTEM_PROMPT,
        image_url=request.image_payload,
        model=config.model,
        timeout_seconds=config.timeout_seconds,
    )


async def analyze_image(request: AnalysisRequest, db: Session) -> AnalyzeResult:
    settings = get_settings()
    t0 = time.monotonic()

    provider_result = await request_reply(request)
    logger.info(
        "AI response received: provider=%s latency_ms=%.1f chars=%d tokens=%s/%s",
        provider_result.provider,
        provider_result.latency_ms,
        len(provider_result.raw_text),
        provider_result.prompt_tokens,
        provider_result.completion_tokens,
    )

    analysis = normalize_reply(provider_result.raw_text, strategy=settings.ai_vision_json_strategy)
    if analysis.source != "json":
        logger.info("No structured JSON in AI reply; used keyword fallback (%s)", analysis.classification)

    prediction = insert_prediction(
        db,
        user_id=request.requester_id,
        image_path=request.image_path,
        analysis=analysis,
    )

    logger.info(
        "Analysis complete, prediction %s saved: media_type=%s size_bytes=%s total_latency_ms=%.1f",
        prediction.id,
        request.media_type or "url",
        request.size_bytes if request.size_bytes is not None else "-",
        (time.monotonic() - t0) * 1000,
    )

    return AnalyzeResult(prediction=prediction, analysis=analysis)
