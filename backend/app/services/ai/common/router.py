"""AI Router: resolves provider, model and timeout for a scope."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.config import get_settings

from .providers import BaseProvider, get_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedConfig:
    """Final resolved provider + model for one call."""

    provider: BaseProvider
    model: str
    timeout_seconds: float


def resolve(scope: str) -> ResolvedConfig:
    """Resolve provider + model for a given *scope*.

    Only ``"vision"`` is configurable (``AI_VISION_PROVIDER`` /
    ``AI_VISION_MODEL``); any other scope resolves to the mock provider.
    """
    settings = get_settings()

    if scope == "vision":
        provider_name = settings.ai_vision_provider or "mock"
        model = settings.ai_vision_model
    else:
        logger.warning("Unknown AI scope %r – using mock provider", scope)
        provider_name = "mock"
        model = ""

    provider = get_provider(provider_name)
    if provider.name == "mock" and provider_name != "mock":
        # fell back; the gateway model id means nothing to the mock
        model = ""

    return ResolvedConfig(
        provider=provider,
        model=model,
        timeout_seconds=settings.ai_vision_timeout_seconds,
    )
