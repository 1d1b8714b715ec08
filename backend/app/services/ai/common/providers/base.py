"""Abstract base for all vision providers."""

from __future__ import annotations

import abc
from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderResult:
    """Immutable result returned by every provider."""

    raw_text: str
    model: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0


class BaseProvider(abc.ABC):
    """Contract that every vision provider must implement."""

    name: str = "base"

    @abc.abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        image_url: str | None = None,
        model: str = "",
        timeout_seconds: float = 30.0,
    ) -> ProviderResult:
        """Send *prompt* (plus optional image) and return a ``ProviderResult``.

        Exactly one round trip; implementations never retry.
        """
