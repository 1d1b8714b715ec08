"""Mock provider: deterministic replies for tests and local development."""

from __future__ import annotations

import json
import time

from .base import BaseProvider, ProviderResult

MOCK_REPLY = {
    "classification": "normal",
    "confidence": 75,
    "observations": ["Mock analysis: no gateway configured"],
    "recommendations": ["Consult a healthcare professional for diagnosis"],
}


class MockProvider(BaseProvider):
    name = "mock"

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        image_url: str | None = None,
        model: str = "",
        timeout_seconds: float = 30.0,
    ) -> ProviderResult:
        t0 = time.monotonic()
        text = json.dumps(MOCK_REPLY)
        elapsed = (time.monotonic() - t0) * 1000
        return ProviderResult(
            raw_text=text,
            model=model or "mock-vision-v1",
            provider=self.name,
            prompt_tokens=len(prompt.split()),
            completion_tokens=len(text.split()),
            latency_ms=round(elapsed, 2),
        )
