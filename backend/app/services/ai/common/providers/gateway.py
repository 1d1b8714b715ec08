"""OpenAI-compatible chat-completions gateway with image input."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from app.core.errors import GatewayError, QuotaExhausted, RateLimited

from .base import BaseProvider, ProviderResult

logger = logging.getLogger(__name__)

MAX_ERROR_BODY_CHARS = 2000


def _build_messages(prompt: str, system_prompt: str | None, image_url: str | None) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    if image_url:
        content: Any = [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": image_url}},
        ]
    else:
        content = prompt
    messages.append({"role": "user", "content": content})
    return messages


def first_choice_text(data: Any) -> str:
    """Return ``choices[0].message.content`` or ``""`` when any part is missing."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices") or []
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") or {}
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


class GatewayProvider(BaseProvider):
    name = "gateway"

    def __init__(self, api_key: str, url: str, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._api_key = api_key
        self._url = url
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        image_url: str | None = None,
        model: str = "",
        timeout_seconds: float = 30.0,
    ) -> ProviderResult:
        model = model or "google/gemini-2.5-flash"
        t0 = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=timeout_seconds, transport=self._transport) as client:
                resp = await client.post(
                    self._url,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": model,
                        "messages": _build_messages(prompt, system_prompt, image_url),
                    },
                )
        except httpx.TimeoutException as exc:
            logger.error("AI gateway timed out after %.1fs", timeout_seconds)
            raise GatewayError("AI analysis timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("AI gateway transport error: %s", exc)
            raise GatewayError(f"AI analysis failed: {exc}") from exc

        if resp.status_code == 429:
            logger.warning("AI gateway rate limited the request")
            raise RateLimited()
        if resp.status_code == 402:
            logger.warning("AI gateway credits exhausted")
            raise QuotaExhausted()
        if not resp.is_success:
            body = resp.text[:MAX_ERROR_BODY_CHARS]
            logger.error("AI API error: %s %s", resp.status_code, body)
            raise GatewayError(
                f"AI analysis failed: {body}",
                upstream_status=resp.status_code,
                upstream_body=body,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("AI gateway returned a non-JSON body")
            raise GatewayError("AI analysis failed: invalid gateway response") from exc

        elapsed = (time.monotonic() - t0) * 1000
        usage = data.get("usage") if isinstance(data, dict) else None
        if not isinstance(usage, dict):
            usage = {}

        return ProviderResult(
            raw_text=first_choice_text(data),
            model=model,
            provider=self.name,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            latency_ms=round(elapsed, 2),
        )
