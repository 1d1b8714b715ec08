from __future__ import annotations

import json

import httpx
import pytest

from app.core.errors import GatewayError, QuotaExhausted, RateLimited
from app.services.ai.common.providers.gateway import GatewayProvider, first_choice_text

GATEWAY_URL = "https://gateway.test/v1/chat/completions"
IMAGE = "data:image/png;base64,AAAA"


def _provider(handler) -> GatewayProvider:
    return GatewayProvider(api_key="key-123", url=GATEWAY_URL, transport=httpx.MockTransport(handler))


def _completion(content):
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 11, "completion_tokens": 7},
    }


@pytest.mark.asyncio
async def test_sends_system_prompt_text_and_image():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion('{"classification": "benign"}'))

    result = await _provider(handler).generate(
        "Analyze this image",
        system_prompt="You are a classifier",
        image_url=IMAGE,
        model="google/gemini-2.5-flash",
    )

    assert seen["auth"] == "Bearer key-123"
    body = seen["body"]
    assert body["model"] == "google/gemini-2.5-flash"
    assert body["messages"][0] == {"role": "system", "content": "You are a classifier"}
    user_content = body["messages"][1]["content"]
    assert user_content[0] == {"type": "text", "text": "Analyze this image"}
    assert user_content[1] == {"type": "image_url", "image_url": {"url": IMAGE}}

    assert result.raw_text == '{"classification": "benign"}'
    assert result.provider == "gateway"
    assert result.prompt_tokens == 11
    assert result.completion_tokens == 7


@pytest.mark.asyncio
async def test_missing_choices_returns_empty_text():
    result = await _provider(lambda request: httpx.Response(200, json={"id": "x"})).generate("p", image_url=IMAGE)
    assert result.raw_text == ""


@pytest.mark.asyncio
async def test_non_dict_usage_is_ignored():
    payload = {"choices": [{"message": {"content": "benign"}}], "usage": [1]}
    result = await _provider(lambda request: httpx.Response(200, json=payload)).generate("p", image_url=IMAGE)
    assert result.raw_text == "benign"
    assert result.prompt_tokens == 0
    assert result.completion_tokens == 0


@pytest.mark.asyncio
async def test_429_raises_rate_limited():
    with pytest.raises(RateLimited):
        await _provider(lambda request: httpx.Response(429, text="slow down")).generate("p", image_url=IMAGE)


@pytest.mark.asyncio
async def test_402_raises_quota_exhausted():
    with pytest.raises(QuotaExhausted):
        await _provider(lambda request: httpx.Response(402, text="pay up")).generate("p", image_url=IMAGE)


@pytest.mark.asyncio
async def test_other_status_raises_gateway_error_with_body():
    provider = _provider(lambda request: httpx.Response(503, text="upstream overloaded"))
    with pytest.raises(GatewayError) as excinfo:
        await provider.generate("p", image_url=IMAGE)
    assert excinfo.value.upstream_status == 503
    assert excinfo.value.upstream_body == "upstream overloaded"
    assert "upstream overloaded" in excinfo.value.detail


@pytest.mark.asyncio
async def test_timeout_raises_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GatewayError):
        await _provider(handler).generate("p", image_url=IMAGE, timeout_seconds=0.5)


@pytest.mark.asyncio
async def test_non_json_body_raises_gateway_error():
    with pytest.raises(GatewayError):
        await _provider(lambda request: httpx.Response(200, text="<html>oops</html>")).generate("p", image_url=IMAGE)


@pytest.mark.asyncio
async def test_single_attempt_only():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, text="boom")

    with pytest.raises(GatewayError):
        await _provider(handler).generate("p", image_url=IMAGE)
    assert len(calls) == 1


def test_first_choice_text_handles_odd_shapes():
    assert first_choice_text(None) == ""
    assert first_choice_text({"choices": []}) == ""
    assert first_choice_text({"choices": [{"message": {"content": None}}]}) == ""
    assert first_choice_text({"choices": ["text"]}) == ""
    assert first_choice_text(_completion("hello")) == "hello"
