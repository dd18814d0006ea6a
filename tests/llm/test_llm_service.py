"""
Test OpenRouter LLM Service
===========================

Unit tests with a fake aiohttp session: no network calls.
"""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from kapub.exceptions import LLMServiceError
from kapub.llm import LLMService


class FakeResponse:
    """Minimal async context manager standing in for aiohttp's response."""

    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self._payload = payload
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self):
        return self._payload

    async def text(self):
        return self._text


def service_with(response=None, error=None) -> LLMService:
    llm = LLMService(api_key="sk-or-test", model="google/gemini-2.5-flash")
    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    if error is not None:
        session.post = MagicMock(side_effect=error)
    else:
        session.post = MagicMock(return_value=response)
    llm.session = session
    return llm


class TestGenerate:

    @pytest.mark.asyncio
    async def test_returns_completion(self):
        llm = service_with(FakeResponse(payload={
            "choices": [{"message": {"content": "```sparql\nSELECT DISTINCT ?a\n```"}}],
            "usage": {"prompt_tokens": 120, "completion_tokens": 30},
        }))

        text = await llm.generate("Write a query", system_prompt="Be terse")

        assert text.startswith("```sparql")
        assert llm.get_last_usage()["completion_tokens"] == 30

        url = llm.session.post.call_args.args[0]
        payload = llm.session.post.call_args.kwargs["json"]
        headers = llm.session.post.call_args.kwargs["headers"]
        assert url == "https://openrouter.ai/api/v1/chat/completions"
        assert payload["model"] == "google/gemini-2.5-flash"
        assert payload["temperature"] == 0.0
        assert payload["messages"] == [
            {"role": "system", "content": "Be terse"},
            {"role": "user", "content": "Write a query"},
        ]
        assert headers["Authorization"] == "Bearer sk-or-test"

    @pytest.mark.asyncio
    async def test_without_system_prompt(self):
        llm = service_with(FakeResponse(payload={"choices": [{"message": {"content": "ok"}}]}))

        await llm.generate("hi")

        payload = llm.session.post.call_args.kwargs["json"]
        assert payload["messages"] == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        llm = LLMService(api_key=None)

        with pytest.raises(LLMServiceError, match="API key not provided"):
            await llm.generate("hi")

    @pytest.mark.asyncio
    async def test_non_200_status(self):
        llm = service_with(FakeResponse(status=429, text="rate limited"))

        with pytest.raises(LLMServiceError, match="429 - rate limited"):
            await llm.generate("hi")

    @pytest.mark.asyncio
    async def test_missing_choices(self):
        llm = service_with(FakeResponse(payload={"error": "model overloaded"}))

        with pytest.raises(LLMServiceError, match="Invalid response"):
            await llm.generate("hi")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        llm = service_with(error=aiohttp.ClientConnectionError("connection reset"))

        with pytest.raises(LLMServiceError, match="request failed"):
            await llm.generate("hi")


class TestSession:

    @pytest.mark.asyncio
    async def test_close(self):
        llm = service_with(FakeResponse())
        session = llm.session

        await llm.close()

        session.close.assert_awaited_once()

    def test_custom_base_url(self):
        llm = LLMService(api_key="k", base_url="http://localhost:8080/v1")
        assert llm.base_url == "http://localhost:8080/v1"
