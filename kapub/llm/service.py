"""
OpenRouter LLM Service
======================

Thin async client for the OpenRouter chat-completions API.

The response is returned as plain text: callers treat it as untrusted and
run their own extraction and validation on it.

Usage:
    from kapub.llm import LLMService

    llm = LLMService(api_key="...", model="google/gemini-2.5-flash")
    text = await llm.generate("Summarize ...")
    await llm.close()
"""

import aiohttp
import structlog
from dataclasses import dataclass
from typing import Any, Dict, Optional

from kapub.exceptions import LLMServiceError

log = structlog.get_logger()


@dataclass
class LLMModelConfig:
    """Configuration for model settings."""
    name: str = "google/gemini-2.5-flash"
    temperature: float = 0.0
    max_tokens: int = 8000
    timeout: int = 60


class LLMService:
    """
    Generates completions through OpenRouter.

    Example:
        llm = LLMService(api_key=config.llm_api_key, model=config.llm_model)
        response = await llm.generate(prompt, system_prompt="Reply in JSON")
    """

    OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "google/gemini-2.5-flash",
        temperature: float = 0.0,
        max_tokens: int = 8000,
        timeout: int = 60,
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key
        self.model_config = LLMModelConfig(
            name=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        self.base_url = base_url or self.OPENROUTER_BASE_URL
        self.session: Optional[aiohttp.ClientSession] = None
        self._last_usage: Dict[str, int] = {}

    def get_last_usage(self) -> Dict[str, int]:
        """Get usage data from the last API call."""
        return self._last_usage.copy()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.model_config.timeout)
            )
        return self.session

    async def close(self):
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()

    def _build_payload(self, prompt: str, system_prompt: Optional[str]) -> Dict[str, Any]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        return {
            "model": self.model_config.name,
            "messages": messages,
            "temperature": self.model_config.temperature,
            "max_tokens": self.model_config.max_tokens,
        }

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Generate a completion for a single prompt.

        Args:
            prompt: User prompt content
            system_prompt: Optional system prompt

        Returns:
            str: Raw completion text

        Raises:
            LLMServiceError: Missing API key, non-200 status, or no choices
        """
        if not self.api_key:
            raise LLMServiceError("OpenRouter API key not provided")

        session = await self._get_session()
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "kapub",
        }

        log.info("Generating completion", model=self.model_config.name)

        try:
            async with session.post(
                f"{self.base_url}/chat/completions",
                json=self._build_payload(prompt, system_prompt),
                headers=headers,
            ) as response:

                if response.status != 200:
                    error_text = await response.text()
                    log.error(f"OpenRouter API error {response.status}: {error_text}")
                    raise LLMServiceError(
                        f"OpenRouter API error: {response.status} - {error_text}"
                    )

                data = await response.json()
        except aiohttp.ClientError as e:
            log.error(f"OpenRouter request failed: {e}")
            raise LLMServiceError(f"OpenRouter request failed: {e}") from e

        if "choices" not in data or not data["choices"]:
            log.error(f"Invalid OpenRouter response: {data}")
            raise LLMServiceError("Invalid response from OpenRouter API")

        self._last_usage = data.get("usage", {}) or {}
        completion = data["choices"][0]["message"]["content"] or ""

        log.debug("Completion received", chars=len(completion), usage=self._last_usage)
        return completion
