"""
OpenRouter LLM Client.

Small async client for the semantic classification fallback. OpenRouter
speaks the OpenAI API format, so the OpenAI SDK is pointed at its base URL.
"""

import os
from typing import Optional

from openai import AsyncOpenAI
from tenacity import retry, stop_after_attempt, wait_exponential

from model_selector.models.llm import LLMResponse


class LLMClient:
    """
    Async client for OpenRouter API.

    Uses the OpenAI SDK with OpenRouter's base URL for compatibility.
    """

    OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        site_url: Optional[str] = None,
        site_name: Optional[str] = None,
    ):
        """
        Initialize the LLM client.

        Args:
            api_key: OpenRouter API key. If not provided, reads from OPENROUTER_API_KEY env var.
            site_url: Optional site URL for OpenRouter attribution.
            site_name: Optional site name for OpenRouter attribution.
        """
        self.api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenRouter API key required. Set OPENROUTER_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self.site_url = site_url or os.getenv("OPENROUTER_SITE_URL", "http://localhost:8000")
        self.site_name = site_name or os.getenv("OPENROUTER_SITE_NAME", "Model Selector")

        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.OPENROUTER_BASE_URL,
            default_headers={
                "HTTP-Referer": self.site_url,
                "X-Title": self.site_name,
            },
        )

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def complete(
        self,
        model: str,
        messages: list[dict],
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Generate a completion from the specified model.

        Args:
            model: Model identifier (e.g., "google/gemini-2.0-flash-001")
            messages: List of message dicts with "role" and "content" keys
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate (optional)

        Returns:
            LLMResponse with content and token usage
        """
        kwargs = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        response = await self.client.chat.completions.create(**kwargs)

        content = response.choices[0].message.content or ""
        finish_reason = response.choices[0].finish_reason or "stop"

        input_tokens = response.usage.prompt_tokens if response.usage else 0
        output_tokens = response.usage.completion_tokens if response.usage else 0

        return LLMResponse(
            content=content,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            finish_reason=finish_reason,
        )


class MockLLMClient:
    """
    Mock LLM client for testing and offline runs.

    Returns predefined responses without making actual API calls.
    """

    def __init__(self, responses: Optional[dict[str, str]] = None):
        """
        Initialize mock client.

        Args:
            responses: Optional dict mapping model names to response content.
                      If not provided, returns a generic response.
        """
        self.responses = responses or {}
        self.calls: list[dict] = []

    async def complete(
        self,
        model: str,
        messages: list[dict],
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Return a mock response."""
        self.calls.append({
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })

        if model in self.responses:
            content = self.responses[model]
        else:
            content = f"Mock response from {model}"

        input_tokens = sum(len(str(m.get("content", ""))) // 4 for m in messages)
        output_tokens = len(content) // 4

        return LLMResponse(
            content=content,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            finish_reason="stop",
        )
