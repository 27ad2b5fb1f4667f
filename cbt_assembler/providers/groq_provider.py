"""Groq LLM provider integration.

Groq exposes an OpenAI-compatible API, so this provider uses the OpenAI SDK
with the Groq base URL.
"""

import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from .base import BaseLLMProvider

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class GroqProvider(BaseLLMProvider):
    """Groq API integration used as the fallback question author."""

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.3-70b-versatile",
        request_timeout: Optional[float] = None,
    ):
        """
        Initialize Groq provider.

        Args:
            api_key: Groq API key (starts with "gsk_")
            model: Default model identifier
            request_timeout: Per-request timeout in seconds passed to the SDK
        """
        super().__init__(api_key, model)
        self.async_client = AsyncOpenAI(
            api_key=api_key,
            base_url=GROQ_BASE_URL,
            timeout=request_timeout,
            max_retries=0,
        )

        logger.info(f"Initialized Groq provider with model {model}")

    async def generate_completion(
        self,
        prompt: str,
        temperature: float = 0.5,
        max_tokens: int = 4000,
        model_override: Optional[str] = None,
        **kwargs: Any,
    ) -> str:
        """
        Generate a text completion using a Groq-hosted model.

        Args:
            prompt: The prompt to generate from
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            model_override: Model to use instead of the provider's default
            **kwargs: Additional arguments passed to the API

        Returns:
            Generated text response

        Raises:
            LLMProviderError: If the API call fails
        """
        model_to_use = model_override or self.model
        try:
            response = await self.async_client.chat.completions.create(
                model=model_to_use,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
            return response.choices[0].message.content or ""
        except Exception as e:
            logger.debug(f"Groq API call failed ({model_to_use}): {str(e)}")
            raise self._handle_api_error(e)

    async def generate_structured_completion(
        self,
        prompt: str,
        temperature: float = 0.5,
        max_tokens: int = 4000,
        model_override: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        """
        Generate a JSON completion using Groq's JSON mode.

        Args:
            prompt: The prompt to generate from
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            model_override: Model to use instead of the provider's default
            **kwargs: Additional arguments passed to the API

        Returns:
            Decoded JSON value

        Raises:
            LLMProviderError: If the API call fails
            ResponseParseError: If the response cannot be parsed as JSON
        """
        text = await self.generate_completion(
            prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            model_override=model_override,
            response_format={"type": "json_object"},
            **kwargs,
        )
        logger.debug(f"Groq response content: {text[:500]}")
        return self.parse_json(text)
