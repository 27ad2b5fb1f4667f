"""Google Generative AI (Gemini) provider integration."""

import logging
from typing import Any, Optional

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

from .base import BaseLLMProvider

logger = logging.getLogger(__name__)


class GoogleProvider(BaseLLMProvider):
    """Gemini integration used as the primary question author."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        request_timeout: Optional[float] = None,
    ):
        """
        Initialize Google provider.

        Args:
            api_key: Google API key
            model: Model to use (default: gemini-2.0-flash)
            request_timeout: Per-request timeout in seconds passed to the SDK
        """
        super().__init__(api_key, model)
        self.request_timeout = request_timeout

    async def generate_completion(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        **kwargs: Any,
    ) -> str:
        """
        Generate a text completion using the Gemini API.

        The SDK keeps its credential in module-level state, so the key is
        installed right before the request is issued. Configuration, model
        construction and dispatch run without yielding to the event loop.

        Args:
            prompt: The prompt to send to the model
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional GenerationConfig parameters

        Returns:
            The generated text completion

        Raises:
            LLMProviderError: If the API call fails
        """
        request_options = (
            {"timeout": self.request_timeout} if self.request_timeout else None
        )
        try:
            genai.configure(api_key=self.api_key)
            client = genai.GenerativeModel(self.model)
            response = await client.generate_content_async(
                prompt,
                generation_config=GenerationConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                    **kwargs,
                ),
                request_options=request_options,
            )
            return response.text or ""
        except Exception as e:
            logger.debug(f"Gemini API call failed: {str(e)}")
            raise self._handle_api_error(e)

    async def generate_structured_completion(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        **kwargs: Any,
    ) -> Any:
        """
        Generate a JSON completion using the Gemini API.

        Args:
            prompt: The prompt to send to the model
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional GenerationConfig parameters

        Returns:
            Decoded JSON value

        Raises:
            LLMProviderError: If the API call fails
            ResponseParseError: If the response cannot be parsed as JSON

        Note:
            The prompt carries the JSON instruction; Gemini often wraps its
            answer in a markdown fence, which parse_json strips.
        """
        text = await self.generate_completion(
            prompt, temperature=temperature, max_tokens=max_tokens, **kwargs
        )
        return self.parse_json(text)
