"""Base class for LLM providers."""

import json
import re
from abc import ABC, abstractmethod
from typing import Any

from ..error_classifier import ClassifiedError, ErrorClassifier

_FENCE_START = re.compile(r"^```[a-zA-Z0-9_-]*\s*")
_FENCE_END = re.compile(r"\s*```$")


class LLMProviderError(Exception):
    """Exception raised by LLM providers with classification.

    Attributes:
        classified_error: The classified error with its category
        original_exception: The original exception that was raised
    """

    def __init__(
        self,
        classified_error: ClassifiedError,
        original_exception: BaseException,
    ):
        """Initialize LLM provider error.

        Args:
            classified_error: The classified error
            original_exception: The original exception
        """
        self.classified_error = classified_error
        self.original_exception = original_exception
        super().__init__(str(classified_error))


class ResponseParseError(Exception):
    """Raised when a provider answered but the text is not valid JSON."""

    def __init__(self, provider: str, message: str, raw_text: str = ""):
        self.provider = provider
        self.raw_text = raw_text
        super().__init__(f"{provider}: failed to parse JSON response: {message}")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    text = text.strip()
    text = _FENCE_START.sub("", text)
    text = _FENCE_END.sub("", text)
    return text.strip()


class BaseLLMProvider(ABC):
    """Abstract base class for LLM provider integrations."""

    def __init__(self, api_key: str, model: str):
        """
        Initialize the LLM provider.

        Args:
            api_key: API key for the provider
            model: Default model identifier to use
        """
        self.api_key = api_key
        self.model = model

    @abstractmethod
    async def generate_completion(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        **kwargs: Any,
    ) -> str:
        """
        Generate a text completion from the LLM.

        Args:
            prompt: The prompt to send to the model
            temperature: Sampling temperature
            max_tokens: Maximum number of tokens to generate
            **kwargs: Additional provider-specific parameters

        Returns:
            The generated text completion

        Raises:
            LLMProviderError: If the API call fails
        """

    @abstractmethod
    async def generate_structured_completion(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        **kwargs: Any,
    ) -> Any:
        """
        Generate a JSON completion from the LLM.

        Args:
            prompt: The prompt to send to the model; it must spell out the
                expected JSON shape
            temperature: Sampling temperature
            max_tokens: Maximum number of tokens to generate
            **kwargs: Additional provider-specific parameters

        Returns:
            The decoded JSON value (list, dict or scalar, as the model sent it)

        Raises:
            LLMProviderError: If the API call fails
            ResponseParseError: If the response is not valid JSON
        """

    def get_provider_name(self) -> str:
        """
        Get the name of this provider.

        Returns:
            Provider name (e.g., "google", "groq")
        """
        return self.__class__.__name__.replace("Provider", "").lower()

    def parse_json(self, text: str) -> Any:
        """Decode a provider's text payload as JSON.

        Args:
            text: Raw completion text, optionally wrapped in a code fence

        Returns:
            The decoded JSON value

        Raises:
            ResponseParseError: If the text is empty or not valid JSON
        """
        content = strip_code_fences(text or "")
        if not content:
            raise ResponseParseError(self.get_provider_name(), "empty response")
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ResponseParseError(
                self.get_provider_name(), str(e), raw_text=content
            ) from e

    def _handle_api_error(self, error: Exception) -> LLMProviderError:
        """Classify and wrap an API error.

        Args:
            error: The exception that was raised

        Returns:
            LLMProviderError with classified error
        """
        classified = ErrorClassifier.classify_error(
            error=error,
            provider=self.get_provider_name(),
        )
        return LLMProviderError(
            classified_error=classified,
            original_exception=error,
        )
