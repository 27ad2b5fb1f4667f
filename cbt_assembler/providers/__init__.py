"""LLM provider integrations."""

from .base import BaseLLMProvider, LLMProviderError, ResponseParseError
from .google_provider import GoogleProvider
from .groq_provider import GroqProvider

__all__ = [
    "BaseLLMProvider",
    "GoogleProvider",
    "GroqProvider",
    "LLMProviderError",
    "ResponseParseError",
]
