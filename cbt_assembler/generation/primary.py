"""Primary provider controller (Google Gemini)."""

import asyncio
import logging
from typing import Callable, Dict

from ..error_classifier import ErrorClassifier
from ..models import DifficultyTier
from ..providers.base import BaseLLMProvider, LLMProviderError, ResponseParseError
from ..providers.google_provider import GoogleProvider
from .errors import ProviderError, ProviderErrorKind
from .normalizer import GeneratedBatch, PayloadShape, resolve_payload
from .prompts import build_primary_prompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


class PrimaryController:
    """Issues one Gemini call per attempt and reports structured failures.

    The controller never touches the key pool. The orchestrator reads the
    key at the cursor and hands it in, so one attempt uses exactly one key.
    """

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        provider_factory: Callable[..., BaseLLMProvider] = GoogleProvider,
        temperature: float = 0.7,
    ):
        """Initialize the controller.

        Args:
            model: Gemini model identifier
            timeout_seconds: Upper bound on one call, including parsing
            provider_factory: Builds a provider for an API key
            temperature: Sampling temperature
        """
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self._provider_factory = provider_factory
        self._providers: Dict[str, BaseLLMProvider] = {}

    def _provider_for(self, api_key: str) -> BaseLLMProvider:
        if api_key not in self._providers:
            self._providers[api_key] = self._provider_factory(
                api_key=api_key,
                model=self.model,
                request_timeout=self.timeout_seconds,
            )
        return self._providers[api_key]

    async def generate(
        self,
        subject: str,
        count: int,
        difficulty: DifficultyTier,
        api_key: str,
    ) -> GeneratedBatch:
        """Ask Gemini for ``count`` questions using ``api_key``.

        Args:
            subject: Subject to generate for
            count: Number of questions wanted
            difficulty: Difficulty tier
            api_key: Key at the pool cursor

        Returns:
            The raw records with provider attribution

        Raises:
            ProviderError: QUOTA_EXCEEDED, MALFORMED_RESPONSE or UNAVAILABLE
        """
        provider = self._provider_for(api_key)
        provider_name = provider.get_provider_name()
        prompt = build_primary_prompt(subject, count, difficulty)

        logger.info(
            f"Generating {count} {difficulty.value} questions for {subject} "
            f"using {provider_name} ({self.model})"
        )

        try:
            payload = await asyncio.wait_for(
                provider.generate_structured_completion(
                    prompt, temperature=self.temperature
                ),
                timeout=self.timeout_seconds,
            )
        except ResponseParseError as e:
            raise ProviderError(
                ProviderErrorKind.MALFORMED_RESPONSE, provider_name, str(e), cause=e
            ) from e
        except asyncio.TimeoutError as e:
            raise ProviderError(
                ProviderErrorKind.UNAVAILABLE,
                provider_name,
                f"timed out after {self.timeout_seconds}s",
                cause=e,
            ) from e
        except LLMProviderError as e:
            kind = (
                ProviderErrorKind.QUOTA_EXCEEDED
                if e.classified_error.is_quota
                else ProviderErrorKind.UNAVAILABLE
            )
            raise ProviderError(kind, provider_name, str(e), cause=e) from e
        except Exception as e:
            classified = ErrorClassifier.classify_error(e, provider_name)
            kind = (
                ProviderErrorKind.QUOTA_EXCEEDED
                if classified.is_quota
                else ProviderErrorKind.UNAVAILABLE
            )
            raise ProviderError(kind, provider_name, str(e), cause=e) from e

        resolved = resolve_payload(payload)
        if resolved.shape == PayloadShape.UNRECOGNIZED or not resolved.records:
            raise ProviderError(
                ProviderErrorKind.MALFORMED_RESPONSE,
                provider_name,
                f"no question records in response (shape={resolved.shape.value})",
            )

        return GeneratedBatch(
            provider_id=provider_name, model=self.model, records=resolved.records
        )
