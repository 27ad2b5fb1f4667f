"""Secondary provider controller (Groq).

This is the last resort of the generation leg, so it fails soft: every
failure is logged and the caller gets an empty batch, never an exception.
"""

import asyncio
import logging
from typing import Optional

from ..infrastructure.credential_pool import ModelPool
from ..models import DifficultyTier
from ..providers.base import BaseLLMProvider
from .normalizer import GeneratedBatch, PayloadShape, resolve_payload
from .prompts import build_secondary_prompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0
PROVIDER_NAME = "groq"


class SecondaryController:
    """Draws a random Groq model per call, retrying once on the reliable one."""

    def __init__(
        self,
        provider: Optional[BaseLLMProvider],
        model_pool: ModelPool,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        temperature: float = 0.5,
    ):
        """Initialize the controller.

        Args:
            provider: Groq provider, or None when no key is configured
            model_pool: Models to draw from
            timeout_seconds: Upper bound on one call, including parsing
            temperature: Sampling temperature
        """
        self.provider = provider
        self.model_pool = model_pool
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature

    @property
    def provider_name(self) -> str:
        return self.provider.get_provider_name() if self.provider else PROVIDER_NAME

    async def generate(
        self,
        subject: str,
        count: int,
        difficulty: DifficultyTier,
    ) -> GeneratedBatch:
        """Generate questions, returning an empty batch if nothing worked.

        Args:
            subject: Subject to generate for
            count: Number of questions wanted
            difficulty: Difficulty tier

        Returns:
            Raw records from the model that answered; empty on total failure
        """
        if self.provider is None:
            logger.error(f"No {PROVIDER_NAME} provider configured; cannot fill {subject}")
            return GeneratedBatch(provider_id=self.provider_name, model=None)

        model = self.model_pool.draw()
        batch = await self._attempt(subject, count, difficulty, model)
        if batch is not None:
            return batch

        if not self.model_pool.is_reliable(model):
            reliable = self.model_pool.reliable_model
            logger.info(f"Falling back to {reliable} for {subject}")
            batch = await self._attempt(subject, count, difficulty, reliable)
            if batch is not None:
                return batch

        logger.error(
            f"{self.provider_name} generation failed for {subject}; "
            f"returning no AI questions"
        )
        return GeneratedBatch(provider_id=self.provider_name, model=None)

    async def _attempt(
        self,
        subject: str,
        count: int,
        difficulty: DifficultyTier,
        model: str,
    ) -> Optional[GeneratedBatch]:
        """One call against one model; None means the attempt failed."""
        logger.info(
            f"Generating {count} questions for {subject} using "
            f"{self.provider_name} ({model})"
        )
        prompt = build_secondary_prompt(subject, count, difficulty)
        try:
            payload = await asyncio.wait_for(
                self.provider.generate_structured_completion(
                    prompt, temperature=self.temperature, model_override=model
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"{self.provider_name} generation timed out ({model}) "
                f"after {self.timeout_seconds}s"
            )
            return None
        except Exception as e:
            logger.error(f"{self.provider_name} generation error ({model}): {e}")
            return None

        resolved = resolve_payload(payload)
        if resolved.shape == PayloadShape.UNRECOGNIZED or not resolved.records:
            logger.error(
                f"{self.provider_name} returned no question records ({model}, "
                f"shape={resolved.shape.value})"
            )
            return None

        return GeneratedBatch(
            provider_id=self.provider_name, model=model, records=resolved.records
        )
