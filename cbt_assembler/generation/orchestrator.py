"""Fallback orchestration across the primary and secondary providers.

States:
    PRIMARY_ATTEMPT: Call Gemini with the key at the pool cursor
    SECONDARY_ATTEMPT: Call Groq (fail-soft, retried once internally)
    DONE: Terminal

Transitions:
    PRIMARY_ATTEMPT -> DONE: Gemini returned question records
    PRIMARY_ATTEMPT -> PRIMARY_ATTEMPT: Quota exceeded, more than one key,
        not yet retried for this request (rotate the key first)
    PRIMARY_ATTEMPT -> SECONDARY_ATTEMPT: Any other primary failure
    SECONDARY_ATTEMPT -> DONE: Always, with whatever Groq returned
"""

import logging
from enum import Enum
from typing import List, Optional

from ..infrastructure.credential_pool import ProviderKeyPool
from ..models import DifficultyTier, Question
from .errors import ProviderError, ProviderErrorKind
from .normalizer import GeneratedBatch, normalize_batch
from .primary import PrimaryController
from .secondary import SecondaryController

logger = logging.getLogger(__name__)


class GenerationState(Enum):
    """States of one orchestrated generation."""

    PRIMARY_ATTEMPT = "primary_attempt"
    SECONDARY_ATTEMPT = "secondary_attempt"
    DONE = "done"


class FallbackOrchestrator:
    """Fills a subject's shortfall with AI questions without ever raising.

    The orchestrator is the only component that reads or rotates the
    primary key pool. The pool is shared by every request in the process.
    """

    def __init__(
        self,
        secondary: SecondaryController,
        primary: Optional[PrimaryController] = None,
        key_pool: Optional[ProviderKeyPool] = None,
    ):
        """Initialize the orchestrator.

        Args:
            secondary: Fail-soft Groq controller
            primary: Gemini controller, or None to go straight to Groq
            key_pool: Gemini keys; required when primary is given

        Raises:
            ValueError: If primary is given without a key pool
        """
        if primary is not None and key_pool is None:
            raise ValueError("A key pool is required for the primary provider")
        self.primary = primary
        self.key_pool = key_pool
        self.secondary = secondary

    async def generate(
        self,
        subject: str,
        count: int,
        difficulty: DifficultyTier = DifficultyTier.MEDIUM,
    ) -> List[Question]:
        """Generate up to ``count`` normalized AI questions for a subject.

        Args:
            subject: Subject to generate for
            count: Shortfall to fill
            difficulty: Difficulty tier

        Returns:
            Normalized questions; possibly fewer than count, possibly empty
        """
        if count <= 0:
            return []

        state = (
            GenerationState.PRIMARY_ATTEMPT
            if self.primary is not None
            else GenerationState.SECONDARY_ATTEMPT
        )
        retried = False
        batch: Optional[GeneratedBatch] = None

        while state != GenerationState.DONE:
            if state == GenerationState.PRIMARY_ATTEMPT:
                api_key = self.key_pool.current()
                try:
                    batch = await self.primary.generate(
                        subject, count, difficulty, api_key
                    )
                    state = GenerationState.DONE
                except ProviderError as e:
                    logger.warning(f"Primary generation failed for {subject}: {e}")
                    if (
                        e.kind == ProviderErrorKind.QUOTA_EXCEEDED
                        and self.key_pool.can_rotate
                        and not retried
                    ):
                        self.key_pool.rotate(observed_key=api_key)
                        retried = True
                    else:
                        if e.kind == ProviderErrorKind.QUOTA_EXCEEDED:
                            logger.warning(
                                f"{e.provider} quota exhausted; switching to "
                                f"{self.secondary.provider_name}",
                                extra={
                                    "subject": subject,
                                    "provider": e.provider,
                                    "error_kind": e.kind.value,
                                },
                            )
                        state = GenerationState.SECONDARY_ATTEMPT
                except Exception as e:
                    logger.error(
                        f"Unexpected primary generation error for {subject}: {e}",
                        exc_info=True,
                    )
                    state = GenerationState.SECONDARY_ATTEMPT

            elif state == GenerationState.SECONDARY_ATTEMPT:
                try:
                    batch = await self.secondary.generate(subject, count, difficulty)
                except Exception as e:
                    logger.error(
                        f"Unexpected secondary generation error for {subject}: {e}",
                        exc_info=True,
                    )
                    batch = None
                state = GenerationState.DONE

        if batch is None or not batch.records:
            logger.warning(f"No AI questions generated for {subject}")
            return []

        return normalize_batch(
            batch.records, subject, batch.provider_id, batch.model, difficulty
        )
