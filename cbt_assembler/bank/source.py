"""Asynchronous access to the question bank for assembly."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError

from ..models import DifficultyTier, Question, QuestionOrigin

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_OVERFETCH_FACTOR = 2


class BankUnavailableError(Exception):
    """The bank query failed or timed out."""


class BankQuery(Protocol):
    """Anything that can list a subject's bank rows."""

    def fetch_by_subject(self, subject: str, limit: int) -> List[Dict[str, Any]]:
        ...


def row_to_question(row: Dict[str, Any]) -> Optional[Question]:
    """Convert a bank row into a Question, or None if the row is unusable."""
    difficulty = DifficultyTier.MEDIUM
    for tier in DifficultyTier:
        if tier.value == row.get("difficulty"):
            difficulty = tier
            break

    try:
        return Question(
            text=row["question_text"],
            options=row["options"],
            correct_option_index=row["correct_option"],
            explanation=row.get("explanation") or "No explanation provided",
            topic=row.get("topic") or "General",
            difficulty=difficulty,
            origin=QuestionOrigin.BANK,
            question_id=str(row["id"]) if row.get("id") is not None else None,
            created_by=row.get("created_by"),
        )
    except (KeyError, TypeError, ValidationError) as e:
        logger.warning(f"Skipping malformed bank row {row.get('id')}: {e}")
        return None


class BankSource:
    """Reads a subject's candidate questions from the bank.

    Asks for ``overfetch_factor * count`` rows so the selector has a pool
    larger than the target to shuffle; the bank itself returns rows in
    storage order.
    """

    def __init__(
        self,
        repository: BankQuery,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        overfetch_factor: int = DEFAULT_OVERFETCH_FACTOR,
    ):
        self.repository = repository
        self.timeout_seconds = timeout_seconds
        self.overfetch_factor = overfetch_factor

    async def fetch(self, subject: str, count: int) -> List[Question]:
        """Fetch up to ``overfetch_factor * count`` bank questions.

        Args:
            subject: Subject name
            count: Number of questions the caller needs

        Returns:
            Bank questions; fewer than count (even none) is not an error

        Raises:
            BankUnavailableError: If the query fails or times out
        """
        limit = count * self.overfetch_factor
        try:
            rows = await asyncio.wait_for(
                asyncio.to_thread(self.repository.fetch_by_subject, subject, limit),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise BankUnavailableError(
                f"Bank query for {subject} timed out after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            raise BankUnavailableError(f"Bank query for {subject} failed: {e}") from e

        questions = [q for q in (row_to_question(r) for r in rows) if q is not None]
        logger.debug(f"Bank returned {len(questions)} questions for {subject}")
        return questions
