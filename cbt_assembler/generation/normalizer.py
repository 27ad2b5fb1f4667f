"""Normalization of provider output into canonical questions.

Providers answer in one of three shapes: a bare JSON array of records, an
object wrapping the array under some key, or a single record object.
``resolve_payload`` decides the shape once; ``normalize`` then maps one raw
record onto ``Question``.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..models import OPTIONS_PER_QUESTION, DifficultyTier, Question, QuestionOrigin

logger = logging.getLogger(__name__)

DEFAULT_EXPLANATION = "No explanation provided"
DEFAULT_TOPIC = "General"
AI_LIVE_CREATOR = "ai_live"

TEXT_KEYS = ("question_text", "question", "text")
OPTIONS_KEYS = ("options", "answer_options", "choices")
CORRECT_KEYS = (
    "correct_option",
    "correct_option_index",
    "correct_index",
    "answer_index",
    "correctOption",
    "correct_answer",
    "answer",
)
# Keys whose values are the answer text rather than its position
ANSWER_TEXT_KEYS = ("correct_answer", "answer")
OPTION_LETTERS = "ABCD"


class PayloadShape(Enum):
    """Shapes a provider's decoded JSON may take."""

    BARE_ARRAY = "bare_array"
    WRAPPED_ARRAY = "wrapped_array"
    SINGLE_OBJECT = "single_object"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ProviderPayload:
    """A decoded provider response, resolved to its shape and raw records."""

    shape: PayloadShape
    records: List[Dict[str, Any]] = field(default_factory=list)


def _looks_like_record(value: Dict[str, Any]) -> bool:
    return any(key in value for key in TEXT_KEYS)


def resolve_payload(payload: Any) -> ProviderPayload:
    """Resolve a decoded provider response into raw question records.

    Args:
        payload: Decoded JSON from a provider

    Returns:
        ProviderPayload; records is empty for UNRECOGNIZED payloads
    """
    if isinstance(payload, list):
        return ProviderPayload(
            PayloadShape.BARE_ARRAY, [r for r in payload if isinstance(r, dict)]
        )

    if isinstance(payload, dict):
        wrapped = payload.get("questions")
        if isinstance(wrapped, list):
            return ProviderPayload(
                PayloadShape.WRAPPED_ARRAY,
                [r for r in wrapped if isinstance(r, dict)],
            )
        if _looks_like_record(payload):
            return ProviderPayload(PayloadShape.SINGLE_OBJECT, [payload])
        for value in payload.values():
            if isinstance(value, list) and any(isinstance(r, dict) for r in value):
                return ProviderPayload(
                    PayloadShape.WRAPPED_ARRAY,
                    [r for r in value if isinstance(r, dict)],
                )

    return ProviderPayload(PayloadShape.UNRECOGNIZED)


def _first_present(raw: Dict[str, Any], keys: tuple) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _extract_options(raw: Dict[str, Any]) -> Optional[List[str]]:
    options = _first_present(raw, OPTIONS_KEYS)
    if isinstance(options, dict):
        # {"A": "...", "B": "...", ...}
        options = [options[k] for k in sorted(options)]
    if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        return None
    if not all(isinstance(o, (str, int, float)) for o in options):
        return None
    return [str(o).strip() for o in options]


def _extract_correct_index(raw: Dict[str, Any], options: List[str]) -> Optional[int]:
    """Read the correct option index without inventing one.

    Accepts an integer index, a numeric string, a single option letter or the
    exact text of one option. Values under ``correct_answer``/``answer`` are
    matched against the option texts first, since those keys carry the
    answer itself. A string that reads as one index but names a different
    option's text is ambiguous. Anything ambiguous or unreadable yields None.
    """
    key = next((k for k in CORRECT_KEYS if raw.get(k) is not None), None)
    if key is None:
        return None
    value = raw[key]
    if isinstance(value, bool):
        return None

    if isinstance(value, int) and key not in ANSWER_TEXT_KEYS:
        index = value
    elif isinstance(value, (str, int)):
        stripped = str(value).strip()
        text_match = options.index(stripped) if stripped in options else None
        if key in ANSWER_TEXT_KEYS and text_match is not None:
            return text_match

        if stripped.isdigit():
            index = int(stripped)
        elif len(stripped) == 1 and stripped.upper() in OPTION_LETTERS:
            index = OPTION_LETTERS.index(stripped.upper())
        elif text_match is not None:
            return text_match
        else:
            return None

        if text_match is not None and text_match != index:
            return None
    else:
        return None
    if not 0 <= index < OPTIONS_PER_QUESTION:
        return None
    return index


def _extract_difficulty(
    raw: Dict[str, Any], requested: DifficultyTier
) -> DifficultyTier:
    value = raw.get("difficulty")
    if isinstance(value, str):
        for tier in DifficultyTier:
            if tier.value.lower() == value.strip().lower():
                return tier
    return requested


def normalize(
    raw: Dict[str, Any],
    subject: str,
    provider_id: str,
    model: Optional[str] = None,
    difficulty: DifficultyTier = DifficultyTier.MEDIUM,
) -> Optional[Question]:
    """Map one raw provider record onto a canonical Question.

    Args:
        raw: Raw record as the provider returned it
        subject: Subject the record was generated for (logging only)
        provider_id: Provider that authored the record
        model: Model identifier used for the call
        difficulty: Requested difficulty, used when the record has none

    Returns:
        The Question, or None if the record cannot be used
    """
    text = _first_present(raw, TEXT_KEYS)
    if not isinstance(text, str) or not text.strip():
        logger.warning(f"Discarding {provider_id} record for {subject}: no text")
        return None

    options = _extract_options(raw)
    if options is None:
        logger.warning(
            f"Discarding {provider_id} record for {subject}: "
            f"options are not {OPTIONS_PER_QUESTION} strings"
        )
        return None

    correct_index = _extract_correct_index(raw, options)
    if correct_index is None:
        logger.warning(
            f"Discarding {provider_id} record for {subject}: no usable correct option"
        )
        return None

    explanation = raw.get("explanation")
    topic = raw.get("topic")

    try:
        return Question(
            text=text.strip(),
            options=options,
            correct_option_index=correct_index,
            explanation=(
                explanation.strip()
                if isinstance(explanation, str) and explanation.strip()
                else DEFAULT_EXPLANATION
            ),
            topic=(
                topic.strip() if isinstance(topic, str) and topic.strip() else DEFAULT_TOPIC
            ),
            difficulty=_extract_difficulty(raw, difficulty),
            origin=QuestionOrigin.AI,
            provider_id=provider_id,
            model=model,
            question_id=f"ai-{uuid.uuid4()}",
            created_by=AI_LIVE_CREATOR,
        )
    except ValidationError as e:
        logger.warning(f"Discarding {provider_id} record for {subject}: {e}")
        return None


def normalize_batch(
    records: List[Dict[str, Any]],
    subject: str,
    provider_id: str,
    model: Optional[str] = None,
    difficulty: DifficultyTier = DifficultyTier.MEDIUM,
) -> List[Question]:
    """Normalize a list of raw records, dropping the unusable ones."""
    questions: List[Question] = []
    for raw in records:
        question = normalize(raw, subject, provider_id, model, difficulty)
        if question is not None:
            questions.append(question)

    if len(questions) < len(records):
        logger.info(
            f"Kept {len(questions)}/{len(records)} {provider_id} records for {subject}"
        )
    return questions


@dataclass(frozen=True)
class GeneratedBatch:
    """Raw records from one successful provider call, before normalization."""

    provider_id: str
    model: Optional[str]
    records: List[Dict[str, Any]] = field(default_factory=list)
