"""CBT question assembly engine."""

from cbt_assembler.engine import AssessmentEngine, InvalidAssessmentRequest
from cbt_assembler.models import (
    AssembledItem,
    AssessmentPayload,
    DifficultyTier,
    Question,
    QuestionOrigin,
    QuestionRequest,
)

__version__ = "0.1.0"

__all__ = [
    "AssembledItem",
    "AssessmentEngine",
    "AssessmentPayload",
    "DifficultyTier",
    "InvalidAssessmentRequest",
    "Question",
    "QuestionOrigin",
    "QuestionRequest",
]
