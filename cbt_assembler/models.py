"""Data models for CBT question assembly."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

OPTIONS_PER_QUESTION = 4


class DifficultyTier(str, Enum):
    """Difficulty tiers used to steer provider prompts."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    EXTREME_HARD = "Extreme Hard"


class QuestionOrigin(str, Enum):
    """Where a question in the assembled payload came from."""

    BANK = "bank"
    AI = "ai"


class QuestionRequest(BaseModel):
    """A request for a number of questions in one subject."""

    model_config = {"frozen": True}

    subject_name: str = Field(..., min_length=1, description="Subject to draw from")
    count: int = Field(..., gt=0, description="Number of questions wanted")

    @field_validator("subject_name")
    @classmethod
    def validate_subject_name(cls, v: str) -> str:
        """Validate that the subject is not whitespace-only."""
        v = v.strip()
        if not v:
            raise ValueError("Subject name cannot be empty")
        return v


class Question(BaseModel):
    """A canonical multiple-choice question, whatever its source."""

    text: str = Field(..., min_length=1, description="The question text")
    options: List[str] = Field(
        ...,
        min_length=OPTIONS_PER_QUESTION,
        max_length=OPTIONS_PER_QUESTION,
        description="Exactly four answer options as full text",
    )
    correct_option_index: int = Field(
        ..., ge=0, lt=OPTIONS_PER_QUESTION, description="Zero-based correct option"
    )
    explanation: str
    topic: str
    difficulty: DifficultyTier = DifficultyTier.MEDIUM
    origin: QuestionOrigin
    provider_id: Optional[str] = Field(
        None, description="Provider that authored the question (AI only)"
    )
    model: Optional[str] = Field(None, description="Model identifier (AI only)")
    question_id: Optional[str] = Field(None, description="Bank row id or ai-<uuid>")
    created_by: Optional[str] = None

    @model_validator(mode="after")
    def validate_origin(self) -> "Question":
        """Bank questions never carry provider attribution."""
        if self.origin == QuestionOrigin.BANK and self.provider_id is not None:
            raise ValueError("Bank questions cannot have a provider_id")
        if self.origin == QuestionOrigin.AI and not self.provider_id:
            raise ValueError("AI questions must record their provider_id")
        return self


class AssembledItem(Question):
    """A question placed in the final payload."""

    subject_name: str
    question_number: int = Field(..., ge=1, description="1-based within subject")
    subject_total: int = Field(..., gt=0, description="Requested count for subject")


class SubjectSummary(BaseModel):
    """What the engine produced for one subject."""

    subject_name: str
    requested: int
    delivered: int
    bank_count: int
    ai_count: int

    @property
    def shortfall(self) -> int:
        """Number of requested questions that could not be supplied."""
        return max(0, self.requested - self.delivered)


class AssessmentPayload(BaseModel):
    """The assembled question set returned to the caller."""

    questions: List[AssembledItem] = Field(default_factory=list)
    subjects: List[SubjectSummary] = Field(default_factory=list)
    total_time: Optional[int] = Field(
        None, description="Assessment time budget in minutes, echoed from the request"
    )
    caller_name: Optional[str] = Field(None, description="Caller identity, echoed")
    difficulty: DifficultyTier = DifficultyTier.MEDIUM
    cancelled: bool = Field(
        False, description="True if assembly stopped before every subject finished"
    )

    def items_for(self, subject_name: str) -> List[AssembledItem]:
        """Return the assembled items for one subject, in payload order."""
        return [q for q in self.questions if q.subject_name == subject_name]
