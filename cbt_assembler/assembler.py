"""Assembly of bank and AI questions into numbered payload items."""

from typing import List, Sequence

from .models import AssembledItem, Question, QuestionOrigin, SubjectSummary


def build(
    subject_name: str,
    bank_questions: Sequence[Question],
    ai_questions: Sequence[Question],
    requested_count: int,
) -> List[AssembledItem]:
    """Merge one subject's questions into numbered payload items.

    Bank questions come first, then AI questions. Numbering starts at 1 and
    ``subject_total`` is always the requested count, so a shortfall shows up
    as fewer items than ``subject_total``.

    Args:
        subject_name: Subject the questions belong to
        bank_questions: Selected bank questions
        ai_questions: Generated questions
        requested_count: Count the caller asked for

    Returns:
        Assembled items in order
    """
    return [
        AssembledItem(
            **question.model_dump(),
            subject_name=subject_name,
            question_number=number,
            subject_total=requested_count,
        )
        for number, question in enumerate(
            [*bank_questions, *ai_questions], start=1
        )
    ]


def summarize(
    subject_name: str, items: Sequence[AssembledItem], requested_count: int
) -> SubjectSummary:
    """Count what was delivered for one subject, by origin."""
    bank_count = sum(1 for item in items if item.origin == QuestionOrigin.BANK)
    return SubjectSummary(
        subject_name=subject_name,
        requested=requested_count,
        delivered=len(items),
        bank_count=bank_count,
        ai_count=len(items) - bank_count,
    )
