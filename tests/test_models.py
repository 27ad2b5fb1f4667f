"""Tests for the assembly data models."""

import pytest
from pydantic import ValidationError

from cbt_assembler.models import (
    AssembledItem,
    AssessmentPayload,
    DifficultyTier,
    Question,
    QuestionOrigin,
    QuestionRequest,
    SubjectSummary,
)


def _question(**overrides):
    data = dict(
        text="Q?",
        options=["a", "b", "c", "d"],
        correct_option_index=0,
        explanation="e",
        topic="t",
        origin=QuestionOrigin.BANK,
    )
    data.update(overrides)
    return data


class TestQuestionRequest:
    """Tests for QuestionRequest."""

    def test_strips_subject(self):
        request = QuestionRequest(subject_name="  Physics ", count=3)

        assert request.subject_name == "Physics"

    @pytest.mark.parametrize("count", [0, -2])
    def test_count_must_be_positive(self, count):
        with pytest.raises(ValidationError):
            QuestionRequest(subject_name="Physics", count=count)

    def test_subject_required(self):
        with pytest.raises(ValidationError):
            QuestionRequest(subject_name="   ", count=3)

    def test_immutable(self):
        request = QuestionRequest(subject_name="Physics", count=3)

        with pytest.raises(ValidationError):
            request.count = 4


class TestQuestion:
    """Tests for Question invariants."""

    def test_valid_bank_question(self):
        question = Question(**_question())

        assert question.difficulty == DifficultyTier.MEDIUM
        assert question.provider_id is None

    @pytest.mark.parametrize("options", [["a", "b", "c"], ["a", "b", "c", "d", "e"]])
    def test_exactly_four_options(self, options):
        with pytest.raises(ValidationError):
            Question(**_question(options=options))

    @pytest.mark.parametrize("index", [-1, 4])
    def test_index_in_range(self, index):
        with pytest.raises(ValidationError):
            Question(**_question(correct_option_index=index))

    def test_bank_question_cannot_have_provider(self):
        with pytest.raises(ValidationError, match="provider_id"):
            Question(**_question(provider_id="google"))

    def test_ai_question_needs_provider(self):
        with pytest.raises(ValidationError, match="provider_id"):
            Question(**_question(origin=QuestionOrigin.AI))


class TestAssessmentPayload:
    """Tests for AssessmentPayload."""

    def test_items_for_and_json(self):
        item = AssembledItem(
            **_question(),
            subject_name="Physics",
            question_number=1,
            subject_total=2,
        )
        payload = AssessmentPayload(
            questions=[item],
            subjects=[
                SubjectSummary(
                    subject_name="Physics",
                    requested=2,
                    delivered=1,
                    bank_count=1,
                    ai_count=0,
                )
            ],
            total_time=30,
            difficulty=DifficultyTier.EXTREME_HARD,
        )

        assert payload.items_for("Physics") == [item]
        assert payload.items_for("Biology") == []
        dumped = payload.model_dump(mode="json")
        assert dumped["difficulty"] == "Extreme Hard"
        assert dumped["questions"][0]["origin"] == "bank"
        assert dumped["total_time"] == 30
        assert dumped["cancelled"] is False
