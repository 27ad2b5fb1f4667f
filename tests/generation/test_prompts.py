"""Tests for generation prompt templates."""

import json

import pytest

from cbt_assembler.generation.prompts import (
    DIFFICULTY_INSTRUCTIONS,
    build_primary_prompt,
    build_secondary_prompt,
    question_record_example,
)
from cbt_assembler.models import DifficultyTier


class TestPrompts:
    """Tests for prompt construction."""

    def test_every_tier_has_instructions(self):
        assert set(DIFFICULTY_INSTRUCTIONS) == set(DifficultyTier)

    @pytest.mark.parametrize("tier", list(DifficultyTier))
    def test_primary_prompt_encodes_request(self, tier):
        prompt = build_primary_prompt("Chemistry", 7, tier)

        assert "Generate 7 JAMB-standard" in prompt
        assert "Chemistry" in prompt
        assert tier.value in prompt
        assert DIFFICULTY_INSTRUCTIONS[tier] in prompt
        assert "JSON array" in prompt

    def test_secondary_prompt_asks_for_wrapped_array(self):
        prompt = build_secondary_prompt("Biology", 3, DifficultyTier.HARD)

        assert "Generate 3 JAMB-standard" in prompt
        assert '{"questions": [' in prompt
        assert DIFFICULTY_INSTRUCTIONS[DifficultyTier.HARD] in prompt

    def test_record_example_is_valid_json(self):
        example = json.loads(question_record_example(DifficultyTier.EASY))

        assert len(example["options"]) == 4
        assert example["correct_option"] == 0
        assert example["difficulty"] == "Easy"
        assert {"question_text", "explanation", "topic"} <= set(example)
