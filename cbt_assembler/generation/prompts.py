"""Prompt templates for CBT question generation.

The primary and secondary providers get differently worded prompts. Both
ask for the same record shape: four full-text options, a zero-based
correct option, an explanation and a topic.
"""

import json
from typing import Dict

from ..models import DifficultyTier

# Fixed elaborations for each tier; they steer the model only.
DIFFICULTY_INSTRUCTIONS: Dict[DifficultyTier, str] = {
    DifficultyTier.EASY: (
        "Basic concepts, straightforward questions suitable for beginners."
    ),
    DifficultyTier.MEDIUM: (
        "Standard JAMB-level questions requiring good understanding of concepts."
    ),
    DifficultyTier.HARD: (
        "Challenging questions requiring deep understanding and application "
        "of concepts."
    ),
    DifficultyTier.EXTREME_HARD: (
        "Highly challenging questions combining multiple concepts, requiring "
        "advanced problem-solving, critical thinking, and may include multi-step "
        "calculations or complex reasoning. These should challenge even the best "
        "students."
    ),
}


def question_record_example(difficulty: DifficultyTier) -> str:
    """JSON example of one question record in the required output schema."""
    return json.dumps(
        {
            "question_text": "Full question text here",
            "options": [
                "Option A text",
                "Option B text",
                "Option C text",
                "Option D text",
            ],
            "correct_option": 0,
            "explanation": (
                "Detailed step-by-step solution explaining why the correct "
                "answer is right"
            ),
            "topic": "Specific topic",
            "difficulty": difficulty.value,
        }
    )


def build_primary_prompt(subject: str, count: int, difficulty: DifficultyTier) -> str:
    """Build the Gemini generation prompt.

    Args:
        subject: Subject to write questions for
        count: Number of questions wanted
        difficulty: Difficulty tier

    Returns:
        Complete prompt string
    """
    prompt = f"""Generate {count} JAMB-standard multiple-choice questions for {subject}.
Requirements:
- Difficulty: {difficulty.value} ({DIFFICULTY_INSTRUCTIONS[difficulty]})
- Exactly 4 options per question, written as full answer text (not just letters)
- correct_option is the zero-based index (0-3) of the correct option
- Include an explanation and the specific topic within {subject}
- JSON array output only, no markdown and no text outside the array:
[{question_record_example(difficulty)}]"""
    return prompt.strip()


def build_secondary_prompt(
    subject: str, count: int, difficulty: DifficultyTier
) -> str:
    """Build the Groq generation prompt.

    Groq's JSON mode returns an object, so the prompt asks for the array
    under a "questions" key.

    Args:
        subject: Subject to write questions for
        count: Number of questions wanted
        difficulty: Difficulty tier

    Returns:
        Complete prompt string
    """
    prompt = f"""Generate {count} JAMB-standard multiple-choice questions for {subject}.
Requirements:
- Difficulty: {difficulty.value} ({DIFFICULTY_INSTRUCTIONS[difficulty]})
- 4 options (A, B, C, D) per question with ACTUAL answer text (not just letters)
- Include DETAILED explanations/solutions showing step-by-step reasoning
- Mix different topics within {subject}
- Output ONLY valid JSON of the form:
{{"questions": [{question_record_example(difficulty)}]}}"""
    return prompt.strip()
