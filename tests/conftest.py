"""Pytest configuration and shared fixtures for CBT assembler tests."""

from typing import Any, Dict, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from cbt_assembler.bank.database import QuestionBankRepository
from cbt_assembler.models import DifficultyTier, Question, QuestionOrigin


@pytest.fixture
def mock_gemini_api_key() -> str:
    """Fixture providing a mock Gemini API key for testing."""
    return "AIza-test-mock-api-key-12345"


@pytest.fixture
def mock_groq_api_key() -> str:
    """Fixture providing a mock Groq API key for testing."""
    return "gsk_test-mock-api-key-12345"


@pytest.fixture
def sample_prompt() -> str:
    """Fixture providing a sample prompt for testing."""
    return "Generate 2 JAMB-standard multiple-choice questions for Physics."


def make_record(index: int = 0, **overrides: Any) -> Dict[str, Any]:
    """Build one well-formed raw provider record."""
    record: Dict[str, Any] = {
        "question_text": f"What is {index} + 1?",
        "options": [str(index), str(index + 1), str(index + 2), str(index + 3)],
        "correct_option": 1,
        "explanation": f"{index} + 1 = {index + 1}",
        "topic": "Arithmetic",
        "difficulty": "Medium",
    }
    record.update(overrides)
    return record


def make_records(count: int) -> List[Dict[str, Any]]:
    return [make_record(i) for i in range(count)]


def make_bank_question(index: int = 0, subject: str = "Mathematics") -> Question:
    return Question(
        text=f"{subject} bank question {index}",
        options=["A", "B", "C", "D"],
        correct_option_index=index % 4,
        explanation="Stored explanation",
        topic="General",
        difficulty=DifficultyTier.MEDIUM,
        origin=QuestionOrigin.BANK,
        question_id=str(index + 1),
        created_by="admin",
    )


def make_ai_question(index: int = 0, provider_id: str = "google") -> Question:
    return Question(
        text=f"AI question {index}",
        options=["A", "B", "C", "D"],
        correct_option_index=0,
        explanation="Generated explanation",
        topic="General",
        origin=QuestionOrigin.AI,
        provider_id=provider_id,
        model="gemini-2.0-flash",
        question_id=f"ai-{index}",
        created_by="ai_live",
    )


@pytest.fixture
def sample_record() -> Dict[str, Any]:
    """Fixture providing one well-formed provider record."""
    return make_record()


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def repository(sqlite_engine) -> QuestionBankRepository:
    """Question bank repository backed by an empty in-memory database."""
    repo = QuestionBankRepository("sqlite://", engine=sqlite_engine)
    repo.create_tables()
    return repo


def seed_bank(repo: QuestionBankRepository, subject: str, count: int) -> List[int]:
    """Insert ``count`` curated questions for ``subject``."""
    return [
        repo.add_question(
            subject=subject,
            question_text=f"{subject} question {i}",
            options=["A", "B", "C", "D"],
            correct_option=i % 4,
        )
        for i in range(count)
    ]


@pytest.fixture
def record_factory():
    """Factory for raw provider records: ``record_factory(index, **overrides)``."""
    return make_record


@pytest.fixture
def records_factory():
    """Factory for lists of raw provider records: ``records_factory(count)``."""
    return make_records


@pytest.fixture
def bank_question_factory():
    """Factory for bank-origin Questions."""
    return make_bank_question


@pytest.fixture
def ai_question_factory():
    """Factory for AI-origin Questions."""
    return make_ai_question


@pytest.fixture
def bank_seeder():
    """Inserts curated questions: ``bank_seeder(repo, subject, count)``."""
    return seed_bank
