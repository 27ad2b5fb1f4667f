"""Database operations for the CBT question bank.

This module maps the ``cbt_questions`` table with SQLAlchemy and provides the
repository used to read a subject's questions and to add curated ones.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from ..models import DifficultyTier

logger = logging.getLogger(__name__)

# created_by values that mark AI-authored rows
AI_CREATORS = frozenset({"ai_bulk", "ai_live"})


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class BankQuestionModel(Base):
    """SQLAlchemy model for the cbt_questions table."""

    __tablename__ = "cbt_questions"

    id = Column(Integer, primary_key=True, index=True)
    subject = Column(String(200), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)
    correct_option = Column(Integer, nullable=False)
    explanation = Column(Text)
    topic = Column(String(200))
    difficulty = Column(String(50), default=DifficultyTier.MEDIUM.value)
    created_by = Column(String(50))
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation, safe to use after the session closes."""
        return {
            "id": self.id,
            "subject": self.subject,
            "question_text": self.question_text,
            "options": list(self.options or []),
            "correct_option": self.correct_option,
            "explanation": self.explanation,
            "topic": self.topic,
            "difficulty": self.difficulty,
            "created_by": self.created_by,
        }


class QuestionBankRepository:
    """Repository for question bank reads and curated inserts."""

    def __init__(self, database_url: str, engine: Optional[Engine] = None):
        """Initialize the repository.

        Args:
            database_url: SQLAlchemy connection URL
            engine: Pre-built engine (tests pass an in-memory SQLite engine)
        """
        self.database_url = database_url
        self.engine = engine or create_engine(database_url)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    def create_tables(self) -> None:
        """Create the bank table if it does not exist."""
        Base.metadata.create_all(bind=self.engine)

    def fetch_by_subject(self, subject: str, limit: int) -> List[Dict[str, Any]]:
        """Fetch up to ``limit`` non-deleted questions for a subject.

        Rows come back in storage order; callers shuffle.

        Args:
            subject: Subject name (exact match)
            limit: Maximum number of rows

        Returns:
            List of row dictionaries
        """
        session = self.SessionLocal()
        try:
            stmt = (
                select(BankQuestionModel)
                .where(
                    BankQuestionModel.subject == subject,
                    BankQuestionModel.is_deleted.is_(False),
                )
                .limit(limit)
            )
            rows = session.execute(stmt).scalars().all()
            return [row.to_dict() for row in rows]
        finally:
            session.close()

    def add_question(
        self,
        subject: str,
        question_text: str,
        options: Sequence[str],
        correct_option: int,
        explanation: Optional[str] = None,
        difficulty: Optional[DifficultyTier] = None,
        topic: Optional[str] = None,
        created_by: str = "admin",
    ) -> int:
        """Insert one curated question.

        Args:
            subject: Subject name
            question_text: Question text
            options: Exactly four answer options
            correct_option: Zero-based index of the correct option
            explanation: Explanation (default: "No explanation provided")
            difficulty: Difficulty tier (default: Medium)
            topic: Topic (default: "General")
            created_by: Author tag

        Returns:
            ID of the inserted row

        Raises:
            ValueError: If the options or correct option are invalid
        """
        if len(options) != 4:
            raise ValueError("A question needs exactly 4 options")
        if not 0 <= correct_option < len(options):
            raise ValueError("correct_option must index one of the options")

        session = self.SessionLocal()
        try:
            row = BankQuestionModel(
                subject=subject,
                question_text=question_text,
                options=list(options),
                correct_option=correct_option,
                explanation=explanation or "No explanation provided",
                difficulty=(difficulty or DifficultyTier.MEDIUM).value,
                topic=topic or "General",
                created_by=created_by,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            logger.info(f"Added question {row.id} to bank for {subject}")
            return row.id
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def subject_stats(self) -> Dict[str, Dict[str, int]]:
        """Count questions per subject, split into AI-authored and human.

        Returns:
            {subject: {"total": n, "ai": n, "human": n}}
        """
        session = self.SessionLocal()
        try:
            stmt = select(
                BankQuestionModel.subject,
                BankQuestionModel.created_by,
                func.count(BankQuestionModel.id),
            ).group_by(BankQuestionModel.subject, BankQuestionModel.created_by)

            stats: Dict[str, Dict[str, int]] = {}
            for subject, created_by, count in session.execute(stmt):
                entry = stats.setdefault(
                    subject or "Unknown", {"total": 0, "ai": 0, "human": 0}
                )
                entry["total"] += count
                if created_by in AI_CREATORS:
                    entry["ai"] += count
                else:
                    entry["human"] += count
            return stats
        finally:
            session.close()
