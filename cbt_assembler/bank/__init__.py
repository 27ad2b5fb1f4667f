"""Question bank persistence and retrieval."""

from .database import BankQuestionModel, QuestionBankRepository
from .source import BankSource, BankUnavailableError

__all__ = [
    "BankQuestionModel",
    "BankSource",
    "BankUnavailableError",
    "QuestionBankRepository",
]
