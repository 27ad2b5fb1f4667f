"""Error classification for LLM API failures.

This module classifies the exceptions raised by provider SDKs into categories
so the generation leg can tell a quota rejection (handled by rotating the
primary key) from every other failure (handled by falling back to the
secondary provider).
"""

import asyncio
import re
from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Categories of API errors."""

    QUOTA_EXCEEDED = "quota_exceeded"  # Quota, rate limit or HTTP 429
    AUTHENTICATION = "authentication"  # API key invalid or expired
    INVALID_REQUEST = "invalid_request"  # Malformed request or invalid parameters
    SERVER_ERROR = "server_error"  # Provider server errors (5xx)
    NETWORK_ERROR = "network_error"  # Connection/timeout errors
    MODEL_ERROR = "model_error"  # Model not found or unavailable
    UNKNOWN = "unknown"  # Unclassified errors


class ClassifiedError:
    """A classified API error."""

    def __init__(
        self,
        category: ErrorCategory,
        provider: str,
        original_error: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        """Initialize classified error.

        Args:
            category: Error category
            provider: LLM provider name (google, groq)
            original_error: Original exception type name
            message: Human-readable error message
            status_code: HTTP status code if the SDK exposed one
        """
        self.category = category
        self.provider = provider
        self.original_error = original_error
        self.message = message
        self.status_code = status_code

    @property
    def is_quota(self) -> bool:
        """Whether the provider rejected the call for quota or rate reasons."""
        return self.category == ErrorCategory.QUOTA_EXCEEDED

    def __str__(self) -> str:
        """String representation of classified error."""
        return f"{self.provider}: {self.category.value} - {self.message}"

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "category": self.category.value,
            "provider": self.provider,
            "original_error": self.original_error,
            "message": self.message,
            "status_code": self.status_code,
        }


class ErrorClassifier:
    """Classifies API errors from the Gemini and Groq SDKs."""

    # Patterns for quota and rate limit errors
    QUOTA_PATTERNS = [
        r"quota",
        r"resource.*exhausted",
        r"rate.*limit",
        r"too.*many.*requests",
        r"429",  # Too Many Requests HTTP status
        r"requests.*per.*minute",
        r"tokens.*per.*(minute|day)",
    ]

    # Patterns for authentication errors
    AUTH_PATTERNS = [
        r"invalid.*api.*key",
        r"api.*key.*not.*valid",
        r"authentication.*failed",
        r"unauthorized",
        r"permission.*denied",
        r"401",
        r"403",
    ]

    # Patterns for model errors
    MODEL_PATTERNS = [
        r"model.*not.*found",
        r"invalid.*model",
        r"model.*decommissioned",
        r"model.*deprecated",
    ]

    # Patterns for server errors
    SERVER_ERROR_PATTERNS = [
        r"internal.*server.*error",
        r"service.*unavailable",
        r"50[0-9]",
        r"server.*error",
        r"overloaded",
    ]

    # Patterns for network errors
    NETWORK_PATTERNS = [
        r"connection.*error",
        r"timeout",
        r"timed.*out",
        r"network.*error",
        r"connection.*refused",
        r"connection.*reset",
    ]

    @staticmethod
    def extract_status_code(error: Exception) -> Optional[int]:
        """Read an HTTP status code off an SDK exception if it carries one.

        openai raises APIStatusError with ``status_code``; google-api-core
        raises GoogleAPICallError with ``code``.

        Args:
            error: The exception that was raised

        Returns:
            The status code, or None if the exception has none
        """
        for attr in ("status_code", "code"):
            value = getattr(error, attr, None)
            if isinstance(value, int):
                return value
        response = getattr(error, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            return value
        return None

    @staticmethod
    def classify_error(
        error: BaseException,
        provider: str,
    ) -> ClassifiedError:
        """Classify an API error.

        A structured status code wins over message matching; message
        patterns cover SDKs that only report the failure as text.

        Args:
            error: The exception that was raised
            provider: Provider name (google, groq)

        Returns:
            ClassifiedError with its category
        """
        error_str = str(error).lower()
        error_type = type(error).__name__
        status_code = ErrorClassifier.extract_status_code(error)

        def classified(category: ErrorCategory, message: str) -> ClassifiedError:
            return ClassifiedError(
                category=category,
                provider=provider,
                original_error=error_type,
                message=message,
                status_code=status_code,
            )

        if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
            return classified(
                ErrorCategory.NETWORK_ERROR, f"Request to {provider} timed out."
            )

        if status_code == 429 or ErrorClassifier._match_patterns(
            error_str, ErrorClassifier.QUOTA_PATTERNS
        ):
            return classified(
                ErrorCategory.QUOTA_EXCEEDED,
                f"Quota or rate limit exceeded for {provider}.",
            )

        if status_code in (401, 403) or ErrorClassifier._match_patterns(
            error_str, ErrorClassifier.AUTH_PATTERNS
        ):
            return classified(
                ErrorCategory.AUTHENTICATION,
                f"Authentication failed. Verify the {provider} API key.",
            )

        if ErrorClassifier._match_patterns(error_str, ErrorClassifier.MODEL_PATTERNS):
            return classified(
                ErrorCategory.MODEL_ERROR,
                f"Model configuration issue with {provider}.",
            )

        if (status_code is not None and status_code >= 500) or (
            ErrorClassifier._match_patterns(
                error_str, ErrorClassifier.SERVER_ERROR_PATTERNS
            )
        ):
            return classified(
                ErrorCategory.SERVER_ERROR, f"{provider} server error."
            )

        if ErrorClassifier._match_patterns(error_str, ErrorClassifier.NETWORK_PATTERNS):
            return classified(
                ErrorCategory.NETWORK_ERROR, "Network connectivity issue."
            )

        if status_code == 400 or "invalid" in error_str or "bad request" in error_str:
            return classified(
                ErrorCategory.INVALID_REQUEST,
                f"Invalid request to {provider}. Check request parameters.",
            )

        return classified(
            ErrorCategory.UNKNOWN,
            f"Unclassified error from {provider}: {str(error)[:100]}",
        )

    @staticmethod
    def _match_patterns(text: str, patterns: list[str]) -> bool:
        """Check if text matches any of the given regex patterns.

        Args:
            text: Text to search
            patterns: List of regex patterns

        Returns:
            True if any pattern matches
        """
        for pattern in patterns:
            if re.search(pattern, text, re.IGNORECASE):
                return True
        return False
