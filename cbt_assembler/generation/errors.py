"""Structured failures of the primary generation leg."""

from enum import Enum
from typing import Optional


class ProviderErrorKind(Enum):
    """Why a provider call produced no usable questions."""

    QUOTA_EXCEEDED = "quota_exceeded"
    MALFORMED_RESPONSE = "malformed_response"
    UNAVAILABLE = "unavailable"


class ProviderError(Exception):
    """A provider call failed in a way the fallback orchestrator acts on.

    Attributes:
        kind: Failure kind that selects the recovery path
        provider: Provider name
        cause: Underlying exception, if any
    """

    def __init__(
        self,
        kind: ProviderErrorKind,
        provider: str,
        message: str,
        cause: Optional[BaseException] = None,
    ):
        self.kind = kind
        self.provider = provider
        self.cause = cause
        super().__init__(f"{provider}: {kind.value} - {message}")
