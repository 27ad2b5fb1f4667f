"""Credential and model pools for the AI providers.

The primary provider's API keys live in a ProviderKeyPool whose cursor is
shared by every assembly running in the process. A quota rejection on the
current key moves the cursor to the next key for everyone, so the cursor is
only read or advanced while holding the pool's lock.

The secondary provider draws a model from a ModelPool per call. Draws are
independent; there is no cursor and nothing to lock.
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class ProviderKeyPool:
    """Ordered API keys with a process-wide, lock-guarded cursor.

    Invariant: ``0 <= cursor < len(keys)``.
    """

    def __init__(self, keys: Sequence[str], provider_name: str = "google"):
        """Initialize the pool.

        Args:
            keys: API keys in rotation order; blanks are ignored
            provider_name: Provider the keys belong to (for logging)

        Raises:
            ValueError: If no usable key is given
        """
        self._keys: List[str] = [k for k in keys if k]
        if not self._keys:
            raise ValueError(f"No {provider_name} API keys configured")
        self.provider_name = provider_name
        self._cursor = 0
        self._rotations = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def can_rotate(self) -> bool:
        """Whether rotating would select a different key."""
        return len(self._keys) > 1

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    @property
    def rotations(self) -> int:
        """Number of rotations performed since the pool was created."""
        with self._lock:
            return self._rotations

    def current(self) -> str:
        """Return the key at the cursor."""
        with self._lock:
            return self._keys[self._cursor]

    def rotate(self, observed_key: Optional[str] = None) -> str:
        """Advance the cursor to the next key and return the new current key.

        When ``observed_key`` is given, the cursor only moves if that key is
        still current. Two requests that hit the quota on the same key then
        produce a single rotation rather than one each, which would swing the
        cursor back to the exhausted key.

        Args:
            observed_key: Key the caller saw rejected

        Returns:
            The key at the cursor after the call
        """
        with self._lock:
            if len(self._keys) == 1:
                return self._keys[0]
            if observed_key is not None and self._keys[self._cursor] != observed_key:
                return self._keys[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._keys)
            self._rotations += 1
            logger.info(
                f"Switched to {self.provider_name} API key "
                f"{self._cursor + 1}/{len(self._keys)}"
            )
            return self._keys[self._cursor]


@dataclass
class ModelPool:
    """Model identifiers for the secondary provider plus the reliable one."""

    models: List[str]
    reliable_model: str
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        """Validate pool membership."""
        if not self.models:
            raise ValueError("ModelPool requires at least one model")
        if self.reliable_model not in self.models:
            raise ValueError(
                f"Reliable model '{self.reliable_model}' must be in the pool"
            )

    def draw(self) -> str:
        """Pick a model uniformly at random."""
        return self.rng.choice(self.models)

    def is_reliable(self, model: str) -> bool:
        return model == self.reliable_model
