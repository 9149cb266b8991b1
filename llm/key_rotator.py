"""
Provider Key Rotator for Chatbot Copilot.

Round-robin pool of provider credentials. Rotation is the only mutation and
is not availability-aware: a permanently broken key comes back after a full
cycle.
"""

import logging
import threading
from typing import List, Sequence

logger = logging.getLogger(__name__)


class EmptyKeyPoolError(ValueError):
    """Raised when a rotator is built without any credentials."""


class ProviderKeyRotator:
    """
    Ordered pool of API keys with a single cursor.

    The cursor update is guarded by a lock so rotation stays atomic even if
    the rotator is shared across threads (e.g. via asyncio.to_thread).
    """

    def __init__(self, keys: Sequence[str]):
        """
        Initialize the rotator.

        Args:
            keys: Provider credentials, in rotation order

        Raises:
            EmptyKeyPoolError: If no usable key is supplied
        """
        pool: List[str] = [k for k in keys if k]
        if not pool:
            raise EmptyKeyPoolError("Provider key pool must contain at least one key")

        self._keys = pool
        self._index = 0
        self._lock = threading.Lock()

        logger.info(f"Key rotator initialized with {len(pool)} key(s)")

    @property
    def size(self) -> int:
        return len(self._keys)

    @property
    def current_index(self) -> int:
        return self._index

    def current_key(self) -> str:
        """Return the credential under the cursor."""
        with self._lock:
            return self._keys[self._index]

    def rotate(self) -> str:
        """Advance the cursor circularly and return the new current key."""
        with self._lock:
            self._index = (self._index + 1) % len(self._keys)
            index = self._index
            key = self._keys[index]

        logger.info(f"Rotated to provider key index {index}")
        return key
