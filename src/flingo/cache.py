"""Single-value TTL cache with an injectable clock.

Used for the level curve and the game-config catalogue. Instances are created
once per application and handed to the engines, so tests can drive expiry
with a fake clock instead of sleeping.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


class TTLCache(Generic[T]):
    """Hold one value until ``ttl_seconds`` have elapsed since it was stored.

    No locking: concurrent reloads may briefly serve different values, which
    is acceptable for read-mostly reference data.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: T | None = None
        self._expires_at = 0.0

    def get(self) -> T | None:
        """Return the cached value, or None if empty or expired."""
        if self._value is None or self._clock() >= self._expires_at:
            return None
        return self._value

    def peek(self) -> T | None:
        """Return the last stored value even if it has expired."""
        return self._value

    def set(self, value: T) -> T:
        self._value = value
        self._expires_at = self._clock() + self.ttl_seconds
        return value

    def invalidate(self) -> None:
        self._value = None
        self._expires_at = 0.0
