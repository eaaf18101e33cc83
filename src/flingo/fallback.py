"""Load results for external sources that may degrade.

A loader returns ``LoadResult.ok(value)`` or ``LoadResult.degraded(reason)``;
callers unwrap with a default instead of handling exceptions, so a broken
source can never fail the request that depends on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class LoadResult(Generic[T]):
    value: T | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, value: T) -> LoadResult[T]:
        return cls(value=value)

    @classmethod
    def degraded(cls, reason: str) -> LoadResult[T]:
        return cls(reason=reason)

    @property
    def is_degraded(self) -> bool:
        return self.reason is not None

    def unwrap_or(self, default: T, *, event: str | None = None, **context: object) -> T:
        """Return the loaded value, or ``default`` when the source degraded.

        When ``event`` is given, a degraded result is logged as a warning under
        that event name with the reason and any extra context.
        """
        if self.reason is None and self.value is not None:
            return self.value
        if event is not None and self.reason is not None:
            logger.warning(event, reason=self.reason, **context)
        return default
