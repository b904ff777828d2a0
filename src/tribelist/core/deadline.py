"""Caller-supplied deadlines.

Operations accept an optional Deadline and check it before their first
write. An expired deadline raises OperationTimeoutError and leaves storage
untouched; once an operation has started writing it runs to completion.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from tribelist.core.errors import OperationTimeoutError


class Deadline:
    """A point in time, on a monotonic clock, after which work must stop."""

    def __init__(
        self,
        expires_at: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._expires_at = expires_at
        self._clock = clock

    @classmethod
    def after(
        cls,
        seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> Deadline:
        """Create a deadline ``seconds`` from now."""
        return cls(clock() + seconds, clock=clock)

    def remaining(self) -> float:
        """Seconds left before expiry (never negative)."""
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def check(self, operation: str) -> None:
        """Raise OperationTimeoutError if the deadline has passed.

        Args:
            operation: Name of the operation, used in the error message.
        """
        if self.expired:
            raise OperationTimeoutError(f"Deadline exceeded during {operation}")


def check_deadline(deadline: Deadline | None, operation: str) -> None:
    """Check an optional deadline."""
    if deadline is not None:
        deadline.check(operation)
