"""Custom exceptions for the leakybucket package."""

from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from leakybucket.bucket.models import BucketState


class LeakyBucketException(Exception):
    """Base class for all leakybucket exceptions."""

    def __init__(self, message: str = "Leaky bucket error"):
        self.message = message
        super().__init__(message)


class BucketFullError(LeakyBucketException):
    """Raised when an add would take a bucket past its capacity.

    This is an expected outcome rather than a fault. The store is left
    untouched and the best known state is attached for the caller.
    """

    def __init__(self, state: "BucketState", detail: str | None = None):
        self.state = state
        message = detail or (
            f"Bucket is full. "
            f"Remaining: {state.remaining} of {state.capacity}. "
            f"Resets at {state.reset.isoformat()}."
        )
        super().__init__(message)

    @property
    def remaining(self) -> int:
        return self.state.remaining

    @property
    def reset(self) -> datetime:
        return self.state.reset


class StoreError(LeakyBucketException):
    """Raised when the backing store fails or returns an unexpected reply.

    Attributes:
        command: Store command that failed (e.g. "INCRBY"), if known
        key: Key the command was issued against, if known
    """

    def __init__(
        self,
        message: str = "Store operation failed",
        command: str | None = None,
        key: str | None = None,
    ):
        self.command = command
        self.key = key
        super().__init__(message)


class StoreTimeoutError(StoreError):
    """Raised when a store call exceeds its deadline."""
