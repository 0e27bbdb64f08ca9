"""Data models for bucket state."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


@dataclass(frozen=True)
class BucketState:
    """Snapshot of a bucket as of its last create or add.

    Attributes:
        capacity: Maximum units admissible within one window
        remaining: Units still available, always within [0, capacity]
        reset: When the current window is expected to end (UTC)
    """
    capacity: int
    remaining: int
    reset: datetime

    @property
    def used(self) -> int:
        """Units consumed in the current window, as seen by this snapshot."""
        return self.capacity - self.remaining

    def retry_after(self, now: datetime | None = None) -> timedelta:
        """Time left until the window resets, never negative."""
        now = now or datetime.now(timezone.utc)
        return max(timedelta(0), self.reset - now)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "capacity": self.capacity,
            "remaining": self.remaining,
            "reset": self.reset.isoformat(),
        }
