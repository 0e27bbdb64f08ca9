"""Store command contract used by buckets.

A bucket never talks to Redis directly; it goes through a StoreClient so
that replies arrive already typed and every failure surfaces as a
StoreError.
"""

from abc import ABC, abstractmethod
from datetime import timedelta


class StoreClient(ABC):
    """Abstract base class for counter stores.

    All store implementations must inherit from this class and implement
    the abstract methods. Implementations raise StoreError (or a subclass)
    for any failure; "key not found" is never an error.
    """

    @abstractmethod
    async def get_counter(self, key: str) -> int | None:
        """Read the integer counter stored at key.

        Returns:
            The counter value, or None if the key does not exist.
        """
        pass

    @abstractmethod
    async def increment_by(self, key: str, amount: int) -> int:
        """Atomically add amount to the counter, creating it at zero.

        Returns:
            The counter value after the increment.
        """
        pass

    @abstractmethod
    async def set_expiry(self, key: str, duration: timedelta) -> bool:
        """Set the remaining lifetime of key.

        Returns:
            True if the expiry was set, False if the key does not exist.
        """
        pass

    @abstractmethod
    async def get_ttl(self, key: str) -> timedelta | None:
        """Get the remaining lifetime of key.

        Returns:
            The remaining lifetime, or None if the key does not exist or
            has no expiry.
        """
        pass

    @abstractmethod
    async def consume_if_room(
        self, key: str, amount: int, capacity: int, expiry: timedelta
    ) -> tuple[bool, int]:
        """Increment the counter only if amount still fits under capacity.

        Runs as a single atomic step at the store. When the increment
        creates the counter, its expiry is set to the given duration.

        Returns:
            (admitted, count) where count is the post-increment total when
            admitted, or the unchanged current count when refused.
        """
        pass

    async def close(self) -> None:
        """Release any connections held by the store."""
        pass
