"""Interface for the HTTP response cache.

Defines the contract for storing and retrieving raw response bodies keyed
by request URL, across an in-memory level (L1) and a disk level (L2),
each with its own byte budget.
"""

import abc
from typing import Optional

from ..models.common import CacheKey


class ResponseCache(abc.ABC):
    """Abstract Base Class for response caching operations."""

    @abc.abstractmethod
    async def get(self, key: CacheKey, level: str = 'all') -> Optional[bytes]:
        """Retrieves a cached body asynchronously.

        Searches specified levels (or all) in order (L1, L2).

        Args:
            key: The cache key (request URL) to retrieve.
            level: The cache level(s) to check ('l1', 'l2', 'all').

        Returns:
            The cached body if found and not expired, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def set(
        self,
        key: CacheKey,
        value: bytes,
        ttl: Optional[int] = None,
        level: str = 'all'
    ) -> None:
        """Stores a body in the specified cache level(s) asynchronously.

        Args:
            key: The cache key to store the body under.
            value: The raw response body.
            ttl: Time-to-live in seconds (uses level default if None).
            level: The cache level(s) to store in ('l1', 'l2', 'all').
        """
        pass

    @abc.abstractmethod
    async def delete(self, key: CacheKey, level: str = 'all') -> None:
        """Deletes a body from the specified cache level(s) asynchronously."""
        pass

    @abc.abstractmethod
    async def clear(self, level: str = 'all') -> None:
        """Clears all bodies from the specified cache level(s) asynchronously."""
        pass

    @abc.abstractmethod
    def disk_usage(self) -> int:
        """Returns the approximate number of bytes held by the disk level."""
        pass
