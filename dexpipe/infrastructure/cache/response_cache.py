"""Concrete implementation of the two-level HTTP response cache.

L1 is an in-memory LRU bounded by a byte budget, with a per-entry TTL.
L2 is a `diskcache.Cache` bounded by its own `size_limit`. Bodies are
keyed by the fully resolved request URL. Only successfully decoded bodies
are ever stored here; the HTTP client enforces that.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import diskcache

from dexpipe.domain.interfaces.cache import ResponseCache
from dexpipe.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_BUDGET_BYTES = 50 * 1024 * 1024
DEFAULT_DISK_BUDGET_BYTES = 50 * 1024 * 1024
DEFAULT_L1_TTL_SECONDS = 15 * 60  # 15 minutes
DEFAULT_L2_TTL_SECONDS = 24 * 60 * 60  # 24 hours
DEFAULT_L2_CACHE_DIR = Path.home() / ".dexpipe" / "http_cache"


@dataclass
class CacheEntry:
    """Internal representation of an L1 entry with expiry."""
    value: bytes
    expiry_time: float  # Unix timestamp when the entry expires


class TieredResponseCache(ResponseCache):
    """Multi-level response cache (L1 memory, L2 diskcache)."""

    def __init__(
        self,
        memory_budget: int = DEFAULT_MEMORY_BUDGET_BYTES,
        disk_budget: int = DEFAULT_DISK_BUDGET_BYTES,
        l1_ttl: int = DEFAULT_L1_TTL_SECONDS,
        l2_ttl: int = DEFAULT_L2_TTL_SECONDS,
        l2_dir: Union[str, Path] = DEFAULT_L2_CACHE_DIR,
    ):
        """Initializes the response cache.

        Args:
            memory_budget: Maximum total bytes held in L1.
            disk_budget: `size_limit` handed to diskcache for L2.
            l1_ttl: Default L1 time-to-live in seconds.
            l2_ttl: Default L2 time-to-live in seconds.
            l2_dir: Directory backing the disk cache.
        """
        # L1 Cache (In-Memory)
        self.l1_cache: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self.memory_budget = memory_budget
        self.l1_ttl = l1_ttl
        self._l1_bytes = 0

        # L2 Cache (diskcache)
        self.l2_dir = Path(l2_dir)
        self.l2_ttl = l2_ttl
        self.l2_dir.mkdir(parents=True, exist_ok=True)
        self.l2_cache = diskcache.Cache(str(self.l2_dir), size_limit=disk_budget)

        logger.info(
            f"ResponseCache initialized. L1(ttl={l1_ttl}s, budget={memory_budget}B), "
            f"L2(dir={self.l2_dir}, ttl={l2_ttl}s, budget={disk_budget}B)"
        )

    # --- L1 Helpers ---

    def _l1_remove(self, key: CacheKey) -> None:
        entry = self.l1_cache.pop(key, None)
        if entry is not None:
            self._l1_bytes -= len(entry.value)

    def _prune_l1(self) -> None:
        """Removes expired items from L1 and evicts least recently used over budget."""
        now = time.time()
        for key in [k for k, v in self.l1_cache.items() if now > v.expiry_time]:
            self._l1_remove(key)
        while self.l1_cache and self._l1_bytes > self.memory_budget:
            oldest_key = next(iter(self.l1_cache))
            self._l1_remove(oldest_key)

    # --- ResponseCache Interface Implementation ---

    async def get(self, key: CacheKey, level: str = 'all') -> Optional[bytes]:
        """Retrieves a body from the specified cache level(s)."""
        now = time.time()

        if level in ['l1', 'all']:
            l1_entry = self.l1_cache.get(key)
            if l1_entry is not None:
                if now <= l1_entry.expiry_time:
                    self.l1_cache.move_to_end(key)
                    logger.debug(f"L1 cache hit for key: {key}")
                    return l1_entry.value
                self._l1_remove(key)

        if level in ['l2', 'all']:
            value = self.l2_cache.get(key)
            if value is not None:
                logger.debug(f"L2 cache hit for key: {key}")
                if level == 'all':
                    await self.set(key, value, level='l1')
                return value

        logger.debug(f"Cache miss for key: {key} across checked levels: {level}")
        return None

    async def set(
        self, key: CacheKey, value: bytes, ttl: Optional[int] = None, level: str = 'all'
    ) -> None:
        """Stores a body in the specified cache level(s)."""
        if level in ['l1', 'all']:
            if len(value) <= self.memory_budget:
                self._l1_remove(key)
                expiry = time.time() + (ttl if ttl is not None else self.l1_ttl)
                self.l1_cache[key] = CacheEntry(value=value, expiry_time=expiry)
                self._l1_bytes += len(value)
                self._prune_l1()
                logger.debug(f"Stored item in L1 cache: key={key}")
            else:
                logger.debug(f"Body for {key} exceeds the L1 budget; skipping L1.")

        if level in ['l2', 'all']:
            expire = ttl if ttl is not None else self.l2_ttl
            self.l2_cache.set(key, value, expire=expire)
            logger.debug(f"Stored item in L2 cache: key={key}")

    async def delete(self, key: CacheKey, level: str = 'all') -> None:
        """Deletes a body from the specified cache level(s)."""
        if level in ['l1', 'all']:
            self._l1_remove(key)
        if level in ['l2', 'all']:
            self.l2_cache.delete(key)
        logger.debug(f"Deleted item from cache: key={key}, level={level}")

    async def clear(self, level: str = 'all') -> None:
        """Clears all bodies from the specified cache level(s)."""
        if level in ['l1', 'all']:
            self.l1_cache.clear()
            self._l1_bytes = 0
            logger.info("Cleared L1 (in-memory) response cache.")
        if level in ['l2', 'all']:
            self.l2_cache.clear()
            logger.info(f"Cleared L2 (disk) response cache at: {self.l2_dir}")

    def disk_usage(self) -> int:
        """Bytes held by L2. An empty cache reports 0 even though SQLite keeps its pages."""
        if len(self.l2_cache) == 0:
            return 0
        return int(self.l2_cache.volume())

    @property
    def memory_usage(self) -> int:
        return self._l1_bytes

    def close(self) -> None:
        """Closes the underlying disk cache handle."""
        self.l2_cache.close()
