"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like ids, names, endpoints and cache
keys, plus the small structured records shared by the repository, the
bulk orchestrators and the CLI.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, NewType, Optional, TypeVar

# === Core Value Objects ===

EntityId = NewType("EntityId", int)        # Positive PokeAPI resource id
EntityName = NewType("EntityName", str)    # Canonical lowercase-hyphenated name
Endpoint = NewType("Endpoint", str)        # Relative path or absolute URL

# === Caching Context ===
CacheKey = NewType("CacheKey", str)        # Unique key for a cache entry


def normalize_name(name: str) -> EntityName:
    """Normalizes a user-supplied name to PokeAPI's canonical form.

    "Mr Mime" -> "mr-mime", " BULBASAUR " -> "bulbasaur".
    """
    return EntityName(name.strip().lower().replace(" ", "-"))


def extract_id_from_url(url: str) -> int:
    """Extracts the numeric id from a resource URL.

    URL format: https://pokeapi.co/api/v2/move/1/ (trailing slash optional).
    Returns 0 when the last path segment is not a number.
    """
    segments = [part for part in url.strip().split("/") if part]
    if not segments:
        return 0
    try:
        return int(segments[-1])
    except ValueError:
        return 0


# --- Bulk Fetch Context ---

class BulkFetchState(str, Enum):
    """Lifecycle of a single bulk fetch run."""
    IDLE = "idle"
    LISTING = "listing"
    FETCHING_ITEMS = "fetching_items"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchProgress:
    """Snapshot of bulk fetch progress.

    `fraction` is None while the run is indeterminate (idle or listing).
    """
    fraction: Optional[float] = None
    message: str = ""
    completed: int = 0
    total: int = 0

    @property
    def is_indeterminate(self) -> bool:
        return self.fraction is None


T = TypeVar("T")


@dataclass(frozen=True)
class FetchOutcome(Generic[T]):
    """Result of one inner fetch: either a value or the error that stopped it."""
    key: str
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @classmethod
    def success(cls, key: str, value: T) -> "FetchOutcome[T]":
        return cls(key=key, value=value)

    @classmethod
    def failure(cls, key: str, error: Exception) -> "FetchOutcome[T]":
        return cls(key=key, error=error)


# --- Repository Context ---

@dataclass(frozen=True)
class RepositoryStats:
    """Read-only snapshot of the repository's caches."""
    cached_count: int
    recent_count: int
    search_cache_count: int
    region_count: int = 0
    approximate_disk_usage: int = 0
    taken_at: datetime = field(default_factory=datetime.now)

    @property
    def formatted_disk_usage(self) -> str:
        size = float(self.approximate_disk_usage)
        for unit in ("bytes", "KB", "MB", "GB"):
            if size < 1024 or unit == "GB":
                return f"{int(size)} {unit}" if unit == "bytes" else f"{size:.1f} {unit}"
            size /= 1024
        return f"{size:.1f} GB"
