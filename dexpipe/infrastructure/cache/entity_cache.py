"""In-memory id/name store for decoded entities.

Holds every entity seen during the process lifetime, indexed by id and by
normalized name, plus a bounded most-recent-first list unique by id.
Confined to the event loop that owns it; every operation completes
without awaiting.
"""

import logging
from typing import Dict, Generic, List, Optional, TypeVar

from dexpipe.domain.models.common import normalize_name

logger = logging.getLogger(__name__)

DEFAULT_RECENT_CAPACITY = 10

E = TypeVar("E")  # any object exposing `id: int` and `name: str`


class EntityCache(Generic[E]):
    """Id and name keyed entity maps with a bounded recent list."""

    def __init__(self, recent_capacity: int = DEFAULT_RECENT_CAPACITY):
        self.recent_capacity = max(0, recent_capacity)
        self._by_id: Dict[int, E] = {}
        self._by_name: Dict[str, E] = {}
        self._recent: List[E] = []

    def get_by_id(self, entity_id: int) -> Optional[E]:
        return self._by_id.get(entity_id)

    def get_by_name(self, name: str) -> Optional[E]:
        return self._by_name.get(normalize_name(name))

    def put(self, entity: E) -> None:
        """Stores `entity` under its id and name and marks it most recent."""
        entity_id = getattr(entity, "id")
        previous = self._by_id.get(entity_id)
        if previous is not None:
            old_key = normalize_name(getattr(previous, "name"))
            if self._by_name.get(old_key) is previous:
                del self._by_name[old_key]
        self._by_id[entity_id] = entity
        self._by_name[normalize_name(getattr(entity, "name"))] = entity

        self._recent = [e for e in self._recent if getattr(e, "id") != entity_id]
        self._recent.insert(0, entity)
        del self._recent[self.recent_capacity:]

    def get_recent(self) -> List[E]:
        """Returns the recent list, most recent first."""
        return list(self._recent)

    def clear(self) -> None:
        self._by_id.clear()
        self._by_name.clear()
        self._recent.clear()
        logger.debug("Entity cache cleared.")

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._by_id

    @property
    def recent_count(self) -> int:
        return len(self._recent)

    def values(self) -> List[E]:
        return list(self._by_id.values())
