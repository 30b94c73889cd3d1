"""Contract for the storage collaborator.

The pipeline hands every decoded entity to a sink and makes no assumption
about how (or whether) it is persisted or indexed.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EntitySink(Protocol):
    """Accepts fully decoded entities emitted by the pipeline."""

    async def persist(self, entity: Any) -> None:
        """Persists one decoded entity."""
        ...
