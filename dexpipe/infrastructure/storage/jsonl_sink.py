"""JSON-lines implementation of the `EntitySink` port.

Appends one JSON document per persisted entity, using `aiofiles` so that
exports never block the event loop. Useful for exporting a bulk run to a
file that downstream storage can ingest.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Union

import aiofiles
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class JsonLinesSink:
    """Appends decoded entities to a `.jsonl` file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.written = 0
        self._lock = asyncio.Lock()

    async def persist(self, entity: Any) -> None:
        if isinstance(entity, BaseModel):
            line = entity.model_dump_json(by_alias=True)
        else:
            raise TypeError(f"Cannot persist object of type {type(entity).__name__}")
        async with self._lock:
            async with aiofiles.open(self.path, mode='a', encoding='utf-8') as f:
                await f.write(line + "\n")
            self.written += 1
        logger.debug(f"Persisted {type(entity).__name__} to {self.path}")
