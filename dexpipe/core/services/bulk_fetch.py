"""Bulk import orchestration.

`BulkFetchOrchestrator` drives a one-time import of a whole PokeAPI
resource: it requests the listing once, fetches every item's detail
sequentially through the shared client, and publishes the results sorted
by id. Per-item failures are collected and skipped. Only a failed listing
call is fatal for a run, in which case built-in sample data is published
instead.

State machine: IDLE -> LISTING -> FETCHING_ITEMS -> DONE | FAILED.
A run is a no-op once the orchestrator has left IDLE; call `clear()` to
allow another one.
"""

import asyncio
import logging
from typing import Callable, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from dexpipe.domain.errors import DecodingFailedError, ErrorRecord, PokeApiError
from dexpipe.domain.interfaces.storage import EntitySink
from dexpipe.domain.models.common import BulkFetchState, FetchOutcome, FetchProgress
from dexpipe.domain.models.moves import LearnMethod, Move, RelationInfo
from dexpipe.domain.models.resources import (
    ListItem,
    MoveDetailResponse,
    NamedResource,
    Pokemon,
    VersionGroupDetail,
)
from dexpipe.infrastructure.fallback.sample_data import SAMPLE_MOVES, SAMPLE_POKEMON
from dexpipe.infrastructure.http.pokeapi_client import PokeApiClient

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=BaseModel)  # wire model of one item's detail
E = TypeVar("E")  # published entity, exposing `id` and `name`

ProgressListener = Callable[[FetchProgress], None]

DEFAULT_PAUSE_EVERY = 10
DEFAULT_PAUSE_SECONDS = 0.05


class BulkFetchOrchestrator(Generic[D, E]):
    """Imports every item of one PokeAPI resource, at most once per lifetime."""

    def __init__(
        self,
        client: PokeApiClient,
        resource: str,
        detail_model: Type[D],
        converter: Callable[[D], E],
        fallback: Sequence[E],
        listing_limit: int,
        item_cap: Optional[int] = None,
        pause_every: int = DEFAULT_PAUSE_EVERY,
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        sink: Optional[EntitySink] = None,
    ):
        """Initializes the orchestrator.

        Args:
            client: The shared PokeAPI client.
            resource: Listing resource name, e.g. "move".
            detail_model: Wire model each item's URL decodes into.
            converter: Turns a decoded detail into the published entity.
            fallback: Static entities published when the listing fails.
            listing_limit: `limit` sent with the single listing request.
            item_cap: Maximum number of listed items to fetch (None for all).
            pause_every: Insert a pause after every Nth item (0 disables).
            pause_seconds: Length of that pause.
            sink: Optional storage collaborator receiving each new entity.
        """
        self.client = client
        self.resource = resource
        self.detail_model = detail_model
        self.converter = converter
        self.fallback = list(fallback)
        self.listing_limit = listing_limit
        self.item_cap = item_cap
        self.pause_every = pause_every
        self.pause_seconds = pause_seconds
        self.sink = sink

        self.state = BulkFetchState.IDLE
        self.progress = FetchProgress()
        self.results: List[E] = []
        self.failures: List[FetchOutcome[E]] = []
        self.last_error: Optional[ErrorRecord] = None
        self.was_cancelled = False
        self._cancel_requested = False
        self._by_id: Dict[int, E] = {}
        self._by_name: Dict[str, E] = {}
        self._listeners: List[ProgressListener] = []

    # --- Observable State ---

    @property
    def is_loading(self) -> bool:
        return self.state in (BulkFetchState.LISTING, BulkFetchState.FETCHING_ITEMS)

    def add_progress_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def remove_progress_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_progress(self, progress: FetchProgress) -> None:
        self.progress = progress
        for listener in list(self._listeners):
            try:
                listener(progress)
            except Exception as e:
                logger.error(f"Progress listener for {self.resource} bulk fetch failed: {e}", exc_info=True)

    def cached(self, entity_id: int) -> Optional[E]:
        return self._by_id.get(entity_id)

    # --- Control ---

    def cancel(self) -> None:
        """Asks a running import to stop before its next item."""
        if self.is_loading:
            logger.info(f"Cancellation requested for {self.resource} bulk fetch.")
            self._cancel_requested = True

    def clear(self) -> None:
        """Returns to IDLE, forgetting results, dedup caches and progress."""
        if self.is_loading:
            raise RuntimeError(f"Cannot clear the {self.resource} bulk fetch while it is running")
        self.state = BulkFetchState.IDLE
        self.results = []
        self.failures = []
        self.last_error = None
        self.was_cancelled = False
        self._cancel_requested = False
        self._by_id.clear()
        self._by_name.clear()
        self._set_progress(FetchProgress())

    # --- Run ---

    async def run_bulk_fetch(self) -> List[E]:
        """Runs the import once and returns the published results.

        Returns immediately with the current results if a run is in
        progress or has already finished.
        """
        if self.state is not BulkFetchState.IDLE or self.results:
            logger.debug(f"Bulk fetch of {self.resource} skipped (state={self.state.value}).")
            return list(self.results)

        self._cancel_requested = False
        self.was_cancelled = False
        self.failures = []
        self.state = BulkFetchState.LISTING
        self._set_progress(FetchProgress(message=f"Fetching {self.resource} list..."))

        try:
            listing = await self.client.fetch_resource_list(self.resource, limit=self.listing_limit, offset=0)
        except PokeApiError as e:
            self._fail_with_fallback(e)
            return list(self.results)
        except asyncio.CancelledError:
            self.was_cancelled = True
            self._publish({}, total=0)
            raise

        items: List[ListItem] = list(listing.results)
        if self.item_cap is not None:
            items = items[:self.item_cap]
        total = len(items)
        self.state = BulkFetchState.FETCHING_ITEMS
        logger.info(f"Fetching {total} {self.resource} entries.")

        fetched: Dict[int, E] = {}
        try:
            for index, item in enumerate(items):
                if self._cancel_requested:
                    self.was_cancelled = True
                    break
                outcome = await self._resolve(item)
                if outcome.ok:
                    fetched[getattr(outcome.value, "id")] = outcome.value
                else:
                    self.failures.append(outcome)
                    logger.warning(f"Skipping {self.resource} '{item.name}': {outcome.error}")

                completed = index + 1
                self._set_progress(FetchProgress(
                    fraction=completed / total,
                    message=f"Loading {self.resource} {completed} of {total}: {item.name}",
                    completed=completed,
                    total=total,
                ))
                if self.pause_every > 0 and self.pause_seconds > 0 and completed % self.pause_every == 0:
                    await asyncio.sleep(self.pause_seconds)
        except asyncio.CancelledError:
            self.was_cancelled = True
            self._publish(fetched, total)
            raise

        self._publish(fetched, total)
        return list(self.results)

    def _publish(self, fetched: Dict[int, E], total: int) -> None:
        self.results = sorted(fetched.values(), key=lambda entity: getattr(entity, "id"))
        self.state = BulkFetchState.DONE
        if self.was_cancelled:
            logger.info(f"Bulk fetch of {self.resource} cancelled with {len(self.results)} of {total} loaded.")
            self._set_progress(FetchProgress(
                fraction=self.progress.fraction,
                message=f"Cancelled. Loaded {len(self.results)} of {total} {self.resource} entries",
                completed=self.progress.completed,
                total=total,
            ))
        else:
            logger.info(f"Bulk fetch of {self.resource} complete: {len(self.results)} loaded, {len(self.failures)} failed.")
            self._set_progress(FetchProgress(
                fraction=1.0,
                message=f"Complete! Loaded {len(self.results)} {self.resource} entries",
                completed=total,
                total=total,
            ))

    def _fail_with_fallback(self, error: PokeApiError) -> None:
        logger.error(f"Listing {self.resource} failed, using sample data: {error.description}")
        self.last_error = ErrorRecord.from_error(error)
        self.results = sorted(self.fallback, key=lambda entity: getattr(entity, "id"))
        self.state = BulkFetchState.FAILED
        self._set_progress(FetchProgress(
            message=f"Error loading {self.resource} list. Showing {len(self.results)} sample entries",
        ))

    # --- Per-Item Resolution ---

    async def _resolve(self, reference: NamedResource) -> FetchOutcome[E]:
        """Looks `reference` up in the dedup caches, fetching it on a miss."""
        cached = self._by_name.get(reference.name)
        if cached is None:
            cached = self._by_id.get(reference.resource_id)
        if cached is not None:
            return FetchOutcome.success(reference.name, cached)

        try:
            detail = await self.client.request(reference.url, self.detail_model)
            entity = self.converter(detail)
        except PokeApiError as e:
            return FetchOutcome.failure(reference.name, e)
        except ValidationError as e:
            return FetchOutcome.failure(reference.name, DecodingFailedError(e))

        self._by_id[getattr(entity, "id")] = entity
        self._by_name[getattr(entity, "name")] = entity
        if self.sink is not None:
            try:
                await self.sink.persist(entity)
            except Exception as e:
                logger.warning(f"Storage sink rejected {self.resource} '{reference.name}': {e}")
        return FetchOutcome.success(reference.name, entity)


# --- Specialisations ---

def choose_learn_detail(details: Sequence[VersionGroupDetail]) -> Optional[VersionGroupDetail]:
    """Prefers the first level-up detail with a positive level, else the first detail."""
    for detail in details:
        if LearnMethod.from_api(detail.move_learn_method.name) is LearnMethod.LEVEL_UP and detail.level_learned_at > 0:
            return detail
    return details[0] if details else None


class MoveCatalogFetcher(BulkFetchOrchestrator[MoveDetailResponse, Move]):
    """Bulk move catalog plus per-Pokemon move relations."""

    def __init__(
        self,
        client: PokeApiClient,
        listing_limit: int = 1000,
        item_cap: Optional[int] = 300,
        pause_every: int = DEFAULT_PAUSE_EVERY,
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        related_cap: int = 50,
        related_pause_every: int = 5,
        related_pause_seconds: float = 0.01,
        sink: Optional[EntitySink] = None,
        fallback: Sequence[Move] = SAMPLE_MOVES,
    ):
        super().__init__(
            client,
            resource="move",
            detail_model=MoveDetailResponse,
            converter=Move.from_api,
            fallback=fallback,
            listing_limit=listing_limit,
            item_cap=item_cap,
            pause_every=pause_every,
            pause_seconds=pause_seconds,
            sink=sink,
        )
        self.related_cap = related_cap
        self.related_pause_every = related_pause_every
        self.related_pause_seconds = related_pause_seconds

    async def fetch_related_for_entity(self, pokemon_id: int) -> List[RelationInfo]:
        """Returns the moves a Pokemon learns, one learn method per move.

        Moves resolve through the catalog's dedup caches before touching
        the network. Output is ordered by learn-method priority, then
        level, then move name.

        Raises:
            PokeApiError: If the Pokemon itself cannot be fetched.
        """
        response = await self.client.fetch_pokemon_moves(pokemon_id)

        relations: List[RelationInfo] = []
        seen = set()
        for entry in response.moves[:self.related_cap]:
            if entry.move.name in seen:
                continue
            seen.add(entry.move.name)

            outcome = await self._resolve(entry.move)
            if not outcome.ok:
                logger.warning(f"Skipping move '{entry.move.name}' for Pokemon {pokemon_id}: {outcome.error}")
                continue
            detail = choose_learn_detail(entry.version_group_details)
            if detail is None:
                continue
            relations.append(RelationInfo(
                move=outcome.value,
                learn_method=LearnMethod.from_api(detail.move_learn_method.name),
                level_learned_at=detail.level_learned_at if detail.level_learned_at > 0 else None,
            ))

            if (self.related_pause_every > 0 and self.related_pause_seconds > 0
                    and len(relations) % self.related_pause_every == 0):
                await asyncio.sleep(self.related_pause_seconds)

        return sorted(relations, key=lambda relation: relation.sort_key)


def _identity(pokemon: Pokemon) -> Pokemon:
    return pokemon


class PokemonRosterFetcher(BulkFetchOrchestrator[Pokemon, Pokemon]):
    """Bulk import of every Pokemon."""

    def __init__(
        self,
        client: PokeApiClient,
        listing_limit: int = 1025,
        item_cap: Optional[int] = None,
        pause_every: int = DEFAULT_PAUSE_EVERY,
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        sink: Optional[EntitySink] = None,
        fallback: Sequence[Pokemon] = SAMPLE_POKEMON,
    ):
        super().__init__(
            client,
            resource="pokemon",
            detail_model=Pokemon,
            converter=_identity,
            fallback=fallback,
            listing_limit=listing_limit,
            item_cap=item_cap,
            pause_every=pause_every,
            pause_seconds=pause_seconds,
            sink=sink,
        )
