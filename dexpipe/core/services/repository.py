"""Cache-first façade over the PokeAPI client.

Every single-entity fetch checks the `EntityCache` first and falls back
to the network, populating the cache on success. Failures propagate to
the caller unchanged and are also kept as `last_error` for UIs to poll.
Instances are confined to the event loop that owns them.
"""

import asyncio
import logging
import random
from typing import Awaitable, Dict, List, Optional, Sequence, TypeVar

from dexpipe.domain.errors import ErrorRecord, PokeApiError
from dexpipe.domain.models.common import FetchOutcome, RepositoryStats, normalize_name
from dexpipe.domain.models.resources import ListItem, Pokemon, Region
from dexpipe.infrastructure.cache.entity_cache import EntityCache
from dexpipe.infrastructure.http.pokeapi_client import PokeApiClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

# --- Configuration ---
DEFAULT_BATCH_PAUSE_SECONDS = 0.05
DEFAULT_SEARCH_LISTING_LIMIT = 1000
MAX_KNOWN_POKEMON_ID = 1010
POPULAR_IDS = [25, 1, 4, 7, 150, 151, 249, 250, 384, 483, 644, 649]
STARTER_IDS = [
    1, 4, 7, 152, 155, 158, 252, 255, 258, 387, 390, 393, 495, 498,
    501, 650, 653, 656, 722, 725, 728, 810, 813, 816, 906, 909, 912,
]


class PokemonRepository:
    """Cache-first access to Pokemon, listings and regions."""

    def __init__(
        self,
        client: PokeApiClient,
        entity_cache: Optional[EntityCache[Pokemon]] = None,
        batch_pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS,
        search_listing_limit: int = DEFAULT_SEARCH_LISTING_LIMIT,
    ):
        """Initializes the repository with its dependencies.

        Args:
            client: The shared PokeAPI client.
            entity_cache: Store for decoded Pokemon (a fresh one if None).
            batch_pause_seconds: Pause inserted after every `fetch_batch` element.
            search_listing_limit: Size of the listing that searches filter.
        """
        self.client = client
        self.entity_cache: EntityCache[Pokemon] = entity_cache if entity_cache is not None else EntityCache()
        self.batch_pause_seconds = batch_pause_seconds
        self.search_listing_limit = search_listing_limit
        self._region_cache: Dict[str, Region] = {}
        self._search_cache: Dict[str, List[ListItem]] = {}
        self._search_listing: Optional[List[ListItem]] = None
        self._in_flight = 0
        self.last_error: Optional[ErrorRecord] = None

    # --- Observable State ---

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    @property
    def has_error(self) -> bool:
        return self.last_error is not None

    @property
    def error_message(self) -> str:
        return self.last_error.description if self.last_error else "Unknown error"

    @property
    def recovery_suggestion(self) -> str:
        return self.last_error.recovery_suggestion if self.last_error else "Please try again."

    def clear_error(self) -> None:
        self.last_error = None

    async def _tracked(self, operation: Awaitable[T]) -> T:
        """Awaits `operation` while counting it as in flight, recording any API error."""
        self._in_flight += 1
        try:
            return await operation
        except PokeApiError as e:
            self.last_error = ErrorRecord.from_error(e)
            raise
        finally:
            self._in_flight -= 1

    # --- Pokemon ---

    async def fetch_by_id(self, pokemon_id: int) -> Pokemon:
        """Returns the cached Pokemon for `pokemon_id`, fetching it on a miss."""
        cached = self.entity_cache.get_by_id(pokemon_id)
        if cached is not None:
            logger.debug(f"Entity cache hit for id {pokemon_id}")
            return cached
        pokemon = await self._tracked(self.client.fetch_pokemon(pokemon_id))
        self.entity_cache.put(pokemon)
        return pokemon

    async def fetch_by_name(self, name: str) -> Pokemon:
        """Returns the cached Pokemon for `name` (case and space insensitive), fetching on a miss."""
        key = normalize_name(name)
        cached = self.entity_cache.get_by_name(key)
        if cached is not None:
            logger.debug(f"Entity cache hit for name '{key}'")
            return cached
        pokemon = await self._tracked(self.client.fetch_pokemon(key))
        self.entity_cache.put(pokemon)
        return pokemon

    async def fetch_random(self) -> Pokemon:
        return await self.fetch_by_id(random.randint(1, MAX_KNOWN_POKEMON_ID))

    async def _fetch_outcome(self, pokemon_id: int) -> FetchOutcome[Pokemon]:
        try:
            return FetchOutcome.success(str(pokemon_id), await self.fetch_by_id(pokemon_id))
        except PokeApiError as e:
            return FetchOutcome.failure(str(pokemon_id), e)

    async def fetch_batch(self, ids: Sequence[int]) -> List[Pokemon]:
        """Fetches `ids` in order, skipping (and logging) any that fail."""
        results: List[Pokemon] = []
        for pokemon_id in ids:
            outcome = await self._fetch_outcome(pokemon_id)
            if outcome.ok:
                results.append(outcome.value)
            else:
                logger.warning(f"Failed to fetch Pokemon {pokemon_id}: {outcome.error}")
            if self.batch_pause_seconds > 0:
                await asyncio.sleep(self.batch_pause_seconds)
        return results

    async def popular(self) -> List[Pokemon]:
        return await self.fetch_batch(POPULAR_IDS)

    async def starters(self) -> List[Pokemon]:
        return await self.fetch_batch(STARTER_IDS)

    def recent(self) -> List[Pokemon]:
        return self.entity_cache.get_recent()

    # --- Listings & Search ---

    async def fetch_list(self, limit: int = 20, offset: int = 0) -> List[ListItem]:
        response = await self._tracked(self.client.fetch_pokemon_list(limit, offset))
        return list(response.results)

    async def search(self, query: str) -> List[ListItem]:
        """Filters one shared listing by case-insensitive substring match.

        Results are cached per lowercased query. A blank query returns an
        empty list without touching the network.
        """
        search_key = query.strip().lower()
        if not search_key:
            return []
        cached = self._search_cache.get(search_key)
        if cached is not None:
            return list(cached)

        if self._search_listing is None:
            response = await self._tracked(
                self.client.fetch_pokemon_list(limit=self.search_listing_limit, offset=0)
            )
            self._search_listing = list(response.results)

        hyphenated = search_key.replace(" ", "-")
        filtered = [
            item for item in self._search_listing
            if search_key in item.name.lower() or hyphenated in item.name.lower()
        ]
        self._search_cache[search_key] = filtered
        return list(filtered)

    async def fetch_by_type(self, type_name: str) -> List[ListItem]:
        response = await self._tracked(self.client.fetch_type(type_name))
        return [ListItem(name=entry.pokemon.name, url=entry.pokemon.url) for entry in response.pokemon]

    # --- Regions ---

    async def fetch_all_regions(self) -> List[ListItem]:
        response = await self._tracked(self.client.fetch_all_regions())
        return list(response.results)

    async def fetch_region(self, name: str) -> Region:
        key = name.strip().lower()
        cached = self._region_cache.get(key)
        if cached is not None:
            return cached
        region = await self._tracked(self.client.fetch_region(key))
        self._region_cache[key] = region
        return region

    # --- Cache Management ---

    async def clear_cache(self) -> None:
        """Clears entity, region and search caches plus the HTTP response cache."""
        self.entity_cache.clear()
        self._region_cache.clear()
        self._search_cache.clear()
        self._search_listing = None
        await self.client.clear_cache()
        logger.info("Repository caches cleared.")

    def stats(self) -> RepositoryStats:
        return RepositoryStats(
            cached_count=len(self.entity_cache),
            recent_count=self.entity_cache.recent_count,
            search_cache_count=len(self._search_cache),
            region_count=len(self._region_cache),
            approximate_disk_usage=self.client.cache_disk_usage(),
        )
