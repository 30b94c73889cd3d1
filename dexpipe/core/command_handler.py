"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates the
work to the repository and the bulk fetchers. Typed API errors are shown
to the user with their recovery suggestion; each handler returns whether
the command succeeded.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from dexpipe.core.services.bulk_fetch import BulkFetchOrchestrator, MoveCatalogFetcher, PokemonRosterFetcher
from dexpipe.core.services.repository import PokemonRepository
from dexpipe.domain.errors import PokeApiError
from dexpipe.domain.interfaces.user_interface import UserInterface
from dexpipe.domain.models.common import BulkFetchState
from dexpipe.infrastructure.storage.jsonl_sink import JsonLinesSink

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        repository: PokemonRepository,
        move_fetcher: MoveCatalogFetcher,
        roster_fetcher: PokemonRosterFetcher,
        ui: UserInterface,
    ):
        """Initializes the CommandHandler with required services."""
        self.repository = repository
        self.move_fetcher = move_fetcher
        self.roster_fetcher = roster_fetcher
        self.ui = ui

    def _report(self, error: PokeApiError) -> bool:
        logger.error(f"Command failed: {error.description}")
        self.ui.display_error(error.description, recovery_suggestion=error.recovery_suggestion)
        return False

    async def handle_pokemon(self, id_or_name: str) -> bool:
        """Handles the 'pokemon' command (numeric id or name)."""
        logger.info(f"Handling 'pokemon' command for: {id_or_name}")
        try:
            if id_or_name.strip().isdigit():
                pokemon = await self.repository.fetch_by_id(int(id_or_name))
            else:
                pokemon = await self.repository.fetch_by_name(id_or_name)
        except PokeApiError as e:
            return self._report(e)
        self.ui.display_pokemon(pokemon)
        return True

    async def handle_search(self, query: str) -> bool:
        logger.info(f"Handling 'search' command with query: {query}")
        try:
            items = await self.repository.search(query)
        except PokeApiError as e:
            return self._report(e)
        self.ui.display_list_items(items, title=f"Pokemon matching '{query}'")
        return True

    async def handle_batch(self, ids: Sequence[int]) -> bool:
        """Handles the 'batch' command. Individual failures are reported, not fatal."""
        logger.info(f"Handling 'batch' command for {len(ids)} ids")
        results = await self.repository.fetch_batch(ids)
        for pokemon in results:
            self.ui.display_pokemon(pokemon)
        missing = len(ids) - len(results)
        if missing:
            self.ui.display_warning(f"{missing} of {len(ids)} Pokemon could not be fetched.")
        else:
            self.ui.display_info(f"Fetched {len(results)} Pokemon.")
        return True

    async def _run_bulk(self, fetcher: BulkFetchOrchestrator, label: str, export: Optional[Path]) -> bool:
        if export is not None:
            fetcher.sink = JsonLinesSink(export)
        with self.ui.progress_reporter(f"Loading {label}") as report:
            fetcher.add_progress_listener(report)
            try:
                results = await fetcher.run_bulk_fetch()
            finally:
                fetcher.remove_progress_listener(report)

        if fetcher.state is BulkFetchState.FAILED and fetcher.last_error is not None:
            self.ui.display_warning(
                f"Could not load the {label} list ({fetcher.last_error.description}). "
                f"Showing {len(results)} sample entries instead."
            )
        elif fetcher.failures:
            self.ui.display_warning(f"{len(fetcher.failures)} {label} entries could not be fetched and were skipped.")
        if export is not None:
            self.ui.display_info(f"Exported {fetcher.sink.written} {label} entries to {export}")
        return True

    async def handle_moves(self, export: Optional[Path] = None, limit: Optional[int] = None) -> bool:
        """Handles the 'moves' command: bulk move catalog."""
        logger.info("Handling 'moves' command")
        await self._run_bulk(self.move_fetcher, "moves", export)
        moves = self.move_fetcher.results
        self.ui.display_moves(moves[:limit] if limit else moves, title="Move catalog")
        return True

    async def handle_roster(self, export: Optional[Path] = None) -> bool:
        """Handles the 'roster' command: bulk Pokemon import."""
        logger.info("Handling 'roster' command")
        await self._run_bulk(self.roster_fetcher, "Pokemon", export)
        self.ui.display_info(f"Roster holds {len(self.roster_fetcher.results)} Pokemon.")
        return True

    async def handle_related(self, pokemon_id: int) -> bool:
        logger.info(f"Handling 'related' command for Pokemon {pokemon_id}")
        try:
            relations = await self.move_fetcher.fetch_related_for_entity(pokemon_id)
        except PokeApiError as e:
            return self._report(e)
        self.ui.display_relations(pokemon_id, relations)
        return True

    async def handle_regions(self, name: Optional[str] = None) -> bool:
        logger.info(f"Handling 'regions' command (region={name or 'all'})")
        try:
            if name:
                self.ui.display_region(await self.repository.fetch_region(name))
            else:
                self.ui.display_list_items(await self.repository.fetch_all_regions(), title="Regions")
        except PokeApiError as e:
            return self._report(e)
        return True

    async def handle_stats(self) -> bool:
        self.ui.display_stats(self.repository.stats())
        return True

    async def handle_clear_cache(self) -> bool:
        """Handles the 'clear-cache' command."""
        logger.info("Handling 'clear-cache' command")
        await self.repository.clear_cache()
        self.ui.display_info("All caches cleared successfully.")
        return True
