import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dexpipe.core.command_handler import CommandHandler
from dexpipe.core.services.bulk_fetch import MoveCatalogFetcher, PokemonRosterFetcher
from dexpipe.core.services.repository import PokemonRepository
from dexpipe.domain.errors import ErrorRecord, NotFoundError, ServerError
from dexpipe.domain.interfaces.user_interface import UserInterface
from dexpipe.domain.models.common import BulkFetchState, FetchOutcome, RepositoryStats
from dexpipe.domain.models.resources import ListItem, Pokemon
from dexpipe.infrastructure.fallback.sample_data import SAMPLE_MOVES
from dexpipe.infrastructure.storage.jsonl_sink import JsonLinesSink


def make_fetcher(fetcher_class, results=(), state=BulkFetchState.DONE, failures=(), last_error=None):
    fetcher = MagicMock(spec=fetcher_class)
    fetcher.results = list(results)
    fetcher.state = state
    fetcher.failures = list(failures)
    fetcher.last_error = last_error
    fetcher.sink = None
    fetcher.run_bulk_fetch.return_value = list(results)
    return fetcher


@pytest.fixture
def mock_repository():
    return MagicMock(spec=PokemonRepository)


@pytest.fixture
def mock_move_fetcher():
    return make_fetcher(MoveCatalogFetcher, results=SAMPLE_MOVES)


@pytest.fixture
def mock_roster_fetcher():
    return make_fetcher(PokemonRosterFetcher)


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def command_handler(mock_repository, mock_move_fetcher, mock_roster_fetcher, mock_ui):
    """Fixture to create CommandHandler with mocked services."""
    return CommandHandler(
        repository=mock_repository,
        move_fetcher=mock_move_fetcher,
        roster_fetcher=mock_roster_fetcher,
        ui=mock_ui,
    )


def test_handle_pokemon_by_id(command_handler: CommandHandler, mock_repository: MagicMock, mock_ui: MagicMock):
    """Numeric input is treated as an id."""
    pokemon = Pokemon(id=25, name="pikachu")
    mock_repository.fetch_by_id.return_value = pokemon

    assert asyncio.run(command_handler.handle_pokemon("25")) is True

    mock_repository.fetch_by_id.assert_awaited_once_with(25)
    mock_repository.fetch_by_name.assert_not_called()
    mock_ui.display_pokemon.assert_called_once_with(pokemon)


def test_handle_pokemon_by_name(command_handler: CommandHandler, mock_repository: MagicMock):
    mock_repository.fetch_by_name.return_value = Pokemon(id=122, name="mr-mime")

    assert asyncio.run(command_handler.handle_pokemon("Mr Mime")) is True
    mock_repository.fetch_by_name.assert_awaited_once_with("Mr Mime")


def test_handle_pokemon_error(command_handler: CommandHandler, mock_repository: MagicMock, mock_ui: MagicMock):
    """Typed API errors are displayed with their recovery suggestion."""
    mock_repository.fetch_by_name.side_effect = NotFoundError()

    assert asyncio.run(command_handler.handle_pokemon("missingno")) is False

    mock_ui.display_error.assert_called_once_with(
        "Resource not found",
        recovery_suggestion="Check the Pokemon name or ID and try again.",
    )
    mock_ui.display_pokemon.assert_not_called()


def test_handle_search(command_handler: CommandHandler, mock_repository: MagicMock, mock_ui: MagicMock):
    items = [ListItem(name="pikachu", url="https://pokeapi.co/api/v2/pokemon/25/")]
    mock_repository.search.return_value = items

    assert asyncio.run(command_handler.handle_search("pika")) is True
    mock_ui.display_list_items.assert_called_once_with(items, title="Pokemon matching 'pika'")


def test_handle_batch_warns_about_missing(command_handler: CommandHandler, mock_repository: MagicMock, mock_ui: MagicMock):
    mock_repository.fetch_batch.return_value = [Pokemon(id=1, name="bulbasaur"), Pokemon(id=2, name="ivysaur")]

    assert asyncio.run(command_handler.handle_batch([1, 2, 999999])) is True

    assert mock_ui.display_pokemon.call_count == 2
    mock_ui.display_warning.assert_called_once_with("1 of 3 Pokemon could not be fetched.")


def test_handle_moves_displays_catalog(command_handler: CommandHandler, mock_move_fetcher: MagicMock, mock_ui: MagicMock):
    assert asyncio.run(command_handler.handle_moves(limit=3)) is True

    mock_move_fetcher.run_bulk_fetch.assert_awaited_once()
    mock_move_fetcher.add_progress_listener.assert_called_once()
    mock_move_fetcher.remove_progress_listener.assert_called_once()
    mock_ui.display_moves.assert_called_once_with(SAMPLE_MOVES[:3], title="Move catalog")
    mock_ui.display_warning.assert_not_called()


def test_handle_moves_listing_failure_warns_about_samples(mock_repository, mock_roster_fetcher, mock_ui):
    fetcher = make_fetcher(
        MoveCatalogFetcher,
        results=SAMPLE_MOVES,
        state=BulkFetchState.FAILED,
        last_error=ErrorRecord.from_error(ServerError(500)),
    )
    handler = CommandHandler(mock_repository, fetcher, mock_roster_fetcher, mock_ui)

    assert asyncio.run(handler.handle_moves()) is True

    mock_ui.display_warning.assert_called_once_with(
        f"Could not load the moves list (Server error. Please try again later.). "
        f"Showing {len(SAMPLE_MOVES)} sample entries instead."
    )


def test_handle_roster_reports_skipped_items(mock_repository, mock_move_fetcher, mock_ui):
    fetcher = make_fetcher(
        PokemonRosterFetcher,
        results=[Pokemon(id=1, name="bulbasaur")],
        failures=[FetchOutcome.failure("ivysaur", NotFoundError())],
    )
    handler = CommandHandler(mock_repository, mock_move_fetcher, fetcher, mock_ui)

    assert asyncio.run(handler.handle_roster()) is True

    mock_ui.display_warning.assert_called_once_with("1 Pokemon entries could not be fetched and were skipped.")
    mock_ui.display_info.assert_called_once_with("Roster holds 1 Pokemon.")


def test_handle_roster_export_sets_sink(command_handler: CommandHandler, mock_roster_fetcher: MagicMock,
                                        mock_ui: MagicMock, tmp_path: Path):
    export = tmp_path / "roster.jsonl"

    asyncio.run(command_handler.handle_roster(export=export))

    assert isinstance(mock_roster_fetcher.sink, JsonLinesSink)
    mock_ui.display_info.assert_any_call(f"Exported 0 Pokemon entries to {export}")


def test_handle_related_error(command_handler: CommandHandler, mock_move_fetcher: MagicMock, mock_ui: MagicMock):
    mock_move_fetcher.fetch_related_for_entity.side_effect = NotFoundError()

    assert asyncio.run(command_handler.handle_related(999999)) is False
    mock_ui.display_error.assert_called_once()
    mock_ui.display_relations.assert_not_called()


def test_handle_regions(command_handler: CommandHandler, mock_repository: MagicMock, mock_ui: MagicMock):
    asyncio.run(command_handler.handle_regions())
    mock_repository.fetch_all_regions.assert_awaited_once()
    mock_ui.display_list_items.assert_called_once()

    asyncio.run(command_handler.handle_regions("kanto"))
    mock_repository.fetch_region.assert_awaited_once_with("kanto")
    mock_ui.display_region.assert_called_once()


def test_handle_stats(command_handler: CommandHandler, mock_repository: MagicMock, mock_ui: MagicMock):
    stats = RepositoryStats(cached_count=1, recent_count=1, search_cache_count=0)
    mock_repository.stats.return_value = stats

    assert asyncio.run(command_handler.handle_stats()) is True
    mock_ui.display_stats.assert_called_once_with(stats)


def test_handle_clear_cache(command_handler: CommandHandler, mock_repository: MagicMock, mock_ui: MagicMock):
    assert asyncio.run(command_handler.handle_clear_cache()) is True
    mock_repository.clear_cache.assert_awaited_once()
    mock_ui.display_info.assert_called_once_with("All caches cleared successfully.")
