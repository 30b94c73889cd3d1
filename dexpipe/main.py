"""Main entry point for the dexpipe application.

Sets up the Typer CLI application, performs dependency injection
(Composition Root), defines CLI commands, and delegates execution to the
CommandHandler. One RateLimiter, one ResponseCache and one PokeApiClient
are created per process and shared by every service.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, Dict, List, Optional

import httpx
import typer
from typing_extensions import Annotated

from dexpipe import __version__

# --- Core Layer ---
from dexpipe.core.command_handler import CommandHandler
from dexpipe.core.services.bulk_fetch import MoveCatalogFetcher, PokemonRosterFetcher
from dexpipe.core.services.repository import PokemonRepository

# --- Domain Layer ---
from dexpipe.domain.interfaces.user_interface import UserInterface

# --- Infrastructure Layer ---
from dexpipe.infrastructure.cache.entity_cache import EntityCache
from dexpipe.infrastructure.cache.response_cache import TieredResponseCache
from dexpipe.infrastructure.cli.display import ConsoleDisplay
from dexpipe.infrastructure.config.settings import (
    PipelineSettings,
    get_config,
    load_configuration,
    load_pipeline_settings,
)
from dexpipe.infrastructure.http.pokeapi_client import PokeApiClient
from dexpipe.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging
from dexpipe.infrastructure.resilience.api_retry import ApiRetryService
from dexpipe.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


# --- Dependency Injection Container (Manual) ---

def create_dependencies(
    settings: Optional[PipelineSettings] = None,
    ui: Optional[UserInterface] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.

    Args:
        settings: Pipeline settings (loaded from config when None).
        ui: User interface (a rich ConsoleDisplay when None).
        transport: Custom httpx transport for the client.
    """
    dependencies: Dict[str, Any] = {}

    # 1. Configuration and logging
    load_configuration()
    setup_logging(
        log_level=str(get_config('logging.level', 'WARNING')),
        log_format=str(get_config('logging.format', DEFAULT_LOG_FORMAT)),
        log_file=get_config('logging.file'),
    )
    settings = settings or load_pipeline_settings()
    dependencies['settings'] = settings
    logger.info("Configuration and logging initialized.")

    # 2. Infrastructure adapters
    dependencies['ui'] = ui or ConsoleDisplay()
    dependencies['rate_limiter'] = RateLimiter(min_interval=settings.min_request_interval)
    dependencies['response_cache'] = TieredResponseCache(
        memory_budget=settings.memory_cache_bytes,
        disk_budget=settings.disk_cache_bytes,
        l1_ttl=settings.memory_cache_ttl,
        l2_ttl=settings.disk_cache_ttl,
        l2_dir=settings.cache_dir,
    )
    retry_service = None
    if settings.max_retries > 0:
        retry_service = ApiRetryService(
            max_retries=settings.max_retries,
            initial_backoff_s=settings.retry_backoff_seconds,
        )
    dependencies['api_retry_service'] = retry_service
    dependencies['client'] = PokeApiClient(
        rate_limiter=dependencies['rate_limiter'],
        response_cache=dependencies['response_cache'],
        base_url=settings.base_url,
        user_agent=settings.user_agent,
        request_timeout=settings.request_timeout,
        resource_timeout=settings.resource_timeout,
        retry_service=retry_service,
        transport=transport,
    )

    # 3. Core services
    dependencies['repository'] = PokemonRepository(
        client=dependencies['client'],
        entity_cache=EntityCache(recent_capacity=settings.recent_capacity),
        batch_pause_seconds=settings.batch_pause_seconds,
        search_listing_limit=settings.search_listing_limit,
    )
    dependencies['move_fetcher'] = MoveCatalogFetcher(
        client=dependencies['client'],
        listing_limit=settings.move_listing_limit,
        item_cap=settings.move_item_cap,
        pause_every=settings.bulk_pause_every,
        pause_seconds=settings.bulk_pause_seconds,
        related_cap=settings.related_cap,
        related_pause_every=settings.related_pause_every,
        related_pause_seconds=settings.related_pause_seconds,
    )
    dependencies['roster_fetcher'] = PokemonRosterFetcher(
        client=dependencies['client'],
        listing_limit=settings.pokemon_listing_limit,
        pause_every=settings.bulk_pause_every,
        pause_seconds=settings.bulk_pause_seconds,
    )

    # 4. Command handler
    dependencies['command_handler'] = CommandHandler(
        repository=dependencies['repository'],
        move_fetcher=dependencies['move_fetcher'],
        roster_fetcher=dependencies['roster_fetcher'],
        ui=dependencies['ui'],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


# Built on first command so that importing the module has no side effects
_dependencies: Optional[Dict[str, Any]] = None


def get_dependencies() -> Dict[str, Any]:
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="dexpipe",
    help=f"dexpipe v{__version__}: rate-limited, cached PokeAPI acquisition pipeline.",
    add_completion=False,
)


# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, bool]) -> None:
    """Runs an async command handler from a sync Typer command.

    The shared HTTP client is closed inside the same event loop. A handler
    reporting failure exits with status 1.
    """
    dependencies = get_dependencies()

    async def _run() -> bool:
        try:
            return await coro
        finally:
            await dependencies['client'].aclose()
            dependencies['response_cache'].close()

    try:
        succeeded = asyncio.run(_run())
    except KeyboardInterrupt:
        dependencies['ui'].display_warning("Interrupted.")
        raise typer.Exit(code=130)
    if not succeeded:
        raise typer.Exit(code=1)


def _handler() -> CommandHandler:
    return get_dependencies()['command_handler']


# --- CLI Commands ---

ExportOption = Annotated[
    Optional[Path],
    typer.Option("--export", "-e", dir_okay=False, help="Append every fetched entry to this JSON-lines file.")
]


@app.command()
def pokemon(
    id_or_name: Annotated[str, typer.Argument(help="Pokemon id (e.g. 25) or name (e.g. 'Mr Mime').")]
):
    """Show one Pokemon, served from cache when possible."""
    run_async(_handler().handle_pokemon(id_or_name))


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Case-insensitive substring of the Pokemon name.")]
):
    """Search Pokemon names."""
    run_async(_handler().handle_search(query))


@app.command()
def batch(
    ids: Annotated[List[int], typer.Argument(help="Pokemon ids to fetch in order.")]
):
    """Fetch several Pokemon, skipping any that fail."""
    run_async(_handler().handle_batch(ids))


@app.command()
def moves(
    export: ExportOption = None,
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", min=1, help="Only display the first N moves.")] = None,
):
    """Load the move catalog in bulk, with progress."""
    run_async(_handler().handle_moves(export, limit))


@app.command()
def roster(export: ExportOption = None):
    """Load every Pokemon in bulk, with progress."""
    run_async(_handler().handle_roster(export))


@app.command()
def related(
    pokemon_id: Annotated[int, typer.Argument(min=1, help="Pokemon id.")]
):
    """Show the moves a Pokemon learns, ordered by learn method and level."""
    run_async(_handler().handle_related(pokemon_id))


@app.command()
def regions(
    name: Annotated[Optional[str], typer.Argument(help="Region name; lists all regions when omitted.")] = None
):
    """List regions or show one region."""
    run_async(_handler().handle_regions(name))


@app.command()
def stats():
    """Show cache statistics."""
    run_async(_handler().handle_stats())


@app.command(name="clear-cache")
def clear_cache_command():
    """Clear the entity, search, region and HTTP response caches."""
    run_async(_handler().handle_clear_cache())


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
