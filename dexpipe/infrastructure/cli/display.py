"""Rich console implementation of the UserInterface.

Renders Pokemon, listings, move catalogs and statistics as rich tables
and panels, and bulk progress as a rich progress bar.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Sequence

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table
from rich.text import Text

from dexpipe.domain.interfaces.user_interface import UserInterface
from dexpipe.domain.models.common import FetchProgress, RepositoryStats
from dexpipe.domain.models.moves import Move, RelationInfo
from dexpipe.domain.models.resources import ListItem, Pokemon, Region

logger = logging.getLogger(__name__)

PROGRESS_SCALE = 1000


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console (or uses the one given)."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    # --- Messages ---

    def display_output(self, output: str, **kwargs: Any) -> None:
        self.console.print(output)

    def display_error(self, error_message: str, recovery_suggestion: Optional[str] = None, **kwargs: Any) -> None:
        """Displays an error message and, when known, how to recover."""
        body = Text(error_message, style="white")
        if recovery_suggestion:
            body.append("\n")
            body.append(recovery_suggestion, style="italic yellow")
        panel = Panel(
            body,
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    # --- Entities ---

    def display_pokemon(self, pokemon: Pokemon) -> None:
        """Displays a Pokemon card: profile, types, abilities and base stats."""
        table = Table(box=SIMPLE, show_header=False, padding=(0, 1))
        table.add_column("Field", style="bold cyan")
        table.add_column("Value")
        table.add_row("ID", f"#{pokemon.id:03d}")
        table.add_row("Types", ", ".join(t.title() for t in pokemon.type_names) or "-")
        table.add_row("Height", pokemon.formatted_height)
        table.add_row("Weight", pokemon.formatted_weight)
        if pokemon.base_experience is not None:
            table.add_row("Base XP", str(pokemon.base_experience))
        abilities = [
            f"{slot.ability.display_name}{' (hidden)' if slot.is_hidden else ''}"
            for slot in sorted(pokemon.abilities, key=lambda s: s.slot)
        ]
        if abilities:
            table.add_row("Abilities", ", ".join(abilities))
        for stat_name, value in pokemon.stat_map.items():
            table.add_row(stat_name.replace("-", " ").title(), str(value))

        self.console.print(Panel(
            table,
            title=f"[bold white]{pokemon.display_name}[/bold white]",
            title_align="left",
            border_style="green",
            box=ROUNDED,
        ))

    def display_list_items(self, items: Sequence[ListItem], title: str = "Results") -> None:
        if not items:
            self.display_info(f"{title}: nothing found.")
            return
        table = Table(title=title, box=ROUNDED)
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Name")
        for item in items:
            table.add_row(str(item.id), item.display_name)
        self.console.print(table)

    def display_moves(self, moves: Sequence[Move], title: str = "Moves") -> None:
        table = Table(title=f"{title} ({len(moves)})", box=ROUNDED)
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Category")
        table.add_column("Power", justify="right")
        table.add_column("Acc.", justify="right")
        table.add_column("PP", justify="right")
        for move in moves:
            table.add_row(
                str(move.id),
                move.display_name,
                move.type.title(),
                move.category.value.title(),
                str(move.power) if move.power is not None else "-",
                str(move.accuracy) if move.accuracy is not None else "-",
                str(move.pp),
            )
        self.console.print(table)

    def display_relations(self, pokemon_id: int, relations: Sequence[RelationInfo]) -> None:
        if not relations:
            self.display_info(f"No moves found for Pokemon #{pokemon_id}.")
            return
        table = Table(title=f"Moves learned by Pokemon #{pokemon_id}", box=ROUNDED)
        table.add_column("Method", style="magenta")
        table.add_column("Level", justify="right")
        table.add_column("Move")
        table.add_column("Type")
        table.add_column("Power", justify="right")
        for relation in relations:
            table.add_row(
                relation.learn_method.display_name,
                str(relation.level_learned_at) if relation.level_learned_at else "-",
                relation.move.display_name,
                relation.move.type.title(),
                str(relation.move.power) if relation.move.power is not None else "-",
            )
        self.console.print(table)

    def display_region(self, region: Region) -> None:
        generation = region.main_generation.display_name if region.main_generation else "-"
        self.console.print(Panel(
            Text(
                f"Main generation: {generation}\n"
                f"Locations: {len(region.locations)}\n"
                f"Pokedexes: {', '.join(p.display_name for p in region.pokedexes) or '-'}"
            ),
            title=f"[bold white]{region.name.title()}[/bold white]",
            title_align="left",
            border_style="green",
            box=ROUNDED,
        ))

    def display_stats(self, stats: RepositoryStats) -> None:
        table = Table(title="Cache statistics", box=ROUNDED, show_header=False)
        table.add_column("Metric", style="bold cyan")
        table.add_column("Value", justify="right")
        table.add_row("Cached Pokemon", str(stats.cached_count))
        table.add_row("Recent Pokemon", str(stats.recent_count))
        table.add_row("Cached searches", str(stats.search_cache_count))
        table.add_row("Cached regions", str(stats.region_count))
        table.add_row("Disk usage", stats.formatted_disk_usage)
        self.console.print(table)

    # --- Progress ---

    @contextmanager
    def progress_reporter(self, description: str) -> Iterator[Callable[[FetchProgress], None]]:
        """Shows a rich progress bar driven by `FetchProgress` snapshots."""
        with Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("{task.fields[status]}"),
            console=self.console,
            transient=True,
        ) as progress:
            task_id = progress.add_task(description, total=None, status="")

            def update(snapshot: FetchProgress) -> None:
                if snapshot.is_indeterminate:
                    progress.update(task_id, total=None, status=snapshot.message)
                else:
                    progress.update(
                        task_id,
                        total=PROGRESS_SCALE,
                        completed=int(snapshot.fraction * PROGRESS_SCALE),
                        status=snapshot.message,
                    )

            yield update
