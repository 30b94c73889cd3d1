"""Interface for presenting pipeline results to the user.

Defines the contract for displaying entities, listings, statistics,
errors and bulk progress, allowing different UI implementations (console,
tests) to be injected into the command handler.
"""

import abc
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Sequence

from dexpipe.domain.models.common import FetchProgress, RepositoryStats
from dexpipe.domain.models.moves import Move, RelationInfo
from dexpipe.domain.models.resources import ListItem, Pokemon, Region


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays standard output to the user."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, recovery_suggestion: Optional[str] = None, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error description.
            recovery_suggestion: What the user can do about it, if known.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_pokemon(self, pokemon: Pokemon) -> None:
        """Displays one fully decoded Pokemon."""
        pass

    @abc.abstractmethod
    def display_list_items(self, items: Sequence[ListItem], title: str = "Results") -> None:
        """Displays listing references (name and id)."""
        pass

    @abc.abstractmethod
    def display_moves(self, moves: Sequence[Move], title: str = "Moves") -> None:
        """Displays a move catalog."""
        pass

    @abc.abstractmethod
    def display_relations(self, pokemon_id: int, relations: Sequence[RelationInfo]) -> None:
        """Displays the moves a Pokemon learns."""
        pass

    @abc.abstractmethod
    def display_region(self, region: Region) -> None:
        """Displays one region."""
        pass

    @abc.abstractmethod
    def display_stats(self, stats: RepositoryStats) -> None:
        """Displays a repository statistics snapshot."""
        pass

    @contextmanager
    def progress_reporter(self, description: str) -> Iterator[Callable[[FetchProgress], None]]:
        """Yields a callback receiving `FetchProgress` snapshots.

        The default implementation ignores progress.
        """
        yield lambda progress: None
