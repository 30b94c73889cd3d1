"""Static fallback data used when a bulk listing call fails.

A hand-authored cross-section of moves (physical, special, five types)
and Pokemon (grass through dragon) so that degraded runs never publish
an empty result set.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from dexpipe.domain.models.moves import Move, MoveCategory
from dexpipe.domain.models.resources import NamedResource, Pokemon, StatEntry, TypeSlot

API_ROOT = "https://pokeapi.co/api/v2"

TYPE_IDS: Dict[str, int] = {
    "normal": 1, "fighting": 2, "flying": 3, "poison": 4, "ground": 5,
    "ghost": 8, "fire": 10, "water": 11, "grass": 12, "electric": 13,
    "psychic": 14, "dragon": 16,
}
STAT_NAMES = ("hp", "attack", "defense", "special-attack", "special-defense", "speed")


def _move(
    move_id: int,
    name: str,
    move_type: str,
    category: MoveCategory,
    power: int,
    accuracy: int,
    pp: int,
    effect: str,
    effect_chance: Optional[int] = None,
    target: str = "selected-pokemon",
) -> Move:
    return Move(
        id=move_id,
        name=name,
        type=move_type,
        category=category,
        power=power,
        accuracy=accuracy,
        pp=pp,
        priority=0,
        generation=1,
        damage_class=category.value,
        effect=effect,
        effect_chance=effect_chance,
        target=target,
    )


PHYSICAL = MoveCategory.PHYSICAL
SPECIAL = MoveCategory.SPECIAL

SAMPLE_MOVES: List[Move] = [
    _move(1, "pound", "normal", PHYSICAL, 40, 100, 35, "Inflicts regular damage."),
    _move(5, "mega-punch", "normal", PHYSICAL, 80, 85, 20, "Inflicts regular damage."),
    _move(7, "fire-punch", "fire", PHYSICAL, 75, 100, 15, "10% chance to burn.", 10),
    _move(9, "thunder-punch", "electric", PHYSICAL, 75, 100, 15, "10% chance to paralyze.", 10),
    _move(13, "razor-wind", "normal", SPECIAL, 80, 100, 10, "Charges turn 1. Hits turn 2.",
          target="all-other-pokemon"),
    _move(85, "thunderbolt", "electric", SPECIAL, 90, 100, 15, "10% chance to paralyze.", 10),
    _move(87, "thunder", "electric", SPECIAL, 110, 70, 10, "30% chance to paralyze.", 30),
    _move(89, "earthquake", "ground", PHYSICAL, 100, 100, 10, "Inflicts regular damage.",
          target="all-other-pokemon"),
    _move(94, "psychic", "psychic", SPECIAL, 90, 100, 10, "10% chance to lower Sp. Def.", 10),
    _move(126, "fire-blast", "fire", SPECIAL, 110, 85, 5, "10% chance to burn.", 10),
]


def _pokemon(
    pokemon_id: int,
    name: str,
    types: Sequence[str],
    base_stats: Tuple[int, int, int, int, int, int],
    height: int,
    weight: int,
) -> Pokemon:
    return Pokemon(
        id=pokemon_id,
        name=name,
        height=height,
        weight=weight,
        order=pokemon_id,
        is_default=True,
        types=[
            TypeSlot(slot=slot, type=NamedResource(name=t, url=f"{API_ROOT}/type/{TYPE_IDS[t]}/"))
            for slot, t in enumerate(types, start=1)
        ],
        stats=[
            StatEntry(base_stat=value, stat=NamedResource(name=stat, url=f"{API_ROOT}/stat/{index}/"))
            for index, (stat, value) in enumerate(zip(STAT_NAMES, base_stats), start=1)
        ],
        species=NamedResource(name=name, url=f"{API_ROOT}/pokemon-species/{pokemon_id}/"),
    )


SAMPLE_POKEMON: List[Pokemon] = [
    _pokemon(1, "bulbasaur", ["grass", "poison"], (45, 49, 49, 65, 65, 45), 7, 69),
    _pokemon(4, "charmander", ["fire"], (39, 52, 43, 60, 50, 65), 6, 85),
    _pokemon(7, "squirtle", ["water"], (44, 48, 65, 50, 64, 43), 5, 90),
    _pokemon(18, "pidgeot", ["normal", "flying"], (83, 80, 75, 70, 70, 101), 15, 395),
    _pokemon(25, "pikachu", ["electric"], (35, 55, 40, 50, 50, 90), 4, 60),
    _pokemon(68, "machamp", ["fighting"], (90, 130, 80, 65, 85, 55), 16, 1300),
    _pokemon(94, "gengar", ["ghost", "poison"], (60, 65, 60, 130, 75, 110), 15, 405),
    _pokemon(143, "snorlax", ["normal"], (160, 110, 65, 65, 110, 30), 21, 4600),
    _pokemon(149, "dragonite", ["dragon", "flying"], (91, 134, 95, 100, 100, 80), 22, 2100),
    _pokemon(150, "mewtwo", ["psychic"], (106, 110, 90, 154, 90, 130), 20, 1220),
]
