"""PokeAPI wire-format models (Pydantic v2).

Field names follow PokeAPI's snake_case keys directly; keys that are not
valid Python identifiers (e.g. `official-artwork`) are mapped through
aliases. Every model ignores unknown keys and is frozen once decoded.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from dexpipe.domain.models.common import extract_id_from_url


class WireModel(BaseModel):
    """Base for all decoded PokeAPI records."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class NamedResource(WireModel):
    """A `{name, url}` reference to another PokeAPI resource."""

    name: str
    url: str

    @property
    def resource_id(self) -> int:
        return extract_id_from_url(self.url)

    @property
    def display_name(self) -> str:
        return self.name.replace("-", " ").title()


class ListItem(NamedResource):
    """Lightweight reference returned by paginated listing endpoints."""

    @property
    def id(self) -> int:
        return self.resource_id


class ListResponse(WireModel):
    """One page of `GET /{resource}?limit=&offset=`."""

    count: int
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[ListItem] = Field(default_factory=list)


# --- Pokemon ---

class OfficialArtwork(WireModel):
    front_default: Optional[str] = None
    front_shiny: Optional[str] = None


class DreamWorldSprites(WireModel):
    front_default: Optional[str] = None
    front_female: Optional[str] = None


class HomeSprites(WireModel):
    front_default: Optional[str] = None
    front_female: Optional[str] = None
    front_shiny: Optional[str] = None
    front_shiny_female: Optional[str] = None


class OtherSprites(WireModel):
    dream_world: Optional[DreamWorldSprites] = None
    home: Optional[HomeSprites] = None
    official_artwork: Optional[OfficialArtwork] = Field(default=None, alias="official-artwork")


class PokemonSprites(WireModel):
    front_default: Optional[str] = None
    front_shiny: Optional[str] = None
    front_female: Optional[str] = None
    front_shiny_female: Optional[str] = None
    back_default: Optional[str] = None
    back_shiny: Optional[str] = None
    back_female: Optional[str] = None
    back_shiny_female: Optional[str] = None
    other: Optional[OtherSprites] = None

    @property
    def official_artwork_url(self) -> Optional[str]:
        if self.other and self.other.official_artwork and self.other.official_artwork.front_default:
            return self.other.official_artwork.front_default
        return self.front_default


class TypeSlot(WireModel):
    slot: int
    type: NamedResource


class AbilitySlot(WireModel):
    is_hidden: bool = False
    slot: int
    ability: NamedResource


class StatEntry(WireModel):
    base_stat: int
    effort: int = 0
    stat: NamedResource


class VersionGroupDetail(WireModel):
    level_learned_at: int = 0
    move_learn_method: NamedResource
    version_group: NamedResource


class PokemonMoveEntry(WireModel):
    move: NamedResource
    version_group_details: List[VersionGroupDetail] = Field(default_factory=list)


class GameIndex(WireModel):
    game_index: int
    version: NamedResource


class Pokemon(WireModel):
    """The pipeline's primary Entity: one fully decoded Pokemon record."""

    id: int = Field(gt=0)
    name: str
    height: int = 0
    weight: int = 0
    base_experience: Optional[int] = None
    order: int = 0
    is_default: Optional[bool] = None
    sprites: PokemonSprites = Field(default_factory=PokemonSprites)
    types: List[TypeSlot] = Field(default_factory=list)
    abilities: List[AbilitySlot] = Field(default_factory=list)
    stats: List[StatEntry] = Field(default_factory=list)
    species: Optional[NamedResource] = None
    moves: List[PokemonMoveEntry] = Field(default_factory=list)
    game_indices: List[GameIndex] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name.replace("-", " ").title()

    @property
    def type_names(self) -> List[str]:
        return [slot.type.name for slot in sorted(self.types, key=lambda s: s.slot)]

    @property
    def primary_type(self) -> str:
        names = self.type_names
        return names[0] if names else "unknown"

    @property
    def stat_map(self) -> Dict[str, int]:
        return {entry.stat.name: entry.base_stat for entry in self.stats}

    @property
    def formatted_height(self) -> str:
        return f"{self.height / 10:.1f} m"

    @property
    def formatted_weight(self) -> str:
        return f"{self.weight / 10:.1f} kg"


class PokemonMovesResponse(WireModel):
    """Slim view of `GET /pokemon/{id}` used when only the move list is needed."""

    id: int
    name: str
    moves: List[PokemonMoveEntry] = Field(default_factory=list)


# --- Moves ---

class LocalizedEffect(WireModel):
    effect: str = ""
    short_effect: str = ""
    language: NamedResource


class MoveDetailResponse(WireModel):
    """Raw `GET /move/{id}` payload."""

    id: int = Field(gt=0)
    name: str
    accuracy: Optional[int] = None
    effect_chance: Optional[int] = None
    pp: Optional[int] = None
    priority: int = 0
    power: Optional[int] = None
    damage_class: Optional[NamedResource] = None
    effect_entries: List[LocalizedEffect] = Field(default_factory=list)
    type: NamedResource
    target: Optional[NamedResource] = None
    generation: Optional[NamedResource] = None
    learned_by_pokemon: List[NamedResource] = Field(default_factory=list)

    def english_short_effect(self) -> Optional[str]:
        for entry in self.effect_entries:
            if entry.language.name == "en":
                return entry.short_effect
        return None


# --- Regions & Types ---

class Region(WireModel):
    id: int
    name: str
    locations: List[NamedResource] = Field(default_factory=list)
    main_generation: Optional[NamedResource] = None
    pokedexes: List[NamedResource] = Field(default_factory=list)
    version_groups: List[NamedResource] = Field(default_factory=list)


class TypePokemon(WireModel):
    slot: int
    pokemon: NamedResource


class TypeResponse(WireModel):
    """Trimmed `GET /type/{name}`: only the Pokemon that carry the type."""

    id: int
    name: str
    pokemon: List[TypePokemon] = Field(default_factory=list)
