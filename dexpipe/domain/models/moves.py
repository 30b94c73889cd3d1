"""Move domain models.

`Move` is the canonical record the bulk move catalog publishes; it is
converted from the raw `MoveDetailResponse` wire model. `RelationInfo`
ties a move to the way a specific Pokemon learns it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from dexpipe.domain.models.resources import MoveDetailResponse

ROMAN_GENERATIONS = {"i": 1, "ii": 2, "iii": 3, "iv": 4, "v": 5, "vi": 6, "vii": 7, "viii": 8, "ix": 9}


class MoveCategory(str, Enum):
    PHYSICAL = "physical"
    SPECIAL = "special"
    STATUS = "status"

    @classmethod
    def from_damage_class(cls, damage_class: Optional[str]) -> "MoveCategory":
        try:
            return cls(damage_class or "physical")
        except ValueError:
            return cls.PHYSICAL


class LearnMethod(str, Enum):
    """How a Pokemon learns a move, ordered by display preference."""
    LEVEL_UP = "level-up"
    MACHINE = "machine"
    EGG = "egg"
    TUTOR = "tutor"
    STADIUM = "stadium-surfing-pikachu"
    LIGHT_BALL = "light-ball-egg"
    FORM_CHANGE = "form-change"

    @property
    def sort_priority(self) -> int:
        return _LEARN_METHOD_PRIORITY[self]

    @property
    def display_name(self) -> str:
        if self is LearnMethod.MACHINE:
            return "TM/HM"
        return self.value.replace("-", " ").title()

    @classmethod
    def from_api(cls, method_name: str) -> "LearnMethod":
        if method_name in ("tm", "hm"):
            return cls.MACHINE
        try:
            return cls(method_name)
        except ValueError:
            return cls.LEVEL_UP


_LEARN_METHOD_PRIORITY = {
    LearnMethod.LEVEL_UP: 0,
    LearnMethod.MACHINE: 1,
    LearnMethod.EGG: 2,
    LearnMethod.TUTOR: 3,
    LearnMethod.STADIUM: 4,
    LearnMethod.LIGHT_BALL: 5,
    LearnMethod.FORM_CHANGE: 6,
}


def parse_generation(generation_name: Optional[str]) -> int:
    """Maps "generation-iv" to 4. Anything unparsable counts as generation 1."""
    if not generation_name:
        return 1
    parts = generation_name.split("-")
    if len(parts) > 1:
        return ROMAN_GENERATIONS.get(parts[1], 1)
    return 1


class Move(BaseModel):
    """Canonical move record."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    type: str
    category: MoveCategory
    power: Optional[int] = None
    accuracy: Optional[int] = None
    pp: int = 0
    priority: int = 0
    generation: int = 1
    damage_class: str = "physical"
    effect: Optional[str] = None
    effect_chance: Optional[int] = None
    target: str = "selected-pokemon"

    @property
    def display_name(self) -> str:
        return self.name.replace("-", " ").title()

    @property
    def effective_power(self) -> float:
        return (self.power or 0) * (self.accuracy if self.accuracy is not None else 100) / 100.0

    @classmethod
    def from_api(cls, response: MoveDetailResponse) -> "Move":
        damage_class = response.damage_class.name if response.damage_class else "physical"
        return cls(
            id=response.id,
            name=response.name,
            type=response.type.name,
            category=MoveCategory.from_damage_class(damage_class),
            power=response.power,
            accuracy=response.accuracy,
            pp=response.pp or 0,
            priority=response.priority,
            generation=parse_generation(response.generation.name if response.generation else None),
            damage_class=damage_class,
            effect=response.english_short_effect(),
            effect_chance=response.effect_chance,
            target=response.target.name if response.target else "selected-pokemon",
        )


@dataclass(frozen=True)
class RelationInfo:
    """A move as learned by one Pokemon."""
    move: Move
    learn_method: LearnMethod
    level_learned_at: Optional[int] = None

    @property
    def sort_key(self):
        return (self.learn_method.sort_priority, self.level_learned_at or 0, self.move.name)
