"""Core person record: identity, family links, lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from numpy.random import Generator

from chronicles.core.config import DEFAULT_CONFIG, SimulationConfig

if TYPE_CHECKING:
    from chronicles.agents.names import NameAllocator


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class Person:
    """A single member of the population.

    Records are replaced rather than mutated during a tick, so a reader
    holding the previous living list always sees a consistent year.
    """

    id: int
    name: str
    gender: Gender
    age: int
    mother_id: Optional[int] = None
    father_id: Optional[int] = None
    spouse_id: Optional[int] = None
    birth_year: Optional[int] = None
    death_year: Optional[int] = None
    is_alive: bool = True

    @property
    def is_female(self) -> bool:
        return self.gender is Gender.FEMALE

    @property
    def is_married(self) -> bool:
        return self.spouse_id is not None

    @property
    def is_founder(self) -> bool:
        return self.mother_id is None and self.father_id is None

    # ------------------------------------------------------------------
    # Serialization (camelCase keys, matching the save format)
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "gender": self.gender.value,
            "age": self.age,
            "isAlive": self.is_alive,
        }
        optional = {
            "motherId": self.mother_id,
            "fatherId": self.father_id,
            "spouseId": self.spouse_id,
            "birthYear": self.birth_year,
            "deathYear": self.death_year,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Person":
        age = int(data["age"])
        if age < 0:
            raise ValueError(f"person {data['id']} has negative age {age}")
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            gender=Gender(data["gender"]),
            age=age,
            mother_id=data.get("motherId"),
            father_id=data.get("fatherId"),
            spouse_id=data.get("spouseId"),
            birth_year=data.get("birthYear"),
            death_year=data.get("deathYear"),
            is_alive=bool(data.get("isAlive", True)),
        )


# ------------------------------------------------------------------
# Founding generation
# ------------------------------------------------------------------

def generate_founders(
    names: NameAllocator,
    rng: Generator,
    config: SimulationConfig = DEFAULT_CONFIG,
) -> list[Person]:
    """Create the founding couples, married pairwise, with no parents.

    Ids start at 1; each couple is a woman followed by her husband.
    """
    founders: list[Person] = []
    birth_year = config.initial_year - config.initial_age
    next_id = 1

    for _ in range(config.initial_couples):
        wife_id, husband_id = next_id, next_id + 1
        wife = Person(
            id=wife_id,
            name=names.allocate(Gender.FEMALE, rng),
            gender=Gender.FEMALE,
            age=config.initial_age,
            spouse_id=husband_id,
            birth_year=birth_year,
        )
        husband = Person(
            id=husband_id,
            name=names.allocate(Gender.MALE, rng),
            gender=Gender.MALE,
            age=config.initial_age,
            spouse_id=wife_id,
            birth_year=birth_year,
        )
        founders.extend((wife, husband))
        next_id += 2

    return founders
