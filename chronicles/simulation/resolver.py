"""Mortality and starvation: the batch that turns one year's living list into the next."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

from chronicles.agents.person import Person
from chronicles.core.config import DEFAULT_CONFIG, SimulationConfig


@dataclass
class Resolution:
    """Outcome of a resolver pass. ``people`` is the complete new living list."""

    people: list[Person] = field(default_factory=list)
    food: float = 0.0
    produced: float = 0.0
    consumed: float = 0.0
    natural_deaths: list[Person] = field(default_factory=list)
    starved: list[Person] = field(default_factory=list)
    widowed: int = 0

    @property
    def deceased(self) -> list[Person]:
        return self.natural_deaths + self.starved


def starvation_count(food: float, population: int, divisor: float) -> int:
    """How many people a food deficit kills. Zero when food is not negative."""
    if food >= 0:
        return 0
    return min(population, math.ceil(abs(food) / divisor))


def _bury(person: Person, year: int) -> Person:
    return replace(person, is_alive=False, death_year=year)


def _widow(people: list[Person], dead_ids: set[int]) -> int:
    count = 0
    for i, p in enumerate(people):
        if p.spouse_id is not None and p.spouse_id in dead_ids:
            people[i] = replace(p, spouse_id=None)
            count += 1
    return count


class MortalityResolver:
    """Applies deaths, aging, marriages, births and the food ledger in one batch."""

    def __init__(self, config: SimulationConfig = DEFAULT_CONFIG) -> None:
        self._config = config

    def resolve(
        self,
        people: Sequence[Person],
        death_ids: set[int],
        marriages: Iterable[tuple[int, int]],
        newborns: Sequence[Person],
        workers: int,
        food: float,
        year: int,
    ) -> Resolution:
        cfg = self._config
        result = Resolution()

        spouse_of: dict[int, int] = {}
        for bride_id, groom_id in marriages:
            spouse_of[bride_id] = groom_id
            spouse_of[groom_id] = bride_id

        survivors: list[Person] = []
        for p in people:
            if p.id in death_ids:
                result.natural_deaths.append(_bury(p, year))
                continue
            survivors.append(replace(
                p,
                age=p.age + 1,
                spouse_id=spouse_of.get(p.id, p.spouse_id),
            ))
        survivors.extend(newborns)

        result.produced = workers * cfg.food_per_worker
        result.consumed = len(survivors) * cfg.food_per_person
        food = food + result.produced - result.consumed

        starved = starvation_count(food, len(survivors), cfg.starvation_divisor)
        if food < 0:
            # Positional cull: the front of the living list starves first.
            result.starved = [_bury(p, year) for p in survivors[:starved]]
            survivors = survivors[starved:]
            food = 0.0

        dead_ids = {p.id for p in result.deceased}
        result.widowed = _widow(survivors, dead_ids)
        result.people = survivors
        result.food = food
        return result
