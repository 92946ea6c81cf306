"""Census pass: one scan over the living population per tick."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from numpy.random import Generator

from chronicles.agents.mortality import death_probability
from chronicles.agents.person import Person
from chronicles.core.config import DEFAULT_CONFIG, SimulationConfig


@dataclass
class Census:
    """Classification of the living population at the start of a tick."""

    workers: int = 0
    unmarried_women: list[Person] = field(default_factory=list)
    unmarried_men: list[Person] = field(default_factory=list)
    fertile_women: list[Person] = field(default_factory=list)
    by_id: dict[int, Person] = field(default_factory=dict)
    death_ids: set[int] = field(default_factory=set)

    @property
    def population(self) -> int:
        return len(self.by_id)


def take_census(
    people: Sequence[Person],
    rng: Generator,
    config: SimulationConfig = DEFAULT_CONFIG,
) -> Census:
    """Classify everyone and roll this year's natural deaths.

    Deaths are only selected here; the resolver applies them together with
    marriages and births.
    """
    census = Census()
    for p in people:
        census.by_id[p.id] = p

        if config.adult_age <= p.age <= config.worker_max_age:
            census.workers += 1

        if p.age >= config.adult_age and p.spouse_id is None:
            if p.is_female:
                census.unmarried_women.append(p)
            else:
                census.unmarried_men.append(p)

        if (
            p.is_female
            and p.spouse_id is not None
            and config.fertility_min_age <= p.age <= config.fertility_max_age
        ):
            census.fertile_women.append(p)

        if float(rng.random()) < death_probability(p.age, config):
            census.death_ids.add(p.id)

    return census
