"""Births from fertile married couples."""

from __future__ import annotations

from typing import Mapping, Sequence

from numpy.random import Generator

from chronicles.agents.names import NameAllocator
from chronicles.agents.person import Gender, Person
from chronicles.core.config import DEFAULT_CONFIG, SimulationConfig


class Reproduction:
    """Rolls one possible birth per fertile married woman each year."""

    def __init__(
        self,
        rng: Generator,
        names: NameAllocator,
        config: SimulationConfig = DEFAULT_CONFIG,
    ) -> None:
        self._rng = rng
        self._names = names
        self._config = config

    def births(
        self,
        fertile_women: Sequence[Person],
        by_id: Mapping[int, Person],
        death_ids: set[int],
        next_id: int,
        year: int,
    ) -> list[Person]:
        """Return newborns, not yet part of the living population.

        A husband who is missing, dead, or dying this year fathers no child.
        Ids count up from ``next_id`` in birth order.
        """
        newborns: list[Person] = []
        for mother in fertile_women:
            father = by_id.get(mother.spouse_id) if mother.spouse_id is not None else None
            if father is None or not father.is_alive or father.id in death_ids:
                continue
            if float(self._rng.random()) >= self._config.fertility_rate:
                continue

            gender = Gender.MALE if float(self._rng.random()) < 0.5 else Gender.FEMALE
            newborns.append(Person(
                id=next_id + len(newborns),
                name=self._names.allocate(gender, self._rng),
                gender=gender,
                age=0,
                mother_id=mother.id,
                father_id=father.id,
                birth_year=year,
            ))
        return newborns
