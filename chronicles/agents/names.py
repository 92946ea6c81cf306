"""Gendered name pools and the allocator that keeps living names unique."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from numpy.random import Generator

from chronicles.agents.person import Gender


MALE_NAMES: list[str] = [
    "Adam", "Noah", "Liam", "Oliver", "James", "William", "Benjamin", "Lucas",
    "Henry", "Alexander", "Abel", "Cain", "Seth", "Enoch", "Jared", "Lamech",
    "Ezra", "Micah", "Tobias", "Elias", "Jonah", "Silas", "Gideon", "Aaron",
    "Caleb", "Isaac", "Jacob", "Levi", "Reuben", "Simeon",
]

FEMALE_NAMES: list[str] = [
    "Eve", "Emma", "Olivia", "Ava", "Sophia", "Isabella", "Mia", "Charlotte",
    "Amelia", "Harper", "Sarah", "Rebekah", "Rachel", "Leah", "Dinah", "Miriam",
    "Ruth", "Naomi", "Hannah", "Abigail", "Esther", "Judith", "Deborah", "Tamar",
    "Adah", "Zillah", "Naamah", "Keturah", "Bilhah", "Zilpah",
]


def _pool_for(gender: Gender) -> list[str]:
    return MALE_NAMES if gender is Gender.MALE else FEMALE_NAMES


class NameAllocator:
    """Hands out names not currently used by a living person.

    Picks uniformly among the unused names of the gender's pool. Once the
    pool is exhausted a random base name gets a numeric suffix, counting up
    from 2 until a free name is found. Names are counted per holder, so a
    name shared by two living people (possible in an old save) stays taken
    until both have died.
    """

    def __init__(self, in_use: Iterable[str] = ()) -> None:
        self._in_use: Counter[str] = Counter(in_use)

    def __contains__(self, name: str) -> bool:
        return self._in_use[name] > 0

    def __len__(self) -> int:
        return len(self._in_use)

    def allocate(self, gender: Gender, rng: Generator) -> str:
        pool = _pool_for(gender)
        available = [n for n in pool if n not in self]
        if available:
            name = available[int(rng.integers(len(available)))]
        else:
            base = pool[int(rng.integers(len(pool)))]
            suffix = 2
            name = f"{base} {suffix}"
            while name in self:
                suffix += 1
                name = f"{base} {suffix}"
        self._in_use[name] += 1
        return name

    def reserve(self, name: str) -> None:
        self._in_use[name] += 1

    def release(self, name: str) -> None:
        """Drop one holder of a name; it returns to the pool with the last."""
        if self._in_use[name] <= 1:
            self._in_use.pop(name, None)
        else:
            self._in_use[name] -= 1

    def reset(self, in_use: Iterable[str] = ()) -> None:
        self._in_use = Counter(in_use)
