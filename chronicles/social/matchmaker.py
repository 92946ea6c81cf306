"""Marriage formation among this year's unmarried adults."""

from __future__ import annotations

from typing import Sequence

from numpy.random import Generator

from chronicles.agents.person import Person
from chronicles.core.config import DEFAULT_CONFIG, SimulationConfig
from chronicles.social.family import can_marry


class Matchmaker:
    """Pairs unmarried women with unmarried men.

    Only women roll the marriage propensity; a woman who passes takes the
    first unclaimed, unrelated man from a shuffled list. Men never roll.
    """

    def __init__(self, rng: Generator, config: SimulationConfig = DEFAULT_CONFIG) -> None:
        self._rng = rng
        self._config = config

    def match(
        self,
        women: Sequence[Person],
        men: Sequence[Person],
    ) -> list[tuple[int, int]]:
        """Return (bride id, groom id) pairs. Nothing is mutated."""
        candidates = list(men)
        self._rng.shuffle(candidates)

        claimed: set[int] = set()
        pairs: list[tuple[int, int]] = []
        for woman in women:
            if float(self._rng.random()) >= self._config.marriage_rate:
                continue
            for man in candidates:
                if man.id in claimed or not can_marry(woman, man):
                    continue
                claimed.add(man.id)
                pairs.append((woman.id, man.id))
                break
        return pairs
