"""Shared test fixtures: a scripted random source and person factories."""

from __future__ import annotations

from chronicles.agents.person import Gender, Person


class ScriptedRng:
    """Replays fixed ``random()`` draws, then returns ``default``.

    ``integers`` always picks index 0 and ``shuffle`` keeps the order, so
    name picks and candidate order are predictable.
    """

    def __init__(self, randoms=(), default: float = 0.99) -> None:
        self._randoms = list(randoms)
        self.default = default
        self.random_calls = 0
        self.shuffle_calls = 0

    def random(self) -> float:
        self.random_calls += 1
        if self._randoms:
            return self._randoms.pop(0)
        return self.default

    def integers(self, n: int) -> int:
        return 0

    def shuffle(self, seq) -> None:
        self.shuffle_calls += 1

    @property
    def remaining(self) -> int:
        return len(self._randoms)


def woman(pid: int, age: int = 20, **kw) -> Person:
    return Person(id=pid, name=kw.pop("name", f"W{pid}"), gender=Gender.FEMALE, age=age, **kw)


def man(pid: int, age: int = 20, **kw) -> Person:
    return Person(id=pid, name=kw.pop("name", f"M{pid}"), gender=Gender.MALE, age=age, **kw)


def couple(wife_id: int, husband_id: int, age: int = 20, **kw) -> tuple[Person, Person]:
    return (
        woman(wife_id, age, spouse_id=husband_id, **kw),
        man(husband_id, age, spouse_id=wife_id, **kw),
    )
