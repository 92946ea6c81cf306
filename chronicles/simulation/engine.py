"""Main simulation loop: the five-stage yearly tick."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from typing import Optional

import numpy as np
from numpy.random import Generator

from chronicles.agents.names import NameAllocator
from chronicles.agents.person import Person, generate_founders
from chronicles.core.clock import format_year
from chronicles.core.config import DEFAULT_CONFIG, SimulationConfig
from chronicles.simulation.census import take_census
from chronicles.simulation.metrics import HistoryPoint, MetricsCollector
from chronicles.simulation.persistence import JsonFileStore
from chronicles.simulation.reproduction import Reproduction
from chronicles.simulation.resolver import MortalityResolver, Resolution
from chronicles.social.family import FamilyRegistry
from chronicles.social.matchmaker import Matchmaker
from chronicles.viz.logger import SimLogger

# Summary lines list names only for small groups
_MAX_NAMES_IN_LOG = 5


@dataclass
class SimulationState:
    """Everything a tick reads and writes. Replaced wholesale once per tick."""

    people: list[Person] = field(default_factory=list)
    food: float = 0.0
    year: int = 0
    next_id: int = 1
    logs: deque = field(default_factory=deque)
    history: deque = field(default_factory=deque)

    def to_dict(self) -> dict:
        return {
            "people": [p.to_dict() for p in self.people],
            "food": self.food,
            "year": self.year,
            "nextId": self.next_id,
            "logs": list(self.logs),
            "history": [h.to_dict() for h in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict, config: SimulationConfig = DEFAULT_CONFIG) -> "SimulationState":
        return cls(
            people=[Person.from_dict(p) for p in data["people"]],
            food=data["food"],
            year=int(data["year"]),
            next_id=int(data["nextId"]),
            logs=deque(data["logs"], maxlen=config.max_log_entries),
            history=deque(
                (HistoryPoint.from_dict(h) for h in data["history"]),
                maxlen=config.max_history_points,
            ),
        )


@dataclass
class TickReport:
    """What happened during one tick."""

    year: int
    population_before: int
    population_after: int
    births: int
    natural_deaths: int
    starved: int
    marriages: int
    widowed: int
    food_produced: float
    food_consumed: float


class SimulationEngine:
    """Owns the simulation state and advances it one year per tick."""

    def __init__(
        self,
        seed: int = 42,
        config: SimulationConfig = DEFAULT_CONFIG,
        rng: Optional[Generator] = None,
        store: Optional[JsonFileStore] = None,
        logger: Optional[SimLogger] = None,
        retain_lineage: bool = True,
    ) -> None:
        self.rng: Generator = rng if rng is not None else np.random.default_rng(seed)
        self.config = config
        self.store = store
        self.logger = logger or SimLogger(verbosity=0, stdout=False)
        self.retain_lineage = retain_lineage

        self.names = NameAllocator()
        self.matchmaker = Matchmaker(self.rng, config)
        self.reproduction = Reproduction(self.rng, self.names, config)
        self.resolver = MortalityResolver(config)
        self.metrics = MetricsCollector()

        self.state = SimulationState(
            year=config.initial_year,
            logs=deque(maxlen=config.max_log_entries),
            history=deque(maxlen=config.max_history_points),
        )
        self.archive: dict[int, Person] = {}
        self.last_report: Optional[TickReport] = None
        self._ticks_since_save: int = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def people(self) -> tuple[Person, ...]:
        return tuple(self.state.people)

    @property
    def food(self) -> float:
        return self.state.food

    @property
    def year(self) -> int:
        return self.state.year

    @property
    def next_id(self) -> int:
        return self.state.next_id

    @property
    def logs(self) -> list[str]:
        return list(self.state.logs)

    @property
    def history(self) -> list[HistoryPoint]:
        return list(self.state.history)

    @property
    def is_extinct(self) -> bool:
        return not self.state.people

    def family(self) -> FamilyRegistry:
        """Lineage view over the living and, when retained, the deceased."""
        return FamilyRegistry(self.state.people, self.archive)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Resume from the store when it holds a usable save, else found anew."""
        saved = self.store.load() if self.store else None
        if saved is not None:
            try:
                state = SimulationState.from_dict(saved, self.config)
                everyone = [Person.from_dict(p) for p in saved.get("allPeople", [])]
                archive = [p for p in everyone if not p.is_alive]
                records = state.people + archive
                if len({p.id for p in records}) < len(records):
                    raise ValueError("duplicate person id in saved game")
            except (KeyError, TypeError, ValueError) as e:
                self.logger.warning(f"Saved game could not be restored: {e}")
            else:
                self.restore(state, archive)
                self.logger.log(
                    SimLogger.LIFECYCLE,
                    f"Chronicle resumed with {len(state.people)} people",
                    year=state.year,
                )
                self.logger.flush_year(state.year)
                return
        self._found()

    def reset(self) -> None:
        """Discard everything, start a new founding generation, drop the save."""
        self.archive.clear()
        self.metrics = MetricsCollector()
        self.last_report = None
        self._found()
        if self.store:
            self.store.clear()

    def restore(self, state: SimulationState, archive: Optional[list[Person]] = None) -> None:
        """Adopt an externally built state (a loaded save or a test fixture)."""
        living = {p.id for p in state.people}
        # Spouses that are no longer alive leave their partner widowed.
        state.people = [
            replace(p, spouse_id=None) if p.spouse_id is not None and p.spouse_id not in living else p
            for p in state.people
        ]
        highest = max((p.id for p in state.people), default=0)
        if archive:
            highest = max(highest, max(p.id for p in archive))
        if state.next_id <= highest:
            self.logger.warning(f"Saved nextId {state.next_id} reused an id; advancing to {highest + 1}")
            state.next_id = highest + 1

        state.logs = deque(state.logs, maxlen=self.config.max_log_entries)
        state.history = deque(state.history, maxlen=self.config.max_history_points)
        self.state = state
        self.names.reset(p.name for p in state.people)
        self.archive = {p.id: p for p in archive or []}
        self._ticks_since_save = 0

    def _found(self) -> None:
        cfg = self.config
        self.names.reset()
        founders = generate_founders(self.names, self.rng, cfg)
        self.state = SimulationState(
            people=founders,
            food=cfg.initial_food,
            year=cfg.initial_year,
            next_id=len(founders) + 1,
            logs=deque(maxlen=cfg.max_log_entries),
            history=deque(maxlen=cfg.max_history_points),
        )
        self._ticks_since_save = 0
        self._chronicle(
            self.state.logs,
            SimLogger.LIFECYCLE,
            f"Simulation started with {cfg.initial_couples} couples",
            cfg.initial_year,
        )
        self.logger.flush_year(cfg.initial_year)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def run(self, years: int) -> None:
        """Run up to ``years`` ticks, stopping early on extinction."""
        for _ in range(years):
            if self.is_extinct:
                break
            self.tick()

    def tick(self) -> None:
        """One simulated year. Does nothing once the population is gone."""
        state = self.state
        if not state.people:
            return

        cfg = self.config
        year = state.year

        # 1. Census
        census = take_census(state.people, self.rng, cfg)

        # 2. Marriages
        marriages = self.matchmaker.match(census.unmarried_women, census.unmarried_men)

        # 3. Births
        newborns = self.reproduction.births(
            census.fertile_women, census.by_id, census.death_ids, state.next_id, year,
        )

        # 4. Deaths, aging, food, starvation
        result = self.resolver.resolve(
            state.people, census.death_ids, marriages, newborns,
            census.workers, state.food, year,
        )

        next_id = state.next_id + len(newborns)
        assert all(state.next_id <= p.id < next_id for p in newborns), "newborn id out of sequence"
        assert all(p.age >= 0 for p in result.people), "negative age after aging"
        assert len({p.id for p in result.people}) == len(result.people), "duplicate id in population"

        for p in result.deceased:
            self.names.release(p.name)
        if self.retain_lineage:
            for p in result.deceased:
                self.archive[p.id] = p

        # 5. History and chronicle
        logs = deque(state.logs, maxlen=cfg.max_log_entries)
        history = deque(state.history, maxlen=cfg.max_history_points)
        self._record_year(logs, year, census.by_id, marriages, newborns, result)
        self.metrics.collect_yearly(history, year, len(result.people), result.food)

        # Readers only ever see the old state or the complete new one.
        self.state = SimulationState(
            people=result.people,
            food=result.food,
            year=year + 1,
            next_id=next_id,
            logs=logs,
            history=history,
        )
        self.logger.flush_year(year)

        self.last_report = TickReport(
            year=year,
            population_before=len(state.people),
            population_after=len(result.people),
            births=len(newborns),
            natural_deaths=len(result.natural_deaths),
            starved=len(result.starved),
            marriages=len(marriages),
            widowed=result.widowed,
            food_produced=result.produced,
            food_consumed=result.consumed,
        )

        self._ticks_since_save += 1
        if self.is_extinct or self._ticks_since_save >= cfg.save_interval:
            self.save()

    def _record_year(
        self,
        logs: deque,
        year: int,
        by_id: dict[int, Person],
        marriages: list[tuple[int, int]],
        newborns: list[Person],
        result: Resolution,
    ) -> None:
        if marriages:
            couples = [f"{by_id[g].name} & {by_id[b].name}" for b, g in marriages]
            self._chronicle(
                logs, SimLogger.MARRIAGE,
                _summary("Married", len(marriages), "couples", couples),
                year, [pid for pair in marriages for pid in pair],
            )
            self.metrics.record_marriages(len(marriages))
        if newborns:
            self._chronicle(
                logs, SimLogger.BIRTH,
                _summary("Born", len(newborns), "children", [p.name for p in newborns]),
                year, [p.id for p in newborns],
            )
            self.metrics.record_births(len(newborns))
        if result.natural_deaths:
            self._chronicle(
                logs, SimLogger.DEATH,
                _summary("Died", len(result.natural_deaths), "people",
                         [f"{p.name}({p.age})" for p in result.natural_deaths]),
                year, [p.id for p in result.natural_deaths],
            )
        if result.starved:
            self._chronicle(
                logs, SimLogger.FAMINE,
                _summary("Starved", len(result.starved), "people", [p.name for p in result.starved]),
                year, [p.id for p in result.starved],
            )
        self.metrics.record_deaths(len(result.deceased))
        if not result.people:
            self._chronicle(logs, SimLogger.LIFECYCLE, "Civilization has collapsed!", year)

    def _chronicle(
        self,
        logs: deque,
        category: str,
        message: str,
        year: int,
        person_ids: Optional[list[int]] = None,
    ) -> None:
        """Newest first; the deque's maxlen drops the oldest from the tail."""
        logs.appendleft(f"{format_year(year)}: {message}")
        self.logger.log(category, message, person_ids=person_ids, year=year)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        """Persistable state; ``allPeople`` holds the deceased as well as the living."""
        data = self.state.to_dict()
        if self.retain_lineage:
            data["allPeople"] = [p.to_dict() for p in self.archive.values()] + data["people"]
        return data

    def save(self) -> bool:
        """Flush the current state to the store, if one is attached."""
        self._ticks_since_save = 0
        if self.store is None:
            return False
        return self.store.save(self.snapshot())


def _summary(verb: str, count: int, noun: str, names: list[str]) -> str:
    line = f"{verb}: {count} {noun}"
    if count <= _MAX_NAMES_IN_LOG:
        line += f" ({', '.join(names)})"
    return line
