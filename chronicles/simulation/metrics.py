"""History points, demographic summaries, and export."""

from __future__ import annotations

import csv
import os
from collections import deque
from dataclasses import asdict, dataclass
from typing import Iterable, Optional, Sequence

from chronicles.agents.person import Gender, Person
from chronicles.core.clock import format_year
from chronicles.core.config import (
    ADULT_AGE,
    FOOD_STATUS_ABUNDANT,
    FOOD_STATUS_SCARCE,
    FOOD_STATUS_SUFFICIENT,
    PYRAMID_BIN_YEARS,
    PYRAMID_TOP_AGE,
    WORKER_MAX_AGE,
)


@dataclass(frozen=True)
class HistoryPoint:
    """State of the population at the end of one simulated year."""

    year: int
    population: int
    births: int
    food: float
    deaths: int = 0
    marriages: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryPoint":
        return cls(
            year=int(data["year"]),
            population=int(data["population"]),
            births=int(data["births"]),
            food=float(data["food"]),
            deaths=int(data.get("deaths", 0)),
            marriages=int(data.get("marriages", 0)),
        )


class MetricsCollector:
    """Counts one year's events and closes the year into a HistoryPoint."""

    def __init__(self) -> None:
        self._year_births: int = 0
        self._year_deaths: int = 0
        self._year_marriages: int = 0

    def record_births(self, n: int) -> None:
        self._year_births += n

    def record_deaths(self, n: int) -> None:
        self._year_deaths += n

    def record_marriages(self, n: int) -> None:
        self._year_marriages += n

    def collect_yearly(
        self,
        history: deque,
        year: int,
        population: int,
        food: float,
    ) -> HistoryPoint:
        """Append this year's point to the bounded history and reset counters."""
        point = HistoryPoint(
            year=year,
            population=population,
            births=self._year_births,
            food=food,
            deaths=self._year_deaths,
            marriages=self._year_marriages,
        )
        history.append(point)

        self._year_births = 0
        self._year_deaths = 0
        self._year_marriages = 0

        return point


# ------------------------------------------------------------------
# Demographic summaries
# ------------------------------------------------------------------

@dataclass
class DemographicSummary:
    population: int = 0
    males: int = 0
    females: int = 0
    children: int = 0
    workers: int = 0
    food_per_capita: float = 0.0
    food_status: str = "Famine"


def food_status(food: float, population: int) -> str:
    per_person = food / population if population > 0 else 0.0
    if per_person >= FOOD_STATUS_ABUNDANT:
        return "Abundant"
    if per_person >= FOOD_STATUS_SUFFICIENT:
        return "Sufficient"
    if per_person >= FOOD_STATUS_SCARCE:
        return "Scarce"
    return "Famine"


def summarize(people: Sequence[Person], food: float) -> DemographicSummary:
    n = len(people)
    return DemographicSummary(
        population=n,
        males=sum(1 for p in people if p.gender is Gender.MALE),
        females=sum(1 for p in people if p.gender is Gender.FEMALE),
        children=sum(1 for p in people if p.age < ADULT_AGE),
        workers=sum(1 for p in people if ADULT_AGE <= p.age <= WORKER_MAX_AGE),
        food_per_capita=food / n if n > 0 else 0.0,
        food_status=food_status(food, n),
    )


def age_pyramid(people: Iterable[Person]) -> list[tuple[str, int, int]]:
    """(label, males, females) per age bin, youngest first."""
    edges = list(range(0, PYRAMID_TOP_AGE, PYRAMID_BIN_YEARS))
    labels = [f"{lo}-{lo + PYRAMID_BIN_YEARS - 1}" for lo in edges] + [f"{PYRAMID_TOP_AGE}+"]
    males = [0] * len(labels)
    females = [0] * len(labels)
    for p in people:
        idx = min(p.age // PYRAMID_BIN_YEARS, len(labels) - 1)
        if p.gender is Gender.MALE:
            males[idx] += 1
        else:
            females[idx] += 1
    return list(zip(labels, males, females))


# ------------------------------------------------------------------
# Export & reporting
# ------------------------------------------------------------------

def export_csv(history: Iterable[HistoryPoint], filepath: str) -> None:
    """Export history points to CSV."""
    os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
    with open(filepath, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["year", "population", "births", "deaths", "marriages", "food"])
        for h in history:
            writer.writerow([h.year, h.population, h.births, h.deaths, h.marriages, f"{h.food:.1f}"])


def summary_report(
    history: Sequence[HistoryPoint],
    start_year: Optional[int] = None,
    end_year: Optional[int] = None,
) -> str:
    """Generate a human-readable summary of the recorded period."""
    relevant = [
        h for h in history
        if (start_year is None or h.year >= start_year)
        and (end_year is None or h.year <= end_year)
    ]
    if not relevant:
        return "No data available for the specified period."

    first = relevant[0]
    last = relevant[-1]
    peak = max(relevant, key=lambda h: h.population)

    lines = [
        f"=== Chronicle Summary: {format_year(first.year)} to {format_year(last.year)} ===",
        f"Duration: {last.year - first.year + 1} years",
        f"",
        f"Population: {first.population} -> {last.population}",
        f"  Peak: {peak.population} ({format_year(peak.year)})",
        f"  Total births: {sum(h.births for h in relevant)}",
        f"  Total deaths: {sum(h.deaths for h in relevant)}",
        f"  Total marriages: {sum(h.marriages for h in relevant)}",
        f"",
        f"Granary:",
        f"  Final food: {last.food:.0f}",
        f"  Food status: {food_status(last.food, last.population)}",
    ]
    famine_years = sum(1 for h in relevant if h.food <= 0 and h.population > 0)
    if famine_years:
        lines.append(f"  Years with an empty granary: {famine_years}")
    if last.population == 0:
        lines.append(f"")
        lines.append(f"Civilization collapsed in {format_year(last.year)}.")

    return "\n".join(lines)
