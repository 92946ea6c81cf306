"""Batch analysis: many seeded chronicles, summarized side by side."""

from __future__ import annotations

import csv
import os
import statistics
import time
from dataclasses import astuple, dataclass, fields, replace

import numpy as np

from chronicles.core.clock import years_between
from chronicles.core.config import DEFAULT_CONFIG, SimulationConfig


@dataclass
class RunResult:
    """Outcome of one seeded chronicle."""
    seed: int
    final_population: int
    total_births: int
    total_deaths: int
    total_marriages: int
    peak_population: int
    min_population: int
    extinction_year: int  # years survived before collapse, or -1
    final_food_per_capita: float
    elapsed_seconds: float

    @property
    def survived(self) -> bool:
        return self.extinction_year < 0


@dataclass(frozen=True)
class Spread:
    mean: float
    median: float
    std: float
    low: float
    high: float

    @classmethod
    def of(cls, values: list[float]) -> "Spread":
        return cls(
            mean=statistics.mean(values),
            median=statistics.median(values),
            std=statistics.stdev(values) if len(values) > 1 else 0.0,
            low=min(values),
            high=max(values),
        )

    def describe(self, fmt: str = ".1f") -> str:
        return (f"mean={self.mean:{fmt}}  median={self.median:{fmt}}  std={self.std:{fmt}}  "
                f"range={self.low:{fmt}}..{self.high:{fmt}}")


# Columns summarized across runs, with their display labels.
_AGGREGATED = {
    "final_population": "Final population",
    "peak_population": "Peak population",
    "min_population": "Min population",
    "total_births": "Total births",
    "total_deaths": "Total deaths",
    "total_marriages": "Total marriages",
    "final_food_per_capita": "Final food/capita",
}


def run_single(seed: int, years: int, config: SimulationConfig = DEFAULT_CONFIG) -> RunResult:
    """Run one chronicle without a store and condense its history."""
    from chronicles.simulation.engine import SimulationEngine

    # History is sized to hold the whole run so totals cover every year.
    engine = SimulationEngine(seed=seed, config=replace(config, max_history_points=max(1, years)))
    engine.initialize()
    start_year = engine.year

    t0 = time.time()
    engine.run(years)
    elapsed = time.time() - t0

    history = engine.history
    last = history[-1] if history else None
    founders = config.initial_couples * 2

    extinction_year = -1
    if engine.is_extinct and last is not None:
        extinction_year = years_between(start_year, last.year) + 1

    population = last.population if last else founders
    return RunResult(
        seed=seed,
        final_population=population,
        total_births=sum(h.births for h in history),
        total_deaths=sum(h.deaths for h in history),
        total_marriages=sum(h.marriages for h in history),
        peak_population=max((h.population for h in history), default=founders),
        min_population=min((h.population for h in history), default=founders),
        extinction_year=extinction_year,
        final_food_per_capita=(last.food / population) if last and population else 0.0,
        elapsed_seconds=elapsed,
    )


def aggregate(results: list[RunResult]) -> dict[str, Spread]:
    """Spread of each summarized column across all runs."""
    if not results:
        return {}
    return {
        name: Spread.of([getattr(r, name) for r in results])
        for name in _AGGREGATED
    }


def format_aggregate(results: list[RunResult]) -> str:
    spreads = aggregate(results)
    if not spreads:
        return "No runs to summarize."

    lines = ["AGGREGATE RESULTS", "-" * 70]
    for name, label in _AGGREGATED.items():
        fmt = ".2f" if name == "final_food_per_capita" else ".1f"
        lines.append(f"  {label:<20s} {spreads[name].describe(fmt)}")

    collapsed = [r.extinction_year for r in results if not r.survived]
    lines.append(f"  Extinction rate: {len(collapsed)}/{len(results)} "
                 f"({len(collapsed) / len(results) * 100:.0f}%)")
    if collapsed:
        lines.append(f"  Collapse after: avg {statistics.mean(collapsed):.0f} years "
                     f"(range {min(collapsed)}-{max(collapsed)})")
    return "\n".join(lines)


def write_results(results: list[RunResult], csv_path: str) -> None:
    """One row per run, columns in RunResult field order."""
    with open(csv_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([f.name for f in fields(RunResult)])
        for r in results:
            writer.writerow(astuple(r))


def monte_carlo(
    n_runs: int = 20,
    years: int = 300,
    config: SimulationConfig = DEFAULT_CONFIG,
    output_dir: str = "results/monte_carlo",
) -> list[RunResult]:
    """Run N chronicles with generated seeds, print the spread, export a CSV."""
    os.makedirs(output_dir, exist_ok=True)
    rng = np.random.default_rng(0)
    seeds = [int(s) for s in rng.integers(0, 100_000, size=n_runs)]

    print(f"=== Monte Carlo: {n_runs} chronicles x {years} years, "
          f"{config.initial_couples} founding couples ===")

    results: list[RunResult] = []
    t0 = time.time()
    for i, seed in enumerate(seeds, start=1):
        result = run_single(seed, years, config)
        results.append(result)
        outcome = "survived" if result.survived else f"collapsed after {result.extinction_year}y"
        print(f"  [{i:>3}/{n_runs}] seed={seed:>5}  pop={result.final_population:>5}  "
              f"peak={result.peak_population:>5}  {outcome}")
    print(f"Finished in {time.time() - t0:.1f}s\n")

    print(format_aggregate(results))

    csv_path = os.path.join(output_dir, "monte_carlo_results.csv")
    write_results(results, csv_path)
    print(f"\nResults exported to {csv_path}")

    return results


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Batch analysis of seeded chronicles")
    parser.add_argument("--runs", type=int, default=20, help="Number of chronicles")
    parser.add_argument("--years", type=int, default=300, help="Years per chronicle")
    parser.add_argument("--couples", type=int, default=DEFAULT_CONFIG.initial_couples, help="Founding couples")
    parser.add_argument("--output-dir", type=str, default="results/monte_carlo")
    args = parser.parse_args()

    monte_carlo(
        n_runs=args.runs,
        years=args.years,
        config=replace(DEFAULT_CONFIG, initial_couples=args.couples),
        output_dir=args.output_dir,
    )
