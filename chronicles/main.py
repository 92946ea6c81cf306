"""Entry point for the population chronicle simulation."""

from __future__ import annotations

import argparse
import os
import time


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Chronicles: a yearly population simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--years", type=int, default=500, help="Number of years to simulate")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument("--couples", type=int, default=None, help="Founding couples (default from config)")
    parser.add_argument("--food", type=float, default=None, help="Starting food (default from config)")
    parser.add_argument("--verbosity", type=int, default=0, choices=[0, 1], help="Log verbosity level")
    parser.add_argument("--output-dir", type=str, default="results", help="Output directory for results")
    parser.add_argument("--save-dir", type=str, default=None, help="Directory of the save store; enables resume")
    parser.add_argument("--fresh", action="store_true", help="Ignore and clear any existing save")
    parser.add_argument("--realtime", action="store_true", help="Tick on a wall-clock timer instead of flat out")
    parser.add_argument("--speed", type=float, default=1.0, help="Speed multiplier in realtime mode")
    parser.add_argument("--no-plots", action="store_true", help="Skip the PNG reports")

    args = parser.parse_args()

    # Import here to allow --help without loading everything
    from dataclasses import replace

    from chronicles.agents.mortality import life_expectancy
    from chronicles.core.clock import format_year
    from chronicles.core.config import DEFAULT_CONFIG
    from chronicles.simulation.driver import SimulationDriver
    from chronicles.simulation.engine import SimulationEngine
    from chronicles.simulation.metrics import export_csv, summarize, summary_report
    from chronicles.simulation.persistence import JsonFileStore
    from chronicles.viz.logger import SimLogger

    overrides = {}
    if args.couples is not None:
        overrides["initial_couples"] = args.couples
    if args.food is not None:
        overrides["initial_food"] = args.food
    config = replace(DEFAULT_CONFIG, **overrides)

    logger = SimLogger(
        verbosity=args.verbosity,
        log_file=os.path.join(args.output_dir, "simulation.log"),
        stdout=(args.verbosity > 0),
    )
    store = JsonFileStore(args.save_dir, logger=logger) if args.save_dir else None

    print("=== Chronicles: A History of Mankind ===")
    print(f"Couples: {config.initial_couples} | Years: {args.years} | Seed: {args.seed}")
    print(f"Implied life expectancy at birth: {life_expectancy(config):.1f} years")
    print(f"Output: {args.output_dir}")
    print()

    engine = SimulationEngine(seed=args.seed, config=config, store=store, logger=logger)
    if args.fresh:
        engine.reset()
    else:
        engine.initialize()
    start_year = engine.year
    print(f"Starting in {format_year(start_year)} with {len(engine.people)} people")

    t0 = time.time()
    try:
        if args.realtime:
            _run_realtime(engine, SimulationDriver(engine, speed=args.speed), args.years)
        else:
            engine.run(args.years)
            engine.save()
    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")
        engine.save()

    elapsed = time.time() - t0
    years_run = engine.year - start_year
    print(f"\nSimulation complete: {years_run} years in {elapsed:.2f}s ({years_run / max(0.01, elapsed):.0f} years/sec)")

    os.makedirs(args.output_dir, exist_ok=True)
    csv_path = os.path.join(args.output_dir, "history.csv")
    export_csv(engine.history, csv_path)
    print(f"History exported to {csv_path}")

    if not args.no_plots:
        try:
            from chronicles.viz.dashboard import Dashboard
            Dashboard.comprehensive_report(engine.history, engine.people, engine.food, args.output_dir)
        except Exception as e:
            print(f"Could not generate plots: {e}")

    print()
    print(summary_report(engine.history))
    summary = summarize(engine.people, engine.food)
    print(f"  Men: {summary.males} | Women: {summary.females} | Children: {summary.children} | Laborers: {summary.workers}")
    print()
    print("Chronicle (most recent first):")
    for line in engine.logs[:10]:
        print(f"  {line}")

    logger.export_json(os.path.join(args.output_dir, "events.json"))
    logger.close()

    print(f"\nAll results saved to {args.output_dir}/")


def _run_realtime(engine, driver, years: int) -> None:
    """Tick on the driver's timer until ``years`` have passed or everyone is gone."""
    target = engine.year + years
    driver.set_tick_callback(
        lambda e: print(f"  Year {e.year:>6} | Pop: {len(e.people):>5} | Food: {e.food:>8.0f}")
    )
    driver.play()
    try:
        while driver.is_running and engine.year < target:
            time.sleep(min(0.1, driver.interval))
    finally:
        driver.close()


if __name__ == "__main__":
    main()
