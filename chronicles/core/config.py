"""All tunable constants for the population simulation.

Every magic number in the codebase must reference this file.
"""

from __future__ import annotations

from dataclasses import dataclass

# =============================================================================
# INITIAL CONDITIONS
# =============================================================================
INITIAL_YEAR: int = -8000       # negative years are BC
INITIAL_COUPLES: int = 100
INITIAL_FOOD: float = 2000.0
INITIAL_AGE: int = 15

# =============================================================================
# MORTALITY (Gompertz)
# =============================================================================
# mu(age) = A * exp(B * (age - C)), tuned for ~60 year pre-modern lifespans
GOMPERTZ_A: float = 0.003
GOMPERTZ_B: float = 0.08
GOMPERTZ_C: float = 15.0
INFANT_AGE_LIMIT: int = 5               # ages below this use the infant rate
INFANT_MORTALITY_RATE: float = 0.05
CHILD_MORTALITY_RATE: float = 0.01
MAX_DEATH_PROBABILITY: float = 0.95

# =============================================================================
# POPULATION MECHANICS
# =============================================================================
ADULT_AGE: int = 15
WORKER_MAX_AGE: int = 49
FERTILITY_MIN_AGE: int = 15
FERTILITY_MAX_AGE: int = 30
FERTILITY_RATE: float = 0.3     # yearly chance of a birth per fertile couple
MARRIAGE_RATE: float = 0.5      # yearly chance an unmarried woman seeks a match

# =============================================================================
# FOOD & ECONOMY
# =============================================================================
FOOD_PER_WORKER: float = 10.0
FOOD_PER_PERSON: float = 1.0
STARVATION_DIVISOR: float = 5.0

# Food per person thresholds for the status label
FOOD_STATUS_ABUNDANT: float = 20.0
FOOD_STATUS_SUFFICIENT: float = 10.0
FOOD_STATUS_SCARCE: float = 5.0

# =============================================================================
# HISTORY & CHRONICLE
# =============================================================================
MAX_LOG_ENTRIES: int = 50
MAX_HISTORY_POINTS: int = 1000
PYRAMID_BIN_YEARS: int = 10
PYRAMID_TOP_AGE: int = 60       # everyone at or above lands in the last bin

# =============================================================================
# STORAGE
# =============================================================================
STORAGE_KEY: str = "chronicles-save"
SAVE_VERSION: int = 1
SAVE_INTERVAL: int = 10         # ticks between periodic saves
VALIDATION_SAMPLE_SIZE: int = 100

# =============================================================================
# DRIVER
# =============================================================================
BASE_TICK_INTERVAL: float = 1.0   # seconds per tick at speed 1
SPEED_OPTIONS: tuple[float, ...] = (1.0, 2.0, 5.0, 10.0)


@dataclass(frozen=True)
class SimulationConfig:
    """Tick tunables, defaulting to the module constants above."""

    initial_year: int = INITIAL_YEAR
    initial_couples: int = INITIAL_COUPLES
    initial_food: float = INITIAL_FOOD
    initial_age: int = INITIAL_AGE

    gompertz_a: float = GOMPERTZ_A
    gompertz_b: float = GOMPERTZ_B
    gompertz_c: float = GOMPERTZ_C
    infant_age_limit: int = INFANT_AGE_LIMIT
    infant_mortality_rate: float = INFANT_MORTALITY_RATE
    child_mortality_rate: float = CHILD_MORTALITY_RATE
    max_death_probability: float = MAX_DEATH_PROBABILITY

    adult_age: int = ADULT_AGE
    worker_max_age: int = WORKER_MAX_AGE
    fertility_min_age: int = FERTILITY_MIN_AGE
    fertility_max_age: int = FERTILITY_MAX_AGE
    fertility_rate: float = FERTILITY_RATE
    marriage_rate: float = MARRIAGE_RATE

    food_per_worker: float = FOOD_PER_WORKER
    food_per_person: float = FOOD_PER_PERSON
    starvation_divisor: float = STARVATION_DIVISOR

    max_log_entries: int = MAX_LOG_ENTRIES
    max_history_points: int = MAX_HISTORY_POINTS
    save_interval: int = SAVE_INTERVAL


DEFAULT_CONFIG = SimulationConfig()
