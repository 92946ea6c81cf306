"""Age-dependent yearly death probability.

Flat infant and child rates, then a Gompertz curve for adults:

    p(age) = A * exp(B * (age - C))

clamped to MAX_DEATH_PROBABILITY so it stays a usable probability.
"""

from __future__ import annotations

import math

from chronicles.core.config import DEFAULT_CONFIG, SimulationConfig


def gompertz(age: float, a: float, b: float, c: float) -> float:
    return a * math.exp(b * (age - c))


def death_probability(age: int, config: SimulationConfig = DEFAULT_CONFIG) -> float:
    """Probability that a person of this age dies during the coming year."""
    if age < config.infant_age_limit:
        return config.infant_mortality_rate
    if age < config.adult_age:
        return config.child_mortality_rate
    p = gompertz(age, config.gompertz_a, config.gompertz_b, config.gompertz_c)
    return min(config.max_death_probability, p)


def life_expectancy(config: SimulationConfig = DEFAULT_CONFIG, max_age: int = 150) -> float:
    """Expected lifespan at birth implied by the curve."""
    alive = 1.0
    expected = 0.0
    for age in range(max_age):
        p = death_probability(age, config)
        expected += alive * p * age
        alive *= 1.0 - p
    return expected + alive * max_age
