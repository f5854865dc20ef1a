# world3/model/sectors/population.py
"""
Population sector: four age cohorts.

    0-14 -> 15-44 -> 45-64 -> 65+

Births come from the fertile cohort (15-44), each cohort ages into the next
after its duration, and every cohort dies at a base rate 1/LE scaled by an
age-specific multiplier. Life expectancy responds to food, health services,
crowding and pollution; fertility to income, family planning and food.

This sector runs last, so it may read every other sector of the pass.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from world3.lookup.tables import WorldLookupTables
from world3.model.params import ScenarioParams
from world3.model.state import (
    AgricultureState,
    CapitalState,
    PollutionState,
    PopulationState,
    WorldState,
    total_population,
)

BASE_LIFE_EXPECTANCY = 20.0  # [yr] before multipliers
POP_REFERENCE = 3.6e9        # 1970, for the crowding multiplier

COHORT_DURATIONS = (15.0, 30.0, 20.0)     # years spent in 0-14, 15-44, 45-64
MORTALITY_MULTIPLIERS = (0.8, 0.5, 1.0, 3.0)
FERTILE_FEMALE_SHARE = 0.5
REPRODUCTIVE_YEARS = 30.0

LIFE_EXPECTANCY_BOUNDS = (5.0, 85.0)
FERTILITY_BOUNDS = (0.5, 8.0)
FAMILY_PLANNING_START_YEAR = 1900.0


@dataclass(frozen=True)
class PopulationRates:
    cohort_0_14: float
    cohort_15_44: float
    cohort_45_64: float
    cohort_65_plus: float


def _clamp(value: float, bounds: Tuple[float, float]) -> float:
    lo, hi = bounds
    return min(max(value, lo), hi)


def family_planning_ramp(time: float, params: ScenarioParams) -> float:
    """0 at 1900 rising linearly to 1 at family_planning_year."""
    span = params.family_planning_year - FAMILY_PLANNING_START_YEAR
    if span <= 0.0:
        return 1.0
    return _clamp((time - FAMILY_PLANNING_START_YEAR) / span, (0.0, 1.0))


def cohort_deaths(p: PopulationState, life_expectancy: float) -> Tuple[float, float, float, float]:
    base = 1.0 / max(life_expectancy, 1.0)
    cohorts = (p.cohort_0_14, p.cohort_15_44, p.cohort_45_64, p.cohort_65_plus)
    return tuple(max(c, 0.0) * base * m for c, m in zip(cohorts, MORTALITY_MULTIPLIERS))


def auxiliaries(
    stocks: WorldState,
    capital: CapitalState,
    agriculture: AgricultureState,
    pollution: PollutionState,
    params: ScenarioParams,
    tables: WorldLookupTables,
) -> PopulationState:
    p = stocks.population
    total = total_population(stocks)
    pop = max(total, 1.0)

    food_ratio = agriculture.food_per_capita / params.subsistence_food_per_capita
    health = capital.service_output_per_capita * params.health_investment_multiplier

    life_expectancy = _clamp(
        BASE_LIFE_EXPECTANCY
        * tables.life_exp_multiplier_food.evaluate(food_ratio)
        * tables.life_exp_multiplier_health.evaluate(health)
        * tables.life_exp_multiplier_crowding.evaluate(pop / POP_REFERENCE)
        * tables.life_exp_multiplier_pollution.evaluate(pollution.pollution_index),
        LIFE_EXPECTANCY_BOUNDS,
    )

    effective_fp = params.family_planning_efficacy * family_planning_ramp(stocks.time, params)
    fertility = (
        tables.desired_family_size.evaluate(capital.industrial_output_per_capita)
        * tables.family_planning_multiplier.evaluate(effective_fp)
        * tables.food_fertility_multiplier.evaluate(food_ratio)
    )

    # births use the raw fertility; the stored rate is clamped for display
    births = FERTILE_FEMALE_SHARE * max(p.cohort_15_44, 0.0) * fertility / REPRODUCTIVE_YEARS
    deaths = sum(cohort_deaths(p, life_expectancy))

    return PopulationState(
        population=total,
        cohort_0_14=p.cohort_0_14,
        cohort_15_44=p.cohort_15_44,
        cohort_45_64=p.cohort_45_64,
        cohort_65_plus=p.cohort_65_plus,
        birth_rate=births / pop,
        death_rate=deaths / pop,
        life_expectancy=life_expectancy,
        fertility_rate=_clamp(fertility, FERTILITY_BOUNDS),
    )


def rates(world: WorldState, params: ScenarioParams, tables: WorldLookupTables) -> PopulationRates:
    p = world.population
    births = p.birth_rate * max(total_population(world), 1.0)
    d0, d1, d2, d3 = cohort_deaths(p, p.life_expectancy)

    young, fertile, middle = (max(p.cohort_0_14, 0.0), max(p.cohort_15_44, 0.0),
                              max(p.cohort_45_64, 0.0))
    m0 = young / COHORT_DURATIONS[0]
    m1 = fertile / COHORT_DURATIONS[1]
    m2 = middle / COHORT_DURATIONS[2]

    return PopulationRates(
        cohort_0_14=births - d0 - m0,
        cohort_15_44=m0 - d1 - m1,
        cohort_45_64=m1 - d2 - m2,
        cohort_65_plus=m2 - d3,
    )
