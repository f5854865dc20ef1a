# world3/model/sectors/agriculture.py
"""
Agriculture sector: land development, erosion, yield and food.

Arable land grows by developing potentially arable land (paid for with
industrial output) and shrinks by erosion, which worsens with intensive
farming. Yield rises with agricultural inputs and falls with pollution.

The share of industrial output sent to agriculture responds to food
pressure. Food itself is an output of this sector, so the pressure signal
uses *potential* food per capita (land x base yield x technology, no
capital inputs), which only needs stocks.
"""
from __future__ import annotations

from dataclasses import dataclass

from world3.lookup.tables import WorldLookupTables
from world3.model.params import ScenarioParams
from world3.model.sectors.pollution import pollution_index_of
from world3.model.state import AgricultureState, CapitalState, WorldState, total_population

LAND_YIELD_1900 = 600.0                 # [kg / ha / yr]
TOTAL_POTENTIALLY_ARABLE_LAND = 3.2e9   # [ha]
LAND_DEVELOPMENT_TIME = 10.0            # [yr]
DEVELOPMENT_SHARE = 0.1                 # of agricultural investment
LAND_EROSION_RATE = 0.002               # [yr^-1] at multiplier 1
MAX_LAND_PROTECTION = 0.5


@dataclass(frozen=True)
class AgricultureRates:
    arable_land: float
    potentially_arable_land: float


def food_pressure(stocks: WorldState, params: ScenarioParams) -> float:
    pop = max(total_population(stocks), 1.0)
    arable = max(stocks.agriculture.arable_land, 0.0)
    potential_fpc = arable * LAND_YIELD_1900 * params.agricultural_technology / pop
    return potential_fpc / params.subsistence_food_per_capita


def fraction_to_agriculture(
    stocks: WorldState, params: ScenarioParams, tables: WorldLookupTables
) -> float:
    return tables.industrial_fraction_to_agriculture.evaluate(food_pressure(stocks, params))


def auxiliaries(
    stocks: WorldState,
    capital: CapitalState,
    params: ScenarioParams,
    tables: WorldLookupTables,
) -> AgricultureState:
    pop = max(total_population(stocks), 1.0)
    arable = max(stocks.agriculture.arable_land, 1.0)

    inputs = capital.industrial_output * fraction_to_agriculture(stocks, params, tables)
    inputs_per_ha = inputs / arable

    capital_mult = tables.land_yield_multiplier_capital.evaluate(inputs_per_ha)
    pollution_mult = tables.land_yield_multiplier_pollution.evaluate(
        pollution_index_of(stocks.pollution.persistent_pollution)
    )
    land_yield = LAND_YIELD_1900 * capital_mult * pollution_mult * params.agricultural_technology

    food = max(stocks.agriculture.arable_land, 0.0) * land_yield

    return AgricultureState(
        arable_land=stocks.agriculture.arable_land,
        potentially_arable_land=stocks.agriculture.potentially_arable_land,
        food=food,
        food_per_capita=food / pop,
        land_yield=land_yield,
        agricultural_inputs_per_hectare=inputs_per_ha,
    )


def development_rate(
    world: WorldState, params: ScenarioParams, tables: WorldLookupTables
) -> float:
    """Hectares per year moved from potentially arable to arable land."""
    pal = max(world.agriculture.potentially_arable_land, 0.0)
    if pal <= 0.0:
        return 0.0

    developed = 1.0 - pal / TOTAL_POTENTIALLY_ARABLE_LAND
    cost_per_ha = tables.land_development_cost.evaluate(min(max(developed, 0.0), 1.0))

    investment = (
        world.capital.industrial_output
        * fraction_to_agriculture(world, params, tables)
        * DEVELOPMENT_SHARE
    )
    desired = investment / max(cost_per_ha, 1.0) / LAND_DEVELOPMENT_TIME
    return min(desired, pal / LAND_DEVELOPMENT_TIME)


def erosion_rate(world: WorldState, params: ScenarioParams, tables: WorldLookupTables) -> float:
    a = world.agriculture
    intensity = tables.land_erosion_multiplier.evaluate(a.land_yield / LAND_YIELD_1900)
    protection = min(max(params.land_protection_fraction, 0.0), MAX_LAND_PROTECTION)
    return max(a.arable_land, 0.0) * LAND_EROSION_RATE * intensity * (1.0 - protection)


def rates(world: WorldState, params: ScenarioParams, tables: WorldLookupTables) -> AgricultureRates:
    development = development_rate(world, params, tables)
    erosion = erosion_rate(world, params, tables)

    return AgricultureRates(
        arable_land=development - erosion,
        potentially_arable_land=-development,
    )
