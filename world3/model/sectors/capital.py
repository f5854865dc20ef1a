# world3/model/sectors/capital.py
"""
Industrial and service capital sector.

Capital grows through investment (a fraction of industrial output) and
declines through depreciation. As non-renewable resources deplete, the
capital-output ratio rises and more capital is diverted to extraction,
reducing effective production. Reference year for normalizations: 1970.
"""
from __future__ import annotations

from dataclasses import dataclass

from world3.lookup.tables import WorldLookupTables
from world3.model.params import ScenarioParams
from world3.model.state import CapitalState, ResourceState, WorldState, total_population

ICOR_1970 = 3.0        # industrial capital-output ratio [yr]
SCOR_1970 = 1.0        # service capital-output ratio [yr]
POP_REFERENCE = 3.6e9  # 1970 world population
TECHNOLOGY_BASE_YEAR = 1970.0
MAX_EXTRACTION_FRACTION = 0.95


@dataclass(frozen=True)
class CapitalRates:
    industrial_capital: float
    service_capital: float


def industrial_output(
    stocks: WorldState,
    resources: ResourceState,
    params: ScenarioParams,
    tables: WorldLookupTables,
) -> float:
    fr = resources.fraction_remaining

    icor = ICOR_1970 * tables.capital_output_ratio_resources.evaluate(fr)

    # output per unit capital improves after 1970
    tech_years = max(stocks.time - TECHNOLOGY_BASE_YEAR, 0.0)
    tech_multiplier = (1.0 + params.technology_growth_rate) ** tech_years

    extraction = tables.capital_fraction_resource_extraction.evaluate(fr)
    extraction = min(max(extraction, 0.0), MAX_EXTRACTION_FRACTION)

    productive = stocks.capital.industrial_capital * (1.0 - extraction) * tech_multiplier
    return max(productive / icor, 0.0)


def auxiliaries(
    stocks: WorldState,
    resources: ResourceState,
    params: ScenarioParams,
    tables: WorldLookupTables,
) -> CapitalState:
    pop = max(total_population(stocks), 1.0)
    io = industrial_output(stocks, resources, params, tables)
    service_output = max(stocks.capital.service_capital / SCOR_1970, 0.0)

    return CapitalState(
        industrial_capital=stocks.capital.industrial_capital,
        service_capital=stocks.capital.service_capital,
        industrial_output=io,
        industrial_output_per_capita=io / pop,
        service_output_per_capita=service_output / pop,
    )


def fraction_to_services(capital: CapitalState, tables: WorldLookupTables) -> float:
    # services per capita relative to industrial output per 1970 person
    normalized = capital.service_output_per_capita / max(
        capital.industrial_output / POP_REFERENCE, 1e-9
    )
    return tables.industrial_fraction_to_services.evaluate(normalized)


def rates(world: WorldState, params: ScenarioParams, tables: WorldLookupTables) -> CapitalRates:
    c = world.capital
    io = c.industrial_output

    investment = io * params.investment_rate
    service_investment = io * fraction_to_services(c, tables)

    return CapitalRates(
        industrial_capital=investment - c.industrial_capital * params.industrial_depreciation_rate,
        service_capital=service_investment - c.service_capital * params.service_depreciation_rate,
    )
