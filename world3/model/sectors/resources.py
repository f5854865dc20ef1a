# world3/model/sectors/resources.py
"""
Non-renewable resource sector.

Resources are depleted by industrial activity. As the fraction remaining
falls, capital sector multipliers (capital-output ratio, capital diverted to
extraction) rise; those tables are read by capital.py, not here.
"""
from __future__ import annotations

from dataclasses import dataclass

from world3.lookup.tables import WorldLookupTables
from world3.model.params import ScenarioParams
from world3.model.state import ResourceState, WorldState, total_population

# [NR fraction / (person x USD/person/yr x yr)]
# 1970: 3.3e9 x 210 x 4.5e-15 = 3.1e-3 NR/yr; BAU has ~60% left in 2050, ~50% in 2100
RESOURCE_DEPLETION_COEFF = 4.5e-15


@dataclass(frozen=True)
class ResourceRates:
    nonrenewable_resources: float


def auxiliaries(stocks: WorldState) -> ResourceState:
    nr = stocks.resources.nonrenewable_resources
    return ResourceState(
        nonrenewable_resources=nr,
        fraction_remaining=min(max(nr, 0.0), 1.0),
    )


def usage_rate(world: WorldState, params: ScenarioParams) -> float:
    """Extraction = POP x IOPC x coeff / efficiency  [NR / yr]."""
    pop = total_population(world)
    if pop <= 0.0:
        return 0.0
    iopc = max(world.capital.industrial_output_per_capita, 0.0)
    return pop * iopc * RESOURCE_DEPLETION_COEFF / params.resource_efficiency


def rates(world: WorldState, params: ScenarioParams, tables: WorldLookupTables) -> ResourceRates:
    # resources are consumed, never replenished
    return ResourceRates(nonrenewable_resources=-usage_rate(world, params))
