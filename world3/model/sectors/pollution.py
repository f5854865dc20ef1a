# world3/model/sectors/pollution.py
"""
Persistent pollution sector.

Generation comes from industry (rising with output per capita) and from
agricultural inputs, reduced by pollution control. Assimilation is
first-order with a time constant that lengthens as the index rises, so
heavy pollution clears ever more slowly.

Units: 1 pollution unit == the 1970 stock, so the index is the stock itself.
"""
from __future__ import annotations

from dataclasses import dataclass

from world3.lookup.tables import WorldLookupTables
from world3.model.params import ScenarioParams
from world3.model.state import AgricultureState, CapitalState, PollutionState, WorldState

POLLUTION_1970 = 1.0
IOPC_1970 = 300.0       # [1975 USD / person / yr]
INPUTS_PER_HA_1970 = 100.0

INDUSTRIAL_INTENSITY = 5.0e-14    # [units / 1975 USD]
AGRICULTURAL_INTENSITY = 1.0e-13  # [units / 1975 USD of inputs]


@dataclass(frozen=True)
class PollutionRates:
    persistent_pollution: float


def pollution_index_of(persistent_pollution: float) -> float:
    return max(persistent_pollution, 0.0) / POLLUTION_1970


def auxiliaries(
    stocks: WorldState,
    capital: CapitalState,
    agriculture: AgricultureState,
    params: ScenarioParams,
    tables: WorldLookupTables,
) -> PollutionState:
    pp = stocks.pollution.persistent_pollution
    index = pollution_index_of(pp)

    industrial = (
        capital.industrial_output
        * INDUSTRIAL_INTENSITY
        * tables.pollution_generation_industry.evaluate(
            capital.industrial_output_per_capita / IOPC_1970
        )
    )

    inputs_total = agriculture.agricultural_inputs_per_hectare * max(agriculture.arable_land, 1.0)
    agricultural = (
        inputs_total
        * AGRICULTURAL_INTENSITY
        * tables.pollution_generation_agriculture.evaluate(
            agriculture.agricultural_inputs_per_hectare / INPUTS_PER_HA_1970
        )
    )

    generation = (industrial + agricultural) * (1.0 - params.pollution_control)
    assimilation = max(pp, 0.0) / tables.pollution_assimilation_time.evaluate(index)

    return PollutionState(
        persistent_pollution=pp,
        pollution_index=index,
        generation_rate=generation,
        assimilation_rate=assimilation,
    )


def rates(world: WorldState, params: ScenarioParams, tables: WorldLookupTables) -> PollutionRates:
    p = world.pollution
    return PollutionRates(persistent_pollution=p.generation_rate - p.assimilation_rate)
