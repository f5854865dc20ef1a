# world3/model/derivatives.py
"""
Derivative evaluator f(t, y, params) -> dy/dt.

Two pure passes over a WorldState:

1. compute_auxiliaries(): sectors run in SECTOR_ORDER; each reads the stocks
   of any sector plus the auxiliaries of sectors earlier in the order.
2. stock_rates(): every sector turns the completed auxiliary record into
   the rates of its own stocks.

Both passes only read their inputs, so the same (state, params, tables)
always produces bit-identical derivatives. The RK4 stages rely on that.
"""
from __future__ import annotations

from dataclasses import astuple, dataclass

import numpy as np

from world3.lookup.tables import WorldLookupTables
from world3.model.params import ScenarioParams
from world3.model.sectors import agriculture, capital, pollution, population, resources
from world3.model.state import WorldState

SECTOR_ORDER = ("resources", "capital", "agriculture", "pollution", "population")


@dataclass(frozen=True)
class StockDerivatives:
    """dy/dt for the ten stocks; fields mirror STOCK_FIELDS order."""

    cohort_0_14: float
    cohort_15_44: float
    cohort_45_64: float
    cohort_65_plus: float
    industrial_capital: float
    service_capital: float
    arable_land: float
    potentially_arable_land: float
    nonrenewable_resources: float
    persistent_pollution: float

    def to_flat(self) -> np.ndarray:
        return np.array(astuple(self), dtype=float)


def compute_auxiliaries(
    state: WorldState, params: ScenarioParams, tables: WorldLookupTables
) -> WorldState:
    """
    Fill every auxiliary field of `state` from its stocks.

    Stored auxiliaries on the input are ignored, so the result is a pure
    function of (time, stocks, params, tables).
    """
    res = resources.auxiliaries(state)
    cap = capital.auxiliaries(state, res, params, tables)
    agr = agriculture.auxiliaries(state, cap, params, tables)
    pol = pollution.auxiliaries(state, cap, agr, params, tables)
    pop = population.auxiliaries(state, cap, agr, pol, params, tables)

    return WorldState(
        time=state.time,
        population=pop,
        capital=cap,
        agriculture=agr,
        resources=res,
        pollution=pol,
    )


def stock_rates(
    world: WorldState, params: ScenarioParams, tables: WorldLookupTables
) -> StockDerivatives:
    """Rates from a state whose auxiliaries are already filled in."""
    r = resources.rates(world, params, tables)
    c = capital.rates(world, params, tables)
    a = agriculture.rates(world, params, tables)
    pl = pollution.rates(world, params, tables)
    pp = population.rates(world, params, tables)

    return StockDerivatives(
        cohort_0_14=pp.cohort_0_14,
        cohort_15_44=pp.cohort_15_44,
        cohort_45_64=pp.cohort_45_64,
        cohort_65_plus=pp.cohort_65_plus,
        industrial_capital=c.industrial_capital,
        service_capital=c.service_capital,
        arable_land=a.arable_land,
        potentially_arable_land=a.potentially_arable_land,
        nonrenewable_resources=r.nonrenewable_resources,
        persistent_pollution=pl.persistent_pollution,
    )


def derivatives(
    state: WorldState, params: ScenarioParams, tables: WorldLookupTables
) -> StockDerivatives:
    return stock_rates(compute_auxiliaries(state, params, tables), params, tables)
