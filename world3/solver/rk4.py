# world3/solver/rk4.py
"""
Fixed-step classic Runge-Kutta 4.

The kernel (rk4_step) works on a flat numpy vector and knows nothing about
World3. step() adapts it to WorldState:

    WorldState --to_flat--> y --rk4--> y' --checks/clamp--> from_flat --aux--> WorldState

Intermediate stage states are clamped to the physical domain (>= 0) before
the derivative is evaluated, so lookup tables and divisions never see a
negative stock. The combined result is checked for divergence *before*
clamping, otherwise a blow-up could be silently hidden by the cap.
"""
from __future__ import annotations

from typing import Callable

import numpy as np

from world3.lookup.tables import WorldLookupTables
from world3.model.derivatives import compute_auxiliaries, derivatives
from world3.model.params import ScenarioParams
from world3.model.state import POPULATION_STOCK_INDICES, WorldState, stock_name
from world3.utils.errors import DivergedError

# persons; ~1000x any plausible world population
POPULATION_BOUND = 1.0e13

_POP_IDX = np.array(POPULATION_STOCK_INDICES)

RateFn = Callable[[float, np.ndarray], np.ndarray]


def rk4_step(f: RateFn, t: float, y: np.ndarray, dt: float) -> np.ndarray:
    """One RK4 step of y' = f(t, y). Returns a new array."""
    k1 = f(t, y)
    k2 = f(t + dt / 2.0, y + dt / 2.0 * k1)
    k3 = f(t + dt / 2.0, y + dt / 2.0 * k2)
    k4 = f(t + dt, y + dt * k3)
    return y + dt / 6.0 * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


def check_divergence(
    time: float,
    y: np.ndarray,
    last_state: WorldState,
    population_bound: float = POPULATION_BOUND,
) -> None:
    """Raise DivergedError if `y` (unclamped stocks at `time`) left the sane domain."""
    bad = np.flatnonzero(~np.isfinite(y))
    if bad.size:
        i = int(bad[0])
        raise DivergedError(time, stock_name(i), float(y[i]), last_state)

    total = float(y[_POP_IDX].sum())
    if total > population_bound:
        raise DivergedError(time, "population.population", total, last_state)

    for i in POPULATION_STOCK_INDICES:
        if y[i] < -population_bound:
            raise DivergedError(time, stock_name(i), float(y[i]), last_state)


def clamp_stocks(y: np.ndarray, population_bound: float = POPULATION_BOUND) -> np.ndarray:
    out = np.maximum(y, 0.0)
    out[_POP_IDX] = np.minimum(out[_POP_IDX], population_bound)
    return out


def step(
    state: WorldState,
    params: ScenarioParams,
    tables: WorldLookupTables,
    dt: float,
    population_bound: float = POPULATION_BOUND,
) -> WorldState:
    """
    Advance `state` by `dt` years.

    Returns a fully populated state at state.time + dt (stocks clamped,
    auxiliaries recomputed). Raises DivergedError with `state` as the last
    valid state.
    """

    def f(t: float, y: np.ndarray) -> np.ndarray:
        stage = WorldState.from_flat(t, np.maximum(y, 0.0))
        return derivatives(stage, params, tables).to_flat()

    t_next = state.time + dt
    y_next = rk4_step(f, state.time, state.to_flat(), dt)

    check_divergence(t_next, y_next, state, population_bound)

    clamped = WorldState.from_flat(t_next, clamp_stocks(y_next, population_bound))
    return compute_auxiliaries(clamped, params, tables)
