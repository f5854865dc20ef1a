# world3/solver/run.py
from __future__ import annotations

import math
from typing import Iterator, List, Optional, Tuple

from world3.lookup.tables import WorldLookupTables, load_world_tables
from world3.model.derivatives import compute_auxiliaries
from world3.model.initial import initial_conditions_1900
from world3.model.params import ScenarioParams
from world3.model.state import WorldState
from world3.output import SimulationOutput
from world3.solver.rk4 import POPULATION_BOUND, step
from world3.utils.logger import logs

# a span within this many steps of a whole multiple counts as whole
_STEP_EPS = 1e-9


def step_count(params: ScenarioParams) -> int:
    """Number of states a run yields, both endpoints included."""
    span = params.end_year - params.start_year
    return int(math.ceil(span / params.time_step - _STEP_EPS)) + 1


def timeline(params: ScenarioParams) -> List[float]:
    """
    Output years, computed by index (start + i*dt) so error does not
    accumulate; the last entry is exactly end_year.
    """
    n = step_count(params)
    years = [params.start_year + i * params.time_step for i in range(n - 1)]
    years.append(params.end_year)
    return years


def simulate(
    initial_state: WorldState,
    params: ScenarioParams,
    tables: WorldLookupTables,
    population_bound: float = POPULATION_BOUND,
) -> Iterator[Tuple[float, WorldState]]:
    """
    Lazily integrate one run, yielding (year, state) pairs in time order.

    The first pair is the initial state (at start_year) with auxiliaries
    filled in. Stops after end_year or raises the first DivergedError.
    Consumers cancel simply by not pulling the next item.
    """
    params = params.private_copy()
    years = timeline(params)

    state = compute_auxiliaries(initial_state.with_time(years[0]), params, tables)
    yield state.time, state

    for year in years[1:]:
        state = step(state, params, tables, year - state.time, population_bound).with_time(year)
        yield year, state


class Rk4Solver:
    """
    Batch entry point over simulate().

    Tables are loaded once and shared; each call works on its own copy of
    the parameters, so one solver can serve many threads.
    """

    def __init__(
        self,
        tables: Optional[WorldLookupTables] = None,
        population_bound: float = POPULATION_BOUND,
    ):
        self.tables = tables if tables is not None else load_world_tables()
        self.population_bound = population_bound

    def run(
        self, params: ScenarioParams, initial_state: Optional[WorldState] = None
    ) -> Iterator[Tuple[float, WorldState]]:
        if initial_state is None:
            initial_state = initial_conditions_1900(params)
        return simulate(initial_state, params, self.tables, self.population_bound)

    def solve(
        self, params: ScenarioParams, initial_state: Optional[WorldState] = None
    ) -> List[WorldState]:
        return [state for _, state in self.run(params, initial_state)]

    @logs.catch(msg="batch simulation failed")
    def run_batch(
        self, params: ScenarioParams, initial_state: Optional[WorldState] = None
    ) -> SimulationOutput:
        states = self.solve(params, initial_state)
        logs.info(
            f"[Solver] {params.meta.name} ({params.meta.id}): "
            f"{len(states)} states {params.start_year:g}..{params.end_year:g}"
        )
        return SimulationOutput.from_states(params, states)
