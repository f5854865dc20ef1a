# world3/model/initial.py
from __future__ import annotations

from world3.model.params import ScenarioParams
from world3.model.state import (
    AgricultureState,
    CapitalState,
    PollutionState,
    PopulationState,
    ResourceState,
    WorldState,
)

# reference 1900 total population used by validation
POPULATION_1900 = 1.6e9


def initial_conditions_1900(params: ScenarioParams | None = None) -> WorldState:
    """
    World3 initial conditions for 1900, broadly matching the Meadows 1972
    standard-run starting point.

    Only stocks are set; auxiliaries are filled in by the first
    compute_auxiliaries() pass of a run. The resource stock follows
    params.initial_nnr_fraction when params are given.
    """
    nnr = 1.0 if params is None else params.initial_nnr_fraction

    cohorts = dict(
        cohort_0_14=0.60e9,     # 37.5%: high fertility, high child mortality
        cohort_15_44=0.65e9,    # 40.6%
        cohort_45_64=0.27e9,    # 16.9%
        cohort_65_plus=0.08e9,  # 5.0%
    )

    return WorldState(
        time=1900.0 if params is None else params.start_year,
        population=PopulationState(population=sum(cohorts.values()), **cohorts),
        capital=CapitalState(
            industrial_capital=0.2e12,
            # service capital at its ~1900 equilibrium: sopc ~ $200/yr
            service_capital=0.32e12,
        ),
        agriculture=AgricultureState(
            arable_land=0.9e9,
            potentially_arable_land=2.3e9,
        ),
        resources=ResourceState(nonrenewable_resources=nnr),
        pollution=PollutionState(persistent_pollution=0.05),
    )
