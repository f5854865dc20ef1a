import math
from dataclasses import replace

import numpy as np
import pytest

from world3.model.initial import initial_conditions_1900
from world3.model.params import bau
from world3.output import SimulationOutput
from world3.solver.run import Rk4Solver, simulate, step_count, timeline
from world3.utils.errors import DivergedError


@pytest.fixture(scope="module")
def bau_output():
    return Rk4Solver().run_batch(bau())


def test_step_count_and_timeline():
    p = bau().with_overrides(end_year=1910.0)
    assert step_count(p) == 11
    years = timeline(p)
    assert years[0] == 1900.0
    assert years[-1] == 1910.0
    assert years == sorted(years)


def test_final_partial_step_lands_on_end_year():
    p = bau().with_overrides(end_year=1901.0, time_step=0.4)
    years = timeline(p)
    assert len(years) == step_count(p) == 4
    assert years[-1] == 1901.0
    assert years[1] == pytest.approx(1900.4)


def test_time_by_index_does_not_drift():
    p = bau().with_overrides(end_year=1910.0, time_step=0.1)
    years = timeline(p)
    assert len(years) == 101
    assert years[50] == 1900.0 + 50 * 0.1


def test_bau_end_to_end(bau_output):
    """BAU 1900-2100 @ dt=1 → 201 个状态"""
    out = bau_output
    assert isinstance(out, SimulationOutput)
    assert len(out.states) == 201
    assert out.timeline[0] == 1900.0
    assert out.timeline[-1] == 2100.0

    first, last = out.states[0], out.states[-1]
    assert first.population.population == pytest.approx(1.6e9, rel=1e-9)
    assert last.resources.fraction_remaining < first.resources.fraction_remaining

    for s in out.states:
        flat = s.to_flat()
        assert np.all(np.isfinite(flat))
        assert np.all(flat >= 0.0)


def test_first_state_has_auxiliaries(tables):
    p = bau().with_overrides(end_year=1905.0)
    year, s = next(simulate(initial_conditions_1900(p), p, tables))
    assert year == 1900.0
    assert s.capital.industrial_output > 0.0
    assert s.population.life_expectancy > 0.0


def test_runs_are_bit_identical(tables, short_bau):
    a = [s.to_flat() for _, s in simulate(initial_conditions_1900(short_bau), short_bau, tables)]
    b = [s.to_flat() for _, s in simulate(initial_conditions_1900(short_bau), short_bau, tables)]
    assert len(a) == len(b) == 51
    assert all(np.array_equal(x, y) for x, y in zip(a, b))


def test_negative_resources_are_clamped(tables):
    """资源耗尽：RK4 组合结果为负，clamp 到 0，不算发散"""
    p = bau().with_overrides(resource_efficiency=1e-6, end_year=1920.0)
    states = Rk4Solver(tables).solve(p)

    assert len(states) == 21
    for s in states:
        assert s.resources.nonrenewable_resources >= 0.0
        assert s.resources.fraction_remaining >= 0.0
    assert states[-1].resources.nonrenewable_resources == 0.0


def test_divergence_stops_the_run(tables):
    p = bau().with_overrides(
        agricultural_technology=1e6, health_investment_multiplier=1e5, end_year=1950.0
    )
    s0 = initial_conditions_1900(p)
    s = replace(
        s0,
        population=replace(
            s0.population, cohort_0_14=0.0, cohort_15_44=9.9e12, cohort_45_64=0.0, cohort_65_plus=0.0
        ),
    )

    seen = []
    with pytest.raises(DivergedError) as exc:
        for year, _ in simulate(s, p, tables):
            seen.append(year)

    assert seen == [1900.0]
    assert exc.value.last_state.time == 1900.0


def test_run_takes_private_params_copy(tables, short_bau):
    gen = Rk4Solver(tables).run(short_bau)
    next(gen)
    # the caller's object is untouched and still usable
    assert short_bau.end_year == 1950.0
    assert math.isfinite(next(gen)[0])
