import math

import pandas as pd
import pytest

from world3.solver.run import Rk4Solver


@pytest.fixture(scope="module")
def output():
    from world3.model.params import bau

    return Rk4Solver().run_batch(bau().with_overrides(end_year=1920.0))


def test_identity_fields(output):
    assert output.scenario_name == "Business as Usual"
    assert len(output.scenario_id) == 16
    assert output.computed_at.endswith("+00:00")
    assert len(output) == 21


def test_state_at_year_returns_nearest(output):
    assert output.state_at_year(1910.0).time == 1910.0
    assert output.state_at_year(1910.4).time == 1910.0
    assert output.state_at_year(3000.0).time == 1920.0


def test_extract_series(output):
    pop = output.extract_series("population.population")
    assert len(pop) == 21
    assert pop[0] == pytest.approx(1.6e9)


@pytest.mark.parametrize("path", ["population.nope", "nope.population", "population", ""])
def test_extract_series_unknown_path_is_nan(output, path):
    assert all(math.isnan(v) for v in output.extract_series(path))


def test_to_dict_is_wire_shaped(output):
    d = output.to_dict()
    assert d["timeline"][0] == 1900.0
    assert d["states"][0]["population"]["cohort_0_14"] == 0.60e9
    assert d["params"]["end_year"] == 1920.0


def test_to_frame(output):
    df = output.to_frame()
    assert isinstance(df, pd.DataFrame)
    assert len(df) == 21
    assert df.index.name == "time"
    assert "capital.industrial_output" in df.columns
