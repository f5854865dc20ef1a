import math

import numpy as np
import pytest

from world3.lookup.table import LookupTable
from world3.lookup.tables import WorldLookupTables, load_world_tables
from world3.utils.errors import MalformedTable


@pytest.fixture
def plateau():
    return LookupTable.build([(0.0, 0.0), (1.0, 10.0), (2.0, 10.0)], name="plateau")


def test_interpolates_inside_domain(plateau):
    assert plateau.evaluate(0.5) == pytest.approx(5.0)
    assert plateau.evaluate(1.5) == pytest.approx(10.0)


def test_clamps_outside_domain(plateau):
    """域外取边界值，不外推"""
    assert plateau.evaluate(-1.0) == 0.0
    assert plateau.evaluate(5.0) == 10.0


def test_exact_breakpoints(plateau):
    assert plateau(0.0) == 0.0
    assert plateau(1.0) == 10.0


def test_evaluate_many_matches_scalar(plateau):
    xs = [-1.0, 0.25, 0.5, 1.0, 3.0]
    out = plateau.evaluate_many(xs)
    assert isinstance(out, np.ndarray)
    assert list(out) == [plateau.evaluate(x) for x in xs]


def test_domain(plateau):
    assert plateau.domain == (0.0, 2.0)


@pytest.mark.parametrize(
    "xs, ys",
    [
        ([0.0], [1.0]),                      # too few points
        ([0.0, 1.0], [1.0]),                 # length mismatch
        ([0.0, 0.0], [1.0, 2.0]),            # not strictly increasing
        ([1.0, 0.0], [1.0, 2.0]),            # decreasing
        ([0.0, math.nan], [1.0, 2.0]),       # non-finite x
        ([0.0, 1.0], [1.0, math.inf]),       # non-finite y
    ],
)
def test_malformed_tables_rejected(xs, ys):
    with pytest.raises(MalformedTable):
        LookupTable("bad", xs, ys)


def test_world_tables_loaded_once():
    a = load_world_tables()
    b = load_world_tables()
    assert a is b
    assert isinstance(a, WorldLookupTables)


def test_world_tables_named():
    for name, table in load_world_tables().as_dict().items():
        assert table.name == name
        assert len(table.xs) >= 2
