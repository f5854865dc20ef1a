# world3/utils/errors.py
from __future__ import annotations

from typing import Any


class UserInputError(RuntimeError):
    """
    Raised for invalid user-provided CLI input (unknown preset, bad range).
    Should NOT print traceback.
    """


class MalformedTable(ValueError):
    """
    Lookup table breakpoints are structurally invalid.

    Fatal at load time: tables are supplied once and never repaired.
    """


class SolverError(RuntimeError):
    """Base class for failures of a single simulation run."""

    kind: str = "solver_error"


class DivergedError(SolverError):
    """
    A stock left its sane domain during an RK4 step.

    Contract (FROZEN):
    - year       : simulated time at which the failed step would have landed
    - variable   : offending stock, dotted ("population.population" for the total)
    - value      : offending raw value before clamping
    - last_state : last valid WorldState of the run
    """

    kind = "diverged"

    def __init__(self, year: float, variable: str, value: float, last_state: Any = None):
        self.year = year
        self.variable = variable
        self.value = value
        self.last_state = last_state
        super().__init__(f"State diverged at year {year:.1f}: {variable} = {value:.3e}")


class RunCancelled(Exception):
    """
    Internal signal: a run was superseded or stopped.

    Never surfaced to clients (no sim_error for supersession).
    """


class ScenarioNotFound(KeyError):
    def __init__(self, scenario_id: str):
        self.scenario_id = scenario_id
        super().__init__(scenario_id)

    def __str__(self) -> str:
        return f"Scenario '{self.scenario_id}' not found"


class PresetProtected(PermissionError):
    def __init__(self, scenario_id: str):
        self.scenario_id = scenario_id
        super().__init__(f"Cannot delete preset scenario '{scenario_id}'")
