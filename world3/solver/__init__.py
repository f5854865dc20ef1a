from world3.solver.rk4 import POPULATION_BOUND, rk4_step, step
from world3.solver.run import Rk4Solver, simulate, step_count, timeline

__all__ = ["POPULATION_BOUND", "Rk4Solver", "rk4_step", "simulate", "step", "step_count", "timeline"]
