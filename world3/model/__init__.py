from world3.model.derivatives import StockDerivatives, compute_auxiliaries, derivatives
from world3.model.initial import initial_conditions_1900
from world3.model.params import PRESETS, ScenarioMeta, ScenarioParams
from world3.model.state import WorldState

__all__ = [
    "PRESETS",
    "ScenarioMeta",
    "ScenarioParams",
    "StockDerivatives",
    "WorldState",
    "compute_auxiliaries",
    "derivatives",
    "initial_conditions_1900",
]
