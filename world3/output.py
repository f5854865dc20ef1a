# world3/output.py
"""
SimulationOutput: the complete result of one batch run.

Produced once at completion, immutable afterwards. Row-wise access goes
through `states`; column-wise through extract_series() / to_frame().
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

import pandas as pd

from world3.model.params import ScenarioParams
from world3.model.state import WorldState


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SimulationOutput:
    scenario_id: str
    scenario_name: str
    timeline: List[float]
    states: List[WorldState]
    params: ScenarioParams
    computed_at: str = field(default_factory=_utc_now)

    @classmethod
    def from_states(cls, params: ScenarioParams, states: List[WorldState]) -> "SimulationOutput":
        return cls(
            scenario_id=params.meta.id,
            scenario_name=params.meta.name,
            timeline=[s.time for s in states],
            states=list(states),
            params=params,
        )

    def __len__(self) -> int:
        return len(self.states)

    def state_at_year(self, year: float) -> WorldState | None:
        """Nearest state to `year` (None for an empty output)."""
        if not self.states:
            return None
        i = min(range(len(self.timeline)), key=lambda k: abs(self.timeline[k] - year))
        return self.states[i]

    def extract_series(self, path: str) -> List[float]:
        """
        Column by dotted path, e.g. "population.population".

        Unknown paths give NaN for every year instead of raising, so a chart
        can ask for a field an older model did not have.
        """
        sector, _, name = path.partition(".")
        out: List[float] = []
        for s in self.states:
            value = getattr(getattr(s, sector, None), name, None) if name else None
            out.append(float(value) if isinstance(value, (int, float)) else math.nan)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenario_id": self.scenario_id,
            "scenario_name": self.scenario_name,
            "timeline": list(self.timeline),
            "states": [s.to_dict() for s in self.states],
            "params": self.params.model_dump(),
            "computed_at": self.computed_at,
        }

    def to_frame(self) -> pd.DataFrame:
        """One row per year, one column per flattened field, indexed by time."""
        df = pd.DataFrame([s.flatten() for s in self.states])
        if not df.empty:
            df = df.set_index("time")
        return df
