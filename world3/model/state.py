# world3/model/state.py
"""
World State (FINAL / FROZEN)

WorldState is the `y` of the ODE system dy/dt = f(t, y, params): a
structured record, grouped by sector, that is the primary representation of
the model. A flat numpy buffer exists ONLY at the integrator boundary
(to_flat / from_flat) and its field order is fixed by STOCK_FIELDS.

Invariants:
- ten fields are stocks (integrated); everything else is auxiliary
- auxiliaries are a pure function of (time, stocks, params, tables)
- field names and nesting are the wire contract (sim_step.state, CSV, API)
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Tuple

import numpy as np


# -------------------------------------------------------------
# Sector records
# -------------------------------------------------------------
@dataclass(frozen=True)
class PopulationState:
    population: float = 0.0        # total [persons], derived from cohorts
    cohort_0_14: float = 0.0       # stock [persons]
    cohort_15_44: float = 0.0      # stock [persons]
    cohort_45_64: float = 0.0      # stock [persons]
    cohort_65_plus: float = 0.0    # stock [persons]
    birth_rate: float = 0.0        # [births / person / yr]
    death_rate: float = 0.0        # [deaths / person / yr]
    life_expectancy: float = 0.0   # [yr]
    fertility_rate: float = 0.0    # [children / woman]


@dataclass(frozen=True)
class CapitalState:
    industrial_capital: float = 0.0            # stock [1975 USD]
    service_capital: float = 0.0               # stock [1975 USD]
    industrial_output: float = 0.0             # [1975 USD / yr]
    industrial_output_per_capita: float = 0.0  # [1975 USD / person / yr]
    service_output_per_capita: float = 0.0     # [1975 USD / person / yr]


@dataclass(frozen=True)
class AgricultureState:
    arable_land: float = 0.0                      # stock [ha]
    potentially_arable_land: float = 0.0          # stock [ha]
    food: float = 0.0                             # [veg-equivalent kg / yr]
    food_per_capita: float = 0.0                  # [kg / person / yr]
    land_yield: float = 0.0                       # [kg / ha / yr]
    agricultural_inputs_per_hectare: float = 0.0  # [1975 USD / ha / yr]


@dataclass(frozen=True)
class ResourceState:
    nonrenewable_resources: float = 0.0  # stock [normalized, 1900 = 1.0]
    fraction_remaining: float = 0.0      # [0..1]


@dataclass(frozen=True)
class PollutionState:
    persistent_pollution: float = 0.0  # stock [pollution units, 1970 = 1]
    pollution_index: float = 0.0       # [1970 = 1]
    generation_rate: float = 0.0       # [units / yr]
    assimilation_rate: float = 0.0     # [units / yr]


SECTORS: Dict[str, type] = {
    "population": PopulationState,
    "capital": CapitalState,
    "agriculture": AgricultureState,
    "resources": ResourceState,
    "pollution": PollutionState,
}


# -------------------------------------------------------------
# Flat order (integrator boundary) —— 只在此处定义一次
# -------------------------------------------------------------
STOCK_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("population", "cohort_0_14"),
    ("population", "cohort_15_44"),
    ("population", "cohort_45_64"),
    ("population", "cohort_65_plus"),
    ("capital", "industrial_capital"),
    ("capital", "service_capital"),
    ("agriculture", "arable_land"),
    ("agriculture", "potentially_arable_land"),
    ("resources", "nonrenewable_resources"),
    ("pollution", "persistent_pollution"),
)

N_STOCKS = len(STOCK_FIELDS)

# population-scale stocks: bounded above by the solver's population bound
POPULATION_STOCK_INDICES: Tuple[int, ...] = (0, 1, 2, 3)


def stock_name(index: int) -> str:
    sector, name = STOCK_FIELDS[index]
    return f"{sector}.{name}"


@dataclass(frozen=True)
class WorldState:
    time: float = 0.0
    population: PopulationState = field(default_factory=PopulationState)
    capital: CapitalState = field(default_factory=CapitalState)
    agriculture: AgricultureState = field(default_factory=AgricultureState)
    resources: ResourceState = field(default_factory=ResourceState)
    pollution: PollutionState = field(default_factory=PollutionState)

    # ---------------------------------------------------------
    # Flat conversion (integrator boundary only)
    # ---------------------------------------------------------
    def to_flat(self) -> np.ndarray:
        """Stocks only, in STOCK_FIELDS order. `time` is tracked separately."""
        return np.array(
            [getattr(getattr(self, sector), name) for sector, name in STOCK_FIELDS],
            dtype=float,
        )

    @classmethod
    def from_flat(cls, time: float, v) -> "WorldState":
        """
        Rebuild a state from the ten stocks.

        No clamping here (that is the integrator's job), so
        to_flat(from_flat(t, v)) == v holds for any v. Auxiliary fields stay
        at zero except the population total; run compute_auxiliaries()
        before reading them.
        """
        v = np.asarray(v, dtype=float)
        if v.shape != (N_STOCKS,):
            raise ValueError(f"expected {N_STOCKS} stocks, got shape {v.shape}")

        per_sector: Dict[str, Dict[str, float]] = {s: {} for s in SECTORS}
        for (sector, name), value in zip(STOCK_FIELDS, v):
            per_sector[sector][name] = float(value)

        pop = per_sector["population"]
        pop["population"] = (
            pop["cohort_0_14"] + pop["cohort_15_44"] + pop["cohort_45_64"] + pop["cohort_65_plus"]
        )

        return cls(
            time=float(time),
            **{sector: SECTORS[sector](**values) for sector, values in per_sector.items()},
        )

    # ---------------------------------------------------------
    # Wire representation
    # ---------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorldState":
        kwargs: Dict[str, Any] = {"time": float(data.get("time", 0.0))}
        for sector, klass in SECTORS.items():
            raw = data.get(sector) or {}
            allowed = {f.name for f in fields(klass)}
            kwargs[sector] = klass(**{k: float(v) for k, v in raw.items() if k in allowed})
        return cls(**kwargs)

    def with_time(self, time: float) -> "WorldState":
        return replace(self, time=float(time))

    def flatten(self) -> Dict[str, float]:
        """
        {"population.cohort_0_14": ..., ...}：用于表格 / CSV。
        """
        row: Dict[str, float] = {"time": self.time}
        for sector in SECTORS:
            for k, v in asdict(getattr(self, sector)).items():
                row[f"{sector}.{k}"] = v
        return row


def total_population(state: WorldState) -> float:
    """Sum of the four cohort stocks (never reads the stored total)."""
    p = state.population
    return p.cohort_0_14 + p.cohort_15_44 + p.cohort_45_64 + p.cohort_65_plus
